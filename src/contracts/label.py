from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class IssueKind(str, Enum):
    """Closed issue taxonomy. Detection only; blocking policy lives in `needs_confirmation`."""

    UNIT_INVALID = "unit_invalid"
    VALUE_ANOMALY = "value_anomaly"
    MISSING_SERVING_SIZE = "missing_serving_size"
    HEADER_NOT_FOUND = "header_not_found"
    LOW_COVERAGE = "low_coverage"
    INCOMPLETE_INGREDIENTS = "incomplete_ingredients"
    NON_INGREDIENT_LINE_DETECTED = "non_ingredient_line_detected"
    UNIT_BOUNDARY_SUSPECT = "unit_boundary_suspect"
    DOSE_INCONSISTENCY_OR_CLAIM = "dose_inconsistency_or_claim"


class ExtractionSource(str, Enum):
    TABLE = "table"
    TEXT = "text"
    MERGED = "merged"


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    kind: IssueKind
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message}

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "ValidationIssue":
        return ValidationIssue(kind=IssueKind(str(d.get("kind", d.get("type")))), message=str(d.get("message", "")))


@dataclass(frozen=True, slots=True)
class ParsedIngredient:
    """
    Atomic output unit. `amount`, `unit` and `dv_percent` are independently
    optional; consumers must check each one on its own.
    """

    name: str
    amount: float | None
    unit: str | None
    dv_percent: float | None
    confidence: float  # 0..1
    source_line: str
    source: ExtractionSource

    def has_dose(self) -> bool:
        return self.amount is not None and bool(self.unit)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "amount": self.amount,
            "unit": self.unit,
            "dvPercent": self.dv_percent,
            "confidence": self.confidence,
            "sourceLine": self.source_line,
            "source": self.source.value,
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "ParsedIngredient":
        amount = d.get("amount")
        dv = d.get("dvPercent", d.get("dv_percent"))
        unit = d.get("unit")
        return ParsedIngredient(
            name=str(d.get("name", "")),
            amount=(None if amount is None else float(amount)),
            unit=(None if unit is None else str(unit)),
            dv_percent=(None if dv is None else float(dv)),
            confidence=float(d.get("confidence", 0.0)),
            source_line=str(d.get("sourceLine", d.get("source_line", ""))),
            source=ExtractionSource(str(d.get("source", ExtractionSource.TABLE.value))),
        )


@dataclass(frozen=True, slots=True)
class PipelineDraft:
    """
    Raw output of one extraction pipeline before validation and scoring.

    `ingredient_like_count` is the coverage denominator: ingredient-like rows
    or lines inside the scanned region. `meta` carries pipeline-specific
    detail for diagnostics only.
    """

    source: ExtractionSource
    serving_size: str | None
    ingredients: list[ParsedIngredient]
    parse_coverage: float
    ingredient_like_count: int
    anchor_found: bool  # table header row / medicinal section or inline anchor
    issues: list[ValidationIssue]
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class LabelDraft:
    serving_size: str | None
    ingredients: list[ParsedIngredient]
    parse_coverage: float
    confidence_score: float
    issues: list[ValidationIssue]

    def valid_ingredient_count(self) -> int:
        return sum(1 for i in self.ingredients if i.has_dose())

    def issue_kinds(self) -> set[IssueKind]:
        return {i.kind for i in self.issues}

    def to_dict(self) -> dict[str, Any]:
        return {
            "servingSize": self.serving_size,
            "ingredients": [i.to_dict() for i in self.ingredients],
            "parseCoverage": self.parse_coverage,
            "confidenceScore": self.confidence_score,
            "issues": [i.to_dict() for i in self.issues],
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "LabelDraft":
        ingredients_raw = d.get("ingredients") or []
        issues_raw = d.get("issues") or []
        if not isinstance(ingredients_raw, list):
            raise TypeError("LabelDraft.ingredients must be a list")
        if not isinstance(issues_raw, list):
            raise TypeError("LabelDraft.issues must be a list")
        serving = d.get("servingSize", d.get("serving_size"))
        return LabelDraft(
            serving_size=(None if serving is None else str(serving)),
            ingredients=[ParsedIngredient.from_dict(x) for x in ingredients_raw],
            parse_coverage=float(d.get("parseCoverage", d.get("parse_coverage", 0.0))),
            confidence_score=float(d.get("confidenceScore", d.get("confidence_score", 0.0))),
            issues=[ValidationIssue.from_dict(x) for x in issues_raw],
        )


class DecisionKind(str, Enum):
    USE_TABLE = "use_table"
    USE_TEXT = "use_text"
    MERGE = "merge"


@dataclass(frozen=True, slots=True)
class ArbitrationDecision:
    kind: DecisionKind
    rule: str  # name of the rule that fired
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "rule": self.rule, "reason": self.reason}


@dataclass(frozen=True, slots=True)
class PipelineSummary:
    source: ExtractionSource
    ingredient_count: int
    valid_count: int
    parse_coverage: float
    junk_ratio: float
    anchor_found: bool
    confidence_score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source.value,
            "ingredientCount": self.ingredient_count,
            "validCount": self.valid_count,
            "parseCoverage": self.parse_coverage,
            "junkRatio": self.junk_ratio,
            "anchorFound": self.anchor_found,
            "confidenceScore": self.confidence_score,
        }


@dataclass(frozen=True, slots=True)
class TokenStats:
    token_count: int
    avg_confidence: float | None
    p10_confidence: float | None
    p50_confidence: float | None
    p90_confidence: float | None
    median_token_height: float | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tokenCount": self.token_count,
            "avgConfidence": self.avg_confidence,
            "p10Confidence": self.p10_confidence,
            "p50Confidence": self.p50_confidence,
            "p90Confidence": self.p90_confidence,
            "medianTokenHeight": self.median_token_height,
        }


@dataclass(frozen=True, slots=True)
class LabelDiagnostics:
    """Debugging/telemetry only. Business logic must never read it."""

    decision: ArbitrationDecision
    signals: dict[str, bool]
    table: PipelineSummary
    text: PipelineSummary
    token_stats: TokenStats
    line_source: str  # "transcript" | "rows"
    completeness: dict[str, Any]
    dropped_tokens: list[dict[str, Any]]
    warnings: list[dict[str, Any]]
    merge: dict[str, Any] = field(default_factory=dict)  # empty unless the drafts were merged

    def to_dict(self) -> dict[str, Any]:
        return {
            "decision": self.decision.to_dict(),
            "signals": dict(self.signals),
            "pipelines": {"table": self.table.to_dict(), "text": self.text.to_dict()},
            "tokenStats": self.token_stats.to_dict(),
            "lineSource": self.line_source,
            "completeness": dict(self.completeness),
            "droppedTokens": list(self.dropped_tokens),
            "warnings": list(self.warnings),
            "merge": dict(self.merge),
        }


@dataclass(frozen=True, slots=True)
class LabelAnalysis:
    draft: LabelDraft
    diagnostics: LabelDiagnostics
    needs_confirmation: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "draft": self.draft.to_dict(),
            "diagnostics": self.diagnostics.to_dict(),
            "needsConfirmation": self.needs_confirmation,
        }
