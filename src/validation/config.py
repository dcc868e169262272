from __future__ import annotations

import re
from dataclasses import dataclass, field

from contracts.label import IssueKind

_I = re.IGNORECASE


@dataclass(frozen=True, slots=True)
class SanityLimit:
    """Upper bound for a well-known nutrient, matched as a substring of the lowercased name."""

    name_key: str
    max_amount: float
    units: tuple[str, ...]  # lowercase


DEFAULT_SANITY_LIMITS: tuple[SanityLimit, ...] = (
    SanityLimit("vitamin d", 10000, ("iu", "mcg")),
    SanityLimit("vitamin a", 10000, ("iu", "mcg")),
    SanityLimit("vitamin c", 3000, ("mg",)),
    SanityLimit("iron", 100, ("mg",)),
    SanityLimit("calcium", 2000, ("mg",)),
    SanityLimit("zinc", 100, ("mg",)),
)

DEFAULT_SEVERITY: dict[IssueKind, float] = {
    IssueKind.MISSING_SERVING_SIZE: 0.15,
    IssueKind.HEADER_NOT_FOUND: 0.1,
    IssueKind.LOW_COVERAGE: 0.2,
    IssueKind.UNIT_INVALID: 0.1,
    IssueKind.VALUE_ANOMALY: 0.15,
    IssueKind.INCOMPLETE_INGREDIENTS: 0.15,
    IssueKind.NON_INGREDIENT_LINE_DETECTED: 0.1,
    IssueKind.UNIT_BOUNDARY_SUSPECT: 0.1,
    IssueKind.DOSE_INCONSISTENCY_OR_CLAIM: 0.1,
}

# Max occurrences of one kind that count toward the penalty; unlisted kinds use `default_cap`.
DEFAULT_CAPS: dict[IssueKind, int] = {
    IssueKind.UNIT_INVALID: 2,
    IssueKind.VALUE_ANOMALY: 2,
    IssueKind.NON_INGREDIENT_LINE_DETECTED: 2,
    IssueKind.DOSE_INCONSISTENCY_OR_CLAIM: 2,
}

DEFAULT_MUST_REVIEW: frozenset[IssueKind] = frozenset(
    {
        IssueKind.MISSING_SERVING_SIZE,
        IssueKind.INCOMPLETE_INGREDIENTS,
        IssueKind.UNIT_INVALID,
        IssueKind.VALUE_ANOMALY,
        IssueKind.NON_INGREDIENT_LINE_DETECTED,
        IssueKind.UNIT_BOUNDARY_SUSPECT,
        IssueKind.DOSE_INCONSISTENCY_OR_CLAIM,
    }
)

DEFAULT_HIGH_RISK: frozenset[IssueKind] = frozenset(
    {
        IssueKind.UNIT_INVALID,
        IssueKind.VALUE_ANOMALY,
        IssueKind.LOW_COVERAGE,
        IssueKind.INCOMPLETE_INGREDIENTS,
    }
)

DEFAULT_CONFIRMED_BLOCKING: frozenset[IssueKind] = frozenset({IssueKind.UNIT_INVALID, IssueKind.VALUE_ANOMALY})

# Matched against the accent-stripped, lowercased ingredient name and source line.
DEFAULT_NON_INGREDIENT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bconsult (?:a|your) (?:physician|doctor|health ?care (?:practitioner|provider|professional))\b"),
    re.compile(r"\bconsultez un\b"),
    re.compile(r"\bkeep out of (?:the )?reach\b"),
    re.compile(r"\btenir hors de (?:la )?portee\b"),
    re.compile(r"\b(?:directions?|suggested use|mode d'?emploi|posologie)\b"),
    re.compile(r"\b(?:take|prendre)\s+\d+\b"),
    re.compile(r"\bdo not exceed\b"),
    re.compile(r"\bne pas depasser\b"),
    re.compile(r"\bif (?:you are )?pregnant\b"),
    re.compile(r"\bservings? per container\b"),
)

DEFAULT_CLAIM_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bmore than\b"),
    re.compile(r"\bcompared (?:to|with)\b"),
    re.compile(r"\bas much as\b"),
    re.compile(r"\b\d+\s*(?:x|times) more\b"),
    re.compile(r"\bplus (?:de|que)\b"),
    re.compile(r"\bpar rapport (?:a|au)\b"),
)

# "2 gélules" read as 2 g: the gram unit glued to a French count word.
DEFAULT_UNIT_BOUNDARY_RE = re.compile(r"\d[\d,.]*\s*g\s?[ée]lules?\b", _I)


@dataclass(frozen=True, slots=True)
class ValidationConfig:
    sanity_limits: tuple[SanityLimit, ...] = DEFAULT_SANITY_LIMITS
    severity: dict[IssueKind, float] = field(default_factory=lambda: dict(DEFAULT_SEVERITY))
    caps: dict[IssueKind, int] = field(default_factory=lambda: dict(DEFAULT_CAPS))
    default_severity: float = 0.05
    default_cap: int = 1

    coverage_threshold: float = 0.7
    coverage_penalty_k: float = 0.5
    confidence_threshold: float = 0.7
    score_weight: float = 0.7  # remainder weights the mean ingredient confidence

    # Single relative tolerance for every dose comparison (merge and draft-level).
    dose_tolerance: float = 0.15

    must_review_kinds: frozenset[IssueKind] = DEFAULT_MUST_REVIEW
    high_risk_kinds: frozenset[IssueKind] = DEFAULT_HIGH_RISK
    confirmed_blocking_kinds: frozenset[IssueKind] = DEFAULT_CONFIRMED_BLOCKING

    non_ingredient_patterns: tuple[re.Pattern[str], ...] = DEFAULT_NON_INGREDIENT_PATTERNS
    claim_patterns: tuple[re.Pattern[str], ...] = DEFAULT_CLAIM_PATTERNS
    unit_boundary_re: re.Pattern[str] = DEFAULT_UNIT_BOUNDARY_RE

    # Draft quality bands.
    review_confidence: float = 0.75
    review_coverage: float = 0.7
    high_quality_confidence: float = 0.85
    high_quality_coverage: float = 0.85
    medium_quality_confidence: float = 0.75
    medium_quality_coverage: float = 0.7

    def validate(self) -> None:
        for name in (
            "coverage_threshold",
            "confidence_threshold",
            "score_weight",
            "dose_tolerance",
            "review_confidence",
            "review_coverage",
            "high_quality_confidence",
            "high_quality_coverage",
            "medium_quality_confidence",
            "medium_quality_coverage",
        ):
            v = getattr(self, name)
            if not (0.0 <= v <= 1.0):
                raise ValueError(f"{name} must be in [0, 1]")
        if self.coverage_penalty_k < 0.0:
            raise ValueError("coverage_penalty_k must be >= 0")
        if self.default_cap < 0 or any(c < 0 for c in self.caps.values()):
            raise ValueError("caps must be >= 0")
        if any(s < 0.0 for s in self.severity.values()) or self.default_severity < 0.0:
            raise ValueError("severities must be >= 0")
        for limit in self.sanity_limits:
            if limit.max_amount <= 0:
                raise ValueError(f"sanity limit for {limit.name_key!r} must be > 0")
