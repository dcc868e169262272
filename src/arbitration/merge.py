from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from contracts.label import ExtractionSource, IssueKind, ParsedIngredient, PipelineDraft, ValidationIssue
from dose_parsing.names import IngredientKeys, ingredient_keys
from validation.draft import doses_agree

from .config import ArbitrationConfig

MIN_SUBSTRING_CORE = 4


@dataclass(frozen=True, slots=True)
class MergeStats:
    matched: int
    agreed: int
    conflicts: int
    supplemented: int
    dropped: int
    supplement_allowed: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "matched": self.matched,
            "agreed": self.agreed,
            "conflicts": self.conflicts,
            "supplemented": self.supplemented,
            "dropped": self.dropped,
            "supplementAllowed": self.supplement_allowed,
        }


def find_match(keys: IngredientKeys, candidates: list[IngredientKeys], used: set[int]) -> int | None:
    """
    Index of the first unused candidate matching `keys`, trying in order:
    normalized full name, core name, then core-name containment (both cores
    at least 4 characters).
    """

    for idx, cand in enumerate(candidates):
        if idx not in used and cand.full == keys.full:
            return idx
    for idx, cand in enumerate(candidates):
        if idx not in used and cand.core == keys.core:
            return idx
    if len(keys.core) < MIN_SUBSTRING_CORE:
        return None
    for idx, cand in enumerate(candidates):
        if idx in used or len(cand.core) < MIN_SUBSTRING_CORE:
            continue
        if cand.core in keys.core or keys.core in cand.core:
            return idx
    return None


def _fmt_dose(ing: ParsedIngredient) -> str:
    return f"{ing.amount:g} {ing.unit} ({ing.source.value})"


def combine(primary: ParsedIngredient, secondary: ParsedIngredient) -> ParsedIngredient:
    """Union of known fields, primary values first; amount and unit travel together."""

    if primary.has_dose():
        amount, unit = primary.amount, primary.unit
    elif secondary.has_dose():
        amount, unit = secondary.amount, secondary.unit
    else:
        amount, unit = primary.amount, primary.unit
    return ParsedIngredient(
        name=primary.name,
        amount=amount,
        unit=unit,
        dv_percent=primary.dv_percent if primary.dv_percent is not None else secondary.dv_percent,
        confidence=max(primary.confidence, secondary.confidence),
        source_line=primary.source_line,
        source=ExtractionSource.MERGED,
    )


def _structural_issues(
    serving_size: str | None, coverage: float, anchor_found: bool, has_ingredients: bool, low_coverage: float
) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if serving_size is None:
        issues.append(ValidationIssue(IssueKind.MISSING_SERVING_SIZE, "Serving size not found"))
    if coverage < low_coverage:
        issues.append(
            ValidationIssue(
                IssueKind.LOW_COVERAGE, f"Only {round(coverage * 100)}% of rows/lines have valid amount/unit"
            )
        )
    if not anchor_found and has_ingredients:
        issues.append(ValidationIssue(IssueKind.HEADER_NOT_FOUND, "Neither table header nor ingredient section detected"))
    return issues


def merge_drafts(
    primary: PipelineDraft,
    secondary: PipelineDraft,
    *,
    allow_supplement_base: bool,
    tolerance: float,
    config: ArbitrationConfig | None = None,
    low_coverage_threshold: float = 0.7,
) -> tuple[PipelineDraft, MergeStats]:
    """
    Cross-validate two pipeline drafts.

    Matched pairs are combined and their doses compared; a disagreement
    beyond `tolerance` adds a dose_inconsistency_or_claim issue and the
    primary value is kept. Unmatched secondary ingredients are appended
    (confidence decayed) only when supplementing is allowed and they are
    confident and carry a dose.

    Serving size, coverage and header issues are recomputed for the merged
    result instead of copied from either side.
    """

    cfg = ArbitrationConfig() if config is None else config
    secondary_keys = [ingredient_keys(ing.name) for ing in secondary.ingredients]
    used: set[int] = set()
    merged: list[ParsedIngredient] = []
    conflict_issues: list[ValidationIssue] = []
    matched = agreed = 0

    for ing in primary.ingredients:
        idx = find_match(ingredient_keys(ing.name), secondary_keys, used)
        if idx is None:
            merged.append(ing)
            continue
        used.add(idx)
        matched += 1
        other = secondary.ingredients[idx]
        verdict = doses_agree(ing, other, tolerance)
        if verdict is True:
            agreed += 1
        elif verdict is False:
            conflict_issues.append(
                ValidationIssue(
                    IssueKind.DOSE_INCONSISTENCY_OR_CLAIM,
                    f"Conflicting amounts for {ing.name}: {_fmt_dose(ing)} vs {_fmt_dose(other)}",
                )
            )
        merged.append(combine(ing, other))

    allow = allow_supplement_base or matched > 0
    supplemented = dropped = 0
    for idx, remaining in enumerate(secondary.ingredients):
        if idx in used:
            continue
        if allow and remaining.confidence >= cfg.supplement_min_confidence and remaining.has_dose():
            merged.append(replace(remaining, confidence=min(1.0, remaining.confidence * cfg.supplement_decay)))
            supplemented += 1
        else:
            dropped += 1

    best = primary if primary.parse_coverage >= secondary.parse_coverage else secondary
    serving_size = primary.serving_size if primary.serving_size is not None else secondary.serving_size
    anchor_found = primary.anchor_found or secondary.anchor_found
    issues = _structural_issues(serving_size, best.parse_coverage, anchor_found, bool(merged), low_coverage_threshold)
    issues.extend(conflict_issues)

    stats = MergeStats(
        matched=matched,
        agreed=agreed,
        conflicts=len(conflict_issues),
        supplemented=supplemented,
        dropped=dropped,
        supplement_allowed=allow,
    )
    draft = PipelineDraft(
        source=ExtractionSource.MERGED,
        serving_size=serving_size,
        ingredients=merged,
        parse_coverage=best.parse_coverage,
        ingredient_like_count=best.ingredient_like_count,
        anchor_found=anchor_found,
        issues=issues,
        meta={"primary": primary.source.value, "secondary": secondary.source.value, "merge": stats.to_dict()},
    )
    return draft, stats
