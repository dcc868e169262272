from __future__ import annotations

from collections import Counter
from typing import Iterable

from contracts.label import IssueKind, LabelDraft, ParsedIngredient, PipelineDraft, ValidationIssue
from dose_parsing.amount_unit import normalize_amount_for_compare
from dose_parsing.config import DEFAULT_UNIT_VOCABULARY, UnitVocabulary
from dose_parsing.names import ingredient_keys

from .config import ValidationConfig
from .ingredient import validate_ingredient


def _within(a: float, b: float, tolerance: float) -> bool:
    return abs(a - b) <= max(abs(a), abs(b)) * tolerance


def doses_agree(first: ParsedIngredient, second: ParsedIngredient, tolerance: float) -> bool | None:
    """
    Compare two doses of the same ingredient.

    Returns None when either side has no dose. Doses are converted to mg
    where possible, otherwise compared in their shared unit; doses with no
    common scale count as a disagreement.
    """

    if first.amount is None or second.amount is None or not first.unit or not second.unit:
        return None

    a = normalize_amount_for_compare(first.amount, first.unit, first.name)
    b = normalize_amount_for_compare(second.amount, second.unit, second.name)
    if a is not None and b is not None:
        return _within(a, b, tolerance)
    if first.unit.lower() == second.unit.lower():
        return _within(first.amount, second.amount, tolerance)
    return False


def check_dose_consistency(
    ingredients: list[ParsedIngredient], config: ValidationConfig | None = None
) -> list[ValidationIssue]:
    """
    Group ingredients by core name; flag a group once when any two of its
    doses disagree beyond `dose_tolerance`.
    """

    cfg = ValidationConfig() if config is None else config
    groups: dict[str, list[ParsedIngredient]] = {}
    for ing in ingredients:
        if not ing.has_dose():
            continue
        core = ingredient_keys(ing.name).core
        if core:
            groups.setdefault(core, []).append(ing)

    issues: list[ValidationIssue] = []
    for members in groups.values():
        if len(members) < 2:
            continue
        conflict = any(
            doses_agree(a, b, cfg.dose_tolerance) is False
            for i, a in enumerate(members)
            for b in members[i + 1 :]
        )
        if conflict:
            doses = ", ".join(f"{m.amount:g} {m.unit}" for m in members if m.amount is not None)
            issues.append(
                ValidationIssue(
                    IssueKind.DOSE_INCONSISTENCY_OR_CLAIM,
                    f"Inconsistent doses for {members[0].name}: {doses}",
                )
            )
    return issues


def score_confidence(
    ingredients: list[ParsedIngredient],
    parse_coverage: float,
    issues: Iterable[ValidationIssue],
    config: ValidationConfig | None = None,
) -> float:
    """
    1.0, minus a coverage penalty below `coverage_threshold`, minus capped
    per-kind severities, then blended with the mean ingredient confidence.
    Always within [0, 1].
    """

    cfg = ValidationConfig() if config is None else config
    score = 1.0
    if parse_coverage < cfg.coverage_threshold:
        score -= (cfg.coverage_threshold - parse_coverage) * cfg.coverage_penalty_k

    counts = Counter(issue.kind for issue in issues)
    for kind in IssueKind:
        count = counts.get(kind, 0)
        if not count:
            continue
        cap = cfg.caps.get(kind, cfg.default_cap)
        score -= cfg.severity.get(kind, cfg.default_severity) * min(count, cap)

    if ingredients:
        mean_conf = sum(i.confidence for i in ingredients) / len(ingredients)
        score = score * cfg.score_weight + mean_conf * (1.0 - cfg.score_weight)

    return max(0.0, min(1.0, score))


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def validate_draft(
    draft: PipelineDraft,
    config: ValidationConfig | None = None,
    vocabulary: UnitVocabulary = DEFAULT_UNIT_VOCABULARY,
) -> LabelDraft:
    """
    Annotate a pipeline (or merged) draft and score it.

    Issue order: pipeline issues, then per-ingredient issues in ingredient
    order, then draft-level dose consistency.
    """

    cfg = ValidationConfig() if config is None else config
    issues = list(draft.issues)
    for ing in draft.ingredients:
        issues.extend(validate_ingredient(ing, cfg, vocabulary))
    issues.extend(check_dose_consistency(draft.ingredients, cfg))

    coverage = _clamp01(draft.parse_coverage)
    return LabelDraft(
        serving_size=draft.serving_size,
        ingredients=list(draft.ingredients),
        parse_coverage=coverage,
        confidence_score=score_confidence(draft.ingredients, coverage, issues, cfg),
        issues=issues,
    )


def rescore(draft: LabelDraft, extra_issues: list[ValidationIssue], config: ValidationConfig | None = None) -> LabelDraft:
    """Append issues to a scored draft and recompute its confidence."""

    issues = [*draft.issues, *extra_issues]
    return LabelDraft(
        serving_size=draft.serving_size,
        ingredients=draft.ingredients,
        parse_coverage=draft.parse_coverage,
        confidence_score=score_confidence(draft.ingredients, draft.parse_coverage, issues, config),
        issues=issues,
    )


def needs_confirmation(draft: LabelDraft, config: ValidationConfig | None = None) -> bool:
    """Hard gate for automated use of a draft."""

    cfg = ValidationConfig() if config is None else config
    if draft.confidence_score < cfg.confidence_threshold:
        return True
    if draft.parse_coverage < cfg.coverage_threshold:
        return True
    return any(issue.kind in cfg.must_review_kinds for issue in draft.issues)
