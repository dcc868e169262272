from __future__ import annotations

from contracts.label import IssueKind, ParsedIngredient, ValidationIssue
from dose_parsing.config import DEFAULT_UNIT_VOCABULARY, UnitVocabulary
from dose_parsing.names import normalize_for_match

from .config import ValidationConfig


def _fmt_amount(amount: float) -> str:
    return f"{amount:g}"


def check_unit(ing: ParsedIngredient, vocabulary: UnitVocabulary) -> list[ValidationIssue]:
    if ing.unit and not vocabulary.is_valid(ing.unit):
        return [ValidationIssue(IssueKind.UNIT_INVALID, f'Invalid unit "{ing.unit}" for {ing.name}')]
    return []


def check_sanity_limits(ing: ParsedIngredient, config: ValidationConfig) -> list[ValidationIssue]:
    """Only the first nutrient key found in the name is checked."""

    if ing.amount is None or not ing.unit:
        return []
    lower_name = ing.name.lower()
    unit = ing.unit.lower()
    for limit in config.sanity_limits:
        if limit.name_key not in lower_name:
            continue
        if unit in limit.units and ing.amount > limit.max_amount:
            return [
                ValidationIssue(
                    IssueKind.VALUE_ANOMALY,
                    f"{ing.name} amount {_fmt_amount(ing.amount)} {ing.unit} exceeds typical max "
                    f"{_fmt_amount(limit.max_amount)}",
                )
            ]
        return []
    return []


def check_non_ingredient(ing: ParsedIngredient, config: ValidationConfig) -> list[ValidationIssue]:
    for text in (ing.name, ing.source_line):
        key = normalize_for_match(text)
        if any(p.search(key) for p in config.non_ingredient_patterns):
            return [
                ValidationIssue(
                    IssueKind.NON_INGREDIENT_LINE_DETECTED, f"Non-ingredient text detected near {ing.name}: {text}"
                )
            ]
    return []


def check_claim_language(ing: ParsedIngredient, config: ValidationConfig) -> list[ValidationIssue]:
    for text in (ing.name, ing.source_line):
        key = normalize_for_match(text)
        if any(p.search(key) for p in config.claim_patterns):
            return [
                ValidationIssue(
                    IssueKind.DOSE_INCONSISTENCY_OR_CLAIM, f"Comparison or marketing claim near {ing.name}: {text}"
                )
            ]
    return []


def check_unit_boundary(ing: ParsedIngredient, config: ValidationConfig) -> list[ValidationIssue]:
    if (ing.unit or "").lower() != "g":
        return []
    for text in (ing.source_line, ing.name):
        if config.unit_boundary_re.search(text):
            return [
                ValidationIssue(
                    IssueKind.UNIT_BOUNDARY_SUSPECT,
                    f'Gram unit for {ing.name} may be the start of "gélule": {text}',
                )
            ]
    return []


def validate_ingredient(
    ing: ParsedIngredient,
    config: ValidationConfig | None = None,
    vocabulary: UnitVocabulary = DEFAULT_UNIT_VOCABULARY,
) -> list[ValidationIssue]:
    cfg = ValidationConfig() if config is None else config
    issues: list[ValidationIssue] = []
    issues.extend(check_unit(ing, vocabulary))
    issues.extend(check_sanity_limits(ing, cfg))
    issues.extend(check_non_ingredient(ing, cfg))
    issues.extend(check_claim_language(ing, cfg))
    issues.extend(check_unit_boundary(ing, cfg))
    return issues
