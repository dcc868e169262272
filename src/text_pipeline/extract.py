from __future__ import annotations

from contracts.grouping import TextLine
from contracts.label import ExtractionSource, IssueKind, ParsedIngredient, PipelineDraft, ValidationIssue
from dose_parsing.amount_unit import has_absolute_dose
from dose_parsing.config import DEFAULT_UNIT_VOCABULARY, UnitVocabulary
from dose_parsing.names import normalize_for_match
from dose_parsing.serving import infer_serving_size

from .config import TextConfig
from .lines import is_noise_line, merge_split_lines, parse_text_line, prepare_line
from .sections import detect_sections


def count_candidate_amount_lines(
    lines: list[TextLine],
    config: TextConfig | None = None,
    vocabulary: UnitVocabulary = DEFAULT_UNIT_VOCABULARY,
) -> int:
    """Non-noise lines carrying an absolute dose."""

    cfg = TextConfig() if config is None else config
    count = 0
    for line in lines:
        cleaned = prepare_line(line.raw, cfg)
        if not cleaned or is_noise_line(normalize_for_match(cleaned), cfg):
            continue
        if has_absolute_dose(cleaned, vocabulary):
            count += 1
    return count


def extract_text(
    lines: list[TextLine],
    config: TextConfig | None = None,
    vocabulary: UnitVocabulary = DEFAULT_UNIT_VOCABULARY,
) -> PipelineDraft:
    """
    Text Pipeline: anchor-bounded (or whole-text) line parsing.

    Coverage is parsed dose lines over candidate dose lines, both counted
    after line merging inside the scanned region.
    """

    cfg = TextConfig() if config is None else config
    sections = detect_sections(lines, cfg)
    target = sections.region if sections.in_section else lines
    target = [line for line in target if line.raw.strip()]
    merged = merge_split_lines(target, cfg, vocabulary)

    ingredients: list[ParsedIngredient] = []
    ingredient_like = 0
    with_dose = 0
    for line in merged:
        cleaned = prepare_line(line.raw, cfg)
        if not cleaned or is_noise_line(normalize_for_match(cleaned), cfg):
            continue
        if has_absolute_dose(cleaned, vocabulary):
            ingredient_like += 1
        parsed = parse_text_line(line, in_section=sections.in_medicinal_section, config=cfg, vocabulary=vocabulary)
        if parsed is not None:
            ingredients.append(parsed)
            if parsed.has_dose():
                with_dose += 1

    coverage = with_dose / ingredient_like if ingredient_like > 0 else 0.0
    serving_size = infer_serving_size((line.raw for line in lines), cfg.serving)

    issues: list[ValidationIssue] = []
    if serving_size is None:
        issues.append(ValidationIssue(IssueKind.MISSING_SERVING_SIZE, "Serving size not found"))
    if coverage < cfg.low_coverage_threshold:
        issues.append(
            ValidationIssue(IssueKind.LOW_COVERAGE, f"Only {round(coverage * 100)}% of lines have valid amount/unit")
        )
    if not sections.in_section and ingredients:
        issues.append(ValidationIssue(IssueKind.HEADER_NOT_FOUND, "Medicinal ingredients section not detected"))

    meta = sections.meta()
    meta.update(
        {
            "scanned_lines": len(target),
            "merged_lines": len(merged),
            "ingredient_like_lines": ingredient_like,
        }
    )

    return PipelineDraft(
        source=ExtractionSource.TEXT,
        serving_size=serving_size,
        ingredients=ingredients,
        parse_coverage=coverage,
        ingredient_like_count=ingredient_like,
        anchor_found=sections.in_section,
        issues=issues,
        meta=meta,
    )
