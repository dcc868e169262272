from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from contracts.grouping import TextLine
from contracts.label import LabelDraft, ParsedIngredient, PipelineDraft, PipelineSummary
from dose_parsing.names import normalize_for_match
from table_pipeline.config import TableConfig
from table_pipeline.extract import has_keyword
from text_pipeline.config import TextConfig
from text_pipeline.sections import is_inline_anchor, is_medicinal_header, section_kinds

from .config import ArbitrationConfig

_ASCII_LETTERS_RE = re.compile(r"[^a-z]")


@dataclass(frozen=True, slots=True)
class LayoutSignals:
    table_likely: bool
    text_likely: bool
    has_medicinal_section: bool
    has_inline_anchor: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "tableLikely": self.table_likely,
            "textLikely": self.text_likely,
            "hasMedicinalSection": self.has_medicinal_section,
            "hasInlineAnchor": self.has_inline_anchor,
        }


def _has_header_shape(normalized: str, table_config: TableConfig) -> bool:
    has_amount = has_keyword(normalized, table_config.amount_keywords)
    has_dv = has_keyword(normalized, table_config.dv_keywords)
    return has_amount and has_dv


def detect_layout_signals(
    lines: list[TextLine],
    full_text: str | None = None,
    *,
    config: ArbitrationConfig | None = None,
    table_config: TableConfig | None = None,
    text_config: TextConfig | None = None,
) -> LayoutSignals:
    """
    Independent table-likely / text-likely layout signals.

    table: a panel keyword ("Supplement Facts", "% Daily Value", ...) or a
    header-shaped line with both amount and %DV keywords.

    text: a medicinal-ingredients header, an inline "each capsule contains"
    anchor, a strong keyword, or at least `min_section_kinds` distinct
    section headers.
    """

    cfg = ArbitrationConfig() if config is None else config
    tcfg = TableConfig() if table_config is None else table_config
    xcfg = TextConfig() if text_config is None else text_config

    corpus = normalize_for_match(full_text) if full_text else " ".join(line.normalized for line in lines)

    table_likely = bool(cfg.table_keyword_re.search(corpus)) or any(
        _has_header_shape(line.normalized, tcfg) for line in lines
    )

    has_medicinal = any(is_medicinal_header(line.normalized, xcfg) for line in lines)
    has_inline = any(is_inline_anchor(line.normalized, xcfg) for line in lines)
    kinds: set[str] = set()
    for line in lines:
        kinds |= section_kinds(line.normalized, xcfg)
    text_likely = (
        has_medicinal
        or has_inline
        or bool(cfg.text_keyword_re.search(corpus))
        or len(kinds) >= cfg.min_section_kinds
    )

    return LayoutSignals(
        table_likely=table_likely,
        text_likely=text_likely,
        has_medicinal_section=has_medicinal,
        has_inline_anchor=has_inline,
    )


def is_junk(ing: ParsedIngredient, config: ArbitrationConfig) -> bool:
    letters = _ASCII_LETTERS_RE.sub("", normalize_for_match(ing.name))
    if len(letters) < config.junk_min_letters:
        return True
    return not ing.has_dose() and ing.dv_percent is None


def junk_ratio(ingredients: list[ParsedIngredient], config: ArbitrationConfig | None = None) -> float:
    cfg = ArbitrationConfig() if config is None else config
    if not ingredients:
        return 0.0
    return sum(1 for ing in ingredients if is_junk(ing, cfg)) / len(ingredients)


def summarize_pipeline(
    draft: PipelineDraft, scored: LabelDraft, config: ArbitrationConfig | None = None
) -> PipelineSummary:
    return PipelineSummary(
        source=draft.source,
        ingredient_count=len(draft.ingredients),
        valid_count=scored.valid_ingredient_count(),
        parse_coverage=scored.parse_coverage,
        junk_ratio=junk_ratio(draft.ingredients, config),
        anchor_found=draft.anchor_found,
        confidence_score=scored.confidence_score,
    )


def is_good(summary: PipelineSummary, config: ArbitrationConfig | None = None) -> bool:
    cfg = ArbitrationConfig() if config is None else config
    return (
        summary.valid_count >= cfg.min_valid_count
        and summary.parse_coverage >= cfg.min_coverage
        and summary.junk_ratio <= cfg.max_junk_ratio
    )
