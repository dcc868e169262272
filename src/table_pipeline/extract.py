from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from contracts.grouping import Cell
from contracts.label import ExtractionSource, IssueKind, ParsedIngredient, PipelineDraft, ValidationIssue
from dose_parsing.amount_unit import (
    find_amount_unit,
    has_absolute_dose,
    parse_amount_and_unit,
    parse_dv_percent,
)
from dose_parsing.config import DEFAULT_UNIT_VOCABULARY, UnitVocabulary
from dose_parsing.names import normalize_for_match
from dose_parsing.serving import infer_serving_size
from grouping.group_tokens import RowLayout

from .config import TableConfig

_LEADING_DIGIT_RE = re.compile(r"^\s*\d")
_LETTERS_RE = re.compile(r"[^\W\d_]")


@dataclass(frozen=True, slots=True)
class _MappedRow:
    name: str
    amount_text: str
    dv_percent: float | None
    confidence: float


def has_keyword(normalized: str, keywords: tuple[str, ...]) -> bool:
    """Whole-word keyword test: "dv" matches "% DV" but not "Advantra"."""

    return any(re.search(rf"(?<![a-z0-9]){re.escape(kw)}(?![a-z0-9])", normalized) for kw in keywords)


def is_header_row(
    row_text: str, cell_count: int, config: TableConfig, vocabulary: UnitVocabulary = DEFAULT_UNIT_VOCABULARY
) -> bool:
    """
    Two shapes qualify as a table header:

    - >= 2 cells with both an amount/per-serving keyword and a %DV/daily-value keyword
    - >= 3 cells with any header keyword

    A row carrying an absolute dose is an ingredient row, never a header.
    """

    key = normalize_for_match(row_text)
    if has_absolute_dose(row_text, vocabulary):
        return False
    has_amount = has_keyword(key, config.amount_keywords)
    has_dv = has_keyword(key, config.dv_keywords)
    if cell_count >= config.strict_header_min_cells and has_amount and has_dv:
        return True
    return cell_count >= config.loose_header_min_cells and has_keyword(key, config.header_keywords)


def is_skip_row(row_text: str, config: TableConfig) -> bool:
    key = row_text.strip().lower()
    return any(p.search(key) for p in config.skip_row_patterns)


def is_terminator_row(row_text: str, config: TableConfig) -> bool:
    key = row_text.strip().lower()
    return any(p.search(key) for p in config.terminator_patterns)


def find_header_row(
    layout: RowLayout, config: TableConfig, vocabulary: UnitVocabulary = DEFAULT_UNIT_VOCABULARY
) -> int | None:
    for idx, row in enumerate(layout.rows):
        if is_header_row(row.text, len(layout.cells(row)), config, vocabulary):
            return idx
    return None


def _is_bare_name(row_text: str, config: TableConfig, vocabulary: UnitVocabulary) -> bool:
    text = row_text.strip()
    return (
        find_amount_unit(text, vocabulary) is None
        and len(_LETTERS_RE.findall(text)) >= config.min_name_length
        and not is_skip_row(text, config)
        and not is_terminator_row(text, config)
    )


def _is_amount_only(row_text: str, vocabulary: UnitVocabulary) -> bool:
    return _LEADING_DIGIT_RE.match(row_text) is not None and find_amount_unit(row_text, vocabulary) is not None


def infer_start_row(layout: RowLayout, config: TableConfig, vocabulary: UnitVocabulary) -> int | None:
    """
    Headerless fallback: the first row with an absolute amount, moved up by
    one row when the row above is a bare ingredient name (two-line entry).
    """

    for idx, row in enumerate(layout.rows):
        text = row.text
        if is_skip_row(text, config) or is_terminator_row(text, config):
            continue
        if has_absolute_dose(text, vocabulary):
            above = layout.rows[idx - 1].text if idx > 0 else ""
            if _is_amount_only(text, vocabulary) and _is_bare_name(above, config, vocabulary):
                return idx - 1
            return idx
    return None


def find_serving_size(layout: RowLayout, config: TableConfig) -> str | None:
    for row in layout.rows:
        text = row.text
        if any(p.search(text) for p in config.serving_row_patterns):
            return text
    return infer_serving_size((row.text for row in layout.rows), config.serving)


def repair_header_fragment(cells: list[Cell], config: TableConfig) -> list[Cell]:
    """
    Re-split a row whose first cell starts with a stray header fragment
    ("Amount Per Serving Vitamin C"): the fragment is removed and, when
    nothing else remains in that cell, the cell is dropped.
    """

    if not cells:
        return cells
    first = cells[0]
    m = config.header_fragment_re.match(first.text)
    if m is None or m.end() == 0:
        return cells
    rest = first.text[m.end():].strip()
    if not rest:
        return cells[1:]
    return [Cell(text=rest, x_min=first.x_min, x_max=first.x_max, confidence=first.confidence), *cells[1:]]


def map_cells(cells: list[Cell], config: TableConfig) -> _MappedRow | None:
    """
    Column assignment by cell count:

    - 3+ cells: name | amount | %DV
    - 2 cells: name | amount, or name | %DV when the second cell holds a "%"
    - 1 cell: trailing "<number> <unit>" split off the name
    """

    if not cells:
        return None

    dv: float | None = None
    amount_text = ""
    if len(cells) >= 3:
        name = cells[0].text
        amount_text = cells[1].text
        dv = parse_dv_percent(cells[2].text)
    elif len(cells) == 2:
        name = cells[0].text
        second = cells[1].text
        if "%" in second:
            dv = parse_dv_percent(second)
        else:
            amount_text = second
    else:
        text = cells[0].text
        m = config.single_cell_re.match(text)
        if m:
            name = m.group(1)
            amount_text = f"{m.group(2).replace(',', '')} {m.group(3)}"
        else:
            name = text

    confidence = sum(c.confidence for c in cells) / len(cells)
    return _MappedRow(name=name, amount_text=amount_text, dv_percent=dv, confidence=confidence)


def row_to_ingredient(
    cells: list[Cell],
    source_line: str,
    *,
    config: TableConfig,
    vocabulary: UnitVocabulary = DEFAULT_UNIT_VOCABULARY,
) -> ParsedIngredient | None:
    mapped = map_cells(repair_header_fragment(cells, config), config)
    if mapped is None:
        return None

    name = config.name_marks_re.sub("", mapped.name).strip()
    if len(name) < config.min_name_length:
        return None

    amount, unit = parse_amount_and_unit(mapped.amount_text, vocabulary)
    return ParsedIngredient(
        name=name,
        amount=amount,
        unit=unit,
        dv_percent=mapped.dv_percent,
        confidence=mapped.confidence,
        source_line=source_line,
        source=ExtractionSource.TABLE,
    )


def extract_table(
    layout: RowLayout,
    config: TableConfig | None = None,
    vocabulary: UnitVocabulary = DEFAULT_UNIT_VOCABULARY,
) -> PipelineDraft:
    """
    Table Pipeline: header detection, row -> ingredient mapping and coverage.

    Coverage counts only the ingredient-like rows between the start row and
    the first terminator row (skip rows excluded).
    """

    cfg = TableConfig() if config is None else config
    rows = layout.rows
    issues: list[ValidationIssue] = []
    ingredients: list[ParsedIngredient] = []

    serving_size = find_serving_size(layout, cfg)
    header_idx = find_header_row(layout, cfg, vocabulary)
    if header_idx is not None:
        start_idx: int | None = header_idx + 1
    else:
        start_idx = infer_start_row(layout, cfg, vocabulary)

    ingredient_like = 0
    with_dose = 0
    skipped: list[int] = []
    merged_rows: list[list[int]] = []
    terminated_at: int | None = None

    i = start_idx if start_idx is not None else len(rows)
    while i < len(rows):
        row = rows[i]
        text = row.text
        if is_terminator_row(text, cfg):
            terminated_at = i
            break
        if is_skip_row(text, cfg):
            skipped.append(i)
            i += 1
            continue

        cells = layout.cells(row)
        source_line = text
        consumed = 1
        nxt = rows[i + 1] if i + 1 < len(rows) else None
        if nxt is not None and _is_bare_name(text, cfg, vocabulary) and _is_amount_only(nxt.text, vocabulary):
            cells = [*cells, *layout.cells(nxt)]
            source_line = f"{text} {nxt.text}"
            merged_rows.append([i, i + 1])
            consumed = 2

        ingredient_like += 1
        parsed = row_to_ingredient(cells, source_line, config=cfg, vocabulary=vocabulary)
        if parsed is not None:
            ingredients.append(parsed)
            if parsed.has_dose():
                with_dose += 1
        i += consumed

    coverage = with_dose / ingredient_like if ingredient_like > 0 else 0.0

    if serving_size is None:
        issues.append(ValidationIssue(IssueKind.MISSING_SERVING_SIZE, "Serving size not found"))
    if coverage < cfg.low_coverage_threshold:
        issues.append(
            ValidationIssue(IssueKind.LOW_COVERAGE, f"Only {round(coverage * 100)}% of rows have valid amount/unit")
        )
    if header_idx is None and ingredients:
        issues.append(
            ValidationIssue(IssueKind.HEADER_NOT_FOUND, "Table header not detected, column mapping may be inaccurate")
        )

    meta: dict[str, Any] = {
        "header_row": header_idx,
        "start_row": start_idx,
        "terminated_at": terminated_at,
        "skipped_rows": skipped,
        "merged_rows": merged_rows,
        "ingredient_like_rows": ingredient_like,
        "layout": layout.meta(),
    }

    return PipelineDraft(
        source=ExtractionSource.TABLE,
        serving_size=serving_size,
        ingredients=ingredients,
        parse_coverage=coverage,
        ingredient_like_count=ingredient_like,
        anchor_found=header_idx is not None,
        issues=issues,
        meta=meta,
    )
