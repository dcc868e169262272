from __future__ import annotations

import re

from contracts.grouping import TextLine
from contracts.label import ExtractionSource, ParsedIngredient
from dose_parsing.amount_unit import PERCENT, AmountMatch, find_amount_unit, parse_dv_percent_from_text_line
from dose_parsing.config import DEFAULT_UNIT_VOCABULARY, UnitVocabulary
from dose_parsing.names import normalize_for_match

from .config import TextConfig
from .sections import is_section_header, is_stop_line

_LEADING_DIGIT_RE = re.compile(r"^\s*\d")
_LETTER_RE = re.compile(r"[^\W\d_]")
_ASCII_LETTERS_RE = re.compile(r"[^a-z]")
_EDGE_DASH_TAIL_RE = re.compile(r"[\s:\-–—,(]+$")
_EDGE_DASH_HEAD_RE = re.compile(r"^[\s:\-–—,)]+")
_MULTI_SPACE_RE = re.compile(r"\s{2,}")


def prepare_line(raw: str, config: TextConfig) -> str:
    """Strip bullet markers and a leading medicinal-section header from a raw line."""

    cleaned = config.bullet_re.sub("", raw).strip()
    return config.header_prefix_re.sub("", cleaned).strip()


def is_noise_line(normalized: str, config: TextConfig) -> bool:
    if not normalized.strip():
        return True
    return any(p.search(normalized) for p in config.noise_patterns)


def _absolute_dose(text: str, vocabulary: UnitVocabulary) -> AmountMatch | None:
    found = find_amount_unit(text, vocabulary)
    if found is None or found.unit == PERCENT:
        return None
    return found


def _letters(text: str) -> int:
    return len(_LETTER_RE.findall(text))


def _join(current: TextLine, nxt: TextLine) -> TextLine:
    raw = f"{current.raw} {nxt.raw}".strip()
    return TextLine(
        raw=raw,
        normalized=normalize_for_match(raw),
        source_tokens=[*current.source_tokens, *nxt.source_tokens],
        ordinal=current.ordinal,
    )


def _is_boundary(line: TextLine, config: TextConfig) -> bool:
    return is_section_header(line.normalized, config) or is_stop_line(line.normalized, config)


def merge_split_lines(
    lines: list[TextLine],
    config: TextConfig | None = None,
    vocabulary: UnitVocabulary = DEFAULT_UNIT_VOCABULARY,
) -> list[TextLine]:
    """
    Re-join ingredient entries split across OCR line breaks.

    name -> dose: a line without a dose is joined with a following dose line
    when it ends in a joining mark ("-", ":", ",", "("), or it is short and the
    dose line has no name of its own.

    dose -> name: a dose-only line is joined with a following short line
    that has no dose.
    """

    cfg = TextConfig() if config is None else config
    merged: list[TextLine] = []
    i = 0
    while i < len(lines):
        current = lines[i]
        nxt = lines[i + 1] if i + 1 < len(lines) else None
        if nxt is None or _is_boundary(current, cfg) or _is_boundary(nxt, cfg):
            merged.append(current)
            i += 1
            continue

        cur_text = prepare_line(current.raw, cfg)
        nxt_text = prepare_line(nxt.raw, cfg)
        cur_dose = _absolute_dose(cur_text, vocabulary)
        nxt_dose = _absolute_dose(nxt_text, vocabulary)

        if cur_dose is None and nxt_dose is not None:
            joins = cfg.join_tail_re.search(cur_text) is not None
            short = len(cur_text) <= cfg.merge_short_line_max
            nameless_next = _LEADING_DIGIT_RE.match(nxt_text) is not None or _letters(nxt_text[: nxt_dose.start]) < 2
            if joins or (short and nameless_next):
                merged.append(_join(current, nxt))
                i += 2
                continue

        if cur_dose is not None and nxt_dose is None:
            before = cur_text[: cur_dose.start]
            after = cur_text[cur_dose.start + len(cur_dose.matched_span):]
            dose_only = _letters(before) < 2 and _letters(after) < 2
            if (
                dose_only
                and len(nxt_text) <= cfg.merge_short_line_max
                and _letters(nxt_text) >= cfg.min_name_length
                and not is_noise_line(nxt.normalized, cfg)
            ):
                merged.append(_join(current, nxt))
                i += 2
                continue

        merged.append(current)
        i += 1
    return merged


def score_ingredient_name(name: str, config: TextConfig) -> float:
    normalized = normalize_for_match(name)
    tokens = normalized.split()
    letters = _ASCII_LETTERS_RE.sub("", normalized)
    score = config.name_letters_bonus if len(letters) >= config.name_letters_min else config.name_letters_penalty
    if len(tokens) >= 2:
        score += config.multi_token_bonus
    if any(tok in config.direction_words for tok in tokens):
        score += config.direction_word_penalty
    return score


def clean_ingredient_name(name: str, config: TextConfig) -> str:
    out = config.name_marks_re.sub("", name)
    for prefix_re in config.anchor_prefix_res:
        out = prefix_re.sub("", out.strip())
    out = _EDGE_DASH_TAIL_RE.sub("", out)
    out = _EDGE_DASH_HEAD_RE.sub("", out)
    return _MULTI_SPACE_RE.sub(" ", out).strip()


def parse_text_line(
    line: TextLine,
    *,
    in_section: bool,
    config: TextConfig | None = None,
    vocabulary: UnitVocabulary = DEFAULT_UNIT_VOCABULARY,
) -> ParsedIngredient | None:
    """
    One text line -> one ingredient, or None.

    Text lines require an absolute dose; a bare percentage is rejected. The
    name is whatever precedes the dose, or the rest of the line when the
    dose comes first.
    """

    cfg = TextConfig() if config is None else config
    cleaned = prepare_line(line.raw, cfg)
    if not cleaned or is_noise_line(normalize_for_match(cleaned), cfg):
        return None

    dose = _absolute_dose(cleaned, vocabulary)
    if dose is None:
        return None

    end = dose.start + len(dose.matched_span)
    name = cleaned[: dose.start].strip()
    if len(name) < cfg.min_name_length:
        name = f"{cleaned[: dose.start]} {cleaned[end:]}".strip()
    name = clean_ingredient_name(name, cfg)
    if len(name) < cfg.min_name_length:
        return None

    confidence = cfg.confidence_base
    if in_section:
        confidence += cfg.section_bonus
    confidence += score_ingredient_name(name, cfg)
    confidence = max(cfg.confidence_min, min(cfg.confidence_max, confidence))

    return ParsedIngredient(
        name=name,
        amount=dose.amount,
        unit=dose.unit,
        dv_percent=parse_dv_percent_from_text_line(cleaned),
        confidence=confidence,
        source_line=cleaned,
        source=ExtractionSource.TEXT,
    )
