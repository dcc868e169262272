from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from .config import DEFAULT_UNIT_VOCABULARY, UnitVocabulary

_NUMBER = r"(\d[\d,]*\.?\d*)"

_COMPARATOR_RE = re.compile(r"[<>≤≥]")
_UNIT_PUNCT_RE = re.compile(r"[()./:]")
_WS_RE = re.compile(r"\s+")
_NON_UNIT_LETTER_RE = re.compile(r"[^a-z%]")

_CFU_SHORT_RE = re.compile(rf"{_NUMBER}\s*(b|m)\s*cfu\b", re.IGNORECASE)
_CFU_COEFF_EXP_RE = re.compile(rf"{_NUMBER}\s*(?:x|×)\s*10\^?(\d+)\s*cfu\b", re.IGNORECASE)
# Caret required: "100 CFU" is a plain count, not 10^0.
_CFU_PURE_EXP_RE = re.compile(r"\b10\^(\d+)\s*cfu\b", re.IGNORECASE)
_CFU_WORD_RE = re.compile(rf"{_NUMBER}\s*(billion|million)?\s*cfu\b", re.IGNORECASE)
# The lookbehind keeps "Vitamin B6 - 10 mg" from reading as a 6-10 range.
_RANGE_RE = re.compile(rf"(?<![A-Za-z]){_NUMBER}\s*(?:-|–|to)\s*{_NUMBER}\s*([a-zA-Zμµ%\.]+)", re.IGNORECASE)
_AMOUNT_UNIT_RE = re.compile(rf"{_NUMBER}\s*([a-zA-Zμµ%\.]+)")

_DV_DIGITS_RE = re.compile(r"(\d+)")
_DV_STRIP_RE = re.compile(r"[%†*]")
_DV_KEYWORDS = r"(?:dv|daily value|valeur|valeur quotidienne|vq)"
_DV_DIRECT_RE = re.compile(rf"(\d{{1,3}})\s*%\s*{_DV_KEYWORDS}\b")
_DV_KEYWORD_RE = re.compile(rf"\b{_DV_KEYWORDS}\b")
_DV_PERCENT_RE = re.compile(r"(\d{1,3})\s*%")

_VITAMIN_D_RE = re.compile(r"vitamin\s*d", re.IGNORECASE)

_SCALES = {"b": 1e9, "billion": 1e9, "m": 1e6, "million": 1e6}

CFU = "CFU"
PERCENT = "%"


@dataclass(frozen=True, slots=True)
class AmountMatch:
    amount: float
    unit: str
    matched_span: str
    start: int  # offset of `matched_span` in the comparator-cleaned text


def parse_number(value: str) -> float | None:
    try:
        return float(value.replace(",", ""))
    except ValueError:
        return None


def normalize_unit(unit_raw: str, vocabulary: UnitVocabulary = DEFAULT_UNIT_VOCABULARY) -> str | None:
    """
    Map a raw unit string onto the canonical vocabulary.

    Returns None for anything that does not normalize to a canonical unit,
    including ratio units such as "mg/ml".
    """

    if not unit_raw:
        return None
    if vocabulary.ratio_in_unit_re.search(unit_raw):
        return None

    lowered = unit_raw.lower().strip()
    cleaned = _WS_RE.sub(" ", _UNIT_PUNCT_RE.sub(" ", lowered)).strip()
    mapped = vocabulary.synonyms.get(cleaned) or vocabulary.synonyms.get(lowered) or cleaned

    base_match = vocabulary.base_unit_re.search(mapped)
    if base_match is None:
        prefix_match = vocabulary.prefix_unit_re.match(mapped)
        if prefix_match is None:
            return None
        remainder = _NON_UNIT_LETTER_RE.sub("", (prefix_match.group(2) or "").lower())
        if len(remainder) > vocabulary.max_unit_suffix:
            return None
        base_match = prefix_match

    base = base_match.group(1).lower()
    return vocabulary.canonical(vocabulary.synonyms.get(base, base))


def _is_ratio_tail(text: str, end: int, vocabulary: UnitVocabulary) -> bool:
    return vocabulary.ratio_tail_re.match(text[end:]) is not None


def _scaled(value: str, scale: str | None) -> float | None:
    base = parse_number(value)
    if base is None:
        return None
    return base * _SCALES.get((scale or "").lower(), 1.0)


def _match_cfu_shorthand(text: str, vocabulary: UnitVocabulary) -> AmountMatch | None:
    m = _CFU_SHORT_RE.search(text)
    if m is None:
        return None
    amount = _scaled(m.group(1), m.group(2))
    return None if amount is None else AmountMatch(amount, CFU, m.group(0), m.start())


def _match_cfu_coefficient_exponent(text: str, vocabulary: UnitVocabulary) -> AmountMatch | None:
    m = _CFU_COEFF_EXP_RE.search(text)
    if m is None:
        return None
    base = parse_number(m.group(1))
    if base is None:
        return None
    return AmountMatch(base * 10 ** int(m.group(2)), CFU, m.group(0), m.start())


def _match_cfu_pure_exponent(text: str, vocabulary: UnitVocabulary) -> AmountMatch | None:
    m = _CFU_PURE_EXP_RE.search(text)
    if m is None:
        return None
    return AmountMatch(float(10 ** int(m.group(1))), CFU, m.group(0), m.start())


def _match_cfu_spelled_scale(text: str, vocabulary: UnitVocabulary) -> AmountMatch | None:
    m = _CFU_WORD_RE.search(text)
    if m is None:
        return None
    amount = _scaled(m.group(1), m.group(2))
    return None if amount is None else AmountMatch(amount, CFU, m.group(0), m.start())


def _match_range(text: str, vocabulary: UnitVocabulary) -> AmountMatch | None:
    m = _RANGE_RE.search(text)
    if m is None or _is_ratio_tail(text, m.end(), vocabulary):
        return None
    low = parse_number(m.group(1))
    high = parse_number(m.group(2))
    unit = normalize_unit(m.group(3), vocabulary)
    if low is None or high is None or unit is None:
        return None
    return AmountMatch((low + high) / 2, unit, m.group(0), m.start())


def _match_general(text: str, vocabulary: UnitVocabulary) -> AmountMatch | None:
    percent: AmountMatch | None = None
    for m in _AMOUNT_UNIT_RE.finditer(text):
        if _is_ratio_tail(text, m.end(), vocabulary):
            continue
        amount = parse_number(m.group(1))
        unit = normalize_unit(m.group(2), vocabulary)
        if amount is None or unit is None:
            continue
        if unit == PERCENT:
            if percent is None:
                percent = AmountMatch(amount, unit, m.group(0), m.start())
            continue
        return AmountMatch(amount, unit, m.group(0), m.start())
    return percent


PatternFamily = Callable[[str, UnitVocabulary], "AmountMatch | None"]

# Priority order matters: the general scan would otherwise read "2B CFU" as
# 2 of an unknown unit and "1x10^9 CFU" as 9 CFU.
PATTERN_FAMILIES: tuple[PatternFamily, ...] = (
    _match_cfu_shorthand,
    _match_cfu_coefficient_exponent,
    _match_cfu_pure_exponent,
    _match_cfu_spelled_scale,
    _match_range,
    _match_general,
)


def find_amount_unit(text: str, vocabulary: UnitVocabulary = DEFAULT_UNIT_VOCABULARY) -> AmountMatch | None:
    """
    Locate the most likely dose expression in free text.

    Pattern families are tried in `PATTERN_FAMILIES` order and the first hit
    wins. A percent match is only returned when no absolute-unit match exists.
    """

    if not text:
        return None
    cleaned = _COMPARATOR_RE.sub(" ", text)
    for family in PATTERN_FAMILIES:
        found = family(cleaned, vocabulary)
        if found is not None:
            return found
    return None


def parse_amount_and_unit(
    text: str, vocabulary: UnitVocabulary = DEFAULT_UNIT_VOCABULARY
) -> tuple[float | None, str | None]:
    if not text or not text.strip():
        return None, None
    found = find_amount_unit(text, vocabulary)
    if found is None:
        return None, None
    return found.amount, found.unit


def has_absolute_dose(text: str, vocabulary: UnitVocabulary = DEFAULT_UNIT_VOCABULARY) -> bool:
    found = find_amount_unit(text, vocabulary)
    return found is not None and found.unit != PERCENT


def parse_dv_percent(text: str) -> float | None:
    """%DV from a table cell: the first integer once %, dagger and asterisk marks are removed."""

    m = _DV_DIGITS_RE.search(_DV_STRIP_RE.sub("", text).strip())
    return float(int(m.group(1))) if m else None


def parse_dv_percent_from_text_line(text: str) -> float | None:
    """
    %DV from a free text line. Requires a daily-value keyword next to or
    somewhere on the same line as the percentage ("25% DV", "VQ ... 10 %").
    """

    lowered = text.lower()
    direct = _DV_DIRECT_RE.search(lowered)
    if direct:
        return float(int(direct.group(1)))
    if _DV_KEYWORD_RE.search(lowered):
        pct = _DV_PERCENT_RE.search(lowered)
        if pct:
            return float(int(pct.group(1)))
    return None


def normalize_amount_for_compare(amount: float | None, unit: str | None, name: str | None = None) -> float | None:
    """
    Convert a dose to milligrams for cross-source comparison.

    Vitamin D in IU converts at 40 IU per mcg. Returns None when the unit
    has no mass equivalent; callers then fall back to same-unit comparison.
    """

    if amount is None or not unit:
        return None
    u = unit.lower()
    if u == "mg":
        return amount
    if u == "g":
        return amount * 1000
    if u in ("mcg", "μg", "µg"):
        return amount / 1000
    if u == "iu" and name and _VITAMIN_D_RE.search(name):
        return amount / 40 / 1000
    return None
