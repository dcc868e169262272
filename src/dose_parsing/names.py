from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_PARENS_RE = re.compile(r"\([^)]*\)")
_SOURCE_TAIL_RE = re.compile(r"\b(as|from)\b.*$", re.IGNORECASE)
_DESCRIPTOR_RE = re.compile(r"\b(whole|extract|powder|concentrate)\b", re.IGNORECASE)
_MULTI_SPACE_RE = re.compile(r"\s{2,}")


def normalize_for_match(value: str) -> str:
    """Accent-stripped, lowercased form used for pattern matching only (never emitted)."""

    decomposed = unicodedata.normalize("NFD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.replace("’", "'").lower()


def normalize_ingredient_name(name: str) -> str:
    return _NON_ALNUM_RE.sub(" ", normalize_for_match(name)).strip()


def strip_descriptors(name: str) -> str:
    """
    Remove parenthetical content, "as/from ..." source tails and form
    descriptors: "Vitamin D3 (as cholecalciferol)" -> "Vitamin D3".
    """

    out = _PARENS_RE.sub(" ", name)
    out = _SOURCE_TAIL_RE.sub(" ", out)
    out = _DESCRIPTOR_RE.sub(" ", out)
    return _MULTI_SPACE_RE.sub(" ", out).strip()


@dataclass(frozen=True, slots=True)
class IngredientKeys:
    full: str
    core: str


def ingredient_keys(name: str) -> IngredientKeys:
    full = normalize_ingredient_name(name)
    core = normalize_ingredient_name(strip_descriptors(name)) or full
    return IngredientKeys(full=full, core=core)
