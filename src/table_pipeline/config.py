from __future__ import annotations

import re
from dataclasses import dataclass, field

from dose_parsing.config import ServingSizeConfig

_I = re.IGNORECASE

# Row-level boilerplate (EN/FR). Matched against the lowercased row text.
DEFAULT_SKIP_ROW_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^daily\s*value", _I),
    re.compile(r"^valeur\s*quotidienne", _I),
    re.compile(r"\bdaily value\b", _I),
    re.compile(r"\bvaleur\s+quotidienne\b", _I),
    re.compile(r"^\*\s*percent", _I),
    re.compile(r"percent\s+daily\s+values?\s+are\s+based\s+on", _I),
    re.compile(r"les?\s+pourcentages?\s+de\s+la\s+valeur\s+quotidienne", _I),
    re.compile(r"^not\s*a\s*significant", _I),
    re.compile(r"valeur\s+quotidienne\s+non\s+[eé]tablie", _I),
    re.compile(r"daily\s+value\s+not\s+established", _I),
    re.compile(r"serving\s*size", _I),
    re.compile(r"servings?\s*per", _I),
    re.compile(r"^portion", _I),
    re.compile(r"^(?:supplement|nutrition|product)\s+facts", _I),
    re.compile(r"^valeur\s+nutritive", _I),
)

# Rows that close the ingredient table; nothing below them is scanned.
DEFAULT_TERMINATOR_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^other\s*ingredients", _I),
    re.compile(r"^autres?\s*ingr[eé]dients", _I),
    re.compile(r"^suggested\s*use", _I),
    re.compile(r"^directions?\b", _I),
    re.compile(r"^mode\s+d['’]?emploi", _I),
    re.compile(r"^posologie", _I),
    re.compile(r"^warnings?\b", _I),
    re.compile(r"^mise\s+en\s+garde", _I),
    re.compile(r"^avertissement", _I),
    re.compile(r"^allergen", _I),
    re.compile(r"^manufactured", _I),
)

DEFAULT_SERVING_ROW_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"serving\s*size", _I),
    re.compile(r"servings?\s*per", _I),
)

# A first cell made of header words only ("Amount Per Serving", "% Daily Value").
DEFAULT_HEADER_FRAGMENT_RE = re.compile(
    r"^\s*(?:amount\s+per\s+serving|amount|per\s+serving|%\s*daily\s+value|daily\s+value|%\s*dv|%\s*vq)\b[\s:*%]*",
    _I,
)

DEFAULT_SINGLE_CELL_RE = re.compile(r"^(.+?)\s+(\d[\d,]*\.?\d*)\s*([a-zA-Zμµ%]+)\s*$")
DEFAULT_NAME_MARKS_RE = re.compile(r"[†*‡§]")


@dataclass(frozen=True, slots=True)
class TableConfig:
    """
    Table Pipeline vocabulary and thresholds.

    Keyword families are matched as whole words of the accent-stripped,
    lowercased row text.
    """

    amount_keywords: tuple[str, ...] = ("amount", "per serving")
    dv_keywords: tuple[str, ...] = ("%dv", "daily value", "dv")
    header_keywords: tuple[str, ...] = ("amount", "daily value", "%dv", "dv", "per serving")

    # Dual-keyword header needs this many cells; single-keyword header needs `loose_header_min_cells`.
    strict_header_min_cells: int = 2
    loose_header_min_cells: int = 3

    skip_row_patterns: tuple[re.Pattern[str], ...] = DEFAULT_SKIP_ROW_PATTERNS
    terminator_patterns: tuple[re.Pattern[str], ...] = DEFAULT_TERMINATOR_PATTERNS
    serving_row_patterns: tuple[re.Pattern[str], ...] = DEFAULT_SERVING_ROW_PATTERNS
    serving: ServingSizeConfig = field(default_factory=ServingSizeConfig)

    header_fragment_re: re.Pattern[str] = DEFAULT_HEADER_FRAGMENT_RE
    single_cell_re: re.Pattern[str] = DEFAULT_SINGLE_CELL_RE
    name_marks_re: re.Pattern[str] = DEFAULT_NAME_MARKS_RE

    min_name_length: int = 2
    low_coverage_threshold: float = 0.7

    def validate(self) -> None:
        if self.strict_header_min_cells < 1 or self.loose_header_min_cells < 1:
            raise ValueError("header min cell counts must be >= 1")
        if not self.amount_keywords or not self.dv_keywords:
            raise ValueError("amount_keywords and dv_keywords must not be empty")
        if self.min_name_length < 1:
            raise ValueError("min_name_length must be >= 1")
        if not (0.0 <= self.low_coverage_threshold <= 1.0):
            raise ValueError("low_coverage_threshold must be in [0, 1]")
