from __future__ import annotations

import re
from dataclasses import dataclass

DEFAULT_TABLE_KEYWORD_RE = re.compile(r"supplement facts|nutrition facts|amount per serving|%\s?dv|daily value|valeur nutritive")
DEFAULT_TEXT_KEYWORD_RE = re.compile(r"medicinal ingredients|ingredients medicinaux|product facts")


@dataclass(frozen=True, slots=True)
class ArbitrationConfig:
    """
    Layout-signal vocabulary and the thresholds of the ranked decision rules.

    Keyword patterns run on accent-stripped, lowercased text.
    """

    table_keyword_re: re.Pattern[str] = DEFAULT_TABLE_KEYWORD_RE
    text_keyword_re: re.Pattern[str] = DEFAULT_TEXT_KEYWORD_RE
    min_section_kinds: int = 2  # distinct section headers that make a text layout likely

    # A pipeline is "good" when all three hold.
    min_valid_count: int = 1
    min_coverage: float = 0.35
    max_junk_ratio: float = 0.5
    junk_min_letters: int = 3

    poor_coverage: float = 0.5  # table coverage below this without a header defers to a good text draft
    valid_count_margin: int = 2
    coverage_lead: float = 0.2

    supplement_min_confidence: float = 0.6
    supplement_decay: float = 0.8

    completeness_min_missing: int = 2
    completeness_ratio: float = 1.5

    def validate(self) -> None:
        for name in ("min_coverage", "max_junk_ratio", "poor_coverage", "coverage_lead", "supplement_min_confidence"):
            v = getattr(self, name)
            if not (0.0 <= v <= 1.0):
                raise ValueError(f"{name} must be in [0, 1]")
        if not (0.0 < self.supplement_decay <= 1.0):
            raise ValueError("supplement_decay must be in (0, 1]")
        if self.min_valid_count < 0 or self.valid_count_margin < 1:
            raise ValueError("min_valid_count must be >= 0 and valid_count_margin >= 1")
        if self.completeness_min_missing < 1 or self.completeness_ratio < 1.0:
            raise ValueError("completeness_min_missing must be >= 1 and completeness_ratio >= 1")
