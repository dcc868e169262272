from __future__ import annotations

import re
from dataclasses import dataclass, field

from dose_parsing.config import ServingSizeConfig

_I = re.IGNORECASE

# All section/anchor/stop/noise patterns run on accent-stripped, lowercased text.
DEFAULT_MEDICINAL_HEADER_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bmedicinal ingredients?\b"),
    re.compile(r"\bingredients? medicinaux\b"),
)

DEFAULT_NON_MEDICINAL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bnon[-\s]?medicinal\b"),
    re.compile(r"\bingredients? non[-\s]?medicinaux\b"),
)

DEFAULT_INLINE_ANCHOR_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\s*(?:each|in each|per)\b.{0,40}?\bcontains?\b"),
    re.compile(r"^\s*(?:dans\s+chaque|chaque|par)\b.{0,40}?\bcontient\b"),
)

# Other section headers, keyed by section name. Used for layout signals and
# to keep a header line from being merged into an ingredient.
DEFAULT_SECTION_HEADER_PATTERNS: tuple[tuple[str, tuple[re.Pattern[str], ...]], ...] = (
    ("directions", (
        re.compile(r"^\s*(?:directions?|suggested use|recommended use|dose|dosage|mode d'?emploi|posologie)\b"),
    )),
    ("warnings", (
        re.compile(r"^\s*(?:warnings?|cautions?|risk information|mises? en garde|avertissements?)\b"),
        re.compile(r"\bkeep out of reach\b"),
    )),
    ("uses", (
        re.compile(r"^\s*(?:uses?|usage|recommended uses?|indications?)\b"),
    )),
)

DEFAULT_STOP_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\s*(?:directions?|suggested use|recommended use|dose|dosage|mode d'?emploi|posologie)\b"),
    re.compile(r"^\s*(?:warnings?|cautions?|risk information|mises? en garde|avertissements?)\b"),
    re.compile(r"^\s*(?:recommended uses?|uses?|usage|indications?)\s*[:\-]"),
    re.compile(r"^\s*(?:non[-\s]?medicinal|ingredients? non[-\s]?medicinaux|other ingredients|autres? ingredients)"),
    re.compile(r"^\s*(?:npn|din|din-hm|lot|exp|expiry|best before)\b"),
    re.compile(r"\b\d{3}[-.\s]\d{3}[-.\s]\d{4}\b"),
    re.compile(r"(?:https?://|www\.)|\.(?:com|ca|org|net)\b"),
    # Notice lines only; "Ester-C®" inside an ingredient line is not one.
    re.compile(r"^\s*[®™]"),
    re.compile(r"\btrademarks?\b|\bmarques? (?:de commerce|deposees?)\b|\b(?:used|utilisees?) (?:under|sous) licen[cs]e\b"),
)

DEFAULT_NOISE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bmedicinal ingredients?\b"),
    re.compile(r"\bnon[-\s]?medicinal\b"),
    re.compile(r"\bingredients?\s+non[-\s]?medicinaux\b"),
    re.compile(r"\bnpn\b"),
    re.compile(r"\bdin\b"),
    re.compile(r"\blot\b"),
    re.compile(r"\bexpiry\b"),
    re.compile(r"\bexp\b"),
    re.compile(r"\bbest before\b"),
    re.compile(r"\bkeep out of reach\b"),
    re.compile(r"\bwarning\b"),
    re.compile(r"\bstore\b"),
    re.compile(r"\bsealed\b"),
    re.compile(r"\bdo not use\b"),
)

DEFAULT_DIRECTION_WORDS: frozenset[str] = frozenset(
    {
        "take", "takes", "adult", "adults", "child", "children", "direction", "directions",
        "use", "usage", "dose", "dosage", "warning", "caution", "keep", "store", "suggested",
        "per", "each", "serving", "capsule", "capsules", "softgel", "softgels", "tablet",
        "tablets", "gummy", "gummies", "caplet", "caplets", "drop", "drops", "scoop", "packet",
        "stick", "contains", "contient",
    }
)

# Prefix strippers applied to raw (accented) text when isolating an ingredient name.
DEFAULT_HEADER_PREFIX_RE = re.compile(
    r"^\s*(?:medicinal\s+ingredients?|ingr[eé]dients?\s+m[eé]dicinaux)\s*[:\-–—]?\s*", _I
)
DEFAULT_ANCHOR_PREFIX_RES: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"^(?:each|in each|per|dans\s+chaque|par|chaque)\b.*?(?:contains|contient)\s*[:\-–—]?\s*", _I
    ),
    re.compile(
        r"^(?:each|in each|per|dans\s+chaque|par|chaque)\b\s+"
        r"(?:capsules?|softgels?|tablets?|gummies?|caplets?|drops?|scoops?|packets?|sticks?|ml|"
        r"gelules?|g[ée]lules?|comprim[ée]s?)\s*[:\-–—]?\s*",
        _I,
    ),
)
DEFAULT_BULLET_RE = re.compile(r"^[\s•*\-]+")
DEFAULT_JOIN_TAIL_RE = re.compile(r"[-:,(]$")
DEFAULT_NAME_MARKS_RE = re.compile(r"[†*‡§]")


@dataclass(frozen=True, slots=True)
class TextConfig:
    """Text Pipeline vocabulary, line-merge limits and per-line confidence weights."""

    medicinal_header_patterns: tuple[re.Pattern[str], ...] = DEFAULT_MEDICINAL_HEADER_PATTERNS
    non_medicinal_patterns: tuple[re.Pattern[str], ...] = DEFAULT_NON_MEDICINAL_PATTERNS
    inline_anchor_patterns: tuple[re.Pattern[str], ...] = DEFAULT_INLINE_ANCHOR_PATTERNS
    section_header_patterns: tuple[tuple[str, tuple[re.Pattern[str], ...]], ...] = DEFAULT_SECTION_HEADER_PATTERNS
    stop_patterns: tuple[re.Pattern[str], ...] = DEFAULT_STOP_PATTERNS
    noise_patterns: tuple[re.Pattern[str], ...] = DEFAULT_NOISE_PATTERNS
    direction_words: frozenset[str] = DEFAULT_DIRECTION_WORDS
    serving: ServingSizeConfig = field(default_factory=ServingSizeConfig)

    header_prefix_re: re.Pattern[str] = DEFAULT_HEADER_PREFIX_RE
    anchor_prefix_res: tuple[re.Pattern[str], ...] = DEFAULT_ANCHOR_PREFIX_RES
    bullet_re: re.Pattern[str] = DEFAULT_BULLET_RE
    join_tail_re: re.Pattern[str] = DEFAULT_JOIN_TAIL_RE
    name_marks_re: re.Pattern[str] = DEFAULT_NAME_MARKS_RE

    merge_short_line_max: int = 40
    min_name_length: int = 2
    low_coverage_threshold: float = 0.7

    confidence_base: float = 0.55
    section_bonus: float = 0.15
    confidence_min: float = 0.45
    confidence_max: float = 0.9
    name_letters_min: int = 3
    name_letters_bonus: float = 0.08
    name_letters_penalty: float = -0.1
    multi_token_bonus: float = 0.05
    direction_word_penalty: float = -0.15

    def validate(self) -> None:
        if not self.medicinal_header_patterns:
            raise ValueError("medicinal_header_patterns must not be empty")
        if self.merge_short_line_max < 0:
            raise ValueError("merge_short_line_max must be >= 0")
        if self.min_name_length < 1:
            raise ValueError("min_name_length must be >= 1")
        if not (0.0 <= self.confidence_min <= self.confidence_max <= 1.0):
            raise ValueError("confidence clamp must satisfy 0 <= min <= max <= 1")
        if not (0.0 <= self.low_coverage_threshold <= 1.0):
            raise ValueError("low_coverage_threshold must be in [0, 1]")
