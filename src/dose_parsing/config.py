from __future__ import annotations

import re
from dataclasses import dataclass, field

DEFAULT_CANONICAL_UNITS: tuple[str, ...] = ("mg", "mcg", "g", "IU", "ml", "%", "kcal", "kJ", "CFU")

# Keys are lowercase; values are canonical units.
DEFAULT_UNIT_SYNONYMS: dict[str, str] = {
    "μg": "mcg",
    "µg": "mcg",
    "ug": "mcg",
    "mcg": "mcg",
    "microgram": "mcg",
    "micrograms": "mcg",
    "milligram": "mg",
    "milligrams": "mg",
    "gram": "g",
    "grams": "g",
    "ml": "ml",
    "iu": "IU",
    "i.u.": "IU",
    "i.u": "IU",
    "iu.": "IU",
    "ui": "IU",
    "international unit": "IU",
    "international units": "IU",
    "cfu": "CFU",
    "cfu.": "CFU",
    "ufc": "CFU",
}

DEFAULT_RATIO_DENOMINATORS: tuple[str, ...] = ("ml", "l", "g", "kg")


@dataclass(frozen=True, slots=True)
class UnitVocabulary:
    """
    Fixed unit vocabulary for the Amount/Unit Parser.

    Anything that does not normalize into `canonical_units` is rejected,
    never passed through.
    """

    canonical_units: tuple[str, ...] = DEFAULT_CANONICAL_UNITS
    synonyms: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_UNIT_SYNONYMS))
    ratio_denominators: tuple[str, ...] = DEFAULT_RATIO_DENOMINATORS
    max_unit_suffix: int = 3  # trailing letters tolerated after a unit prefix ("mgs")

    # Derived, compiled once per vocabulary.
    base_unit_re: re.Pattern[str] = field(init=False, repr=False, compare=False)
    prefix_unit_re: re.Pattern[str] = field(init=False, repr=False, compare=False)
    ratio_tail_re: re.Pattern[str] = field(init=False, repr=False, compare=False)
    ratio_in_unit_re: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.validate()
        forms = {u.lower() for u in self.canonical_units}
        forms.update(k for k in self.synonyms if re.fullmatch(r"[a-zμµ%]+", k))
        # Longest first so "mcg" wins over "mg" and "g" in prefix matching.
        alternation = "|".join(re.escape(f) for f in sorted(forms, key=lambda f: (-len(f), f)))
        denominators = "|".join(re.escape(d) for d in self.ratio_denominators)
        object.__setattr__(self, "base_unit_re", re.compile(rf"\b({alternation})\b", re.IGNORECASE))
        object.__setattr__(self, "prefix_unit_re", re.compile(rf"^({alternation})([a-z%]+)?", re.IGNORECASE))
        object.__setattr__(self, "ratio_tail_re", re.compile(rf"^\s*/\s*({denominators})\b", re.IGNORECASE))
        object.__setattr__(self, "ratio_in_unit_re", re.compile(rf"/\s*({denominators})\b", re.IGNORECASE))

    def canonical(self, unit: str | None) -> str | None:
        if not unit:
            return None
        lowered = unit.lower()
        for u in self.canonical_units:
            if u.lower() == lowered:
                return u
        return None

    def is_valid(self, unit: str | None) -> bool:
        return self.canonical(unit) is not None

    def validate(self) -> None:
        if not self.canonical_units:
            raise ValueError("canonical_units must not be empty")
        for target in self.synonyms.values():
            if target not in self.canonical_units:
                raise ValueError(f"synonym target {target!r} is not a canonical unit")
        if self.max_unit_suffix < 0:
            raise ValueError("max_unit_suffix must be >= 0")


DEFAULT_UNIT_VOCABULARY = UnitVocabulary()

_COUNT_FORMS_EN = r"capsule|softgel|tablet|gummy|caplet|scoop|packet|stick|drop|ml"
_COUNT_FORMS_FR = r"gelule|g[ée]lule|capsule|comprime|comprim[ée]"

DEFAULT_SERVING_STATEMENT_PATTERN = re.compile(r"\bserving size\b", re.IGNORECASE)

DEFAULT_SERVING_COUNT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"\bper\s+([0-9]+)?\s*({_COUNT_FORMS_EN})s?\b", re.IGNORECASE),
    re.compile(rf"\beach\s+([0-9]+)?\s*({_COUNT_FORMS_EN})s?\b", re.IGNORECASE),
    re.compile(rf"\bin each\s+([0-9]+)?\s*({_COUNT_FORMS_EN})s?\b", re.IGNORECASE),
    re.compile(rf"\bpar\s+([0-9]+)?\s*({_COUNT_FORMS_FR})s?\b", re.IGNORECASE),
    re.compile(rf"\bchaque\s+([0-9]+)?\s*({_COUNT_FORMS_FR})s?\b", re.IGNORECASE),
)

DEFAULT_SERVING_DIRECTION_PATTERN = re.compile(
    r"(?:take|takes|prendre|prenez)\s+(\d+)\s+"
    r"(capsules?|softgels?|tablets?|gummies?|caplets?|drops?|gelules?|g[ée]lules?|comprim[ée]s?)",
    re.IGNORECASE,
)


@dataclass(frozen=True, slots=True)
class ServingSizeConfig:
    # An explicit "serving size" statement keeps its whole line.
    statement_pattern: re.Pattern[str] = DEFAULT_SERVING_STATEMENT_PATTERN
    count_patterns: tuple[re.Pattern[str], ...] = DEFAULT_SERVING_COUNT_PATTERNS
    direction_pattern: re.Pattern[str] = DEFAULT_SERVING_DIRECTION_PATTERN
