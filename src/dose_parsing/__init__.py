"""
Dose expression parsing shared by the table and text pipelines.

Pure functions over strings: amount + unit, %DV, serving size and
ingredient-name match keys. Vocabularies are injected through
`UnitVocabulary` / `ServingSizeConfig`.
"""

from .amount_unit import (
    PATTERN_FAMILIES,
    AmountMatch,
    find_amount_unit,
    has_absolute_dose,
    normalize_amount_for_compare,
    normalize_unit,
    parse_amount_and_unit,
    parse_dv_percent,
    parse_dv_percent_from_text_line,
)
from .config import DEFAULT_UNIT_VOCABULARY, ServingSizeConfig, UnitVocabulary
from .names import IngredientKeys, ingredient_keys, normalize_for_match, normalize_ingredient_name, strip_descriptors
from .serving import infer_serving_size

__all__ = [
    "AmountMatch",
    "DEFAULT_UNIT_VOCABULARY",
    "IngredientKeys",
    "PATTERN_FAMILIES",
    "ServingSizeConfig",
    "UnitVocabulary",
    "find_amount_unit",
    "has_absolute_dose",
    "infer_serving_size",
    "ingredient_keys",
    "normalize_amount_for_compare",
    "normalize_for_match",
    "normalize_ingredient_name",
    "normalize_unit",
    "parse_amount_and_unit",
    "parse_dv_percent",
    "parse_dv_percent_from_text_line",
    "strip_descriptors",
]
