from __future__ import annotations

import unittest

from dose_parsing.amount_unit import (
    CFU,
    PERCENT,
    find_amount_unit,
    has_absolute_dose,
    normalize_amount_for_compare,
    normalize_unit,
    parse_amount_and_unit,
    parse_dv_percent,
    parse_dv_percent_from_text_line,
)
from dose_parsing.config import DEFAULT_UNIT_VOCABULARY, UnitVocabulary
from dose_parsing.names import ingredient_keys, strip_descriptors
from dose_parsing.serving import infer_serving_size


class TestCfuPatterns(unittest.TestCase):
    def test_shorthand_scale(self) -> None:
        self.assertEqual(parse_amount_and_unit("2B CFU"), (2e9, CFU))
        self.assertEqual(parse_amount_and_unit("Probiotic blend 500M CFU"), (5e8, CFU))

    def test_coefficient_and_exponent(self) -> None:
        self.assertEqual(parse_amount_and_unit("1x10^9 CFU"), (1e9, CFU))
        self.assertEqual(parse_amount_and_unit("2.5 × 10^10 CFU"), (2.5e10, CFU))

    def test_pure_exponent(self) -> None:
        self.assertEqual(parse_amount_and_unit("10^9 CFU"), (1e9, CFU))

    def test_spelled_scale(self) -> None:
        self.assertEqual(parse_amount_and_unit("10 billion CFU"), (1e10, CFU))
        self.assertEqual(parse_amount_and_unit("Lactobacillus 100 CFU"), (100.0, CFU))


class TestAmountUnit(unittest.TestCase):
    def test_range_resolves_to_midpoint(self) -> None:
        self.assertEqual(parse_amount_and_unit("500-1000 mg"), (750.0, "mg"))
        self.assertEqual(parse_amount_and_unit("5 to 10 mcg"), (7.5, "mcg"))

    def test_hyphen_after_name_digit_is_not_a_range(self) -> None:
        self.assertEqual(parse_amount_and_unit("Vitamin B6 - 10 mg"), (10.0, "mg"))

    def test_thousands_separator_and_comparator(self) -> None:
        self.assertEqual(parse_amount_and_unit("1,000 IU"), (1000.0, "IU"))
        self.assertEqual(parse_amount_and_unit("<5 mg"), (5.0, "mg"))

    def test_ratio_units_are_rejected(self) -> None:
        self.assertEqual(parse_amount_and_unit("5 mg/ml"), (None, None))
        self.assertIsNone(normalize_unit("mg/ml"))

    def test_percent_only_when_no_absolute_unit(self) -> None:
        self.assertEqual(parse_amount_and_unit("Vitamin C 100%"), (100.0, PERCENT))
        self.assertEqual(parse_amount_and_unit("Vitamin C 100% 500 mg"), (500.0, "mg"))
        self.assertTrue(has_absolute_dose("Zinc 15 mg"))
        self.assertFalse(has_absolute_dose("Vitamin C 100%"))

    def test_unknown_unit_and_blank_text(self) -> None:
        self.assertEqual(parse_amount_and_unit("Magnesium 2 tbsp"), (None, None))
        self.assertEqual(parse_amount_and_unit("   "), (None, None))

    def test_match_offset_points_into_text(self) -> None:
        found = find_amount_unit("Zinc 15 mg")
        self.assertIsNotNone(found)
        assert found is not None
        self.assertEqual(found.start, 5)
        self.assertEqual(found.matched_span, "15 mg")


class TestUnitNormalization(unittest.TestCase):
    def test_every_canonical_unit_maps_to_itself(self) -> None:
        for unit in DEFAULT_UNIT_VOCABULARY.canonical_units:
            with self.subTest(unit=unit):
                self.assertEqual(normalize_unit(unit), unit)

    def test_every_canonical_unit_reparses_from_dose_text(self) -> None:
        for unit in DEFAULT_UNIT_VOCABULARY.canonical_units:
            with self.subTest(unit=unit):
                found = find_amount_unit(f"5 {unit}")
                self.assertIsNotNone(found)
                assert found is not None
                self.assertEqual((found.amount, found.unit), (5.0, unit))

    def test_synonyms_and_suffixes(self) -> None:
        self.assertEqual(normalize_unit("μg"), "mcg")
        self.assertEqual(normalize_unit("I.U."), "IU")
        self.assertEqual(normalize_unit("UFC"), "CFU")
        self.assertEqual(normalize_unit("mgs"), "mg")
        self.assertIsNone(normalize_unit("tbsp"))
        self.assertIsNone(normalize_unit(""))

    def test_vocabulary_rejects_unknown_synonym_target(self) -> None:
        with self.assertRaises(ValueError):
            UnitVocabulary(synonyms={"oz": "ounce"})


class TestDailyValue(unittest.TestCase):
    def test_table_cell(self) -> None:
        self.assertEqual(parse_dv_percent("556%*"), 556.0)
        self.assertIsNone(parse_dv_percent("†"))

    def test_text_line_requires_keyword(self) -> None:
        self.assertEqual(parse_dv_percent_from_text_line("Zinc 15 mg 136% DV"), 136.0)
        self.assertEqual(parse_dv_percent_from_text_line("Zinc 15 mg (VQ 10 %)"), 10.0)
        self.assertIsNone(parse_dv_percent_from_text_line("Vitamin C 100%"))


class TestCompareNormalization(unittest.TestCase):
    def test_mass_units_and_vitamin_d(self) -> None:
        self.assertEqual(normalize_amount_for_compare(1, "g"), 1000)
        self.assertEqual(normalize_amount_for_compare(500, "mcg"), 0.5)
        self.assertAlmostEqual(normalize_amount_for_compare(1000, "IU", "Vitamin D3") or 0.0, 0.025)
        self.assertIsNone(normalize_amount_for_compare(1000, "IU", "Vitamin A"))
        self.assertIsNone(normalize_amount_for_compare(None, "mg"))


class TestServingSize(unittest.TestCase):
    def test_statement_line_wins(self) -> None:
        self.assertEqual(infer_serving_size(["Zinc 15 mg", " Serving Size: 1 Capsule "]), "Serving Size: 1 Capsule")

    def test_count_forms(self) -> None:
        self.assertEqual(infer_serving_size(["Each 2 capsules contain:"]), "2 capsule")
        self.assertEqual(infer_serving_size(["Per tablet"]), "per tablet")
        self.assertEqual(infer_serving_size(["Chaque gélule contient :"]), "per gelule")

    def test_directions_fallback(self) -> None:
        self.assertEqual(infer_serving_size(["Adults: take 2 softgels daily"]), "2 softgels")
        self.assertIsNone(infer_serving_size(["Zinc 15 mg"]))


class TestNameKeys(unittest.TestCase):
    def test_descriptors_are_stripped_for_core_key(self) -> None:
        self.assertEqual(strip_descriptors("Vitamin D3 (as cholecalciferol)"), "Vitamin D3")
        keys = ingredient_keys("Turmeric Root Extract")
        self.assertEqual(keys.full, "turmeric root extract")
        self.assertEqual(keys.core, "turmeric root")


if __name__ == "__main__":
    unittest.main()
