from __future__ import annotations

import unittest

from contracts.label import ExtractionSource, IssueKind
from grouping.text_lines import lines_from_transcript
from text_pipeline.config import TextConfig
from text_pipeline.extract import count_candidate_amount_lines, extract_text
from text_pipeline.lines import merge_split_lines, parse_text_line
from text_pipeline.sections import (
    ANCHOR_INLINE,
    ANCHOR_MEDICINAL_HEADER,
    END_DUPLICATE_ANCHOR,
    END_STOP_PATTERN,
    detect_sections,
)

_BILINGUAL = """Medicinal Ingredients:
Vitamin D3 1000 IU
Zinc 15 mg
Ingrédients médicinaux :
Vitamine D3 1000 UI
Zinc 15 mg
"""

# One line per stop family; each must close the ingredient region.
_STOP_LINES = (
    "Directions: Adults take 1 capsule daily.",
    "Warnings: Consult a health care practitioner if pregnant.",
    "Uses: Source of antioxidants.",
    "Non-medicinal ingredients: gelatin, rice flour",
    "NPN 80012345",
    "Questions? 1-800-555-0199",
    "Visit www.purelabs.ca",
    "® Registered trademark of Pure Labs Inc.",
    "Ester-C is a trademark of The Ester C Company.",
)

_BRANDED = """Medicinal Ingredients:
Ester-C® (calcium ascorbate) 500 mg
Zinc 15 mg
Vitamin D3 1000 IU
"""


class TestSections(unittest.TestCase):
    def test_bilingual_block_stops_at_second_language_header(self) -> None:
        info = detect_sections(lines_from_transcript(_BILINGUAL))
        self.assertEqual(info.anchor_kind, ANCHOR_MEDICINAL_HEADER)
        self.assertEqual(info.end_index, 3)
        self.assertEqual(info.end_reason, END_DUPLICATE_ANCHOR)
        self.assertEqual([ln.raw for ln in info.region], ["Vitamin D3 1000 IU", "Zinc 15 mg"])

    def test_header_line_with_content_stays_in_region(self) -> None:
        info = detect_sections(lines_from_transcript("Medicinal ingredients: Zinc 15 mg\nDirections: take 1 capsule"))
        self.assertEqual([ln.raw for ln in info.region], ["Medicinal ingredients: Zinc 15 mg"])
        self.assertEqual(info.end_reason, END_STOP_PATTERN)

    def test_non_medicinal_header_is_not_an_anchor(self) -> None:
        info = detect_sections(lines_from_transcript("Non-medicinal ingredients: gelatin"))
        self.assertFalse(info.in_section)
        self.assertFalse(info.has_medicinal_section)

    def test_inline_anchor(self) -> None:
        info = detect_sections(lines_from_transcript("Each capsule contains: Vitamin C 500 mg\nZinc 15 mg"))
        self.assertEqual(info.anchor_kind, ANCHOR_INLINE)
        self.assertTrue(info.in_section)
        self.assertFalse(info.in_medicinal_section)
        self.assertEqual(len(info.region), 2)

    def test_region_ends_at_each_stop_line_family(self) -> None:
        for stop in _STOP_LINES:
            with self.subTest(stop=stop):
                info = detect_sections(
                    lines_from_transcript(f"Medicinal Ingredients:\nZinc 15 mg\n{stop}\nVitamin C 500 mg")
                )
                self.assertEqual([ln.raw for ln in info.region], ["Zinc 15 mg"])
                self.assertEqual(info.end_index, 2)
                self.assertEqual(info.end_reason, END_STOP_PATTERN)

    def test_registered_mark_inside_ingredient_line_keeps_region_open(self) -> None:
        info = detect_sections(lines_from_transcript(_BRANDED))
        self.assertIsNone(info.end_reason)
        self.assertEqual(len(info.region), 3)


class TestLineMerging(unittest.TestCase):
    def test_name_then_dose_lines_are_joined(self) -> None:
        lines = lines_from_transcript("Vitamin D3 (as cholecalciferol)\n1000 IU\nZinc 15 mg")
        merged = merge_split_lines(lines)
        self.assertEqual([ln.raw for ln in merged], ["Vitamin D3 (as cholecalciferol) 1000 IU", "Zinc 15 mg"])

    def test_dose_then_name_lines_are_joined(self) -> None:
        merged = merge_split_lines(lines_from_transcript("500 mg\nVitamin C"))
        self.assertEqual([ln.raw for ln in merged], ["500 mg Vitamin C"])

    def test_section_header_never_merges(self) -> None:
        merged = merge_split_lines(lines_from_transcript("Directions:\n2 capsules daily"))
        self.assertEqual(len(merged), 2)


class TestParseTextLine(unittest.TestCase):
    def test_percent_only_line_is_rejected(self) -> None:
        (line,) = lines_from_transcript("Vitamin C 100%")
        self.assertIsNone(parse_text_line(line, in_section=True))

    def test_section_bonus(self) -> None:
        (line,) = lines_from_transcript("Vitamin C 500 mg")
        inside = parse_text_line(line, in_section=True)
        outside = parse_text_line(line, in_section=False)
        assert inside is not None and outside is not None
        self.assertAlmostEqual(inside.confidence, 0.83)
        self.assertAlmostEqual(outside.confidence, 0.68)
        self.assertEqual(inside.source, ExtractionSource.TEXT)

    def test_anchor_prefix_is_removed_from_name(self) -> None:
        (line,) = lines_from_transcript("• Each capsule contains: Vitamin C 500 mg (556% DV)")
        parsed = parse_text_line(line, in_section=False)
        assert parsed is not None
        self.assertEqual((parsed.name, parsed.amount, parsed.unit), ("Vitamin C", 500.0, "mg"))
        self.assertEqual(parsed.dv_percent, 556.0)

    def test_noise_line_is_skipped(self) -> None:
        (line,) = lines_from_transcript("NPN 80012345 Lot 1234 mg")
        self.assertIsNone(parse_text_line(line, in_section=False))


class TestExtractText(unittest.TestCase):
    def test_bilingual_label_extracts_one_language(self) -> None:
        draft = extract_text(lines_from_transcript(_BILINGUAL))
        self.assertEqual([i.name for i in draft.ingredients], ["Vitamin D3", "Zinc"])
        self.assertEqual(draft.ingredient_like_count, 2)
        self.assertEqual(draft.parse_coverage, 1.0)
        self.assertTrue(draft.anchor_found)
        self.assertEqual([i.kind for i in draft.issues], [IssueKind.MISSING_SERVING_SIZE])
        self.assertEqual(draft.meta["end_reason"], END_DUPLICATE_ANCHOR)

    def test_branded_ingredient_is_extracted(self) -> None:
        draft = extract_text(lines_from_transcript(_BRANDED))
        self.assertEqual(
            [(i.amount, i.unit) for i in draft.ingredients], [(500.0, "mg"), (15.0, "mg"), (1000.0, "IU")]
        )
        self.assertTrue(draft.ingredients[0].name.startswith("Ester-C"))
        self.assertEqual(draft.parse_coverage, 1.0)

    def test_inline_anchor_gets_no_section_bonus(self) -> None:
        draft = extract_text(lines_from_transcript("Each capsule contains: Vitamin C 500 mg"))
        self.assertEqual(draft.serving_size, "per capsule")
        self.assertAlmostEqual(draft.ingredients[0].confidence, 0.68)

    def test_no_anchor_scans_everything(self) -> None:
        draft = extract_text(lines_from_transcript("Zinc 15 mg\nTake 1 capsule daily"))
        self.assertEqual([i.name for i in draft.ingredients], ["Zinc"])
        self.assertFalse(draft.anchor_found)
        self.assertIn(IssueKind.HEADER_NOT_FOUND, {i.kind for i in draft.issues})
        self.assertEqual(draft.serving_size, "1 capsule")

    def test_candidate_count(self) -> None:
        lines = lines_from_transcript("Zinc 15 mg\nVitamin C 100%\nNPN 800 mg\nIron 5 mg")
        self.assertEqual(count_candidate_amount_lines(lines, TextConfig()), 2)


if __name__ == "__main__":
    unittest.main()
