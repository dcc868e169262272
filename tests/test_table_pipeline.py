from __future__ import annotations

import unittest

from contracts.grouping import Cell
from contracts.label import ExtractionSource, IssueKind
from contracts.ocr import BBox, OCRToken
from grouping.group_tokens import cluster_rows
from table_pipeline.config import TableConfig
from table_pipeline.extract import (
    extract_table,
    is_header_row,
    is_skip_row,
    is_terminator_row,
    map_cells,
    repair_header_fragment,
)


def _row(y: float, *cells: tuple[str, float, float]) -> list[OCRToken]:
    return [
        OCRToken(text=text, bbox=BBox(x_min=x0, x_max=x1, y_min=y, y_max=y + 20), confidence=0.95)
        for text, x0, x1 in cells
    ]


def _cell(text: str) -> Cell:
    return Cell(text=text, x_min=0.0, x_max=10.0, confidence=0.9)


_HEADER = (("Amount Per Serving", 200, 380), ("% Daily Value", 450, 580))


class TestHeaderDetection(unittest.TestCase):
    def test_single_cell_daily_value_footnote_is_not_a_header(self) -> None:
        self.assertFalse(is_header_row("Daily Value*", 1, TableConfig()))

    def test_dual_keyword_header_with_two_cells(self) -> None:
        self.assertTrue(is_header_row("Amount Per Serving % Daily Value", 2, TableConfig()))

    def test_single_keyword_needs_three_cells(self) -> None:
        cfg = TableConfig()
        self.assertFalse(is_header_row("Amount Per Serving", 2, cfg))
        self.assertTrue(is_header_row("Ingredient Amount Per Serving", 3, cfg))

    def test_keywords_match_whole_words_only(self) -> None:
        cfg = TableConfig()
        self.assertTrue(is_header_row("Amount %DV", 2, cfg))
        self.assertFalse(is_header_row("Advantra Z", 3, cfg))

    def test_row_with_dose_is_never_a_header(self) -> None:
        cfg = TableConfig()
        self.assertFalse(is_header_row("Vitamin C 500 mg 556% DV", 3, cfg))
        self.assertFalse(is_header_row("Advantra Z 50 mg 10%", 3, cfg))

    def test_skip_and_terminator_rows(self) -> None:
        cfg = TableConfig()
        self.assertTrue(is_skip_row("* Percent Daily Values are based on a 2,000 calorie diet", cfg))
        self.assertTrue(is_skip_row("Daily Value not established", cfg))
        self.assertTrue(is_skip_row("Supplement Facts", cfg))
        self.assertTrue(is_terminator_row("Other Ingredients: gelatin", cfg))
        self.assertTrue(is_terminator_row("Autres ingrédients : gélatine", cfg))
        self.assertFalse(is_terminator_row("Zinc 15 mg", cfg))


class TestCellMapping(unittest.TestCase):
    def test_header_fragment_is_split_off(self) -> None:
        repaired = repair_header_fragment([_cell("Amount Per Serving Vitamin C"), _cell("500 mg")], TableConfig())
        self.assertEqual([c.text for c in repaired], ["Vitamin C", "500 mg"])
        only_fragment = repair_header_fragment([_cell("Amount Per Serving"), _cell("Zinc")], TableConfig())
        self.assertEqual([c.text for c in only_fragment], ["Zinc"])

    def test_column_assignment_by_cell_count(self) -> None:
        cfg = TableConfig()
        three = map_cells([_cell("Zinc"), _cell("15 mg"), _cell("136%")], cfg)
        assert three is not None
        self.assertEqual((three.name, three.amount_text, three.dv_percent), ("Zinc", "15 mg", 136.0))

        dv_only = map_cells([_cell("Vitamin C"), _cell("100%")], cfg)
        assert dv_only is not None
        self.assertEqual((dv_only.amount_text, dv_only.dv_percent), ("", 100.0))

        single = map_cells([_cell("Biotin 1,000 mcg")], cfg)
        assert single is not None
        self.assertEqual((single.name, single.amount_text), ("Biotin", "1000 mcg"))


class TestExtractTable(unittest.TestCase):
    def test_supplement_facts_panel(self) -> None:
        tokens = [
            *_row(10, ("Serving Size: 1 Capsule", 10, 200)),
            *_row(50, *_HEADER),
            *_row(90, ("Vitamin C", 10, 96), ("500 mg", 200, 270), ("556%", 450, 500)),
            *_row(130, ("Zinc*", 10, 50), ("15 mg", 200, 250), ("136%", 450, 500)),
            *_row(170, ("* Daily Value not established.", 10, 300)),
            *_row(210, ("Other Ingredients: gelatin", 10, 300)),
            *_row(250, ("Magnesium 100 mg", 10, 200)),
        ]
        draft = extract_table(cluster_rows(tokens))

        self.assertEqual(draft.source, ExtractionSource.TABLE)
        self.assertEqual(draft.serving_size, "Serving Size: 1 Capsule")
        self.assertEqual([i.name for i in draft.ingredients], ["Vitamin C", "Zinc"])
        self.assertEqual((draft.ingredients[1].amount, draft.ingredients[1].unit), (15.0, "mg"))
        self.assertEqual(draft.ingredients[0].dv_percent, 556.0)
        self.assertEqual(draft.parse_coverage, 1.0)
        self.assertTrue(draft.anchor_found)
        self.assertEqual(draft.issues, [])
        self.assertEqual(draft.meta["header_row"], 1)
        self.assertEqual(draft.meta["terminated_at"], 5)
        self.assertEqual(draft.meta["skipped_rows"], [4])

    def test_headerless_two_line_entry_is_merged(self) -> None:
        tokens = [
            *_row(10, ("Vitamin", 10, 80), ("C", 86, 96)),
            *_row(50, ("500", 10, 40), ("mg", 46, 70)),
            *_row(90, ("Zinc", 10, 50), ("15", 200, 220), ("mg", 226, 250)),
        ]
        draft = extract_table(cluster_rows(tokens))

        self.assertEqual(draft.meta["start_row"], 0)
        self.assertEqual(draft.meta["merged_rows"], [[0, 1]])
        self.assertEqual([(i.name, i.amount, i.unit) for i in draft.ingredients], [("Vitamin C", 500.0, "mg"), ("Zinc", 15.0, "mg")])
        self.assertEqual(draft.ingredients[0].source_line, "Vitamin C 500 mg")
        self.assertFalse(draft.anchor_found)
        kinds = {i.kind for i in draft.issues}
        self.assertEqual(kinds, {IssueKind.MISSING_SERVING_SIZE, IssueKind.HEADER_NOT_FOUND})

    def test_headerless_rows_with_dv_suffix_are_all_kept(self) -> None:
        tokens = [
            *_row(10, ("Vitamin C", 10, 96), ("500 mg", 200, 270), ("556% DV", 450, 530)),
            *_row(50, ("Zinc", 10, 50), ("15 mg", 200, 250), ("100% DV", 450, 530)),
        ]
        draft = extract_table(cluster_rows(tokens))

        self.assertEqual(draft.meta["start_row"], 0)
        self.assertEqual(
            [(i.name, i.amount, i.dv_percent) for i in draft.ingredients],
            [("Vitamin C", 500.0, 556.0), ("Zinc", 15.0, 100.0)],
        )
        self.assertEqual(draft.parse_coverage, 1.0)

    def test_rows_without_amount_lower_coverage(self) -> None:
        tokens = [
            *_row(10, ("Serving Size 2 Tablets", 10, 200)),
            *_row(50, *_HEADER),
            *_row(90, ("Vitamin C", 10, 96), ("500 mg", 200, 270)),
            *_row(130, ("Proprietary Blend", 10, 150), ("†", 200, 210)),
        ]
        draft = extract_table(cluster_rows(tokens))

        self.assertEqual(draft.ingredient_like_count, 2)
        self.assertEqual(draft.parse_coverage, 0.5)
        self.assertIn(IssueKind.LOW_COVERAGE, {i.kind for i in draft.issues})

    def test_empty_layout(self) -> None:
        draft = extract_table(cluster_rows([]))
        self.assertEqual(draft.ingredients, [])
        self.assertEqual(draft.parse_coverage, 0.0)
        self.assertEqual(
            [i.kind for i in draft.issues], [IssueKind.MISSING_SERVING_SIZE, IssueKind.LOW_COVERAGE]
        )


if __name__ == "__main__":
    unittest.main()
