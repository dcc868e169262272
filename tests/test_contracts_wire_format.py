from __future__ import annotations

import unittest

from contracts.label import ExtractionSource, IssueKind, LabelDraft
from contracts.ocr import DEFAULT_TOKEN_CONFIDENCE, BBox, LabelScanInput, OCRToken


class TestOcrWireFormat(unittest.TestCase):
    def test_token_accepts_camel_case_bounding_box(self) -> None:
        tok = OCRToken.from_dict(
            {"text": "Zinc", "boundingBox": {"xMin": 1, "xMax": 5, "yMin": 2, "yMax": 8}, "confidence": 0.8}
        )
        self.assertEqual(tok.bbox, BBox(x_min=1.0, x_max=5.0, y_min=2.0, y_max=8.0))
        self.assertEqual(tok.height, 6.0)
        self.assertEqual(tok.to_dict()["boundingBox"]["xMax"], 5.0)

    def test_token_accepts_page_artifact_bbox_and_defaults_confidence(self) -> None:
        tok = OCRToken.from_dict({"text": "mg", "bbox": {"x0": 0, "y0": 0, "x1": 10, "y1": 20}})
        self.assertEqual(tok.bbox.width(), 10.0)
        self.assertEqual(tok.confidence, DEFAULT_TOKEN_CONFIDENCE)

    def test_token_without_bbox_is_rejected(self) -> None:
        with self.assertRaises(TypeError):
            OCRToken.from_dict({"text": "orphan"})

    def test_scan_input_flattens_pages(self) -> None:
        scan = LabelScanInput.from_dict(
            {
                "pages": [
                    {"tokens": [{"text": "A", "bbox": {"x0": 0, "y0": 0, "x1": 1, "y1": 1}}]},
                    {"tokens": [{"text": "B", "bbox": {"x0": 0, "y0": 0, "x1": 1, "y1": 1}}]},
                ]
            }
        )
        self.assertEqual([t.text for t in scan.tokens], ["A", "B"])
        self.assertIsNone(scan.full_text)

    def test_scan_input_rejects_non_string_transcript(self) -> None:
        with self.assertRaises(TypeError):
            LabelScanInput.from_dict({"tokens": [], "fullText": 12})


class TestLabelDraftWireFormat(unittest.TestCase):
    def test_label_draft_from_dict_reads_camel_case(self) -> None:
        payload = {
            "servingSize": "1 Capsule",
            "ingredients": [
                {
                    "name": "Zinc",
                    "amount": 15,
                    "unit": "mg",
                    "dvPercent": 100,
                    "confidence": 0.9,
                    "sourceLine": "Zinc 15 mg 100%",
                    "source": "table",
                }
            ],
            "parseCoverage": 1.0,
            "confidenceScore": 0.95,
            "issues": [{"kind": "missing_serving_size", "message": "x"}],
        }
        draft = LabelDraft.from_dict(payload)
        self.assertEqual(draft.ingredients[0].source, ExtractionSource.TABLE)
        self.assertEqual(draft.ingredients[0].dv_percent, 100.0)
        self.assertEqual(draft.issue_kinds(), {IssueKind.MISSING_SERVING_SIZE})
        self.assertEqual(draft.valid_ingredient_count(), 1)
        self.assertEqual(draft.to_dict()["ingredients"][0]["sourceLine"], "Zinc 15 mg 100%")


if __name__ == "__main__":
    unittest.main()
