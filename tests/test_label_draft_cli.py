from __future__ import annotations

import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

from label_draft import debug_print
from label_draft.cli import main


def _tok(text: str, x0: float, x1: float, y0: float) -> dict:
    return {"text": text, "boundingBox": {"xMin": x0, "xMax": x1, "yMin": y0, "yMax": y0 + 20}, "confidence": 0.95}


SUPPLEMENT_FACTS_SCAN = {
    "tokens": [
        _tok("Serving Size: 1 Capsule", 10, 200, 10),
        _tok("Amount Per Serving", 200, 380, 50),
        _tok("% Daily Value", 450, 580, 50),
        _tok("Vitamin C", 10, 96, 90),
        _tok("500 mg", 200, 270, 90),
        _tok("556%", 450, 500, 90),
        _tok("Zinc", 10, 50, 130),
        _tok("15 mg", 200, 250, 130),
        _tok("100%", 450, 500, 130),
    ]
}


class TestLabelDraftCli(unittest.TestCase):
    def _run(self, argv: list[str]) -> tuple[int, dict]:
        buf = io.StringIO()
        with redirect_stdout(buf):
            code = main(argv)
        return code, json.loads(buf.getvalue())

    def test_writes_artifact_and_prints_summary(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            in_file = Path(tmp) / "scan.json"
            out_file = Path(tmp) / "out" / "draft.json"
            in_file.write_text(json.dumps(SUPPLEMENT_FACTS_SCAN), encoding="utf-8")

            code, summary = self._run(["--input", str(in_file), "--output", str(out_file)])

            self.assertEqual(code, 0)
            self.assertEqual(summary["ingredients"], 2)
            self.assertEqual(summary["pipeline"], "use_table")
            self.assertFalse(summary["needs_confirmation"])

            artifact = json.loads(out_file.read_text(encoding="utf-8"))
            self.assertEqual(len(artifact["ingredients"]), 2)
            self.assertNotIn("diagnostics", artifact)

    def test_diagnostics_flag(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            in_file = Path(tmp) / "scan.json"
            out_file = Path(tmp) / "draft.json"
            in_file.write_text(json.dumps(SUPPLEMENT_FACTS_SCAN), encoding="utf-8")

            code, _ = self._run(["--input", str(in_file), "--output", str(out_file), "--diagnostics"])

            self.assertEqual(code, 0)
            artifact = json.loads(out_file.read_text(encoding="utf-8"))
            self.assertEqual(artifact["diagnostics"]["decision"]["rule"], "only_table_signal")

    def test_unreadable_input_returns_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            missing = Path(tmp) / "missing.json"
            code, summary = self._run(["--input", str(missing), "--output", str(Path(tmp) / "o.json")])
            self.assertEqual(code, 2)
            self.assertFalse(summary["ok"])

            bad = Path(tmp) / "bad.json"
            bad.write_text("[1, 2]", encoding="utf-8")
            code, summary = self._run(["--input", str(bad), "--output", str(Path(tmp) / "o.json")])
            self.assertEqual(code, 2)
            self.assertIn("TypeError", summary["error"])


class TestLabelDebugPrint(unittest.TestCase):
    def test_prints_rows_and_decision(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            in_file = Path(tmp) / "scan.json"
            in_file.write_text(json.dumps(SUPPLEMENT_FACTS_SCAN), encoding="utf-8")
            buf = io.StringIO()
            with redirect_stdout(buf):
                code = debug_print.main(["--input", str(in_file)])
            self.assertEqual(code, 0)
            out = buf.getvalue()
            self.assertIn("rows=4", out)
            self.assertIn("use_table rule=only_table_signal", out)
            self.assertIn("- Zinc: 15 mg (100% DV)", out)


if __name__ == "__main__":
    unittest.main()
