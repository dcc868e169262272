from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from contracts.ocr import LabelScanInput

from .analyze import analyze_scan
from .artifacts import write_label_draft_artifact

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sq-label-draft",
        description="Extract a validated ingredient draft from an OCR scan of a supplement label.",
    )
    p.add_argument(
        "--input",
        required=True,
        type=Path,
        help="Scan JSON: {tokens, fullText} or a page-structured OCR artifact with pages[].tokens.",
    )
    p.add_argument("--output", required=True, type=Path, help="Path to write the label draft JSON artifact.")
    p.add_argument("--diagnostics", action="store_true", default=False, help="Embed diagnostics in the artifact.")
    p.add_argument("--verbose", action="store_true", default=False, help="Log pipeline decisions to stderr.")
    return p


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        raw = json.loads(args.input.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise TypeError("scan JSON must be an object")
        scan = LabelScanInput.from_dict(raw)
    except (OSError, ValueError, TypeError, KeyError) as e:
        logger.debug("failed to load scan %s", args.input, exc_info=True)
        _print_json({"ok": False, "error": f"{type(e).__name__}: {e}", "input": str(args.input)})
        return 2

    analysis = analyze_scan(scan)
    write_label_draft_artifact(analysis=analysis, out_file=args.output, include_diagnostics=args.diagnostics)

    draft = analysis.draft
    _print_json(
        {
            "ok": True,
            "ingredients": len(draft.ingredients),
            "confidence": round(draft.confidence_score, 4),
            "coverage": round(draft.parse_coverage, 4),
            "needs_confirmation": analysis.needs_confirmation,
            "pipeline": analysis.diagnostics.decision.kind.value,
        }
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
