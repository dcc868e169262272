from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from contracts.ocr import LabelScanInput

from .analyze import analyze_label_with_diagnostics, build_label_context
from .config import ExtractionConfig
from .format import format_ingredient_context


def _load_json(p: Path) -> dict[str, Any]:
    return json.loads(p.read_text(encoding="utf-8"))


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="sq-label-debug")
    ap.add_argument("--input", required=True, type=Path, help="Scan JSON ({tokens, fullText} or pages[].tokens).")
    ap.add_argument("--max-rows", type=int, default=0, help="If >0, truncate rows and lines after N entries.")
    args = ap.parse_args(argv)

    scan = LabelScanInput.from_dict(_load_json(args.input))
    cfg = ExtractionConfig()
    ctx, dropped, warnings = build_label_context(scan.tokens, scan.full_text, cfg)
    layout = ctx.layout

    print(f"tokens={len(ctx.tokens)} dropped={len(dropped)} warnings={len(warnings)}")
    print(
        f"rows={len(layout.rows)} median_token_height={layout.median_token_height:.2f} "
        f"median_row_gap={layout.median_row_gap:.2f}"
    )

    print("\n-- ROWS / CELLS --")
    for i, row in enumerate(layout.rows):
        if args.max_rows and i >= args.max_rows:
            print(f"... (truncated at {args.max_rows})")
            break
        print(f"r{i:03d} y={row.y_min:.0f}-{row.y_max:.0f} :: {row.text}")
        for cell in layout.cells(row):
            print(f"  | x={cell.x_min:>6.0f}-{cell.x_max:<6.0f} conf={cell.confidence:.2f} {cell.text!r}")

    print(f"\n-- TEXT LINES (source={ctx.line_source}) --")
    for i, ln in enumerate(ctx.lines):
        if args.max_rows and i >= args.max_rows:
            print(f"... (truncated at {args.max_rows})")
            break
        print(f"{ln.ordinal:03d} {ln.normalized}")

    print("\n-- SIGNALS --")
    print(json.dumps(ctx.signals.to_dict(), sort_keys=True))

    analysis = analyze_label_with_diagnostics(scan.tokens, scan.full_text, cfg)
    diag = analysis.diagnostics
    print("\n-- DECISION --")
    print(f"{diag.decision.kind.value} rule={diag.decision.rule} :: {diag.decision.reason}")
    print(f"table={json.dumps(diag.table.to_dict(), sort_keys=True)}")
    print(f"text={json.dumps(diag.text.to_dict(), sort_keys=True)}")

    print("\n-- DRAFT --")
    print(format_ingredient_context(analysis.draft))
    print(
        f"\nconfidence={analysis.draft.confidence_score:.3f} coverage={analysis.draft.parse_coverage:.3f} "
        f"needs_confirmation={analysis.needs_confirmation}"
    )
    for issue in analysis.draft.issues:
        print(f"  ! {issue.kind.value}: {issue.message}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
