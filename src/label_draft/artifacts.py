from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from contracts.label import LabelAnalysis


def label_analysis_payload(analysis: LabelAnalysis, *, include_diagnostics: bool = False) -> dict[str, Any]:
    payload: dict[str, Any] = analysis.draft.to_dict()
    payload["needsConfirmation"] = analysis.needs_confirmation
    if include_diagnostics:
        payload["diagnostics"] = analysis.diagnostics.to_dict()
    return payload


def serialize_label_analysis(analysis: LabelAnalysis, *, include_diagnostics: bool = False) -> str:
    payload = label_analysis_payload(analysis, include_diagnostics=include_diagnostics)
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"), indent=2) + "\n"


def write_label_draft_artifact(*, analysis: LabelAnalysis, out_file: Path, include_diagnostics: bool = False) -> None:
    out_file.parent.mkdir(parents=True, exist_ok=True)
    out_file.write_text(serialize_label_analysis(analysis, include_diagnostics=include_diagnostics), encoding="utf-8")
