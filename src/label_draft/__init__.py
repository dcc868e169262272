"""
Label draft orchestration: tokens -> both pipelines -> arbitration -> validated draft.
"""

from .analyze import analyze_label, analyze_label_with_diagnostics, analyze_scan
from .artifacts import serialize_label_analysis, write_label_draft_artifact
from .config import ExtractionConfig
from .format import format_ingredient_context

__all__ = [
    "ExtractionConfig",
    "analyze_label",
    "analyze_label_with_diagnostics",
    "analyze_scan",
    "format_ingredient_context",
    "serialize_label_analysis",
    "write_label_draft_artifact",
]
