"""
Pipeline Arbitrator & Merger.

Both pipelines always run. Layout and quality signals feed an ordered rule
list that returns a tagged decision (use table, use text, merge); merging
cross-validates doses; the completeness guard runs on the final draft.
"""

from .completeness import CompletenessCheck, apply_completeness_guard, check_completeness
from .config import ArbitrationConfig
from .merge import MergeStats, combine, find_match, merge_drafts
from .rules import DEFAULT_RULES, Rule, decide
from .signals import LayoutSignals, detect_layout_signals, is_good, junk_ratio, summarize_pipeline

__all__ = [
    "ArbitrationConfig",
    "CompletenessCheck",
    "DEFAULT_RULES",
    "LayoutSignals",
    "MergeStats",
    "Rule",
    "apply_completeness_guard",
    "check_completeness",
    "combine",
    "decide",
    "detect_layout_signals",
    "find_match",
    "is_good",
    "junk_ratio",
    "merge_drafts",
    "summarize_pipeline",
]
