from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from contracts.label import IssueKind, LabelDraft, ValidationIssue
from validation.config import ValidationConfig
from validation.draft import rescore

from .config import ArbitrationConfig
from .signals import LayoutSignals


@dataclass(frozen=True, slots=True)
class CompletenessCheck:
    strong_signal: bool
    candidate_lines: int
    extracted: int
    triggered: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "strongSignal": self.strong_signal,
            "candidateLines": self.candidate_lines,
            "extracted": self.extracted,
            "triggered": self.triggered,
        }


def check_completeness(
    signals: LayoutSignals,
    candidate_lines: int,
    extracted: int,
    config: ArbitrationConfig | None = None,
) -> CompletenessCheck:
    """
    Triggered when a medicinal section or inline anchor exists and the
    ingredient block holds clearly more dose lines than were extracted:
    at least `completeness_min_missing` more, and at least
    `completeness_ratio` times as many.
    """

    cfg = ArbitrationConfig() if config is None else config
    strong = signals.has_medicinal_section or signals.has_inline_anchor
    missing = candidate_lines - extracted
    triggered = (
        strong
        and missing >= cfg.completeness_min_missing
        and candidate_lines >= cfg.completeness_ratio * max(extracted, 1)
    )
    return CompletenessCheck(strong_signal=strong, candidate_lines=candidate_lines, extracted=extracted, triggered=triggered)


def apply_completeness_guard(
    draft: LabelDraft, check: CompletenessCheck, validation_config: ValidationConfig | None = None
) -> LabelDraft:
    if not check.triggered:
        return draft
    issue = ValidationIssue(
        IssueKind.INCOMPLETE_INGREDIENTS,
        f"Found {check.candidate_lines} dose lines in the ingredient section but extracted {check.extracted}",
    )
    return rescore(draft, [issue], validation_config)
