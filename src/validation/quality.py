from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from contracts.label import LabelDraft, ValidationIssue
from dose_parsing.config import DEFAULT_UNIT_VOCABULARY, UnitVocabulary

from .config import ValidationConfig
from .ingredient import validate_ingredient

QUALITY_HIGH = "High"
QUALITY_MEDIUM = "Medium"
QUALITY_LOW = "Low"


@dataclass(frozen=True, slots=True)
class ConfirmedDraftCheck:
    issues: list[ValidationIssue]
    blocking: bool

    def to_dict(self) -> dict[str, Any]:
        return {"issues": [i.to_dict() for i in self.issues], "blocking": self.blocking}


@dataclass(frozen=True, slots=True)
class DraftQuality:
    review_recommended: bool
    muted_score: bool
    blocking_issues: list[ValidationIssue]
    label_only_score_eligible: bool
    extraction_quality: str  # High | Medium | Low
    valid_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "reviewRecommended": self.review_recommended,
            "mutedScore": self.muted_score,
            "blockingIssues": [i.to_dict() for i in self.blocking_issues],
            "labelOnlyScoreEligible": self.label_only_score_eligible,
            "extractionQuality": self.extraction_quality,
            "validCount": self.valid_count,
        }


def validate_confirmed_draft(
    draft: LabelDraft,
    config: ValidationConfig | None = None,
    vocabulary: UnitVocabulary = DEFAULT_UNIT_VOCABULARY,
) -> ConfirmedDraftCheck:
    """
    Re-run the per-ingredient checks on a draft a human has edited.

    Blocking when any issue kind is in `confirmed_blocking_kinds` (invalid
    unit, out-of-range value): the edit has to be corrected before use.
    """

    cfg = ValidationConfig() if config is None else config
    issues: list[ValidationIssue] = []
    for ing in draft.ingredients:
        issues.extend(validate_ingredient(ing, cfg, vocabulary))
    blocking = any(i.kind in cfg.confirmed_blocking_kinds for i in issues)
    return ConfirmedDraftCheck(issues=issues, blocking=blocking)


def assess_draft_quality(
    draft: LabelDraft | None,
    issues: list[ValidationIssue] | None = None,
    config: ValidationConfig | None = None,
) -> DraftQuality:
    """
    Caller-facing quality bands for a draft.

    `issues` overrides the draft's own issues (e.g. the result of
    `validate_confirmed_draft`). A missing draft is always Low quality and
    always recommended for review.
    """

    cfg = ValidationConfig() if config is None else config
    effective = issues if issues is not None else (draft.issues if draft is not None else [])
    blocking = [i for i in effective if i.kind in cfg.high_risk_kinds]

    if draft is None:
        return DraftQuality(
            review_recommended=True,
            muted_score=True,
            blocking_issues=blocking,
            label_only_score_eligible=False,
            extraction_quality=QUALITY_LOW,
            valid_count=0,
        )

    valid = draft.valid_ingredient_count()
    confidence = draft.confidence_score
    coverage = draft.parse_coverage

    review = (
        valid == 0
        or confidence < cfg.review_confidence
        or coverage < cfg.review_coverage
        or bool(blocking)
    )
    eligible = (
        confidence >= cfg.high_quality_confidence
        and coverage >= cfg.high_quality_coverage
        and not blocking
        and valid >= 1
    )

    if not blocking and confidence >= cfg.high_quality_confidence and coverage >= cfg.high_quality_coverage:
        quality = QUALITY_HIGH
    elif not blocking and confidence >= cfg.medium_quality_confidence and coverage >= cfg.medium_quality_coverage:
        quality = QUALITY_MEDIUM
    else:
        quality = QUALITY_LOW

    return DraftQuality(
        review_recommended=review,
        muted_score=(not eligible) or review,
        blocking_issues=blocking,
        label_only_score_eligible=eligible,
        extraction_quality=quality,
        valid_count=valid,
    )
