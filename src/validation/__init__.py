"""
Validator & Confidence Scorer.

Detection only: issues are accumulated and never dropped. Whether a draft
may be used without review is decided solely by `needs_confirmation`.
"""

from .config import SanityLimit, ValidationConfig
from .draft import check_dose_consistency, doses_agree, needs_confirmation, rescore, score_confidence, validate_draft
from .ingredient import validate_ingredient
from .quality import ConfirmedDraftCheck, DraftQuality, assess_draft_quality, validate_confirmed_draft

__all__ = [
    "ConfirmedDraftCheck",
    "DraftQuality",
    "SanityLimit",
    "ValidationConfig",
    "assess_draft_quality",
    "check_dose_consistency",
    "doses_agree",
    "needs_confirmation",
    "rescore",
    "score_confidence",
    "validate_confirmed_draft",
    "validate_draft",
    "validate_ingredient",
]
