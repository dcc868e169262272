"""
Canonical, authoritative extraction contracts.

These models are the schema boundary between stages:
- OCR collaborator -> tokens + optional transcript (`ocr`)
- spatial clustering -> rows, cells, text lines (`grouping`)
- pipelines, arbitration, validation -> drafts, issues, diagnostics (`label`)

Stage code should consume/produce these contract objects (not ad-hoc dicts).
"""

from .ocr import BBox, LabelScanInput, OCRToken
from .grouping import Cell, Row, TextLine
from .label import (
    ArbitrationDecision,
    DecisionKind,
    ExtractionSource,
    IssueKind,
    LabelAnalysis,
    LabelDiagnostics,
    LabelDraft,
    ParsedIngredient,
    PipelineDraft,
    PipelineSummary,
    TokenStats,
    ValidationIssue,
)

__all__ = [
    "BBox",
    "OCRToken",
    "LabelScanInput",
    "Row",
    "Cell",
    "TextLine",
    "IssueKind",
    "ValidationIssue",
    "ExtractionSource",
    "ParsedIngredient",
    "PipelineDraft",
    "LabelDraft",
    "DecisionKind",
    "ArbitrationDecision",
    "PipelineSummary",
    "TokenStats",
    "LabelDiagnostics",
    "LabelAnalysis",
]
