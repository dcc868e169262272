from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from arbitration.completeness import apply_completeness_guard, check_completeness
from arbitration.merge import merge_drafts
from arbitration.rules import decide
from arbitration.signals import LayoutSignals, detect_layout_signals, summarize_pipeline
from contracts.grouping import TextLine
from contracts.label import (
    DecisionKind,
    LabelAnalysis,
    LabelDiagnostics,
    LabelDraft,
    PipelineDraft,
    PipelineSummary,
    TokenStats,
)
from contracts.ocr import LabelScanInput, OCRToken
from grouping.group_tokens import RowLayout, cluster_rows, preprocess_tokens
from grouping.text_lines import build_text_lines
from table_pipeline.extract import extract_table
from text_pipeline.extract import extract_text
from validation.draft import needs_confirmation, validate_draft

from .config import ExtractionConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _PipelineRun:
    draft: PipelineDraft
    scored: LabelDraft
    summary: PipelineSummary


@dataclass(frozen=True, slots=True)
class LabelContext:
    """Intermediate geometry and lines of one run (debug printing)."""

    tokens: list[OCRToken]
    layout: RowLayout
    lines: list[TextLine]
    line_source: str
    signals: LayoutSignals


def _percentile(sorted_values: list[float], p: float) -> float:
    # Nearest-rank.
    rank = max(1, math.ceil(p * len(sorted_values)))
    return sorted_values[min(rank, len(sorted_values)) - 1]


def compute_token_stats(tokens: list[OCRToken], median_token_height: float | None) -> TokenStats:
    if not tokens:
        return TokenStats(
            token_count=0,
            avg_confidence=None,
            p10_confidence=None,
            p50_confidence=None,
            p90_confidence=None,
            median_token_height=None,
        )
    confs = sorted(t.confidence for t in tokens)
    return TokenStats(
        token_count=len(tokens),
        avg_confidence=sum(confs) / len(confs),
        p10_confidence=_percentile(confs, 0.1),
        p50_confidence=_percentile(confs, 0.5),
        p90_confidence=_percentile(confs, 0.9),
        median_token_height=median_token_height,
    )


def build_label_context(
    tokens: list[OCRToken], full_text: str | None, cfg: ExtractionConfig
) -> tuple[LabelContext, list[dict], list[dict]]:
    """
    Returns: (context, dropped_tokens, warnings)
    """

    used, dropped, warnings = preprocess_tokens(tokens, cfg.cluster)
    layout = cluster_rows(used, cfg.cluster)
    lines, line_source = build_text_lines(layout.rows, full_text)
    signals = detect_layout_signals(
        lines, full_text, config=cfg.arbitration, table_config=cfg.table, text_config=cfg.text
    )
    ctx = LabelContext(tokens=used, layout=layout, lines=lines, line_source=line_source, signals=signals)
    return ctx, dropped, warnings


def _run_pipeline(draft: PipelineDraft, cfg: ExtractionConfig) -> _PipelineRun:
    scored = validate_draft(draft, cfg.validation, cfg.units)
    return _PipelineRun(draft=draft, scored=scored, summary=summarize_pipeline(draft, scored, cfg.arbitration))


def analyze_label_with_diagnostics(
    tokens: list[OCRToken],
    full_text: str | None = None,
    config: ExtractionConfig | None = None,
) -> LabelAnalysis:
    """
    Tokens (+ optional transcript) -> validated LabelDraft with diagnostics.

    Pure and deterministic: identical input yields an identical result.
    Sparse or malformed tokens degrade to an empty or partial draft with
    issues; nothing is raised.
    """

    cfg = ExtractionConfig() if config is None else config
    ctx, dropped, warnings = build_label_context(tokens, full_text, cfg)

    table = _run_pipeline(extract_table(ctx.layout, cfg.table, cfg.units), cfg)
    text = _run_pipeline(extract_text(ctx.lines, cfg.text, cfg.units), cfg)

    decision = decide(ctx.signals, table.summary, text.summary, cfg.arbitration)
    merge_meta: dict = {}
    if decision.kind == DecisionKind.USE_TABLE:
        final = table.scored
    elif decision.kind == DecisionKind.USE_TEXT:
        final = text.scored
    else:
        # Higher-confidence draft leads; ties go to the table.
        if table.scored.confidence_score >= text.scored.confidence_score:
            primary, secondary = table.draft, text.draft
        else:
            primary, secondary = text.draft, table.draft
        merged, stats = merge_drafts(
            primary,
            secondary,
            allow_supplement_base=ctx.signals.has_medicinal_section,
            tolerance=cfg.validation.dose_tolerance,
            config=cfg.arbitration,
            low_coverage_threshold=cfg.validation.coverage_threshold,
        )
        final = validate_draft(merged, cfg.validation, cfg.units)
        merge_meta = {"primary": primary.source.value, "secondary": secondary.source.value, **stats.to_dict()}

    completeness = check_completeness(
        ctx.signals, text.draft.ingredient_like_count, final.valid_ingredient_count(), cfg.arbitration
    )
    final = apply_completeness_guard(final, completeness, cfg.validation)
    needs_review = needs_confirmation(final, cfg.validation)

    logger.debug(
        "label analysis: decision=%s rule=%s ingredients=%d coverage=%.3f confidence=%.3f needs_confirmation=%s",
        decision.kind.value,
        decision.rule,
        len(final.ingredients),
        final.parse_coverage,
        final.confidence_score,
        needs_review,
    )

    diagnostics = LabelDiagnostics(
        decision=decision,
        signals=ctx.signals.to_dict(),
        table=table.summary,
        text=text.summary,
        token_stats=compute_token_stats(ctx.tokens, ctx.layout.median_token_height if ctx.tokens else None),
        line_source=ctx.line_source,
        completeness=completeness.to_dict(),
        dropped_tokens=dropped,
        warnings=warnings,
        merge=merge_meta,
    )
    return LabelAnalysis(draft=final, diagnostics=diagnostics, needs_confirmation=needs_review)


def analyze_label(
    tokens: list[OCRToken],
    full_text: str | None = None,
    config: ExtractionConfig | None = None,
) -> LabelDraft:
    return analyze_label_with_diagnostics(tokens, full_text, config).draft


def analyze_scan(scan: LabelScanInput, config: ExtractionConfig | None = None) -> LabelAnalysis:
    return analyze_label_with_diagnostics(scan.tokens, scan.full_text, config)
