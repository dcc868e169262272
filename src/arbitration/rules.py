from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from contracts.label import ArbitrationDecision, DecisionKind, PipelineSummary

from .config import ArbitrationConfig
from .signals import LayoutSignals, is_good


@dataclass(frozen=True, slots=True)
class ArbitrationContext:
    signals: LayoutSignals
    table: PipelineSummary
    text: PipelineSummary
    config: ArbitrationConfig


RuleFn = Callable[[ArbitrationContext], "tuple[DecisionKind, str] | None"]


@dataclass(frozen=True, slots=True)
class Rule:
    name: str
    fn: RuleFn


def _only_table_signal(ctx: ArbitrationContext) -> tuple[DecisionKind, str] | None:
    if ctx.signals.table_likely and not ctx.signals.text_likely:
        return DecisionKind.USE_TABLE, "only the table layout signal fired"
    return None


def _only_text_signal(ctx: ArbitrationContext) -> tuple[DecisionKind, str] | None:
    if ctx.signals.text_likely and not ctx.signals.table_likely:
        return DecisionKind.USE_TEXT, "only the text layout signal fired"
    return None


def _table_header_missing_text_good(ctx: ArbitrationContext) -> tuple[DecisionKind, str] | None:
    table, text = ctx.table, ctx.text
    if not table.anchor_found and table.parse_coverage < ctx.config.poor_coverage and is_good(text, ctx.config):
        return (
            DecisionKind.USE_TEXT,
            f"table header missing with coverage {table.parse_coverage:.2f}; text pipeline is good",
        )
    return None


def _valid_count_margin(ctx: ArbitrationContext) -> tuple[DecisionKind, str] | None:
    diff = ctx.table.valid_count - ctx.text.valid_count
    margin = ctx.config.valid_count_margin
    if diff >= margin:
        return DecisionKind.USE_TABLE, f"table has {diff} more valid ingredients"
    if -diff >= margin:
        return DecisionKind.USE_TEXT, f"text has {-diff} more valid ingredients"
    return None


def _coverage_lead(ctx: ArbitrationContext) -> tuple[DecisionKind, str] | None:
    lead = ctx.table.parse_coverage - ctx.text.parse_coverage
    # Epsilon absorbs float error at exactly `coverage_lead`.
    threshold = ctx.config.coverage_lead - 1e-9
    if lead >= threshold:
        return DecisionKind.USE_TABLE, f"table coverage leads by {lead:.2f}"
    if -lead >= threshold:
        return DecisionKind.USE_TEXT, f"text coverage leads by {-lead:.2f}"
    return None


def _both_good(ctx: ArbitrationContext) -> tuple[DecisionKind, str] | None:
    if is_good(ctx.table, ctx.config) and is_good(ctx.text, ctx.config):
        return DecisionKind.MERGE, "both pipelines are good"
    return None


def _confidence_fallback(ctx: ArbitrationContext) -> tuple[DecisionKind, str] | None:
    if ctx.table.confidence_score >= ctx.text.confidence_score:
        return DecisionKind.USE_TABLE, "table confidence is higher or equal"
    return DecisionKind.USE_TEXT, "text confidence is higher"


DEFAULT_RULES: tuple[Rule, ...] = (
    Rule("only_table_signal", _only_table_signal),
    Rule("only_text_signal", _only_text_signal),
    Rule("table_header_missing_text_good", _table_header_missing_text_good),
    Rule("valid_count_margin", _valid_count_margin),
    Rule("coverage_lead", _coverage_lead),
    Rule("both_good", _both_good),
    Rule("confidence_fallback", _confidence_fallback),
)


def decide(
    signals: LayoutSignals,
    table: PipelineSummary,
    text: PipelineSummary,
    config: ArbitrationConfig | None = None,
    rules: tuple[Rule, ...] = DEFAULT_RULES,
) -> ArbitrationDecision:
    """
    Evaluate `rules` in order; the first rule that fires decides.

    The default rule list ends with an unconditional fallback, so a decision
    is always returned. A custom list without one falls back to the table.
    """

    ctx = ArbitrationContext(
        signals=signals, table=table, text=text, config=ArbitrationConfig() if config is None else config
    )
    for rule in rules:
        outcome = rule.fn(ctx)
        if outcome is not None:
            kind, reason = outcome
            return ArbitrationDecision(kind=kind, rule=rule.name, reason=reason)
    return ArbitrationDecision(kind=DecisionKind.USE_TABLE, rule="default", reason="no rule fired")
