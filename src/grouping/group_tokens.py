from __future__ import annotations

from dataclasses import dataclass
from statistics import median
from typing import Any, Iterable

from contracts.grouping import Cell, Row
from contracts.ocr import OCRToken

from .config import ClusterConfig


@dataclass(frozen=True, slots=True)
class RowLayout:
    """
    Rows of one label plus the page-level measurements cells are derived from.

    Cells are ephemeral: `cells(row)` rebuilds them on demand.
    """

    rows: list[Row]
    median_token_height: float
    median_row_gap: float
    config: ClusterConfig

    def cells(self, row: Row) -> list[Cell]:
        return split_row_into_cells(row, median_row_gap=self.median_row_gap, config=self.config)

    def meta(self) -> dict[str, Any]:
        return {
            "rows": len(self.rows),
            "median_token_height": self.median_token_height,
            "median_row_gap": self.median_row_gap,
        }


def _median_or(values: Iterable[float], default: float) -> float:
    values = list(values)
    return float(median(values)) if values else float(default)


def compute_median_token_height(tokens: list[OCRToken], config: ClusterConfig) -> float:
    return _median_or((t.height for t in tokens if t.height > 0), config.default_token_height)


def preprocess_tokens(
    tokens: list[OCRToken], config: ClusterConfig
) -> tuple[list[OCRToken], list[dict[str, Any]], list[dict[str, Any]]]:
    """
    Returns: (tokens_used, dropped_tokens, warnings)

    Tokens carry no IDs, so records refer to the input index.
    """

    dropped: list[dict[str, Any]] = []
    warnings: list[dict[str, Any]] = []
    used: list[OCRToken] = []

    for idx, t in enumerate(tokens):
        if t.text.strip() == "":
            dropped.append({"index": idx, "reason": "WHITESPACE"})
            continue

        if config.confidence_floor > 0.0 and t.confidence < config.confidence_floor:
            dropped.append({"index": idx, "reason": "BELOW_CONFIDENCE_FLOOR"})
            continue

        bbox = t.bbox.repaired()
        if bbox != t.bbox:
            warnings.append(
                {
                    "code": "TOKEN_BBOX_REPAIRED",
                    "message": "Token bbox endpoints were swapped deterministically",
                    "detail": {"index": idx, "before": t.bbox.to_dict(), "after": bbox.to_dict()},
                }
            )

        if bbox.area() <= 0:
            dropped.append({"index": idx, "reason": "BBOX_ZERO_AREA"})
            continue

        used.append(t if bbox == t.bbox else OCRToken(text=t.text, bbox=bbox, confidence=t.confidence))

    return used, dropped, warnings


def _make_row(tokens: list[OCRToken]) -> Row:
    ordered = sorted(tokens, key=lambda t: (t.bbox.x_min, t.bbox.y_min))
    return Row(
        tokens=ordered,
        y_center=sum(t.y_center for t in ordered) / len(ordered),
        y_min=min(t.bbox.y_min for t in ordered),
        y_max=max(t.bbox.y_max for t in ordered),
    )


def cluster_rows(tokens: list[OCRToken], config: ClusterConfig | None = None) -> RowLayout:
    """
    Deterministic token -> row clustering.

    Tokens are swept by Y-center; a token joins the current row while its
    Y-center lies within `row_y_k * median_token_height` of the row's running
    mean Y-center.
    """

    cfg = ClusterConfig() if config is None else config
    if not tokens:
        return RowLayout(rows=[], median_token_height=0.0, median_row_gap=cfg.default_row_gap, config=cfg)

    med_h = compute_median_token_height(tokens, cfg)
    y_threshold = med_h * cfg.row_y_k

    # Stable sort keeps input order as the final tiebreaker.
    sweep = sorted(tokens, key=lambda t: (t.y_center, t.bbox.x_min))

    rows: list[Row] = []
    current: list[OCRToken] = [sweep[0]]
    current_center = sweep[0].y_center
    for tok in sweep[1:]:
        if abs(tok.y_center - current_center) <= y_threshold:
            current.append(tok)
            current_center = (current_center * (len(current) - 1) + tok.y_center) / len(current)
        else:
            rows.append(_make_row(current))
            current = [tok]
            current_center = tok.y_center
    rows.append(_make_row(current))

    row_gaps = [max(0.0, cur.y_min - prev.y_max) for prev, cur in zip(rows, rows[1:])]
    med_gap = _median_or(row_gaps, cfg.default_row_gap)

    return RowLayout(rows=rows, median_token_height=med_h, median_row_gap=med_gap, config=cfg)


def cell_gap_threshold(row: Row, *, median_row_gap: float, config: ClusterConfig) -> float:
    row_h = _median_or((t.height for t in row.tokens if t.height > 0), config.default_token_height)
    return max(config.cell_gap_row_k * median_row_gap, config.cell_gap_height_k * row_h)


def _make_cell(tokens: list[OCRToken]) -> Cell:
    return Cell(
        text=" ".join(t.text for t in tokens),
        x_min=min(t.bbox.x_min for t in tokens),
        x_max=max(t.bbox.x_max for t in tokens),
        confidence=sum(t.confidence for t in tokens) / len(tokens),
    )


def split_row_into_cells(row: Row, *, median_row_gap: float, config: ClusterConfig | None = None) -> list[Cell]:
    """Split a row into cells wherever the X-gap between neighbours exceeds the cell gap threshold."""

    cfg = ClusterConfig() if config is None else config
    if not row.tokens:
        return []

    threshold = cell_gap_threshold(row, median_row_gap=median_row_gap, config=cfg)

    cells: list[Cell] = []
    current: list[OCRToken] = [row.tokens[0]]
    for prev, tok in zip(row.tokens, row.tokens[1:]):
        if tok.bbox.x_min - prev.bbox.x_max > threshold:
            cells.append(_make_cell(current))
            current = [tok]
        else:
            current.append(tok)
    cells.append(_make_cell(current))
    return cells
