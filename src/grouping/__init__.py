"""
Spatial clustering of OCR tokens.

- token -> row (Y-proximity to the running row centroid)
- row -> cells (X-gap threshold adapted to row spacing and token height)
- rows or transcript -> text lines

Geometry only: no dose parsing, no semantic interpretation.
"""

from .config import ClusterConfig
from .group_tokens import RowLayout, cluster_rows, preprocess_tokens, split_row_into_cells
from .text_lines import build_text_lines

__all__ = [
    "ClusterConfig",
    "RowLayout",
    "build_text_lines",
    "cluster_rows",
    "preprocess_tokens",
    "split_row_into_cells",
]
