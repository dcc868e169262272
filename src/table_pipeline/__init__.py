"""
Table Pipeline: Supplement Facts style panels.

Rows come from `grouping.cluster_rows`; cells are rebuilt per row. The
output is a `PipelineDraft` with table provenance.
"""

from .config import TableConfig
from .extract import extract_table, find_header_row, is_header_row, is_skip_row, map_cells, row_to_ingredient

__all__ = [
    "TableConfig",
    "extract_table",
    "find_header_row",
    "is_header_row",
    "is_skip_row",
    "map_cells",
    "row_to_ingredient",
]
