from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ClusterConfig:
    """
    Spatial clustering parameters.

    Defaults are explicit constants (no time/randomness).
    Confidence is used only as a threshold, never as a weight.
    """

    confidence_floor: float = 0.0

    # row_y_threshold = median_token_height * k (distance to the running row centroid)
    row_y_k: float = 0.6

    # cell_gap_threshold = max(cell_gap_row_k * median_row_gap, cell_gap_height_k * median_token_height)
    cell_gap_row_k: float = 2.0
    cell_gap_height_k: float = 1.2

    # Neutral values when there is nothing to measure.
    default_row_gap: float = 10.0
    default_token_height: float = 20.0

    def validate(self) -> None:
        if not (0.0 <= self.confidence_floor <= 1.0):
            raise ValueError("confidence_floor must be within [0, 1]")
        if self.row_y_k <= 0:
            raise ValueError("row_y_k must be > 0")
        if self.cell_gap_row_k < 0:
            raise ValueError("cell_gap_row_k must be >= 0")
        if self.cell_gap_height_k < 0:
            raise ValueError("cell_gap_height_k must be >= 0")
        if self.default_row_gap < 0:
            raise ValueError("default_row_gap must be >= 0")
        if self.default_token_height <= 0:
            raise ValueError("default_token_height must be > 0")
