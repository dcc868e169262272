from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .ocr import OCRToken


@dataclass(frozen=True, slots=True)
class Row:
    tokens: list[OCRToken]  # ordered by x_min within the row
    y_center: float
    y_min: float
    y_max: float

    @property
    def text(self) -> str:
        return " ".join(t.text for t in self.tokens)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tokens": [t.to_dict() for t in self.tokens],
            "yCenter": self.y_center,
            "yMin": self.y_min,
            "yMax": self.y_max,
        }


@dataclass(frozen=True, slots=True)
class Cell:
    text: str  # tokens joined with single spaces
    x_min: float
    x_max: float
    confidence: float  # mean token confidence

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "xMin": self.x_min, "xMax": self.x_max, "confidence": self.confidence}


@dataclass(frozen=True, slots=True)
class TextLine:
    raw: str
    normalized: str  # accent-stripped, lowercased; matching only
    source_tokens: list[OCRToken]  # empty when split from the transcript
    ordinal: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "raw": self.raw,
            "normalized": self.normalized,
            "sourceTokens": [t.to_dict() for t in self.source_tokens],
            "ordinal": self.ordinal,
        }
