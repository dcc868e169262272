from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Word-level confidence assumed when the OCR collaborator omits it.
DEFAULT_TOKEN_CONFIDENCE = 0.9


@dataclass(frozen=True, slots=True)
class BBox:
    """
    Absolute pixel coordinates of one OCR token.

    Wire format uses camelCase keys (`xMin`, `xMax`, `yMin`, `yMax`).
    Page-structured OCR artifacts use `x0/y0/x1/y1`; both are accepted.
    """

    x_min: float
    x_max: float
    y_min: float
    y_max: float

    def width(self) -> float:
        return float(self.x_max - self.x_min)

    def height(self) -> float:
        return float(self.y_max - self.y_min)

    def area(self) -> float:
        w = self.width()
        h = self.height()
        return float(w * h) if w > 0 and h > 0 else 0.0

    def y_center(self) -> float:
        return (self.y_min + self.y_max) / 2.0

    def repaired(self) -> "BBox":
        return BBox(
            x_min=min(self.x_min, self.x_max),
            x_max=max(self.x_min, self.x_max),
            y_min=min(self.y_min, self.y_max),
            y_max=max(self.y_min, self.y_max),
        )

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "BBox":
        if "xMin" in d:
            return BBox(
                x_min=float(d["xMin"]),
                x_max=float(d["xMax"]),
                y_min=float(d["yMin"]),
                y_max=float(d["yMax"]),
            )
        return BBox(x_min=float(d["x0"]), x_max=float(d["x1"]), y_min=float(d["y0"]), y_max=float(d["y1"]))

    def to_dict(self) -> dict[str, Any]:
        return {"xMin": self.x_min, "xMax": self.x_max, "yMin": self.y_min, "yMax": self.y_max}


@dataclass(frozen=True, slots=True)
class OCRToken:
    text: str
    bbox: BBox
    confidence: float  # 0..1

    @property
    def height(self) -> float:
        return self.bbox.height()

    @property
    def y_center(self) -> float:
        return self.bbox.y_center()

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "OCRToken":
        bbox_raw = d.get("boundingBox", d.get("bbox"))
        if not isinstance(bbox_raw, dict):
            raise TypeError("OCRToken requires a boundingBox object")
        conf = d.get("confidence")
        return OCRToken(
            text=str(d.get("text", "")),
            bbox=BBox.from_dict(bbox_raw),
            confidence=(DEFAULT_TOKEN_CONFIDENCE if conf is None else float(conf)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "boundingBox": self.bbox.to_dict(), "confidence": self.confidence}


@dataclass(frozen=True, slots=True)
class LabelScanInput:
    """
    Everything the extraction core consumes from the OCR collaborator:
    word tokens plus the optional full-page transcript.
    """

    tokens: list[OCRToken]
    full_text: str | None = None

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "LabelScanInput":
        full_text = d.get("fullText", d.get("full_text"))
        if full_text is not None and not isinstance(full_text, str):
            raise TypeError("LabelScanInput.fullText must be a string")

        # Compatibility: page-structured OCR artifacts carry tokens per page.
        if "pages" in d and "tokens" not in d:
            pages_raw = d.get("pages") or []
            if not isinstance(pages_raw, list):
                raise TypeError("LabelScanInput.pages must be a list")
            tokens: list[OCRToken] = []
            for p in pages_raw:
                page_tokens = p.get("tokens") or []
                if not isinstance(page_tokens, list):
                    raise TypeError("LabelScanInput.pages[].tokens must be a list")
                tokens.extend(OCRToken.from_dict(t) for t in page_tokens)
            return LabelScanInput(tokens=tokens, full_text=full_text)

        tokens_raw = d.get("tokens") or []
        if not isinstance(tokens_raw, list):
            raise TypeError("LabelScanInput.tokens must be a list")
        return LabelScanInput(tokens=[OCRToken.from_dict(t) for t in tokens_raw], full_text=full_text)

    def to_dict(self) -> dict[str, Any]:
        return {"tokens": [t.to_dict() for t in self.tokens], "fullText": self.full_text}
