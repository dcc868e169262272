from __future__ import annotations

import re
from typing import Iterable

from .config import ServingSizeConfig
from .names import normalize_for_match

_NON_LETTER_RE = re.compile(r"[^a-z]")


def _count_form(raw: str) -> str:
    return _NON_LETTER_RE.sub("", normalize_for_match(raw))


def infer_serving_size(lines: Iterable[str], config: ServingSizeConfig | None = None) -> str | None:
    """
    Serving size from label lines, first match wins:

    - a "serving size" statement: the whole trimmed line
    - "per / each / in each [N] capsule", "par / chaque [N] gélule": "N capsule" or "per capsule"
    - directions over the joined text ("take 2 capsules"): "2 capsules"
    """

    cfg = ServingSizeConfig() if config is None else config
    raws = list(lines)

    for raw in raws:
        if cfg.statement_pattern.search(raw):
            return raw.strip()
        for pattern in cfg.count_patterns:
            m = pattern.search(raw)
            if m is None:
                continue
            form = _count_form(m.group(2) or "")
            if not form:
                continue
            count = m.group(1)
            return f"{int(count)} {form}" if count else f"per {form}"

    direction = cfg.direction_pattern.search(" ".join(raws))
    if direction:
        return f"{direction.group(1)} {_count_form(direction.group(2))}"
    return None
