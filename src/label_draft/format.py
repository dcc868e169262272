from __future__ import annotations

import re

from contracts.label import LabelDraft

# Table drafts keep the whole serving row ("Serving Size: 1 Capsule").
_SERVING_LABEL_RE = re.compile(r"^\s*serving\s+size\s*[:\-]?\s*", re.IGNORECASE)


def _fmt_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def format_ingredient_context(draft: LabelDraft) -> str:
    """
    Plain-text ingredient block handed to downstream analysis:

        Serving Size: 1 Capsule

        Ingredients:
        - Vitamin C: 500 mg (556% DV)
    """

    lines: list[str] = []
    if draft.serving_size:
        serving = _SERVING_LABEL_RE.sub("", draft.serving_size).strip() or draft.serving_size
        lines.append(f"Serving Size: {serving}")
    lines.append("")
    lines.append("Ingredients:")
    for ing in draft.ingredients:
        line = f"- {ing.name}"
        if ing.amount is not None and ing.unit:
            line += f": {_fmt_number(ing.amount)} {ing.unit}"
        if ing.dv_percent is not None:
            line += f" ({_fmt_number(ing.dv_percent)}% DV)"
        lines.append(line)
    return "\n".join(lines)
