from __future__ import annotations

import re

from contracts.grouping import Row, TextLine
from dose_parsing.names import normalize_for_match

LINE_SOURCE_TRANSCRIPT = "transcript"
LINE_SOURCE_ROWS = "rows"

_LINE_BREAK_RE = re.compile(r"\r?\n")


def lines_from_transcript(full_text: str) -> list[TextLine]:
    raws = [raw for raw in _LINE_BREAK_RE.split(full_text) if raw.strip()]
    return [
        TextLine(raw=raw, normalized=normalize_for_match(raw), source_tokens=[], ordinal=i)
        for i, raw in enumerate(raws)
    ]


def lines_from_rows(rows: list[Row]) -> list[TextLine]:
    return [
        TextLine(raw=row.text, normalized=normalize_for_match(row.text), source_tokens=list(row.tokens), ordinal=i)
        for i, row in enumerate(rows)
    ]


def build_text_lines(rows: list[Row], full_text: str | None) -> tuple[list[TextLine], str]:
    """
    Returns: (lines, line_source)

    A non-blank transcript is preferred (one line per line break); otherwise
    lines are synthesized from clustered rows.
    """

    if full_text is not None and full_text.strip():
        return lines_from_transcript(full_text), LINE_SOURCE_TRANSCRIPT
    return lines_from_rows(rows), LINE_SOURCE_ROWS
