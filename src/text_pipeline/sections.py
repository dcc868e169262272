from __future__ import annotations

from dataclasses import dataclass

from contracts.grouping import TextLine

from .config import TextConfig

ANCHOR_MEDICINAL_HEADER = "medicinal_header"
ANCHOR_INLINE = "inline_anchor"

END_DUPLICATE_ANCHOR = "duplicate_anchor"
END_STOP_PATTERN = "stop_pattern"


@dataclass(frozen=True, slots=True)
class SectionInfo:
    """
    Where the ingredient block sits inside the text lines.

    `region` is empty and `anchor_kind` is None when no anchor was found;
    callers then fall back to scanning every line.
    """

    region: list[TextLine]
    anchor_kind: str | None
    anchor_index: int | None
    end_index: int | None  # boundary line (excluded); None when the region runs to the last line
    end_reason: str | None
    has_medicinal_section: bool
    has_inline_anchor: bool

    @property
    def in_section(self) -> bool:
        return self.anchor_kind is not None

    @property
    def in_medicinal_section(self) -> bool:
        return self.anchor_kind == ANCHOR_MEDICINAL_HEADER

    def meta(self) -> dict[str, object]:
        return {
            "anchor_kind": self.anchor_kind,
            "anchor_index": self.anchor_index,
            "end_index": self.end_index,
            "end_reason": self.end_reason,
            "region_lines": len(self.region),
            "has_medicinal_section": self.has_medicinal_section,
            "has_inline_anchor": self.has_inline_anchor,
        }


def is_non_medicinal(normalized: str, config: TextConfig) -> bool:
    return any(p.search(normalized) for p in config.non_medicinal_patterns)


def is_medicinal_header(normalized: str, config: TextConfig) -> bool:
    if not any(p.search(normalized) for p in config.medicinal_header_patterns):
        return False
    return not is_non_medicinal(normalized, config)


def is_inline_anchor(normalized: str, config: TextConfig) -> bool:
    return any(p.search(normalized) for p in config.inline_anchor_patterns)


def is_stop_line(normalized: str, config: TextConfig) -> bool:
    return any(p.search(normalized) for p in config.stop_patterns)


def section_kinds(normalized: str, config: TextConfig) -> set[str]:
    """Section header families a single line belongs to ("medicinal", "non_medicinal", "directions", ...)."""

    kinds: set[str] = set()
    if is_non_medicinal(normalized, config):
        kinds.add("non_medicinal")
    elif is_medicinal_header(normalized, config):
        kinds.add("medicinal")
    for key, patterns in config.section_header_patterns:
        if any(p.search(normalized) for p in patterns):
            kinds.add(key)
    return kinds


def is_section_header(normalized: str, config: TextConfig) -> bool:
    return bool(section_kinds(normalized, config))


def _anchor_kind(normalized: str, config: TextConfig) -> str | None:
    if is_medicinal_header(normalized, config):
        return ANCHOR_MEDICINAL_HEADER
    if is_inline_anchor(normalized, config):
        return ANCHOR_INLINE
    return None


def detect_sections(lines: list[TextLine], config: TextConfig | None = None) -> SectionInfo:
    """
    Locate the ingredient block.

    The block starts at the first anchor. A medicinal header line is kept
    only when it carries text after the header words; an inline anchor line
    ("Each capsule contains: ...") is always kept. The block ends before the
    next anchor of the same family (a duplicate block in the other
    language) or before the first stop line.
    """

    cfg = TextConfig() if config is None else config
    has_medicinal = any(is_medicinal_header(line.normalized, cfg) for line in lines)
    has_inline = any(is_inline_anchor(line.normalized, cfg) for line in lines)

    anchor_idx: int | None = None
    kind: str | None = None
    for idx, line in enumerate(lines):
        kind = _anchor_kind(line.normalized, cfg)
        if kind is not None:
            anchor_idx = idx
            break

    if anchor_idx is None or kind is None:
        return SectionInfo(
            region=[],
            anchor_kind=None,
            anchor_index=None,
            end_index=None,
            end_reason=None,
            has_medicinal_section=has_medicinal,
            has_inline_anchor=has_inline,
        )

    same_family = is_medicinal_header if kind == ANCHOR_MEDICINAL_HEADER else is_inline_anchor
    end_idx: int | None = None
    end_reason: str | None = None
    for idx in range(anchor_idx + 1, len(lines)):
        normalized = lines[idx].normalized
        if same_family(normalized, cfg):
            end_idx, end_reason = idx, END_DUPLICATE_ANCHOR
            break
        if is_stop_line(normalized, cfg):
            end_idx, end_reason = idx, END_STOP_PATTERN
            break

    start = anchor_idx
    if kind == ANCHOR_MEDICINAL_HEADER and not cfg.header_prefix_re.sub("", lines[anchor_idx].raw).strip():
        start = anchor_idx + 1
    region = lines[start:end_idx] if end_idx is not None else lines[start:]

    return SectionInfo(
        region=list(region),
        anchor_kind=kind,
        anchor_index=anchor_idx,
        end_index=end_idx,
        end_reason=end_reason,
        has_medicinal_section=has_medicinal,
        has_inline_anchor=has_inline,
    )
