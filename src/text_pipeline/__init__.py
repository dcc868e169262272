"""
Text Pipeline: free-running "Medicinal Ingredients" / "Each capsule contains" blocks.

- anchors and block boundaries (EN/FR)
- line merging across OCR line breaks
- line -> ingredient parsing with per-line confidence
"""

from .config import TextConfig
from .extract import count_candidate_amount_lines, extract_text
from .lines import merge_split_lines, parse_text_line, score_ingredient_name
from .sections import SectionInfo, detect_sections, is_medicinal_header, section_kinds

__all__ = [
    "SectionInfo",
    "TextConfig",
    "count_candidate_amount_lines",
    "detect_sections",
    "extract_text",
    "is_medicinal_header",
    "merge_split_lines",
    "parse_text_line",
    "score_ingredient_name",
    "section_kinds",
]
