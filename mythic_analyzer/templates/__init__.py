"""Template records and duplicate detection."""

from .records import (
    TemplateRecord, TemplateSection, load_template_records,
    record_from_group, record_from_unit,
)
from .similarity import (
    DuplicateMatch, calculate_similarity, find_differences, find_duplicates,
)

__all__ = [
    "TemplateRecord",
    "TemplateSection",
    "load_template_records",
    "record_from_group",
    "record_from_unit",
    "DuplicateMatch",
    "calculate_similarity",
    "find_differences",
    "find_duplicates",
]
