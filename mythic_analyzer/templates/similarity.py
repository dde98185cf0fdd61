"""Similarity estimation between template records.

Used before a new template is stored to warn about near-duplicates of
templates that already exist.
"""

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..analysis.analyzer_config import SimilarityConfig
from ..analysis.utils import common_prefix
from .records import TemplateRecord

logger = logging.getLogger(__name__)


@dataclass
class DuplicateMatch:
    record: TemplateRecord
    similarity: float
    differences: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.record.name,
            "similarity": round(self.similarity, 4),
            "differences": list(self.differences),
        }


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def name_score(a: str, b: str, config: SimilarityConfig) -> int:
    a, b = (a or "").lower(), (b or "").lower()
    if a == b:
        return config.name_exact
    if a in b or b in a:
        return config.name_substring
    return min(config.name_prefix_cap, len(common_prefix(a, b)) * config.name_prefix_per_char)


def section_score(a: TemplateRecord, b: TemplateRecord, config: SimilarityConfig) -> int:
    diff = abs(a.section_count - b.section_count)
    if diff == 0:
        return config.section_equal
    if diff == 1:
        return config.section_near
    return 0


def line_overlap_score(a: TemplateRecord, b: TemplateRecord, config: SimilarityConfig) -> int:
    lines_a, lines_b = a.all_lines(), b.all_lines()
    if not lines_a or not lines_b:
        return 0
    common = sum((Counter(lines_a) & Counter(lines_b)).values())
    return _round_half_up(config.line_overlap * common / max(len(lines_a), len(lines_b)))


def calculate_similarity(
    a: TemplateRecord,
    b: TemplateRecord,
    config: Optional[SimilarityConfig] = None,
) -> float:
    """Weighted similarity in [0, 1]. Symmetric in its arguments."""
    config = config or SimilarityConfig()
    score = name_score(a.name, b.name, config)
    if a.category == b.category:
        score += config.category_match
    score += section_score(a, b, config)
    score += line_overlap_score(a, b, config)
    return score / config.max_score


def find_differences(a: TemplateRecord, b: TemplateRecord) -> list[str]:
    """Human-readable deltas between two records."""
    differences = []
    if a.section_count != b.section_count:
        differences.append(f"Section count: {a.section_count} vs {b.section_count}")
    lines_a, lines_b = a.all_lines(), b.all_lines()
    if len(lines_a) != len(lines_b):
        differences.append(f"Skill lines: {len(lines_a)} vs {len(lines_b)}")
    if a.category != b.category:
        differences.append(f"Category: {a.category} vs {b.category}")
    return differences


def find_duplicates(
    candidate: TemplateRecord,
    existing: Iterable[TemplateRecord],
    threshold: Optional[float] = None,
    limit: Optional[int] = None,
    config: Optional[SimilarityConfig] = None,
) -> list[DuplicateMatch]:
    """Existing records scoring above ``threshold``, most similar first."""
    config = config or SimilarityConfig()
    threshold = config.duplicate_threshold if threshold is None else threshold
    limit = config.duplicate_limit if limit is None else limit

    matches = []
    for record in existing:
        similarity = calculate_similarity(candidate, record, config)
        if similarity > threshold:
            matches.append(DuplicateMatch(
                record=record,
                similarity=similarity,
                differences=find_differences(candidate, record),
            ))

    matches.sort(key=lambda m: -m.similarity)
    logger.debug(
        "%d possible duplicate(s) of %r above %.2f",
        len(matches), candidate.name, threshold,
    )
    return matches[:limit]
