"""Stage 6: Grouping synthesis.

Runs the pattern detectors in priority order over one shared claimed set:

    mob:        lifecycle -> variant family -> call chain
    skillFile:  lifecycle -> document prefix (only if no lifecycle group)
                -> call chain -> residual prefix -> residual suffix

Every unit ends up in exactly one group or in the standalone list.
"""

import logging
from typing import Optional

from .graph import DependencyGraph
from .models import AnalyzedUnit, ContextKind, GroupingResult
from .patterns import PatternDetector

logger = logging.getLogger(__name__)


class GroupingSynthesizer:
    """Combines detector output into non-overlapping group proposals."""

    def __init__(
        self,
        detector: Optional[PatternDetector] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.detector = detector or PatternDetector()
        self.log = log or logger

    def synthesize(
        self,
        units: list[AnalyzedUnit],
        graph: DependencyGraph,
        context: ContextKind,
    ) -> GroupingResult:
        claimed: set[str] = set()
        groups = []
        d = self.detector

        lifecycle = d.detect_lifecycle_families(units, claimed)
        groups.extend(lifecycle)
        self.log.debug("Lifecycle detector: %d group(s)", len(lifecycle))

        if context == ContextKind.MOB:
            variants = d.detect_variant_families(units, claimed)
            groups.extend(variants)
            self.log.debug("Variant detector: %d group(s)", len(variants))
        elif not lifecycle:
            doc_prefix = d.detect_document_prefix(units, claimed)
            groups.extend(doc_prefix)
            self.log.debug("Document prefix detector: %d group(s)", len(doc_prefix))

        chains = d.detect_call_chains(units, graph, claimed)
        groups.extend(chains)
        self.log.debug("Call chain detector: %d group(s)", len(chains))

        if context == ContextKind.SKILL_FILE:
            residual = d.detect_residual_prefixes(units, claimed)
            residual += d.detect_residual_suffixes(units, claimed)
            groups.extend(residual)
            self.log.debug("Residual naming detector: %d group(s)", len(residual))

        standalone = [u for u in units if u.name not in claimed]
        result = GroupingResult(groups=groups, standalone=standalone)
        self.log.info(
            "Grouping: %d group(s), %d standalone unit(s)",
            result.total_groups, result.total_standalone,
        )
        return result
