"""Skill-line analysis engine.

Runs every stage over one document:

    load -> analyze lines -> dependency graph -> grouping -> diagnostics

Each call to ``SkillAnalysisEngine.analyze`` builds its own structures, so
one engine can serve any number of documents. Expected failures (bad YAML,
nothing to analyze) come back as an ``AnalysisOutcome`` with
``success=False`` instead of raising.
"""

import logging
from typing import Callable, Iterable, Optional

from .analyzer_config import AnalyzerConfig
from .diagnostics import DiagnosticsAggregator
from .errors import AnalysisError, StructuralError
from .graph import build_dependency_graph
from .grouping import GroupingSynthesizer
from .line_analyzer import LineAnalyzer
from .loader import StructuralLoader
from .models import AnalysisOutcome, AnalysisReport, ContextKind
from .patterns import PatternDetector
from .vocabulary import Vocabulary, get_default_vocabulary

ProgressFn = Callable[[str, int, int], None]

STAGES = ["load", "analyze", "graph", "group", "diagnose"]


class SkillAnalysisEngine:
    """Analyzes MythicMobs-style skill and mob documents."""

    def __init__(
        self,
        config: Optional[AnalyzerConfig] = None,
        vocabulary: Optional[Vocabulary] = None,
        logger: Optional[logging.Logger] = None,
        progress_fn: Optional[ProgressFn] = None,
    ):
        """
        Args:
            config: Tuning weights and thresholds. Defaults to AnalyzerConfig().
            vocabulary: Lookup tables. Defaults to the packaged vocabulary.
            logger: Logger for stage messages. Defaults to this module's.
            progress_fn: Called as progress_fn(stage, index, total) before
                each stage.
        """
        self.config = config or AnalyzerConfig()
        self.vocabulary = vocabulary or get_default_vocabulary()
        self.log = logger or logging.getLogger(__name__)
        self._progress_fn = progress_fn

    def analyze(
        self,
        text: str,
        context: "str | ContextKind | None" = None,
        external_names: Optional[Iterable[str]] = None,
    ) -> AnalysisOutcome:
        """Analyze one document.

        Args:
            text: Raw YAML text.
            context: Force 'mob' or 'skillFile' instead of classifying.
            external_names: Units defined in other files. Direct calls to
                them are tagged 'external' and never reported as dangling.

        Returns:
            AnalysisOutcome; on failure ``error`` holds the message and
            ``error_kind`` is 'structural' or 'no-content'.
        """
        try:
            report = self.run(text, context, external_names)
        except AnalysisError as e:
            self.log.warning("Analysis failed (%s): %s", e.kind, e)
            return AnalysisOutcome(success=False, error=str(e), error_kind=e.kind)
        return AnalysisOutcome(success=True, report=report)

    def run(
        self,
        text: str,
        context: "str | ContextKind | None" = None,
        external_names: Optional[Iterable[str]] = None,
    ) -> AnalysisReport:
        """Like ``analyze`` but raises AnalysisError subclasses on failure."""
        try:
            forced = ContextKind.parse(context)
        except ValueError as e:
            raise StructuralError(str(e)) from e

        self._progress("load")
        loader = StructuralLoader(self.vocabulary, log=self.log)
        document = loader.load(text, forced)
        self.log.info(
            "Loaded %d %s entries (%d lines)",
            len(document.entries), document.context_kind.value,
            document.total_lines,
        )

        self._progress("analyze")
        analyzer = LineAnalyzer(
            self.vocabulary,
            self.config.complexity,
            external_names=external_names,
            log=self.log,
        )
        units = analyzer.analyze_all(document.entries)

        self._progress("graph")
        graph = build_dependency_graph(units)

        self._progress("group")
        detector = PatternDetector(self.vocabulary, self.config.detectors, log=self.log)
        grouping = GroupingSynthesizer(detector, log=self.log).synthesize(
            units, graph, document.context_kind
        )
        naming_patterns = detector.detect_naming_patterns(units, document.context_kind)

        self._progress("diagnose")
        aggregator = DiagnosticsAggregator(self.config.diagnostics, log=self.log)
        missing = aggregator.missing_references(units)
        diagnostics = aggregator.diagnose(units, missing)

        return AnalysisReport(
            context_kind=document.context_kind,
            units=units,
            dependency_graph=graph,
            naming_patterns=naming_patterns,
            grouping=grouping,
            missing_references=missing,
            component_statistics=aggregator.component_statistics(units),
            diagnostics=diagnostics,
            total_lines=document.total_lines,
        )

    def _progress(self, stage: str) -> None:
        if self._progress_fn:
            self._progress_fn(stage, STAGES.index(stage) + 1, len(STAGES))


def format_report(report: AnalysisReport, top: int = 5) -> str:
    """Render an analysis report for terminal display."""
    lines = []
    lines.append("=" * 60)
    lines.append("SKILL ANALYSIS REPORT")
    lines.append("=" * 60)

    lines.append("")
    lines.append("DOCUMENT")
    lines.append(f"  Context: {report.context_kind.value}")
    lines.append(f"  Units: {report.total_units}")
    lines.append(f"  Lines: {report.total_lines}")
    if report.has_lifecycle_refs:
        lines.append("  Uses lifecycle triggers: yes")

    tiers: dict[str, int] = {}
    for unit in report.units:
        tiers[unit.complexity_tier.value] = tiers.get(unit.complexity_tier.value, 0) + 1
    if tiers:
        lines.append("  By complexity:")
        for tier, count in sorted(tiers.items(), key=lambda x: -x[1]):
            lines.append(f"    {tier}: {count}")

    summary = report.dependency_graph.summary()
    lines.append("")
    lines.append("DEPENDENCIES")
    lines.append(f"  Edges: {summary['totalEdges']}")
    lines.append(f"  Entry points: {summary['entryPoints']}")
    lines.append(f"  Max depth: {summary['maxDepth']}")
    if summary["cycles"]:
        lines.append(f"  Cycles: {summary['cycles']}")

    lines.extend(format_grouping(report))

    if report.diagnostics:
        lines.append("")
        lines.append("DIAGNOSTICS")
        for diag in report.diagnostics[:20]:
            lines.append(f"  [{diag.severity.value}] {diag.message}")
        if len(report.diagnostics) > 20:
            lines.append(f"  ... and {len(report.diagnostics) - 20} more")

    stats = report.component_statistics
    if stats.get("actions"):
        lines.append("")
        lines.append("TOP COMPONENTS")
        for label, key in (
            ("Actions", "actions"),
            ("Targets", "targetSelectors"),
            ("Guards", "guards"),
        ):
            entries = stats.get(key) or []
            if entries:
                shown = ", ".join(f"{e['name']} ({e['count']})" for e in entries[:top])
                lines.append(f"  {label}: {shown}")

    lines.append("")
    lines.append("=" * 60)
    return "\n".join(lines)


def format_grouping(report: AnalysisReport) -> list[str]:
    """Group proposal section of the terminal report."""
    grouping = report.grouping
    lines = ["", f"GROUPS ({grouping.total_groups})"]
    for group in grouping.groups:
        lines.append(
            f"  {group.suggested_name} [{group.kind.value}, "
            f"{group.confidence:.2f}]"
        )
        lines.append(f"    {group.rationale}")
        for name in group.member_names:
            lines.append(f"    - {name}")
    if grouping.standalone:
        lines.append(f"  Standalone ({grouping.total_standalone}):")
        for unit in grouping.standalone[:10]:
            lines.append(f"    - {unit.name}")
        if grouping.total_standalone > 10:
            lines.append(f"    ... and {grouping.total_standalone - 10} more")
    return lines
