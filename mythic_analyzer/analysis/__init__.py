"""Skill-line analysis and grouping engine."""

from .analyzer_config import AnalyzerConfig, load_analyzer_config
from .errors import (
    AnalysisError, ConfigError, NoAnalyzableContentError, StructuralError,
)
from .graph import DependencyGraph, build_dependency_graph
from .models import (
    AnalysisOutcome, AnalysisReport, AnalyzedUnit, ContextKind,
    GroupProposal, GroupingResult,
)
from .pipeline import SkillAnalysisEngine, format_report
from .vocabulary import Vocabulary, get_default_vocabulary, load_vocabulary

__all__ = [
    "AnalyzerConfig",
    "load_analyzer_config",
    "AnalysisError",
    "ConfigError",
    "NoAnalyzableContentError",
    "StructuralError",
    "DependencyGraph",
    "build_dependency_graph",
    "AnalysisOutcome",
    "AnalysisReport",
    "AnalyzedUnit",
    "ContextKind",
    "GroupProposal",
    "GroupingResult",
    "SkillAnalysisEngine",
    "format_report",
    "Vocabulary",
    "get_default_vocabulary",
    "load_vocabulary",
]
