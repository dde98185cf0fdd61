"""Data models for the skill-line analysis engine.

All intermediate representations passed between analysis stages.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Stage 1-2: Loading / Entry extraction
# ---------------------------------------------------------------------------

class ContextKind(Enum):
    """Root context of a document."""
    MOB = "mob"
    SKILL_FILE = "skillFile"

    @classmethod
    def parse(cls, value: "str | ContextKind | None") -> Optional["ContextKind"]:
        """Accept 'mob', 'skillFile' (or 'skill'), an enum member, or None."""
        if value is None or isinstance(value, ContextKind):
            return value
        lowered = value.strip().lower()
        if lowered == "mob":
            return cls.MOB
        if lowered in ("skillfile", "skill", "skill-file"):
            return cls.SKILL_FILE
        raise ValueError(f"Unknown context: {value}. Valid contexts: mob, skillFile")


@dataclass
class SkillEntry:
    """A top-level entry selected for analysis, before tokenization."""
    name: str
    source_kind: ContextKind
    lines: list = field(default_factory=list)
    conditions: list = field(default_factory=list)
    target_conditions: list = field(default_factory=list)
    trigger_conditions: list = field(default_factory=list)
    cooldown: Any = None
    on_cooldown_skill: Optional[str] = None
    raw_extra: dict = field(default_factory=dict)  # mob-only field passthrough


@dataclass
class LoadedDocument:
    """Output of the structural loader."""
    context_kind: ContextKind
    entries: list[SkillEntry] = field(default_factory=list)
    total_lines: int = 0


# ---------------------------------------------------------------------------
# Stage 3: Line analysis
# ---------------------------------------------------------------------------

class CallContext:
    """Well-known sub-unit call contexts.

    Callback contexts use the lower-cased attribute name they were found
    under (``ontick``, ``onhit``, ``oncooldownskill`` ...).
    """
    DIRECT = "direct"
    EXTERNAL = "external"

    @classmethod
    def is_callback(cls, context: str) -> bool:
        return context not in (cls.DIRECT, cls.EXTERNAL)


class ComplexityTier(Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


@dataclass(frozen=True)
class SubUnitCall:
    """A reference from one unit to another unit by name."""
    name: str
    context: str = CallContext.DIRECT

    @property
    def is_callback(self) -> bool:
        return CallContext.is_callback(self.context)


@dataclass(frozen=True)
class AnalyzedUnit:
    """One analyzed config entry (a skill or a mob). Immutable once built."""
    name: str
    source_kind: ContextKind
    line_count: int
    lines: tuple[str, ...] = ()
    actions: tuple[str, ...] = ()
    target_refs: tuple[str, ...] = ()
    guard_refs: tuple[str, ...] = ()
    lifecycle_refs: tuple[str, ...] = ()
    attributes: dict[str, list[str]] = field(default_factory=dict)
    sub_unit_calls: tuple[SubUnitCall, ...] = ()
    complexity_tier: ComplexityTier = ComplexityTier.BEGINNER
    complexity_score: int = 0
    suggested_category: str = "utility"
    raw_extra: dict = field(default_factory=dict)
    cooldown: Any = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "sourceKind": self.source_kind.value,
            "lineCount": self.line_count,
            "lines": list(self.lines),
            "actions": list(self.actions),
            "targetRefs": list(self.target_refs),
            "guardRefs": list(self.guard_refs),
            "lifecycleRefs": list(self.lifecycle_refs),
            "attributes": {k: list(v) for k, v in self.attributes.items()},
            "subUnitCalls": [
                {"name": c.name, "context": c.context} for c in self.sub_unit_calls
            ],
            "complexityTier": self.complexity_tier.value,
            "complexityScore": self.complexity_score,
            "suggestedCategory": self.suggested_category,
            "rawExtra": self.raw_extra,
        }


# ---------------------------------------------------------------------------
# Stage 5-6: Patterns and grouping
# ---------------------------------------------------------------------------

class PatternKind(Enum):
    SHARED_PREFIX = "shared-prefix"
    LIFECYCLE_SUFFIXES = "base-with-lifecycle-suffixes"
    MOB_VARIANT_FAMILY = "mob-variant-family"
    CALL_CHAIN = "call-chain"
    DOCUMENT_PREFIX = "whole-document-shared-prefix"


@dataclass
class NamingPattern:
    """A naming family inferred from unit names."""
    kind: PatternKind
    anchor: str  # common prefix or base name
    member_names: list[str] = field(default_factory=list)
    confidence: float = 0.0

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "anchor": self.anchor,
            "memberNames": list(self.member_names),
            "confidence": round(self.confidence, 4),
        }


@dataclass
class GroupProposal:
    """A suggestion that several units form one logical family."""
    kind: PatternKind
    rationale: str
    suggested_name: str
    members: list[AnalyzedUnit] = field(default_factory=list)
    confidence: float = 0.0

    @property
    def member_names(self) -> list[str]:
        return [m.name for m in self.members]

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "rationale": self.rationale,
            "suggestedName": self.suggested_name,
            "members": self.member_names,
            "confidence": round(self.confidence, 4),
        }


@dataclass
class GroupingResult:
    """Output of the grouping synthesizer."""
    groups: list[GroupProposal] = field(default_factory=list)
    standalone: list[AnalyzedUnit] = field(default_factory=list)

    @property
    def total_groups(self) -> int:
        return len(self.groups)

    @property
    def total_standalone(self) -> int:
        return len(self.standalone)

    def to_dict(self) -> dict:
        return {
            "groups": [g.to_dict() for g in self.groups],
            "standalone": [u.name for u in self.standalone],
            "totalGroups": self.total_groups,
            "totalStandalone": self.total_standalone,
        }


# ---------------------------------------------------------------------------
# Stage 7: Diagnostics
# ---------------------------------------------------------------------------

class Severity(Enum):
    INFO = "info"
    WARNING = "warning"


class DiagnosticKind(Enum):
    DANGLING_REFERENCE = "dangling-reference"  # DanglingReferenceWarning
    EMPTY_UNIT = "empty-unit"                  # EmptyUnitInfo
    HIGH_COMPLEXITY = "high-complexity"        # HighComplexityInfo


@dataclass
class Diagnostic:
    """A non-fatal finding attached to a successful report."""
    severity: Severity
    kind: DiagnosticKind
    message: str
    context: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "kind": self.kind.value,
            "message": self.message,
            "context": self.context,
        }


@dataclass
class MissingReference:
    """A sub-unit call whose target is not defined in the document."""
    called_name: str
    caller_name: str
    context: str

    def to_dict(self) -> dict:
        return {
            "calledName": self.called_name,
            "callerName": self.caller_name,
            "context": self.context,
        }


# ---------------------------------------------------------------------------
# Final report
# ---------------------------------------------------------------------------

@dataclass
class AnalysisReport:
    """Everything produced by one successful analysis run."""
    context_kind: ContextKind
    units: list[AnalyzedUnit]
    dependency_graph: Any  # DependencyGraph, kept untyped to avoid a cycle
    naming_patterns: list[NamingPattern]
    grouping: GroupingResult
    missing_references: list[MissingReference]
    component_statistics: dict
    diagnostics: list[Diagnostic]
    total_lines: int = 0

    @property
    def has_lifecycle_refs(self) -> bool:
        return any(u.lifecycle_refs for u in self.units)

    @property
    def total_units(self) -> int:
        return len(self.units)

    def get_unit(self, name: str) -> Optional[AnalyzedUnit]:
        for unit in self.units:
            if unit.name == name:
                return unit
        return None

    def to_dict(self) -> dict:
        return {
            "contextKind": self.context_kind.value,
            "hasLifecycleRefs": self.has_lifecycle_refs,
            "totalUnits": self.total_units,
            "totalLines": self.total_lines,
            "units": [u.to_dict() for u in self.units],
            "dependencyGraph": self.dependency_graph.to_dict(),
            "graphSummary": self.dependency_graph.summary(),
            "namingPatterns": [p.to_dict() for p in self.naming_patterns],
            "groupProposals": self.grouping.to_dict(),
            "missingReferences": [m.to_dict() for m in self.missing_references],
            "componentStatistics": self.component_statistics,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


@dataclass
class AnalysisOutcome:
    """Typed success/failure wrapper returned by the engine."""
    success: bool
    report: Optional[AnalysisReport] = None
    error: str = ""
    error_kind: str = ""  # "structural" or "no-content"

    def to_dict(self) -> dict:
        if not self.success or self.report is None:
            return {
                "success": False,
                "error": self.error,
                "errorKind": self.error_kind,
            }
        return {"success": True, **self.report.to_dict()}
