"""
Analyzer tuning configuration.

Every weight, threshold and confidence used by the analysis stages lives
here. The numbers are hand-tuned; none of them is derived from anything.

With no arguments, ``AnalyzerConfig()`` reproduces the stock behavior.
Follows the same pattern as the other config dataclasses: plain dataclasses
built from a nested dict by ``load_analyzer_config``.
"""

from dataclasses import dataclass, field, fields


@dataclass
class ComplexityConfig:
    """Complexity score weights and tier cut-offs.

    score = line_weight*lines + action_weight*|actions| + call_weight*|calls|
            + guard_weight*|guards| + lifecycle_weight*|lifecycle refs|
            + complex_action_bonus per inherently complex action
    """
    line_weight: int = 2
    action_weight: int = 3
    call_weight: int = 5
    guard_weight: int = 4
    lifecycle_weight: int = 3
    complex_action_bonus: int = 8
    # score < beginner_below -> beginner, < intermediate_below -> intermediate ...
    beginner_below: int = 15
    intermediate_below: int = 35
    advanced_below: int = 60


@dataclass
class DetectorConfig:
    """Confidence values and length limits for the pattern detectors."""
    lifecycle_explicit_confidence: float = 0.95
    lifecycle_naming_confidence: float = 0.92
    variant_family_confidence: float = 0.95
    document_prefix_confidence: float = 0.98
    call_chain_confidence: float = 0.95
    prefix_base_confidence: float = 0.5
    prefix_step_confidence: float = 0.1
    prefix_max_confidence: float = 0.9
    suffix_pattern_confidence: float = 0.85
    document_prefix_min_length: int = 5
    naming_prefix_min_length: int = 3
    group_name_min_prefix: int = 3


@dataclass
class DiagnosticsConfig:
    high_complexity_min_lines: int = 20


@dataclass
class SimilarityConfig:
    """Score budget for the template similarity estimator (sums to 100)."""
    name_exact: int = 30
    name_substring: int = 20
    name_prefix_cap: int = 15
    name_prefix_per_char: int = 3
    category_match: int = 20
    section_equal: int = 20
    section_near: int = 10
    line_overlap: int = 30
    duplicate_threshold: float = 0.5
    duplicate_limit: int = 3

    @property
    def max_score(self) -> int:
        return self.name_exact + self.category_match + self.section_equal + self.line_overlap


@dataclass
class AnalyzerConfig:
    """Complete analyzer configuration."""
    complexity: ComplexityConfig = field(default_factory=ComplexityConfig)
    detectors: DetectorConfig = field(default_factory=DetectorConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    similarity: SimilarityConfig = field(default_factory=SimilarityConfig)

    def to_dict(self) -> dict:
        return {
            section.name: {
                f.name: getattr(getattr(self, section.name), f.name)
                for f in fields(getattr(self, section.name))
            }
            for section in fields(self)
        }


def _build(cls, data: dict):
    """Instantiate a config dataclass, ignoring unknown keys."""
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in (data or {}).items() if k in known})


def load_analyzer_config(raw: dict | None) -> AnalyzerConfig:
    """Load AnalyzerConfig from a nested dict (e.g. the user config file).

    Missing sections or keys fall back to the defaults.
    """
    if not raw:
        return AnalyzerConfig()

    return AnalyzerConfig(
        complexity=_build(ComplexityConfig, raw.get("complexity", {})),
        detectors=_build(DetectorConfig, raw.get("detectors", {})),
        diagnostics=_build(DiagnosticsConfig, raw.get("diagnostics", {})),
        similarity=_build(SimilarityConfig, raw.get("similarity", {})),
    )
