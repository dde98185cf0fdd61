"""Exception types for the analysis engine.

Raised inside the loader and caught at the engine boundary, where they are
turned into a failed ``AnalysisOutcome``.
"""


class AnalysisError(Exception):
    """Base class for fatal analysis failures."""
    kind = "analysis"


class StructuralError(AnalysisError):
    """Input is not parseable, not a mapping, or an empty mapping."""
    kind = "structural"


class NoAnalyzableContentError(AnalysisError):
    """Input parsed fine but no entry qualified as a unit."""
    kind = "no-content"

    def __init__(self, message: str, context_kind=None):
        super().__init__(message)
        self.context_kind = context_kind


class ConfigError(Exception):
    """A vocabulary, config, or template file failed validation."""
