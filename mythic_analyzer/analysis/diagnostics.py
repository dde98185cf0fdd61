"""Stage 7: Diagnostics and component statistics."""

import logging
from collections import Counter
from typing import Optional

from .analyzer_config import DiagnosticsConfig
from .models import (
    AnalyzedUnit, CallContext, ComplexityTier, Diagnostic, DiagnosticKind,
    MissingReference, Severity,
)
from .utils import describe_call_context

logger = logging.getLogger(__name__)


class DiagnosticsAggregator:
    """Non-fatal findings over a finished set of units."""

    def __init__(
        self,
        config: Optional[DiagnosticsConfig] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.config = config or DiagnosticsConfig()
        self.log = log or logger

    def missing_references(self, units: list[AnalyzedUnit]) -> list[MissingReference]:
        """Calls to names that are not units in this document.

        Calls tagged ``external`` resolve in another file and are skipped.
        """
        known = {u.name for u in units}
        missing = []
        for unit in units:
            for call in unit.sub_unit_calls:
                if call.context == CallContext.EXTERNAL or call.name in known:
                    continue
                missing.append(MissingReference(
                    called_name=call.name,
                    caller_name=unit.name,
                    context=call.context,
                ))
        return missing

    def diagnose(
        self,
        units: list[AnalyzedUnit],
        missing: Optional[list[MissingReference]] = None,
    ) -> list[Diagnostic]:
        """Dangling references first, then per-unit findings in unit order."""
        if missing is None:
            missing = self.missing_references(units)

        diagnostics = [
            Diagnostic(
                severity=Severity.WARNING,
                kind=DiagnosticKind.DANGLING_REFERENCE,
                message=(
                    f"'{ref.caller_name}' references missing "
                    f"{describe_call_context(ref.context)} '{ref.called_name}'"
                ),
                context={
                    "caller": ref.caller_name,
                    "missing": ref.called_name,
                    "callContext": ref.context,
                },
            )
            for ref in missing
        ]

        for unit in units:
            if unit.line_count == 0:
                diagnostics.append(Diagnostic(
                    severity=Severity.INFO,
                    kind=DiagnosticKind.EMPTY_UNIT,
                    message=f"'{unit.name}' has no skill lines",
                    context={"unit": unit.name},
                ))
            if (
                unit.complexity_tier == ComplexityTier.EXPERT
                and unit.line_count > self.config.high_complexity_min_lines
            ):
                diagnostics.append(Diagnostic(
                    severity=Severity.INFO,
                    kind=DiagnosticKind.HIGH_COMPLEXITY,
                    message=(
                        f"'{unit.name}' is highly complex "
                        f"({unit.line_count} lines, score {unit.complexity_score})"
                    ),
                    context={
                        "unit": unit.name,
                        "lineCount": unit.line_count,
                        "complexityScore": unit.complexity_score,
                    },
                ))

        if missing:
            self.log.warning("%d dangling reference(s)", len(missing))
        return diagnostics

    def component_statistics(self, units: list[AnalyzedUnit]) -> dict:
        """Occurrence counts per component kind, most common first."""
        actions: Counter = Counter()
        targets: Counter = Counter()
        guards: Counter = Counter()
        attributes: Counter = Counter()

        for unit in units:
            actions.update(unit.actions)
            targets.update(unit.target_refs)
            guards.update(unit.guard_refs)
            for key, values in unit.attributes.items():
                attributes[key] += len(values)

        return {
            "actions": _ranked(actions),
            "targetSelectors": _ranked(targets),
            "guards": _ranked(guards),
            "attributes": _ranked(attributes),
        }


def _ranked(counter: Counter) -> list[dict]:
    # most_common keeps first-seen order among equal counts
    return [{"name": name, "count": count} for name, count in counter.most_common()]
