"""Stage 5: Pattern detection.

Each ``detect_*`` method proposes groups over the units that are not yet in
``claimed`` and adds the members of every group it emits to ``claimed``, so
one detector never hands out a unit twice and later detectors never see it.
Priority between detectors is the caller's job (see grouping.py).

``detect_naming_patterns`` is different: it reports naming families over all
units for display and claims nothing.
"""

import logging
import re
from typing import Optional

from .analyzer_config import DetectorConfig
from .graph import DependencyGraph
from .models import (
    AnalyzedUnit, ContextKind, GroupProposal, NamingPattern, PatternKind,
)
from .utils import (
    common_prefix, longest_common_prefix, to_readable_name, trim_separator,
)
from .vocabulary import Vocabulary, get_default_vocabulary

logger = logging.getLogger(__name__)

_NAMESPACE_TOKEN = re.compile(r"^[A-Z]{2,4}[-_]")


class PatternDetector:
    """Naming and structural family detection."""

    def __init__(
        self,
        vocabulary: Optional[Vocabulary] = None,
        config: Optional[DetectorConfig] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.vocabulary = vocabulary or get_default_vocabulary()
        self.config = config or DetectorConfig()
        self.log = log or logger

        suffixes = "|".join(re.escape(s) for s in self.vocabulary.lifecycle_suffixes)
        self._lifecycle_name_re = re.compile(
            rf"^(.+?)[-_]({suffixes})$", re.IGNORECASE
        )
        marker = re.escape(self.vocabulary.variant_marker)
        self._variant_res = [
            re.compile(rf"[-_]?{marker}(?:[-_]?\d+)?$", re.IGNORECASE),
            re.compile(rf"^{marker}[-_]?", re.IGNORECASE),
            re.compile(rf"[-_]?{marker}", re.IGNORECASE),
        ]

    # -- 1. Lifecycle families -------------------------------------------

    def detect_lifecycle_families(
        self, units: list[AnalyzedUnit], claimed: set[str],
    ) -> list[GroupProposal]:
        """Group units with their callback targets and suffixed siblings.

        First pass follows callback-context calls; the second pass catches
        ``Base-Tick`` style names whose base exists but never calls them.
        """
        by_name = {u.name: u for u in units}
        by_lower = _lower_index(units)
        groups = []

        for unit in units:
            if unit.name in claimed:
                continue
            callbacks = [c for c in unit.sub_unit_calls if c.is_callback]
            if not callbacks:
                continue

            members = [unit]
            names = {unit.name}
            explicit = False
            for call in callbacks:
                target = by_name.get(call.name)
                if target and target.name not in claimed and target.name not in names:
                    members.append(target)
                    names.add(target.name)
                    explicit = True
            for sibling in self._suffixed_siblings(unit.name, by_lower):
                if sibling.name not in claimed and sibling.name not in names:
                    members.append(sibling)
                    names.add(sibling.name)

            if len(members) < 2:
                self.log.debug(
                    "Lifecycle candidate %r has no unclaimed partners", unit.name
                )
                continue

            confidence = (
                self.config.lifecycle_explicit_confidence if explicit
                else self.config.lifecycle_naming_confidence
            )
            claimed.update(names)
            groups.append(GroupProposal(
                kind=PatternKind.LIFECYCLE_SUFFIXES,
                rationale=(
                    f"'{unit.name}' drives {len(members) - 1} lifecycle "
                    + ("callback unit(s)" if explicit else "unit(s) by name")
                ),
                suggested_name=to_readable_name(unit.name),
                members=members,
                confidence=confidence,
            ))

        groups.extend(self._lifecycle_by_name(units, claimed, by_lower))
        return groups

    def _suffixed_siblings(self, base: str, by_lower: dict) -> list[AnalyzedUnit]:
        found = []
        for suffix in self.vocabulary.lifecycle_suffixes:
            for sep in ("-", "_"):
                sibling = by_lower.get(f"{base}{sep}{suffix}".lower())
                if sibling is not None and all(f.name != sibling.name for f in found):
                    found.append(sibling)
        return found

    def _lifecycle_by_name(
        self, units: list[AnalyzedUnit], claimed: set[str], by_lower: dict,
    ) -> list[GroupProposal]:
        groups = []
        for unit in units:
            if unit.name in claimed:
                continue
            match = self._lifecycle_name_re.match(unit.name)
            if not match:
                continue
            base = by_lower.get(match.group(1).lower())
            if base is None or base.name in claimed or base.name == unit.name:
                continue

            members = [base] + [
                s for s in self._suffixed_siblings(base.name, by_lower)
                if s.name not in claimed
            ]
            if len(members) < 2:
                continue
            claimed.update(m.name for m in members)
            groups.append(GroupProposal(
                kind=PatternKind.LIFECYCLE_SUFFIXES,
                rationale=(
                    f"'{base.name}' has {len(members) - 1} lifecycle-suffixed "
                    "sibling(s)"
                ),
                suggested_name=to_readable_name(base.name),
                members=members,
                confidence=self.config.lifecycle_naming_confidence,
            ))
        return groups

    # -- 2. Mob variant families -----------------------------------------

    def variant_bases(self, name: str) -> list[str]:
        """Candidate base names for a marked variant, most specific first."""
        candidates = []
        for regex in self._variant_res:
            stripped = regex.sub("", name, count=1)
            if stripped and stripped != name and stripped not in candidates:
                candidates.append(stripped)
        return candidates

    def is_variant(self, name: str) -> bool:
        return self.vocabulary.variant_marker.lower() in name.lower()

    def detect_variant_families(
        self, units: list[AnalyzedUnit], claimed: set[str],
    ) -> list[GroupProposal]:
        """Pair marked mob variants with the unmarked mob they derive from."""
        by_lower = _lower_index(units)
        groups = []

        for unit in units:
            if unit.name in claimed or not self.is_variant(unit.name):
                continue

            base = None
            for candidate in self.variant_bases(unit.name):
                found = by_lower.get(candidate.lower())
                if found is not None and found.name != unit.name and found.name not in claimed:
                    base = found
                    break
            if base is None:
                self.log.debug("Variant %r has no base mob", unit.name)
                continue

            base_lower = base.name.lower()
            members = [base, unit]
            for other in units:
                if other.name in claimed or any(m.name == other.name for m in members):
                    continue
                if not self.is_variant(other.name):
                    continue
                if any(c.lower() == base_lower for c in self.variant_bases(other.name)):
                    members.append(other)

            claimed.update(m.name for m in members)
            groups.append(GroupProposal(
                kind=PatternKind.MOB_VARIANT_FAMILY,
                rationale=(
                    f"'{base.name}' with {len(members) - 1} "
                    f"{self.vocabulary.variant_marker} variant(s)"
                ),
                suggested_name=to_readable_name(base.name),
                members=members,
                confidence=self.config.variant_family_confidence,
            ))
        return groups

    # -- 3. Whole-document prefix ----------------------------------------

    def detect_document_prefix(
        self, units: list[AnalyzedUnit], claimed: set[str],
    ) -> list[GroupProposal]:
        """One group of every unclaimed unit when all share a long prefix."""
        remaining = [u for u in units if u.name not in claimed]
        if len(remaining) < 2:
            return []

        prefix = trim_separator(longest_common_prefix(u.name for u in remaining))
        if len(prefix) < self.config.document_prefix_min_length:
            self.log.debug("Document prefix %r too short", prefix)
            return []
        # CR_Fire1 / CR_Fire2: only the part after a namespace token counts
        core = _NAMESPACE_TOKEN.sub("", prefix, count=1)
        if len(core) < self.config.document_prefix_min_length:
            self.log.debug("Document prefix %r looks like a namespace", prefix)
            return []

        claimed.update(u.name for u in remaining)
        return [GroupProposal(
            kind=PatternKind.DOCUMENT_PREFIX,
            rationale=f"All {len(remaining)} units share the prefix '{prefix}'",
            suggested_name=to_readable_name(core),
            members=remaining,
            confidence=self.config.document_prefix_confidence,
        )]

    # -- 4. Call chains --------------------------------------------------

    def detect_call_chains(
        self, units: list[AnalyzedUnit], graph: DependencyGraph, claimed: set[str],
    ) -> list[GroupProposal]:
        """Group unclaimed units reachable from each root of the graph."""
        by_name = {u.name: u for u in units}
        roots = graph.roots()
        if not roots:
            busiest = max(
                graph.nodes.items(),
                key=lambda item: len(item[1].calls),
                default=None,
            )
            if busiest is None or not busiest[1].calls:
                return []
            roots = [busiest[0]]

        groups = []
        visited: set[str] = set()
        for root in roots:
            if root in visited:
                continue
            chain = [root] + [
                n for n in graph.transitive_calls(root) if n not in visited
            ]
            visited.update(chain)
            if len(chain) < 2:
                continue

            members = [by_name[n] for n in chain if n not in claimed and n in by_name]
            if len(members) < 2:
                continue

            claimed.update(m.name for m in members)
            groups.append(GroupProposal(
                kind=PatternKind.CALL_CHAIN,
                rationale=f"Call chain of {len(chain)} units starting at '{root}'",
                suggested_name=self.suggest_group_name(
                    [m.name for m in members], fallback=root
                ),
                members=members,
                confidence=self.config.call_chain_confidence,
            ))
        return groups

    # -- 5. Residual naming ----------------------------------------------

    def detect_residual_prefixes(
        self, units: list[AnalyzedUnit], claimed: set[str],
    ) -> list[GroupProposal]:
        remaining = [u for u in units if u.name not in claimed]
        by_name = {u.name: u for u in remaining}
        groups = []

        for prefix, names in self._prefix_families([u.name for u in remaining]).items():
            members = [by_name[n] for n in names if n not in claimed]
            if len(members) < 2:
                continue
            claimed.update(m.name for m in members)
            groups.append(GroupProposal(
                kind=PatternKind.SHARED_PREFIX,
                rationale=f"{len(members)} units share the prefix '{prefix}'",
                suggested_name=to_readable_name(prefix),
                members=members,
                confidence=self._prefix_confidence(len(members)),
            ))
        return groups

    def detect_residual_suffixes(
        self, units: list[AnalyzedUnit], claimed: set[str],
    ) -> list[GroupProposal]:
        """Group a base name with the units named ``base-*`` / ``base_*``.

        Bases come from names ending in one of the curated suffixes, so
        ``Frost-Projectile`` anchors ``Frost``; two units that only share
        the suffix are not a family.
        """
        remaining = [u for u in units if u.name not in claimed]
        groups = []
        for base, names in self._suffix_families([u.name for u in remaining]):
            members = [u for u in remaining if u.name in names and u.name not in claimed]
            if len(members) < 2:
                continue
            claimed.update(m.name for m in members)
            groups.append(GroupProposal(
                kind=PatternKind.LIFECYCLE_SUFFIXES,
                rationale=f"'{base}' with {len(members) - 1} suffixed unit(s)",
                suggested_name=to_readable_name(base),
                members=members,
                confidence=self.config.suffix_pattern_confidence,
            ))
        return groups

    # -- Naming report ---------------------------------------------------

    def detect_naming_patterns(
        self, units: list[AnalyzedUnit], context: ContextKind,
    ) -> list[NamingPattern]:
        """Naming families over all unit names. Overlap is allowed."""
        names = [u.name for u in units]

        if context == ContextKind.MOB:
            patterns = []
            by_lower = _lower_index(units)
            for name in names:
                if not self.is_variant(name):
                    continue
                for candidate in self.variant_bases(name):
                    base = by_lower.get(candidate.lower())
                    if base is not None and base.name != name:
                        patterns.append(NamingPattern(
                            kind=PatternKind.MOB_VARIANT_FAMILY,
                            anchor=base.name,
                            member_names=[base.name, name],
                            confidence=self.config.variant_family_confidence,
                        ))
                        break
            return patterns

        patterns = [
            NamingPattern(
                kind=PatternKind.SHARED_PREFIX,
                anchor=prefix,
                member_names=members,
                confidence=self._prefix_confidence(len(members)),
            )
            for prefix, members in self._prefix_families(names).items()
        ]

        by_lower = _lower_index(units)
        seen_bases = set()
        for name in names:
            match = self._lifecycle_name_re.match(name)
            if not match:
                continue
            base = by_lower.get(match.group(1).lower())
            if base is None or base.name in seen_bases:
                continue
            seen_bases.add(base.name)
            siblings = [s.name for s in self._suffixed_siblings(base.name, by_lower)]
            patterns.append(NamingPattern(
                kind=PatternKind.LIFECYCLE_SUFFIXES,
                anchor=base.name,
                member_names=[base.name] + siblings,
                confidence=self.config.lifecycle_naming_confidence,
            ))

        seen_lower = {b.lower() for b in seen_bases}
        for base, related in self._suffix_families(names):
            if base.lower() in seen_lower:
                continue
            patterns.append(NamingPattern(
                kind=PatternKind.LIFECYCLE_SUFFIXES,
                anchor=base,
                member_names=related,
                confidence=self.config.suffix_pattern_confidence,
            ))
        return patterns

    # -- Helpers ---------------------------------------------------------

    def _prefix_families(self, names: list[str]) -> dict[str, list[str]]:
        """Pairwise common prefixes, keyed by prefix in discovery order."""
        families: dict[str, list[str]] = {}
        for i, a in enumerate(names):
            for b in names[i + 1:]:
                prefix = trim_separator(common_prefix(a, b))
                if len(prefix) < self.config.naming_prefix_min_length:
                    continue
                family = families.setdefault(prefix, [])
                for name in (a, b):
                    if name not in family:
                        family.append(name)
        return families

    def _suffix_families(self, names: list[str]) -> list[tuple[str, list[str]]]:
        """(base, related names) for every base implied by a curated suffix.

        Related names are the base itself and names starting with
        ``base-`` or ``base_``, case-insensitive, in input order. Only
        families of two or more are returned, one per base.
        """
        families = []
        seen: set[str] = set()
        for suffix in self.vocabulary.naming_suffixes:
            suffix_lower = suffix.lower()
            for name in names:
                if not name.lower().endswith(suffix_lower):
                    continue
                base = name[:-len(suffix)]
                base_lower = base.lower()
                if not base or base_lower in seen:
                    continue
                related = [
                    n for n in names
                    if n.lower() == base_lower
                    or n.lower().startswith(base_lower + "-")
                    or n.lower().startswith(base_lower + "_")
                ]
                if len(related) < 2:
                    continue
                seen.add(base_lower)
                families.append((base, related))
        return families

    def _prefix_confidence(self, count: int) -> float:
        cfg = self.config
        return min(
            cfg.prefix_max_confidence,
            cfg.prefix_base_confidence + cfg.prefix_step_confidence * count,
        )

    def strip_lifecycle_suffix(self, name: str) -> str:
        match = self._lifecycle_name_re.match(name)
        return match.group(1) if match else name

    def suggest_group_name(self, names: list[str], fallback: str) -> str:
        """Readable name from the members' common prefix, else the fallback."""
        prefix = trim_separator(longest_common_prefix(names))
        if len(prefix) >= self.config.group_name_min_prefix:
            return to_readable_name(prefix)
        return to_readable_name(self.strip_lifecycle_suffix(fallback))


def _lower_index(units: list[AnalyzedUnit]) -> dict[str, AnalyzedUnit]:
    """Case-insensitive name lookup; the first unit with a spelling wins."""
    index: dict[str, AnalyzedUnit] = {}
    for unit in units:
        index.setdefault(unit.name.lower(), unit)
    return index
