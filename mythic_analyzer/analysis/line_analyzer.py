"""Stage 3: Skill-line analysis.

Tokenizes every skill-line of an entry into its components (action keyword,
sub-unit calls, target selectors, inline guards, lifecycle events and common
attributes), folds in the entry's own declared fields, then scores
complexity and suggests a category.

Lines are matched lower-cased; extracted names keep their original case.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .analyzer_config import ComplexityConfig
from .models import (
    AnalyzedUnit, CallContext, ComplexityTier, SkillEntry, SubUnitCall,
)
from .utils import dedupe
from .vocabulary import Vocabulary, get_default_vocabulary

logger = logging.getLogger(__name__)

# (pattern, attribute key). Short aliases only count at a parameter boundary.
ATTRIBUTE_PATTERNS = [
    (r"\bamount=(\d+(?:\.\d+)?)", "amount"),
    (r"(?:^|[;{])\s*a=(\d+(?:\.\d+)?)", "damage"),
    (r"\bdamage=(\d+(?:\.\d+)?)", "damage"),
    (r"\bdelay\s+(\d+)", "delay"),
    (r"(?:^|[;{])\s*d=(\d+)", "duration"),
    (r"\bduration=(\d+)", "duration"),
    (r"\bvelocity=(\d+(?:\.\d+)?)", "velocity"),
    (r"(?:^|[;{])\s*v=(\d+(?:\.\d+)?)", "velocity"),
    (r"\brepeat=(\d+)", "repeat"),
    (r"(?:^|[;{])\s*r=(\d+(?:\.\d+)?)", "radius"),
    (r"\bradius=(\d+(?:\.\d+)?)", "radius"),
    (r"\blevel=(\d+)", "level"),
    (r"\blvl=(\d+)", "level"),
    (r"(?:^|[;{])\s*l=(\d+)", "level"),
    (r"\btype=(\w+)", "type"),
    (r"(?:^|[;{])\s*t=(\w+)", "type"),
    (r"\binterval=(\d+)", "interval"),
    (r"(?:^|[;{])\s*i=(\d+)", "interval"),
    (r"\bticks=(\d+)", "ticks"),
    (r"\bcooldown=(\d+(?:\.\d+)?)", "cooldown"),
]

CONDITION_NAME_RE = re.compile(r"^-?\s*(\w+)")


@dataclass
class _UnitProfile:
    """Mutable accumulator used while a single unit is being analyzed."""
    actions: list[str] = field(default_factory=list)
    target_refs: list[str] = field(default_factory=list)
    guard_refs: list[str] = field(default_factory=list)
    lifecycle_refs: list[str] = field(default_factory=list)
    attributes: dict[str, list[str]] = field(default_factory=dict)
    calls: list[SubUnitCall] = field(default_factory=list)

    def add_attribute(self, key: str, value: str) -> None:
        self.attributes.setdefault(key, []).append(value)


class LineAnalyzer:
    """Turns SkillEntry objects into immutable AnalyzedUnit objects.

    Holds its own compiled matchers; an instance is meant for one caller
    at a time.
    """

    def __init__(
        self,
        vocabulary: Optional[Vocabulary] = None,
        complexity: Optional[ComplexityConfig] = None,
        external_names: Optional[Iterable[str]] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.vocabulary = vocabulary or get_default_vocabulary()
        self.complexity = complexity or ComplexityConfig()
        self.external_names = frozenset(external_names or ())
        self.log = log or logger

        self._action_re = re.compile(r"^-?\s*(\w+)")
        self._sub_call_re = re.compile(
            r"skill\{(?:[^}]*?[;\s])?s=([^;}\s]+)", re.IGNORECASE
        )
        callbacks = sorted(self.vocabulary.callback_attributes, key=len, reverse=True)
        self._callback_re = re.compile(
            r"(?<![\w])(" + "|".join(re.escape(c) for c in callbacks) + r")=([^;}\s]+)",
            re.IGNORECASE,
        ) if callbacks else None
        self._target_re = re.compile(r"@(\w+)(?:\{[^}]*\})?")
        self._guard_re = re.compile(r"\?!?(\w+)")
        self._lifecycle_re = re.compile(r"~on\w+")
        self._attribute_res = [
            (re.compile(pattern, re.IGNORECASE), key)
            for pattern, key in ATTRIBUTE_PATTERNS
        ]

    def analyze_all(self, entries: Iterable[SkillEntry]) -> list[AnalyzedUnit]:
        """Analyze entries in order. Each entry is independent of the others."""
        units = [self.analyze(entry) for entry in entries]
        self.log.info("Analyzed %d units", len(units))
        return units

    def analyze(self, entry: SkillEntry) -> AnalyzedUnit:
        """Analyze one entry."""
        profile = _UnitProfile()

        for line in entry.lines:
            if not isinstance(line, str):
                continue
            self.analyze_line(line, profile)

        # Entry-level fields
        for cond_list in (
            entry.conditions, entry.target_conditions, entry.trigger_conditions
        ):
            profile.guard_refs.extend(extract_condition_names(cond_list))
        if entry.cooldown is not None:
            profile.add_attribute("cooldown", str(entry.cooldown))
        if entry.on_cooldown_skill:
            profile.calls.append(
                SubUnitCall(entry.on_cooldown_skill, "oncooldownskill")
            )

        actions = dedupe(profile.actions)
        guards = dedupe(profile.guard_refs)
        lifecycle = dedupe(profile.lifecycle_refs)
        calls = tuple(profile.calls)

        score = self.complexity_score(
            len(entry.lines), actions, len(calls), len(guards), len(lifecycle)
        )
        unit = AnalyzedUnit(
            name=entry.name,
            source_kind=entry.source_kind,
            line_count=len(entry.lines),
            lines=tuple(line for line in entry.lines if isinstance(line, str)),
            actions=actions,
            target_refs=dedupe(profile.target_refs),
            guard_refs=guards,
            lifecycle_refs=lifecycle,
            attributes=profile.attributes,
            sub_unit_calls=calls,
            complexity_tier=self.tier_for_score(score),
            complexity_score=score,
            suggested_category=self.suggest_category(entry.name, actions),
            raw_extra=dict(entry.raw_extra),
            cooldown=entry.cooldown,
        )
        self.log.debug(
            "Unit %r: %d lines, %d actions, %d calls, tier=%s, category=%s",
            unit.name, unit.line_count, len(unit.actions),
            len(unit.sub_unit_calls), unit.complexity_tier.value,
            unit.suggested_category,
        )
        return unit

    def analyze_line(self, line: str, profile: _UnitProfile) -> None:
        """Extract every component of one skill-line into the profile."""
        trimmed = line.strip()
        lowered = trimmed.lower()

        match = self._action_re.match(lowered)
        if match and self.vocabulary.is_action(match.group(1)):
            profile.actions.append(match.group(1))

        for m in self._sub_call_re.finditer(trimmed):
            name = m.group(1)
            context = (
                CallContext.EXTERNAL if name in self.external_names
                else CallContext.DIRECT
            )
            profile.calls.append(SubUnitCall(name, context))

        if self._callback_re is not None:
            for m in self._callback_re.finditer(trimmed):
                profile.calls.append(SubUnitCall(m.group(2), m.group(1).lower()))

        for m in self._target_re.finditer(trimmed):
            profile.target_refs.append("@" + m.group(1).lower())

        for m in self._guard_re.finditer(trimmed):
            profile.guard_refs.append(m.group(0).lower())

        for m in self._lifecycle_re.finditer(lowered):
            if self.vocabulary.is_lifecycle_event(m.group(0)):
                profile.lifecycle_refs.append(m.group(0))

        for regex, key in self._attribute_res:
            for m in regex.finditer(trimmed):
                profile.add_attribute(key, m.group(1))

    def complexity_score(
        self,
        line_count: int,
        actions: Iterable[str],
        call_count: int,
        guard_count: int,
        lifecycle_count: int,
    ) -> int:
        cfg = self.complexity
        actions = list(actions)
        score = (
            line_count * cfg.line_weight
            + len(actions) * cfg.action_weight
            + call_count * cfg.call_weight
            + guard_count * cfg.guard_weight
            + lifecycle_count * cfg.lifecycle_weight
        )
        for action in actions:
            if action in self.vocabulary.complex_actions:
                score += cfg.complex_action_bonus
        return score

    def tier_for_score(self, score: int) -> ComplexityTier:
        cfg = self.complexity
        if score < cfg.beginner_below:
            return ComplexityTier.BEGINNER
        if score < cfg.intermediate_below:
            return ComplexityTier.INTERMEDIATE
        if score < cfg.advanced_below:
            return ComplexityTier.ADVANCED
        return ComplexityTier.EXPERT

    def suggest_category(self, name: str, actions: Iterable[str]) -> str:
        """Score each category by action and name keyword hits."""
        actions = list(actions)
        name_lower = name.lower()
        best_category, best_score = "utility", 0

        for category, keywords in self.vocabulary.categories:
            score = 0
            for action in actions:
                if any(kw in action for kw in keywords):
                    score += 3
            for kw in keywords:
                if kw in name_lower:
                    score += 5
            if score > best_score:
                best_category, best_score = category, score

        return best_category


def extract_condition_names(conditions: Iterable) -> list[str]:
    """First word of each declared condition line."""
    names = []
    for cond in conditions or []:
        if isinstance(cond, str):
            match = CONDITION_NAME_RE.match(cond.strip())
            if match:
                names.append(match.group(1))
    return names
