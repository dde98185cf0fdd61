"""Stage 1-2: Structural loading and entry extraction.

Parses raw YAML text into a mapping of named entries, decides whether the
document holds mob definitions or skill definitions, and selects the entries
that qualify as analyzable units.
"""

import logging
import re
from typing import Any, Optional

import yaml

from .errors import NoAnalyzableContentError, StructuralError
from .models import ContextKind, LoadedDocument, SkillEntry
from .utils import get_key_ci, has_key_ci
from .vocabulary import Vocabulary, get_default_vocabulary

logger = logging.getLogger(__name__)

NO_MOBS_MESSAGE = (
    "No valid mobs found in file. Make sure mobs have a Type field or "
    "mob-specific fields like Health, Damage, etc."
)
NO_SKILLS_MESSAGE = (
    'No skills found in file. Make sure skills have a "Skills:" list '
    "with valid mechanics."
)

# Entry keys that mark a skill definition even without lines
SKILL_ONLY_KEYS = ("Conditions", "Cooldown", "TriggerConditions", "TargetConditions")


def normalize_lines(value: Any) -> Optional[list]:
    """Coerce a Skills value to a list; a lone string becomes one line."""
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        return [value]
    return None


class StructuralLoader:
    """Parses documents and extracts analyzable entries."""

    _targeter_re = re.compile(r"@\w+")
    _leading_word_re = re.compile(r"^(\w+)(?:\{|\s|$)")
    _mechanic_call_re = re.compile(r"^\w+\{[^}]*\}")

    def __init__(
        self,
        vocabulary: Optional[Vocabulary] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.vocabulary = vocabulary or get_default_vocabulary()
        self.log = log or logger

    def load(
        self,
        text: str,
        forced_context: "str | ContextKind | None" = None,
    ) -> LoadedDocument:
        """Parse text and extract units.

        Raises:
            StructuralError: Text does not parse into a non-empty mapping.
            NoAnalyzableContentError: No entry qualifies as a unit.
        """
        parsed = self.parse(text)
        context = ContextKind.parse(forced_context) or self.classify(parsed)
        entries = self.extract_entries(parsed, context)

        if not entries:
            message = NO_MOBS_MESSAGE if context == ContextKind.MOB else NO_SKILLS_MESSAGE
            raise NoAnalyzableContentError(message, context_kind=context)

        return LoadedDocument(
            context_kind=context,
            entries=entries,
            total_lines=len(text.splitlines()),
        )

    def parse(self, text: str) -> dict:
        """Parse YAML text into a mapping of named entries."""
        try:
            parsed = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise StructuralError(f"YAML parsing failed: {e}") from e

        if parsed is None:
            raise StructuralError("Document is empty")
        if not isinstance(parsed, dict):
            raise StructuralError(
                "Invalid YAML structure: expected a mapping of named entries, "
                f"got {type(parsed).__name__}"
            )
        if not parsed:
            raise StructuralError("Document is empty")
        return parsed

    def classify(self, parsed: dict) -> ContextKind:
        """Decide between mob and skill context by field presence.

        Mob context wins only when mob-bearing entries outnumber
        skill-bearing entries by more than two to one.
        """
        mob_count = 0
        skill_count = 0

        for data in parsed.values():
            if not isinstance(data, dict):
                continue
            if any(self.vocabulary.canonical_mob_field(k) for k in data):
                mob_count += 1
            lines = get_key_ci(data, "Skills")
            if isinstance(lines, list) and lines:
                first = lines[0]
                if isinstance(first, str) and self.looks_like_skill_line(first):
                    skill_count += 1

        context = ContextKind.MOB if mob_count > skill_count * 2 else ContextKind.SKILL_FILE
        self.log.debug(
            "Classified document as %s (mob entries=%d, skill entries=%d)",
            context.value, mob_count, skill_count,
        )
        return context

    def looks_like_skill_line(self, line: str) -> bool:
        """Heuristic check that a string is a skill-line."""
        if not isinstance(line, str):
            return False
        trimmed = line.strip()
        if trimmed.startswith("- "):
            return self.looks_like_skill_line(trimmed[2:])

        if self._targeter_re.search(trimmed):
            return True

        lowered = trimmed.lower()
        match = self._leading_word_re.match(lowered)
        if match and self.vocabulary.is_action(match.group(1)):
            return True

        if self._mechanic_call_re.match(trimmed):
            return True

        return any(kw in lowered for kw in self.vocabulary.skill_line_keywords)

    def extract_entries(self, parsed: dict, context: ContextKind) -> list[SkillEntry]:
        """Select analyzable entries, preserving document order."""
        entries: list[SkillEntry] = []

        for key, data in parsed.items():
            name = str(key)
            if data is None:
                self.log.debug("Skipping %r: empty entry", name)
                continue
            if not isinstance(data, dict):
                self.log.debug(
                    "Skipping %r: not a mapping (%s)", name, type(data).__name__
                )
                continue

            if context == ContextKind.MOB:
                entry = self._extract_mob_entry(name, data)
            else:
                entry = self._extract_skill_entry(name, data)
            if entry is not None:
                entries.append(entry)

        self.log.debug("Extracted %d %s entries", len(entries), context.value)
        return entries

    def _extract_mob_entry(self, name: str, data: dict) -> Optional[SkillEntry]:
        """Keep every recognized mob field so grouping sees the whole mob."""
        raw_extra: dict = {}
        for key, value in data.items():
            canonical = self.vocabulary.canonical_mob_field(key)
            if canonical and canonical not in raw_extra:
                raw_extra[canonical] = value

        if not raw_extra:
            self.log.debug("Skipping %r: no mob fields", name)
            return None

        lines = normalize_lines(get_key_ci(data, "Skills")) or []
        if lines:
            raw_extra["Skills"] = lines

        self.log.debug("Added mob %r with %d skill lines", name, len(lines))
        return SkillEntry(
            name=name,
            source_kind=ContextKind.MOB,
            lines=lines,
            raw_extra=raw_extra,
        )

    def _extract_skill_entry(self, name: str, data: dict) -> Optional[SkillEntry]:
        lines = normalize_lines(get_key_ci(data, "Skills"))

        if not lines:
            if any(has_key_ci(data, k) for k in SKILL_ONLY_KEYS):
                self.log.debug(
                    "Skipping %r: skill-like entry without skill lines", name
                )
            else:
                self.log.debug("Skipping %r: no Skills list", name)
            return None

        on_cooldown = get_key_ci(data, "OnCooldownSkill")
        self.log.debug("Added skill %r with %d lines", name, len(lines))
        return SkillEntry(
            name=name,
            source_kind=ContextKind.SKILL_FILE,
            lines=lines,
            conditions=_as_list(get_key_ci(data, "Conditions")),
            target_conditions=_as_list(get_key_ci(data, "TargetConditions")),
            trigger_conditions=_as_list(get_key_ci(data, "TriggerConditions")),
            cooldown=get_key_ci(data, "Cooldown"),
            on_cooldown_skill=str(on_cooldown) if on_cooldown else None,
        )


def _as_list(value: Any) -> list:
    if isinstance(value, list):
        return value
    return []
