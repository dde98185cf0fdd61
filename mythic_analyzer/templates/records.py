"""
Template records - the flattened form an accepted group is stored as.

A record holds a display name, category, difficulty, optional cooldown and
its skill-lines, either directly or split into named sections. Records are
loaded from YAML or JSON files (one record, a list of records, or a mapping
with a ``templates`` list) and validated against
``template_record.schema.json``.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import jsonschema
import yaml

from ..analysis.errors import ConfigError
from ..analysis.models import AnalyzedUnit, ComplexityTier, GroupProposal
from ..analysis.utils import load_schema, to_readable_name

logger = logging.getLogger(__name__)

TIER_ORDER = [
    ComplexityTier.BEGINNER,
    ComplexityTier.INTERMEDIATE,
    ComplexityTier.ADVANCED,
    ComplexityTier.EXPERT,
]


@dataclass
class TemplateSection:
    name: str
    lines: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"name": self.name, "lines": list(self.lines)}


@dataclass
class TemplateRecord:
    """A stored (or about to be stored) skill template."""
    name: str
    category: Optional[str] = None
    difficulty: Optional[str] = None
    cooldown: Any = None
    skill_lines: list[str] = field(default_factory=list)
    sections: list[TemplateSection] = field(default_factory=list)

    @property
    def section_count(self) -> int:
        """Number of sections; a record without sections counts as one."""
        return len(self.sections) or 1

    def all_lines(self) -> list[str]:
        """Top-level lines followed by every section's lines."""
        lines = list(self.skill_lines)
        for section in self.sections:
            lines.extend(section.lines)
        return lines

    @classmethod
    def from_dict(cls, data: dict) -> "TemplateRecord":
        return cls(
            name=data["name"],
            category=data.get("category"),
            difficulty=data.get("difficulty"),
            cooldown=data.get("cooldown"),
            skill_lines=list(data.get("skill_lines", [])),
            sections=[
                TemplateSection(
                    name=s.get("name", f"Section {i + 1}"),
                    lines=list(s.get("lines", [])),
                )
                for i, s in enumerate(data.get("sections", []))
            ],
        )

    def to_dict(self) -> dict:
        result = {
            "name": self.name,
            "category": self.category,
            "difficulty": self.difficulty,
            "skill_lines": list(self.skill_lines),
            "sections": [s.to_dict() for s in self.sections],
        }
        if self.cooldown is not None:
            result["cooldown"] = self.cooldown
        return result


def load_template_records(path: Path) -> list[TemplateRecord]:
    """Load and validate template records from a YAML or JSON file.

    Raises:
        ConfigError: The file is missing, unparseable, or a record fails
            schema validation.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Template file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse {path}: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("templates"), list):
        raw_records = data["templates"]
    elif isinstance(data, dict):
        raw_records = [data]
    elif isinstance(data, list):
        raw_records = data
    else:
        raise ConfigError(f"{path} does not contain template records")

    schema = load_schema("template_record")
    records = []
    for i, raw in enumerate(raw_records):
        try:
            jsonschema.validate(instance=raw, schema=schema)
        except jsonschema.ValidationError as e:
            raise ConfigError(f"{path}: record {i}: {e.message}") from e
        records.append(TemplateRecord.from_dict(raw))

    logger.debug("Loaded %d template record(s) from %s", len(records), path)
    return records


def record_from_unit(unit: AnalyzedUnit) -> TemplateRecord:
    """Record for a single standalone unit."""
    return TemplateRecord(
        name=to_readable_name(unit.name),
        category=unit.suggested_category,
        difficulty=unit.complexity_tier.value,
        cooldown=unit.cooldown,
        skill_lines=list(unit.lines),
    )


def record_from_group(group: GroupProposal) -> TemplateRecord:
    """Record for an accepted group proposal, one section per member.

    Category is the most common member category (first seen wins a tie),
    difficulty the hardest member tier, cooldown the first one declared.
    """
    members = group.members
    categories = Counter(m.suggested_category for m in members)
    category = categories.most_common(1)[0][0] if categories else None
    difficulty = None
    if members:
        difficulty = max(
            (m.complexity_tier for m in members), key=TIER_ORDER.index
        ).value
    cooldown = next((m.cooldown for m in members if m.cooldown is not None), None)

    return TemplateRecord(
        name=group.suggested_name,
        category=category,
        difficulty=difficulty,
        cooldown=cooldown,
        sections=[TemplateSection(name=m.name, lines=list(m.lines)) for m in members],
    )
