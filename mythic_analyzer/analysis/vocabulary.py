"""Vocabulary tables for skill-line analysis.

Loads the packaged ``data/vocabulary.yaml`` (optionally deep-merged with
user overrides), validates it against ``vocabulary.schema.json`` and freezes
it into hash-set lookups. The default vocabulary is built once per process
and shared read-only.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import jsonschema

from .errors import ConfigError
from .utils import deep_merge, load_schema, load_yaml_file

logger = logging.getLogger(__name__)

VOCABULARY_PATH = Path(__file__).parent.parent / "data" / "vocabulary.yaml"

DEFAULT_LIFECYCLE_SUFFIXES = ("Start", "Tick", "End", "Hit", "Cooldown")


@dataclass(frozen=True)
class Vocabulary:
    """Immutable lookup tables. All membership sets are lower-cased."""
    actions: frozenset
    target_selectors: frozenset
    lifecycle_events: frozenset
    complex_actions: frozenset
    callback_attributes: tuple[str, ...]
    lifecycle_suffixes: tuple[str, ...]
    naming_suffixes: tuple[str, ...]
    mob_fields: tuple[str, ...]  # canonical spelling, order preserved
    categories: tuple[tuple[str, tuple[str, ...]], ...]
    skill_line_keywords: tuple[str, ...]
    variant_marker: str = "DUMMY"
    mob_field_index: dict = field(default_factory=dict, compare=False, hash=False)

    def is_action(self, word: str) -> bool:
        return word.lower() in self.actions

    def is_target_selector(self, token: str) -> bool:
        return token.lower() in self.target_selectors

    def is_lifecycle_event(self, token: str) -> bool:
        return token.lower() in self.lifecycle_events

    def canonical_mob_field(self, key: str) -> Optional[str]:
        """Return the canonical mob field name for a key, or None."""
        return self.mob_field_index.get(str(key).lower())


def build_vocabulary(raw: dict) -> Vocabulary:
    """Validate a raw vocabulary mapping and freeze it."""
    try:
        jsonschema.validate(instance=raw, schema=load_schema("vocabulary"))
    except jsonschema.ValidationError as e:
        raise ConfigError(f"Invalid vocabulary: {e.message}") from e

    categories = tuple(
        (str(name), tuple(str(k).lower() for k in keywords))
        for name, keywords in raw["categories"].items()
    )
    mob_fields = tuple(dict.fromkeys(raw["mob_fields"]))
    mob_field_index: dict[str, str] = {}
    for name in mob_fields:
        mob_field_index.setdefault(name.lower(), name)

    return Vocabulary(
        actions=frozenset(a.lower() for a in raw["actions"]),
        target_selectors=frozenset(t.lower() for t in raw["target_selectors"]),
        lifecycle_events=frozenset(e.lower() for e in raw["lifecycle_events"]),
        complex_actions=frozenset(a.lower() for a in raw.get("complex_actions", [])),
        callback_attributes=tuple(
            dict.fromkeys(c.lower() for c in raw.get("callback_attributes", []))
        ),
        lifecycle_suffixes=tuple(
            raw.get("lifecycle_suffixes", DEFAULT_LIFECYCLE_SUFFIXES)
        ),
        naming_suffixes=tuple(raw.get("naming_suffixes", [])),
        mob_fields=mob_fields,
        categories=categories,
        skill_line_keywords=tuple(
            k.lower() for k in raw.get("skill_line_keywords", [])
        ),
        variant_marker=raw.get("variant_marker", "DUMMY"),
        mob_field_index=mob_field_index,
    )


def load_vocabulary(
    path: Path | None = None,
    overrides: dict | None = None,
) -> Vocabulary:
    """Load a vocabulary file, deep-merging optional overrides on top."""
    path = path or VOCABULARY_PATH
    raw = load_yaml_file(path)
    if not raw:
        raise ConfigError(f"Vocabulary file missing or empty: {path}")
    if overrides:
        raw = deep_merge(raw, overrides)
        logger.debug("Applied vocabulary overrides: %s", sorted(overrides))
    vocab = build_vocabulary(raw)
    logger.debug(
        "Loaded vocabulary from %s: %d actions, %d selectors, %d events",
        path, len(vocab.actions), len(vocab.target_selectors),
        len(vocab.lifecycle_events),
    )
    return vocab


_default_vocabulary: Optional[Vocabulary] = None


def get_default_vocabulary() -> Vocabulary:
    """The packaged vocabulary, built on first use and reused afterwards."""
    global _default_vocabulary
    if _default_vocabulary is None:
        _default_vocabulary = load_vocabulary()
    return _default_vocabulary
