"""Tests for vocabulary loading and lookups."""

import pytest

from mythic_analyzer.analysis.errors import ConfigError
from mythic_analyzer.analysis.vocabulary import (
    VOCABULARY_PATH, build_vocabulary, get_default_vocabulary, load_vocabulary,
)
from mythic_analyzer.analysis.utils import load_yaml_file


class TestDefaultVocabulary:
    def test_loaded_once(self):
        assert get_default_vocabulary() is get_default_vocabulary()

    def test_action_lookup_is_case_insensitive(self, vocabulary):
        assert vocabulary.is_action("damage")
        assert vocabulary.is_action("Projectile")
        assert not vocabulary.is_action("notamechanic")

    def test_lifecycle_events_keep_sigil(self, vocabulary):
        assert vocabulary.is_lifecycle_event("~onDeath")
        assert not vocabulary.is_lifecycle_event("ondeath")

    def test_target_selectors(self, vocabulary):
        assert vocabulary.is_target_selector("@Self")
        assert vocabulary.is_target_selector("@PlayersInRadius")

    def test_mob_fields_canonicalized(self, vocabulary):
        assert vocabulary.canonical_mob_field("health") == "Health"
        assert vocabulary.canonical_mob_field("MOBTYPE") == "MobType"
        assert vocabulary.canonical_mob_field("Skills") is None

    def test_categories_keep_table_order(self, vocabulary):
        names = [name for name, _ in vocabulary.categories]
        assert names[0] == "combat"
        assert "utility" in names

    def test_complex_actions(self, vocabulary):
        assert "projectile" in vocabulary.complex_actions
        assert "damage" not in vocabulary.complex_actions


class TestLoadVocabulary:
    def test_overrides_extend_lists(self):
        vocab = load_vocabulary(overrides={"actions": ["mycustommechanic"]})
        assert vocab.is_action("mycustommechanic")
        assert vocab.is_action("damage")

    def test_overrides_add_category_keywords(self):
        vocab = load_vocabulary(overrides={"categories": {"boss": ["warlord"]}})
        keywords = dict(vocab.categories)["boss"]
        assert "warlord" in keywords
        assert "boss" in keywords

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigError):
            load_vocabulary(path=tmp_path / "missing.yaml")

    def test_schema_violation_raises(self):
        raw = load_yaml_file(VOCABULARY_PATH)
        raw["actions"] = "damage"
        with pytest.raises(ConfigError, match="Invalid vocabulary"):
            build_vocabulary(raw)

    def test_missing_required_table_raises(self):
        raw = load_yaml_file(VOCABULARY_PATH)
        del raw["mob_fields"]
        with pytest.raises(ConfigError):
            build_vocabulary(raw)
