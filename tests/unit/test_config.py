"""Tests for the user config file."""

import pytest

from mythic_analyzer import config as user_config
from mythic_analyzer.analysis.errors import ConfigError


def test_config_dir_under_xdg(config_home):
    assert user_config.get_config_dir() == config_home / "mythic-analyzer"
    assert user_config.get_config_dir().is_dir()


def test_missing_file_is_empty(config_home):
    assert user_config.load_config() == {}


def test_unreadable_file_is_empty(config_home, caplog):
    user_config.get_config_path().write_text("analyzer: [unclosed\n")
    with caplog.at_level("WARNING"):
        assert user_config.load_config() == {}
    assert "Ignoring unreadable config" in caplog.text


def test_set_value_parses_yaml(config_home):
    user_config.set_config_value("analyzer.complexity.line_weight", "3")
    user_config.set_config_value("vocabulary.actions", "[mycustommechanic]")

    saved = user_config.load_config()
    assert saved["analyzer"]["complexity"]["line_weight"] == 3
    assert saved["vocabulary"]["actions"] == ["mycustommechanic"]


def test_set_value_replaces_scalar_parent(config_home):
    user_config.set_config_value("analyzer", "off")
    user_config.set_config_value("analyzer.detectors.call_chain_confidence", "0.8")
    assert user_config.load_config() == {
        "analyzer": {"detectors": {"call_chain_confidence": 0.8}},
    }


def test_empty_key_rejected(config_home):
    with pytest.raises(ConfigError):
        user_config.set_config_value("..", "1")


def test_user_settings_applied(config_home):
    user_config.save_config({
        "analyzer": {"complexity": {"line_weight": 7}},
        "vocabulary": {"actions": ["mycustommechanic"]},
    })
    analyzer, vocabulary = user_config.load_user_settings()

    assert analyzer.complexity.line_weight == 7
    assert vocabulary.is_action("mycustommechanic")


def test_user_settings_default(config_home):
    analyzer, vocabulary = user_config.load_user_settings()
    assert analyzer.complexity.line_weight == 2
    assert not vocabulary.is_action("mycustommechanic")


def test_bad_section_rejected(config_home):
    user_config.save_config({"analyzer": ["not", "a", "mapping"]})
    with pytest.raises(ConfigError, match="analyzer"):
        user_config.load_user_settings()
