"""
Configuration management for the Mythic analyzer.

User settings live in ``config.yaml`` under the XDG config directory:

    analyzer:      # overrides for AnalyzerConfig, section by section
      complexity:
        line_weight: 3
    vocabulary:    # deep-merged over the packaged vocabulary
      actions: [mycustommechanic]
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from .analysis.analyzer_config import AnalyzerConfig, load_analyzer_config
from .analysis.errors import ConfigError
from .analysis.vocabulary import Vocabulary, get_default_vocabulary, load_vocabulary

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Get the configuration directory, creating it if needed."""
    # Use XDG_CONFIG_HOME if set, otherwise ~/.config
    config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    config_dir = Path(config_home) / "mythic-analyzer"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.yaml"


def load_config() -> dict:
    """Load configuration from disk. A missing or unreadable file is empty."""
    config_path = get_config_path()
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (yaml.YAMLError, OSError) as e:
            logger.warning("Ignoring unreadable config %s: %s", config_path, e)
            return {}
        return data if isinstance(data, dict) else {}
    return {}


def save_config(config: dict) -> None:
    """Save configuration to disk."""
    config_path = get_config_path()
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)


def set_config_value(key: str, value: str) -> dict:
    """Set a dotted key (``analyzer.complexity.line_weight``) and save.

    The value is parsed as YAML, so ``3`` is stored as an int and
    ``[a, b]`` as a list.
    """
    parts = [p for p in key.split(".") if p]
    if not parts:
        raise ConfigError("Empty config key")

    config = load_config()
    node = config
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = _parse_value(value)

    save_config(config)
    return config


def _parse_value(value: str) -> Any:
    try:
        return yaml.safe_load(value)
    except yaml.YAMLError:
        return value


def load_user_settings() -> tuple[AnalyzerConfig, Vocabulary]:
    """Analyzer config and vocabulary with the user's overrides applied."""
    config = load_config()
    analyzer = config.get("analyzer")
    overrides = config.get("vocabulary")

    if analyzer is not None and not isinstance(analyzer, dict):
        raise ConfigError("'analyzer' section must be a mapping")
    if overrides is not None and not isinstance(overrides, dict):
        raise ConfigError("'vocabulary' section must be a mapping")

    vocabulary = load_vocabulary(overrides=overrides) if overrides else get_default_vocabulary()
    return load_analyzer_config(analyzer), vocabulary
