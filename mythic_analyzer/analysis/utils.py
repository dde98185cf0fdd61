"""Shared helpers for the analysis stages."""

import json
import re
from pathlib import Path
from typing import Any, Iterable

import yaml

SCHEMAS_DIR = Path(__file__).parent.parent / "schemas"

_TRAILING_SEPARATOR = re.compile(r"[-_]$")
_CAMEL_BOUNDARY = re.compile(r"([A-Z])")


def common_prefix(a: str, b: str) -> str:
    """Longest common prefix of two strings.

    >>> common_prefix("Fireball-Tick", "Fireball-Hit")
    'Fireball-'
    """
    i = 0
    limit = min(len(a), len(b))
    while i < limit and a[i] == b[i]:
        i += 1
    return a[:i]


def longest_common_prefix(names: Iterable[str]) -> str:
    """Longest prefix shared by every name, or '' for no names."""
    names = list(names)
    if not names:
        return ""
    prefix = names[0]
    for name in names[1:]:
        prefix = common_prefix(prefix, name)
        if not prefix:
            break
    return prefix


def trim_separator(prefix: str) -> str:
    """Drop a single trailing '-' or '_'."""
    return _TRAILING_SEPARATOR.sub("", prefix)


def to_readable_name(name: str) -> str:
    """Turn a unit name into a display name.

    >>> to_readable_name("ZOMBIE_BOMBER")
    'Zombie Bomber'
    >>> to_readable_name("fireBall-Tick")
    'Fire Ball Tick'
    """
    if not name:
        return name
    if name == name.upper():
        return " ".join(
            word[:1] + word[1:].lower() for word in name.split("_")
        ).strip()
    spaced = _CAMEL_BOUNDARY.sub(r" \1", name)
    spaced = re.sub(r"[-_]", " ", spaced).strip()
    return " ".join(
        word[:1].upper() + word[1:].lower() for word in spaced.split()
    )


def describe_call_context(context: str) -> str:
    """Human-readable label for a sub-unit call context."""
    lowered = context.lower()
    if "cooldown" in lowered:
        return "cooldown unit"
    if "tick" in lowered:
        return "tick callback unit"
    if "start" in lowered:
        return "start callback unit"
    if "end" in lowered:
        return "end callback unit"
    if "hit" in lowered or lowered == "ohb":
        return "hit callback unit"
    if "bounce" in lowered:
        return "bounce callback unit"
    if "damage" in lowered:
        return "damage callback unit"
    if "attack" in lowered:
        return "attack callback unit"
    if "interact" in lowered:
        return "interact callback unit"
    return "unit"


def dedupe(items: Iterable[str]) -> tuple[str, ...]:
    """Drop duplicates, keeping first-seen order."""
    return tuple(dict.fromkeys(items))


def load_yaml_file(path: Path) -> dict:
    """Load a YAML file, returning empty dict if not found."""
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_schema(schema_name: str) -> dict:
    """Load a JSON schema from the schemas directory."""
    schema_path = SCHEMAS_DIR / f"{schema_name}.schema.json"
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_path}")

    with open(schema_path) as f:
        return json.load(f)


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge override dict into base dict.

    - Dicts are merged recursively
    - Lists are concatenated (override appended to base)
    - Scalars are replaced by override
    """
    result = base.copy()

    for key, value in override.items():
        if key in result:
            base_val = result[key]
            if isinstance(base_val, dict) and isinstance(value, dict):
                result[key] = deep_merge(base_val, value)
            elif isinstance(base_val, list) and isinstance(value, list):
                # Concatenate lists, avoiding duplicates for simple values
                seen = set()
                merged = []
                for item in base_val + value:
                    if isinstance(item, dict):
                        merged.append(item)
                    elif item not in seen:
                        seen.add(item)
                        merged.append(item)
                result[key] = merged
            else:
                result[key] = value
        else:
            result[key] = value

    return result


def get_key_ci(data: dict, key: str) -> Any:
    """Case-insensitive dict lookup; first matching key wins."""
    if key in data:
        return data[key]
    lowered = key.lower()
    for k, v in data.items():
        if str(k).lower() == lowered:
            return v
    return None


def has_key_ci(data: dict, key: str) -> bool:
    lowered = key.lower()
    return any(str(k).lower() == lowered for k in data)
