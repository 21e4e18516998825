"""YAML configuration loading."""

from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar

import yaml

T = TypeVar("T")


def deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    """Merge dict b into a recursively (b wins)."""
    out = dict(a)
    for k, v in (b or {}).items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def load_yaml(path: str) -> Dict[str, Any]:
    """Read a YAML mapping (an empty file is an empty mapping)."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")
    with open(p, 'r') as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config root must be dict, got {type(data)}")
    return data


def load_config(path: str, override_path: Optional[str] = None) -> Dict[str, Any]:
    """Load a config file, optionally merged with an override file."""
    data = load_yaml(path)
    if override_path:
        data = deep_merge(data, load_yaml(override_path))
    return data


def build_dataclass(cls: Type[T], data: Optional[Dict[str, Any]], section: str) -> T:
    """Instantiate a config dataclass from a mapping.

    Raises:
        TypeError: If the section is not a mapping
        ValueError: On keys the dataclass does not define
    """
    data = data or {}
    if not isinstance(data, dict):
        raise TypeError(f"Config section '{section}' must be a dict, got {type(data)}")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown keys in config section '{section}': {', '.join(unknown)}")
    return cls(**data)
