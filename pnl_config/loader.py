"""
YAML loader for IngestionSettings.

Resolution order (later wins):
    1. dataclass defaults;
    2. the YAML file given as ``path``, else the file named by ``PNL_CONFIG``;
    3. the ``DATABASE_URL`` environment variable.

Raises:
    FileNotFoundError: if the YAML file does not exist.
    yaml.YAMLError: if the file contains invalid YAML.
    ValueError: on unknown keys, a non-mapping document, or bad values.
"""

from __future__ import annotations

import os
from dataclasses import fields, replace
from pathlib import Path
from typing import Any

import yaml

from pnl_config.schema import IngestionSettings

CONFIG_ENV_VAR = "PNL_CONFIG"
DATABASE_URL_ENV_VAR = "DATABASE_URL"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load one YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def parse_settings(data: dict[str, Any]) -> IngestionSettings:
    """Build settings from a mapping, coercing scalar types."""
    unknown = sorted(set(data) - IngestionSettings.field_names())
    if unknown:
        raise ValueError(f"Unknown setting(s): {', '.join(unknown)}")

    kwargs: dict[str, Any] = {}
    for f in fields(IngestionSettings):
        if f.name not in data:
            continue
        value = data[f.name]
        default = f.default
        try:
            if isinstance(default, bool) or default is None:
                kwargs[f.name] = value
            elif isinstance(default, int):
                kwargs[f.name] = int(value)
            elif isinstance(default, float):
                kwargs[f.name] = float(value)
            else:
                kwargs[f.name] = str(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid value for {f.name}: {value!r}") from exc
    return IngestionSettings(**kwargs)


def load_settings(path: str | Path | None = None) -> IngestionSettings:
    """Resolve settings from defaults, YAML and environment."""
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        path = Path(env_path) if env_path else None

    data = load_yaml_file(Path(path)) if path is not None else {}
    settings = parse_settings(data)

    database_url = os.environ.get(DATABASE_URL_ENV_VAR)
    if database_url:
        settings = replace(settings, database_url=database_url)
    return settings
