"""Layered configuration: defaults < YAML < KVLINK_* env < CLI overrides.

Every layer is normalized to the sectioned shape of config.yaml before
merging, so ``redis_host`` (env/CLI) and ``redis: {host: ...}`` (YAML)
land on the same key. Validation happens once, on the merged result.
"""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

_TOP_LEVEL_KEYS = ("app_name", "environment")

# flat key -> (section, key)
_FLAT_KEYS: dict[str, tuple[str, str]] = {
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
    "redis_host": ("redis", "host"),
    "redis_port": ("redis", "port"),
    "redis_password": ("redis", "password"),
    "cache_ttl_seconds": ("cache", "ttl_seconds"),
}

_SECTIONS = frozenset(section for section, _ in _FLAT_KEYS.values())


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into ``base`` in place; nested mappings merge, the rest replaces."""
    for key, value in override.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _deep_merge(current, value)
        else:
            base[key] = value
    return base


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Bring one layer into the sectioned shape, dropping unknown keys."""
    out: dict[str, Any] = {
        key: layer[key] for key in _TOP_LEVEL_KEYS if key in layer
    }

    for section in _SECTIONS:
        block = layer.get(section)
        if isinstance(block, Mapping):
            out[section] = dict(block)

    for flat_key, (section, key) in _FLAT_KEYS.items():
        if flat_key in layer:
            out.setdefault(section, {})[key] = layer[flat_key]

    return out


def _yaml_layer(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(config_path)
    parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(parsed)!r}")
    return parsed


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """Build the validated AppConfig from all layers.

    A ``.env`` file feeds the environment layer; variables already set in
    the real environment win over it. Nothing is written to disk.

    Raises:
        FileNotFoundError: ``config_path`` or ``dotenv_path`` does not exist.
        ValueError: the YAML document is not a mapping.
        pydantic.ValidationError: the merged values are invalid.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    layers: list[Mapping[str, Any]] = [deepcopy(DEFAULT_CONFIG)]
    if config_path is not None:
        layers.append(_yaml_layer(config_path))
    layers.append(EnvOverrides().to_update_dict())
    layers.append(cli_overrides or {})

    merged: dict[str, Any] = {}
    for layer in layers:
        _deep_merge(merged, _sectioned(layer))

    return AppConfig.model_validate(merged)
