"""Layered configuration loading.

Every source is first reshaped into the sectioned layout of
``config.yaml`` and then deep-merged, later layers winning::

    DEFAULT_CONFIG < YAML file < environment (.env included) < CLI flags

Flat keys (``browser_max_sessions``, ``goodstream_api_key``) are what the
environment and the CLI produce; YAML may use either shape.
"""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

_SECTIONS: frozenset[str] = frozenset(
    {"http", "browser", "logging", "cache", "providers"}
)
_TOP_LEVEL: tuple[str, ...] = ("app_name", "environment")

# flat key -> (section, key inside section)
_FLAT_KEYS: dict[str, tuple[str, str]] = {
    f"{section}_{key}": (section, key)
    for section, keys in {
        "http": ("timeout_seconds", "user_agent"),
        "browser": (
            "headless",
            "navigation_timeout_ms",
            "settle_delay_ms",
            "max_sessions",
            "stealth",
            "user_agent",
        ),
        "cache": ("ttl_seconds", "max_entries"),
    }.items()
    for key in keys
}
_FLAT_KEYS["log_level"] = ("logging", "level")
_FLAT_KEYS["log_format"] = ("logging", "format")

_API_KEY_SUFFIX = "_api_key"


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge *override* into *base* in place; nested mappings merge key by key."""
    for key, value in override.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _deep_merge(current, value)
        elif isinstance(value, Mapping):
            base[key] = deepcopy(dict(value))
        else:
            base[key] = value
    return base


def _normalize_layer(data: Mapping[str, Any]) -> dict[str, Any]:
    """Reshape one layer into the sectioned layout.

    ``<provider>_api_key`` becomes ``providers.<provider>.api_key`` so a
    key supplied through the environment lands on the right provider.
    """
    out: dict[str, Any] = {
        name: deepcopy(dict(data[name]))
        for name in _SECTIONS
        if isinstance(data.get(name), Mapping)
    }
    out.update({name: data[name] for name in _TOP_LEVEL if name in data})

    for flat_key, (section, key) in _FLAT_KEYS.items():
        if flat_key in data:
            out.setdefault(section, {})[key] = data[flat_key]

    for flat_key, value in data.items():
        if value is None or not flat_key.endswith(_API_KEY_SUFFIX):
            continue
        provider = flat_key[: -len(_API_KEY_SUFFIX)]
        providers = out.setdefault("providers", {})
        providers.setdefault(provider, {})["api_key"] = value

    return out


def _read_yaml_config(config_path: Path) -> dict[str, Any]:
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
    """Build the validated ``AppConfig`` from all layers.

    Reads files but never creates any.

    Raises:
        FileNotFoundError: *config_path* or *dotenv_path* does not exist.
        ValueError: the YAML document is not a mapping.
        pydantic.ValidationError: the merged result is invalid.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        # Real environment variables keep precedence over the .env file
        load_dotenv(dotenv_path, override=False)

    layers: list[Mapping[str, Any]] = [deepcopy(DEFAULT_CONFIG)]
    if config_path is not None:
        layers.append(_read_yaml_config(config_path))
    layers.append(EnvOverrides().to_update_dict())
    layers.append(cli_overrides or {})

    merged: dict[str, Any] = {}
    for layer in layers:
        _deep_merge(merged, _normalize_layer(layer))

    return AppConfig.model_validate(merged)
