"""Configuration source utilities for :mod:`carbon_lifecycle.config_loader`."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import cast

import yaml

from carbon_lifecycle.settings import LifecycleSettings

LOGGER = logging.getLogger(__name__)

_DEFAULT_CANDIDATES: tuple[Path, ...] = (
    Path("config/carbon_lifecycle.yml"),
    Path("config/carbon_lifecycle.yaml"),
    Path("config/carbon_lifecycle.json"),
)


def candidate_paths(path: str | None, settings: LifecycleSettings) -> tuple[Path, ...]:
    """Return the configuration files to check, in priority order.

    An explicit ``path`` wins over ``CARBON_LIFECYCLE_CONFIG_PATH``, which in
    turn wins over the default ``config/`` locations.
    """

    if path is not None:
        return (Path(path),)
    if settings.config_path:
        return (Path(settings.config_path),)
    return _DEFAULT_CANDIDATES


def load_structured_config(
    path: str | None, settings: LifecycleSettings
) -> dict[str, object] | None:
    """Return the contents of the first readable file from :func:`candidate_paths`.

    Unreadable or malformed files are logged and skipped, so a broken
    configuration file degrades to the defaults instead of failing startup.
    """

    candidates: Iterable[Path] = candidate_paths(path, settings)
    for candidate in candidates:
        data = _load_config_file(candidate)
        if data is not None:
            LOGGER.debug("Loaded configuration from %s", candidate)
            return data
    return None


def _load_config_file(path: Path) -> dict[str, object] | None:
    """Dispatch on the file suffix; missing files yield ``None``."""

    if not path.is_file():
        return None
    suffix = path.suffix.lower()
    if suffix == ".json":
        return _load_json(path)
    if suffix in {".yml", ".yaml"}:
        return _load_yaml(path)
    LOGGER.warning("Ignoring configuration file with unknown suffix: %s", path)
    return None


def _load_json(path: Path) -> dict[str, object] | None:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        LOGGER.warning("Unreadable JSON configuration %s: %s", path, exc)
        return None
    return _normalize_mapping(data)


def _load_yaml(path: Path) -> dict[str, object] | None:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        LOGGER.warning("Unreadable YAML configuration %s: %s", path, exc)
        return None
    return _normalize_mapping(data)


def _normalize_mapping(value: object) -> dict[str, object] | None:
    """Keep the string-keyed entries of a top-level mapping; reject anything else."""

    if not isinstance(value, dict):
        return None
    value_dict = cast(dict[object, object], value)
    return {key: item for key, item in value_dict.items() if isinstance(key, str)}
