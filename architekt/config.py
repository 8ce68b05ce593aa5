"""Project configuration for Architekt.

This module locates the project root and resolves every resource directory
the render pipeline reads from or writes to.

Settings are layered, lowest precedence first:
    1. DEFAULT_CONFIG built into Architekt.
    2. The project config file (architekt.json, or architekt.yaml/.yml),
       found by walking up from the invocation directory.
    3. Command line overrides.

A file value whose type differs from the default's type is dropped with a
warning and the default is kept.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from .logging import get_logger

logger = get_logger("config")

DEFAULT_CONFIG_FILE_NAME = "architekt.json"
CONFIG_FILE_NAMES = (DEFAULT_CONFIG_FILE_NAME, "architekt.yaml", "architekt.yml")

DEFAULT_CONFIG: dict[str, Any] = {
    "source": "src/",
    "outDir": "build/",
    # relative to the source directory
    "resources": {
        "templateDir": "views/",
        "controllerDir": "data/",
        "partialDirs": ["partials"],
        "layoutDir": "layouts/",
        "helperDir": "helpers/",
        "assetDir": "assets/",
    },
    "assetDirs": ["stylesheets/", "scripts/", "images"],
}

# Settings resolved against the project root rather than the source directory.
_ROOT_SETTINGS = ("source", "outDir")

_FILE_LOADERS: dict[str, Callable[[Any], Any]] = {
    ".json": json.load,
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
}


class ConfigError(Exception):
    """Raised when the project root or its config file cannot be resolved."""


@dataclass(frozen=True)
class Config:
    """Resolved, read-only project configuration.

    Attributes:
        root: Absolute path to the project root.
        source: Source directory, relative to the root.
        out_dir: Output directory, relative to the root.
        resources: Resource directories, relative to the source directory.
        asset_dirs: Asset subdirectories created by ``ark init``.
        config_file: Path of the config file that was loaded.
    """

    root: Path
    source: str = DEFAULT_CONFIG["source"]
    out_dir: str = DEFAULT_CONFIG["outDir"]
    resources: Mapping[str, str | list[str]] = field(
        default_factory=lambda: copy.deepcopy(DEFAULT_CONFIG["resources"])
    )
    asset_dirs: tuple[str, ...] = tuple(DEFAULT_CONFIG["assetDirs"])
    config_file: Path | None = None

    @classmethod
    def load(
        cls,
        config_file: str | Path | None = None,
        cwd: Path | None = None,
        **overrides: str | None,
    ) -> Config:
        """Resolve the project root and build the layered configuration.

        Args:
            config_file: Optional config file path. Its directory is where the
                root search starts and its name is the file searched for.
            cwd: Directory the command was invoked from. Defaults to the
                current working directory.
            **overrides: CLI overrides keyed by setting name (``source``,
                ``outDir``, ``templateDir``, ``controllerDir``, ``layoutDir``,
                ``helperDir``, ``assetDir``) plus ``partialDirs`` as a comma
                separated string. ``None`` values are ignored.

        Returns:
            The resolved Config.

        Raises:
            ConfigError: If no config file is found or it cannot be parsed.
        """
        cwd = (cwd or Path.cwd()).resolve()
        if config_file:
            config_path = Path(config_file)
            names: tuple[str, ...] = (config_path.name,)
            start = (cwd / config_path.parent).resolve()
        else:
            names = CONFIG_FILE_NAMES
            start = cwd
        logger.debug("Config file names: %s", ", ".join(names))
        logger.debug("Config search starts at: %s", start)

        root, found = resolve_root(start, names)
        logger.debug("Project root: %s", root)

        settings = merge_settings(DEFAULT_CONFIG, read_config_file(found))

        for option in _ROOT_SETTINGS:
            if overrides.get(option):
                settings[option] = overrides[option]
        resources = settings["resources"]
        for name in resources:
            value = overrides.get(name)
            if not value:
                continue
            if name == "partialDirs":
                resources[name] = [part for part in value.split(",") if part]
            else:
                resources[name] = value
        logger.debug("Resource dirs: %s", resources)

        return cls(
            root=root,
            source=settings["source"],
            out_dir=settings["outDir"],
            resources=MappingProxyType(resources),
            asset_dirs=tuple(settings["assetDirs"]),
            config_file=found,
        )

    def path_to(self, resource: str) -> Path | list[Path]:
        """Return the absolute path of a setting or resource directory.

        ``source`` and ``outDir`` resolve against the project root; resource
        names (``templateDir``, ``partialDirs``...) resolve against the source
        directory. List-valued resources resolve element-wise.

        Raises:
            ConfigError: If the resource name is invalid or unknown.
        """
        if not resource or not isinstance(resource, str):
            raise ConfigError(f"Invalid resource name: {resource!r}")

        if resource == "source":
            return self.root / self.source
        if resource == "outDir":
            return self.root / self.out_dir

        if resource in self.resources:
            value = self.resources[resource]
            base = self.root / self.source
            if isinstance(value, str):
                return base / value
            return [base / item for item in value]

        raise ConfigError(f'Resource "{resource}" does not exist in the config')


def resolve_root(start: Path, names: tuple[str, ...]) -> tuple[Path, Path]:
    """Find the project root by walking up from ``start``.

    A directory is the root if and only if it contains one of ``names``
    (checked in order).

    Returns:
        Tuple of (root directory, config file path).

    Raises:
        ConfigError: If no directory up to the filesystem root has the file.
    """
    for directory in (start, *start.parents):
        logger.debug("Resolving config at %s...", directory)
        for name in names:
            candidate = directory / name
            if candidate.is_file():
                return directory, candidate
    raise ConfigError(
        '"render" must be called within a project directory or subdirectory.'
    )


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse a config file by its suffix. Unknown suffixes are read as JSON.

    Raises:
        ConfigError: If the file cannot be parsed or its root is not a mapping.
    """
    loader = _FILE_LOADERS.get(path.suffix.lower(), json.load)
    try:
        with path.open(encoding="utf-8") as handle:
            data = loader(handle) or {}
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the root")
    return data


def merge_settings(
    defaults: Mapping[str, Any], user: Mapping[str, Any]
) -> dict[str, Any]:
    """Overlay user settings on the defaults.

    Only settings that already exist in the defaults are taken. A user
    value with a different type than the default is dropped with a warning.
    ``resources`` is merged key by key with the same rule.
    """
    merged = copy.deepcopy(dict(defaults))
    for setting, value in user.items():
        if setting not in merged:
            logger.debug("Ignoring unknown config setting %r", setting)
            continue
        current = merged[setting]
        if not _same_type(current, value):
            _warn_type(setting, current, value)
            continue
        if isinstance(current, dict):
            for key, sub_value in value.items():
                if key not in current:
                    logger.debug("Ignoring unknown resource %r", key)
                    continue
                if not _same_type(current[key], sub_value):
                    _warn_type(f"{setting}.{key}", current[key], sub_value)
                    continue
                current[key] = copy.deepcopy(sub_value)
        else:
            merged[setting] = copy.deepcopy(value)
    return merged


def _same_type(default: Any, value: Any) -> bool:
    if isinstance(default, list):
        return isinstance(value, list) and all(isinstance(v, str) for v in value)
    return isinstance(value, type(default))


def _warn_type(setting: str, default: Any, value: Any) -> None:
    logger.warning(
        "Tried to set config setting %s to incompatible type: expected %s, got %s",
        setting,
        type(default).__name__,
        type(value).__name__,
    )
