"""Template and page data loading for Architekt.

Key classes:
- TemplateLoader: reads page templates into a ``{page_name: source}`` map.
- DataLoader: reads page data files into a ``{page_name: value}`` map.
- JsonDataSource / ScriptDataSource: DataSource implementations for
  ``.json`` and ``.py`` data files.

A page data script is ordinary Python executed at load time. Only files
that resolve inside the scanned project directory are executed; the
project is trusted the same way its templates are.

An unreadable template or data directory is fatal (DirectoryReadError).
A broken individual data file is not: it is logged and the page gets an
empty mapping.
"""

from __future__ import annotations

import asyncio
import importlib.util
import json
import sys
from pathlib import Path
from types import ModuleType
from typing import Any

from .logging import VERBOSE, get_logger
from .protocols import DataSource
from .utils import (
    DATA_EXTENSION,
    extension,
    is_page_data,
    is_template,
    list_files,
    page_name,
    read_text,
)

logger = get_logger("loaders")


class LoadError(Exception):
    """Fatal error while loading templates or page data."""


class DirectoryReadError(LoadError):
    """A directory required by the render could not be listed.

    Attributes:
        directory: The directory that failed.
        original_error: The underlying OSError.
    """

    def __init__(self, directory: Path, original_error: OSError):
        self.directory = directory
        self.original_error = original_error
        super().__init__(f"Could not read directory {directory}: {original_error}")


class ScriptLoadError(Exception):
    """A data or helper script could not be imported."""

    def __init__(self, path: Path, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


def load_script_module(path: Path, base_dir: Path, namespace: str) -> ModuleType:
    """Import a project script as a fresh module.

    The module is executed every time this is called; nothing is cached
    between renders.

    Args:
        path: Script to import.
        base_dir: Directory the script must resolve inside of.
        namespace: Module name prefix (``data`` or ``helpers``).

    Raises:
        ScriptLoadError: If the script is outside ``base_dir`` or fails to import.
    """
    resolved = path.resolve()
    if not resolved.is_relative_to(base_dir.resolve()):
        raise ScriptLoadError(path, f"script resolves outside of {base_dir}")

    module_name = f"_architekt_{namespace}_{page_name(path.name)}"
    spec = importlib.util.spec_from_file_location(module_name, resolved)
    if spec is None or spec.loader is None:
        raise ScriptLoadError(path, "not an importable Python file")
    module = importlib.util.module_from_spec(spec)
    # Registered so dataclasses and pickling inside the script can find it.
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        raise ScriptLoadError(path, f"{type(exc).__name__}: {exc}") from exc
    return module


def unload_script_module(module: ModuleType) -> None:
    """Drop a project script from ``sys.modules`` once its values are taken."""
    if sys.modules.get(module.__name__) is module:
        del sys.modules[module.__name__]


def module_value(module: ModuleType) -> Any:
    """Return the value a data script exports.

    ``default`` wins when the module defines it (called once if it is
    callable). Otherwise the module's public, non-module attributes are
    returned as a dict.
    """
    if hasattr(module, "default"):
        value = module.default
        return value() if callable(value) else value
    return {
        name: value
        for name, value in vars(module).items()
        if not name.startswith("_") and not isinstance(value, ModuleType)
    }


class JsonDataSource:
    """Page data parsed from a JSON document.

    A file that cannot be read or parsed yields an empty mapping.
    """

    def __init__(self, path: Path):
        self.path = path

    def produce(self) -> Any:
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:  # ValueError covers bad UTF-8 too
            logger.error(
                "Error thrown while reading JSON file %s; using empty object",
                self.path.name,
            )
            logger.warning("%s", exc)
            return {}


class ScriptDataSource:
    """Page data computed by a Python script.

    Raises ScriptLoadError from ``produce`` when the script fails; the
    DataLoader isolates that failure to the page.
    """

    def __init__(self, path: Path, base_dir: Path):
        self.path = path
        self.base_dir = base_dir

    def produce(self) -> Any:
        module = load_script_module(self.path, self.base_dir, "data")
        try:
            return module_value(module)
        except Exception as exc:
            raise ScriptLoadError(self.path, f"{type(exc).__name__}: {exc}") from exc
        finally:
            unload_script_module(module)


class TemplateLoader:
    """Reads the page templates of a project.

    Attributes:
        template_dir: Directory containing page templates.
    """

    def __init__(self, template_dir: Path):
        self.template_dir = template_dir

    async def load(self) -> dict[str, str]:
        """Read every page template in the template directory.

        Returns:
            Mapping of page name to template source, in file name order.

        Raises:
            DirectoryReadError: If the template directory cannot be listed.
            LoadError: If a template file cannot be read.
        """
        logger.log(VERBOSE, "Loading templates...")
        try:
            filenames = await list_files(self.template_dir)
        except OSError as exc:
            raise DirectoryReadError(self.template_dir, exc) from exc

        filenames = [f for f in filenames if is_template(f)]
        try:
            contents = await asyncio.gather(
                *(read_text(self.template_dir / f) for f in filenames)
            )
        except (OSError, UnicodeDecodeError) as exc:
            raise LoadError(f"Error thrown while reading templates: {exc}") from exc

        sources: dict[str, str] = {}
        for filename, content in zip(filenames, contents):
            name = page_name(filename)
            if name in sources:
                logger.warning("Template %s overrides page %r", filename, name)
            sources[name] = content
        return sources


class DataLoader:
    """Reads the page data ("controller") files of a project.

    Attributes:
        data_dir: Directory containing ``.json`` and ``.py`` data files.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = data_dir

    def source_for(self, filename: str) -> DataSource:
        """Return the DataSource that handles a data file."""
        path = self.data_dir / filename
        if extension(filename) == DATA_EXTENSION:
            return JsonDataSource(path)
        return ScriptDataSource(path, self.data_dir)

    async def load(self) -> dict[str, Any]:
        """Produce the data value of every data file in the data directory.

        Returns:
            Mapping of page name to page data, in file name order.

        Raises:
            DirectoryReadError: If the data directory cannot be listed.
        """
        logger.log(VERBOSE, "Loading template data...")
        try:
            filenames = await list_files(self.data_dir)
        except OSError as exc:
            raise DirectoryReadError(self.data_dir, exc) from exc

        data: dict[str, Any] = {}
        for filename in filenames:
            valid = is_page_data(filename)
            logger.debug(
                "data: controller file %s is %s", filename, "valid" if valid else "invalid"
            )
            if not valid:
                continue
            source = self.source_for(filename)
            try:
                value = await asyncio.to_thread(source.produce)
            except ScriptLoadError as exc:
                logger.error("Error thrown while loading data script; using empty object")
                logger.warning("%s", exc)
                value = {}
            data[page_name(filename)] = value
        return data
