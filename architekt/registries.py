"""Partial, layout and helper registration for Architekt.

Each registry scans its directory (sorted by file name) and registers what
it finds into a shared RenderContext. Failures here are never fatal: an
unreadable directory or file is logged and skipped, since partials,
layouts and helpers only supplement the pages.

Key classes:
- PartialRegistry: ``_name.jinja`` files from one or more partial directories.
- LayoutRegistry: ``name.jinja`` files from the layout directory.
- HelperRegistry: exported callables of ``.py`` modules in the helper directory.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterator, Sequence
from pathlib import Path
from types import ModuleType
from typing import Any

from .loaders import ScriptLoadError, load_script_module, unload_script_module
from .logging import VERBOSE, get_logger
from .templates import RenderContext
from .utils import (
    is_helper_source,
    is_layout,
    is_partial,
    list_files,
    page_name,
    partial_name,
    read_text,
)

logger = get_logger("registries")


async def _read_matching(
    directory: Path, predicate: Callable[[str], bool], kind: str
) -> list[tuple[str, str]]:
    """Read every matching file of a directory, keeping file name order.

    Unreadable directories and files are logged and left out.

    Returns:
        List of (file name, contents) pairs.
    """
    try:
        filenames = await list_files(directory)
    except OSError as exc:
        logger.error("Error thrown while registering %s from %s", kind, directory)
        logger.error("%s", exc)
        return []

    filenames = [f for f in filenames if predicate(f)]
    results = await asyncio.gather(
        *(read_text(directory / f) for f in filenames), return_exceptions=True
    )
    entries = []
    for filename, result in zip(filenames, results):
        if isinstance(result, (OSError, UnicodeDecodeError)):
            logger.error("Error thrown while reading %s %s: %s", kind, filename, result)
            continue
        if isinstance(result, BaseException):
            raise result
        entries.append((filename, result))
    return entries


class PartialRegistry:
    """Registers partials from the partial directories, in the order given."""

    def __init__(self, partial_dirs: Sequence[Path]):
        self.partial_dirs = list(partial_dirs)

    async def register(self, context: RenderContext) -> list[str]:
        """Register every partial into the context.

        A later partial with the same name replaces an earlier one.

        Returns:
            Registered names in registration order.
        """
        registered = []
        for directory in self.partial_dirs:
            for filename, contents in await _read_matching(
                directory, is_partial, "partials"
            ):
                name = partial_name(filename)
                logger.log(VERBOSE, "Registering partial %s...", name)
                context.register_partial(name, contents)
                registered.append(name)
        return registered


class LayoutRegistry:
    """Registers layouts from the layout directory."""

    def __init__(self, layout_dir: Path):
        self.layout_dir = layout_dir

    async def register(self, context: RenderContext) -> list[str]:
        logger.log(VERBOSE, "Loading layouts...")
        registered = []
        for filename, contents in await _read_matching(
            self.layout_dir, is_layout, "layouts"
        ):
            name = page_name(filename)
            logger.log(VERBOSE, "Registering layout %s...", name)
            context.register_layout(name, contents)
            registered.append(name)
        return registered


def exported_callables(module: ModuleType) -> Iterator[tuple[str, Callable[..., Any]]]:
    """Yield the callables a helper module exports.

    The names in ``__all__`` are exported when the module defines it.
    Otherwise every public name defined by the module itself is, so
    imported names like ``datetime`` are not picked up by accident.
    Non-callable values are skipped.
    """
    names = getattr(module, "__all__", None)
    if names is None:
        names = [
            name
            for name, value in vars(module).items()
            if not name.startswith("_")
            and getattr(value, "__module__", None) == module.__name__
        ]
    for name in names:
        value = getattr(module, name, None)
        if callable(value):
            yield name, value


class HelperRegistry:
    """Registers helper functions from the helper directory."""

    def __init__(self, helper_dir: Path):
        self.helper_dir = helper_dir

    async def register(self, context: RenderContext) -> list[str]:
        logger.log(VERBOSE, "Registering helpers...")
        try:
            filenames = await list_files(self.helper_dir)
        except OSError as exc:
            logger.error("Error thrown while registering helpers")
            logger.error("%s", exc)
            return []

        registered = []
        for filename in filenames:
            if not is_helper_source(filename):
                continue
            try:
                module = await asyncio.to_thread(
                    load_script_module,
                    self.helper_dir / filename,
                    self.helper_dir,
                    "helpers",
                )
            except ScriptLoadError as exc:
                logger.error("Error thrown while registering helpers from %s", filename)
                logger.error("%s", exc.message)
                continue
            for name, helper in exported_callables(module):
                logger.log(VERBOSE, "Registering helper %s...", name)
                context.register_helper(name, helper)
                registered.append(name)
            unload_script_module(module)
        return registered
