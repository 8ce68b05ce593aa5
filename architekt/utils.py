"""Utility functions for Architekt.

This module contains the file classification rules and the small file-system
helpers shared by the loaders, registries and the asset pipeline.

Classification is purely name based:
    is_template: page template (``index.html.jinja``).
    is_partial: partial fragment (``_header.jinja``).
    is_layout: layout shell (``default.jinja``).
    is_page_data: page data file (``index.json`` or ``index.py``).
    is_helper_source: helper module (``strings.py``).
    is_stylesheet_source: Sass source (``theme.scss``).

Async helpers (list_files, read_text, write_text) run the blocking call in a
worker thread so each one is a suspension point for the event loop.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path

TEMPLATE_EXTENSION = "jinja"
DATA_EXTENSION = "json"
SCRIPT_EXTENSION = "py"
STYLE_EXTENSIONS = ("scss", "sass")
OUTPUT_STYLE_EXTENSION = "css"
PARTIAL_MARKER = "_"
STYLESHEET_DIR = "stylesheets"


def page_name(filename: str) -> str:
    """Return the page name of a file: everything before the first dot.

    Examples:
        >>> page_name("index.html.jinja")
        'index'
    """
    return filename.split(".")[0]


def extension(filename: str) -> str:
    """Return the last dot-delimited segment of a file name.

    A name without a dot is its own last segment, matching how the
    classification rules split names.
    """
    return filename.split(".")[-1]


def is_marked(filename: str) -> bool:
    """Check if a file name starts with the partial marker."""
    return filename.startswith(PARTIAL_MARKER)


def is_template(filename: str) -> bool:
    """Check if a file is a page template (not a partial)."""
    return extension(filename) == TEMPLATE_EXTENSION and not is_marked(filename)


def is_partial(filename: str) -> bool:
    """Check if a file is a partial: marked and ending in the template extension."""
    return is_marked(filename) and filename.endswith(f".{TEMPLATE_EXTENSION}")


def partial_name(filename: str) -> str:
    """Return the registration name of a partial.

    Examples:
        >>> partial_name("_header.html.jinja")
        'header'
    """
    return page_name(filename)[len(PARTIAL_MARKER) :]


def is_layout(filename: str) -> bool:
    """Check if a file in the layout directory is a layout."""
    return filename.endswith(f".{TEMPLATE_EXTENSION}")


def is_page_data(filename: str) -> bool:
    """Check if a file is a page data source (JSON or Python script)."""
    return not is_marked(filename) and extension(filename) in (
        DATA_EXTENSION,
        SCRIPT_EXTENSION,
    )


def is_helper_source(filename: str) -> bool:
    """Check if a file in the helper directory is a helper module.

    Marked names (``__init__.py``, ``_private.py``) are skipped.
    """
    return filename.endswith(f".{SCRIPT_EXTENSION}") and not is_marked(filename)


def is_stylesheet_source(filename: str) -> bool:
    """Check if a file is a compilable Sass stylesheet (not a Sass partial)."""
    return not is_marked(filename) and extension(filename) in STYLE_EXTENSIONS


def stylesheet_output_name(filename: str) -> str:
    """Replace the Sass extension of a stylesheet with ``.css``.

    Examples:
        >>> stylesheet_output_name("theme.scss")
        'theme.css'
    """
    stem = filename.rsplit(".", 1)[0]
    return f"{stem}.{OUTPUT_STYLE_EXTENSION}"


def sorted_files(directory: Path) -> list[str]:
    """Return the names of the regular files directly inside a directory, sorted.

    Raises:
        OSError: If the directory cannot be read.
    """
    return sorted(entry.name for entry in directory.iterdir() if entry.is_file())


async def list_files(directory: Path) -> list[str]:
    """Async variant of sorted_files."""
    return await asyncio.to_thread(sorted_files, directory)


async def read_text(path: Path) -> str:
    """Read a UTF-8 text file without blocking the event loop."""
    return await asyncio.to_thread(path.read_text, encoding="utf-8")


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)


async def write_text(path: Path, text: str) -> None:
    """Write a UTF-8 text file, creating parent directories as needed."""
    await asyncio.to_thread(_write, path, text)


def clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty, keeping the directory itself.

    Args:
        path: Directory path to clean or create.

    Raises:
        OSError: If an entry cannot be removed.
    """
    if not path.exists():
        path.mkdir(parents=True, exist_ok=True)
        return
    for item in path.iterdir():
        if item.is_dir() and not item.is_symlink():
            shutil.rmtree(item)
        else:
            item.unlink()
