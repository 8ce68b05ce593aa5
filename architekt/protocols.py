"""Protocol definitions for Architekt.

This module defines the interfaces the render pipeline depends on, so the
template engine, the stylesheet compiler and page data sources can be
swapped out in tests without touching the orchestrator.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DataSource(Protocol):
    """Protocol for a page data source.

    Implementations turn one file (JSON document, Python script) into the
    value bound to a page at render time. ``produce`` is called once per
    render.
    """

    @abstractmethod
    def produce(self) -> Any:
        """Return the page data value."""
        ...


@runtime_checkable
class StylesheetCompiler(Protocol):
    """Protocol for compiling a stylesheet source file to CSS."""

    @abstractmethod
    def compile(self, source: Path, include_paths: Sequence[Path]) -> str:
        """Compile a stylesheet.

        Args:
            source: Path to the Sass/SCSS source file.
            include_paths: Directories searched when resolving ``@import``.

        Returns:
            The compiled CSS text.
        """
        ...


@runtime_checkable
class TemplateRenderer(Protocol):
    """Protocol for rendering page templates.

    This defines the interface for template rendering engines,
    allowing different implementations behind the orchestrator.
    """

    @abstractmethod
    def render(self, page_name: str, source: str, data: Any) -> str:
        """Render a page template.

        Args:
            page_name: Name of the page being rendered.
            source: Template source text.
            data: Page data bound to the template.

        Returns:
            Rendered HTML string.
        """
        ...
