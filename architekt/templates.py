"""Template rendering engine for Architekt.

This module uses Jinja2 to render page templates against their page data.

Key classes:
- RenderContext: the partials, layouts and helpers registered while loading.
- TemplateEngine: a Jinja2 environment built from a frozen RenderContext.

Partials and layouts share one namespace. A page pulls in a partial with
``{% include "header" %}`` and wraps itself in a layout with
``{% extends "default" %}``. Helpers are installed both as globals and as
filters, so ``{{ shout(title) }}`` and ``{{ title | shout }}`` both work.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from jinja2 import DictLoader, Environment


@dataclass
class RenderContext:
    """Registration state shared by the registries during loading.

    Registries only add to the context. Once every registry has finished
    the orchestrator calls ``freeze`` and the context is read-only.

    Attributes:
        partials: Partial name to template source.
        layouts: Layout name to template source.
        helpers: Helper name to callable.
    """

    partials: dict[str, str] = field(default_factory=dict)
    layouts: dict[str, str] = field(default_factory=dict)
    helpers: dict[str, Callable[..., Any]] = field(default_factory=dict)
    frozen: bool = False

    def _check_frozen(self) -> None:
        if self.frozen:
            raise RuntimeError("RenderContext is frozen; registration is closed")

    def register_partial(self, name: str, source: str) -> None:
        self._check_frozen()
        self.partials[name] = source

    def register_layout(self, name: str, source: str) -> None:
        self._check_frozen()
        self.layouts[name] = source

    def register_helper(self, name: str, helper: Callable[..., Any]) -> None:
        self._check_frozen()
        self.helpers[name] = helper

    def freeze(self) -> None:
        self.frozen = True

    @property
    def templates(self) -> dict[str, str]:
        """The combined partial and layout namespace.

        Layouts are applied after partials, so a layout wins a name clash.
        """
        merged = dict(self.partials)
        merged.update(self.layouts)
        return merged


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        context: The frozen RenderContext the environment was built from.
        env: Jinja2 environment.
    """

    def __init__(self, context: RenderContext):
        """Initialize the template engine.

        Args:
            context: Registered partials, layouts and helpers.
        """
        self.context = context
        self.env = Environment(
            loader=DictLoader(context.templates),
            autoescape=True,
        )
        self._install_helpers()

    def _install_helpers(self) -> None:
        """Install every registered helper as a Jinja global and filter."""
        for name, helper in self.context.helpers.items():
            self.env.globals[name] = helper
            self.env.filters[name] = helper

    def render(self, page_name: str, source: str, data: Any) -> str:
        """Render a page template.

        Mapping page data is spread into the template context. Any other
        value (a list, a string) is available as ``data``.

        Args:
            page_name: Name of the page, available as ``page_name``.
            source: Template source text.
            data: Page data.

        Returns:
            Rendered HTML string.

        Raises:
            jinja2.TemplateSyntaxError: If the template does not parse.
            Exception: Whatever the template or a helper raises while rendering.
        """
        if isinstance(data, Mapping):
            variables = dict(data)
        else:
            variables = {"data": data}
        variables.setdefault("page_name", page_name)
        template = self.env.from_string(source)
        return template.render(variables)
