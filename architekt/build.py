"""Site rendering for Architekt.

This module contains the core logic for rendering a project into a static site.

A render moves through these states:
    CLEANING   empty the output directory (best effort).
    LOADING    run the six loading stages concurrently and wait for all:
               templates, page data, assets, partials, layouts, helpers.
    COMPOSING  render each page in name order and write it straight away.
    WRITING    write the compiled stylesheets.
    DONE       log a summary.
ABORTED is entered from any state on a fatal error: an unreadable template
or data directory, or the first page that fails to render. Pages written
before the failing page stay on disk.

Key functions:
- render_site: Render a project synchronously.
- RenderOrchestrator.render: The coroutine doing the work.
"""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import TemplateSyntaxError

from .assets import AssetPipeline, AssetResult, SassCompiler
from .config import Config
from .loaders import DataLoader, LoadError, TemplateLoader
from .logging import VERBOSE, get_logger
from .protocols import StylesheetCompiler, TemplateRenderer
from .registries import HelperRegistry, LayoutRegistry, PartialRegistry
from .templates import RenderContext, TemplateEngine
from .utils import STYLESHEET_DIR, clean_dir, write_text

logger = get_logger("render")

PACKAGE_DIR = "node_modules"


class RenderError(Exception):
    """Error while rendering a page, fatal for the whole render.

    Attributes:
        page_name: Name of the page that failed.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        page_name: str,
        message: str,
        original_error: Exception | None = None,
    ):
        self.page_name = page_name
        self.message = message
        self.original_error = original_error
        super().__init__(f"{page_name}: {message}")


class RenderState(enum.Enum):
    CLEANING = "cleaning"
    LOADING = "loading"
    COMPOSING = "composing"
    WRITING = "writing"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class RenderResult:
    """Result of a render.

    Attributes:
        output_dir: Directory the site was rendered into.
        pages: Paths of the pages written.
        stylesheets: Paths of the stylesheets written.
        failures: Description of every recoverable failure (asset or write).
    """

    output_dir: Path
    pages: list[Path] = field(default_factory=list)
    stylesheets: list[Path] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)


class RenderOrchestrator:
    """Renders a project: clean, load concurrently, compose, write.

    Attributes:
        config: Resolved project configuration.
        compiler: Stylesheet compiler used by the asset pipeline.
        state: Current RenderState.
    """

    def __init__(self, config: Config, compiler: StylesheetCompiler | None = None):
        self.config = config
        self.compiler = compiler or SassCompiler()
        self.state = RenderState.CLEANING

        self.out_dir = config.path_to("outDir")
        self.template_dir = config.path_to("templateDir")
        self.data_dir = config.path_to("controllerDir")
        self.partial_dirs = config.path_to("partialDirs")
        self.layout_dir = config.path_to("layoutDir")
        self.helper_dir = config.path_to("helperDir")
        self.asset_dir = config.path_to("assetDir")
        self.out_asset_dir = self.out_dir / _output_asset_name(
            self.asset_dir, config.path_to("source")
        )

    def _enter(self, state: RenderState) -> None:
        logger.debug("Render state: %s -> %s", self.state.value, state.value)
        self.state = state

    async def render(self) -> RenderResult:
        """Render the project.

        Returns:
            RenderResult describing what was written.

        Raises:
            LoadError: If templates or page data cannot be loaded.
            RenderError: If a page fails to render.
        """
        logger.log(VERBOSE, "Template path: %s", self.template_dir)
        logger.log(VERBOSE, "Data path: %s", self.data_dir)
        logger.log(VERBOSE, "Output path: %s", self.out_dir)
        try:
            return await self._render()
        except (LoadError, RenderError):
            self._enter(RenderState.ABORTED)
            raise

    async def _render(self) -> RenderResult:
        result = RenderResult(output_dir=self.out_dir)

        self._enter(RenderState.CLEANING)
        self._clean()

        self._enter(RenderState.LOADING)
        context = RenderContext()
        try:
            sources, data, assets, *_ = await asyncio.gather(
                TemplateLoader(self.template_dir).load(),
                DataLoader(self.data_dir).load(),
                self._asset_pipeline().run(),
                PartialRegistry(self.partial_dirs).register(context),
                LayoutRegistry(self.layout_dir).register(context),
                HelperRegistry(self.helper_dir).register(context),
            )
        except LoadError as exc:
            logger.error("%s", exc)
            logger.debug("Load failure", exc_info=True)
            raise
        context.freeze()
        result.failures.extend(assets.failures)

        self._enter(RenderState.COMPOSING)
        logger.info("Rendering templates...")
        logger.debug("Partials: %s", sorted(context.templates))
        logger.debug("Pages: %s", sorted(sources))
        logger.debug("Helpers: %s", sorted(context.helpers))
        engine = TemplateEngine(context)
        for name in sorted(sources):
            html = self._compose(engine, name, sources[name], data.get(name))
            page_path = self.out_dir / f"{name}.html"
            logger.log(VERBOSE, "Rendering %s...", name)
            if await self._write(page_path, html, result):
                result.pages.append(page_path)

        self._enter(RenderState.WRITING)
        await self._write_stylesheets(assets, result)

        self._enter(RenderState.DONE)
        logger.info(
            "Finished rendering. %d pages, %d stylesheets.",
            len(result.pages),
            len(result.stylesheets),
        )
        return result

    def _clean(self) -> None:
        """Empty the output directory. Failure is logged, never fatal."""
        try:
            clean_dir(self.out_dir)
        except OSError as exc:
            logger.error("Could not clean output directory %s: %s", self.out_dir, exc)

    def _asset_pipeline(self) -> AssetPipeline:
        return AssetPipeline(
            self.asset_dir,
            self.out_asset_dir,
            self.config.root / PACKAGE_DIR,
            compiler=self.compiler,
        )

    @staticmethod
    def _compose(engine: TemplateRenderer, name: str, source: str, data: Any) -> str:
        """Render one page, turning any engine failure into a RenderError."""
        if data is None:
            data = {}
        try:
            return engine.render(name, source, data)
        except TemplateSyntaxError as exc:
            message = f"Template syntax error on line {exc.lineno}: {exc.message}"
            error = RenderError(name, message, exc)
        except Exception as exc:
            error = RenderError(name, _format_error_message(exc), exc)
        logger.error("Syntax error in page %s:\n%s", name, error.message)
        logger.debug("Render failure", exc_info=error.original_error)
        raise error from error.original_error

    async def _write(self, path: Path, text: str, result: RenderResult) -> bool:
        """Write one output file. A failed write is logged and recorded."""
        try:
            await write_text(path, text)
        except OSError as exc:
            logger.error("Error thrown while writing %s: %s", path, exc)
            result.failures.append(f"{path}: {exc}")
            return False
        return True

    async def _write_stylesheets(self, assets: AssetResult, result: RenderResult) -> None:
        stylesheet_dir = self.out_asset_dir / STYLESHEET_DIR
        for stylesheet in assets.stylesheets:
            path = stylesheet_dir / stylesheet.name
            if await self._write(path, stylesheet.contents, result):
                result.stylesheets.append(path)


def render_site(config: Config, compiler: StylesheetCompiler | None = None) -> RenderResult:
    """Render a project synchronously.

    Args:
        config: Resolved project configuration.
        compiler: Optional stylesheet compiler, libsass by default.

    Returns:
        RenderResult describing what was written.
    """
    return asyncio.run(RenderOrchestrator(config, compiler=compiler).render())


def _output_asset_name(asset_dir: Path, source_dir: Path) -> Path:
    """Return where the asset tree goes relative to the output directory.

    The asset directory keeps its position below the source directory. One
    that lies outside the source directory (an absolute override, or a
    ``..`` path) is placed under its own base name, so assets never leave
    the output directory.
    """
    try:
        return asset_dir.resolve().relative_to(source_dir.resolve())
    except ValueError:
        return Path(asset_dir.resolve().name)


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    error_type = type(exc).__name__
    error_msg = str(exc)

    # Handle common Jinja2/template errors
    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TemplateNotFound":
        return f"Partial or layout not found: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"
    if error_type == "AttributeError":
        return f"Attribute error: {error_msg}"

    return f"{error_type}: {error_msg}"
