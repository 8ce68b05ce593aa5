"""Asset processing pipeline for Architekt.

This module copies a project's static assets into the output directory and
compiles its Sass stylesheets.

Key components:
- AssetPipeline: copies the asset tree, then compiles the stylesheets.
- SassCompiler: StylesheetCompiler backed by libsass.
- CompiledStylesheet: one compiled stylesheet, written by the orchestrator.

The ``stylesheets`` subdirectory is never copied verbatim; its Sass sources
are compiled and the CSS lands in ``<outDir>/<assetDir>/stylesheets``.
"""

from __future__ import annotations

import asyncio
import shutil
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import sass

from .logging import VERBOSE, get_logger
from .protocols import StylesheetCompiler
from .utils import STYLESHEET_DIR, is_stylesheet_source, sorted_files, stylesheet_output_name

logger = get_logger("assets")

# Asset trees nested deeper than this are not copied.
MAX_COPY_DEPTH = 16

OUTPUT_STYLES = ("expanded", "compressed", "nested", "compact")


@dataclass(frozen=True)
class CompiledStylesheet:
    """A compiled stylesheet.

    Attributes:
        name: Output file name (``theme.css``).
        contents: Compiled CSS text.
    """

    name: str
    contents: str


@dataclass
class AssetResult:
    """Outcome of an asset pipeline run.

    Attributes:
        copied: Output paths of the copied asset files.
        stylesheets: Compiled stylesheets, in source file name order.
        failures: Human-readable description of every failed file.
    """

    copied: list[Path] = field(default_factory=list)
    stylesheets: list[CompiledStylesheet] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class SassCompiler:
    """Compiles Sass/SCSS files with libsass.

    Attributes:
        output_style: libsass output style.
    """

    def __init__(self, output_style: str = "expanded"):
        if output_style not in OUTPUT_STYLES:
            raise ValueError(f"Unknown stylesheet output style: {output_style}")
        self.output_style = output_style

    def compile(self, source: Path, include_paths: Sequence[Path]) -> str:
        return sass.compile(
            filename=str(source),
            include_paths=[str(path) for path in include_paths],
            output_style=self.output_style,
        )


class AssetPipeline:
    """Handles static assets and stylesheets for the site.

    Attributes:
        asset_dir (Path): Directory containing source assets.
        output_dir (Path): Directory the asset tree is copied into.
        package_dir (Path): Third-party package directory (``node_modules``)
            searched for stylesheet imports.
        compiler (StylesheetCompiler): Compiler for stylesheet sources.
    """

    def __init__(
        self,
        asset_dir: Path,
        output_dir: Path,
        package_dir: Path,
        compiler: StylesheetCompiler | None = None,
    ):
        """Initialize the asset pipeline.

        Args:
            asset_dir: Source asset directory.
            output_dir: Output asset directory.
            package_dir: Third-party package directory for ``@import`` lookups.
            compiler: Optional custom stylesheet compiler.
        """
        self.asset_dir = asset_dir
        self.output_dir = output_dir
        self.package_dir = package_dir
        self.compiler = compiler or SassCompiler()

    @property
    def stylesheet_dir(self) -> Path:
        return self.asset_dir / STYLESHEET_DIR

    async def run(self) -> AssetResult:
        """Execute the asset pipeline.

        The copy finishes before any stylesheet is compiled. Failures are
        logged and collected in the result; nothing here is fatal.
        """
        result = AssetResult()
        if not self.asset_dir.is_dir():
            logger.log(VERBOSE, "No asset directory at %s; skipping assets", self.asset_dir)
            return result

        logger.log(VERBOSE, "Copying assets...")
        await asyncio.to_thread(self._copy_tree, self.asset_dir, self.output_dir, 0, result)

        logger.info("Rendering stylesheets...")
        result.stylesheets = await self._compile_stylesheets(result)
        return result

    def _copy_tree(self, source: Path, dest: Path, depth: int, result: AssetResult) -> None:
        """Copy a directory recursively, skipping the top-level stylesheet directory.

        Args:
            source: Directory to copy.
            dest: Destination directory.
            depth: Nesting depth of ``source`` below the asset directory.
            result: Collects copied paths and failures.
        """
        if depth > MAX_COPY_DEPTH:
            logger.warning("Asset directory %s is nested too deeply; skipping", source)
            result.failures.append(f"{source}: nested deeper than {MAX_COPY_DEPTH}")
            return
        try:
            dest.mkdir(parents=True, exist_ok=True)
            entries = sorted(source.iterdir())
        except OSError as exc:
            logger.error("Error thrown while copying assets from %s: %s", source, exc)
            result.failures.append(f"{source}: {exc}")
            return

        for item in entries:
            if depth == 0 and item.name == STYLESHEET_DIR:
                continue
            if item.is_dir():
                if item.is_symlink():
                    logger.debug("Not following symlinked directory %s", item)
                    continue
                self._copy_tree(item, dest / item.name, depth + 1, result)
                continue
            try:
                shutil.copy2(item, dest / item.name)
            except OSError as exc:
                logger.error("Error thrown while copying asset %s: %s", item, exc)
                result.failures.append(f"{item}: {exc}")
                continue
            result.copied.append(dest / item.name)

    async def _compile_stylesheets(self, result: AssetResult) -> list[CompiledStylesheet]:
        """Compile every stylesheet source directly inside the stylesheet directory."""
        try:
            filenames = await asyncio.to_thread(sorted_files, self.stylesheet_dir)
        except OSError as exc:
            logger.log(VERBOSE, "No stylesheets compiled: %s", exc)
            return []

        filenames = [f for f in filenames if is_stylesheet_source(f)]
        include_paths = [self.stylesheet_dir, self.package_dir]
        compiled = await asyncio.gather(
            *(
                asyncio.to_thread(
                    self.compiler.compile, self.stylesheet_dir / f, include_paths
                )
                for f in filenames
            ),
            return_exceptions=True,
        )

        stylesheets = []
        for filename, css in zip(filenames, compiled):
            if isinstance(css, Exception):
                logger.error("Error thrown while compiling stylesheet %s", filename)
                logger.error("%s", css)
                result.failures.append(f"{filename}: {css}")
                continue
            if isinstance(css, BaseException):
                raise css
            logger.log(VERBOSE, "Compiled stylesheet %s", filename)
            stylesheets.append(CompiledStylesheet(stylesheet_output_name(filename), css))
        return stylesheets
