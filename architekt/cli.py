"""Command-line interface for Architekt.

This module defines the CLI commands using Click framework.

Commands:
- render: Build the project's source files into a static site.
- init (alias gen): Scaffold a new Architekt project.
"""

from __future__ import annotations

import json
from pathlib import Path

import click
import questionary

from . import __version__
from .assets import OUTPUT_STYLES, SassCompiler
from .build import RenderError, render_site
from .config import DEFAULT_CONFIG, DEFAULT_CONFIG_FILE_NAME, ConfigError, Config
from .loaders import LoadError
from .logging import configure_logging, get_logger, level_from_flags

logger = get_logger("cli")


def _verbosity_options(command):
    """Add the --verbose/--silent/--debug flags shared by every command."""
    for option in reversed(
        [
            click.option("-v", "--verbose", is_flag=True, help="Displays verbose info messages"),
            click.option("-S", "--silent", is_flag=True, help="Silent run. Only errors are displayed"),
            click.option(
                "-D",
                "--debug",
                is_flag=True,
                help="Debug messages are displayed. Careful, this might flood your screen",
            ),
        ]
    ):
        command = option(command)
    return command


@click.group()
@click.version_option(version=__version__, prog_name="architekt")
def cli():
    """Architekt static site builder."""


@cli.command()
@_verbosity_options
@click.option("-f", "--config-file", help=f"Config file to use. Defaults to {DEFAULT_CONFIG_FILE_NAME}")
@click.option("-s", "--source", help="Location of source directory relative to the root")
@click.option("-o", "--out-dir", help='Directory where the rendered site should go. Defaults to "build/"')
@click.option("-t", "--template-dir", help="Directory where page templates are located")
@click.option("-d", "--data-dir", help="Directory where template data files are located")
@click.option("-p", "--partial-dirs", help="Comma separated list of partial directories")
@click.option("-l", "--layout-dir", help="Location of layouts directory")
@click.option("-H", "--helper-dir", help="Location of helpers directory")
@click.option("-a", "--asset-dir", help="Location of assets directory")
@click.option(
    "--style",
    type=click.Choice(OUTPUT_STYLES),
    default="expanded",
    show_default=True,
    help="Output style of compiled stylesheets",
)
def render(
    verbose: bool,
    silent: bool,
    debug: bool,
    config_file: str | None,
    source: str | None,
    out_dir: str | None,
    template_dir: str | None,
    data_dir: str | None,
    partial_dirs: str | None,
    layout_dir: str | None,
    helper_dir: str | None,
    asset_dir: str | None,
    style: str,
):
    """Builds source files into a static site."""
    configure_logging(level_from_flags(silent=silent, verbose=verbose, debug=debug))
    try:
        config = Config.load(
            config_file,
            source=source,
            outDir=out_dir,
            templateDir=template_dir,
            controllerDir=data_dir,
            partialDirs=partial_dirs,
            layoutDir=layout_dir,
            helperDir=helper_dir,
            assetDir=asset_dir,
        )
    except ConfigError as exc:
        logger.error("%s", exc)
        logger.debug("Config failure", exc_info=True)
        raise SystemExit(1) from None

    try:
        render_site(config, compiler=SassCompiler(style))
    except (LoadError, RenderError):
        # Already logged by the orchestrator.
        raise SystemExit(1) from None


@cli.command()
@click.argument("name", required=False)
@_verbosity_options
def init(name: str | None, verbose: bool, silent: bool, debug: bool):
    """Creates a new Architekt project named NAME."""
    configure_logging(level_from_flags(silent=silent, verbose=verbose, debug=debug))
    if not name:
        name = questionary.text(
            "Project name:",
            validate=lambda x: len(x.strip()) > 0 or "Project name cannot be empty",
        ).ask()
        if name is None:
            raise click.Abort()
        name = name.strip()

    target = Path.cwd() / name
    if target.exists():
        logger.error("Folder %s already exists. Aborting.", name)
        raise SystemExit(1)

    logger.info('Creating new project "%s"...', name)
    _scaffold(target)


cli.add_command(init, name="gen")


def main():
    """Entry point for the CLI application."""
    cli()


def _scaffold(root: Path) -> None:
    """Create the config file and directory structure of a new project.

    Args:
        root: Root directory for the new project.
    """
    root.mkdir(parents=True, exist_ok=True)

    logger.info("Creating config file...")
    (root / DEFAULT_CONFIG_FILE_NAME).write_text(
        json.dumps(DEFAULT_CONFIG, indent=4) + "\n", encoding="utf-8"
    )

    resources = DEFAULT_CONFIG["resources"]
    source = root / DEFAULT_CONFIG["source"]
    _make_dirs(root, [DEFAULT_CONFIG["source"], DEFAULT_CONFIG["outDir"]])
    _make_dirs(source, resources.values())
    _make_dirs(source, resources["partialDirs"])
    _make_dirs(source / resources["assetDir"], DEFAULT_CONFIG["assetDirs"])


def _make_dirs(root: Path, names) -> list[Path]:
    """Create each string entry of ``names`` below ``root``.

    Non-string entries are skipped. Existing directories are not an error.
    """
    created = []
    for name in names:
        logger.debug('Processing directory "%s"...', name)
        if not isinstance(name, str):
            logger.debug('Directory "%s" is not a string; skipping...', name)
            continue
        path = root / name
        logger.info('Creating "%s"...', path)
        path.mkdir(parents=True, exist_ok=True)
        created.append(path)
    return created
