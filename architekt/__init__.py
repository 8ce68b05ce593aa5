"""Architekt static site builder.

This package renders a folder of Jinja2 page templates, per-page data files,
partials, layouts and helper functions into a static site, and compiles
Sass stylesheets alongside the copied static assets.

The main entry point is the CLI module, which provides commands for
scaffolding new projects and rendering them.

Architecture:
- config: locates the project root and merges default, file and CLI settings.
- loaders: reads page templates and page data.
- registries: registers partials, layouts and helpers into a RenderContext.
- assets: copies static assets and compiles stylesheets.
- build: orchestrates cleaning, concurrent loading, composing and writing.
"""

__all__ = ["__version__"]
__version__ = "0.3.0"
