import asyncio
import logging
from pathlib import Path

import pytest

from architekt import assets
from architekt.assets import AssetPipeline, CompiledStylesheet, SassCompiler
from architekt.protocols import StylesheetCompiler


def make_pipeline(project: Path, compiler=None) -> AssetPipeline:
    return AssetPipeline(
        project / "src" / "assets",
        project / "build" / "assets",
        project / "node_modules",
        compiler=compiler,
    )


def test_pipeline_copies_assets_and_compiles_stylesheets(project):
    result = asyncio.run(make_pipeline(project).run())
    out = project / "build" / "assets"

    assert (out / "images" / "logo.txt").read_text(encoding="utf-8") == "logo"
    assert (out / "images" / "icons" / "star.txt").exists()
    # Stylesheet sources are compiled, never copied.
    assert not (out / "stylesheets").exists()

    assert [s.name for s in result.stylesheets] == ["theme.css"]
    css = result.stylesheets[0].contents
    assert "color: red" in css
    assert "@import" not in css
    assert result.ok
    assert sorted(p.name for p in result.copied) == ["logo.txt", "star.txt"]


def test_imports_resolve_from_package_directory(project):
    package = project / "node_modules" / "kit"
    package.mkdir(parents=True)
    (package / "_grid.scss").write_text(".grid { display: grid; }\n", encoding="utf-8")
    (project / "src" / "assets" / "stylesheets" / "layout.scss").write_text(
        '@import "kit/grid";\n', encoding="utf-8"
    )
    result = asyncio.run(make_pipeline(project).run())
    compiled = {s.name: s.contents for s in result.stylesheets}
    assert "display: grid" in compiled["layout.css"]


def test_compressed_output_style(project):
    result = asyncio.run(make_pipeline(project, SassCompiler("compressed")).run())
    assert result.stylesheets[0].contents.strip() == "body{color:red}"
    with pytest.raises(ValueError):
        SassCompiler("fancy")


def test_compile_failure_is_recorded_not_raised(project, caplog):
    (project / "src" / "assets" / "stylesheets" / "bad.scss").write_text(
        "body { color: $undefined; }\n", encoding="utf-8"
    )
    with caplog.at_level(logging.ERROR, logger="architekt"):
        result = asyncio.run(make_pipeline(project).run())
    assert [s.name for s in result.stylesheets] == ["theme.css"]
    assert not result.ok
    assert any("bad.scss" in failure for failure in result.failures)
    assert any("bad.scss" in r.getMessage() for r in caplog.records)


def test_custom_compiler(project):
    class UpperCompiler:
        def __init__(self):
            self.seen = []

        def compile(self, source, include_paths):
            self.seen.append((source.name, [p.name for p in include_paths]))
            return source.read_text(encoding="utf-8").upper()

    compiler = UpperCompiler()
    assert isinstance(compiler, StylesheetCompiler)
    result = asyncio.run(make_pipeline(project, compiler).run())
    assert compiler.seen == [("theme.scss", ["stylesheets", "node_modules"])]
    assert result.stylesheets == [
        CompiledStylesheet("theme.css", '@IMPORT "VARS";\nBODY { COLOR: $COLOR; }\n')
    ]


def test_copy_depth_is_bounded(project, monkeypatch, caplog):
    monkeypatch.setattr(assets, "MAX_COPY_DEPTH", 2)
    deep = project / "src" / "assets" / "images" / "icons" / "large"
    deep.mkdir()
    (deep / "huge.txt").write_text("x", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="architekt"):
        result = asyncio.run(make_pipeline(project).run())
    out = project / "build" / "assets"
    assert (out / "images" / "icons" / "star.txt").exists()
    assert not (out / "images" / "icons" / "large").exists()
    assert any("nested" in failure for failure in result.failures)


def test_missing_asset_directory(tmp_path):
    pipeline = AssetPipeline(tmp_path / "assets", tmp_path / "out", tmp_path / "node_modules")
    result = asyncio.run(pipeline.run())
    assert result.copied == [] and result.stylesheets == [] and result.ok
    assert not (tmp_path / "out").exists()
