import dataclasses
import json
import logging
from pathlib import Path

import pytest

from architekt.config import (
    DEFAULT_CONFIG,
    Config,
    ConfigError,
    merge_settings,
    resolve_root,
)


def write_config(root: Path, settings: dict, name: str = "architekt.json") -> Path:
    root.mkdir(parents=True, exist_ok=True)
    path = root / name
    path.write_text(json.dumps(settings), encoding="utf-8")
    return path


def test_load_defaults_from_project_root(tmp_path):
    write_config(tmp_path, {})
    config = Config.load(cwd=tmp_path)
    assert config.root == tmp_path.resolve()
    assert config.path_to("outDir") == tmp_path.resolve() / "build/"
    assert config.path_to("templateDir") == tmp_path.resolve() / "src" / "views"
    assert config.path_to("partialDirs") == [tmp_path.resolve() / "src" / "partials"]
    assert config.asset_dirs == ("stylesheets/", "scripts/", "images")


def test_root_found_from_subdirectory(tmp_path):
    write_config(tmp_path, {"outDir": "public/"})
    nested = tmp_path / "src" / "views" / "deep"
    nested.mkdir(parents=True)
    config = Config.load(cwd=nested)
    assert config.root == tmp_path.resolve()
    assert config.path_to("outDir") == tmp_path.resolve() / "public"


def test_not_in_project(tmp_path):
    with pytest.raises(ConfigError, match="within a project directory"):
        resolve_root(tmp_path, ("architekt-does-not-exist.json",))


def test_yaml_config_is_recognised(tmp_path):
    (tmp_path / "architekt.yaml").write_text(
        "source: site/\nresources:\n  templateDir: pages/\n", encoding="utf-8"
    )
    config = Config.load(cwd=tmp_path)
    assert config.config_file == tmp_path.resolve() / "architekt.yaml"
    assert config.path_to("templateDir") == tmp_path.resolve() / "site" / "pages"


def test_explicit_config_file(tmp_path):
    write_config(tmp_path / "proj", {"source": "web/"}, name="site.json")
    config = Config.load("proj/site.json", cwd=tmp_path)
    assert config.root == (tmp_path / "proj").resolve()
    assert config.path_to("source") == (tmp_path / "proj").resolve() / "web"


def test_type_mismatch_keeps_default(tmp_path, caplog):
    write_config(
        tmp_path,
        {
            "outDir": 42,
            "source": "site/",
            "resources": {"partialDirs": "partials", "layoutDir": "shells/"},
        },
    )
    with caplog.at_level(logging.WARNING, logger="architekt"):
        config = Config.load(cwd=tmp_path)
    assert config.out_dir == DEFAULT_CONFIG["outDir"]
    assert config.source == "site/"
    assert config.resources["partialDirs"] == ["partials"]
    assert config.resources["layoutDir"] == "shells/"
    # Untouched resources keep their defaults.
    assert config.resources["helperDir"] == "helpers/"
    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert any("outDir" in message and "int" in message for message in warnings)
    assert any("partialDirs" in message for message in warnings)


def test_cli_overrides_win(tmp_path):
    write_config(tmp_path, {"outDir": "public/", "resources": {"templateDir": "pages/"}})
    config = Config.load(
        cwd=tmp_path,
        outDir="dist/",
        templateDir=None,
        partialDirs="partials,shared/partials",
        helperDir="lib/",
    )
    assert config.out_dir == "dist/"
    assert config.resources["templateDir"] == "pages/"
    assert config.resources["partialDirs"] == ["partials", "shared/partials"]
    assert config.path_to("helperDir") == tmp_path.resolve() / "src" / "lib"


def test_path_to_rejects_unknown_resources(tmp_path):
    write_config(tmp_path, {})
    config = Config.load(cwd=tmp_path)
    with pytest.raises(ConfigError, match="does not exist"):
        config.path_to("assetsDir")
    with pytest.raises(ConfigError, match="Invalid resource name"):
        config.path_to("")
    with pytest.raises(ConfigError):
        config.path_to(None)


def test_config_is_read_only(tmp_path):
    write_config(tmp_path, {})
    config = Config.load(cwd=tmp_path)
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.out_dir = "elsewhere/"
    with pytest.raises(TypeError):
        config.resources["templateDir"] = "x/"


def test_invalid_config_files(tmp_path):
    (tmp_path / "architekt.json").write_text("{broken", encoding="utf-8")
    with pytest.raises(ConfigError, match="Could not read"):
        Config.load(cwd=tmp_path)

    (tmp_path / "architekt.json").write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        Config.load(cwd=tmp_path)


def test_merge_settings_ignores_unknown_keys():
    merged = merge_settings(DEFAULT_CONFIG, {"theme": "dark", "resources": {"extra": "x/"}})
    assert "theme" not in merged
    assert "extra" not in merged["resources"]
    # Defaults are never mutated.
    assert DEFAULT_CONFIG["resources"]["partialDirs"] == ["partials"]
