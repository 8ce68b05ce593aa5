import json
import logging
from pathlib import Path

import pytest

from architekt.config import DEFAULT_CONFIG


@pytest.fixture(autouse=True)
def reset_architekt_logger():
    yield
    logger = logging.getLogger("architekt")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


def create_project(root: Path) -> Path:
    """Write a small but complete Architekt project under ``root``."""
    root.mkdir(parents=True, exist_ok=True)
    (root / "architekt.json").write_text(json.dumps(DEFAULT_CONFIG), encoding="utf-8")
    src = root / "src"
    for name in ("views", "data", "partials", "layouts", "helpers"):
        (src / name).mkdir(parents=True)
    (src / "assets" / "stylesheets").mkdir(parents=True)
    (src / "assets" / "images" / "icons").mkdir(parents=True)

    (src / "layouts" / "default.jinja").write_text(
        "<html><body>{% block content %}{% endblock %}</body></html>",
        encoding="utf-8",
    )
    (src / "partials" / "_header.jinja").write_text(
        "<h1>{{ title }}</h1>", encoding="utf-8"
    )
    (src / "views" / "index.html.jinja").write_text(
        '{% extends "default" %}{% block content %}'
        '{% include "header" %}<p>{{ shout(message) }}</p>{% endblock %}',
        encoding="utf-8",
    )
    (src / "views" / "about.jinja").write_text(
        "<p>About {{ page_name }}</p>", encoding="utf-8"
    )
    (src / "views" / "_draft.jinja").write_text("draft", encoding="utf-8")
    (src / "views" / "notes.txt").write_text("not a template", encoding="utf-8")
    (src / "data" / "index.json").write_text(
        json.dumps({"title": "Home", "message": "hi"}), encoding="utf-8"
    )
    (src / "helpers" / "strings.py").write_text(
        "def shout(text):\n    return str(text).upper() + '!'\n", encoding="utf-8"
    )
    (src / "assets" / "images" / "logo.txt").write_text("logo", encoding="utf-8")
    (src / "assets" / "images" / "icons" / "star.txt").write_text(
        "star", encoding="utf-8"
    )
    (src / "assets" / "stylesheets" / "_vars.scss").write_text(
        "$color: red;\n", encoding="utf-8"
    )
    (src / "assets" / "stylesheets" / "theme.scss").write_text(
        '@import "vars";\nbody { color: $color; }\n', encoding="utf-8"
    )
    return root


@pytest.fixture
def project(tmp_path: Path) -> Path:
    return create_project(tmp_path / "site")
