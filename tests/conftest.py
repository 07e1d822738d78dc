"""Shared test fixtures for tern."""

from __future__ import annotations

from pathlib import Path

import pytest

from tern._errors import TransformError
from tern.config import TernConfig


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Create a minimal project tree for testing.

    Returns the project root.  Sources live under ``src/`` with the default
    layout: styles, scripts, pages, includes, the root document and a small
    sub-site.
    """
    src = tmp_path / "src"

    styles = src / "resources" / "scss"
    styles.mkdir(parents=True)
    (styles / "style.scss").write_text("$accent: teal;\nbody { color: $accent; }\n")

    scripts = src / "resources" / "js"
    (scripts / "lib").mkdir(parents=True)
    (scripts / "app.js").write_text("console.log('app');\n")
    (scripts / "lib" / "util.js").write_bytes(b"export const x = 1;\r\n")

    includes = src / "includes"
    includes.mkdir()
    (includes / "meta.html").write_text('<meta charset="utf-8">')
    (includes / "header.html").write_text("<header>Site</header>")
    (includes / "footer.html").write_text("<footer>Bye</footer>")
    (includes / "dev.html").write_text(
        "<!-- [s] dev toolbar -->\n<div id=\"dev\">DEV</div>\n<!-- // [e] -->"
    )

    pages = src / "pages"
    pages.mkdir()
    (pages / "about.html").write_text(
        "<html><head><!-- {include:meta} --></head><body>"
        "<!-- {include:header} --><h1>About</h1><!-- {include:footer} -->"
        "<!-- {include:dev} --></body></html>"
    )

    (src / "index.html").write_text(
        "<html><body><!-- {include:header} --><h1>Home</h1></body></html>"
    )

    guide = src / "_ui_guide"
    (guide / "resources" / "scss").mkdir(parents=True)
    (guide / "resources" / "img").mkdir(parents=True)
    (guide / "index.html").write_text("<html><body><!-- {include:header} -->Guide</body></html>")
    (guide / "resources" / "scss" / "guide.scss").write_text("p { margin: 0; }\n")
    (guide / "resources" / "scss" / "_vars.scss").write_text("$gap: 4px;\n")
    (guide / "resources" / "img" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n")

    return tmp_path


@pytest.fixture
def dev_config(project: Path) -> TernConfig:
    """Dev-mode config for the ``project`` tree."""
    return TernConfig(root=project, mode="dev")


@pytest.fixture
def prod_config(project: Path) -> TernConfig:
    """Prod-mode config for the ``project`` tree."""
    return TernConfig(root=project, mode="prod")


class FakeStyleCompiler:
    """Stand-in for the Sass compiler.

    Prefixes the source with a marker comment.  Sources containing
    ``!!broken`` fail the way a real compile error does.
    """

    def __init__(self) -> None:
        self.calls: list[Path | None] = []

    def apply(self, source: str, *, origin: Path | None = None) -> str:
        self.calls.append(origin)
        if "!!broken" in source:
            msg = "Invalid CSS after \"!!broken\""
            raise TransformError(msg, path=origin, line=1)
        return f"/* compiled */\n{source}"


class RecordingChannel:
    """Reload channel stand-in that records each broadcast."""

    def __init__(self, watch: tuple[Path, ...] = ()) -> None:
        self.broadcasts = 0
        self._watch = watch
        self.seen: list[tuple[bool, ...]] = []

    def broadcast(self) -> int:
        self.broadcasts += 1
        self.seen.append(tuple(path.exists() for path in self._watch))
        return 0
