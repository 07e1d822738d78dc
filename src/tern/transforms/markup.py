"""Markup assembly — include substitution and dev-block stripping.

Pages reference shared fragments with an HTML comment directive::

    <!-- {include:header} -->

Each directive is replaced with the named fragment from the includes
directory.  Fragments may themselves contain directives; expansion repeats
until nothing changes.

Development-only markup is fenced with sentinel comments::

    <!-- [s] debug banner -->
    <div class="debug">...</div>
    <!-- // [e] -->

In dev mode sentinel blocks are kept verbatim.  In prod mode they are
removed from the ``dev`` fragment and from the assembled document, so
production output never carries development UI and assembling it again
changes nothing.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from tern._errors import TransformError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

    from tern._types import BuildMode

# Fragments read from the includes directory, as <name>.html
INCLUDE_NAMES: tuple[str, ...] = ("meta", "header", "footer", "scripts", "livereload", "dev")

# The fragment whose sentinel blocks are stripped in prod mode
DEV_INCLUDE = "dev"

_INCLUDE_RE = re.compile(r"<!--\s*\{include:([\w-]+)\}\s*-->")

# <!-- [s] ... <!-- // [e] ... -->   and   <!-- [s] ... [e] -->
_DEV_BLOCK_RES: tuple[re.Pattern[str], ...] = (
    re.compile(r"<!--\s*\[s\][\s\S]*?<!--\s*//\s*\[e\][\s\S]*?-->"),
    re.compile(r"<!--\s*\[s\][\s\S]*?\[e\]\s*-->"),
)

# Nested include expansion limit; deeper nesting is treated as a cycle
_MAX_DEPTH = 8


def load_includes(includes_dir: Path, names: Iterable[str] = INCLUDE_NAMES) -> dict[str, str]:
    """Read the named fragments.  A missing fragment becomes an empty string."""
    includes: dict[str, str] = {}
    for name in names:
        path = includes_dir / f"{name}.html"
        includes[name] = path.read_text(encoding="utf-8") if path.is_file() else ""
    return includes


def strip_dev_blocks(html: str) -> str:
    """Remove every sentinel-delimited block from *html*."""
    while True:
        stripped = html
        for pattern in _DEV_BLOCK_RES:
            stripped = pattern.sub("", stripped)
        if stripped == html:
            return stripped
        html = stripped


def assemble(
    markup: str,
    includes: Mapping[str, str],
    mode: BuildMode,
    *,
    origin: Path | None = None,
) -> str:
    """Substitute include directives in *markup* for the given mode.

    Directives naming an unknown fragment are left untouched.

    Raises:
        TransformError: If includes nest deeper than the expansion limit
            (almost always an include that references itself).

    """
    prod = mode == "prod"

    def fragment(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in includes:
            return match.group(0)
        content = includes[name]
        if prod and name == DEV_INCLUDE:
            return strip_dev_blocks(content)
        return content

    result = markup
    for _ in range(_MAX_DEPTH + 1):
        expanded = _INCLUDE_RE.sub(fragment, result)
        if prod:
            expanded = strip_dev_blocks(expanded)
        if expanded == result:
            return result
        result = expanded

    msg = f"include directives nest deeper than {_MAX_DEPTH} levels (self-referencing fragment?)"
    raise TransformError(msg, path=origin)


class MarkupAssembler:
    """Transform that assembles pages against a fixed set of fragments.

    Args:
        includes: Fragment name -> fragment markup.
        mode: Build mode, fixed for the process lifetime.

    """

    __slots__ = ("_includes", "_mode")

    def __init__(self, includes: Mapping[str, str], mode: BuildMode) -> None:
        self._includes = dict(includes)
        self._mode = mode

    @classmethod
    def from_directory(cls, includes_dir: Path, mode: BuildMode) -> MarkupAssembler:
        """Build an assembler from the fragments currently on disk."""
        return cls(load_includes(includes_dir), mode)

    @property
    def mode(self) -> BuildMode:
        return self._mode

    def apply(self, source: str, *, origin: Path | None = None) -> str:
        return assemble(source, self._includes, self._mode, origin=origin)
