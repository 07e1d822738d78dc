"""Style transforms — Sass compilation and vendor prefixing.

``SassCompiler`` wraps libsass.  ``CommandPrefixer`` pipes CSS through an
external command such as ``postcss --use autoprefixer``; browser targets are
handed over through the ``BROWSERSLIST`` environment variable, which
autoprefixer reads natively.
"""

from __future__ import annotations

import os
import re
import subprocess
from typing import TYPE_CHECKING

from tern._errors import TransformError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

_SASS_LINE_RE = re.compile(r"on line (\d+)")


class SassCompiler:
    """Compile SCSS/Sass source text to CSS.

    Imports resolve relative to the source file's directory first, then
    against ``include_paths``.

    Args:
        output_style: libsass output style (``expanded``, ``compressed``, ...).
        include_paths: Extra directories searched by ``@import``/``@use``.

    """

    __slots__ = ("_include_paths", "_output_style")

    def __init__(
        self,
        *,
        output_style: str = "expanded",
        include_paths: Sequence[Path] = (),
    ) -> None:
        self._output_style = output_style
        self._include_paths = tuple(include_paths)

    def apply(self, source: str, *, origin: Path | None = None) -> str:
        import sass

        include_paths = [str(p) for p in self._include_paths]
        if origin is not None:
            include_paths.insert(0, str(origin.parent))

        try:
            return sass.compile(
                string=source,
                output_style=self._output_style,
                include_paths=include_paths,
                indented=origin is not None and origin.suffix == ".sass",
            )
        except sass.CompileError as exc:
            detail = str(exc).strip()
            match = _SASS_LINE_RE.search(detail)
            line = int(match.group(1)) if match else None
            message = detail.splitlines()[0] if detail else "Sass compilation failed"
            raise TransformError(message, path=origin, line=line) from exc


class CommandPrefixer:
    """Vendor-prefix CSS by piping it through an external command.

    The command reads CSS on stdin and writes CSS on stdout.  With no
    command configured the transform passes CSS through unchanged.

    Args:
        command: argv of the prefixer, e.g. ``("npx", "postcss", "--use", "autoprefixer")``.
        browsers: Browserslist queries exported as ``BROWSERSLIST``.

    """

    __slots__ = ("_browsers", "_command")

    def __init__(self, command: Sequence[str] = (), browsers: Sequence[str] = ()) -> None:
        self._command = tuple(command)
        self._browsers = tuple(browsers)

    def apply(self, source: str, *, origin: Path | None = None) -> str:
        if not self._command:
            return source

        env = dict(os.environ)
        if self._browsers:
            env["BROWSERSLIST"] = ", ".join(self._browsers)

        try:
            proc = subprocess.run(
                self._command,
                input=source,
                capture_output=True,
                text=True,
                encoding="utf-8",
                env=env,
                check=False,
            )
        except FileNotFoundError as exc:
            msg = f"prefix command not found: {self._command[0]}"
            raise TransformError(msg, path=origin) from exc

        if proc.returncode != 0:
            detail = proc.stderr.strip() or f"exited with status {proc.returncode}"
            raise TransformError(f"vendor prefixing failed: {detail}", path=origin)
        return proc.stdout
