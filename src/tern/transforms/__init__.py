"""Transforms — pure text-to-text steps plugged into the build pipeline.

Each transform takes source text (plus the file it came from, for
diagnostics) and returns output text, raising ``TransformError`` when the
source is rejected.  The pipeline never depends on a concrete transform,
so tests swap in fakes freely.

Provided implementations:
    SassCompiler      style compile (libsass)
    CommandPrefixer   vendor prefixing via an external command (postcss)
    MarkupAssembler   include substitution + dev-block stripping
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from tern.transforms.markup import MarkupAssembler, assemble, load_includes, strip_dev_blocks
from tern.transforms.styles import CommandPrefixer, SassCompiler

if TYPE_CHECKING:
    from pathlib import Path


@runtime_checkable
class Transform(Protocol):
    """A text transform with file-aware diagnostics."""

    def apply(self, source: str, *, origin: Path | None = None) -> str:
        """Transform *source*; raise TransformError on rejection."""
        ...


__all__ = [
    "CommandPrefixer",
    "MarkupAssembler",
    "SassCompiler",
    "Transform",
    "assemble",
    "load_includes",
    "strip_dev_blocks",
]
