"""Build targets — the fixed source -> destination pairs of a project.

Targets are derived once from TernConfig at startup and never change.  The
dev session turns every target with a watch root into a WatchBinding.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from tern._types import Scope, TargetKind
    from tern.config import TernConfig


@dataclass(frozen=True, slots=True)
class BuildTarget:
    """One source tree and where its output lands.

    Attributes:
        kind: What the pipeline does with the sources.
        label: Human-readable name used in logs.
        source: Source file or directory.
        destination: Output file or directory.
        watch: Root to watch for changes, or None if not watched.
        scope: Scope of the rebuild a change under ``watch`` requests.
        poll: Watch by mtime polling (single files) instead of events.

    """

    kind: TargetKind
    label: str
    source: Path
    destination: Path
    watch: Path | None = None
    scope: Scope = None
    poll: bool = False


def build_targets(config: TernConfig) -> tuple[BuildTarget, ...]:
    """Return the project's build targets in pipeline order."""
    return (
        BuildTarget(
            kind="style",
            label="styles",
            source=config.style_entry_path,
            destination=config.css_output_path,
            watch=config.styles_path,
        ),
        BuildTarget(
            kind="script",
            label="scripts",
            source=config.scripts_path,
            destination=config.js_output_path,
            watch=config.scripts_path,
        ),
        BuildTarget(
            kind="markup",
            label="pages",
            source=config.pages_path,
            destination=config.pages_output_path,
            watch=config.pages_path,
            scope="pages",
        ),
        BuildTarget(
            kind="markup",
            label="includes",
            source=config.includes_path,
            destination=config.output_path,
            watch=config.includes_path,
        ),
        BuildTarget(
            kind="markup",
            label="index",
            source=config.index_path,
            destination=config.index_output_path,
            watch=config.index_path,
            scope="index",
            poll=True,
        ),
        BuildTarget(
            kind="subsite",
            label="subsite",
            source=config.subsite_path,
            destination=config.subsite_output_path,
            watch=config.subsite_path,
        ),
    )


def source_directories(config: TernConfig) -> tuple[Path, ...]:
    """Source directories scaffolded at startup."""
    resources = config.source_path / "resources"
    return (
        config.styles_path,
        config.scripts_path,
        resources / "images",
        resources / "fonts",
        config.pages_path,
        config.subsite_path,
    )


def output_directories(config: TernConfig) -> tuple[Path, ...]:
    """Output directories scaffolded at startup."""
    resources = config.output_path / "resources"
    return (
        config.css_output_path,
        config.js_output_path,
        resources / "images",
        resources / "fonts",
        config.subsite_output_path,
    )
