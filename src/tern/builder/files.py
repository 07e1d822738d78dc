"""Filesystem helpers for the build pipeline.

Outputs are written only when their bytes change, so a rebuild that does
not touch a source leaves the matching output's bytes and mtime alone.
Directory cleanup tolerates a busy destination (an editor or browser
holding a file open) with one delayed retry.
"""

from __future__ import annotations

import shutil
import time
from typing import TYPE_CHECKING

from tern import _console
from tern._errors import ConfigError
from tern.targets import output_directories, source_directories

if TYPE_CHECKING:
    from collections.abc import Collection
    from pathlib import Path

    from tern.config import TernConfig

# Sub-site entries that are compiled rather than mirrored
_STYLE_DIRS: frozenset[str] = frozenset({"scss", "sass"})
_STYLE_SUFFIXES: frozenset[str] = frozenset({".scss", ".sass"})
# Sub-site markup, assembled by the subsite_pages stage
_MARKUP_SUFFIXES: frozenset[str] = frozenset({".html"})

# Delay before retrying a failed directory removal (seconds)
CLEANUP_RETRY_DELAY = 0.5


def write_if_changed(path: Path, data: bytes) -> bool:
    """Write *data* to *path* unless it already holds exactly those bytes.

    Creates parent directories as needed.  Returns True if the file was written.

    """
    if path.is_file() and path.read_bytes() == data:
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return True


def write_text_if_changed(path: Path, text: str) -> bool:
    """UTF-8 encode *text* and write it via :func:`write_if_changed`."""
    return write_if_changed(path, text.encode("utf-8"))


def copy_if_changed(src: Path, dest: Path) -> bool:
    """Copy *src* to *dest* byte-for-byte unless *dest* is already identical."""
    return write_if_changed(dest, src.read_bytes())


def copy_scripts(scripts_path: Path, dest_root: Path) -> tuple[Path, ...]:
    """Propagate every ``*.js`` file under *scripts_path* to *dest_root*.

    Relative paths are preserved.  Returns the destination of every script,
    written or already up to date.

    """
    if not scripts_path.is_dir():
        return ()

    results: list[Path] = []
    for src_file in sorted(scripts_path.rglob("*.js")):
        if not src_file.is_file():
            continue
        dest_file = dest_root / src_file.relative_to(scripts_path)
        copy_if_changed(src_file, dest_file)
        results.append(dest_file)
    return tuple(results)


def mirrored_files(src_root: Path) -> list[Path]:
    """Files under *src_root* that :func:`mirror_tree` copies verbatim.

    Style directories (``scss/``, ``sass/``), ``.scss``/``.sass`` files and
    markup are compiled or assembled separately, so they are left out.

    """
    if not src_root.is_dir():
        return []

    files: list[Path] = []
    for src_file in sorted(src_root.rglob("*")):
        if not src_file.is_file():
            continue
        relative = src_file.relative_to(src_root)
        if any(part in _STYLE_DIRS for part in relative.parts[:-1]):
            continue
        if src_file.suffix in _STYLE_SUFFIXES or src_file.suffix in _MARKUP_SUFFIXES:
            continue
        files.append(src_file)
    return files


def mirror_tree(src_root: Path, dest_root: Path) -> tuple[Path, ...]:
    """Mirror *src_root* into *dest_root*, skipping style sources and markup.

    A file that cannot be copied (locked, permission denied) is reported
    and skipped; whatever copy *dest_root* already holds stays in place.

    """
    results: list[Path] = []
    for src_file in mirrored_files(src_root):
        relative = src_file.relative_to(src_root)
        dest_file = dest_root / relative
        try:
            copy_if_changed(src_file, dest_file)
        except OSError as exc:
            _console.warn(f"{relative} is in use, skipped ({exc.strerror or exc})")
            continue
        results.append(dest_file)
    return tuple(results)


def prune_tree(dest_root: Path, keep: Collection[Path]) -> tuple[Path, ...]:
    """Delete files under *dest_root* that are not in *keep*.

    Used to drop outputs whose source was removed without wiping the
    outputs that are still current.  Directories left empty are removed
    too.  Returns the deleted files.

    """
    if not dest_root.is_dir():
        return ()

    removed: list[Path] = []
    for path in sorted(dest_root.rglob("*"), reverse=True):
        if path.is_dir():
            if not any(path.iterdir()):
                path.rmdir()
            continue
        if path in keep:
            continue
        try:
            path.unlink()
        except OSError as exc:
            _console.warn(f"Could not remove stale {path} ({exc.strerror or exc})")
            continue
        removed.append(path)
    return tuple(removed)


def remove_tree(path: Path, *, retry_delay: float = CLEANUP_RETRY_DELAY) -> bool:
    """Remove a directory tree, retrying once after *retry_delay* seconds.

    Returns False (after a warning) if the tree could not be removed; the
    stale directory is then left in place and later writes overwrite it.

    """
    if not path.exists():
        return True
    try:
        shutil.rmtree(path)
        return True
    except OSError as exc:
        _console.warn(f"{path} is busy ({exc.strerror or exc}), retrying in {retry_delay:g}s")

    time.sleep(retry_delay)
    try:
        shutil.rmtree(path)
        return True
    except OSError:
        _console.warn(f"Could not remove {path}; continuing with existing files")
        return False


def prepare_output(config: TernConfig) -> None:
    """Clean the output directory and scaffold source and output directories.

    Raises:
        ConfigError: If the output directory contains the sources, which
            cleaning would destroy.

    """
    if config.source_path.is_relative_to(config.output_path):
        msg = f"Output directory {config.output_path} contains the sources; refusing to clean it"
        raise ConfigError(msg)
    remove_tree(config.output_path)
    for directory in (*source_directories(config), *output_directories(config)):
        directory.mkdir(parents=True, exist_ok=True)
