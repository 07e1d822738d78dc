"""Build pipeline — one sequential pass over every build stage.

Stage order is fixed:

    1. styles          compile the style entry, vendor-prefix, write CSS
    2. subsite_styles  mirror the sub-site assets, compile its stylesheets
    3. scripts         propagate scripts byte-for-byte
    4. pages           assemble pages and/or the root document (scope-aware)
    5. subsite_pages   assemble the mirrored sub-site's markup

Every stage is guarded on its own.  A failing stage is logged with the
offending file and the pass moves on; its previous output stays in place.
When the last stage has been attempted the pipeline signals the reload
channel, whatever the individual stages reported.

Stage bodies do blocking file I/O and may shell out to a prefixer, so each
one runs in a worker thread.  They are awaited one at a time; two stages
never run concurrently.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tern import _console
from tern._errors import StageError, TransformError
from tern.builder.files import (
    copy_scripts,
    mirror_tree,
    mirrored_files,
    prune_tree,
    write_text_if_changed,
)
from tern.transforms.markup import MarkupAssembler
from tern.transforms.styles import CommandPrefixer, SassCompiler

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from pathlib import Path

    from tern._types import Scope
    from tern.config import TernConfig
    from tern.reload.channel import ReloadChannel
    from tern.transforms import Transform

    type StageFunc = Callable[[Scope], tuple[Path, ...]]


STAGE_NAMES: tuple[str, ...] = ("styles", "subsite_styles", "scripts", "pages", "subsite_pages")


@dataclass(frozen=True, slots=True)
class StageResult:
    """Outcome of one stage in one pass.

    Attributes:
        name: Stage name (one of ``STAGE_NAMES``).
        ok: False if the stage raised or any of its files failed.
        outputs: Output files the stage produced or confirmed up to date.
        duration_ms: Wall-clock time spent in the stage.
        error: Short failure description, None when ``ok``.

    """

    name: str
    ok: bool
    outputs: tuple[Path, ...]
    duration_ms: float
    error: str | None = None


@dataclass(frozen=True, slots=True)
class BuildReport:
    """Aggregate result of one pipeline pass.

    Attributes:
        scope: The scope the pass ran with.
        stages: One result per stage, in execution order.
        duration_ms: Total wall-clock time for the pass.
        reloaded: Number of browser clients signalled after the pass.

    """

    scope: Scope
    stages: tuple[StageResult, ...]
    duration_ms: float
    reloaded: int = 0

    @property
    def ok(self) -> bool:
        """True if every stage succeeded."""
        return all(stage.ok for stage in self.stages)

    @property
    def failed(self) -> tuple[str, ...]:
        """Names of the stages that failed."""
        return tuple(stage.name for stage in self.stages if not stage.ok)

    def stage(self, name: str) -> StageResult:
        """Look up a stage result by name."""
        for result in self.stages:
            if result.name == name:
                return result
        raise KeyError(name)


class BuildPipeline:
    """Runs the build stages over a project.

    Transforms are injectable so tests can substitute fakes; by default
    styles go through libsass and the configured prefix command, and markup
    through :class:`MarkupAssembler` with fragments re-read every pass.

    Args:
        config: Frozen project configuration.
        channel: Reload channel signalled after each pass, if any.
        style_compiler: Transform for the main and sub-site stylesheets.
        prefixer: Vendor-prefix transform for the main stylesheet.
        subsite_prefixer: Vendor-prefix transform for sub-site stylesheets.

    """

    def __init__(
        self,
        config: TernConfig,
        *,
        channel: ReloadChannel | None = None,
        style_compiler: Transform | None = None,
        prefixer: Transform | None = None,
        subsite_prefixer: Transform | None = None,
    ) -> None:
        self._config = config
        self._channel = channel
        self._style_compiler = style_compiler or SassCompiler()
        self._prefixer = prefixer or CommandPrefixer(config.prefix_command, config.browsers)
        self._subsite_prefixer = subsite_prefixer or CommandPrefixer(
            config.prefix_command, config.subsite_browsers,
        )
        self._stages: tuple[tuple[str, StageFunc], ...] = (
            ("styles", self._build_styles),
            ("subsite_styles", self._build_subsite_styles),
            ("scripts", self._copy_scripts),
            ("pages", self._build_pages),
            ("subsite_pages", self._build_subsite_pages),
        )

    @property
    def config(self) -> TernConfig:
        return self._config

    async def run(self, scope: Scope = None) -> BuildReport:
        """Attempt every stage once, in order, then signal the reload channel.

        Never raises for a stage failure; inspect the returned report.

        """
        label = f" ({scope})" if scope else ""
        _console.info(f"Rebuilding{label}...")
        start = time.perf_counter()

        results: list[StageResult] = []
        for name, func in self._stages:
            results.append(await self._run_stage(name, func, scope))

        elapsed = (time.perf_counter() - start) * 1000
        reloaded = self._channel.broadcast() if self._channel is not None else 0
        report = BuildReport(
            scope=scope,
            stages=tuple(results),
            duration_ms=elapsed,
            reloaded=reloaded,
        )
        _print_summary(report)
        return report

    def run_once(self, scope: Scope = None) -> BuildReport:
        """Run a single pass on a fresh event loop (production builds)."""
        return asyncio.run(self.run(scope))

    async def _run_stage(self, name: str, func: StageFunc, scope: Scope) -> StageResult:
        start = time.perf_counter()
        try:
            outputs = await asyncio.to_thread(func, scope)
        except StageError as exc:
            # Individual files were already reported as they failed.
            return StageResult(name, False, (), _ms_since(start), str(exc))
        except TransformError as exc:
            _console.error(f"{name}: {exc}")
            return StageResult(name, False, (), _ms_since(start), str(exc))
        except Exception as exc:
            _console.error(f"{name} failed: {type(exc).__name__}: {exc}")
            return StageResult(name, False, (), _ms_since(start), f"{type(exc).__name__}: {exc}")
        return StageResult(name, True, outputs, _ms_since(start))

    # ------------------------------------------------------------------
    # Stages (run in a worker thread)
    # ------------------------------------------------------------------

    def _build_styles(self, scope: Scope) -> tuple[Path, ...]:
        entry = self._config.style_entry_path
        if not entry.is_file():
            return ()
        css = self._style_compiler.apply(entry.read_text(encoding="utf-8"), origin=entry)
        css = self._prefixer.apply(css, origin=entry)
        dest = self._config.css_output_path / f"{entry.stem}.css"
        write_text_if_changed(dest, css)
        return (dest,)

    def _build_subsite_styles(self, scope: Scope) -> tuple[Path, ...]:
        src = self._config.subsite_path
        if not src.is_dir():
            return ()
        dest = self._config.subsite_output_path
        sheets = self._subsite_sheet_jobs()

        # Outputs are overwritten in place so a failing sheet or page keeps
        # its last good output; only files whose source is gone are dropped.
        expected = {dest / path.relative_to(src) for path in mirrored_files(src)}
        expected.update(css for _, css in sheets)
        expected.update(page for _, page in self._subsite_page_jobs())
        prune_tree(dest, expected)
        mirrored = mirror_tree(src, dest)

        def compile_sheet(sheet: Path) -> str:
            css = self._style_compiler.apply(sheet.read_text(encoding="utf-8"), origin=sheet)
            return self._subsite_prefixer.apply(css, origin=sheet)

        compiled = _process_files("subsite_styles", sheets, compile_sheet)
        return mirrored + compiled

    def _copy_scripts(self, scope: Scope) -> tuple[Path, ...]:
        return copy_scripts(self._config.scripts_path, self._config.js_output_path)

    def _build_pages(self, scope: Scope) -> tuple[Path, ...]:
        config = self._config
        assembler = MarkupAssembler.from_directory(config.includes_path, config.mode)
        jobs: list[tuple[Path, Path]] = []

        if scope in (None, "pages") and config.pages_path.is_dir():
            jobs.extend(
                (page, config.pages_output_path / page.relative_to(config.pages_path))
                for page in sorted(config.pages_path.rglob("*.html"))
            )
        if scope in (None, "index") and config.index_path.is_file():
            jobs.append((config.index_path, config.index_output_path))

        return _process_files("pages", jobs, lambda src: _assemble_file(assembler, src))

    def _build_subsite_pages(self, scope: Scope) -> tuple[Path, ...]:
        config = self._config
        src = config.subsite_path
        if not src.is_dir():
            return ()
        assembler = MarkupAssembler.from_directory(config.includes_path, config.mode)
        return _process_files(
            "subsite_pages",
            self._subsite_page_jobs(),
            lambda page: _assemble_file(assembler, page),
        )

    def _subsite_sheet_jobs(self) -> list[tuple[Path, Path]]:
        src = self._config.subsite_path
        css_dest = self._config.subsite_output_path / "resources" / "css"
        return [
            (sheet, css_dest / f"{sheet.stem}.css")
            for sheet in sorted(src.glob("resources/scss/**/*.scss"))
            if not sheet.name.startswith("_")
        ]

    def _subsite_page_jobs(self) -> list[tuple[Path, Path]]:
        src = self._config.subsite_path
        return [
            (page, self._config.subsite_output_path / page.relative_to(src))
            for page in sorted(src.rglob("*.html"))
        ]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _assemble_file(assembler: MarkupAssembler, path: Path) -> str:
    return assembler.apply(path.read_text(encoding="utf-8"), origin=path)


def _process_files(
    stage: str,
    jobs: Iterable[tuple[Path, Path]],
    render: Callable[[Path], str],
) -> tuple[Path, ...]:
    """Render each source to its destination, reporting failures per file.

    Raises:
        StageError: After every job was attempted, if any of them failed.

    """
    outputs: list[Path] = []
    failures: list[Path] = []
    for src, dest in jobs:
        try:
            write_text_if_changed(dest, render(src))
        except TransformError as exc:
            _console.error(f"{stage}: {exc if exc.path else f'{src}: {exc}'}")
            failures.append(src)
            continue
        except (OSError, UnicodeDecodeError) as exc:
            _console.error(f"{stage}: {src}: {exc}")
            failures.append(src)
            continue
        outputs.append(dest)

    if failures:
        names = ", ".join(path.name for path in failures)
        msg = f"{len(failures)} file(s) failed: {names}"
        raise StageError(msg)
    return tuple(outputs)


def _ms_since(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def _print_summary(report: BuildReport) -> None:
    if report.ok:
        _console.success(f"Rebuilt in {report.duration_ms:.0f}ms")
        return
    _console.warn(
        f"Rebuilt in {report.duration_ms:.0f}ms with failures in: {', '.join(report.failed)}"
    )
