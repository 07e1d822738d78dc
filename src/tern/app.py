"""Tern application — wires config, pipeline, scheduler, watcher and server.

The public functions (dev, build, run) are the primary entry points.  All
mutable state of a dev loop lives on one :class:`DevSession`, so several
sessions can coexist in one process (tests do this).
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from tern.builder.files import prepare_output
from tern.builder.pipeline import BuildPipeline
from tern.builder.scheduler import BuildScheduler
from tern.config_loader import load_config
from tern.reload.channel import ReloadChannel
from tern.targets import build_targets
from tern.watch.watcher import ChangeAggregator

if TYPE_CHECKING:
    from tern.builder.pipeline import BuildReport
    from tern.config import TernConfig
    from tern.watch.watcher import WatchBinding


@dataclass(slots=True)
class DevSession:
    """Everything one dev loop owns.

    Attributes:
        config: Frozen project configuration.
        channel: Reload channel shared by the pipeline and the server.
        pipeline: Build pipeline signalling ``channel``.
        scheduler: Single-slot scheduler in front of ``pipeline``.
        aggregator: Debounced watcher feeding ``scheduler``.

    """

    config: TernConfig
    channel: ReloadChannel
    pipeline: BuildPipeline
    scheduler: BuildScheduler
    aggregator: ChangeAggregator

    @classmethod
    def create(cls, config: TernConfig, *, pipeline: BuildPipeline | None = None) -> DevSession:
        """Assemble a session and register a watch binding for every target."""
        channel = ReloadChannel()
        if pipeline is None:
            pipeline = BuildPipeline(config, channel=channel)
        scheduler = BuildScheduler(
            pipeline,
            debounce_ms=config.build_debounce_ms,
            policy=config.rebuild_policy,
        )
        aggregator = ChangeAggregator(poll_interval_ms=config.poll_interval_ms)
        session = cls(
            config=config,
            channel=channel,
            pipeline=pipeline,
            scheduler=scheduler,
            aggregator=aggregator,
        )
        session.bind_watchers()
        return session

    def bind_watchers(self) -> tuple[WatchBinding, ...]:
        """Watch every target root that exists; missing roots are skipped."""
        for target in build_targets(self.config):
            if target.watch is None:
                continue
            self.aggregator.watch(
                target.watch,
                target.label,
                self._on_trigger,
                scope=target.scope,
                debounce_ms=self.config.watch_debounce_ms,
                poll=target.poll,
            )
        return self.aggregator.bindings

    async def start(self) -> None:
        """Start watching.  Must run on the server's event loop."""
        await self.aggregator.start()

    async def stop(self) -> None:
        """Stop watching and let an in-flight build finish."""
        await self.aggregator.stop()
        self.scheduler.cancel()
        await self.scheduler.wait_idle()

    def _on_trigger(self, binding: WatchBinding) -> None:
        self.scheduler.request_build(binding.scope)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def dev(root: str | Path = ".", **kwargs: object) -> None:
    """Build, then serve the output with live reload while watching sources.

    Args:
        root: Project root directory.
        **kwargs: Override TernConfig fields.

    """
    from tern.banner import print_banner
    from tern.server.app import DevServer

    config = load_config(Path(root), **{**kwargs, "mode": "dev"})
    prepare_output(config)

    session = DevSession.create(config)
    t0 = time.perf_counter()
    report = session.pipeline.run_once()
    build_ms = (time.perf_counter() - t0) * 1000

    server = DevServer(config, session.channel)

    @server.app.on_startup
    async def _start_session() -> None:
        await session.start()

    @server.app.on_shutdown
    async def _stop_session() -> None:
        await session.stop()

    watched = tuple(binding.label for binding in session.aggregator.bindings)
    warnings = [f"initial build failed in: {', '.join(report.failed)}"] if not report.ok else None

    def _announce(port: int) -> None:
        print_banner(config, port=port, watched=watched, build_ms=build_ms, warnings=warnings)

    server.start(on_bound=_announce)


def build(root: str | Path = ".", **kwargs: object) -> BuildReport:
    """Run one production build pass and return its report.

    Args:
        root: Project root directory.
        **kwargs: Override TernConfig fields.

    """
    from tern.banner import print_banner

    config = load_config(Path(root), **{**kwargs, "mode": "prod"})
    prepare_output(config)

    pipeline = BuildPipeline(config)
    report = pipeline.run_once()

    warnings = [f"failed stages: {', '.join(report.failed)}"] if not report.ok else None
    print_banner(config, build_ms=report.duration_ms, warnings=warnings)
    return report


def run(root: str | Path = ".", **kwargs: object) -> BuildReport | None:
    """Run whichever mode ``TERN_MODE`` (or the config file) selects."""
    config = load_config(Path(root), **kwargs)
    if config.is_dev:
        dev(root, **kwargs)
        return None
    return build(root, **kwargs)
