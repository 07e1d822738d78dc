"""Build scheduler — owns the single in-flight build slot.

Triggers from the watchers call ``request_build()``.  Requests pass through
a global debounce window (50ms by default) on top of the per-root debounce
in the watcher: a bulk edit touching several roots fires several triggers
within milliseconds, and this second tier turns them into one build.  The
scope of the last request in a window wins; scopes are not merged.

When the window elapses the pipeline runs only if no build is in flight.
Under the default ``drop`` policy a request that lands mid-build is
discarded; the change is picked up by the next trigger.  Under the
``rescan`` policy it marks the build as pending and exactly one follow-up
build runs when the current one ends.

A running build is never cancelled.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from tern import _console
from tern.watch.debounce import Debouncer

if TYPE_CHECKING:
    from tern._types import RebuildPolicy, Scope


class BuildRunner(Protocol):
    """Anything that can run one build pass (``BuildPipeline`` in practice)."""

    async def run(self, scope: Scope = None) -> Any: ...


class BuildState(Enum):
    """State of the build slot."""

    IDLE = "idle"
    BUILDING = "building"
    BUILDING_WITH_PENDING = "building_with_pending"


class BuildScheduler:
    """Debounces build requests and guarantees at most one running build.

    All methods must be called from the event loop that runs the builds.

    Args:
        runner: The pipeline to run.
        debounce_ms: Global quiet window before a build starts.
        policy: What to do with a request that arrives mid-build.

    """

    def __init__(
        self,
        runner: BuildRunner,
        *,
        debounce_ms: float = 50,
        policy: RebuildPolicy = "drop",
    ) -> None:
        self._runner = runner
        self._debounce_s = debounce_ms / 1000
        self._policy = policy
        self._debouncer = Debouncer(debounce_ms, self._window_elapsed)
        self._state = BuildState.IDLE
        self._pending_scope: Scope = None
        self._task: asyncio.Task[None] | None = None
        self._runs = 0
        self._dropped = 0

    @property
    def state(self) -> BuildState:
        return self._state

    @property
    def is_building(self) -> bool:
        """Whether a pipeline run is in flight."""
        return self._state is not BuildState.IDLE

    @property
    def runs(self) -> int:
        """Number of pipeline runs started so far."""
        return self._runs

    @property
    def dropped(self) -> int:
        """Number of requests discarded because a build was in flight."""
        return self._dropped

    def request_build(self, scope: Scope = None) -> None:
        """Ask for a build.  Restarts the debounce window; last scope wins."""
        self._debouncer.trigger(scope)

    def cancel(self) -> None:
        """Drop a request still waiting in its debounce window."""
        self._debouncer.cancel()

    async def wait_idle(self) -> None:
        """Wait until no window is open and no build (or follow-up) is running."""
        while True:
            task = self._task
            if task is not None and not task.done():
                await asyncio.wait({task})
                continue
            if self._debouncer.pending:
                await asyncio.sleep(self._debounce_s)
                continue
            return

    def _window_elapsed(self, scope: Scope) -> None:
        if self._state is BuildState.IDLE:
            self._start(scope)
            return

        if self._policy == "rescan":
            if self._state is BuildState.BUILDING:
                self._pending_scope = scope
            elif scope != self._pending_scope:
                self._pending_scope = None
            self._state = BuildState.BUILDING_WITH_PENDING
            _console.info("Change during build, rebuilding again when it finishes")
            return

        self._dropped += 1
        _console.warn("Build already running, change skipped (save again to rebuild)")

    def _start(self, scope: Scope) -> None:
        # The slot is taken before the task is created so that a window
        # elapsing in between cannot start a second run.
        self._state = BuildState.BUILDING
        self._runs += 1
        self._task = asyncio.get_running_loop().create_task(self._execute(scope))

    async def _execute(self, scope: Scope) -> None:
        try:
            await self._runner.run(scope)
        except Exception as exc:
            _console.error(f"Build crashed: {type(exc).__name__}: {exc}")
        finally:
            rescan = self._state is BuildState.BUILDING_WITH_PENDING
            follow_up = self._pending_scope
            self._state = BuildState.IDLE
            self._pending_scope = None
        if rescan:
            self._start(follow_up)
