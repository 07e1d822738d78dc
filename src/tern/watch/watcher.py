"""Change aggregator — turns filesystem noise into one trigger per burst.

Each watched root gets a binding with its own debounce window (60ms by
default).  Editors save in bursts (temp file, rename, chmod), so every raw
event restarts the root's window and the trigger fires once the root has
been quiet for the whole window.

Raw events from all roots travel over a single ``asyncio.Queue``.  One
dispatcher task drains it and owns every debouncer, so trigger state is
only ever touched from that one place.

Directories are watched with ``watchfiles.awatch``.  The root document is a
single file and is polled by mtime instead.  A root that does not exist
when it is registered is simply not watched.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from watchfiles import Change

from tern import _console
from tern.watch.debounce import Debouncer

if TYPE_CHECKING:
    from tern._types import Scope, TriggerFunc


type ChangeKind = Literal["created", "modified", "deleted"]

# Mapping from watchfiles Change enum to our kind literals.
_CHANGE_KIND_MAP: dict[Change, ChangeKind] = {
    Change.added: "created",
    Change.modified: "modified",
    Change.deleted: "deleted",
}

DEFAULT_DEBOUNCE_MS = 60
DEFAULT_POLL_INTERVAL_MS = 50


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A raw filesystem change under a watched root.

    Attributes:
        label: Label of the binding the change belongs to.
        path: Absolute path of the changed file.
        kind: Type of filesystem change.

    """

    label: str
    path: Path
    kind: ChangeKind = "modified"


@dataclass(frozen=True, slots=True)
class WatchBinding:
    """A watched root and what to do when it settles.

    Attributes:
        root: Directory (or, with ``poll``, single file) being watched.
        label: Human-readable name, unique per aggregator.
        on_trigger: Called with this binding once per debounced burst.
        scope: Build scope the binding's owner requests on trigger.
        debounce_ms: Quiet window for this root.
        poll: Watch by mtime polling instead of filesystem events.

    """

    root: Path
    label: str
    on_trigger: TriggerFunc = field(compare=False, repr=False)
    scope: Scope = None
    debounce_ms: float = DEFAULT_DEBOUNCE_MS
    poll: bool = False


def _mtime_ns(path: Path) -> int | None:
    try:
        return path.stat().st_mtime_ns
    except OSError:
        return None


class ChangeAggregator:
    """Watches a set of named roots and debounces their events.

    Args:
        poll_interval_ms: mtime polling interval for ``poll`` bindings.

    """

    def __init__(self, *, poll_interval_ms: float = DEFAULT_POLL_INTERVAL_MS) -> None:
        self._poll_interval = poll_interval_ms / 1000
        self._bindings: dict[str, WatchBinding] = {}
        self._debouncers: dict[str, Debouncer] = {}
        self._queue: asyncio.Queue[ChangeEvent] = asyncio.Queue()
        self._stop_event = asyncio.Event()
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def bindings(self) -> tuple[WatchBinding, ...]:
        """Registered bindings, in registration order."""
        return tuple(self._bindings.values())

    @property
    def is_running(self) -> bool:
        """Whether the watcher tasks are active."""
        return bool(self._tasks)

    def watch(
        self,
        root: Path,
        label: str,
        on_trigger: TriggerFunc,
        *,
        scope: Scope = None,
        debounce_ms: float = DEFAULT_DEBOUNCE_MS,
        poll: bool = False,
    ) -> WatchBinding | None:
        """Register *root* under *label*.

        Returns the binding, or None if *root* does not exist (not an error:
        there is nothing to watch).

        Raises:
            ValueError: If *label* is already registered.

        """
        if not root.exists():
            return None
        if label in self._bindings:
            msg = f"A root is already watched under label {label!r}"
            raise ValueError(msg)

        binding = WatchBinding(
            root=root,
            label=label,
            on_trigger=on_trigger,
            scope=scope,
            debounce_ms=debounce_ms,
            poll=poll,
        )
        self._bindings[label] = binding
        self._debouncers[label] = Debouncer(debounce_ms, self._fire)
        if self.is_running:
            self._spawn(self._observe(binding), f"tern-watch-{label}")
        return binding

    def notify(self, label: str, path: Path | None = None, kind: ChangeKind = "modified") -> None:
        """Send a raw change for *label* to the dispatcher.  Unknown labels are ignored."""
        binding = self._bindings.get(label)
        if binding is None:
            return
        self._queue.put_nowait(ChangeEvent(label=label, path=path or binding.root, kind=kind))

    async def start(self) -> None:
        """Start the dispatcher and one observer task per binding."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._spawn(self._dispatch(), "tern-dispatch")
        for binding in self._bindings.values():
            self._spawn(self._observe(binding), f"tern-watch-{binding.label}")

    async def stop(self) -> None:
        """Stop all observers, discard open debounce windows, and wait for the tasks."""
        self._stop_event.set()
        for debouncer in self._debouncers.values():
            debouncer.cancel()
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _spawn(self, coro: object, name: str) -> None:
        self._tasks.append(asyncio.get_running_loop().create_task(coro, name=name))  # type: ignore[arg-type]

    async def _dispatch(self) -> None:
        while True:
            event = await self._queue.get()
            debouncer = self._debouncers.get(event.label)
            if debouncer is not None:
                debouncer.trigger(self._bindings[event.label], event)

    async def _observe(self, binding: WatchBinding) -> None:
        try:
            if binding.poll:
                await self._poll_file(binding)
            else:
                await self._watch_directory(binding)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            _console.warn(f"Stopped watching {binding.label} ({binding.root}): {exc}")

    async def _watch_directory(self, binding: WatchBinding) -> None:
        from watchfiles import awatch

        async for raw_changes in awatch(binding.root, stop_event=self._stop_event, step=10):
            for change_type, path_str in raw_changes:
                kind = _CHANGE_KIND_MAP.get(change_type, "modified")
                self.notify(binding.label, Path(path_str), kind)

    async def _poll_file(self, binding: WatchBinding) -> None:
        last = _mtime_ns(binding.root)
        while not self._stop_event.is_set():
            await asyncio.sleep(self._poll_interval)
            current = _mtime_ns(binding.root)
            if current is not None and current != last:
                last = current
                self.notify(binding.label, binding.root)

    def _fire(self, binding: WatchBinding, event: ChangeEvent) -> None:
        _console.info(f"Change detected → {binding.label} ({event.kind} {event.path.name})")
        try:
            binding.on_trigger(binding)
        except Exception as exc:
            _console.error(f"Trigger for {binding.label} failed: {type(exc).__name__}: {exc}")
