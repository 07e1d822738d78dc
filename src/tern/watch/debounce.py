"""Debouncer — defer a callback until a quiet window has elapsed.

Every ``trigger()`` cancels the pending timer and arms a new one, so a burst
of triggers fires the callback exactly once, with the arguments of the last
trigger, ``delay_ms`` after the burst ends.  Timers live on the running
asyncio loop; all calls must come from that loop.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable


class Debouncer:
    """Trailing-edge debounce around a synchronous callback.

    Args:
        delay_ms: Quiet window in milliseconds.
        callback: Called with the last trigger's arguments.

    """

    __slots__ = ("_callback", "_delay", "_handle")

    def __init__(self, delay_ms: float, callback: Callable[..., Any]) -> None:
        self._delay = delay_ms / 1000
        self._callback = callback
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        """Whether a window is open and the callback has not fired yet."""
        return self._handle is not None

    def trigger(self, *args: Any) -> None:
        """Open (or restart) the quiet window."""
        if self._handle is not None:
            self._handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire, args)

    def cancel(self) -> None:
        """Close the window without firing."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, args: tuple[Any, ...]) -> None:
        self._handle = None
        self._callback(*args)
