"""Reload channel — pushes live-reload events to connected browsers.

Each browser tab holds one Server-Sent Events stream open on the reload
endpoint.  After every completed build the pipeline calls ``broadcast()``,
which drops a single ``reload`` event on every registered client's queue.
Delivery is best-effort: there is no acknowledgement or retry, and a tab
that misses an event simply reloads on the next build.
"""

from __future__ import annotations

import asyncio
import threading
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from tern._types import ClientID

# Events buffered per client before further events are dropped
CLIENT_QUEUE_SIZE = 16

RELOAD_DATA = "reload"


def _new_client_id() -> ClientID:
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class ReloadClient:
    """A connected browser tab.

    Attributes:
        client_id: Unique identifier for this connection.
        queue: Events waiting to be written to the tab's stream.

    """

    client_id: ClientID = field(default_factory=_new_client_id)
    queue: asyncio.Queue[Any] = field(
        default_factory=lambda: asyncio.Queue(maxsize=CLIENT_QUEUE_SIZE),
        compare=False,
        hash=False,
    )


class ReloadChannel:
    """Registry of open reload streams.

    The channel is the only writer to a client's queue.  Clients are added
    when a tab connects to the reload endpoint and removed when its stream
    closes.

    Thread-safe: the client set is protected by a lock, since build stages
    run in a worker thread while streams are served on the event loop.

    """

    def __init__(self) -> None:
        self._clients: set[ReloadClient] = set()
        self._lock = threading.Lock()

    @property
    def client_count(self) -> int:
        """Number of open reload streams."""
        with self._lock:
            return len(self._clients)

    def register(self, client: ReloadClient) -> None:
        """Add a client."""
        with self._lock:
            self._clients.add(client)

    def unregister(self, client: ReloadClient) -> None:
        """Remove a client.  Removing an unknown client is a no-op."""
        with self._lock:
            self._clients.discard(client)

    def clients(self) -> frozenset[ReloadClient]:
        """Snapshot of the registered clients (no lock held on return)."""
        with self._lock:
            return frozenset(self._clients)

    def broadcast(self) -> int:
        """Queue one reload event for every registered client.

        Returns:
            Number of clients the event was queued for.

        """
        from chirp import SSEEvent

        event = SSEEvent(data=RELOAD_DATA)
        count = 0
        for client in self.clients():
            try:
                client.queue.put_nowait(event)
                count += 1
            except asyncio.QueueFull:
                continue  # tab is not reading; it catches up on the next build
        return count

    async def client_stream(self, client: ReloadClient) -> AsyncIterator[Any]:
        """Yield events queued for *client* until the stream is closed.

        Used as the generator behind Chirp's ``EventStream``.  The client is
        unregistered when the generator finishes for any reason, including
        disconnect (``CancelledError``) and generator cleanup
        (``GeneratorExit``).

        """
        try:
            while True:
                event = await client.queue.get()
                yield event
        except (asyncio.CancelledError, GeneratorExit):
            return
        finally:
            self.unregister(client)
