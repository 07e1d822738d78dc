"""Dev server — static output plus the live-reload stream, on a negotiated port.

Wraps a Chirp ``App`` with two pieces:

- ``GET /__reload``: a Server-Sent Events stream registered with the
  reload channel.  The server never closes it; the browser does.
- :class:`~tern.server.static.StaticSite` middleware answering every other
  path from the output directory.

``DevServer.start()`` binds the preferred port or the next free one within
the attempt budget.  Running out of ports is the one fatal error in a dev
session: it prints a message and exits with status 1.
"""

from __future__ import annotations

import errno
from typing import TYPE_CHECKING, Any, NoReturn

from tern import _console
from tern._errors import PortExhaustedError
from tern.reload.channel import ReloadClient
from tern.reload.client import RELOAD_ENDPOINT
from tern.server.ports import acquire_port
from tern.server.static import StaticSite

if TYPE_CHECKING:
    from collections.abc import Callable

    from chirp import App, Request

    from tern.config import TernConfig
    from tern.reload.channel import ReloadChannel


def register_reload_endpoint(app: App, channel: ReloadChannel) -> None:
    """Register the ``/__reload`` SSE endpoint on *app*.

    Each request registers a fresh :class:`ReloadClient`; the client is
    unregistered when its stream generator finishes (browser disconnect).

    """
    from chirp import EventStream

    async def reload_handler(request: Request) -> Any:
        client = ReloadClient()
        channel.register(client)
        return EventStream(channel.client_stream(client))

    reload_handler.__name__ = "tern_reload"
    reload_handler.__qualname__ = "DevServer.tern_reload"

    app.route(RELOAD_ENDPOINT, name="tern:reload")(reload_handler)


def create_app(config: TernConfig, channel: ReloadChannel) -> App:
    """Create the Chirp app serving ``config.output_path`` and the reload stream."""
    from chirp import App, AppConfig

    app = App(
        config=AppConfig(
            template_dir=config.output_path,
            debug=config.is_dev,
            host=config.host,
            port=config.port,
        ),
    )
    register_reload_endpoint(app, channel)
    app.add_middleware(StaticSite(config.output_path, inject_reload=config.is_dev))
    return app


class DevServer:
    """The dev HTTP server.

    Args:
        config: Frozen project configuration.
        channel: Reload channel shared with the build pipeline.

    """

    def __init__(self, config: TernConfig, channel: ReloadChannel) -> None:
        self._config = config
        self._app = create_app(config, channel)
        self._port: int | None = None

    @property
    def app(self) -> App:
        """The underlying Chirp app (for lifecycle hooks and tests)."""
        return self._app

    @property
    def port(self) -> int | None:
        """The port bound by :meth:`start`, once known."""
        return self._port

    def start(
        self,
        desired_port: int | None = None,
        *,
        on_bound: Callable[[int], object] | None = None,
    ) -> None:
        """Serve until interrupted.

        Tries ``desired_port`` (default ``config.port``) and the following
        ports, ``config.port_attempts`` candidates in total.  *on_bound* is
        called with the chosen port just before serving.

        Raises:
            SystemExit: With status 1 when no candidate port could be bound.

        """
        first = desired_port if desired_port is not None else self._config.port
        last = first + self._config.port_attempts - 1
        port = first

        while True:
            try:
                port = acquire_port(port, host=self._config.host, attempts=last - port + 1)
            except PortExhaustedError as exc:
                self._fatal(first, last, exc)

            self._port = port
            if on_bound is not None:
                on_bound(port)
            try:
                self._serve(port)
                return
            except OSError as exc:
                if exc.errno != errno.EADDRINUSE:
                    raise
                _console.warn(f"Port {port} was taken before the server could bind it")
            port += 1
            if port > last:
                self._fatal(first, last, PortExhaustedError(first, last))

    def _serve(self, port: int) -> None:
        self._app.run(host=self._config.host, port=port)

    @staticmethod
    def _fatal(first: int, last: int, exc: PortExhaustedError) -> NoReturn:
        _console.error(f"No available port between {first} and {last}; is another server running?")
        raise SystemExit(1) from exc
