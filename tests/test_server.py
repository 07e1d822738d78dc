"""Tests for tern.server — port negotiation, the Chirp app, DevServer."""

from __future__ import annotations

import errno
import socket
from collections.abc import Iterator
from pathlib import Path

import pytest

from tern._errors import PortExhaustedError
from tern.config import TernConfig
from tern.reload import ReloadChannel
from tern.server import DevServer, create_app, find_available_port, is_port_available
from tern.server import app as server_app
from tern.server import ports
from tern.server.ports import acquire_port

HOST = "127.0.0.1"


@pytest.fixture
def busy_port() -> Iterator[int]:
    """A port held by a listening socket for the duration of the test."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((HOST, 0))
        sock.listen(1)
        yield sock.getsockname()[1]


def _in_use(host: str, port: int) -> None:
    raise OSError(errno.EADDRINUSE, "Address already in use")


class TestPorts:
    """Port availability checks and fallback."""

    def test_busy_port_unavailable(self, busy_port: int) -> None:
        assert not is_port_available(busy_port, HOST)

    def test_falls_back_past_busy_port(
        self, busy_port: int, capsys: pytest.CaptureFixture[str],
    ) -> None:
        port = acquire_port(busy_port, host=HOST, attempts=10)
        assert busy_port < port < busy_port + 10

        err = capsys.readouterr().err
        assert f"Port {busy_port} is in use" in err
        assert f"Falling back to port {port}" in err

    def test_free_port_used_without_fallback_log(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setattr(ports, "_try_bind", lambda host, port: None)
        assert acquire_port(3000) == 3000
        assert capsys.readouterr().err == ""

    def test_exhausted(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(ports, "_try_bind", _in_use)
        with pytest.raises(PortExhaustedError) as exc_info:
            acquire_port(3000, attempts=10)
        assert exc_info.value.first == 3000
        assert exc_info.value.last == 3009
        assert "3000-3009" in str(exc_info.value)

    def test_other_bind_errors_propagate(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def denied(host: str, port: int) -> None:
            raise PermissionError(errno.EACCES, "Permission denied")

        monkeypatch.setattr(ports, "_try_bind", denied)
        with pytest.raises(PermissionError):
            acquire_port(80)

    def test_find_available_port(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(ports, "is_port_available", lambda port, host="": port == 3002)
        assert find_available_port(3000) == 3002

    def test_find_available_port_exhausted(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(ports, "is_port_available", lambda port, host="": False)
        with pytest.raises(PortExhaustedError):
            find_available_port(3000, attempts=3)


class TestCreateApp:
    """create_app — Chirp wiring."""

    def test_registers_reload_route(self, tmp_path: Path) -> None:
        app = create_app(TernConfig(root=tmp_path), ReloadChannel())
        route_names = [r.name for r in app._pending_routes if hasattr(r, "name")]
        assert "tern:reload" in route_names

    def test_debug_follows_mode(self, tmp_path: Path) -> None:
        assert create_app(TernConfig(root=tmp_path), ReloadChannel()).config.debug is True
        prod = TernConfig(root=tmp_path, mode="prod")
        assert create_app(prod, ReloadChannel()).config.debug is False

    @pytest.mark.asyncio
    async def test_serves_output(self, tmp_path: Path) -> None:
        from chirp.testing.client import TestClient

        config = TernConfig(root=tmp_path)
        config.output_path.mkdir()
        config.index_output_path.write_text("<html><body>Home</body></html>")
        app = create_app(config, ReloadChannel())

        async with TestClient(app) as client:
            response = await client.get("/")
            missing = await client.get("/missing.css")

        assert response.status == 200
        body = response.body.decode() if isinstance(response.body, bytes) else response.body
        assert "Home" in body
        assert "data-tern-reload" in body

        assert missing.status == 404
        body = missing.body.decode() if isinstance(missing.body, bytes) else missing.body
        assert "404 Not Found" in body


class TestDevServer:
    """DevServer.start — bind, announce, fatal exhaustion."""

    def test_binds_and_announces(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        served: list[int] = []
        announced: list[int] = []
        monkeypatch.setattr(server_app, "acquire_port", lambda port, **kw: port + 1)
        monkeypatch.setattr(DevServer, "_serve", lambda self, port: served.append(port))

        server = DevServer(TernConfig(root=tmp_path, port=4000), ReloadChannel())
        server.start(on_bound=announced.append)

        assert announced == [4001]
        assert served == [4001]
        assert server.port == 4001

    def test_lost_race_moves_to_next_port(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        served: list[int] = []

        def serve(self: DevServer, port: int) -> None:
            served.append(port)
            if len(served) == 1:
                raise OSError(errno.EADDRINUSE, "Address already in use")

        monkeypatch.setattr(server_app, "acquire_port", lambda port, **kw: port)
        monkeypatch.setattr(DevServer, "_serve", serve)

        server = DevServer(TernConfig(root=tmp_path, port=4000), ReloadChannel())
        server.start()

        assert served == [4000, 4001]

    def test_exhaustion_exits_with_status_1(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setattr(ports, "_try_bind", _in_use)
        monkeypatch.setattr(DevServer, "_serve", lambda self, port: pytest.fail("must not serve"))

        server = DevServer(TernConfig(root=tmp_path, port=5000), ReloadChannel())
        with pytest.raises(SystemExit) as exc_info:
            server.start()

        assert exc_info.value.code == 1
        assert "No available port between 5000 and 5009" in capsys.readouterr().err
