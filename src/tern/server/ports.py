"""Port negotiation for the dev server.

The server prefers a configured port and walks upwards past busy ones:
``port``, ``port + 1``, ... up to ``attempts`` candidates in total.  Only
"address already in use" moves on to the next candidate; any other bind
error is a real problem and propagates.
"""

from __future__ import annotations

import errno
import socket

from tern import _console
from tern._errors import PortExhaustedError

DEFAULT_ATTEMPTS = 10


def _try_bind(host: str, port: int) -> None:
    """Bind (and immediately release) a TCP socket on *host*:*port*."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((host, port))
        sock.listen(1)


def is_port_available(port: int, host: str = "") -> bool:
    """Pre-flight check: can a listener bind *port* right now?"""
    try:
        _try_bind(host, port)
    except OSError:
        return False
    return True


def find_available_port(start: int, attempts: int = DEFAULT_ATTEMPTS, host: str = "") -> int:
    """Return the first port in ``start .. start + attempts - 1`` that is free.

    Raises:
        PortExhaustedError: If every candidate is taken.

    """
    for port in range(start, start + attempts):
        if is_port_available(port, host):
            return port
    raise PortExhaustedError(start, start + attempts - 1)


def acquire_port(desired: int, *, host: str = "", attempts: int = DEFAULT_ATTEMPTS) -> int:
    """Bind-test *desired* and fall back to the next ports while they are in use.

    Each fallback is logged.  Returns the port that bound.

    Raises:
        PortExhaustedError: If all *attempts* candidates are in use.
        OSError: For bind failures other than "address already in use".

    """
    for port in range(desired, desired + attempts):
        try:
            _try_bind(host, port)
        except OSError as exc:
            if exc.errno != errno.EADDRINUSE:
                raise
            _console.warn(f"Port {port} is in use")
            continue
        if port != desired:
            _console.info(f"Falling back to port {port}")
        return port
    raise PortExhaustedError(desired, desired + attempts - 1)
