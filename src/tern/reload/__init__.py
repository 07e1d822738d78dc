"""Live reload: the broadcast channel and the injected browser client."""

from tern.reload.channel import ReloadChannel, ReloadClient
from tern.reload.client import RELOAD_ENDPOINT, inject_reload_client

__all__ = [
    "RELOAD_ENDPOINT",
    "ReloadChannel",
    "ReloadClient",
    "inject_reload_client",
]
