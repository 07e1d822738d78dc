"""Dev server: static output, reload stream, port negotiation."""

from tern.server.app import DevServer, create_app, register_reload_endpoint
from tern.server.ports import acquire_port, find_available_port, is_port_available
from tern.server.static import MIME_TYPES, StaticSite, mime_type_for, resolve_static

__all__ = [
    "MIME_TYPES",
    "DevServer",
    "StaticSite",
    "acquire_port",
    "create_app",
    "find_available_port",
    "is_port_available",
    "mime_type_for",
    "register_reload_endpoint",
    "resolve_static",
]
