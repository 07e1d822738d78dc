"""Tern — a local development build loop.

Compiles styles, propagates scripts, and assembles templated markup into a
servable output directory.  In dev mode it watches the sources, rebuilds on
change, and pushes live-reload events to connected browsers.

Quick start::

    import tern

    tern.dev("my-site/")      # Build, serve, watch, live-reload
    tern.build("my-site/")    # One production build pass

"""

__version__ = "0.1.0"
__all__ = [
    "TernConfig",
    "__version__",
    "build",
    "dev",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import tern`` fast; chirp and watchfiles are only imported when
    a dev session actually starts.
    """
    if name == "TernConfig":
        from tern.config import TernConfig

        return TernConfig

    if name == "dev":
        from tern.app import dev

        return dev

    if name == "build":
        from tern.app import build

        return build

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
