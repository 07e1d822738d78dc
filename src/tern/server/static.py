"""Static responder — serves the build output directory.

``/`` maps to ``index.html``; any other path maps to the file of the same
name under the output directory.  Missing files, directories and paths
that escape the output directory get a small HTML 404.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import unquote

from tern.reload.client import RELOAD_ENDPOINT, inject_reload_client

if TYPE_CHECKING:
    from chirp.http.request import Request
    from chirp.http.response import Response, SSEResponse, StreamingResponse
    from chirp.middleware.protocol import Next

    type AnyResponse = Response | StreamingResponse | SSEResponse


MIME_TYPES: dict[str, str] = {
    ".html": "text/html",
    ".js": "application/javascript",
    ".css": "text/css",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".svg": "image/svg+xml",
}

DEFAULT_MIME_TYPE = "application/octet-stream"

NOT_FOUND_HTML = "<h1>404 Not Found</h1>"


def mime_type_for(path: Path) -> str:
    """Content type for *path*, chosen by extension from :data:`MIME_TYPES`."""
    return MIME_TYPES.get(path.suffix.lower(), DEFAULT_MIME_TYPE)


def resolve_static(output_dir: Path, url_path: str) -> Path | None:
    """Map a request path to a file under *output_dir*.

    Returns None when the path does not name a regular file inside the
    output directory.

    """
    relative = unquote(url_path.split("?", 1)[0]).lstrip("/")
    if not relative:
        relative = "index.html"

    root = output_dir.resolve()
    candidate = (root / relative).resolve()
    if not candidate.is_relative_to(root):
        return None
    if not candidate.is_file():
        return None
    return candidate


@dataclass(frozen=True, slots=True)
class StaticFile:
    """A resolved static response."""

    body: bytes
    content_type: str
    status: int = 200


def load_static(output_dir: Path, url_path: str, *, inject_reload: bool = False) -> StaticFile:
    """Build the response for *url_path*: the file, or the HTML 404.

    With *inject_reload*, HTML files get the live-reload client script.

    """
    path = resolve_static(output_dir, url_path)
    if path is None:
        return StaticFile(body=NOT_FOUND_HTML.encode("utf-8"), content_type="text/html", status=404)

    content_type = mime_type_for(path)
    body = path.read_bytes()
    if inject_reload and content_type == "text/html":
        body = inject_reload_client(body.decode("utf-8", errors="replace")).encode("utf-8")
    return StaticFile(body=body, content_type=content_type)


class StaticSite:
    """Chirp middleware serving the output directory.

    Requests for the reload endpoint pass through to the router; every
    other request is answered from disk.

    Args:
        output_dir: Directory the pipeline writes to.
        inject_reload: Add the live-reload client to HTML responses.

    """

    __slots__ = ("_inject_reload", "_output_dir")

    def __init__(self, output_dir: Path, *, inject_reload: bool = False) -> None:
        self._output_dir = output_dir
        self._inject_reload = inject_reload

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        if request.path == RELOAD_ENDPOINT:
            return await next(request)

        from chirp.http.response import Response

        static = await asyncio.to_thread(
            load_static, self._output_dir, request.path, inject_reload=self._inject_reload,
        )
        return Response(
            body=static.body,
            status=static.status,
            content_type=static.content_type,
        )
