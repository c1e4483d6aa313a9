"""Static file resolution with SPA (client-side routing) fallback."""

import html
import logging
import mimetypes
from typing import Optional
from urllib.parse import quote

from fastapi import HTTPException
from fastapi.responses import RedirectResponse, Response

from sampha.assets import AssetNotFound, AssetStore, clean_path

logger = logging.getLogger(__name__)

INDEX_DOCUMENT = "index.html"

NO_CACHE = "no-cache, no-store, must-revalidate"
# Non-index assets are expected to be content-hashed by the frontend build
LONG_CACHE = "public, max-age=31536000, immutable"

NOT_FOUND_DETAIL = "404 page not found"


def guess_media_type(name: str) -> str:
    media_type, _ = mimetypes.guess_type(name)
    return media_type or "application/octet-stream"


class StaticResolver:
    """Map request paths onto the asset store.

    Decision order for a request path ``P``:

    1. ``/`` serves the index document with no-cache headers.
    2. ``P`` is cleaned (see :func:`sampha.assets.clean_path`) into a
       store-relative candidate.
    3. A missing candidate containing a ``.`` is a 404; any other miss is a
       client-side route and gets the index document.
    4. A directory without a trailing slash is redirected (301) to the
       slash form; with a trailing slash its ``index.html`` or a listing is
       served.
    5. A file is served with no-cache headers if it is the index document,
       otherwise with a one-year immutable cache header.
    """

    def __init__(self, store: AssetStore):
        self.store = store

    def resolve(self, request_path: str, head: bool = False) -> Response:
        if request_path == "/":
            return self._serve_index(head=head)

        candidate = clean_path(request_path)

        try:
            info = self.store.stat(candidate)
        except AssetNotFound:
            # Paths that look like files are genuine misses; the rest are SPA routes
            if "." in candidate:
                logger.debug(f"asset not found: {candidate}")
                raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
            return self._serve_index(head=head)

        if info.is_dir:
            if not request_path.endswith("/"):
                # Built from the cleaned name so "//assets" cannot become a host reference
                return RedirectResponse(url="/" + candidate + "/", status_code=301)
            return self._serve_directory(candidate, head=head)

        return self._serve_file(candidate, head=head)

    def _serve_index(self, head: bool = False) -> Response:
        try:
            data = self.store.open(INDEX_DOCUMENT)
        except AssetNotFound:
            logger.error("index.html missing from static assets")
            raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
        return self._respond(data, "text/html", NO_CACHE, head)

    def _serve_file(self, name: str, head: bool = False) -> Response:
        data = self.store.open(name)
        cache_control = NO_CACHE if name == INDEX_DOCUMENT else LONG_CACHE
        return self._respond(data, guess_media_type(name), cache_control, head)

    def _serve_directory(self, name: str, head: bool = False) -> Response:
        index_name = f"{name}/{INDEX_DOCUMENT}"
        if index_name in self.store and not self.store.stat(index_name).is_dir:
            return self._respond(self.store.open(index_name), "text/html", NO_CACHE, head)

        lines = ['<!doctype html>', '<meta name="viewport" content="width=device-width">', "<pre>"]
        for child in self.store.listdir(name):
            lines.append(f'<a href="{quote(child)}">{html.escape(child)}</a>')
        lines.append("</pre>")
        body = ("\n".join(lines) + "\n").encode("utf-8")
        return self._respond(body, "text/html", LONG_CACHE, head)

    @staticmethod
    def _respond(data: bytes, media_type: str, cache_control: str, head: bool) -> Response:
        headers = {"Cache-Control": cache_control}
        if head:
            headers["Content-Length"] = str(len(data))
            return Response(content=b"", media_type=media_type, headers=headers)
        return Response(content=data, media_type=media_type, headers=headers)


def build_resolver(store: Optional[AssetStore] = None, static_dir: Optional[str] = None) -> StaticResolver:
    """Create a resolver from an existing store or by snapshotting ``static_dir``."""
    if store is None:
        store = AssetStore.from_directory(static_dir)
    return StaticResolver(store)
