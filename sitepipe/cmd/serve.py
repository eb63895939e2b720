from __future__ import annotations

import gc
import logging
import mimetypes
import os
from typing import TYPE_CHECKING, Any, Optional

from ..errors import SiteError
from .command import Fail, SiteCommand, register

if TYPE_CHECKING:
    from ..manifest import ManifestEntry
    from ..render import Renderer
    from ..site import Site

log = logging.getLogger("serve")


class ManifestFS:
    """
    VFS-like abstraction that maps the names of files that the site would
    write with the corresponding manifest entries.

    This can be used to render pages on demand.
    """
    def __init__(self):
        self.paths: dict[str, ManifestEntry] = {}
        self.renderer: Optional[Renderer] = None

    def set_site(self, site: Site):
        self.paths = dict(site.manifest)
        self.renderer = site.make_renderer()

    def get_entry(self, relpath: str) -> tuple[Optional[str], Optional[ManifestEntry]]:
        dst_relpath = os.path.normpath(relpath).lstrip("/")
        if dst_relpath == ".":
            dst_relpath = ""
        if dst_relpath and (entry := self.paths.get(dst_relpath)) is not None:
            return dst_relpath, entry

        dst_relpath = os.path.join(dst_relpath, "index.html")
        if (entry := self.paths.get(dst_relpath)) is not None:
            return dst_relpath, entry

        return None, None

    def content(self, entry: ManifestEntry) -> bytes:
        if not entry.renderable:
            with open(entry.source.abspath, "rb") as fd:
                return fd.read()
        return self.renderer.render_entry(entry).encode()

    def serve_path(self, path, environ, start_response):
        """
        Render a page on the fly and serve it.

        Call start_response with the page headers and return the bytes() with
        the page contents.

        start_response is the start_response from WSGI

        Returns None without calling start_response if no page was found.
        """
        dst_relpath, entry = self.get_entry(path)
        if entry is None:
            return None

        content = self.content(entry)
        start_response("200 OK", [
            ("Content-Type", mimetypes.guess_type(dst_relpath)[0] or "application/octet-stream"),
            ("Content-Length", str(len(content))),
        ])
        return [content]


@register
class Serve(SiteCommand):
    "serve the site over HTTP, building it in memory on demand"

    def __init__(self, *args: Any, **kw: Any):
        super().__init__(*args, **kw)
        self.pages = ManifestFS()
        mimetypes.init()

    @classmethod
    def add_subparser(cls, subparsers):
        parser = super().add_subparser(subparsers)
        parser.add_argument("--port", "-p", action="store", type=int, default=8000,
                            help="port to use (default: 8000)")
        parser.add_argument("--host", action="store", type=str, default="localhost",
                            help="host to bind to (default: localhost)")
        return parser

    def make_server(self, watch_paths=()):
        try:
            import livereload
        except ImportError:
            raise Fail("Please install the python3 livereload module to use this function.")

        class Server(livereload.Server):
            def _setup_logging(self):
                # Keep existing logging setup
                pass

        server = Server(self.application)

        # see https://github.com/lepture/python-livereload/issues/171
        def do_reload():
            self.reload()

        for path in watch_paths:
            log.info("watching changes on %s", path)
            server.watch(path, do_reload)

        return server

    def application(self, environ, start_response):
        path = environ.get("PATH_INFO", None)
        if path is None:
            start_response("404 not found", [("Content-Type", "text/plain")])
            return [b"Not found"]

        try:
            content = self.pages.serve_path(path, environ, start_response)
        except SiteError as e:
            log.error("%s: %s", path, e)
            start_response("500 internal server error", [("Content-Type", "text/plain")])
            return [str(e).encode()]
        if content is not None:
            return content

        start_response("404 not found", [("Content-Type", "text/plain")])
        return [b"Not found"]

    def reload(self) -> Optional[Site]:
        log.info("Loading site")
        try:
            site = self.load_site()
        except SiteError as e:
            # Keep serving the previous version until the error is fixed
            log.error("cannot reload site: %s", e)
            return None
        self.pages.set_site(site)
        gc.collect()
        return site

    def run(self) -> None:
        if self.settings.SITE_URL is None:
            self.settings.SITE_URL = f"http://{self.args.host}:{self.args.port}"
        site = self.load_site()
        self.pages.set_site(site)
        server = self.make_server([site.content_root])
        server.serve(port=self.args.port, host=self.args.host)
