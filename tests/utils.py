from __future__ import annotations

import contextlib
import datetime
import logging
import os
import tempfile
from contextlib import contextmanager
from typing import Any, Optional, Sequence, Union
from unittest import TestCase

import pytz

import sitepipe
from sitepipe.context import BuildContext
from sitepipe.document import PAGES, Document
from sitepipe.file import File
from sitepipe.settings import Settings
from sitepipe.utils import front_matter

MockFiles = dict[str, Union[str, bytes, dict]]

# date +%s --date="2024-06-01 12:30 UTC"
GENERATION_TIME = 1717245000


def mock_settings(**kw: Any) -> Settings:
    """
    Create Settings with defaults suitable for tests, overridden by kw
    """
    kw.setdefault("SITE_NAME", "Test site")
    kw.setdefault("SITE_URL", "https://www.example.org")
    kw.setdefault("SITE_AUTHOR", "Test User")
    kw.setdefault("TIMEZONE", "Europe/Rome")
    kw.setdefault("JOBS", 2)

    settings = Settings()
    for k, v in kw.items():
        setattr(settings, k, v)
    return settings


def make_context(**kw: Any) -> BuildContext:
    """
    Create a BuildContext for tests, with settings overridden by kw
    """
    kw.setdefault("PROJECT_ROOT", "/nonexistent")
    return BuildContext.from_settings(
            mock_settings(**kw),
            generation_time=datetime.datetime.fromtimestamp(GENERATION_TIME, pytz.utc))


class MockSite:
    """
    Define a mock site for testing.

    ``files`` maps paths relative to the project root to their contents. A
    dict is written as a JSON front matter with no body.
    """
    def __init__(self, files: MockFiles, auto_load_site: bool = True, settings: Optional[dict[str, Any]] = None):
        # Set to False if you only want to populate the workdir
        self.auto_load_site = auto_load_site
        self.files = files
        self.site: Optional[sitepipe.Site] = None
        self.stack = contextlib.ExitStack()
        self.test_case: Optional[TestCase] = None
        self.settings = mock_settings()

        if settings is not None:
            for k, v in settings.items():
                setattr(self.settings, k, v)

        # Timestamp used for mock files and site generation time
        self.generation_time: Optional[int] = GENERATION_TIME

        self.root: str = self.stack.enter_context(tempfile.TemporaryDirectory())

    def populate_workdir(self):
        self.settings.PROJECT_ROOT = self.root

        for relpath, content in self.files.items():
            abspath = os.path.join(self.root, relpath)
            os.makedirs(os.path.dirname(abspath), exist_ok=True)
            if isinstance(content, str):
                with open(abspath, "wt", encoding="utf-8") as fd:
                    fd.write(content)
            elif isinstance(content, bytes):
                with open(abspath, "wb") as fd:
                    fd.write(content)
            elif isinstance(content, dict):
                with open(abspath, "wt", encoding="utf-8") as fd:
                    fd.write(front_matter.write(content, style="json"))
            else:
                raise TypeError("content should be a str, bytes or dict")
            # Set the mtime after closing, since flushing updates it
            if self.generation_time is not None:
                os.utime(abspath, (self.generation_time, self.generation_time))

    def make_site(self) -> sitepipe.Site:
        return sitepipe.Site(
                self.settings,
                generation_time=(
                    datetime.datetime.fromtimestamp(self.generation_time, pytz.utc)
                    if self.generation_time else None))

    def load_site(self):
        self.site = self.make_site()
        self.site.load()

    def document(self, *paths: str) -> Union[sitepipe.Document, tuple[sitepipe.Document, ...]]:
        """
        Ensure the site has the given documents, by source path, and return
        them
        """
        res: list[sitepipe.Document] = []
        for path in paths:
            try:
                res.append(self.site.find_document(path))
            except KeyError:
                self.test_case.fail(f"Document {path!r} not found in site")
        if len(res) == 1:
            return res[0]
        else:
            return tuple(res)

    def assertOutputPaths(self, paths: Sequence[str]):
        """
        Check that the output paths in the manifest match the given ones
        """
        self.test_case.assertCountEqual(list(self.site.manifest.keys()), paths)

    def __enter__(self) -> MockSite:
        try:
            self.populate_workdir()
            if self.auto_load_site:
                self.load_site()
        except BaseException:
            self.stack.close()
            raise
        return self

    def __exit__(self, *args):
        self.site = None
        self.stack.__exit__(*args)


class MockSiteTestMixin:
    @contextmanager
    def site(self, mocksite: Union[MockSite, MockFiles]):
        if not isinstance(mocksite, MockSite):
            mocksite = MockSite(mocksite)
        mocksite.test_case = self
        with mocksite:
            yield mocksite


class CollectingHandler(logging.Handler):
    def __init__(self, *args, **kw):
        super().__init__(*args, **kw)
        self.collected: list[logging.LogRecord] = []

    def handle(self, record):
        self.collected.append(record)


@contextmanager
def assert_no_logs(level=logging.WARN):
    handler = CollectingHandler(level=level)
    root_logger = logging.getLogger()
    try:
        root_logger.addHandler(handler)
        yield
    finally:
        root_logger.removeHandler(handler)
    collected = [r for r in handler.collected if r.levelno >= level]
    if collected:
        raise AssertionError(
            f"{len(collected)} unexpected loggings: " + "; ".join(r.getMessage() for r in collected))


class Args:
    """
    Mock argparser namespace initialized with options from constructor
    """
    def __init__(self, **kw):
        self._args = kw

    def __getattr__(self, k):
        return self._args.get(k, None)


def mock_document(
        source_path: str,
        collection: str = PAGES,
        front_matter: Optional[dict[str, Any]] = None,
        body: str = "", *,
        date: Optional[datetime.datetime] = None,
        draft: bool = False) -> Document:
    """
    Create a Document without a file on disk.

    If date is None, the document is dated with the generation time, as if it
    came from the file modification time.
    """
    st = os.stat_result((0o100644, 0, 0, 1, 0, 0, len(body), GENERATION_TIME, GENERATION_TIME, GENERATION_TIME))
    src = File(source_path, os.path.join("/nonexistent", source_path), st)
    relpath = source_path
    if collection != PAGES and "/" in source_path:
        relpath = source_path.split("/", 1)[1]
    doc = Document(src, collection, dict(front_matter or {}), body, relpath=relpath, draft=draft)
    if date is None:
        doc.publish_date = datetime.datetime.fromtimestamp(GENERATION_TIME, pytz.utc)
    else:
        doc.publish_date = date
        doc.has_date = True
    return doc
