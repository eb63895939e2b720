from __future__ import annotations

import datetime
import logging
import os
import re
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, NamedTuple, Optional, Union

import pytz

from .document import PAGES, Document
from .errors import BuildError, ParseError
from .file import File
from .utils import front_matter

if TYPE_CHECKING:
    from .context import BuildContext

log = logging.getLogger("loader")

# Directory with unpublished posts, loaded in draft mode
DRAFTS_DIR = "_drafts"


class LoadResult(NamedTuple):
    """
    Contents found in the content directory
    """
    documents: tuple[Document, ...]
    static_files: tuple[File, ...]


class Loader:
    """
    Discover the source files of a site and load them as documents
    """
    def __init__(self, ctx: BuildContext):
        self.ctx = ctx

        # Map collection directories to collection names
        self.collection_dirs: dict[str, str] = {
            spec.directory: spec.name for spec in ctx.collections.values()
        }

        # Output directory, if it is inside the content directory
        self.output_relpath: Optional[str] = None
        relpath = os.path.relpath(ctx.output_root, ctx.content_root)
        if not relpath.startswith(".."):
            self.output_relpath = relpath.replace(os.sep, "/")

    def is_excluded(self, relpath: str) -> bool:
        name = relpath.rsplit("/", 1)[-1]
        for pattern in self.ctx.exclude:
            if pattern.match(relpath) or pattern.match(name):
                return True
        return False

    def is_special_dir(self, relpath: str) -> bool:
        """
        Check if relpath is, or leads to, a directory loaded in spite of
        starting with an underscore
        """
        if self.ctx.draft_mode and relpath == DRAFTS_DIR:
            return True
        for directory in self.collection_dirs:
            if directory == relpath or directory.startswith(relpath + "/"):
                return True
        return False

    def skip(self, relpath: str, is_dir: bool) -> bool:
        """
        Check if a path in the content directory should be ignored
        """
        if self.output_relpath is not None and (
                relpath == self.output_relpath or relpath.startswith(self.output_relpath + "/")):
            return True
        if self.is_excluded(relpath):
            return True
        name = relpath.rsplit("/", 1)[-1]
        if name.startswith("_"):
            if is_dir:
                return not self.is_special_dir(relpath)
            return True
        return False

    def classify(self, relpath: str) -> tuple[Optional[str], str, bool]:
        """
        Find the collection of a source file.

        Returns the collection name (None for files outside collections), the
        path relative to the collection directory, and True if the file is a
        draft.
        """
        if self.ctx.draft_mode and relpath.startswith(DRAFTS_DIR + "/"):
            return "posts", relpath[len(DRAFTS_DIR) + 1:], True

        # Longest directory match wins, in case collections are nested
        for directory in sorted(self.collection_dirs, key=len, reverse=True):
            if relpath.startswith(directory + "/"):
                return self.collection_dirs[directory], relpath[len(directory) + 1:], False

        return None, relpath, False

    def is_document(self, src: File) -> bool:
        if src.ext in self.ctx.document_extensions:
            return True
        try:
            return front_matter.has_front_matter(src.read_head())
        except OSError as e:
            log.warning("%s: cannot read file: %s", src.relpath, e)
            return False

    def load_file(self, src: File) -> Union[Document, File, None]:
        """
        Load a source file, returning a Document, a File for static files, or
        None if the file is not part of the site.

        Raises ParseError if the file has invalid front matter.
        """
        collection, relpath, draft = self.classify(src.relpath)

        if not self.is_document(src):
            if collection is not None:
                log.debug("%s: ignoring static file in collection %s", src.relpath, collection)
                return None
            return src

        try:
            with open(src.abspath, "rt", encoding="utf-8") as fd:
                content = fd.read()
        except UnicodeDecodeError as e:
            raise ParseError(src.relpath, None, f"file is not valid UTF-8: {e}") from e

        parsed = front_matter.read_string(content, src.relpath)

        document = Document(
            src,
            collection if collection is not None else PAGES,
            parsed.meta,
            parsed.body,
            fmt=parsed.fmt,
            body_line=parsed.body_line,
            relpath=relpath,
            draft=draft)

        document.publish_date = self.document_date(document, content)
        return document

    def document_date(self, document: Document, content: str) -> datetime.datetime:
        """
        Compute the publication date of a document, from its front matter,
        from its file name, or from its modification time
        """
        if (value := document.front_matter.get("date")) is not None:
            try:
                date = self.ctx.clean_date(value)
            except ValueError as e:
                raise ParseError(document.source_path, _key_line(content, "date"), str(e)) from e
            document.has_date = True
            return date

        if document.filename_date is not None:
            try:
                date = self.ctx.clean_date(document.filename_date)
            except ValueError as e:
                log.warning("%s: invalid date in file name: %s", document.source_path, e)
            else:
                document.has_date = True
                return date

        if document.collection == "posts" and not document.draft:
            log.warning("%s: post has no date, using the file modification time", document.source_path)

        return datetime.datetime.fromtimestamp(
            document.src.stat.st_mtime, tz=pytz.utc).astimezone(self.ctx.timezone)

    def load(self) -> LoadResult:
        """
        Load all the documents and static files in the content directory.

        Raises BuildError with all the parse errors found, if any.
        """
        if not os.path.isdir(self.ctx.content_root):
            log.info("%s: content directory does not exist", self.ctx.content_root)
            return LoadResult((), ())

        sources = list(File.scan(self.ctx.content_root, skip=self.skip))

        def _load(src: File) -> Union[Document, File, ParseError, None]:
            try:
                return self.load_file(src)
            except ParseError as e:
                return e

        documents: list[Document] = []
        static_files: list[File] = []
        errors: list[ParseError] = []
        with ThreadPoolExecutor(max_workers=self.ctx.jobs) as executor:
            for res in executor.map(_load, sources):
                if isinstance(res, ParseError):
                    log.debug("parse error: %s", res)
                    errors.append(res)
                elif isinstance(res, Document):
                    documents.append(res)
                elif res is not None:
                    static_files.append(res)

        if errors:
            raise BuildError(errors)

        documents.sort(key=lambda d: d.source_path)
        static_files.sort(key=lambda f: f.relpath)
        log.debug("%d documents and %d static files loaded", len(documents), len(static_files))
        return LoadResult(tuple(documents), tuple(static_files))


def _key_line(content: str, key: str) -> Optional[int]:
    """
    Find the line of the front matter where a key is set
    """
    re_key = re.compile(r'^\s*"?' + re.escape(key) + r'"?\s*[:=]')
    for lineno, line in enumerate(content.splitlines(), start=1):
        if re_key.match(line):
            return lineno
    return None


def load_documents(ctx: BuildContext) -> LoadResult:
    """
    Load the documents of the site described by ctx
    """
    return Loader(ctx).load()
