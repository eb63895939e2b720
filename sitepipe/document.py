from __future__ import annotations

import datetime
import logging
import os
import re
import types
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .file import File

log = logging.getLogger("document")

# Collection name for documents that are not in a collection
PAGES = "pages"

# Matches file names like 2024-01-31-title.md
re_dated_name = re.compile(r"^(?P<date>\d{4}-\d{2}-\d{2})-(?P<slug>.+)$")


class Document:
    """
    One content unit of the site, loaded from a source file
    """
    def __init__(
            self,
            src: File,
            collection: str,
            front_matter: dict[str, Any],
            body: str, *,
            fmt: Optional[str] = None,
            body_line: int = 1,
            relpath: Optional[str] = None,
            draft: bool = False):
        # Source file
        self.src = src
        # Path of the source file relative to the content root
        self.source_path: str = src.relpath
        # Name of the collection this document belongs to
        self.collection = collection
        # Front matter as written in the source file
        self.front_matter: Mapping[str, Any] = types.MappingProxyType(front_matter)
        # Front matter format, or None if the document has no front matter
        self.fmt = fmt
        # Document contents after the front matter
        self.body = body
        # Line in the source file where the body starts
        self.body_line = body_line
        # True if the document comes from the drafts directory
        self.draft = draft
        # Path relative to the collection directory, used to build URLs
        self.relpath: str = relpath if relpath is not None else src.relpath

        basename, self.ext = os.path.splitext(os.path.basename(self.source_path))
        # File name without extension
        self.name: str = basename
        # Date and slug encoded in the file name, if any
        self.filename_date: Optional[str] = None
        self.filename_slug: str = basename
        if (mo := re_dated_name.match(basename)):
            self.filename_date = mo.group("date")
            self.filename_slug = mo.group("slug")

        # Effective front matter, after applying defaults
        self._meta: Optional[Mapping[str, Any]] = None
        # Publication date, timezone aware
        self.publish_date: datetime.datetime
        # True if publish_date comes from the front matter or the file name
        self.has_date: bool = False
        # Site URL and output path, set when permalinks are resolved
        self.url: Optional[str] = None
        self.output_path: Optional[str] = None

    def __str__(self) -> str:
        return self.source_path

    def __repr__(self) -> str:
        return f"Document({self.source_path})"

    @property
    def meta(self) -> Mapping[str, Any]:
        """
        Effective front matter. Before defaults are resolved, this is the
        front matter of the source file
        """
        if self._meta is None:
            return self.front_matter
        return self._meta

    def set_meta(self, meta: dict[str, Any]) -> None:
        """
        Set the effective front matter, computed by the defaults resolver
        """
        if self._meta is not None:
            raise RuntimeError(f"{self}: effective front matter has already been set")
        self._meta = types.MappingProxyType(meta)

    def set_route(self, url: str, output_path: Optional[str]) -> None:
        """
        Set the URL and output path computed by the permalink resolver
        """
        if self.url is not None:
            raise RuntimeError(f"{self}: permalink has already been resolved")
        self.url = url
        self.output_path = output_path

    @property
    def title(self) -> Optional[str]:
        title = self.meta.get("title")
        if title is None:
            return None
        return str(title)

    @property
    def layout(self) -> Optional[str]:
        return self.meta.get("layout")

    @property
    def published(self) -> bool:
        return self.meta.get("published", True) is not False

    @property
    def categories(self) -> list[str]:
        """
        Categories from the `categories` or `category` front matter, which
        can be lists or space-separated strings
        """
        value = self.meta.get("categories", self.meta.get("category"))
        if value is None:
            return []
        if isinstance(value, str):
            return value.split()
        return [str(v) for v in value]

    @property
    def tags(self) -> list[str]:
        value = self.meta.get("tags")
        if value is None:
            return []
        if isinstance(value, str):
            return value.split()
        return [str(v) for v in value]

    def excerpt(self, separator: str = "\n\n") -> str:
        """
        Return the excerpt of the document: the `excerpt` front matter if
        present, or the beginning of the body up to the separator
        """
        if (excerpt := self.meta.get("excerpt")) is not None:
            return str(excerpt)
        body = self.body.strip()
        if separator and separator in body:
            return body.split(separator, 1)[0]
        return body

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_path": self.source_path,
            "collection": self.collection,
            "publish_date": self.publish_date,
            "url": self.url,
            "output_path": self.output_path,
            "meta": dict(self.meta),
        }
