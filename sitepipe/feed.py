from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any, NamedTuple, Optional

from .permalink import normalize_url, url_to_output_path
from .utils.arrange import arrange

if TYPE_CHECKING:
    from .collection import CollectionRegistry
    from .context import BuildContext
    from .document import Document

log = logging.getLogger("feed")


class FeedEntry(NamedTuple):
    """
    Projection of a document for syndication
    """
    document: Document
    title: str
    url: str
    absolute_url: str
    publish_date: datetime.datetime
    updated: datetime.datetime
    summary: str
    author: Optional[str]
    categories: tuple[str, ...]
    tags: tuple[str, ...]

    @classmethod
    def from_document(cls, ctx: BuildContext, doc: Document) -> FeedEntry:
        meta = doc.meta

        summary = meta.get("excerpt") or meta.get("description")
        if summary is None:
            summary = doc.excerpt(ctx.excerpt_separator)

        updated = doc.publish_date
        if (value := meta.get("last_modified_at", meta.get("updated"))) is not None:
            try:
                updated = ctx.clean_date(value)
            except ValueError as e:
                log.warning("%s: ignoring invalid update date: %s", doc.source_path, e)

        author = meta.get("author", ctx.site_author)
        if isinstance(author, dict):
            author = author.get("name")

        url = doc.url or ""
        return cls(
            document=doc,
            title=doc.title or doc.filename_slug,
            url=url,
            absolute_url=ctx.absolute_url(ctx.site_path(url)),
            publish_date=doc.publish_date,
            updated=updated,
            summary=str(summary),
            author=str(author) if author is not None else None,
            categories=tuple(doc.categories),
            tags=tuple(doc.tags),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_path": self.document.source_path,
            "title": self.title,
            "url": self.url,
            "publish_date": self.publish_date,
            "updated": self.updated,
        }


class Feed(NamedTuple):
    """
    Bounded, time-ordered view of documents from one or more collections
    """
    title: str
    url: str
    output_path: str
    absolute_url: str
    updated: datetime.datetime
    entries: tuple[FeedEntry, ...]
    collections: tuple[str, ...]
    author: Optional[str] = None

    @property
    def source_path(self) -> str:
        return "feed"

    def __str__(self) -> str:
        return self.source_path

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "output_path": self.output_path,
            "updated": self.updated,
            "collections": list(self.collections),
            "entries": [e.to_dict() for e in self.entries],
        }


def feed_documents(ctx: BuildContext, registry: CollectionRegistry,
                   collections: tuple[str, ...], limit: int) -> list[Document]:
    """
    Merge the documents of the given collections, newest first, keeping at
    most limit of them.

    Raises UnknownCollectionError if a collection does not exist.
    """
    candidates: list[Document] = []
    for name in collections:
        collection = registry.lookup(name, "feed")
        for doc in collection:
            if doc.meta.get("feed", True) is False:
                continue
            candidates.append(doc)

    # Sort by source path first, so that documents with the same date are
    # ordered by source path
    candidates.sort(key=lambda d: d.source_path)
    return arrange(candidates, "-date", limit)


def assemble_feed(ctx: BuildContext, registry: CollectionRegistry) -> Feed:
    """
    Build the site feed
    """
    documents = feed_documents(ctx, registry, ctx.feed_collections, ctx.feed_limit)
    entries = tuple(FeedEntry.from_document(ctx, doc) for doc in documents)

    if entries:
        updated = max(e.updated for e in entries)
    else:
        updated = ctx.generation_time

    url = normalize_url(ctx.feed_path)
    log.debug("feed %s: %d entries", url, len(entries))

    return Feed(
        title=ctx.feed_title or ctx.site_name,
        url=url,
        output_path=url_to_output_path(url),
        absolute_url=ctx.absolute_url(ctx.site_path(url)),
        updated=updated,
        entries=entries,
        collections=ctx.feed_collections,
        author=ctx.site_author,
    )
