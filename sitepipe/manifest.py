from __future__ import annotations

import logging
import urllib.parse
from collections.abc import Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Optional, Union

from .errors import BuildError, RenderError, SiteError
from .feed import Feed
from .file import File
from .paginator import ListingPage
from .permalink import URL_SAFE, RouteTable

if TYPE_CHECKING:
    from .collection import CollectionRegistry
    from .document import Document
    from .paginator import Listing
    from .render import Renderer

log = logging.getLogger("manifest")

Source = Union["Document", ListingPage, Feed, File]

# Layout used to render the feed
FEED_LAYOUT = "feed.atom"


class ManifestEntry:
    """
    Something that is written to the output directory
    """
    def __init__(
            self,
            source: Source, *,
            output_path: str,
            url: str,
            layout: Optional[str] = None,
            body: str = "",
            front_matter: Optional[Mapping[str, Any]] = None,
            fmt: Optional[str] = None):
        self.source = source
        self.output_path = output_path
        self.url = url
        self.layout = layout
        # Text passed to the renderer
        self.body = body
        # Effective front matter passed to the renderer
        self.front_matter: Mapping[str, Any] = front_matter if front_matter is not None else {}
        # Extension of the source file, used to choose how to render the body
        self.fmt = fmt
        # Rendered contents, set by SiteManifest.render
        self.rendered_content: Optional[str] = None

    def __repr__(self) -> str:
        return f"ManifestEntry({self.output_path}, {self.kind})"

    @property
    def kind(self) -> str:
        if isinstance(self.source, File):
            return "static"
        elif isinstance(self.source, ListingPage):
            return "listing"
        elif isinstance(self.source, Feed):
            return "feed"
        else:
            return "document"

    @property
    def source_name(self) -> str:
        """
        Name of the source of this entry, for diagnostics
        """
        if isinstance(self.source, File):
            return self.source.relpath
        return self.source.source_path

    @property
    def renderable(self) -> bool:
        """
        Static files are copied, everything else is rendered
        """
        return not isinstance(self.source, File)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "source": self.source_name,
            "layout": self.layout,
            "url": self.url,
            "output_path": self.output_path,
        }


class SiteManifest(Mapping[str, ManifestEntry]):
    """
    Everything that is written to the output directory, by output path
    """
    def __init__(self, entries: Sequence[ManifestEntry]):
        self.entries: dict[str, ManifestEntry] = {e.output_path: e for e in entries}

    def __getitem__(self, output_path: str) -> ManifestEntry:
        return self.entries[output_path]

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def to_dict(self) -> dict[str, Any]:
        return {path: entry.to_dict() for path, entry in self.entries.items()}

    @classmethod
    def build(
            cls,
            registry: CollectionRegistry,
            listings: Sequence[Listing] = (),
            feed: Optional[Feed] = None,
            static_files: Sequence[File] = ()) -> SiteManifest:
        """
        Collect all the manifest entries.

        Raises PermalinkCollisionError if two entries have the same output
        path. In that case, no manifest is produced.
        """
        entries: list[ManifestEntry] = []

        # Documents whose URL is the index of a listing provide layout and
        # front matter for the listing pages, and are replaced by them
        listing_index: dict[str, Listing] = {listing.index_url: listing for listing in listings}
        index_documents: dict[str, Document] = {}

        for doc in registry.iter_documents():
            if doc.output_path is None:
                continue
            if doc.url in listing_index:
                index_documents[doc.url] = doc
                continue
            entries.append(ManifestEntry(
                doc,
                output_path=doc.output_path,
                url=doc.url,
                layout=doc.layout,
                body=doc.body,
                front_matter=doc.meta,
                fmt=doc.ext))

        for listing in listings:
            index_doc = index_documents.get(listing.index_url)
            if index_doc is None:
                log.warning("%s: no page found at %s to use as listing template",
                            listing.collection, listing.index_url)
                layout = None
                body = ""
                meta: Mapping[str, Any] = {}
                fmt = None
            else:
                layout = index_doc.layout
                body = index_doc.body
                meta = index_doc.meta
                fmt = index_doc.ext

            pages = listing.pages
            if not pages:
                if index_doc is None:
                    continue
                # The index is emitted once, with an empty listing
                pages = (ListingPage(
                    collection=listing.collection,
                    index=1,
                    total_pages=0,
                    documents=(),
                    url=index_doc.url,
                    output_path=index_doc.output_path,
                    previous_url=None,
                    next_url=None),)

            for page in pages:
                front_matter = dict(meta)
                front_matter["paginator"] = page
                entries.append(ManifestEntry(
                    page,
                    output_path=page.output_path,
                    url=page.url,
                    layout=layout,
                    body=body,
                    front_matter=front_matter,
                    fmt=fmt))

        if feed is not None:
            entries.append(ManifestEntry(
                feed,
                output_path=feed.output_path,
                url=feed.url,
                layout=FEED_LAYOUT,
                front_matter={"title": feed.title, "feed": feed}))

        for src in static_files:
            entries.append(ManifestEntry(
                src,
                output_path=src.relpath,
                url="/" + urllib.parse.quote(src.relpath, safe=URL_SAFE)))

        table = RouteTable()
        for entry in entries:
            table.claim(entry.output_path, entry.source_name)

        return cls(entries)

    def render(self, renderer: Renderer) -> None:
        """
        Render all renderable entries.

        Raises BuildError with all the entries that failed to render, if
        any.
        """
        errors: list[SiteError] = []
        for entry in self.entries.values():
            if not entry.renderable:
                continue
            try:
                entry.rendered_content = renderer.render_entry(entry)
            except SiteError as e:
                log.debug("%s: render failed: %s", entry.source_name, e)
                errors.append(e)
            except Exception as e:
                log.debug("%s: render failed", entry.source_name, exc_info=True)
                errors.append(RenderError(entry.source_name, str(e)))
        if errors:
            raise BuildError(errors)
