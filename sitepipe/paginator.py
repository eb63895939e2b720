from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, NamedTuple, Optional

from .errors import ConfigError
from .permalink import expand, normalize_url, url_to_output_path

if TYPE_CHECKING:
    from .collection import CollectionRegistry
    from .context import BuildContext
    from .document import Document

log = logging.getLogger("paginator")


class ListingPage(NamedTuple):
    """
    One page of a paginated collection listing
    """
    collection: str
    # 1-based page number
    index: int
    total_pages: int
    documents: tuple[Document, ...]
    url: str
    output_path: str
    previous_url: Optional[str]
    next_url: Optional[str]

    @property
    def has_previous(self) -> bool:
        return self.previous_url is not None

    @property
    def has_next(self) -> bool:
        return self.next_url is not None

    @property
    def source_path(self) -> str:
        """
        Name identifying this listing page in diagnostics
        """
        return f"{self.collection} page {self.index}"

    def __str__(self) -> str:
        return self.source_path

    def to_dict(self) -> dict[str, Any]:
        return {
            "collection": self.collection,
            "index": self.index,
            "total_pages": self.total_pages,
            "documents": [doc.source_path for doc in self.documents],
            "url": self.url,
            "output_path": self.output_path,
            "previous_url": self.previous_url,
            "next_url": self.next_url,
        }


class Pagination(NamedTuple):
    """
    Pagination settings for a collection
    """
    collection: str
    page_size: int
    template: str

    @property
    def index_url(self) -> str:
        return index_url(self.template)


class Listing(NamedTuple):
    """
    All the listing pages of a paginated collection
    """
    pagination: Pagination
    pages: tuple[ListingPage, ...]

    @property
    def collection(self) -> str:
        return self.pagination.collection

    @property
    def index_url(self) -> str:
        return self.pagination.index_url


def index_url(template: str) -> str:
    """
    Return the URL of the first listing page: the directory part of the
    pagination template before the page number
    """
    pos = template.find(":num")
    if pos == -1:
        raise ConfigError(f"pagination template {template!r} does not contain :num", source="paginate_path")
    prefix = template[:pos]
    return normalize_url(prefix[:prefix.rfind("/") + 1])


def page_url(template: str, num: int) -> str:
    """
    Return the URL of the listing page with the given number
    """
    if num == 1:
        return index_url(template)
    return normalize_url(expand(template, lambda name: str(num) if name == "num" else None))


def paginate(documents: Sequence[Document], page_size: int, template: str,
             collection: str = "posts") -> tuple[ListingPage, ...]:
    """
    Split documents into listing pages of page_size documents each.

    The last page can be shorter. No pages are produced for an empty
    sequence.
    """
    if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
        raise ConfigError(f"page size should be an integer of at least 1, not {page_size!r}", source="paginate")

    documents = tuple(documents)
    total_pages = math.ceil(len(documents) / page_size)
    urls = [page_url(template, num) for num in range(1, total_pages + 1)]

    pages = []
    for idx in range(total_pages):
        pages.append(ListingPage(
            collection=collection,
            index=idx + 1,
            total_pages=total_pages,
            documents=documents[idx * page_size:(idx + 1) * page_size],
            url=urls[idx],
            output_path=url_to_output_path(urls[idx]),
            previous_url=urls[idx - 1] if idx > 0 else None,
            next_url=urls[idx + 1] if idx < total_pages - 1 else None,
        ))
    return tuple(pages)


def paginations(ctx: BuildContext) -> list[Pagination]:
    """
    List the paginated collections, from global and per-collection settings.

    Per-collection settings take precedence over the global ones.
    """
    res: dict[str, Pagination] = {}
    if ctx.paginate is not None:
        res[ctx.paginate_collection] = Pagination(ctx.paginate_collection, ctx.paginate, ctx.paginate_path)
    for spec in ctx.collections.values():
        if spec.paginate is None:
            continue
        template = spec.paginate_path or f"/{spec.name}/page:num/"
        res[spec.name] = Pagination(spec.name, spec.paginate, template)
    return list(res.values())


def paginate_site(ctx: BuildContext, registry: CollectionRegistry) -> tuple[Listing, ...]:
    """
    Paginate all the paginated collections of the site.

    Raises UnknownCollectionError if pagination is configured for a
    collection that does not exist.
    """
    listings = []
    for pagination in paginations(ctx):
        collection = registry.lookup(pagination.collection, "pagination")
        pages = paginate(collection.documents, pagination.page_size, pagination.template,
                         collection=collection.name)
        log.debug("%s: %d documents in %d pages", collection.name, len(collection), len(pages))
        listings.append(Listing(pagination, pages))
    return tuple(listings)
