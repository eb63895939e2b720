from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Callable, Optional, overload

from .document import PAGES, Document
from .errors import ConfigError, UnknownCollectionError

if TYPE_CHECKING:
    from .context import BuildContext, CollectionSpec

log = logging.getLogger("collection")


def sort_args(sort: Optional[str]) -> tuple[Optional[str], bool, Optional[Callable[[Document], Any]]]:
    """
    Parse a sort string, returning a tuple of:
    * which document field is used for sorting, or None if documents are not
      sorted
    * a bool, set to True if sort order is reversed
    * a key function for the sorting, returning None for documents that lack
      the field
    """
    if sort is None:
        return None, False, None

    # Process the '-'
    if sort.startswith("-"):
        reverse = True
        sort = sort[1:]
    else:
        reverse = False

    key: Callable[[Document], Any]
    if sort == "date":
        def key(doc: Document) -> Any:
            return doc.publish_date
    else:
        def key(doc: Document) -> Any:
            return doc.meta.get(sort, None)

    return sort, reverse, key


def sort_documents(documents: Iterable[Document], sort: Optional[str]) -> list[Document]:
    """
    Sort documents according to a sort string.

    The sort is stable, and ties are broken by source path. Documents that
    lack the sort field are moved to the end, in source path order.
    """
    # Sorting by source path first gives the tie breaking order, since the
    # following sort is stable also when reversed
    res = sorted(documents, key=lambda d: d.source_path)

    sort_field, reverse, key = sort_args(sort)
    if key is None:
        return res

    present = []
    missing = []
    for doc in res:
        if key(doc) is None:
            missing.append(doc)
        else:
            present.append(doc)

    try:
        present.sort(key=key, reverse=reverse)
    except TypeError as e:
        raise ConfigError(f"documents cannot be sorted by {sort_field!r}: {e}", source="sort_by") from e

    return present + missing


class Collection(Sequence[Document]):
    """
    Named, ordered set of documents
    """
    def __init__(self, name: str, documents: Iterable[Document] = (), *,
                 spec: Optional[CollectionSpec] = None):
        self.name = name
        # Declaration from the configuration, None for pages
        self.spec = spec
        self.sort_key: Optional[str] = spec.sort_by if spec is not None else None
        self.documents: tuple[Document, ...] = tuple(sort_documents(documents, self.sort_key))

    def __repr__(self) -> str:
        return f"Collection({self.name}, {len(self.documents)} documents)"

    def __len__(self) -> int:
        return len(self.documents)

    @overload
    def __getitem__(self, key: int) -> Document:
        ...

    @overload
    def __getitem__(self, key: slice) -> Sequence[Document]:
        ...

    def __getitem__(self, key):
        return self.documents[key]

    def __iter__(self) -> Iterator[Document]:
        return iter(self.documents)

    @property
    def output(self) -> bool:
        """
        True if the documents of this collection are rendered as pages
        """
        return self.spec is None or self.spec.output

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "sort_key": self.sort_key,
            "documents": [doc.source_path for doc in self.documents],
        }


class CollectionRegistry(Mapping[str, Collection]):
    """
    All the collections in the site, by name
    """
    def __init__(self, collections: Iterable[Collection]):
        self.collections: dict[str, Collection] = {c.name: c for c in collections}

    def __getitem__(self, name: str) -> Collection:
        try:
            return self.collections[name]
        except KeyError:
            raise UnknownCollectionError(name) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self.collections)

    def __len__(self) -> int:
        return len(self.collections)

    def lookup(self, name: str, what: str) -> Collection:
        """
        Return a collection, raising UnknownCollectionError mentioning what
        was looking for it if it does not exist
        """
        if (collection := self.collections.get(name)) is None:
            raise UnknownCollectionError(name, what)
        return collection

    def iter_documents(self) -> Iterator[Document]:
        """
        Iterate all documents in all collections
        """
        for collection in self.collections.values():
            yield from collection.documents

    def to_dict(self) -> dict[str, Any]:
        return {name: c.to_dict() for name, c in self.collections.items()}

    @classmethod
    def build(cls, ctx: BuildContext, documents: Iterable[Document]) -> CollectionRegistry:
        """
        Group published documents by collection.

        All declared collections are present, even if empty.
        """
        grouped: dict[str, list[Document]] = {name: [] for name in ctx.collections}
        grouped.setdefault(PAGES, [])

        for doc in documents:
            if not doc.published:
                log.info("%s: not published", doc.source_path)
                continue
            if not ctx.show_future and doc.has_date and doc.publish_date > ctx.generation_time:
                log.info("%s: skipping document dated in the future (%s)", doc.source_path, doc.publish_date)
                continue
            if doc.collection not in grouped:
                # Loader only assigns declared collections, but documents may
                # come from elsewhere
                grouped[doc.collection] = []
            grouped[doc.collection].append(doc)

        return cls(
            Collection(name, docs, spec=ctx.collections.get(name))
            for name, docs in grouped.items())
