from __future__ import annotations

import logging
import posixpath
import re
import urllib.parse
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, NamedTuple, Optional

from slugify import slugify

from .document import PAGES, Document
from .errors import PermalinkCollisionError, UnresolvedPlaceholderError

if TYPE_CHECKING:
    from .context import BuildContext

log = logging.getLogger("permalink")


# Builtin permalink styles
STYLES = {
    "date": "/:categories/:year/:month/:day/:title:output_ext",
    "pretty": "/:categories/:year/:month/:day/:title/",
    "ordinal": "/:categories/:year/:y_day/:title:output_ext",
    "none": "/:categories/:title:output_ext",
}

re_placeholder = re.compile(r":([a-z_]+)")

# Characters left unquoted in URLs
URL_SAFE = "/-_.~!$&'()*+,;=:@"

PlaceholderFunc = Callable[["BuildContext", Document], Optional[str]]

# Registry of placeholders usable in document permalinks.
#
# Each function returns the value for a document, or None if the document
# has no value for it. An empty string is a valid value, and makes the
# placeholder disappear from the URL.
PLACEHOLDERS: dict[str, PlaceholderFunc] = {}


def placeholder(name: str) -> Callable[[PlaceholderFunc], PlaceholderFunc]:
    """
    Register a function computing the value of a permalink placeholder
    """
    def register(func: PlaceholderFunc) -> PlaceholderFunc:
        PLACEHOLDERS[name] = func
        return func
    return register


@placeholder("year")
def _year(ctx: BuildContext, doc: Document) -> str:
    return f"{doc.publish_date.year:04d}"


@placeholder("short_year")
def _short_year(ctx: BuildContext, doc: Document) -> str:
    return f"{doc.publish_date.year % 100:02d}"


@placeholder("month")
def _month(ctx: BuildContext, doc: Document) -> str:
    return f"{doc.publish_date.month:02d}"


@placeholder("i_month")
def _i_month(ctx: BuildContext, doc: Document) -> str:
    return str(doc.publish_date.month)


@placeholder("day")
def _day(ctx: BuildContext, doc: Document) -> str:
    return f"{doc.publish_date.day:02d}"


@placeholder("i_day")
def _i_day(ctx: BuildContext, doc: Document) -> str:
    return str(doc.publish_date.day)


@placeholder("y_day")
def _y_day(ctx: BuildContext, doc: Document) -> str:
    return f"{doc.publish_date.timetuple().tm_yday:03d}"


@placeholder("hour")
def _hour(ctx: BuildContext, doc: Document) -> str:
    return f"{doc.publish_date.hour:02d}"


@placeholder("minute")
def _minute(ctx: BuildContext, doc: Document) -> str:
    return f"{doc.publish_date.minute:02d}"


@placeholder("second")
def _second(ctx: BuildContext, doc: Document) -> str:
    return f"{doc.publish_date.second:02d}"


@placeholder("title")
def _title(ctx: BuildContext, doc: Document) -> Optional[str]:
    if (title := doc.title) is None:
        return None
    return slugify(title) or None


@placeholder("slug")
def _slug(ctx: BuildContext, doc: Document) -> Optional[str]:
    slug = doc.meta.get("slug")
    if slug is None:
        slug = doc.filename_slug
    return slugify(str(slug)) or None


@placeholder("name")
def _name(ctx: BuildContext, doc: Document) -> Optional[str]:
    return doc.name or None


@placeholder("path")
def _path(ctx: BuildContext, doc: Document) -> Optional[str]:
    return posixpath.splitext(doc.relpath)[0] or None


@placeholder("collection")
def _collection(ctx: BuildContext, doc: Document) -> Optional[str]:
    if doc.collection == PAGES:
        return None
    return doc.collection


@placeholder("categories")
def _categories(ctx: BuildContext, doc: Document) -> str:
    return "/".join(slugify(c) for c in doc.categories)


@placeholder("output_ext")
def _output_ext(ctx: BuildContext, doc: Document) -> str:
    if doc.ext in ctx.markdown_file_extensions or doc.ext in (".html", ".htm"):
        return ".html"
    return doc.ext


def fallback_value(doc: Document) -> str:
    """
    Stable value used for placeholders that cannot be resolved: the file base
    name
    """
    return slugify(doc.filename_slug) or slugify(doc.name) or doc.name


def expand(template: str, lookup: Callable[[str], Optional[str]]) -> str:
    """
    Replace placeholders in template with the values returned by lookup.

    lookup returns None for unknown placeholders, which are left as they are.
    """
    def _replace(mo: re.Match) -> str:
        value = lookup(mo.group(1))
        if value is None:
            return mo.group(0)
        return value
    return re_placeholder.sub(_replace, template)


def normalize_url(url: str) -> str:
    """
    Normalize an expanded permalink into a site URL
    """
    url = re.sub(r"/{2,}", "/", "/" + url)
    if url.endswith("/index.html"):
        url = url[:-len("index.html")]
    return urllib.parse.quote(url, safe=URL_SAFE)


def url_to_output_path(url: str) -> str:
    """
    Compute the path of the file that serves a site URL, relative to the
    output directory.

    The URL is percent-decoded, since web servers decode the request path
    before looking up files.
    """
    path = urllib.parse.unquote(url).lstrip("/")
    if not path or path.endswith("/"):
        return path + "index.html"
    if "." not in path.rsplit("/", 1)[-1]:
        return path + ".html"
    return path


class Route(NamedTuple):
    """
    Where a document is published
    """
    url: str
    # None for documents that are not rendered
    output_path: Optional[str]


class RouteTable:
    """
    Keep track of claimed output paths, detecting collisions
    """
    def __init__(self) -> None:
        self.claimed: dict[str, str] = {}

    def claim(self, output_path: str, source: str) -> None:
        """
        Assign output_path to source.

        Raises PermalinkCollisionError if another source already has it.
        """
        if (other := self.claimed.get(output_path)) is not None:
            raise PermalinkCollisionError(output_path, other, source)
        self.claimed[output_path] = source


class PermalinkResolver:
    """
    Compute URLs and output paths of documents
    """
    def __init__(self, ctx: BuildContext):
        self.ctx = ctx

    def template_for(self, doc: Document) -> str:
        """
        Choose the permalink template for a document
        """
        template: Optional[str] = doc.meta.get("permalink")
        if template is None and (spec := self.ctx.collections.get(doc.collection)) is not None:
            template = spec.permalink
        if template is None:
            if doc.collection == "posts":
                template = self.ctx.permalink
            elif doc.collection == PAGES:
                template = self.ctx.page_permalink
            else:
                template = self.ctx.collection_permalink
        template = str(template)
        return STYLES.get(template, template)

    def resolve(self, doc: Document) -> tuple[Route, list[UnresolvedPlaceholderError]]:
        """
        Compute the route of a document.

        Returns the route, and the list of placeholders that had to be
        replaced with a fallback value.
        """
        warnings: list[UnresolvedPlaceholderError] = []

        def lookup(name: str) -> Optional[str]:
            func = PLACEHOLDERS.get(name)
            if func is None:
                return None
            value = func(self.ctx, doc)
            if value is None:
                fallback = fallback_value(doc)
                warnings.append(UnresolvedPlaceholderError(doc.source_path, name, fallback))
                return fallback
            return value

        url = normalize_url(expand(self.template_for(doc), lookup))

        spec = self.ctx.collections.get(doc.collection)
        if spec is not None and not spec.output:
            return Route(url, None), warnings

        return Route(url, url_to_output_path(url)), warnings

    def resolve_all(self, documents: Iterable[Document]) -> list[UnresolvedPlaceholderError]:
        """
        Set url and output_path on all documents.

        Routes are computed in parallel, then claimed in document order, so
        that collisions are reported deterministically.

        Returns the list of placeholders that had to be replaced with
        fallback values.
        """
        documents = list(documents)
        with ThreadPoolExecutor(max_workers=self.ctx.jobs) as executor:
            results = list(executor.map(self.resolve, documents))

        table = RouteTable()
        warnings: list[UnresolvedPlaceholderError] = []
        for doc, (route, doc_warnings) in zip(documents, results):
            for warning in doc_warnings:
                log.warning("%s", warning)
            warnings.extend(doc_warnings)
            if route.output_path is not None:
                table.claim(route.output_path, doc.source_path)
            doc.set_route(route.url, route.output_path)

        return warnings
