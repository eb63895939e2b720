from __future__ import annotations

import datetime
import logging
import os
import re
import types
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, NamedTuple, Optional, Union

import dateutil.parser
import pytz

from .defaults import DefaultRule
from .document import PAGES
from .errors import ConfigError
from .utils import compile_page_match

if TYPE_CHECKING:
    from .settings import Settings

log = logging.getLogger("context")


class CollectionSpec(NamedTuple):
    """
    Declaration of a collection from the site configuration
    """
    name: str
    # Directory in the content root holding the collection documents
    directory: str
    # Sort specification (see collection.sort_args), or None to keep
    # declaration order
    sort_by: Optional[str] = None
    # Permalink template for the collection documents, or None to use the
    # site default
    permalink: Optional[str] = None
    # If false, documents are loaded but not rendered as standalone pages
    output: bool = True
    # Number of documents per listing page, or None if not paginated
    paginate: Optional[int] = None
    # Permalink template for listing pages
    paginate_path: Optional[str] = None

    @classmethod
    def from_config(cls, name: str, value: Any) -> CollectionSpec:
        """
        Build a CollectionSpec from its configuration entry
        """
        if name == PAGES:
            raise ConfigError(f"{PAGES!r} is reserved for documents outside collections",
                              source="collections")
        if value is None or value is True:
            value = {}
        elif not isinstance(value, Mapping):
            raise ConfigError(f"declaration of collection {name!r} is not a mapping", source="collections")

        paginate = value.get("paginate")
        if paginate is not None:
            paginate = _check_page_size(paginate, f"collections.{name}.paginate")

        default_sort = "-date" if name == "posts" else None
        sort_by = value.get("sort_by", default_sort)
        if sort_by is not None and str(sort_by).lstrip("-") == "url":
            # Collections are sorted before URLs are computed
            raise ConfigError(f"collection {name!r} cannot be sorted by url", source=f"collections.{name}.sort_by")
        return cls(
            name=name,
            directory=str(value.get("directory", f"_{name}")).strip("/"),
            sort_by=sort_by,
            permalink=value.get("permalink"),
            output=bool(value.get("output", True)),
            paginate=paginate,
            paginate_path=value.get("paginate_path"),
        )


def _check_page_size(value: Any, source: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"page size should be an integer, not {value!r}", source=source)
    if value < 1:
        raise ConfigError(f"page size should be at least 1, not {value}", source=source)
    return value


def _collection_specs(
        collections: Union[list[str], Mapping[str, Any], None]) -> Mapping[str, CollectionSpec]:
    """
    Normalize the collection declarations from settings, making sure that
    the posts collection is always present
    """
    if collections is None:
        declared: dict[str, Any] = {}
    elif isinstance(collections, Mapping):
        declared = dict(collections)
    elif isinstance(collections, (list, tuple)):
        declared = {}
        for name in collections:
            if not isinstance(name, str):
                raise ConfigError(f"collection name {name!r} is not a string", source="collections")
            declared[name] = {}
    else:
        raise ConfigError(f"{collections!r} is not a list or mapping of collections", source="collections")

    res: dict[str, CollectionSpec] = {}
    res["posts"] = CollectionSpec.from_config("posts", declared.pop("posts", None))
    for name, value in declared.items():
        res[name] = CollectionSpec.from_config(name, value)

    # Two collections cannot share a directory
    seen: dict[str, str] = {}
    for spec in res.values():
        if (other := seen.get(spec.directory)) is not None:
            raise ConfigError(
                f"collections {other!r} and {spec.name!r} are both in directory {spec.directory!r}",
                source="collections")
        seen[spec.directory] = spec.name

    return types.MappingProxyType(res)


class BuildContext(NamedTuple):
    """
    Immutable configuration for one build of the site.

    It is created once from the settings at the beginning of the build, and
    passed to each stage of the pipeline.
    """
    project_root: str
    content_root: str
    output_root: str
    layouts_root: str

    site_name: str
    site_url: Optional[str]
    site_root: str
    site_author: Optional[str]
    site_meta: Mapping[str, Any]

    timezone: datetime.tzinfo
    generation_time: datetime.datetime
    draft_mode: bool
    future: bool

    exclude: tuple[re.Pattern, ...]
    document_extensions: frozenset[str]
    markdown_file_extensions: frozenset[str]

    permalink: str
    page_permalink: str
    collection_permalink: str
    collections: Mapping[str, CollectionSpec]
    defaults: tuple[DefaultRule, ...]

    paginate: Optional[int]
    paginate_path: str
    paginate_collection: str

    feed_limit: int
    feed_path: str
    feed_collections: tuple[str, ...]
    feed_title: Optional[str]

    excerpt_separator: str
    markdown_extensions: tuple[str, ...]
    markdown_extension_configs: Mapping[str, Any]
    jobs: int

    @classmethod
    def from_settings(
            cls, settings: Settings,
            generation_time: Optional[datetime.datetime] = None) -> BuildContext:
        """
        Validate settings and freeze them into a BuildContext
        """
        project_root = os.path.abspath(settings.PROJECT_ROOT or os.getcwd())
        content_root = os.path.normpath(os.path.join(project_root, settings.CONTENT or "."))
        output_root = os.path.normpath(os.path.join(project_root, settings.OUTPUT))
        layouts_root = os.path.normpath(os.path.join(content_root, settings.LAYOUTS))

        # Site time zone
        timezone: datetime.tzinfo
        if settings.TIMEZONE is None:
            from dateutil.tz import tzlocal
            timezone = tzlocal()
        else:
            try:
                timezone = pytz.timezone(settings.TIMEZONE)
            except pytz.UnknownTimeZoneError as e:
                raise ConfigError(f"unknown time zone {settings.TIMEZONE!r}", source="timezone") from e

        # Current datetime
        if generation_time is not None:
            generation_time = generation_time.astimezone(timezone)
        else:
            generation_time = datetime.datetime.now(pytz.utc).astimezone(timezone)

        paginate = settings.PAGINATE
        if paginate is not None:
            paginate = _check_page_size(paginate, "paginate")

        feed_limit = settings.FEED_LIMIT
        if isinstance(feed_limit, bool) or not isinstance(feed_limit, int) or feed_limit < 0:
            raise ConfigError(f"feed limit should be a non-negative integer, not {feed_limit!r}",
                              source="feed.limit")

        feed_collections = settings.FEED_COLLECTIONS
        if isinstance(feed_collections, str):
            feed_collections = [feed_collections]

        defaults = settings.DEFAULTS or ()
        if not isinstance(defaults, (list, tuple)):
            raise ConfigError("defaults should be a list of rules", source="defaults")

        site_root = os.path.normpath(os.path.join("/", settings.SITE_ROOT or "/"))

        jobs = settings.JOBS or os.cpu_count() or 1

        return cls(
            project_root=project_root,
            content_root=content_root,
            output_root=output_root,
            layouts_root=layouts_root,
            site_name=settings.SITE_NAME or os.path.basename(content_root),
            site_url=settings.SITE_URL.rstrip("/") if settings.SITE_URL else None,
            site_root=site_root,
            site_author=settings.SITE_AUTHOR,
            site_meta=types.MappingProxyType(dict(settings.SITE_META)),
            timezone=timezone,
            generation_time=generation_time,
            draft_mode=bool(settings.DRAFT_MODE),
            future=bool(settings.FUTURE),
            exclude=tuple(compile_page_match(p) for p in settings.EXCLUDE),
            document_extensions=frozenset(settings.DOCUMENT_EXTENSIONS),
            markdown_file_extensions=frozenset(settings.MARKDOWN_FILE_EXTENSIONS),
            permalink=settings.PERMALINK,
            page_permalink=settings.PAGE_PERMALINK,
            collection_permalink=settings.COLLECTION_PERMALINK,
            collections=_collection_specs(settings.COLLECTIONS),
            defaults=tuple(DefaultRule.from_config(rule) for rule in defaults),
            paginate=paginate,
            paginate_path=settings.PAGINATE_PATH,
            paginate_collection=settings.PAGINATE_COLLECTION,
            feed_limit=feed_limit,
            feed_path=settings.FEED_PATH,
            feed_collections=tuple(feed_collections),
            feed_title=settings.FEED_TITLE,
            excerpt_separator=settings.EXCERPT_SEPARATOR,
            markdown_extensions=tuple(settings.MARKDOWN_EXTENSIONS),
            markdown_extension_configs=types.MappingProxyType(dict(settings.MARKDOWN_EXTENSION_CONFIGS)),
            jobs=jobs,
        )

    @property
    def show_future(self) -> bool:
        """
        True if documents dated in the future are part of the site
        """
        return self.future or self.draft_mode

    def absolute_url(self, url: str) -> str:
        """
        Turn a site URL into an absolute URL, if SITE_URL is known
        """
        if self.site_url is None:
            return url
        return self.site_url + url

    def site_path(self, url: str) -> str:
        """
        Prefix a site-relative URL with the site root
        """
        if self.site_root == "/":
            return url
        return self.site_root + url

    re_isodate = re.compile(r"^(\d{4}-\d{2}-\d{2}[ T]\d{2}:\d{2}:\d{2})(Z|\+\d{2}.*)$")

    def clean_date(self, date: Union[str, datetime.date, datetime.datetime]) -> datetime.datetime:
        """
        Return an aware datetime from a potential date value.

        Raises ValueError if the value cannot be interpreted as a date.
        """
        if isinstance(date, datetime.datetime):
            pass
        elif isinstance(date, datetime.date):
            date = datetime.datetime.combine(date, datetime.time())
        elif isinstance(date, str):
            mo = self.re_isodate.match(date)
            if mo:
                if mo.group(2) == "Z":
                    date = datetime.datetime.fromisoformat(mo.group(1)).replace(tzinfo=pytz.utc)
                else:
                    date = datetime.datetime.fromisoformat(date)
            else:
                try:
                    date = dateutil.parser.parse(date)
                except (ValueError, OverflowError) as e:
                    raise ValueError(f"cannot parse date {date!r}: {e}") from e
        else:
            raise ValueError(f"{date!r} is not a date")

        # Make sure the datetime is aware
        if date.tzinfo is None:
            if hasattr(self.timezone, "localize"):
                date = self.timezone.localize(date)
            else:
                date = date.replace(tzinfo=self.timezone)

        return date
