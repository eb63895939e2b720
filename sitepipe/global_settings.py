from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Optional, Union

# Default settings

# Root directory used to resolve relative path in settings
# Default if None: the directory where the settings file is found
PROJECT_ROOT: Optional[str] = None

# Base URL for the site, used to generate absolute URLs
SITE_URL: Optional[str] = None

# Root directory of the site in the URLs we generate.
#
# If you are publishing the site at /prefix instead of root of the domain,
# override this with /prefix
SITE_ROOT: str = "/"

# Default site name. If None, use the name of the content directory
SITE_NAME: Optional[str] = None

# Default author of the site
SITE_AUTHOR: Optional[str] = None

# Site-wide metadata passed as-is to the renderer as `site`
# (navigation menus, version strings, and so on)
SITE_META: dict[str, Any] = {}

# Directory with the source content of the site
# Default if None: PROJECT_ROOT
CONTENT: Optional[str] = None

# Directory where the static site will be written by build, relative to
# PROJECT_ROOT
OUTPUT: str = "_site"

# Directory with layouts used by the default renderer, relative to CONTENT
LAYOUTS: str = "_layouts"

# Time zone used for timestamps on the site
# (None defaults to the system configured timezone)
TIMEZONE: Optional[str] = None

# If true, also load documents from _drafts and do not ignore documents with
# dates in the future
DRAFT_MODE: bool = False

# If true, do not ignore documents with dates in the future
FUTURE: bool = False

# Patterns (glob or regexps) of files and directories in the content
# directory that are not part of the site
EXCLUDE: Sequence[str] = [
    "_site",
    ".sass-cache",
    ".jekyll-cache",
    "Gemfile",
    "Gemfile.lock",
    "node_modules",
    "settings.py",
    "_config.yml",
    "_config.yaml",
    "_config.toml",
]

# File extensions that are always loaded as documents. Other files are loaded
# as documents only if they start with a front matter block, and copied as
# static files otherwise
DOCUMENT_EXTENSIONS: Sequence[str] = [".md", ".markdown", ".html"]

# Extensions of files rendered as markdown by the default renderer
MARKDOWN_FILE_EXTENSIONS: Sequence[str] = [".md", ".markdown"]

# Permalink template for posts. It can also be one of the builtin styles:
# "date", "pretty", "ordinal", "none"
PERMALINK: str = "date"

# Permalink template for pages outside of collections
PAGE_PERMALINK: str = "/:path:output_ext"

# Permalink template for collections that do not define their own
COLLECTION_PERMALINK: str = "/:collection/:path:output_ext"

# Collection declarations beyond the builtin "posts" collection.
#
# It can be a list of names, or a dict mapping names to a dict with optional
# `directory`, `sort_by`, `permalink`, `output`, `paginate`, `paginate_path`
COLLECTIONS: Union[Sequence[str], dict[str, dict[str, Any]]] = {}

# Scoped front matter defaults, in the same format as Jekyll's `defaults`
DEFAULTS: Sequence[dict[str, Any]] = []

# Number of documents per listing page. None disables pagination
PAGINATE: Optional[int] = None

# Permalink template for listing pages, with :num standing for the page number
PAGINATE_PATH: str = "/page:num/"

# Collection paginated with PAGINATE and PAGINATE_PATH
PAGINATE_COLLECTION: str = "posts"

# Maximum number of entries in the syndication feed
FEED_LIMIT: int = 10

# Site path of the syndication feed
FEED_PATH: str = "/feed.xml"

# Collections whose documents are syndicated
FEED_COLLECTIONS: Sequence[str] = ["posts"]

# Feed title. If None, use the site name
FEED_TITLE: Optional[str] = None

# Separator marking the end of the excerpt in a post body
EXCERPT_SEPARATOR: str = "\n\n"

# extensions for python-markdown and their config used for this site
MARKDOWN_EXTENSIONS = [
    "markdown.extensions.extra",
    "markdown.extensions.codehilite",
    "markdown.extensions.fenced_code",
]
MARKDOWN_EXTENSION_CONFIGS = {
    "markdown.extensions.extra": {
        "markdown.extensions.footnotes": {
            "UNIQUE_IDS": True,
        },
    },
}

# Number of worker threads used to load files and compute permalinks.
# None uses the number of available CPUs
JOBS: Optional[int] = None
