from __future__ import annotations

import importlib
import json
import logging
import os
import sys
import types
from collections.abc import Sequence
from typing import Any, Optional, Union

from .errors import ConfigError
from .utils import yaml_codec

log = logging.getLogger("settings")


# Jekyll-style configuration keys mapped to settings names
CONFIG_KEYS = {
    "title": "SITE_NAME",
    "url": "SITE_URL",
    "timezone": "TIMEZONE",
    "source": "CONTENT",
    "destination": "OUTPUT",
    "layouts_dir": "LAYOUTS",
    "permalink": "PERMALINK",
    "permalink_template": "PERMALINK",
    "paginate": "PAGINATE",
    "paginate_path": "PAGINATE_PATH",
    "paginate_path_template": "PAGINATE_PATH",
    "paginate_collection": "PAGINATE_COLLECTION",
    "collections": "COLLECTIONS",
    "defaults": "DEFAULTS",
    "future": "FUTURE",
    "show_drafts": "DRAFT_MODE",
    "excerpt_separator": "EXCERPT_SEPARATOR",
}

# Keys of the `feed` section mapped to settings names
FEED_KEYS = {
    "limit": "FEED_LIMIT",
    "posts_limit": "FEED_LIMIT",
    "path": "FEED_PATH",
    "collections": "FEED_COLLECTIONS",
    "title": "FEED_TITLE",
}


class Settings:
    # `spipe` command being run
    BUILD_COMMAND: str

    # Root directory used to resolve relative path in settings
    # Default if None: the directory where the settings file is found
    PROJECT_ROOT: Optional[str]

    # Base URL for the site, used to generate absolute URLs
    SITE_URL: Optional[str]

    # Root directory of the site in the URLs we generate.
    SITE_ROOT: str

    # Default site name. If None, use the name of the content directory
    SITE_NAME: Optional[str]

    # Default author of the site
    SITE_AUTHOR: Optional[str]

    # Site-wide metadata passed to the renderer
    SITE_META: dict[str, Any]

    # Directory with the source content of the site
    # Default if None: PROJECT_ROOT
    CONTENT: Optional[str]

    # Directory where the static site will be written by build
    OUTPUT: str

    # Directory with layouts used by the default renderer
    LAYOUTS: str

    # Time zone used for timestamps on the site
    TIMEZONE: Optional[str]

    # If true, load drafts and do not ignore documents dated in the future
    DRAFT_MODE: bool

    # If true, do not ignore documents dated in the future
    FUTURE: bool

    # Patterns of content files that are not part of the site
    EXCLUDE: Sequence[str]

    # File extensions that are always loaded as documents
    DOCUMENT_EXTENSIONS: Sequence[str]
    MARKDOWN_FILE_EXTENSIONS: Sequence[str]

    # Permalink templates
    PERMALINK: str
    PAGE_PERMALINK: str
    COLLECTION_PERMALINK: str

    # Collection declarations
    COLLECTIONS: Union[Sequence[str], dict[str, dict[str, Any]]]

    # Scoped front matter defaults
    DEFAULTS: Sequence[dict[str, Any]]

    # Pagination
    PAGINATE: Optional[int]
    PAGINATE_PATH: str
    PAGINATE_COLLECTION: str

    # Syndication
    FEED_LIMIT: int
    FEED_PATH: str
    FEED_COLLECTIONS: Sequence[str]
    FEED_TITLE: Optional[str]

    EXCERPT_SEPARATOR: str

    # extensions for python-markdown and their config used for this site
    MARKDOWN_EXTENSIONS: list[str]
    MARKDOWN_EXTENSION_CONFIGS: dict[str, Any]

    # Size of the worker pool
    JOBS: Optional[int]

    def __init__(self, default_settings: Optional[str] = "sitepipe.global_settings") -> None:
        if default_settings is not None:
            self.add_module(importlib.import_module(default_settings))

    def as_dict(self) -> dict[str, Any]:
        res = {}
        for setting in dir(self):
            if setting.isupper():
                res[setting] = getattr(self, setting)
        return res

    def add_module(self, mod: types.ModuleType) -> None:
        """
        Add uppercase settings from mod into this module
        """
        for setting in dir(mod):
            if setting.isupper():
                setattr(self, setting, getattr(mod, setting))

    def load(self, pathname: str) -> None:
        """
        Load settings from a python file, importing only uppercase symbols
        """
        orig_dwb = sys.dont_write_bytecode
        try:
            sys.dont_write_bytecode = True
            import importlib.util

            spec = importlib.util.spec_from_file_location("sitepipe.settings", pathname)
            user_settings = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(user_settings)
        finally:
            sys.dont_write_bytecode = orig_dwb

        self.add_module(user_settings)

    def load_config(self, pathname: str) -> None:
        """
        Load settings from a Jekyll-style configuration file, in YAML, TOML or
        JSON format depending on its extension
        """
        ext = os.path.splitext(pathname)[1]
        try:
            with open(pathname, "rt", encoding="utf-8") as fd:
                if ext == ".toml":
                    import toml
                    config = toml.load(fd)
                elif ext == ".json":
                    config = json.load(fd)
                else:
                    config = yaml_codec.load(fd)
        except OSError as e:
            raise ConfigError(f"cannot read configuration: {e}", source=pathname) from e
        except (ValueError, *yaml_codec.errors) as e:
            raise ConfigError(f"cannot parse configuration: {e}", source=pathname) from e

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigError("configuration is not a mapping", source=pathname)

        self.update_from_config(config)

    def update_from_config(self, config: dict[str, Any]) -> None:
        """
        Set settings from a Jekyll-style configuration mapping.

        Keys with a corresponding setting are set; all the configuration is
        also merged into SITE_META, so that the renderer can access it as
        site-wide metadata.
        """
        site_meta = dict(self.SITE_META)
        for key, value in config.items():
            site_meta[key] = value

            # Dotted keys, like `feed.limit`
            if "." in key:
                section, name = key.split(".", 1)
                if section == "feed" and name in FEED_KEYS:
                    setattr(self, FEED_KEYS[name], value)
                else:
                    log.debug("configuration key %r ignored", key)
                continue

            if (setting := CONFIG_KEYS.get(key)) is not None:
                setattr(self, setting, value)
            elif key == "baseurl":
                self.SITE_ROOT = value or "/"
            elif key == "author":
                if isinstance(value, dict):
                    self.SITE_AUTHOR = value.get("name")
                else:
                    self.SITE_AUTHOR = value
            elif key == "exclude":
                self.EXCLUDE = list(self.EXCLUDE) + [p for p in value if p not in self.EXCLUDE]
            elif key == "feed":
                if not isinstance(value, dict):
                    raise ConfigError(f"feed configuration should be a mapping, not {value!r}")
                for name, fvalue in value.items():
                    if (setting := FEED_KEYS.get(name)) is not None:
                        setattr(self, setting, fvalue)

        self.SITE_META = site_meta
