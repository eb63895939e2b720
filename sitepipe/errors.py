from __future__ import annotations

from typing import Optional, Sequence


class SiteError(Exception):
    """
    Base class for errors raised while building a site
    """
    pass


class ConfigError(SiteError):
    """
    The site configuration is invalid
    """
    def __init__(self, msg: str, source: Optional[str] = None):
        self.msg = msg
        self.source = source
        if source is not None:
            super().__init__(f"{source}: {msg}")
        else:
            super().__init__(msg)


class ParseError(SiteError):
    """
    The front matter of a source file could not be parsed
    """
    def __init__(self, path: str, line: Optional[int], msg: str):
        self.path = path
        self.line = line
        self.msg = msg
        if line is None:
            super().__init__(f"{path}: {msg}")
        else:
            super().__init__(f"{path}:{line}: {msg}")


class PermalinkCollisionError(SiteError):
    """
    Two site elements would be written to the same output path
    """
    def __init__(self, output_path: str, first: str, second: str):
        self.output_path = output_path
        self.first = first
        self.second = second
        super().__init__(f"{first} and {second} both resolve to {output_path}")


class UnresolvedPlaceholderError(SiteError):
    """
    A permalink placeholder has no value for a document.

    This is not raised: it is recorded as a warning, and the placeholder is
    replaced with ``fallback``.
    """
    def __init__(self, source_path: str, placeholder: str, fallback: str):
        self.source_path = source_path
        self.placeholder = placeholder
        self.fallback = fallback
        super().__init__(
            f"{source_path}: no value for :{placeholder} in permalink, using {fallback!r}")


class UnknownCollectionError(SiteError):
    """
    The configuration references a collection that does not exist
    """
    def __init__(self, name: str, what: str = "configuration"):
        self.name = name
        self.what = what
        super().__init__(f"{what} references unknown collection {name!r}")


class BuildError(SiteError):
    """
    Collects all the errors found while processing documents
    """
    def __init__(self, errors: Sequence[SiteError]):
        self.errors = list(errors)
        if len(self.errors) == 1:
            super().__init__(str(self.errors[0]))
        else:
            super().__init__(f"{len(self.errors)} errors found while building the site")


class RenderError(SiteError):
    """
    A manifest entry could not be rendered
    """
    def __init__(self, source: str, msg: str):
        self.source = source
        self.msg = msg
        super().__init__(f"{source}: {msg}")
