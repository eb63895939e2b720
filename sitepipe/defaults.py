from __future__ import annotations

import fnmatch
import logging
import types
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, NamedTuple, Optional

from .errors import ConfigError

if TYPE_CHECKING:
    from .document import Document

log = logging.getLogger("defaults")

GLOB_CHARS = frozenset("*?[")


def merge_values(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    """
    Return a new dict with the values of overlay merged into base.

    Keys in overlay replace keys in base, except when both values are
    mappings: in that case they are merged key by key. The merge only goes
    one level deep: mappings nested further are replaced as a whole.
    """
    res = dict(base)
    for key, value in overlay.items():
        old = res.get(key)
        if isinstance(value, Mapping) and isinstance(old, Mapping):
            merged = dict(old)
            merged.update(value)
            res[key] = merged
        else:
            res[key] = value
    return res


class DefaultRule(NamedTuple):
    """
    Front matter defaults for the documents selected by a scope
    """
    # Glob or path prefix matched against document source paths. None
    # matches all documents
    path_pattern: Optional[str]
    # Collection name, "pages" or "drafts". None matches all documents
    type_filter: Optional[str]
    # Values merged into the front matter of matching documents
    values: Mapping[str, Any]

    @classmethod
    def from_config(cls, rule: Any) -> DefaultRule:
        """
        Build a DefaultRule from an entry in the `defaults` configuration.

        Both Jekyll's format (``{"scope": {"path":…, "type":…}, "values": …}``)
        and a flat format (``{"path":…, "type":…, "values":…}``) are
        accepted.
        """
        if isinstance(rule, DefaultRule):
            return rule
        if not isinstance(rule, Mapping):
            raise ConfigError(f"default rule {rule!r} is not a mapping", source="defaults")

        scope = rule.get("scope", rule)
        if scope is None:
            scope = {}
        elif not isinstance(scope, Mapping):
            raise ConfigError(f"scope {scope!r} is not a mapping", source="defaults")

        values = rule.get("values")
        if values is None:
            values = {}
        elif not isinstance(values, Mapping):
            raise ConfigError(f"values {values!r} is not a mapping", source="defaults")

        path = scope.get("path")
        if path is not None:
            path = str(path).strip("/")
            if path in ("", "."):
                path = None

        type_filter = scope.get("type")
        if type_filter is not None:
            type_filter = str(type_filter)

        return cls(path, type_filter, types.MappingProxyType(dict(values)))

    def matches_path(self, source_path: str) -> bool:
        if self.path_pattern is None:
            return True
        if GLOB_CHARS.intersection(self.path_pattern):
            return fnmatch.fnmatchcase(source_path, self.path_pattern)
        return source_path == self.path_pattern or source_path.startswith(self.path_pattern + "/")

    def matches_type(self, collection: str, draft: bool = False) -> bool:
        if self.type_filter is None:
            return True
        if self.type_filter == "drafts":
            return draft
        return self.type_filter == collection

    def matches(self, document: Document) -> bool:
        """
        Check if this rule applies to the given document
        """
        return (self.matches_path(document.source_path)
                and self.matches_type(document.collection, document.draft))


def resolve_front_matter(rules: Iterable[DefaultRule], document: Document) -> dict[str, Any]:
    """
    Compute the effective front matter of a document.

    Matching rules are merged in order, then the document's own front matter
    is merged on top, so that values set in the document always win.
    """
    overlay: dict[str, Any] = {}
    for rule in rules:
        if rule.matches(document):
            overlay = merge_values(overlay, rule.values)
    return merge_values(overlay, document.front_matter)


def apply_defaults(rules: Iterable[DefaultRule], documents: Iterable[Document]) -> None:
    """
    Resolve the effective front matter of all documents
    """
    rules = tuple(rules)
    for document in documents:
        document.set_meta(resolve_front_matter(rules, document))
