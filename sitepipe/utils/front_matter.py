from __future__ import annotations

import json
import logging
from typing import Any, NamedTuple, Optional

from ..errors import ParseError
from . import yaml_codec

log = logging.getLogger("utils")


class Parsed(NamedTuple):
    """
    Result of splitting a source file into front matter and body
    """
    # Format of the front matter ("yaml", "toml", "json"), or None if the file
    # has no front matter
    fmt: Optional[str]
    # Parsed front matter
    meta: dict[str, Any]
    # Rest of the file after the front matter
    body: str
    # 1-based line number where the body starts
    body_line: int


def write(meta: dict[str, Any], style: str = "yaml") -> str:
    """
    Serialize meta as a front matter block
    """
    if style == "json":
        return json.dumps(meta, indent=4, sort_keys=True) + "\n"
    elif style == "toml":
        import toml
        return "+++\n" + toml.dumps(meta) + "+++\n"
    elif style == "yaml":
        return yaml_codec.dumps(meta) + "---\n"
    raise ValueError(f"unsupported front matter style {style!r}")


def _find_end(lines: list[str], delimiters: tuple[str, ...]) -> Optional[int]:
    """
    Return the index of the line closing a front matter block opened at
    lines[0], or None if the block is not terminated
    """
    for idx in range(1, len(lines)):
        if lines[idx].rstrip() in delimiters:
            return idx
    return None


def _check_mapping(path: str, meta: Any) -> dict[str, Any]:
    if meta is None:
        return {}
    if not isinstance(meta, dict):
        raise ParseError(path, 1, f"front matter is a {type(meta).__name__}, not a mapping")
    return meta


def read_string(content: str, path: str = "<string>") -> Parsed:
    """
    Split the front matter from the body of a document.

    ``path`` is only used for error messages.

    Raises ParseError if the front matter is not terminated, or cannot be
    parsed.
    """
    if content.startswith("\ufeff"):
        content = content[1:]

    if content.split("\n", 1)[0].rstrip() == "{":
        try:
            meta, end = json.JSONDecoder().raw_decode(content)
        except json.JSONDecodeError as e:
            raise ParseError(path, e.lineno, f"invalid JSON front matter: {e.msg}") from e
        head = content[:end]
        body = content[end:]
        # Skip the rest of the line closing the JSON object
        if body.startswith("\n"):
            body = body[1:]
        return Parsed("json", _check_mapping(path, meta), body, head.count("\n") + 2)

    lines = content.splitlines(keepends=True)
    if not lines:
        return Parsed(None, {}, content, 1)

    head = lines[0].rstrip()
    if head == "---":
        end = _find_end(lines, ("---", "..."))
        if end is None:
            raise ParseError(path, 1, "unterminated YAML front matter")
        try:
            meta = yaml_codec.loads("".join(lines[1:end]))
        except yaml_codec.errors as e:
            line = yaml_codec.error_line(e)
            raise ParseError(
                path, line + 1 if line is not None else 1,
                f"invalid YAML front matter: {getattr(e, 'problem', None) or e}") from e
        return Parsed("yaml", _check_mapping(path, meta), "".join(lines[end + 1:]), end + 2)
    elif head == "+++":
        end = _find_end(lines, ("+++",))
        if end is None:
            raise ParseError(path, 1, "unterminated TOML front matter")
        import toml
        try:
            meta = toml.loads("".join(lines[1:end]))
        except toml.TomlDecodeError as e:
            lineno = getattr(e, "lineno", None)
            raise ParseError(
                path, lineno + 1 if lineno is not None else 1,
                f"invalid TOML front matter: {getattr(e, 'msg', e)}") from e
        return Parsed("toml", _check_mapping(path, meta), "".join(lines[end + 1:]), end + 2)
    else:
        # No front matter found
        return Parsed(None, {}, content, 1)


def has_front_matter(head: bytes, allow_json: bool = False) -> bool:
    """
    Check if the first bytes of a file look like the start of a front matter
    block.

    JSON front matter is only recognised if ``allow_json`` is True, since plain
    JSON data files start the same way.
    """
    if head.startswith(b"\xef\xbb\xbf"):
        head = head[3:]
    first = head.split(b"\n", 1)[0].rstrip()
    if first in (b"---", b"+++"):
        return True
    return allow_json and first == b"{"
