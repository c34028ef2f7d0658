"""Go struct tag parsing.

Field tags look like ``json:"name,omitempty" orm:"with:uid=id" v:"required"``.
Parsing follows the conventional ``key:"value"`` layout used by Go's
reflect package: space-separated pairs, each value a double-quoted string.
Parsing stops at the first malformed pair, keeping what was read so far.
"""

from __future__ import annotations

import ast
import json

from schema_architect.models import RelationNode

DEFAULT_SOURCE_KEY = "id"


def unquote_literal(literal: str) -> str | None:
    """Unquote a Go string literal (raw or interpreted).

    Returns None when the literal is malformed.
    """
    if len(literal) >= 2 and literal[0] == literal[-1] == "`":
        return literal[1:-1]
    if len(literal) >= 2 and literal[0] == literal[-1] == '"':
        try:
            value = json.loads(literal)
        except json.JSONDecodeError:
            # Go escapes json rejects, such as \' and \x41
            try:
                value = ast.literal_eval(literal)
            except (ValueError, SyntaxError):
                return None
        return value if isinstance(value, str) else None
    return None


def _is_key_char(ch: str) -> bool:
    return ch > " " and ch not in ':"' and ch != "\x7f"


def parse_struct_tag(tag: str) -> dict[str, str]:
    """Split a struct tag into its key/value pairs (first key wins)."""
    pairs: dict[str, str] = {}
    rest = tag
    while rest:
        rest = rest.lstrip(" ")
        if not rest:
            break

        i = 0
        while i < len(rest) and _is_key_char(rest[i]):
            i += 1
        if i == 0 or i + 1 >= len(rest):
            break
        if rest[i] != ":" or rest[i + 1] != '"':
            break
        key = rest[:i]
        rest = rest[i + 1 :]

        # scan the quoted value, honoring backslash escapes
        i = 1
        while i < len(rest) and rest[i] != '"':
            if rest[i] == "\\":
                i += 1
            i += 1
        if i >= len(rest):
            break
        quoted = rest[: i + 1]
        rest = rest[i + 1 :]

        value = unquote_literal(quoted)
        if value is None:
            break
        pairs.setdefault(key, value)
    return pairs


def lookup_tag(tag: str, key: str) -> str:
    return parse_struct_tag(tag).get(key, "")


def parse_json_tag(tag: str) -> str:
    """Wire name from a json tag: ``name,omitempty`` -> ``name``."""
    if not tag or tag == "-":
        return ""
    name, _, _ = tag.partition(",")
    return name


def parse_with_tag(tag: str) -> RelationNode | None:
    """Parse the ``with:`` segment of an orm tag into a RelationNode.

    ``with:uid=id``, ``with: uid = id`` and ``with:uid`` are all accepted;
    an omitted source key defaults to ``id``. Only the key fields are set;
    the caller fills in field name, target and cardinality.
    """
    with_part = ""
    for segment in tag.split(","):
        segment = segment.strip()
        if segment.startswith("with:"):
            with_part = segment[len("with:") :]
            break

    if not with_part.strip():
        return None

    target_key, sep, source_key = with_part.partition("=")
    return RelationNode(
        field_name="",
        target_struct="",
        target_key=target_key.strip(),
        source_key=source_key.strip() if sep else DEFAULT_SOURCE_KEY,
    )
