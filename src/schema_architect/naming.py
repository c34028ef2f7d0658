"""Entity name normalization.

`normalize_entity_name` is the join key between the Go extractor and the
OpenAPI extractor: `UserCreateReq`, `CreateUserReq`, `V1UserRes` and `Users`
all collapse to `User`. It is a string-shape heuristic and nothing more.
Call it exactly once per raw name; applying it twice can strip more.
"""

from __future__ import annotations

import re

# version/namespace prefixes, stripped in order
VERSION_PREFIXES: tuple[str, ...] = ("V1", "V2", "Api")

# CRUD verbs written in front of the entity (CreateUserReq); only stripped
# from request/response names so QueryLog or AddOn keep their verb
VERB_PREFIXES: tuple[str, ...] = (
    "Create",
    "Update",
    "Delete",
    "Add",
    "Edit",
    "Get",
    "List",
    "Query",
)

# request/response/CRUD suffixes, stripped in order
SUFFIXES: tuple[str, ...] = (
    "Req",
    "Request",
    "Res",
    "Response",
    "Input",
    "Output",
    "Create",
    "Update",
    "Add",
    "Edit",
    "Delete",
    "Item",
    "Detail",
    "List",
    "Get",
    "Query",
    "Form",
    "Dto",
    "DTO",
)

# a name ending in one of these is a request/response payload
IO_SUFFIXES: tuple[str, ...] = (
    "Req",
    "Request",
    "Res",
    "Response",
    "Input",
    "Output",
)

# endings where a trailing "s" is not a plural (Status, Address, Analysis)
_NON_PLURAL_ENDINGS = ("ss", "us", "is")

_VERSION_SEGMENT_RE = re.compile(r"^v\d+$", re.IGNORECASE)
_WORD_SPLIT_RE = re.compile(r"[-_\s.]+")

FALLBACK_ENTITY_NAME = "Unknown"


def _strip_prefix(name: str, prefix: str) -> str:
    # only at a camel-case boundary so "Address" keeps its "Add"
    if not name.startswith(prefix) or len(name) == len(prefix):
        return name
    nxt = name[len(prefix)]
    if nxt.isupper() or nxt.isdigit():
        return name[len(prefix) :]
    return name


def strip_plural(word: str) -> str:
    """Drop one trailing plural "s" (users -> user, status stays)."""
    if len(word) < 2 or not word.endswith("s"):
        return word
    if word.lower().endswith(_NON_PLURAL_ENDINGS):
        return word
    return word[:-1]


def normalize_entity_name(name: str) -> str:
    """Map a raw struct/schema name to its logical entity name.

    Never returns an empty string: when stripping consumes everything the
    raw name is returned unchanged, and an empty raw name maps to
    ``FALLBACK_ENTITY_NAME``.
    """
    if not name or not name.strip():
        return FALLBACK_ENTITY_NAME

    cleaned = name.strip()
    for prefix in VERSION_PREFIXES:
        cleaned = _strip_prefix(cleaned, prefix)
    if cleaned.endswith(IO_SUFFIXES):
        for prefix in VERB_PREFIXES:
            stripped = _strip_prefix(cleaned, prefix)
            if stripped != cleaned:
                cleaned = stripped
                break

    for suffix in SUFFIXES:
        if cleaned.endswith(suffix):
            cleaned = cleaned[: -len(suffix)]

    cleaned = strip_plural(cleaned)

    if not cleaned:
        return name
    return cleaned


def pascalize(segment: str) -> str:
    """order-items -> OrderItems, user -> User."""
    words = [w for w in _WORD_SPLIT_RE.split(segment) if w]
    return "".join(w[:1].upper() + w[1:] for w in words)


def entity_from_path(path: str) -> str:
    """Guess an entity name from an operation path.

    ``/api/v1/users/{id}`` -> ``User``. Returns "" when the path has no
    usable segment.
    """
    trimmed = path.strip().strip("/")
    if not trimmed:
        return ""
    parts = [p for p in trimmed.split("/") if p]

    # leading api/version segments carry no entity information
    while parts and (
        parts[0].lower() == "api" or _VERSION_SEGMENT_RE.match(parts[0])
    ):
        parts = parts[1:]
    if not parts:
        return ""

    last = parts[-1]
    if last.startswith("{") and len(parts) > 1:
        last = parts[-2]
    if last.startswith("{"):
        return ""

    last = strip_plural(last.strip())
    return pascalize(last)
