"""Configuration constants and environment overrides."""

from __future__ import annotations

import os

# Environment variable names
ENV_ROOT = "SCHEMA_ARCHITECT_ROOT"
ENV_OUT = "SCHEMA_ARCHITECT_OUT"
ENV_DEBUG = "SCHEMA_ARCHITECT_DEBUG"
ENV_LOG_FILE = "SCHEMA_ARCHITECT_LOG_FILE"

# Common GoFrame layouts: ./internal/model/do or ./internal to include api/
DEFAULT_SEARCH_ROOT = os.environ.get(ENV_ROOT, "./internal")
DEFAULT_OUT_PATH = os.environ.get(ENV_OUT, "schema.logical.json")

GENERATED_BY = "schema-architect"

# path-substring markers; a Go file is only read when one matches.
# order matters: the first match decides the provenance tag.
SOURCE_MARKERS: tuple[tuple[str, str], ...] = (
    ("/model/do", "go:do"),
    ("/api", "go:api"),
)

GO_EXTS = {".go"}

EXCLUDE_DIRS = {
    ".git",
    "node_modules",
    "testdata",
    "vendor",
}


def is_debug_enabled() -> bool:
    return os.environ.get(ENV_DEBUG, "").strip().lower() in (
        "1",
        "true",
        "yes",
        "on",
    )
