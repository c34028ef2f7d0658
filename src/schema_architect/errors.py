"""Run-aborting input errors."""

from __future__ import annotations


class SchemaSourceError(Exception):
    """An input (scan root or OpenAPI document) cannot be used."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path
