"""Accumulator for per-source schema records.

Extractors write into a `SchemaAccumulator` that is passed to them
explicitly. Keys are raw struct/schema names; a second declaration with
the same raw name is stored as ``Name__2``, ``Name__3`` and so on, so no
record is ever overwritten.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

import structlog

from schema_architect.models import OperationInfo, TableMetadata

logger = structlog.get_logger(__name__)


@dataclass
class SchemaAccumulator:
    """Insertion-ordered store of raw TableMetadata records."""

    tables: dict[str, TableMetadata] = field(default_factory=dict)
    # operations whose entity had no OpenAPI schema, by normalized name
    pending_operations: dict[str, list[OperationInfo]] = field(
        default_factory=dict
    )

    def put(self, table: TableMetadata) -> str:
        """Insert a record, disambiguating the key. Returns the key used."""
        base = table.struct_name
        key = base
        i = 2
        while key in self.tables:
            key = f"{base}__{i}"
            i += 1
        if key != base:
            logger.debug(
                "disambiguated duplicate struct name",
                struct=base,
                key=key,
                source=table.source,
            )
        self.tables[key] = table
        return key

    def add_pending_operation(self, entity: str, op: OperationInfo) -> None:
        self.pending_operations.setdefault(entity, []).append(op)

    def merge_from(self, other: SchemaAccumulator) -> None:
        """Fold another accumulator into this one (single insertion point)."""
        for table in other.tables.values():
            self.put(table)
        for entity, ops in other.pending_operations.items():
            for op in ops:
                self.add_pending_operation(entity, op)

    def __len__(self) -> int:
        return len(self.tables)

    def __iter__(self) -> Iterator[TableMetadata]:
        return iter(self.tables.values())

    def items(self) -> Iterator[tuple[str, TableMetadata]]:
        return iter(self.tables.items())

    def to_dict(self) -> dict[str, Any]:
        """Raw (pre-consolidation) dump keyed by disambiguated name."""
        return {key: table.to_dict() for key, table in self.tables.items()}
