"""Consolidation of per-source records into one record per entity.

Records are grouped by normalized name in encounter order. The first
record of a group is deep-copied; every later one is merged into that
copy. Identity rules:

- columns: lowercase wire name with ``_`` and ``-`` removed
- relations: (field, target, target key, source key), case-insensitive
- operations: (method, path, operation id)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

import structlog

from schema_architect.accumulator import SchemaAccumulator
from schema_architect.config import GENERATED_BY
from schema_architect.models import (
    SOURCE_MERGED,
    SOURCE_OPENAPI,
    UNKNOWN_TYPE,
    ColumnInfo,
    ConsolidatedSchema,
    FieldConstraints,
    OperationInfo,
    RelationNode,
    TableMetadata,
    normalize_constraints,
)
from schema_architect.naming import normalize_entity_name

logger = structlog.get_logger(__name__)


def column_key(column: ColumnInfo) -> str:
    s = (column.json_name or column.name).strip().lower()
    return s.replace("_", "").replace("-", "")


def _pick_max(a, b):
    if a is None:
        return b
    if b is None:
        return a
    return b if b > a else a


def _pick_min(a, b):
    if a is None:
        return b
    if b is None:
        return a
    return b if b < a else a


def merge_constraints(
    a: FieldConstraints | None, b: FieldConstraints | None
) -> FieldConstraints | None:
    """Union two constraint sets, keeping the stricter bound on each side."""
    if a is None and b is None:
        return None
    if a is None:
        return normalize_constraints(replace(b, enum=list(b.enum)))
    if b is None:
        return normalize_constraints(a)

    merged = FieldConstraints(
        required=a.required or b.required,
        nullable=a.nullable or b.nullable,
        min_length=_pick_max(a.min_length, b.min_length),
        max_length=_pick_min(a.max_length, b.max_length),
        minimum=_pick_max(a.minimum, b.minimum),
        maximum=_pick_min(a.maximum, b.maximum),
        pattern=a.pattern or b.pattern,
        format=a.format or b.format,
        enum=list(a.enum) if a.enum else list(b.enum),
    )
    return normalize_constraints(merged)


def merge_column(a: ColumnInfo, b: ColumnInfo) -> ColumnInfo:
    """Fill a's empty fields from b. Identity is the caller's concern."""
    out_type = a.type
    if (not out_type or out_type == UNKNOWN_TYPE) and b.type:
        out_type = b.type

    return ColumnInfo(
        name=a.name or b.name,
        json_name=a.json_name or b.json_name,
        type=out_type,
        validation=a.validation or b.validation,
        description=a.description or b.description,
        additional=a.additional or b.additional,
        constraints=merge_constraints(a.constraints, b.constraints),
        ref=a.ref or b.ref,
        is_array=a.is_array or b.is_array,
        source=a.source or b.source,
    )


def merge_columns(dst: list[ColumnInfo], src: Iterable[ColumnInfo]) -> None:
    index = {column_key(c): i for i, c in enumerate(dst)}
    for column in src:
        key = column_key(column)
        if not key:
            continue
        if key in index:
            dst[index[key]] = merge_column(dst[index[key]], column)
        else:
            dst.append(column)
            index[key] = len(dst) - 1


def merge_relations(
    dst: list[RelationNode], src: Iterable[RelationNode]
) -> None:
    seen = {r.identity() for r in dst}
    for rel in src:
        key = rel.identity()
        if key in seen:
            continue
        dst.append(rel)
        seen.add(key)


def merge_operations(
    dst: list[OperationInfo], src: Iterable[OperationInfo]
) -> None:
    seen = {op.identity() for op in dst}
    for op in src:
        key = op.identity()
        if key in seen:
            continue
        dst.append(op)
        seen.add(key)


def merge_table_metadata(
    dst: TableMetadata, src: TableMetadata, *, keep_name: bool = False
) -> None:
    """Merge src into dst in place.

    The merged struct name moves to an OpenAPI-sourced name unless
    ``keep_name`` says dst already carries one. consolidate_tables still
    prefers the schema whose name equals the normalized name.
    """
    src = src.clone()
    dst.source = SOURCE_MERGED

    merge_columns(dst.columns, src.columns)
    merge_relations(dst.relations, src.relations)
    merge_operations(dst.operations, src.operations)

    if src.struct_name and (
        not dst.struct_name or (src.source == SOURCE_OPENAPI and not keep_name)
    ):
        dst.struct_name = src.struct_name


def stabilize_table_metadata(table: TableMetadata) -> None:
    table.columns.sort(key=lambda c: c.json_name or c.name)
    table.operations.sort(key=lambda op: (op.path, op.method))


def consolidate_tables(
    tables: Iterable[TableMetadata],
    pending_operations: dict[str, list[OperationInfo]] | None = None,
) -> ConsolidatedSchema:
    """Group, merge, attach pending operations and stabilize."""
    entities: dict[str, TableMetadata] = {}
    # entities whose display name already comes from an OpenAPI schema
    openapi_named: set[str] = set()

    for entry in tables:
        norm = entry.normalized_name or normalize_entity_name(
            entry.struct_name
        )
        if not norm:
            continue

        existing = entities.get(norm)
        if existing is None:
            clone = entry.clone()
            clone.normalized_name = norm
            entities[norm] = clone
        else:
            merge_table_metadata(
                existing, entry, keep_name=norm in openapi_named
            )
            logger.debug(
                "merged entity record",
                entity=norm,
                struct=entry.struct_name,
                source=entry.source,
            )
        if entry.source == SOURCE_OPENAPI:
            # a schema named exactly like the entity beats request/response
            # schemas that happened to sort first
            if entry.struct_name == norm:
                entities[norm].struct_name = norm
            openapi_named.add(norm)

    for norm, ops in (pending_operations or {}).items():
        target = entities.get(norm)
        if target is None:
            for op in ops:
                logger.warning(
                    "dropping operation without entity",
                    entity=norm,
                    method=op.method,
                    path=op.path,
                )
            continue
        merge_operations(
            target.operations, (replace(op, tags=list(op.tags)) for op in ops)
        )

    entity_list = list(entities.values())
    for table in entity_list:
        stabilize_table_metadata(table)
    entity_list.sort(key=lambda t: t.normalized_name)

    logger.info("consolidated entities", count=len(entity_list))
    return ConsolidatedSchema(
        entities=entities,
        entity_list=entity_list,
        generated_by=GENERATED_BY,
    )


def consolidate_by_normalized_name(
    accumulator: SchemaAccumulator,
) -> ConsolidatedSchema:
    return consolidate_tables(accumulator, accumulator.pending_operations)
