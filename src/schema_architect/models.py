"""Schema records shared by the extractors and the consolidator.

Every extractor produces `TableMetadata` records; the consolidator folds
them into one record per normalized entity name and wraps the result in a
`ConsolidatedSchema`. The `to_dict` methods define the JSON document the
downstream scaffolding generator reads, so the key spellings are a contract.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

UNKNOWN_TYPE = "Unknown"

SOURCE_GO = "go"
SOURCE_GO_DO = "go:do"
SOURCE_GO_API = "go:api"
SOURCE_OPENAPI = "openapi"
SOURCE_MERGED = "merged"


@dataclass
class FieldConstraints:
    """Machine-usable validation constraints for a single column."""

    required: bool = False
    nullable: bool = False
    min_length: int | None = None
    max_length: int | None = None
    minimum: float | None = None
    maximum: float | None = None
    pattern: str = ""
    format: str = ""
    enum: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        """True when no constraint is actually set."""
        if self.required or self.nullable:
            return False
        if (
            self.min_length is not None
            or self.max_length is not None
            or self.minimum is not None
            or self.maximum is not None
        ):
            return False
        if self.pattern or self.format:
            return False
        return not self.enum

    def to_dict(self) -> dict[str, Any]:
        return {
            "Required": self.required,
            "Nullable": self.nullable,
            "MinLength": self.min_length,
            "MaxLength": self.max_length,
            "Minimum": self.minimum,
            "Maximum": self.maximum,
            "Pattern": self.pattern,
            "Format": self.format,
            "Enum": list(self.enum) if self.enum else None,
        }


def normalize_constraints(
    constraints: FieldConstraints | None,
) -> FieldConstraints | None:
    """Collapse an all-default constraint set to None."""
    if constraints is None or constraints.is_empty():
        return None
    return constraints


@dataclass
class ColumnInfo:
    """A non-relational field of an entity."""

    name: str
    json_name: str = ""
    type: str = UNKNOWN_TYPE
    validation: str = ""
    description: str = ""
    additional: str = ""
    constraints: FieldConstraints | None = None
    ref: str = ""
    is_array: bool = False
    source: str = ""

    def __post_init__(self) -> None:
        if not self.json_name:
            self.json_name = self.name
        if not self.type:
            self.type = UNKNOWN_TYPE
        self.constraints = normalize_constraints(self.constraints)

    @property
    def wire_name(self) -> str:
        return self.json_name or self.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "Name": self.name,
            "JSONName": self.json_name,
            "Type": self.type,
            "Validation": self.validation,
            "Description": self.description,
            "Additional": self.additional,
            "Constraints": (
                self.constraints.to_dict() if self.constraints else None
            ),
            "Ref": self.ref,
            "IsArray": self.is_array,
            "Source": self.source,
        }


@dataclass
class RelationNode:
    """An association declared through an `orm:"with:..."` tag."""

    field_name: str
    target_struct: str
    is_collection: bool = False
    target_key: str = ""
    source_key: str = "id"
    validation: str = ""
    description: str = ""

    def identity(self) -> tuple[str, str, str, str]:
        """Case-insensitive deduplication key."""
        return (
            self.field_name.strip().lower(),
            self.target_struct.strip().lower(),
            self.target_key.strip().lower(),
            self.source_key.strip().lower(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "field_name": self.field_name,
            "target_struct": self.target_struct,
            "is_collection": self.is_collection,
            "target_key": self.target_key,
            "source_key": self.source_key,
            "validation": self.validation,
            "description": self.description,
        }


@dataclass
class OperationInfo:
    """An API operation associated with an entity."""

    method: str
    path: str
    operation_id: str = ""
    summary: str = ""
    tags: list[str] = field(default_factory=list)
    request_schema: str = ""
    response_schema: str = ""
    source: str = SOURCE_OPENAPI

    def identity(self) -> tuple[str, str, str]:
        return (self.method, self.path, self.operation_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "path": self.path,
            "operation_id": self.operation_id,
            "summary": self.summary,
            "tags": list(self.tags),
            "request_schema": self.request_schema,
            "response_schema": self.response_schema,
            "source": self.source,
        }


@dataclass
class TableMetadata:
    """One entity as seen by a single source (or after merging)."""

    struct_name: str
    normalized_name: str
    source: str
    columns: list[ColumnInfo] = field(default_factory=list)
    relations: list[RelationNode] = field(default_factory=list)
    operations: list[OperationInfo] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.columns and not self.relations

    def clone(self) -> TableMetadata:
        """Deep copy; the clone shares no mutable state with self."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "StructName": self.struct_name,
            "NormalizedName": self.normalized_name,
            "Source": self.source,
            "Columns": [c.to_dict() for c in self.columns],
            "Relations": [r.to_dict() for r in self.relations],
            "Operations": [op.to_dict() for op in self.operations],
        }


@dataclass
class ConsolidatedSchema:
    """Final artifact: random-access map plus stable ordered list."""

    entities: dict[str, TableMetadata] = field(default_factory=dict)
    entity_list: list[TableMetadata] = field(default_factory=list)
    generated_by: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "entities": {
                name: self.entities[name].to_dict()
                for name in sorted(self.entities)
            },
            "entity_list": [t.to_dict() for t in self.entity_list],
            "generated_by": self.generated_by,
        }
