"""schema-architect: logical schema extraction for GoFrame projects.

Walks Go ``model/do`` and ``api`` structs, reads an optional OpenAPI
document, and consolidates both into one deterministic schema document.
"""

from schema_architect.accumulator import SchemaAccumulator
from schema_architect.consolidate import (
    consolidate_by_normalized_name,
    consolidate_tables,
    merge_constraints,
    merge_table_metadata,
)
from schema_architect.errors import SchemaSourceError
from schema_architect.go_scanner import GoStructScanner
from schema_architect.models import (
    ColumnInfo,
    ConsolidatedSchema,
    FieldConstraints,
    OperationInfo,
    RelationNode,
    TableMetadata,
)
from schema_architect.naming import normalize_entity_name
from schema_architect.openapi import OpenAPIExtractor, load_document
from schema_architect.pipeline import extract_sources, run_pipeline

__all__ = [
    "ColumnInfo",
    "ConsolidatedSchema",
    "FieldConstraints",
    "GoStructScanner",
    "OpenAPIExtractor",
    "OperationInfo",
    "RelationNode",
    "SchemaAccumulator",
    "SchemaSourceError",
    "TableMetadata",
    "consolidate_by_normalized_name",
    "consolidate_tables",
    "extract_sources",
    "load_document",
    "merge_constraints",
    "merge_table_metadata",
    "normalize_entity_name",
    "run_pipeline",
]
