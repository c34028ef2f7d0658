"""OpenAPI v3 reader.

Turns ``components.schemas`` into `TableMetadata` records and associates
``paths`` operations with the entity they describe. Only the subset of the
document needed for that is modeled; unknown keys are ignored.

Composition handling when collecting an object's properties:

- ``$ref``: follow the reference once (a visited set stops cycles)
- ``allOf``: union of every branch
- ``oneOf`` / ``anyOf``: first branch only, for determinism
"""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    model_validator,
)

from schema_architect.accumulator import SchemaAccumulator
from schema_architect.errors import SchemaSourceError
from schema_architect.models import (
    SOURCE_OPENAPI,
    UNKNOWN_TYPE,
    ColumnInfo,
    FieldConstraints,
    OperationInfo,
    TableMetadata,
    normalize_constraints,
)
from schema_architect.naming import entity_from_path, normalize_entity_name

logger = structlog.get_logger(__name__)

SCHEMA_REF_PREFIX = "#/components/schemas/"
HTTP_METHODS = (
    "get",
    "put",
    "post",
    "delete",
    "options",
    "head",
    "patch",
    "trace",
)
SUCCESS_CODES = ("200", "201", "202", "204")
PREFERRED_MEDIA_TYPES = ("application/json", "application/ld+json")
YAML_SUFFIXES = {".yaml", ".yml"}


# ---------------------------------------------------------------------------
# Document model
# ---------------------------------------------------------------------------


class _DocumentModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # YAML writes "key:" as null; treat it like an absent key
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class OpenAPISchema(_DocumentModel):
    """A schema object (component, property, or item)."""

    ref: str = Field(default="", alias="$ref")
    type: str | list[str] = ""
    format: str = ""
    description: str = ""
    properties: dict[str, OpenAPISchema] = Field(default_factory=dict)
    items: OpenAPISchema | None = None
    required: list[str] = Field(default_factory=list)
    enum: list[Any] = Field(default_factory=list)
    nullable: bool = False
    min_length: int | None = Field(default=None, alias="minLength")
    max_length: int | None = Field(default=None, alias="maxLength")
    minimum: float | None = None
    maximum: float | None = None
    pattern: str = ""
    all_of: list[OpenAPISchema] = Field(default_factory=list, alias="allOf")
    one_of: list[OpenAPISchema] = Field(default_factory=list, alias="oneOf")
    any_of: list[OpenAPISchema] = Field(default_factory=list, alias="anyOf")
    additional_properties: Any = Field(
        default=None, alias="additionalProperties"
    )

    @model_validator(mode="before")
    @classmethod
    def _normalize_keywords(cls, data: Any) -> Any:
        # OpenAPI 3.1 allows `true`/`false` as a schema; keep it untyped
        if isinstance(data, bool):
            return {}
        # swagger 2 style `required: true` on a property carries no list
        if isinstance(data, dict) and isinstance(data.get("required"), bool):
            data = {k: v for k, v in data.items() if k != "required"}
        return data

    @property
    def primary_type(self) -> str:
        """First non-null type (OpenAPI 3.1 allows a list of types)."""
        if isinstance(self.type, list):
            for t in self.type:
                if t != "null":
                    return t
            return ""
        return self.type

    @property
    def allows_null(self) -> bool:
        if self.nullable:
            return True
        return isinstance(self.type, list) and "null" in self.type


class OpenAPIMediaType(_DocumentModel):
    schema_: OpenAPISchema | None = Field(default=None, alias="schema")


class OpenAPIRequestBody(_DocumentModel):
    content: dict[str, OpenAPIMediaType] = Field(default_factory=dict)


class OpenAPIResponse(_DocumentModel):
    description: str = ""
    content: dict[str, OpenAPIMediaType] = Field(default_factory=dict)


class OpenAPIOperation(_DocumentModel):
    operation_id: str = Field(default="", alias="operationId")
    summary: str = ""
    tags: list[str] = Field(default_factory=list)
    request_body: OpenAPIRequestBody | None = Field(
        default=None, alias="requestBody"
    )
    responses: dict[str, OpenAPIResponse] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _stringify_status_codes(cls, data: Any) -> Any:
        # YAML reads unquoted status codes (200:) as integers
        if isinstance(data, dict) and isinstance(data.get("responses"), dict):
            data = dict(data)
            data["responses"] = {
                str(code): resp for code, resp in data["responses"].items()
            }
        return data


class OpenAPIPathItem(_DocumentModel):
    get: OpenAPIOperation | None = None
    put: OpenAPIOperation | None = None
    post: OpenAPIOperation | None = None
    delete: OpenAPIOperation | None = None
    options: OpenAPIOperation | None = None
    head: OpenAPIOperation | None = None
    patch: OpenAPIOperation | None = None
    trace: OpenAPIOperation | None = None

    def operations(self) -> list[tuple[str, OpenAPIOperation]]:
        """(METHOD, operation) pairs in a fixed method order."""
        ops = []
        for method in HTTP_METHODS:
            op = getattr(self, method)
            if op is not None:
                ops.append((method.upper(), op))
        return ops


class OpenAPIComponents(_DocumentModel):
    schemas: dict[str, OpenAPISchema] = Field(default_factory=dict)


class OpenAPIDocument(_DocumentModel):
    openapi: str | float = ""
    info: dict[str, Any] = Field(default_factory=dict)
    paths: dict[str, OpenAPIPathItem] = Field(default_factory=dict)
    components: OpenAPIComponents = Field(default_factory=OpenAPIComponents)


def parse_document(data: Any, path: str | None = None) -> OpenAPIDocument:
    """Validate decoded document data."""
    if not isinstance(data, dict):
        raise SchemaSourceError(
            "OpenAPI document must be a mapping at the top level", path
        )
    try:
        return OpenAPIDocument.model_validate(data)
    except ValidationError as e:
        raise SchemaSourceError(f"malformed OpenAPI document: {e}", path) from e


def load_document(path: Path) -> OpenAPIDocument:
    """Read a JSON or YAML OpenAPI document."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaSourceError(
            f"cannot read OpenAPI document {path}: {e}", str(path)
        ) from e

    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SchemaSourceError(
            f"OpenAPI document {path} is not valid structured data: {e}",
            str(path),
        ) from e

    return parse_document(data, str(path))


# ---------------------------------------------------------------------------
# Schema helpers
# ---------------------------------------------------------------------------


def ref_name(ref: str) -> str:
    """``#/components/schemas/User`` -> ``User``."""
    if ref.startswith(SCHEMA_REF_PREFIX):
        return ref[len(SCHEMA_REF_PREFIX) :]
    if "/" in ref:
        return ref.rsplit("/", 1)[1]
    return ""


def enum_label(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def constraints_for_schema(
    schema: OpenAPISchema | None,
) -> FieldConstraints | None:
    """Copy validation keywords; None when nothing is actually set."""
    if schema is None:
        return None
    return normalize_constraints(
        FieldConstraints(
            nullable=schema.allows_null,
            min_length=schema.min_length,
            max_length=schema.max_length,
            minimum=schema.minimum,
            maximum=schema.maximum,
            pattern=schema.pattern,
            format=schema.format,
            enum=[enum_label(v) for v in schema.enum],
        )
    )


def schema_type_name(schema: OpenAPISchema | None) -> tuple[str, bool, str]:
    """Map a schema to (type label, is_array, referenced schema name)."""
    if schema is None:
        return UNKNOWN_TYPE, False, ""
    if schema.ref:
        name = ref_name(schema.ref)
        if not name:
            return UNKNOWN_TYPE, False, ""
        return name, False, name

    kind = schema.primary_type
    if kind == "array":
        item_type, _, item_ref = schema_type_name(schema.items)
        return "[]" + item_type, True, item_ref
    if kind == "object":
        # inline objects are not expanded
        return "object", False, ""
    if kind == "string":
        return "string", False, ""
    if kind == "integer":
        return ("int64" if schema.format == "int64" else "int"), False, ""
    if kind == "number":
        name = "float32" if schema.format == "float" else "float64"
        return name, False, ""
    if kind == "boolean":
        return "bool", False, ""
    # untyped composition still describes an object
    if schema.all_of or schema.one_of or schema.any_of:
        return "object", False, ""
    return UNKNOWN_TYPE, False, ""


def schema_ref_or_item_ref(schema: OpenAPISchema | None) -> str:
    if schema is None:
        return ""
    if schema.ref:
        return ref_name(schema.ref)
    if (
        schema.primary_type == "array"
        and schema.items is not None
        and schema.items.ref
    ):
        return ref_name(schema.items.ref)
    return ""


def pick_media_schema(
    content: dict[str, OpenAPIMediaType],
) -> OpenAPISchema | None:
    if not content:
        return None
    for media_type in PREFERRED_MEDIA_TYPES:
        if media_type in content:
            return content[media_type].schema_
    return content[sorted(content)[0]].schema_


def pick_request_schema_name(body: OpenAPIRequestBody | None) -> str:
    if body is None or not body.content:
        return ""
    return schema_ref_or_item_ref(pick_media_schema(body.content))


def pick_response_schema_name(responses: dict[str, OpenAPIResponse]) -> str:
    """Schema name of the most relevant response.

    Success codes win in the order 200, 201, 202, 204; then "default";
    then the lexicographically first code.
    """
    if not responses:
        return ""
    for code in (*SUCCESS_CODES, "default"):
        if code in responses:
            return schema_ref_or_item_ref(
                pick_media_schema(responses[code].content)
            )
    first = responses[sorted(responses)[0]]
    return schema_ref_or_item_ref(pick_media_schema(first.content))


def infer_entity_name_for_operation(op: OperationInfo) -> str:
    """Raw entity name for an operation (not yet normalized)."""
    if op.request_schema:
        return op.request_schema
    if op.response_schema:
        return op.response_schema
    if op.tags and op.tags[0]:
        return op.tags[0]
    return entity_from_path(op.path)


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------


class OpenAPIExtractor:
    """Converts an OpenAPI document into TableMetadata records."""

    def __init__(self, document: OpenAPIDocument):
        self.document = document
        self.schemas = document.components.schemas

    def resolve_ref(self, ref: str) -> tuple[str, OpenAPISchema | None]:
        name = ref_name(ref)
        if not name:
            return "", None
        return name, self.schemas.get(name)

    def collect_object(
        self,
        schema: OpenAPISchema | None,
        visited: set[str] | None = None,
    ) -> tuple[dict[str, OpenAPISchema], set[str]]:
        """Resolve a schema's effective properties and required names.

        Iterative post-order walk over the composition tree: a schema's
        own properties are applied after those of its allOf/oneOf/anyOf
        branches, so they override composed ones. Each referenced name is
        expanded at most once.
        """
        props: dict[str, OpenAPISchema] = {}
        required: set[str] = set()
        visited = set() if visited is None else visited

        stack: list[tuple[OpenAPISchema, bool]] = []
        if schema is not None:
            stack.append((schema, False))

        while stack:
            current, expanded = stack.pop()
            if expanded:
                required.update(current.required)
                props.update(current.properties)
                continue

            if current.ref:
                name, target = self.resolve_ref(current.ref)
                if not name or name in visited:
                    continue
                visited.add(name)
                if target is not None:
                    stack.append((target, False))
                continue

            children = list(current.all_of)
            if current.one_of:
                children.append(current.one_of[0])
                if len(current.one_of) > 1:
                    logger.debug(
                        "flattened oneOf to first branch",
                        dropped=len(current.one_of) - 1,
                    )
            if current.any_of:
                children.append(current.any_of[0])
                if len(current.any_of) > 1:
                    logger.debug(
                        "flattened anyOf to first branch",
                        dropped=len(current.any_of) - 1,
                    )

            stack.append((current, True))
            for child in reversed(children):
                stack.append((child, False))

        return props, required

    def schema_to_table(
        self, schema_name: str, schema: OpenAPISchema
    ) -> TableMetadata:
        props, required = self.collect_object(schema, visited={schema_name})

        columns: list[ColumnInfo] = []
        for prop_name in sorted(props):
            prop = props[prop_name]
            type_name, is_array, ref = schema_type_name(prop)
            constraints = constraints_for_schema(prop)
            if prop_name in required:
                if constraints is None:
                    constraints = FieldConstraints()
                constraints.required = True

            columns.append(
                ColumnInfo(
                    name=prop_name,
                    json_name=prop_name,
                    type=type_name,
                    description=prop.description,
                    constraints=constraints,
                    ref=ref,
                    is_array=is_array,
                    source=SOURCE_OPENAPI,
                )
            )

        return TableMetadata(
            struct_name=schema_name,
            normalized_name=normalize_entity_name(schema_name),
            source=SOURCE_OPENAPI,
            columns=columns,
        )

    def operation_info(
        self, path: str, method: str, op: OpenAPIOperation
    ) -> OperationInfo:
        return OperationInfo(
            method=method.upper(),
            path=path,
            operation_id=op.operation_id,
            summary=op.summary,
            tags=list(op.tags),
            request_schema=pick_request_schema_name(op.request_body),
            response_schema=pick_response_schema_name(op.responses),
            source=SOURCE_OPENAPI,
        )

    def operations_by_entity(self) -> dict[str, list[OperationInfo]]:
        """Group every operation under its normalized entity name."""
        grouped: dict[str, list[OperationInfo]] = {}
        for path in sorted(self.document.paths):
            item = self.document.paths[path]
            for method, op in item.operations():
                info = self.operation_info(path, method, op)
                raw = infer_entity_name_for_operation(info)
                if not raw:
                    logger.debug(
                        "operation has no entity", method=method, path=path
                    )
                    continue
                entity = normalize_entity_name(raw)
                grouped.setdefault(entity, []).append(info)
        return grouped

    def extract(self, accumulator: SchemaAccumulator) -> int:
        """Insert one record per component schema. Returns the count."""
        tables = [
            self.schema_to_table(name, self.schemas[name])
            for name in sorted(self.schemas)
        ]

        grouped = self.operations_by_entity()
        matched: set[str] = set()
        for table in tables:
            ops = grouped.get(table.normalized_name)
            if not ops:
                continue
            table.operations.extend(
                replace(op, tags=list(op.tags)) for op in ops
            )
            matched.add(table.normalized_name)

        for entity in sorted(set(grouped) - matched):
            for op in grouped[entity]:
                accumulator.add_pending_operation(entity, op)

        for table in tables:
            accumulator.put(table)

        logger.info(
            "openapi extraction complete",
            schemas=len(tables),
            operations=sum(len(ops) for ops in grouped.values()),
            unmatched_entities=len(set(grouped) - matched),
        )
        return len(tables)
