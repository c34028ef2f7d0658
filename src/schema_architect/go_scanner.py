"""Static extraction of schema records from Go struct declarations.

Files are parsed with tree-sitter, never compiled or executed. Every
struct type declaration becomes a `TableMetadata`; fields tagged with
``orm:"with:..."`` become relations, everything else becomes a column.

Targets the GoFrame layout: ``internal/model/do/*.go`` and ``api/`` request
and response structs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

import structlog
import tree_sitter_go as tsgo
from tree_sitter import Language, Node, Parser

from schema_architect.accumulator import SchemaAccumulator
from schema_architect.config import EXCLUDE_DIRS, GO_EXTS, SOURCE_MARKERS
from schema_architect.errors import SchemaSourceError
from schema_architect.models import (
    SOURCE_GO,
    UNKNOWN_TYPE,
    ColumnInfo,
    TableMetadata,
)
from schema_architect.naming import normalize_entity_name
from schema_architect.struct_tags import (
    parse_json_tag,
    parse_struct_tag,
    parse_with_tag,
    unquote_literal,
)

logger = structlog.get_logger(__name__)

GO_LANGUAGE = Language(tsgo.language())

_TYPE_DECL_NODES = {"type_spec", "type_alias"}
_COLLECTION_NODES = {
    "slice_type",
    "array_type",
    "implicit_length_array_type",
}


def _text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def source_from_path(path: str | Path) -> str:
    """Provenance tag for a file, based on its path markers."""
    marker_path = "/" + Path(path).as_posix().lstrip("/")
    for marker, source in SOURCE_MARKERS:
        if marker in marker_path:
            return source
    return SOURCE_GO


def is_eligible(path: str | Path) -> bool:
    """True when a path is a Go file under a recognized marker segment."""
    p = Path(path)
    if p.suffix.lower() not in GO_EXTS:
        return False
    return source_from_path(p) != SOURCE_GO


def resolve_type_info(node: Node | None) -> tuple[str, bool]:
    """Unwrap pointers and collections down to a named type.

    ``[]*UserDetail`` -> ("UserDetail", True), ``*entity.User`` ->
    ("entity.User", False). Anything else degrades to "Unknown".
    """
    is_collection = False
    while node is not None:
        kind = node.type
        if kind in ("pointer_type", "parenthesized_type"):
            node = node.named_children[0] if node.named_children else None
        elif kind in _COLLECTION_NODES:
            is_collection = True
            node = node.child_by_field_name("element")
        elif kind == "generic_type":
            node = node.child_by_field_name("type")
        elif kind == "type_identifier":
            return _text(node), is_collection
        elif kind == "qualified_type":
            pkg = _text(node.child_by_field_name("package"))
            name = _text(node.child_by_field_name("name"))
            return (f"{pkg}.{name}" if pkg else name), is_collection
        else:
            break
    return UNKNOWN_TYPE, is_collection


@dataclass
class ScanStats:
    """Counters for one directory walk."""

    files_scanned: int = 0
    files_skipped: int = 0
    tables: int = 0
    skipped_paths: list[str] = field(default_factory=list)


class GoStructScanner:
    """Extracts TableMetadata records from Go source files."""

    def __init__(self) -> None:
        self.parser = Parser(GO_LANGUAGE)

    def scan(self, path: Path) -> list[TableMetadata] | None:
        """Parse one file. Returns None when the file cannot be parsed."""
        try:
            content = path.read_bytes()
        except OSError as e:
            logger.warning(
                "skipping unreadable file", path=str(path), error=str(e)
            )
            return None

        tree = self.parser.parse(content)
        if tree.root_node.has_error:
            logger.warning(
                "skipping unparseable file",
                path=str(path),
                error=_first_error_location(tree.root_node),
            )
            return None

        source = source_from_path(path)
        tables: list[TableMetadata] = []

        # pre-order walk so nested and function-local declarations are seen
        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            if node.type in _TYPE_DECL_NODES:
                table = self._table_from_type_spec(node, source)
                if table is not None:
                    tables.append(table)
            stack.extend(reversed(node.children))
        return tables

    def scan_directory(
        self, root: Path, accumulator: SchemaAccumulator
    ) -> ScanStats:
        """Walk root and insert records from every eligible Go file."""
        if not root.exists():
            raise SchemaSourceError(
                f"scan root does not exist: {root}", str(root)
            )
        if not root.is_dir():
            raise SchemaSourceError(
                f"scan root is not a directory: {root}", str(root)
            )

        def on_error(err: OSError) -> None:
            raise SchemaSourceError(
                f"cannot read {err.filename}: {err.strerror}", err.filename
            ) from err

        stats = ScanStats()
        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
            dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDE_DIRS)
            for filename in sorted(filenames):
                path = Path(dirpath) / filename
                if not is_eligible(path):
                    continue
                tables = self.scan(path)
                if tables is None:
                    stats.files_skipped += 1
                    stats.skipped_paths.append(str(path))
                    continue
                stats.files_scanned += 1
                for table in tables:
                    accumulator.put(table)
                    stats.tables += 1

        logger.info(
            "go scan complete",
            root=str(root),
            files=stats.files_scanned,
            skipped=stats.files_skipped,
            tables=stats.tables,
        )
        return stats

    def _table_from_type_spec(
        self, spec: Node, source: str
    ) -> TableMetadata | None:
        type_node = spec.child_by_field_name("type")
        if type_node is None or type_node.type != "struct_type":
            return None

        name = _text(spec.child_by_field_name("name"))
        table = TableMetadata(
            struct_name=name,
            normalized_name=normalize_entity_name(name),
            source=source,
        )

        for decl in _field_declarations(type_node):
            self._add_field(table, decl, source)

        # a struct with nothing usable is not an entity
        if table.is_empty():
            return None
        return table

    def _add_field(
        self, table: TableMetadata, decl: Node, source: str
    ) -> None:
        names = [_text(n) for n in decl.children_by_field_name("name")]
        type_name, is_collection = resolve_type_info(
            decl.child_by_field_name("type")
        )

        tags: dict[str, str] = {}
        tag_node = decl.child_by_field_name("tag")
        if tag_node is not None:
            raw = unquote_literal(_text(tag_node))
            if raw is not None:
                tags = parse_struct_tag(raw)

        validation = tags.get("v", "")
        description = tags.get("dc", "")
        orm = tags.get("orm", "")

        if "with:" in orm:
            keys = parse_with_tag(orm)
            if keys is not None:
                # embedded fields have no name; keep the relation anyway
                for field_name in names or [""]:
                    table.relations.append(
                        replace(
                            keys,
                            field_name=field_name,
                            target_struct=type_name,
                            is_collection=is_collection,
                            validation=validation,
                            description=description,
                        )
                    )
                return

        json_name = parse_json_tag(tags.get("json", ""))
        for field_name in names:
            table.columns.append(
                ColumnInfo(
                    name=field_name,
                    json_name=json_name,
                    type=type_name,
                    validation=validation,
                    description=description,
                    additional=tags.get("ad", ""),
                    is_array=is_collection,
                    source=source,
                )
            )


def _field_declarations(struct_node: Node) -> list[Node]:
    for child in struct_node.named_children:
        if child.type == "field_declaration_list":
            return [
                c for c in child.named_children if c.type == "field_declaration"
            ]
    return []


def _first_error_location(root: Node) -> str:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            row, col = node.start_point
            return f"syntax error at {row + 1}:{col + 1}"
        stack.extend(reversed(node.children))
    return "syntax error"
