"""Human-oriented views of extracted records.

Mermaid ER diagrams (paste into mermaid.live for review) and a rich
relation summary. Presentational only.
"""

from __future__ import annotations

from collections.abc import Iterable

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from schema_architect.models import TableMetadata

# Mermaid attribute types cannot contain these
_MERMAID_TYPE_REPLACEMENTS = {".": "_", "[": "", "]": "Array_", "*": ""}


def _mermaid_type(type_name: str) -> str:
    out = type_name
    for old, new in _MERMAID_TYPE_REPLACEMENTS.items():
        out = out.replace(old, new)
    return out or "Unknown"


def _unqualified(name: str) -> str:
    return name.rsplit(".", 1)[-1]


def cardinality_label(is_collection: bool) -> str:
    return "1:N" if is_collection else "1:1"


def generate_er_diagram(tables: Iterable[TableMetadata]) -> str:
    """Render records as a Mermaid ``erDiagram``."""
    metas = sorted(tables, key=lambda t: t.struct_name)
    if not metas:
        return "erDiagram\n  %% No relations found"

    lines = ["erDiagram"]
    for meta in metas:
        lines.append(f"    {meta.struct_name} {{")
        for col in meta.columns:
            lines.append(f"        {_mermaid_type(col.type)} {col.name}")
        lines.append("    }")
        lines.append("")

    for meta in metas:
        for rel in meta.relations:
            arrow = "||--o{" if rel.is_collection else "||--||"
            label = f'"{rel.field_name} ({rel.target_key}={rel.source_key})"'
            lines.append(
                f"    {meta.struct_name} {arrow} "
                f"{_unqualified(rel.target_struct)} : {label}"
            )

    return "\n".join(lines) + "\n"


def print_schema_summary(
    tables: Iterable[TableMetadata], console: Console | None = None
) -> None:
    """Print the relation map of every record."""
    console = console or Console()
    metas = sorted(tables, key=lambda t: (t.normalized_name, t.struct_name))

    if not metas:
        console.print(
            "[yellow]no structs found; check the scan root and markers[/]"
        )
        return

    table = Table(title="Relation Map", show_lines=False)
    table.add_column("Struct", style="cyan")
    table.add_column("Entity")
    table.add_column("Source", style="dim")
    table.add_column("Relation")
    table.add_column("Target")
    table.add_column("Map", style="dim")

    for meta in metas:
        if not meta.relations:
            table.add_row(
                meta.struct_name, meta.normalized_name, meta.source, "", "", ""
            )
            continue
        for i, rel in enumerate(meta.relations):
            head = (
                (meta.struct_name, meta.normalized_name, meta.source)
                if i == 0
                else ("", "", "")
            )
            table.add_row(
                *head,
                escape(
                    f"[{cardinality_label(rel.is_collection)}] {rel.field_name}"
                ),
                escape(rel.target_struct),
                f"{rel.target_key}={rel.source_key}",
            )

    console.print(table)
