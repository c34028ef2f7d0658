"""Erd command - render a Mermaid ER diagram of the raw records."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from schema_architect import console
from schema_architect.config import DEFAULT_SEARCH_ROOT
from schema_architect.diagram import generate_er_diagram
from schema_architect.errors import SchemaSourceError
from schema_architect.logging_config import ensure_logging
from schema_architect.pipeline import extract_sources
from schema_architect.writer import write_text_atomic


@dataclass
class Erd:
    """Print (or write) a Mermaid erDiagram for review."""

    root: Path = field(
        default=Path(DEFAULT_SEARCH_ROOT),
        metadata={"help": "Root directory to scan for GoFrame structs"},
    )
    openapi: Path | None = field(
        default=None,
        metadata={"help": "Path to an OpenAPI v3 document (JSON or YAML)"},
    )
    out: Path | None = field(
        default=None,
        metadata={"help": "Write the diagram here instead of stdout"},
    )

    def run(self) -> int:
        """Execute the erd command."""
        ensure_logging()
        try:
            result = extract_sources(self.root, self.openapi)
        except SchemaSourceError as e:
            console.error(str(e))
            return 1

        diagram = generate_er_diagram(result.accumulator)
        if self.out is None:
            # plain print so the output can be piped into mermaid tooling
            print(diagram, end="")
            return 0

        write_text_atomic(self.out, diagram)
        console.success(f"wrote {self.out}")
        return 0
