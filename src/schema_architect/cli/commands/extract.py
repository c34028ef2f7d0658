"""Extract command - scan sources and write the consolidated schema."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path

from schema_architect import console
from schema_architect.config import DEFAULT_OUT_PATH, DEFAULT_SEARCH_ROOT
from schema_architect.diagram import print_schema_summary
from schema_architect.errors import SchemaSourceError
from schema_architect.logging_config import configure_logging, ensure_logging
from schema_architect.pipeline import run_pipeline


@dataclass
class Extract:
    """Scan Go structs (and an OpenAPI document) into schema.logical.json."""

    root: Path = field(
        default=Path(DEFAULT_SEARCH_ROOT),
        metadata={"help": "Root directory to scan for GoFrame structs"},
    )
    openapi: Path | None = field(
        default=None,
        metadata={"help": "Path to an OpenAPI v3 document (JSON or YAML)"},
    )
    out: Path = field(
        default=Path(DEFAULT_OUT_PATH),
        metadata={"help": "Write consolidated schema JSON here"},
    )
    raw_out: Path | None = field(
        default=None,
        metadata={"help": "Also write raw (unconsolidated) schema JSON"},
    )
    diagram_out: Path | None = field(
        default=None,
        metadata={"help": "Also write a Mermaid ER diagram"},
    )
    summary: bool = field(
        default=True,
        metadata={"help": "Print the relation summary table"},
    )
    debug: bool = field(
        default=False,
        metadata={"help": "Enable debug logging"},
    )

    def run(self) -> int:
        """Execute the extract command."""
        if self.debug:
            configure_logging(debug=True)
        else:
            ensure_logging()

        console.info(
            f"scanning {self.root} for GoFrame 'do' models and API structs..."
        )
        if self.openapi is not None:
            console.info(f"loading OpenAPI: {self.openapi}")

        start_time = time.perf_counter()
        try:
            with console.status("extracting schema..."):
                result, consolidated = run_pipeline(
                    root=self.root,
                    out_path=self.out,
                    openapi_path=self.openapi,
                    raw_out_path=self.raw_out,
                    diagram_out_path=self.diagram_out,
                )
        except SchemaSourceError as e:
            console.error(str(e))
            return 1
        except OSError as e:
            console.error(f"cannot write output: {e}")
            return 1
        elapsed = time.perf_counter() - start_time

        if self.summary:
            print_schema_summary(result.accumulator, console.console)

        stats = result.scan_stats
        if stats.skipped_paths:
            console.warning(
                f"skipped {stats.files_skipped} unparseable Go file(s)"
            )
            for path in stats.skipped_paths:
                console.dim(f"  {path}")

        console.header("Consolidated Schema")
        console.key_value("go files", stats.files_scanned, indent=2)
        console.key_value("skipped files", stats.files_skipped, indent=2)
        console.key_value("openapi schemas", result.openapi_schemas, indent=2)
        console.key_value("raw records", len(result.accumulator), indent=2)
        console.key_value("entities", len(consolidated.entity_list), indent=2)

        if self.raw_out is not None:
            console.key_value("raw output", self.raw_out, indent=2)
        if self.diagram_out is not None:
            console.key_value("diagram", self.diagram_out, indent=2)
        console.success(f"wrote {self.out} in {elapsed:.2f}s")
        return 0
