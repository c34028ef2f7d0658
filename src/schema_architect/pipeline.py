"""End-to-end extraction run.

Go scan, then OpenAPI extraction (strictly sequential, same accumulator),
then consolidation. Output writing lives here too so the CLI and library
callers publish documents the same way.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import structlog

from schema_architect.accumulator import SchemaAccumulator
from schema_architect.consolidate import consolidate_by_normalized_name
from schema_architect.diagram import generate_er_diagram
from schema_architect.go_scanner import GoStructScanner, ScanStats
from schema_architect.models import ConsolidatedSchema
from schema_architect.openapi import OpenAPIExtractor, load_document
from schema_architect.writer import write_json_file, write_text_atomic

logger = structlog.get_logger(__name__)


@dataclass
class ExtractionResult:
    """Raw per-source records plus walk statistics."""

    accumulator: SchemaAccumulator
    scan_stats: ScanStats = field(default_factory=ScanStats)
    openapi_schemas: int = 0


def extract_sources(
    root: Path, openapi_path: Path | None = None
) -> ExtractionResult:
    accumulator = SchemaAccumulator()
    stats = GoStructScanner().scan_directory(root, accumulator)

    schemas = 0
    if openapi_path is not None:
        document = load_document(openapi_path)
        schemas = OpenAPIExtractor(document).extract(accumulator)

    return ExtractionResult(
        accumulator=accumulator, scan_stats=stats, openapi_schemas=schemas
    )


def run_pipeline(
    root: Path,
    out_path: Path,
    openapi_path: Path | None = None,
    raw_out_path: Path | None = None,
    diagram_out_path: Path | None = None,
) -> tuple[ExtractionResult, ConsolidatedSchema]:
    """Extract, optionally dump raw records, consolidate and write."""
    result = extract_sources(root, openapi_path)

    # the raw dump is written before consolidation so it survives later
    # failures for debugging
    if raw_out_path is not None:
        write_json_file(raw_out_path, result.accumulator.to_dict())
        logger.info("wrote raw schema", path=str(raw_out_path))

    consolidated = consolidate_by_normalized_name(result.accumulator)
    write_json_file(out_path, consolidated.to_dict())
    logger.info(
        "wrote consolidated schema",
        path=str(out_path),
        entities=len(consolidated.entity_list),
    )

    if diagram_out_path is not None:
        write_text_atomic(
            diagram_out_path, generate_er_diagram(result.accumulator)
        )

    return result, consolidated
