"""schema-architect CLI - extract and consolidate logical schemas.

Uses tyro for type-driven CLI generation from dataclasses.
"""

from __future__ import annotations

from typing import Annotated

import tyro

from schema_architect.cli.commands.erd import Erd
from schema_architect.cli.commands.extract import Extract
from schema_architect.cli.commands.normalize import Normalize

# Type aliases for subcommand annotations
_Extract = Annotated[Extract, tyro.conf.subcommand("extract")]
_Erd = Annotated[Erd, tyro.conf.subcommand("erd")]
_Normalize = Annotated[Normalize, tyro.conf.subcommand("normalize")]

Command = _Extract | _Erd | _Normalize


def main() -> int:
    """Entry point for the CLI."""
    # configure structlog (respects SCHEMA_ARCHITECT_DEBUG env var)
    from schema_architect.logging_config import configure_logging

    configure_logging()

    try:
        cmd = tyro.cli(
            Command,
            prog="schema-architect",
            description=(
                "Extract a logical schema from GoFrame structs and OpenAPI."
            ),
        )
        return cmd.run()
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1
    except KeyboardInterrupt:
        return 130
    except Exception as e:
        from schema_architect import console

        console.error(str(e))
        return 1
