"""Normalize command - show the entity name a raw name maps to."""

from __future__ import annotations

from dataclasses import dataclass, field

import tyro

from schema_architect import console
from schema_architect.naming import normalize_entity_name


@dataclass
class Normalize:
    """Print the normalized entity name for each raw struct/schema name."""

    names: tyro.conf.Positional[tuple[str, ...]] = field(
        default=(),
        metadata={"help": "Raw names, e.g. CreateUserReq V1OrderRes"},
    )

    def run(self) -> int:
        """Execute the normalize command."""
        if not self.names:
            console.error("provide at least one name")
            return 1
        width = max(len(n) for n in self.names)
        for name in self.names:
            console.key_value(name.ljust(width), normalize_entity_name(name))
        return 0
