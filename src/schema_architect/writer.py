"""JSON document output."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


def dumps_document(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def write_text_atomic(path: Path, text: str) -> None:
    """Write text to path via a temp file and rename.

    A failed run never leaves a truncated file at `path`.
    """
    path = Path(path)
    directory = path.parent if str(path.parent) else Path(".")
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=directory
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            # mkstemp creates 0600; publish with the umask-derived mode
            os.chmod(tmp_name, 0o666 & ~_current_umask())
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.debug("wrote file", path=str(path), bytes=len(text.encode()))


def write_json_file(path: Path, data: Any) -> None:
    write_text_atomic(path, dumps_document(data))
