import json
import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from filelock import FileLock
from pydantic import BaseModel

logger = logging.getLogger(__name__)


def append_record(path: Path, record: BaseModel | dict[str, Any]) -> bool:
    """
    Append one outcome record to a JSONL ledger.

    Writers from several build steps may share a ledger, so the append runs
    under a sibling ``.lock`` file and is fsynced before the lock is released.

    Returns:
        True if the write succeeded, False if it failed (e.g., disk full).
    """

    path = Path(path)
    if isinstance(record, BaseModel):
        record = record.model_dump(mode="json")

    try:
        path.parent.mkdir(parents=True, exist_ok=True)

        with FileLock(str(path) + ".lock"):
            with open(path, "ab") as f:
                f.write((json.dumps(record, sort_keys=True) + "\n").encode("utf-8"))
                f.flush()
                os.fsync(f.fileno())

        return True

    except OSError as e:
        logger.critical("Failed to write ledger record to %s: %s", path, e)

        return False


def read_records(path: Path) -> Iterator[dict]:
    """Yield each record of a ledger, skipping blank and malformed lines."""

    with Path(path).open("r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue

            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning("Ledger %s line %d could not be read: %s", path, line_number, e)
