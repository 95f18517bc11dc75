"""Local fallback cache for the repositories document."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Sequence

from repo_registry.entities.repository_record import (
    StoredRecord,
    dump_collection,
    parse_collection,
)
from repo_registry.services.github.exceptions import MalformedDocument

logger = logging.getLogger(__name__)

DEFAULT_CACHE_KEY = "repositories-data-backup"


class LocalCache:
    """
    Single-blob key-value store on the local filesystem.

    Holds the same JSON array as the remote document under one fixed key.
    Last writer wins; there is no versioning. Neither ``save`` nor ``load``
    ever raises.
    """

    def __init__(self, directory: Path | str, key: str = DEFAULT_CACHE_KEY):
        self.directory = Path(directory)
        self.key = key

    @property
    def path(self) -> Path:
        return self.directory / f"{self.key}.json"

    def save(self, records: Sequence[StoredRecord]) -> bool:
        """Overwrite the cached blob. Returns False (after logging) when it could not be written."""
        try:
            payload = json.dumps(dump_collection(records), indent=2, ensure_ascii=False)
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.directory, prefix=f".{self.key}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, self.path)
            except Exception:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as exc:
            logger.error(f"Failed to write local cache {self.path}: {exc}")
            return False

        logger.debug(f"Cached {len(records)} repositories locally", extra={"count": len(records)})
        return True

    def load(self) -> List[StoredRecord]:
        """Return the cached records, or ``[]`` if the blob is absent, corrupt or not a list."""
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as exc:
            logger.error(f"Error loading local cache {self.path}: {exc}")
            return []

        try:
            return parse_collection(data)
        except MalformedDocument as exc:
            logger.error(f"Ignoring local cache {self.path}: {exc}")
            return []

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error(f"Failed to clear local cache {self.path}: {exc}")
