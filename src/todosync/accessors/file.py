"""
JSON snapshot file replica.

Reads and writes the ``local-storage.json`` layout the browser app's
localStorage export uses: ``{"localTodos": [record, ...]}``.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from todosync.accessors.base import ReplicaAccessor
from todosync.errors import AccessError, NotFoundError
from todosync.models import Record

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION_KEY = "localTodos"


def _item_id(item: dict) -> str | None:
    """Stored id as a string; snapshots may hold numeric ids."""
    value = item.get("id")
    return None if value is None else str(value)


class JsonFileAccessor(ReplicaAccessor):
    """
    Replica stored in a single JSON file.

    A missing file reads as an empty replica and is created on first write.
    Writes replace the file atomically.
    """

    def __init__(
        self,
        path: str | Path,
        name: str = "local-file",
        collection_key: str = DEFAULT_COLLECTION_KEY,
    ):
        super().__init__(name)
        self.path = Path(path)
        self.collection_key = collection_key

    def _read_items(self) -> list[dict]:
        if not self.path.exists():
            logger.warning(f"No local storage data found at {self.path}")
            return []

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise AccessError(f"Cannot read {self.path}: {e}", retryable=False) from e

        items = data.get(self.collection_key, []) if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise AccessError(
                f"{self.path}: '{self.collection_key}' is not a list", retryable=False
            )
        return items

    def _write_items(self, items: list[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({self.collection_key: items}, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise AccessError(f"Cannot write {self.path}: {e}") from e

    async def list(self) -> list[Record]:
        records = []
        for item in self._read_items():
            try:
                records.append(Record.from_dict(item))
            except ValueError as e:
                logger.warning(f"Skipping unreadable entry in {self.path}: {e}")
        return records

    async def create(self, record: Record) -> Record:
        items = self._read_items()
        if any(_item_id(item) == record.id for item in items):
            raise AccessError(
                f"Record '{record.id}' already exists in {self.path}", retryable=False
            )
        items.append(record.to_dict())
        self._write_items(items)
        return record

    async def update(self, record: Record) -> Record:
        items = self._read_items()
        for index, item in enumerate(items):
            if _item_id(item) == record.id:
                items[index] = {**item, **record.to_dict()}
                self._write_items(items)
                return record
        raise NotFoundError(record.id, self.name)
