"""Local JSONL record store.

Each line is one stored record with a small envelope:
    {"id": "<uuid>", "created_at": "<ISO 8601>", "data": {<store row>}}
"""

import asyncio
import json
import logging
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

from tea_records.models import ProductionRecord
from tea_records.store.base import StoreError

logger = logging.getLogger(__name__)


@dataclass
class StoredRow:
    """Envelope around one persisted store row.

    Attributes:
        id: UUID assigned on insert.
        created_at: ISO 8601 timestamp of the insert.
        data: Store row keyed by column name.
    """

    id: str
    created_at: str
    data: dict[str, Any]

    @classmethod
    def create(cls, data: dict[str, Any]) -> "StoredRow":
        """Wrap a store row with a new id and the current timestamp."""
        return cls(
            id=str(uuid4()),
            created_at=datetime.now(UTC).isoformat(),
            data=data,
        )

    def to_json_line(self) -> str:
        """Convert to a JSONL line with no trailing newline."""
        return json.dumps(asdict(self), separators=(",", ":"))


class JsonlRecordStore:
    """Record store backed by an append-only JSONL file.

    Example:
        store = JsonlRecordStore(Path("data/records.jsonl"))
        await store.insert(record)
        records = await store.query_by_owner("factory-a")
    """

    def __init__(self, path: Path) -> None:
        """Initialize JSONL store.

        Args:
            path: Path to JSONL file. Created on first insert.
        """
        self.path = path
        self._lock = asyncio.Lock()

    async def insert(self, record: ProductionRecord) -> ProductionRecord:
        """Append a record.

        Args:
            record: Record to persist. Must carry an owner_id.

        Returns:
            The record as stored.

        Raises:
            StoreError: If the record has no owner or the file can't be written.
        """
        if not record.owner_id:
            msg = "Cannot insert a record without owner_id"
            raise StoreError(msg)

        row = StoredRow.create(record.to_mapping())
        async with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self.path.open("a") as f:
                    f.write(row.to_json_line() + "\n")
            except OSError as e:
                msg = f"Failed to write {self.path}: {e}"
                raise StoreError(msg) from e

        logger.debug("Inserted record %s into %s", row.id, self.path)
        return ProductionRecord.from_mapping(row.data)

    async def query_by_owner(self, owner_id: str) -> list[ProductionRecord]:
        """Read all records owned by owner_id, in insertion order.

        Returns:
            Matching records; empty if the file doesn't exist yet.

        Raises:
            StoreError: If a line is not a valid stored row.
        """
        async with self._lock:
            rows = self._read_rows()

        records = [
            ProductionRecord.from_mapping(row.data)
            for row in rows
            if str(row.data.get("user_id")) == owner_id
        ]
        logger.debug(
            "Loaded %d of %d records for owner from %s", len(records), len(rows), self.path
        )
        return records

    async def close(self) -> None:
        """Nothing to release; files are opened per call."""

    def _read_rows(self) -> list[StoredRow]:
        if not self.path.exists():
            return []

        rows: list[StoredRow] = []
        with self.path.open() as f:
            for line_number, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    row = StoredRow(**json.loads(line))
                except (json.JSONDecodeError, TypeError) as e:
                    msg = f"Corrupt record at {self.path}:{line_number}: {e}"
                    raise StoreError(msg) from e
                if not isinstance(row.data, dict):
                    msg = f"Corrupt record at {self.path}:{line_number}: data is not an object"
                    raise StoreError(msg)
                rows.append(row)
        return rows

