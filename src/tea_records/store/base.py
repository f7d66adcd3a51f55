"""Record store interface.

A record store persists production records and returns them scoped to an
owning identity. Reports never call a store directly; callers fetch records
first and pass them to the aggregator.
"""

import os
from typing import Protocol

from tea_records.config import OwnerConfig
from tea_records.models import ProductionRecord


class StoreError(Exception):
    """Raised when a record store operation fails."""


class RecordStore(Protocol):
    """Async record source with insert and owner-scoped query."""

    async def insert(self, record: ProductionRecord) -> ProductionRecord:
        """Persist a record and return it as stored."""
        ...

    async def query_by_owner(self, owner_id: str) -> list[ProductionRecord]:
        """Return the owner's records in stored order."""
        ...

    async def close(self) -> None:
        """Release any held resources."""
        ...


def resolve_owner(config: OwnerConfig, override: str | None = None) -> str:
    """Resolve the owning identity for store calls.

    Order: explicit override, config ``owner.id``, then the environment
    variable named by ``owner.id_env``.

    Raises:
        StoreError: If no owner identity is available.
    """
    owner = override or config.id or os.environ.get(config.id_env)
    if not owner:
        msg = f"No owner identity. Pass --owner, set owner.id, or set {config.id_env}"
        raise StoreError(msg)
    return owner
