"""Record stores: the insert/query boundary for production records."""

from tea_records.store.base import RecordStore, StoreError, resolve_owner
from tea_records.store.factory import create_store
from tea_records.store.jsonl import JsonlRecordStore
from tea_records.store.rest import RestRecordStore, load_api_key

__all__ = [
    "JsonlRecordStore",
    "RecordStore",
    "RestRecordStore",
    "StoreError",
    "create_store",
    "load_api_key",
    "resolve_owner",
]
