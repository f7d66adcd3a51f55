"""Record store selection from configuration."""

import logging

from tea_records.config import StoreConfig
from tea_records.store.base import RecordStore, StoreError
from tea_records.store.jsonl import JsonlRecordStore
from tea_records.store.rest import RestRecordStore, load_api_key

logger = logging.getLogger(__name__)


def create_store(config: StoreConfig) -> RecordStore:
    """Create the record store named by ``store.backend``.

    Raises:
        StoreError: If the REST backend's API key is not set.
    """
    if config.backend == "rest":
        if not config.url:
            msg = "store.url is required when store.backend is 'rest'"
            raise StoreError(msg)
        logger.debug("Using REST record store at %s", config.url)
        return RestRecordStore(
            url=config.url,
            api_key=load_api_key(config.api_key_env),
            table=config.table,
            timeout=config.timeout_seconds,
            max_retries=config.max_retries,
        )

    logger.debug("Using JSONL record store at %s", config.path)
    return JsonlRecordStore(config.path)
