import logging

from .base import DataStore, Query
from .memory_store import MemoryStore
from .sql_store import SqlStore

logger = logging.getLogger(__name__)

BACKENDS = ('sql', 'memory', 'auto')


def select_store(backend: str) -> DataStore:
    """
    Pick the data store once at startup. Must run inside an app context.

    'auto' uses the database when it answers and otherwise falls back to an
    in-memory store, which keeps the API usable without persistence.
    """
    if backend not in BACKENDS:
        raise ValueError(f"Unknown STORE_BACKEND '{backend}', expected one of {BACKENDS}")

    if backend == 'memory':
        return MemoryStore()

    store = SqlStore()
    if backend == 'sql' or store.ping():
        return store

    logger.warning("Database unreachable, running with the in-memory store. Data will not persist.")
    return MemoryStore()


__all__ = ['DataStore', 'Query', 'MemoryStore', 'SqlStore', 'select_store']
