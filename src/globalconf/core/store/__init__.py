"""Store implementations: in-memory tables and SQL persistence."""

from globalconf.core.store.database import GlobalConfDB, StoreSnapshot
from globalconf.core.store.memory import RecordTable, RecordTransaction, WorkerNodeTable

__all__ = [
    "GlobalConfDB",
    "RecordTable",
    "RecordTransaction",
    "StoreSnapshot",
    "WorkerNodeTable",
]
