"""Shared contracts for cross-boundary data types.

This package is a LEAF MODULE with no outbound dependencies to core/engine.

Import patterns:
    from globalconf.contracts import ConfigBag, FeatureSet, WorkerNode
"""

from globalconf.contracts.config_bag import ConfigBag
from globalconf.contracts.enums import ChangeKind, Column, NodeStatus
from globalconf.contracts.errors import StoreConflictError, StoreSchemaError, TransactionClosedError
from globalconf.contracts.features import FEATURE_CAPABILITY_KEYS, FeatureSet
from globalconf.contracts.records import (
    Encap,
    GlobalRecord,
    IntentRecord,
    StateRecord,
    TrackedWorkerNode,
    WorkerNode,
)
from globalconf.contracts.store import (
    RecordTableView,
    StoreTransaction,
    StoreWrite,
    WorkerNodeTableView,
)

__all__ = [
    "FEATURE_CAPABILITY_KEYS",
    "ChangeKind",
    "Column",
    "ConfigBag",
    "Encap",
    "FeatureSet",
    "GlobalRecord",
    "IntentRecord",
    "NodeStatus",
    "RecordTableView",
    "StateRecord",
    "StoreConflictError",
    "StoreSchemaError",
    "StoreTransaction",
    "StoreWrite",
    "TrackedWorkerNode",
    "TransactionClosedError",
    "WorkerNode",
    "WorkerNodeTableView",
]
