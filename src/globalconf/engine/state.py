"""Node-owned memoized state and the per-pass reconciliation context."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from globalconf.contracts.config_bag import ConfigBag
from globalconf.contracts.features import FeatureSet
from globalconf.contracts.records import IntentRecord, StateRecord

if TYPE_CHECKING:
    from globalconf.contracts.store import RecordTableView, StoreTransaction, WorkerNodeTableView
    from globalconf.core.mac import EthAddr


@dataclass
class TrackedData:
    """Fine-grained changes absorbed by an incremental handler this pass."""

    options_changed: bool = False
    features_changed: bool = False


@dataclass
class GlobalConfigState:
    """Everything the node remembers between passes.

    Owned exclusively by one GlobalConfigNode and rebuilt from the stores by
    every full run.

    Attributes:
        intent_options: Last-synchronized copy of the intent option bag
        state_options: Last-written state option bag, always derived from
            intent_options and features
        features: Converged capability flags
        monitor_mac: Service monitor address (None until the first full run)
        monitor_mac_raw: monitor_mac formatted as text ("" until set)
        internal_version_changed: Build signature differed from the recorded one
        tracked: An incremental handler absorbed a change this pass
        tracked_data: What the absorbed change touched
    """

    intent_options: ConfigBag = field(default_factory=ConfigBag)
    state_options: ConfigBag = field(default_factory=ConfigBag)
    features: FeatureSet = field(default_factory=FeatureSet.all_enabled)
    monitor_mac: EthAddr | None = None
    monitor_mac_raw: str = ""
    internal_version_changed: bool = False
    tracked: bool = False
    tracked_data: TrackedData = field(default_factory=TrackedData)

    def clear_tracked_data(self) -> None:
        self.tracked = False
        self.tracked_data = TrackedData()


@dataclass
class ReconcileContext:
    """Inputs and write access handed to the node for one pass.

    Transactions are None when the corresponding store is not writable this
    tick (e.g. still connecting); a full run then does nothing.
    """

    intent_table: RecordTableView[IntentRecord]
    state_table: RecordTableView[StateRecord]
    worker_nodes: WorkerNodeTableView
    intent_txn: StoreTransaction[IntentRecord] | None = None
    state_txn: StoreTransaction[StateRecord] | None = None
