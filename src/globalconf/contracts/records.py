"""Record shapes read from (and written to) the intent, state and worker stores.

Only the fields the node touches are modelled. Intent and state records are
handed out by store views as committed snapshots; writes go through a
StoreTransaction, never by mutating these objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4

from globalconf.contracts.config_bag import ConfigBag
from globalconf.contracts.enums import ChangeKind, Column


def _new_uuid() -> str:
    return str(uuid4())


@dataclass
class GlobalRecord:
    """Singleton configuration record shared by the intent and state stores.

    Attributes:
        uuid: Row identity
        options: Option bag
        ipsec: IPsec toggle, mirrored verbatim from intent to state
        version: Committed version; bumped on every committed write
    """

    uuid: str = field(default_factory=_new_uuid)
    options: ConfigBag = field(default_factory=ConfigBag)
    ipsec: bool = False
    version: int = 0

    def copy(self) -> GlobalRecord:
        return type(self)(uuid=self.uuid, options=self.options.clone(), ipsec=self.ipsec, version=self.version)


@dataclass
class IntentRecord(GlobalRecord):
    """Operator-authored desired state (intent store singleton)."""


@dataclass
class StateRecord(GlobalRecord):
    """Control-plane published state (state store singleton)."""


@dataclass(frozen=True, slots=True)
class Encap:
    """Tunnel encapsulation endpoint hosted by a worker node."""

    type: str
    ip: str


@dataclass(frozen=True, slots=True)
class WorkerNode:
    """A fleet member advertising capabilities and hosting tunnel endpoints."""

    name: str
    other_config: ConfigBag = field(default_factory=ConfigBag)
    encaps: tuple[Encap, ...] = ()

    @property
    def is_remote(self) -> bool:
        """Remote nodes belong to another zone and do not run our derived flows."""
        return self.other_config.get_bool("is-remote", False)


@dataclass(frozen=True, slots=True)
class TrackedWorkerNode:
    """A worker node row together with its change tags for this pass.

    Attributes:
        node: Row contents after the change (before it, for deletions)
        kind: Inserted, deleted or updated
        updated_columns: Columns modified by an UPDATED change
        encap_modify_seqnos: Per-endpoint modification sequence numbers;
            a value > 0 means that endpoint row was modified in place
    """

    node: WorkerNode
    kind: ChangeKind
    updated_columns: frozenset[Column] = frozenset()
    encap_modify_seqnos: tuple[int, ...] = ()

    @property
    def is_new(self) -> bool:
        return self.kind is ChangeKind.INSERTED

    @property
    def is_deleted(self) -> bool:
        return self.kind is ChangeKind.DELETED

    def is_updated(self, column: Column) -> bool:
        return self.kind is ChangeKind.UPDATED and column in self.updated_columns

    @property
    def topology_changed(self) -> bool:
        """True if the node's tunnel endpoint topology moved in any way."""
        return (
            self.is_new
            or self.is_deleted
            or self.is_updated(Column.ENCAPS)
            or any(seqno > 0 for seqno in self.encap_modify_seqnos)
        )
