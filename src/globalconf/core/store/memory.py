"""In-memory tables with change tracking and verify-then-set transactions.

These are the reference implementation of the store protocols in
globalconf.contracts.store. The SQL layer (database.py) loads persisted rows
into these tables, lets the node run a pass against them, and writes the
committed result back.

Change tracking mirrors what an incremental engine sees between ticks:
- record tables remember which columns of which record changed,
- the worker table remembers inserted/deleted/updated rows, which columns
  were updated, and per-endpoint modification sequence numbers.
Tracking accumulates across commits and is reset by clear_tracked().
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import Generic, TypeVar

import structlog

from globalconf.contracts.config_bag import ConfigBag
from globalconf.contracts.enums import ChangeKind, Column
from globalconf.contracts.errors import StoreConflictError, TransactionClosedError
from globalconf.contracts.records import Encap, GlobalRecord, TrackedWorkerNode, WorkerNode
from globalconf.contracts.store import StoreWrite

logger = structlog.get_logger(__name__)

R = TypeVar("R", bound=GlobalRecord)


class RecordTable(Generic[R]):
    """Committed rows of a singleton-record table (intent or state).

    Example:
        intents = RecordTable(IntentRecord)
        txn = intents.begin()
        record = txn.insert()
        txn.set_options(record, ConfigBag({"mac_prefix": "0a:00:00"}))
        txn.commit()
        intents.first().options["mac_prefix"]  # "0a:00:00"
    """

    def __init__(self, factory: Callable[[], R]) -> None:
        self._factory = factory
        self._rows: dict[str, R] = {}
        self._updated: dict[str, set[Column]] = {}

    def __iter__(self) -> Iterator[R]:
        return iter(list(self._rows.values()))

    def __len__(self) -> int:
        return len(self._rows)

    def first(self) -> R | None:
        for record in self._rows.values():
            return record
        return None

    def get(self, uuid: str) -> R | None:
        return self._rows.get(uuid)

    def is_updated(self, record: GlobalRecord, column: Column) -> bool:
        return column in self._updated.get(record.uuid, ())

    def clear_tracked(self) -> None:
        self._updated.clear()

    def begin(self) -> RecordTransaction[R]:
        return RecordTransaction(self)

    def new_record(self) -> R:
        return self._factory()

    def load(self, record: R) -> None:
        """Install a persisted row as committed, without change tracking."""
        self._rows[record.uuid] = record

    # --- External writers (operators, other control planes) ---

    def external_set_options(self, options: ConfigBag | dict[str, str]) -> R:
        """Commit an options write on behalf of another writer.

        Creates the record if the table is empty.
        """
        txn = self.begin()
        record = self.first() or txn.insert()
        txn.set_options(record, ConfigBag(options))
        txn.commit()
        return self._rows[record.uuid]

    def external_set_ipsec(self, value: bool) -> R:
        txn = self.begin()
        record = self.first() or txn.insert()
        txn.set_ipsec(record, value)
        txn.commit()
        return self._rows[record.uuid]

    # --- Transaction support ---

    def _apply(self, record: R, columns: set[Column]) -> None:
        """Commit the written columns of record; other columns keep their committed values."""
        committed = self._rows.get(record.uuid)
        if committed is None:
            merged = record
            merged.version = 1
        else:
            merged = committed.copy()  # type: ignore[assignment]
            if Column.OPTIONS in columns:
                merged.options = record.options.clone()
            if Column.IPSEC in columns:
                merged.ipsec = record.ipsec
            merged.version = committed.version + 1
        self._rows[record.uuid] = merged
        self._updated.setdefault(record.uuid, set()).update(columns)


class RecordTransaction(Generic[R]):
    """Buffered writes against one RecordTable.

    Writes land on pending copies of the committed records; commit applies
    them all or nothing. verify() captures the committed version of a
    record so a concurrent writer makes commit fail instead of being
    silently overwritten.
    """

    def __init__(self, table: RecordTable[R]) -> None:
        self._table = table
        self._pending: dict[str, R] = {}
        self._pending_columns: dict[str, set[Column]] = {}
        self._verified: dict[tuple[str, Column], int] = {}
        self._writes: list[StoreWrite] = []
        self._closed = False

    @property
    def writes(self) -> Sequence[StoreWrite]:
        return tuple(self._writes)

    @property
    def closed(self) -> bool:
        return self._closed

    def insert(self) -> R:
        self._check_open()
        record = self._table.new_record()
        self._pending[record.uuid] = record
        self._pending_columns[record.uuid] = set()
        self._writes.append(StoreWrite(record.uuid, "_insert", None))
        return record

    def verify(self, record: GlobalRecord, column: Column) -> None:
        self._check_open()
        committed = self._table.get(record.uuid)
        if committed is None:
            # Inserted in this transaction; nobody else can have touched it
            return
        self._verified.setdefault((record.uuid, column), committed.version)

    def set_options(self, record: GlobalRecord, options: ConfigBag) -> None:
        self._check_open()
        pending = self._pending_copy(record)
        pending.options = options.clone()
        self._pending_columns[record.uuid].add(Column.OPTIONS)
        self._writes.append(StoreWrite(record.uuid, Column.OPTIONS, options.to_dict()))

    def set_ipsec(self, record: GlobalRecord, value: bool) -> None:
        self._check_open()
        pending = self._pending_copy(record)
        pending.ipsec = value
        self._pending_columns[record.uuid].add(Column.IPSEC)
        self._writes.append(StoreWrite(record.uuid, Column.IPSEC, value))

    def commit(self) -> None:
        """Apply all pending writes atomically.

        Raises:
            StoreConflictError: A verified record changed since verify();
                nothing is applied and the transaction is closed.
        """
        self._check_open()
        self._closed = True
        for (uuid, column), expected in self._verified.items():
            committed = self._table.get(uuid)
            actual = committed.version if committed is not None else None
            if actual != expected:
                logger.warning(
                    "Store conflict on commit",
                    record_uuid=uuid,
                    column=str(column),
                    expected_version=expected,
                    actual_version=actual,
                )
                raise StoreConflictError(uuid, str(column), expected_version=expected, actual_version=actual)

        for uuid, record in self._pending.items():
            self._table._apply(record, self._pending_columns[uuid])

    def abort(self) -> None:
        self._check_open()
        self._closed = True
        self._pending.clear()
        self._pending_columns.clear()

    def _pending_copy(self, record: GlobalRecord) -> R:
        pending = self._pending.get(record.uuid)
        if pending is not None:
            return pending
        committed = self._table.get(record.uuid)
        if committed is None:
            raise KeyError(f"Record {record.uuid} does not exist in this store")
        copy: R = committed.copy()  # type: ignore[assignment]
        self._pending[record.uuid] = copy
        self._pending_columns[record.uuid] = set()
        return copy

    def _check_open(self) -> None:
        if self._closed:
            raise TransactionClosedError("Transaction already committed or aborted")


class WorkerNodeTable:
    """Worker node rows keyed by name, with per-row change tags.

    Worker nodes are read-only to the node; the mutators here stand in for
    the agents that register themselves and advertise capabilities.
    """

    def __init__(self, nodes: Iterable[WorkerNode] = ()) -> None:
        self._rows: dict[str, WorkerNode] = {}
        self._tracked: dict[str, TrackedWorkerNode] = {}
        for node in nodes:
            self._rows[node.name] = node

    def __iter__(self) -> Iterator[WorkerNode]:
        return iter(list(self._rows.values()))

    def __len__(self) -> int:
        return len(self._rows)

    def get(self, name: str) -> WorkerNode | None:
        return self._rows.get(name)

    def tracked(self) -> Iterable[TrackedWorkerNode]:
        return list(self._tracked.values())

    def clear_tracked(self) -> None:
        self._tracked.clear()

    def insert(self, node: WorkerNode) -> None:
        if node.name in self._rows:
            raise KeyError(f"Worker node {node.name!r} already exists")
        self._rows[node.name] = node
        self._tracked[node.name] = TrackedWorkerNode(node, ChangeKind.INSERTED)

    def delete(self, name: str) -> None:
        node = self._rows.pop(name)
        previous = self._tracked.get(name)
        if previous is not None and previous.is_new:
            # Inserted and deleted within one tick: the engine never saw it
            del self._tracked[name]
            return
        self._tracked[name] = TrackedWorkerNode(node, ChangeKind.DELETED)

    def update_other_config(self, name: str, other_config: ConfigBag | dict[str, str]) -> None:
        node = self._rows[name]
        updated = WorkerNode(name=name, other_config=ConfigBag(other_config), encaps=node.encaps)
        self._record_update(updated, Column.OTHER_CONFIG)

    def update_encaps(self, name: str, encaps: Iterable[Encap]) -> None:
        node = self._rows[name]
        updated = WorkerNode(name=name, other_config=node.other_config, encaps=tuple(encaps))
        self._record_update(updated, Column.ENCAPS)

    def modify_encap(self, name: str, index: int, encap: Encap) -> None:
        """Modify one endpoint row in place (bumps its modification seqno)."""
        node = self._rows[name]
        encaps = list(node.encaps)
        encaps[index] = encap
        updated = WorkerNode(name=name, other_config=node.other_config, encaps=tuple(encaps))
        self._rows[name] = updated

        previous = self._tracked.get(name)
        if previous is not None and (previous.is_new or previous.is_deleted):
            self._tracked[name] = TrackedWorkerNode(updated, previous.kind)
            return
        seqnos = list(previous.encap_modify_seqnos) if previous is not None else []
        seqnos.extend([0] * (len(encaps) - len(seqnos)))
        seqnos[index] += 1
        self._tracked[name] = TrackedWorkerNode(
            updated,
            ChangeKind.UPDATED,
            updated_columns=previous.updated_columns if previous is not None else frozenset(),
            encap_modify_seqnos=tuple(seqnos),
        )

    def _record_update(self, updated: WorkerNode, column: Column) -> None:
        self._rows[updated.name] = updated
        previous = self._tracked.get(updated.name)
        if previous is not None and previous.is_new:
            self._tracked[updated.name] = TrackedWorkerNode(updated, ChangeKind.INSERTED)
            return
        columns = (previous.updated_columns if previous is not None else frozenset()) | {column}
        seqnos = previous.encap_modify_seqnos if previous is not None else ()
        self._tracked[updated.name] = TrackedWorkerNode(
            updated,
            ChangeKind.UPDATED,
            updated_columns=frozenset(columns),
            encap_modify_seqnos=seqnos,
        )
