"""Protocols for the store views and transactions the node is handed each pass.

The node never reaches for ambient engine state: every pass receives read
views over the three tables and one transaction per writable store. Any
implementation satisfying these protocols can drive the node (the in-memory
tables in globalconf.core.store.memory are the reference implementation).
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from globalconf.contracts.config_bag import ConfigBag
from globalconf.contracts.enums import Column
from globalconf.contracts.records import GlobalRecord, TrackedWorkerNode, WorkerNode

R = TypeVar("R", bound=GlobalRecord)
R_co = TypeVar("R_co", bound=GlobalRecord, covariant=True)


class RecordTableView(Protocol[R_co]):
    """Read view over a singleton-record table (intent or state)."""

    def first(self) -> R_co | None:
        """Return the first record, or None when the table is empty."""
        ...

    def is_updated(self, record: GlobalRecord, column: Column) -> bool:
        """Whether column of record changed since tracking was last cleared."""
        ...


class WorkerNodeTableView(Protocol):
    """Read view over the worker node table."""

    def __iter__(self) -> Iterator[WorkerNode]: ...

    def tracked(self) -> Iterable[TrackedWorkerNode]:
        """Rows inserted, deleted or updated since tracking was last cleared."""
        ...


@dataclass(frozen=True, slots=True)
class StoreWrite:
    """One write performed by a transaction (for audit and idempotence checks)."""

    record_uuid: str
    column: str
    value: Any


class StoreTransaction(Protocol[R]):
    """Write access to one store for the duration of a pass.

    Writes are buffered and become visible atomically at commit. A column
    that was verified must not have changed in the committed store by then,
    otherwise commit raises StoreConflictError and nothing is applied.
    """

    @property
    def writes(self) -> Sequence[StoreWrite]: ...

    def insert(self) -> R:
        """Create the singleton record and return it."""
        ...

    def verify(self, record: GlobalRecord, column: Column) -> None: ...

    def set_options(self, record: GlobalRecord, options: ConfigBag) -> None: ...

    def set_ipsec(self, record: GlobalRecord, value: bool) -> None: ...

    def commit(self) -> None: ...

    def abort(self) -> None: ...
