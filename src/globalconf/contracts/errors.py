"""Error types raised across subsystem boundaries.

Escalation from a change handler is NOT an error: handlers return False.
These exceptions cover conditions owned by the store layer.
"""

from __future__ import annotations


class StoreConflictError(Exception):
    """Raised at commit when a verified record changed under the transaction.

    This is the verify-then-set contract: the node reads a record, verifies
    a column, writes it, and the commit only succeeds if nobody else moved
    that record in between. The whole pass is aborted; the caller retries
    on the next tick.

    Attributes:
        record_uuid: Identity of the conflicting row (record uuid or worker name)
        column: Column that was written, or "_insert"/"_delete" for row
            creation and removal
        expected_version: Version captured at verify time
        actual_version: Version found at commit time (None if deleted)
    """

    def __init__(
        self,
        record_uuid: str,
        column: str,
        *,
        expected_version: int,
        actual_version: int | None,
    ) -> None:
        self.record_uuid = record_uuid
        self.column = column
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Record {record_uuid} changed during transaction "
            f"(column={column}, expected version {expected_version}, found {actual_version})"
        )


class TransactionClosedError(Exception):
    """Raised when a committed or aborted transaction is used again."""

    pass


class StoreSchemaError(Exception):
    """Raised when a persisted store's schema is incompatible with current code."""

    pass
