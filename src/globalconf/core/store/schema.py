"""SQLAlchemy table definitions for persisted stores.

Uses SQLAlchemy Core (not ORM). Option bags are stored as JSON text; the
version column carries the optimistic-concurrency counter that backs the
verify-then-set contract across processes.
"""

from sqlalchemy import Boolean, Column, Integer, MetaData, String, Table, Text

metadata = MetaData()

# === Singleton configuration records ===

intent_global_table = Table(
    "intent_global",
    metadata,
    Column("uuid", String(36), primary_key=True),
    Column("options_json", Text, nullable=False),
    Column("ipsec", Boolean, nullable=False, default=False),
    Column("version", Integer, nullable=False),
)

state_global_table = Table(
    "state_global",
    metadata,
    Column("uuid", String(36), primary_key=True),
    Column("options_json", Text, nullable=False),
    Column("ipsec", Boolean, nullable=False, default=False),
    Column("version", Integer, nullable=False),
)

# === Worker fleet ===

worker_nodes_table = Table(
    "worker_nodes",
    metadata,
    Column("name", String(255), primary_key=True),
    Column("other_config_json", Text, nullable=False),
    # JSON array of {"type": ..., "ip": ...}
    Column("encaps_json", Text, nullable=False),
    Column("version", Integer, nullable=False, default=1),
)
