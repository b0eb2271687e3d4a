"""Status codes and kinds used across subsystem boundaries."""

from enum import StrEnum


class NodeStatus(StrEnum):
    """Engine-visible state of the global config node after a pass.

    UPDATED unconditionally triggers downstream handlers; UNCHANGED means
    the node's output is the same as before the pass.
    """

    UNCHANGED = "unchanged"
    UPDATED = "updated"


class ChangeKind(StrEnum):
    """Row-level change tag carried by tracked worker node rows."""

    INSERTED = "inserted"
    DELETED = "deleted"
    UPDATED = "updated"


class Column(StrEnum):
    """Record columns that the node reads or writes.

    Intent and state records share OPTIONS and IPSEC. Worker nodes expose
    OTHER_CONFIG (capability advertisements) and ENCAPS (tunnel endpoints).
    """

    OPTIONS = "options"
    IPSEC = "ipsec"
    OTHER_CONFIG = "other_config"
    ENCAPS = "encaps"
