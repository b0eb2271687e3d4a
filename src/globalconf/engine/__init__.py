"""Engine: the global config node, its handlers and feature convergence.

Public API:
    from globalconf.engine import GlobalConfigNode, ReconcileContext
"""

from globalconf.engine.gate import node_global_config_handler
from globalconf.engine.node import GlobalConfigNode
from globalconf.engine.state import GlobalConfigState, ReconcileContext, TrackedData

__all__ = [
    "GlobalConfigNode",
    "GlobalConfigState",
    "ReconcileContext",
    "TrackedData",
    "node_global_config_handler",
]
