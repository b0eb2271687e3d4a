"""GlobalConfigNode: the engine-facing facade of the global config node.

The outer engine drives one node instance per process:

    node = GlobalConfigNode(settings.version)
    node.begin_pass()
    if only_worker_nodes_changed and node.handle_worker_node_change(ctx):
        ...  # absorbed
    else:
        node.run(ctx)  # full recompute
    if node.status is NodeStatus.UPDATED:
        for consumer in consumers:
            consumer.handle_global_config(node)  # may consult needs_downstream_recompute()

Exactly one of run() or a handler executes per input change, never
concurrently; the node owns its state exclusively.
"""

from __future__ import annotations

import random

import structlog

from globalconf.contracts.enums import NodeStatus
from globalconf.core.config import VersionSettings
from globalconf.core.debug import DebugDropSettings
from globalconf.core.version import internal_version
from globalconf.engine.gate import node_global_config_handler
from globalconf.engine.handlers import intent_change_handler, state_change_handler, worker_node_change_handler
from globalconf.engine.reconciler import reconcile
from globalconf.engine.state import GlobalConfigState, ReconcileContext

logger = structlog.get_logger(__name__)


class GlobalConfigNode:
    """Incremental reconciliation node for the global configuration record.

    Attributes:
        state: Memoized state, rebuilt by every full run
        status: UPDATED once the pass changed the node's output
        debug: Debug drop sampling configuration derived from intent options
        rng: Randomness for MAC generation (inject a seeded Random in tests)
    """

    name = "global_config"

    def __init__(self, version_settings: VersionSettings | None = None, *, rng: random.Random | None = None) -> None:
        self.state = GlobalConfigState()
        self.status = NodeStatus.UNCHANGED
        self.debug = DebugDropSettings()
        self.rng = rng if rng is not None else random.Random()
        self._internal_version = internal_version(version_settings or VersionSettings())

    @property
    def internal_version(self) -> str:
        """Current build signature compared against northd_internal_version."""
        return self._internal_version

    def mark_updated(self) -> None:
        self.status = NodeStatus.UPDATED

    def begin_pass(self) -> None:
        """Reset per-pass signals. The engine calls this at the start of every pass."""
        self.status = NodeStatus.UNCHANGED
        self.clear_tracked_data()

    def clear_tracked_data(self) -> None:
        self.state.clear_tracked_data()

    # === Full run ===

    def run(self, ctx: ReconcileContext) -> NodeStatus:
        """Fully recompute the global config.

        Tracked data is cleared first: whatever a handler absorbed earlier in
        this pass is superseded by the full run.
        """
        self.clear_tracked_data()
        reconcile(self, ctx)
        logger.debug("Full run complete", status=str(self.status))
        return self.status

    # === Incremental handlers ===

    def handle_intent_change(self, ctx: ReconcileContext) -> bool:
        return intent_change_handler(self, ctx)

    def handle_state_change(self, ctx: ReconcileContext) -> bool:
        return state_change_handler(self, ctx)

    def handle_worker_node_change(self, ctx: ReconcileContext) -> bool:
        return worker_node_change_handler(self, ctx)

    # === Downstream ===

    def needs_downstream_recompute(self) -> bool:
        """Whether nodes consuming the global config must recompute."""
        return not node_global_config_handler(self.state)

    def cleanup(self) -> None:
        """Release node state at teardown."""
        self.state = GlobalConfigState()
        self.debug.destroy()
