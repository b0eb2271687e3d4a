"""Incremental change handlers, one per upstream table.

Each handler returns True when the change was absorbed into the node's
state (possibly reporting it through tracked data) and False when it must
escalate to a full recomputation. A handler never applies part of a change
it cannot finish: every escalation check runs before any cached state is
replaced.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from globalconf.contracts.enums import Column
from globalconf.engine.convergence import reconverge
from globalconf.engine.options import (
    DEBUG_KEYS,
    IGNORE_CHASSIS_FEATURES_KEY,
    PASSTHROUGH_KEYS,
    STRUCTURAL_KEYS,
    drifted_keys,
)
from globalconf.engine.state_options import sync_state_options

if TYPE_CHECKING:
    from globalconf.engine.node import GlobalConfigNode
    from globalconf.engine.state import ReconcileContext

logger = structlog.get_logger(__name__)


def intent_change_handler(node: GlobalConfigNode, ctx: ReconcileContext) -> bool:
    """Absorb a change to the intent record's options or IPsec toggle.

    Drift in a structural key escalates; drift in a passthrough key is
    absorbed and flagged as options_changed. Anything else is absorbed
    silently.
    """
    state = node.state

    intent = ctx.intent_table.first()
    if intent is None:
        logger.debug("Escalating intent change", reason="no intent record")
        return False

    state_record = ctx.state_table.first()
    if state_record is None:
        logger.debug("Escalating intent change", reason="no state record")
        return False

    if not ctx.intent_table.is_updated(intent, Column.IPSEC) and not ctx.intent_table.is_updated(
        intent, Column.OPTIONS
    ):
        return True

    if ctx.state_txn is None:
        logger.debug("Escalating intent change", reason="state store not writable")
        return False

    if intent.ipsec != state_record.ipsec:
        ctx.state_txn.set_ipsec(state_record, intent.ipsec)

    if intent.options == state.intent_options:
        state.tracked = True
        return True

    # Compare the new bag with the untouched snapshot; the snapshot is only
    # replaced once every check has passed
    previous = state.intent_options
    current = intent.options

    structural = next(drifted_keys(current, previous, STRUCTURAL_KEYS), None)
    if structural is not None:
        logger.info("Escalating intent change", reason="structural key drifted", key=structural)
        return False

    passthrough = list(drifted_keys(current, previous, PASSTHROUGH_KEYS))
    if passthrough:
        state.tracked_data.options_changed = True
        if DEBUG_KEYS.intersection(passthrough):
            node.debug.reinit(current)
        logger.debug("Absorbed passthrough option drift", keys=passthrough)

    state.intent_options = current.clone()
    state.state_options = sync_state_options(state.intent_options, state.features, state_record, ctx.state_txn)

    state.tracked = True
    node.mark_updated()
    return True


def state_change_handler(node: GlobalConfigNode, ctx: ReconcileContext) -> bool:
    """Absorb a change to the state record only if it is our own write echoing back."""
    state_record = ctx.state_table.first()
    if state_record is None:
        logger.debug("Escalating state change", reason="no state record")
        return False

    if state_record.options != node.state.state_options:
        logger.info("Escalating state change", reason="state options changed by another writer")
        return False

    return True


def worker_node_change_handler(node: GlobalConfigNode, ctx: ReconcileContext) -> bool:
    """Absorb worker node changes that only touch capability advertisements.

    Topology changes (a worker appearing, disappearing, or any of its tunnel
    endpoints changing) escalate because they move the tunnel key range.
    Deleting the only worker that caused a downgrade is therefore always
    re-evaluated by the full run.
    """
    state = node.state
    tracked_nodes = list(ctx.worker_nodes.tracked())

    for tracked in tracked_nodes:
        if tracked.topology_changed:
            logger.info(
                "Escalating worker node change",
                reason="tunnel topology changed",
                worker=tracked.node.name,
                kind=str(tracked.kind),
            )
            return False

    if state.intent_options.get_bool(IGNORE_CHASSIS_FEATURES_KEY, False):
        return True

    if not any(tracked.is_updated(Column.OTHER_CONFIG) for tracked in tracked_nodes):
        return True

    features, changed = reconverge(ctx.worker_nodes, state.features)
    if not changed:
        return True

    # Features feed the state options; republishing them needs a writable state record
    state_record = ctx.state_table.first()
    if state_record is None or ctx.state_txn is None:
        logger.info("Escalating worker node change", reason="state record not writable")
        return False

    state.features = features
    state.state_options = sync_state_options(state.intent_options, state.features, state_record, ctx.state_txn)
    state.tracked_data.features_changed = True
    state.tracked = True
    node.mark_updated()
    return True
