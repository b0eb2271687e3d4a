"""Full recomputation of the global configuration.

Rebuilds the node's memoized state from the intent, state and worker
tables, and writes back to either store only what actually differs, so
running it twice against unchanged stores produces no writes the second
time.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from globalconf.contracts.enums import Column
from globalconf.contracts.features import FeatureSet
from globalconf.core.mac import EthAddr, derive_mac_prefix
from globalconf.core.tunnel import max_dp_key_local
from globalconf.engine.convergence import converge
from globalconf.engine.options import (
    IGNORE_CHASSIS_FEATURES_KEY,
    INTERNAL_VERSION_KEY,
    MAC_PREFIX_KEY,
    MAX_TUNID_KEY,
    SVC_MONITOR_MAC_KEY,
)
from globalconf.engine.state_options import sync_state_options

if TYPE_CHECKING:
    from globalconf.engine.node import GlobalConfigNode
    from globalconf.engine.state import ReconcileContext

logger = structlog.get_logger(__name__)


def reconcile(node: GlobalConfigNode, ctx: ReconcileContext) -> None:
    """Run the full recomputation for node.

    Store conflicts are not handled here: the intent options write is
    verified, and a concurrent writer makes the caller's commit fail.

    Args:
        node: The node whose state is rebuilt
        ctx: Table views and transactions for this pass
    """
    if ctx.intent_txn is None or ctx.state_txn is None:
        logger.debug("Stores not writable this tick, skipping full run")
        return

    state = node.state

    intent = ctx.intent_table.first()
    if intent is None:
        intent = ctx.intent_txn.insert()
        logger.info("Created intent record", record_uuid=intent.uuid)
    stored = intent.options

    mac_prefix = derive_mac_prefix(stored.get(MAC_PREFIX_KEY), node.rng)

    # An unparsable monitor MAC is treated exactly like a missing one
    monitor_mac_text = stored.get(SVC_MONITOR_MAC_KEY)
    monitor_mac = EthAddr.parse(monitor_mac_text) if monitor_mac_text is not None else None

    options = stored.clone()
    options.replace(MAC_PREFIX_KEY, mac_prefix)

    if monitor_mac is None:
        monitor_mac = EthAddr.random(node.rng)
        options.replace(SVC_MONITOR_MAC_KEY, str(monitor_mac))
        logger.info(
            "Generated service monitor MAC",
            monitor_mac=str(monitor_mac),
            previous=monitor_mac_text,
        )
    state.monitor_mac = monitor_mac
    state.monitor_mac_raw = str(monitor_mac)

    options.replace(MAX_TUNID_KEY, str(max_dp_key_local(ctx.worker_nodes)))

    version = node.internal_version
    if options.get_def(INTERNAL_VERSION_KEY, "") != version:
        logger.info(
            "Control plane internal version changed",
            previous=options.get(INTERNAL_VERSION_KEY),
            current=version,
        )
        options.replace(INTERNAL_VERSION_KEY, version)
        state.internal_version_changed = True
    else:
        state.internal_version_changed = False

    state.intent_options = options

    if options != stored:
        logger.info("Writing intent options", record_uuid=intent.uuid)
        ctx.intent_txn.verify(intent, Column.OPTIONS)
        ctx.intent_txn.set_options(intent, options)

    if options.get_bool(IGNORE_CHASSIS_FEATURES_KEY, False):
        state.features = FeatureSet.all_enabled()
    else:
        state.features = converge(ctx.worker_nodes)

    node.debug.reinit(options)

    state_record = ctx.state_table.first()
    if state_record is None:
        state_record = ctx.state_txn.insert()
        logger.info("Created state record", record_uuid=state_record.uuid)

    if intent.ipsec != state_record.ipsec:
        ctx.state_txn.set_ipsec(state_record, intent.ipsec)

    state.state_options = sync_state_options(state.intent_options, state.features, state_record, ctx.state_txn)

    node.mark_updated()
