"""Derivation of the state store option bag.

The state bag is a pure function of the intent options, the converged
features and the state store's own sbctl_probe_interval. Both the full run
and the intent change handler publish through sync_state_options().
"""

from __future__ import annotations

import structlog

from globalconf.contracts.config_bag import ConfigBag
from globalconf.contracts.features import FeatureSet
from globalconf.contracts.records import StateRecord
from globalconf.contracts.store import StoreTransaction
from globalconf.engine.options import (
    ARP_NS_EXPLICIT_OUTPUT_KEY,
    LB_HAIRPIN_USE_CT_MARK_KEY,
    SBCTL_PROBE_INTERVAL_KEY,
)

logger = structlog.get_logger(__name__)


def derive_state_options(intent_options: ConfigBag, features: FeatureSet, current_state: ConfigBag) -> ConfigBag:
    """Build the state option bag.

    Args:
        intent_options: Synchronized intent options (never mutated)
        features: Converged fleet features
        current_state: The state record's current options; only
            sbctl_probe_interval is read from it

    Returns:
        A new bag.
    """
    options = intent_options.clone()

    # Workers use ct_mark for LB hairpin unless told otherwise; the default
    # applies when the key is absent
    if not features.ct_no_masked_label:
        options.replace(LB_HAIRPIN_USE_CT_MARK_KEY, "false")
    else:
        options.remove(LB_HAIRPIN_USE_CT_MARK_KEY)

    probe_interval = current_state.get(SBCTL_PROBE_INTERVAL_KEY)
    if probe_interval is not None:
        options.replace(SBCTL_PROBE_INTERVAL_KEY, probe_interval)

    options.replace(ARP_NS_EXPLICIT_OUTPUT_KEY, "true")
    return options


def sync_state_options(
    intent_options: ConfigBag,
    features: FeatureSet,
    state: StateRecord,
    txn: StoreTransaction[StateRecord],
) -> ConfigBag:
    """Derive the state bag and write it if it differs from the stored one.

    Returns:
        The derived bag, to be cached as the node's state_options.
    """
    options = derive_state_options(intent_options, features, state.options)
    if options != state.options:
        logger.info("Writing state options", record_uuid=state.uuid, keys=len(options))
        txn.set_options(state, options)
    return options
