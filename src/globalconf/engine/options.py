"""Intent option keys the node recognizes, and drift detection between bags.

Two classification tables decide what an intent change handler may absorb:

- STRUCTURAL_KEYS feed derivations with side effects (random MAC
  generation, tunnel key ranges, version stamping) that only the full run
  performs. Drift in any of them escalates.
- PASSTHROUGH_KEYS are opaque operational toggles forwarded to the state
  store untouched. Drift is absorbed and reported to downstream nodes.

The tables are ordered tuples: checks run in declaration order.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from globalconf.contracts.config_bag import ConfigBag
from globalconf.core.debug import DEBUG_DROP_COLLECTOR_SET_KEY, DEBUG_DROP_DOMAIN_ID_KEY

MAC_PREFIX_KEY = "mac_prefix"
SVC_MONITOR_MAC_KEY = "svc_monitor_mac"
MAX_TUNID_KEY = "max_tunid"
IGNORE_CHASSIS_FEATURES_KEY = "ignore_chassis_features"
INTERNAL_VERSION_KEY = "northd_internal_version"

# State-store owned; never taken from the intent options
SBCTL_PROBE_INTERVAL_KEY = "sbctl_probe_interval"
LB_HAIRPIN_USE_CT_MARK_KEY = "lb_hairpin_use_ct_mark"
ARP_NS_EXPLICIT_OUTPUT_KEY = "arp_ns_explicit_output"


@dataclass(frozen=True, slots=True)
class TrackedKey:
    """An option key whose drift between two bags is checked.

    Attributes:
        name: Option key
        must_be_present: Absence in either bag counts as drift. Used for
            keys the full run always writes, so absence means someone
            deleted a managed value.
    """

    name: str
    must_be_present: bool = False


STRUCTURAL_KEYS: tuple[TrackedKey, ...] = (
    TrackedKey(SVC_MONITOR_MAC_KEY, must_be_present=True),
    TrackedKey(MAX_TUNID_KEY, must_be_present=True),
    TrackedKey(MAC_PREFIX_KEY, must_be_present=True),
    TrackedKey(IGNORE_CHASSIS_FEATURES_KEY),
    TrackedKey(INTERNAL_VERSION_KEY),
)

PASSTHROUGH_KEYS: tuple[TrackedKey, ...] = (
    TrackedKey("mac_binding_removal_limit"),
    TrackedKey("fdb_removal_limit"),
    TrackedKey("controller_event"),
    TrackedKey("ignore_lsp_down"),
    TrackedKey("use_ct_inv_match"),
    TrackedKey("default_acl_drop"),
    TrackedKey(DEBUG_DROP_DOMAIN_ID_KEY),
    TrackedKey(DEBUG_DROP_COLLECTOR_SET_KEY),
    TrackedKey("use_common_zone"),
    TrackedKey("install_ls_lb_from_router"),
    TrackedKey("bcast_arp_req_flood"),
)

# Passthrough keys whose drift also reinitializes debug drop sampling
DEBUG_KEYS: frozenset[str] = frozenset({DEBUG_DROP_DOMAIN_ID_KEY, DEBUG_DROP_COLLECTOR_SET_KEY})


def key_out_of_sync(current: ConfigBag, saved: ConfigBag, key: TrackedKey) -> bool:
    """Whether key differs between the current and the saved bag."""
    value = current.get(key.name)
    saved_value = saved.get(key.name)
    if key.must_be_present and (value is None or saved_value is None):
        return True
    return value != saved_value


def drifted_keys(current: ConfigBag, saved: ConfigBag, keys: tuple[TrackedKey, ...]) -> Iterator[str]:
    """Yield, in table order, the names of keys that drifted."""
    for key in keys:
        if key_out_of_sync(current, saved, key):
            yield key.name
