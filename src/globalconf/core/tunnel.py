"""Tunnel key range derivation from the worker fleet's encapsulations."""

from __future__ import annotations

from collections.abc import Iterable

from globalconf.contracts.records import WorkerNode

# Keys reserved for global datapaths at the top of every range
MAX_DP_GLOBAL_NUM = 16

# Geneve/STT carry 24-bit datapath keys
MAX_DP_KEY = (1 << 24) - 1
MAX_DP_KEY_LOCAL = MAX_DP_KEY - MAX_DP_GLOBAL_NUM

# VXLAN leaves only 12 bits for the datapath key
MAX_DP_VXLAN_KEY = (1 << 12) - 1
MAX_DP_VXLAN_KEY_LOCAL = MAX_DP_VXLAN_KEY - MAX_DP_GLOBAL_NUM


def is_vxlan_mode(worker_nodes: Iterable[WorkerNode]) -> bool:
    """True if any worker node terminates a VXLAN tunnel."""
    return any(encap.type == "vxlan" for node in worker_nodes for encap in node.encaps)


def max_dp_key_local(worker_nodes: Iterable[WorkerNode]) -> int:
    """Largest datapath tunnel key usable for locally allocated datapaths."""
    if is_vxlan_mode(worker_nodes):
        return MAX_DP_VXLAN_KEY_LOCAL
    return MAX_DP_KEY_LOCAL
