"""Feature convergence over the worker fleet.

A fleet-wide flag is the logical AND of every participating worker's
advertisement, seeded True. A worker that does not mention a capability is
taken as not supporting it. Remote workers (another zone's) do not run the
flows this control plane emits and are skipped.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from globalconf.contracts.features import FEATURE_CAPABILITY_KEYS, FeatureSet
from globalconf.contracts.records import WorkerNode

logger = structlog.get_logger(__name__)


def build_features(worker_nodes: Iterable[WorkerNode], features: FeatureSet) -> FeatureSet:
    """Fold worker advertisements into features.

    Only ever clears flags. For an authoritative result the caller must
    start from FeatureSet.all_enabled(); passing a partially downgraded set
    keeps its existing False evidence.
    """
    for node in worker_nodes:
        if node.is_remote:
            continue
        for flag, capability in FEATURE_CAPABILITY_KEYS.items():
            if getattr(features, flag) and not node.other_config.get_bool(capability, False):
                logger.debug("Worker node lacks capability", worker=node.name, capability=capability)
                features = features.downgrade(flag)
    return features


def converge(worker_nodes: Iterable[WorkerNode]) -> FeatureSet:
    """Full scan: recompute every flag from scratch."""
    return build_features(worker_nodes, FeatureSet.all_enabled())


def reconverge(worker_nodes: Iterable[WorkerNode], present: FeatureSet) -> tuple[FeatureSet, bool]:
    """Change-aware scan: rescan from scratch and report whether anything moved.

    Returns:
        (new features, True if any flag differs from present)
    """
    updated = converge(worker_nodes)
    changed = updated != present
    if changed:
        logger.info(
            "Fleet features changed",
            disabled_before=list(present.disabled()),
            disabled_after=list(updated.disabled()),
        )
    return updated, changed
