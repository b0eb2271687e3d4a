"""Gate for nodes that consume the global config as an input.

A consuming node calls node_global_config_handler() when the global config
node reports UPDATED. If the update was absorbed incrementally and touched
neither options nor features (e.g. only the IPsec toggle moved), the
consumer can skip its own recompute.
"""

from __future__ import annotations

from globalconf.engine.state import GlobalConfigState


def node_global_config_handler(state: GlobalConfigState) -> bool:
    """Return True if a consuming node can absorb the update without recomputing.

    An untracked update came from a full run, which may have changed
    anything, so it always forces the consumer to recompute.
    """
    if not state.tracked:
        return False
    if state.tracked_data.options_changed or state.tracked_data.features_changed:
        return False
    return True
