# tests/unit/engine/test_node.py
"""Tests for the GlobalConfigNode facade."""

from globalconf.contracts import NodeStatus
from globalconf.core.config import VersionSettings
from globalconf.engine import GlobalConfigNode
from tests.conftest import TEST_INTERNAL_VERSION
from tests.helpers.stores import StoreHarness


class TestGlobalConfigNode:
    def test_initial_state(self, node: GlobalConfigNode) -> None:
        assert node.name == "global_config"
        assert node.status is NodeStatus.UNCHANGED
        assert node.internal_version == TEST_INTERNAL_VERSION
        assert node.state.monitor_mac is None
        assert node.state.monitor_mac_raw == ""

    def test_default_version_settings(self) -> None:
        assert GlobalConfigNode().internal_version == "24.03.90-20.33.0-53.3"

    def test_version_settings_are_injected(self) -> None:
        node = GlobalConfigNode(VersionSettings(package_version="9.9.9"))
        assert node.internal_version.startswith("9.9.9-")

    def test_begin_pass_resets_signals(self, node: GlobalConfigNode) -> None:
        node.mark_updated()
        node.state.tracked = True
        node.state.tracked_data.features_changed = True

        node.begin_pass()

        assert node.status is NodeStatus.UNCHANGED
        assert not node.state.tracked
        assert not node.state.tracked_data.features_changed

    def test_run_supersedes_absorbed_changes(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        stores.full_pass(node)
        stores.set_intent_option("ignore_lsp_down", "true")
        node.begin_pass()
        ctx = stores.context()
        assert node.handle_intent_change(ctx)
        assert node.state.tracked

        assert node.run(ctx) is NodeStatus.UPDATED

        assert not node.state.tracked
        assert node.needs_downstream_recompute()

    def test_cleanup_releases_state(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        stores.set_intent_option("debug_drop_collector_set", "2")
        stores.full_pass(node)

        node.cleanup()

        assert node.state.intent_options == {}
        assert node.state.monitor_mac is None
        assert not node.debug.config.enabled
