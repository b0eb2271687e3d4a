# tests/unit/engine/test_reconciler.py
"""Tests for the full recomputation."""

import pytest

from globalconf.contracts import ConfigBag, Encap, NodeStatus, StoreConflictError
from globalconf.core.mac import EthAddr
from globalconf.engine import GlobalConfigNode
from tests.conftest import TEST_INTERNAL_VERSION, TEST_VERSION
from tests.helpers.stores import StoreHarness, all_capabilities


class TestFirstRun:
    """Empty stores with one fully capable worker."""

    def test_creates_and_populates_both_records(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        stores.add_worker("w1", all_capabilities())

        result = stores.full_pass(node)

        intent = stores.intent.first()
        state = stores.state.first()
        assert intent is not None
        assert state is not None
        assert intent.options["max_tunid"] == "16777199"
        assert intent.options["northd_internal_version"] == TEST_INTERNAL_VERSION
        assert EthAddr.parse(intent.options["svc_monitor_mac"]) is not None
        assert len(intent.options["mac_prefix"]) == len("xx:xx:xx")
        assert result.write_count == 4  # two inserts, two option writes

        expected_state = intent.options.clone()
        expected_state.replace("arp_ns_explicit_output", "true")
        assert state.options == expected_state

        assert node.status is NodeStatus.UPDATED
        assert node.state.internal_version_changed
        assert node.state.features.disabled() == ()
        assert node.state.intent_options == intent.options
        assert node.state.state_options == state.options
        assert str(node.state.monitor_mac) == intent.options["svc_monitor_mac"]
        assert node.state.monitor_mac_raw == intent.options["svc_monitor_mac"]

    def test_second_run_writes_nothing(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        stores.add_worker("w1", all_capabilities())
        stores.full_pass(node)
        intent_before = stores.intent.first().options.clone()  # type: ignore[union-attr]

        result = stores.full_pass(node)

        assert result.write_count == 0
        assert stores.intent.first().options == intent_before  # type: ignore[union-attr]
        assert not node.state.internal_version_changed
        # A full run always reports UPDATED
        assert node.status is NodeStatus.UPDATED

    def test_fresh_node_adopts_persisted_values(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        stores.full_pass(node)
        mac = stores.intent.first().options["svc_monitor_mac"]  # type: ignore[union-attr]

        restarted = GlobalConfigNode(TEST_VERSION)
        result = stores.full_pass(restarted)

        assert result.write_count == 0
        assert restarted.state.monitor_mac_raw == mac


class TestManagedKeys:
    def test_operator_mac_prefix_is_normalized(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        stores.set_intent_option("mac_prefix", "a:b:c:d")
        stores.full_pass(node)
        assert stores.intent.first().options["mac_prefix"] == "0a:0b:0c"  # type: ignore[union-attr]

    def test_zero_mac_prefix_is_replaced(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        stores.set_intent_option("mac_prefix", "00:00:00")
        stores.full_pass(node)
        assert stores.intent.first().options["mac_prefix"] != "00:00:00"  # type: ignore[union-attr]

    def test_operator_monitor_mac_is_kept(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        stores.set_intent_option("svc_monitor_mac", "0a:00:00:00:00:01")
        stores.full_pass(node)

        assert stores.intent.first().options["svc_monitor_mac"] == "0a:00:00:00:00:01"  # type: ignore[union-attr]
        assert node.state.monitor_mac == EthAddr(b"\x0a\x00\x00\x00\x00\x01")

    def test_invalid_monitor_mac_is_regenerated(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        stores.set_intent_option("svc_monitor_mac", "not-a-mac")
        stores.full_pass(node)

        mac = stores.intent.first().options["svc_monitor_mac"]  # type: ignore[union-attr]
        assert mac != "not-a-mac"
        assert EthAddr.parse(mac) is not None

    def test_vxlan_fleet_shrinks_tunnel_range(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        stores.add_worker("w1", encaps=(Encap("vxlan", "192.0.2.1"),))
        stores.full_pass(node)
        assert stores.intent.first().options["max_tunid"] == "4079"  # type: ignore[union-attr]

    def test_stale_internal_version_is_rewritten(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        stores.set_intent_option("northd_internal_version", "0.9.0-6.0.0-9.0")
        stores.full_pass(node)

        assert node.state.internal_version_changed
        assert stores.intent.first().options["northd_internal_version"] == TEST_INTERNAL_VERSION  # type: ignore[union-attr]

    def test_unrelated_operator_keys_survive(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        stores.set_intent_option("ignore_lsp_down", "true")
        stores.full_pass(node)

        assert stores.intent.first().options["ignore_lsp_down"] == "true"  # type: ignore[union-attr]
        assert stores.state.first().options["ignore_lsp_down"] == "true"  # type: ignore[union-attr]


class TestFeaturesAndState:
    def test_downgraded_fleet_disables_hairpin_ct_mark(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        stores.add_worker("w1", all_capabilities(**{"ct-no-masked-label": "false"}))
        stores.full_pass(node)

        assert not node.state.features.ct_no_masked_label
        assert stores.state.first().options["lb_hairpin_use_ct_mark"] == "false"  # type: ignore[union-attr]

    def test_ct_lb_related_does_not_drive_hairpin(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        stores.add_worker("w1", all_capabilities(**{"ct-lb-related": "false"}))
        stores.full_pass(node)

        assert not node.state.features.ct_lb_related
        assert "lb_hairpin_use_ct_mark" not in stores.state.first().options  # type: ignore[union-attr]

    def test_ignore_chassis_features(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        stores.add_worker("w1")
        stores.set_intent_option("ignore_chassis_features", "true")
        stores.full_pass(node)

        assert node.state.features.disabled() == ()

    def test_ipsec_is_mirrored(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        stores.intent.external_set_ipsec(True)
        stores.full_pass(node)
        assert stores.state.first().ipsec is True  # type: ignore[union-attr]

    def test_probe_interval_is_preserved(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        stores.full_pass(node)
        options = stores.state.first().options.clone()  # type: ignore[union-attr]
        options.replace("sbctl_probe_interval", "5000")
        stores.state.external_set_options(options)

        result = stores.full_pass(node)

        assert result.write_count == 0
        assert node.state.state_options["sbctl_probe_interval"] == "5000"

    def test_debug_drop_config_follows_options(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        stores.set_intent_option("debug_drop_collector_set", "4")
        stores.full_pass(node)
        assert node.debug.config.collector_set_id == 4


class TestWritability:
    def test_read_only_tick_does_nothing(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        node.begin_pass()
        status = node.run(stores.context(writable=False))

        assert status is NodeStatus.UNCHANGED
        assert stores.intent.first() is None
        assert stores.state.first() is None

    def test_concurrent_intent_write_fails_commit(self, stores: StoreHarness, node: GlobalConfigNode) -> None:
        stores.intent.external_set_options(ConfigBag({"a": "1"}))
        node.begin_pass()
        ctx = stores.context()
        node.run(ctx)

        stores.set_intent_option("a", "2")

        assert ctx.intent_txn is not None
        with pytest.raises(StoreConflictError):
            ctx.intent_txn.commit()
        assert "mac_prefix" not in stores.intent.first().options  # type: ignore[union-attr]
