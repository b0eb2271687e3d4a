"""Debug drop sampling configuration derived from intent options.

When a collector set is configured, dropped packets are sampled to it
instead of being silently discarded. Downstream flow generation reads
drop_action to decide what to emit for every drop.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from globalconf.contracts.config_bag import ConfigBag

logger = structlog.get_logger(__name__)

DEBUG_DROP_COLLECTOR_SET_KEY = "debug_drop_collector_set"
DEBUG_DROP_DOMAIN_ID_KEY = "debug_drop_domain_id"

# Observation domain ids are 8-bit; 255 is reserved
_MAX_OBSERVATION_DOMAIN_ID = 255


@dataclass(frozen=True, slots=True)
class DebugDropConfig:
    """Sampling parameters for dropped packets.

    Attributes:
        collector_set_id: IPFIX collector set; 0 disables sampling
        observation_domain_id: Observation domain stamped on samples
    """

    collector_set_id: int = 0
    observation_domain_id: int = 0

    @property
    def enabled(self) -> bool:
        return self.collector_set_id != 0

    @property
    def drop_action(self) -> str:
        """Logical flow action emitted wherever a packet is dropped."""
        if not self.enabled:
            return "drop;"
        return (
            f"sample(probability=65535,collector_set={self.collector_set_id},"
            f"obs_domain={self.observation_domain_id},obs_point=$cookie); /* drop */"
        )


class DebugDropSettings:
    """Holder for the active DebugDropConfig, reinitialized from intent options.

    Example:
        debug = DebugDropSettings()
        debug.reinit(ConfigBag({"debug_drop_collector_set": "3"}))
        debug.config.drop_action  # "sample(...collector_set=3,obs_domain=0...)"
    """

    def __init__(self) -> None:
        self._config = DebugDropConfig()

    @property
    def config(self) -> DebugDropConfig:
        return self._config

    def reinit(self, options: ConfigBag) -> DebugDropConfig:
        """Rebuild the config from options.

        An out-of-range observation domain id rejects the whole update and
        keeps the previous config.
        """
        collector_set_id = options.get_uint(DEBUG_DROP_COLLECTOR_SET_KEY, 0)
        observation_domain_id = options.get_uint(DEBUG_DROP_DOMAIN_ID_KEY, 0)

        if observation_domain_id >= _MAX_OBSERVATION_DOMAIN_ID:
            logger.error(
                "Observation domain id must be an 8-bit number",
                observation_domain_id=observation_domain_id,
            )
            return self._config

        new_config = DebugDropConfig(
            collector_set_id=collector_set_id,
            observation_domain_id=observation_domain_id,
        )
        if new_config != self._config:
            logger.info(
                "Debug drop sampling reconfigured",
                collector_set_id=collector_set_id,
                observation_domain_id=observation_domain_id,
            )
        self._config = new_config
        return new_config

    def destroy(self) -> None:
        """Release the active config (node teardown)."""
        self._config = DebugDropConfig()
