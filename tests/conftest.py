# tests/conftest.py
"""Shared test fixtures and helpers.

Fixtures:
- rng: Seeded random.Random so generated MACs are reproducible
- stores: In-memory intent/state/worker tables (tests.helpers.stores)
- node: A GlobalConfigNode wired to the seeded rng

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import os
import random

import pytest
from hypothesis import Phase, Verbosity, settings

from globalconf.core.config import VersionSettings
from globalconf.engine import GlobalConfigNode
from tests.helpers.stores import StoreHarness

# =============================================================================
# Hypothesis Profiles
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Node and Store Fixtures
# =============================================================================

TEST_VERSION = VersionSettings(package_version="1.0.0", schema_version="7.0.0", action_count=10, minor_version=1)
TEST_INTERNAL_VERSION = "1.0.0-7.0.0-10.1"


@pytest.fixture
def rng() -> random.Random:
    return random.Random(20240315)


@pytest.fixture
def stores() -> StoreHarness:
    return StoreHarness()


@pytest.fixture
def node(rng: random.Random) -> GlobalConfigNode:
    return GlobalConfigNode(TEST_VERSION, rng=rng)
