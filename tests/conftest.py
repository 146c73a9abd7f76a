"""
Shared pytest fixtures for the procgen test suite.

This module provides reusable fixtures for:
- RNG pools with known seeds
- The default content catalog and small hand-built catalogs
- Balance presets
- Run ledgers at useful points of a thread
"""

import pytest
import sys

# Ensure project root is in path
import os
_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _project_root)

from packages.procgen.balance.config import PlayerModel, get_preset
from packages.procgen.content.catalog import (
    ContentCatalog, Domain, Element, Item, ItemCategory, Rarity,
)
from packages.procgen.content.world import default_catalog
from packages.procgen.run import RunLedger
from packages.procgen.state.ledger import ProtocolRoll, RunPhase
from packages.procgen.state.rng import RngPool


# =============================================================================
# RNG Fixtures
# =============================================================================


@pytest.fixture
def rng_abc():
    """RngPool for the canonical test seed."""
    return RngPool("ABC123")


@pytest.fixture
def known_seeds():
    return ["ABC123", "ZZZ999", "daily-1", "A", "0123456789abcdef"]


# =============================================================================
# Content Fixtures
# =============================================================================


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def tiny_catalog():
    """Two tier-1 items and one domain; forces pool widening/underfill."""
    items = [
        Item("pebble", "Pebble", ItemCategory.MATERIAL, Rarity.COMMON, Element.EARTH, 5),
        Item("twig", "Twig", ItemCategory.MATERIAL, Rarity.UNCOMMON, Element.WIND, 8),
        Item("relic", "Relic", ItemCategory.QUEST, Rarity.COMMON, Element.EARTH, 0),
    ]
    domains = [Domain(1, "meadow", "The Meadow", Element.EARTH, 3000)]
    return ContentCatalog(items, domains=domains)


# =============================================================================
# Balance Fixtures
# =============================================================================


@pytest.fixture
def balanced():
    return get_preset("balanced")


@pytest.fixture
def rich_config():
    """Balanced preset with enough starting gold to buy anything in tier 1."""
    config = get_preset("balanced")
    return config.replace(player=PlayerModel(starting_gold=1000))


# =============================================================================
# Run Fixtures
# =============================================================================


# Drifter (lucky 0) sits next to domain 1 and draws weak synergy there; these dice add none
NEUTRAL_ROLL = ProtocolRoll(6, 6, 6)


@pytest.fixture
def new_run():
    """Ledger before THREAD_START."""
    return RunLedger()


@pytest.fixture
def started_run():
    """Thread ABC123 in room 1 of the meadow."""
    run = RunLedger()
    run.start_thread("ABC123", traveler="drifter", protocol_roll=NEUTRAL_ROLL)
    return run


@pytest.fixture
def shop_run():
    """Thread that has just cleared room 1 and is in the shop."""
    run = RunLedger()
    run.start_thread("ABC123", traveler="drifter", protocol_roll=NEUTRAL_ROLL)
    run.clear_room(run.room_goal())
    assert run.phase is RunPhase.SHOP
    return run


@pytest.fixture
def rich_shop_run(rich_config):
    run = RunLedger(rich_config)
    run.start_thread("ABC123", traveler="drifter", protocol_roll=NEUTRAL_ROLL)
    run.clear_room(run.room_goal())
    return run
