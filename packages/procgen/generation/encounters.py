"""
Wanderer encounters.

An encounter is rolled when a player skips a room: the chance grows with
skip pressure and is capped by BalanceConfig. The wanderer itself is
drawn from those who frequent the domain, biased toward the slot picked
by the sponsor die.
"""

from ..balance.config import BalanceConfig, DEFAULT_CONFIG
from ..balance.engine import duel_chance, encounter_chance
from ..content.catalog import ContentCatalog, Domain
from ..state.rng import RngPool
from .pools import PoolEntry, PoolKind, PoolResult


def encounter_namespace(domain_slug: str, sponsor_bias: int) -> str:
    return f"encounter:domain:{domain_slug}:sponsor:{sponsor_bias}"


def encounter_wanderer(
    rng: RngPool,
    catalog: ContentCatalog,
    domain: Domain,
    sponsor_bias: int,
    config: BalanceConfig = DEFAULT_CONFIG,
) -> PoolResult:
    available = catalog.wanderers_for_domain(domain.slug)
    namespace = encounter_namespace(domain.slug, sponsor_bias)
    if not available:
        return PoolResult(PoolKind.WANDERER, (), 1, namespace)

    biased_index = (sponsor_bias - 1) % len(available)
    ordered = [available[biased_index]] + [
        w for i, w in enumerate(available) if i != biased_index
    ]

    if rng.chance(namespace, config.encounters.sponsor_bias_chance):
        wanderer = ordered[0]
    else:
        wanderer = rng.pick(namespace, ordered)
    return PoolResult(PoolKind.WANDERER, (PoolEntry(wanderer),), 1, namespace)


def encounter_check(
    rng: RngPool,
    domain: Domain,
    room_index: int,
    skip_pressure: int,
    bonus: float = 0.0,
    aggressive: bool = False,
    config: BalanceConfig = DEFAULT_CONFIG,
) -> bool:
    """Roll whether skipping this room triggers a wanderer encounter."""
    namespace = f"encounterCheck:domain:{domain.slug}:room:{room_index}"
    return rng.chance(namespace, encounter_chance(skip_pressure, bonus, aggressive, config))


def duel_roll(
    rng: RngPool,
    wanderer_slug: str,
    domain_index: int,
    room_index: int,
    heat: int,
    config: BalanceConfig = DEFAULT_CONFIG,
) -> bool:
    """Outcome of a provoke duel. True = the player wins."""
    namespace = f"duel:{wanderer_slug}:domain:{domain_index}:room:{room_index}"
    return rng.chance(namespace, duel_chance(heat, config))


def sponsor_bias_for(sponsor_die: int, bias_bonus: int = 0) -> int:
    """Sponsor bias 1-6 from the protocol roll, shifted by Wanderer Bias promises."""
    sponsor_die = max(1, sponsor_die)
    return (sponsor_die - 1 + bias_bonus) % 6 + 1
