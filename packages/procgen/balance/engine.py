"""
Balance Engine - pure economy and difficulty formulas.

No randomness, no I/O, no run state. Every function is total over its
inputs: out-of-range values (negative heat, tier 9, room 0) are clamped
rather than rejected, so callers never need a try/except around pricing.

Formulas (defaults from BalanceConfig):
    gold_reward     = floor(floor(floor(base[tier] * (1 + (d-1)*0.5)) * min(1 + heat*0.2, 2.0)) * synergy_gold)
    price           = favor_discount(floor(value * tier_multiplier[tier]), favor)
    favor_discount  = max(min_price, floor(price * (1 - min(tokens*0.15, 0.5))))
    reroll_cost     = max(0, base - calm * 5)
    heat_difficulty = floor(goal * (1 + heat*0.15))
    tier            = min(max, start + max(0, cleared - grace) // per_tier)
"""

from enum import Enum
import math
from typing import Iterable, Union

from .config import BalanceConfig, DEFAULT_CONFIG


class LuckySynergy(Enum):
    NONE = "none"
    WEAK = "weak"
    STRONG = "strong"

    @property
    def level(self) -> int:
        return _SYNERGY_LEVELS[self]


_SYNERGY_LEVELS = {LuckySynergy.NONE: 0, LuckySynergy.WEAK: 1, LuckySynergy.STRONG: 2}

ROOMS_PER_DOMAIN = 3


def _clamp(value, low, high):
    return max(low, min(high, value))


def _synergy(value: Union[LuckySynergy, str]) -> LuckySynergy:
    if isinstance(value, LuckySynergy):
        return value
    try:
        return LuckySynergy(value)
    except ValueError:
        return LuckySynergy.NONE


# =============================================================================
# Rewards
# =============================================================================

def reward_tier_for_room(room_index: int) -> int:
    """Rooms 1/2/3 of a domain are small/big/boss events, reward tiers 1/2/3."""
    return _clamp(room_index, 1, ROOMS_PER_DOMAIN)


def gold_reward(
    reward_tier: int,
    domain_index: int,
    heat: int = 0,
    luck: Union[LuckySynergy, str] = LuckySynergy.NONE,
    config: BalanceConfig = DEFAULT_CONFIG,
) -> int:
    r = config.rewards
    if 1 <= reward_tier <= len(r.gold_by_tier):
        base = r.gold_by_tier[reward_tier - 1]
    else:
        base = r.fallback_gold

    position = max(1, domain_index)
    reward = math.floor(base * (1 + (position - 1) * r.domain_increment))

    heat_multiplier = min(1 + max(0, heat) * r.heat_bonus_rate, r.max_heat_multiplier)
    reward = math.floor(reward * heat_multiplier)

    reward = math.floor(reward * r.synergy_gold[_synergy(luck).level])
    return max(0, reward)


# =============================================================================
# Pricing
# =============================================================================

def price_multiplier(tier: int, config: BalanceConfig = DEFAULT_CONFIG) -> float:
    multipliers = config.pricing.tier_multipliers
    return multipliers[_clamp(tier, 1, len(multipliers)) - 1]


def favor_discount(base_price: int, favor_tokens: int, config: BalanceConfig = DEFAULT_CONFIG) -> int:
    p = config.pricing
    discount = min(max(0, favor_tokens) * p.favor_discount_per_token, p.max_favor_discount)
    return max(p.min_price, math.floor(max(0, base_price) * (1 - discount)))


def item_price(
    base_value: int,
    tier: int,
    favor_tokens: int = 0,
    config: BalanceConfig = DEFAULT_CONFIG,
) -> int:
    inflated = math.floor(max(0, base_value) * price_multiplier(tier, config))
    return favor_discount(inflated, favor_tokens, config)


def reroll_cost(base_cost: int, calm_bonus: int, config: BalanceConfig = DEFAULT_CONFIG) -> int:
    reduction = max(0, calm_bonus) * config.pricing.reroll_reduction_per_calm
    return max(0, base_cost - reduction)


# =============================================================================
# Difficulty
# =============================================================================

def heat_difficulty(base_score_goal: int, heat: float, config: BalanceConfig = DEFAULT_CONFIG) -> int:
    scale = 1 + max(0.0, heat) * config.difficulty.heat_difficulty_rate
    return math.floor(max(0, base_score_goal) * scale)


def score_goal(
    domain_base_goal: int,
    domain_index: int,
    room_index: int,
    heat: int = 0,
    heat_dampen: float = 0.0,
    final_domain: int = 6,
    config: BalanceConfig = DEFAULT_CONFIG,
) -> int:
    """Target score for a room: base goal x room multiplier, heat-scaled."""
    d = config.difficulty
    room = reward_tier_for_room(room_index)
    multiplier = d.room_multipliers[room - 1]
    if room == ROOMS_PER_DOMAIN and domain_index >= final_domain:
        multiplier = d.final_boss_multiplier
    base = math.floor(domain_base_goal * d.goal_scale * multiplier)
    effective_heat = max(0, heat) * (1 - _clamp(heat_dampen, 0.0, 0.9))
    return heat_difficulty(base, effective_heat, config)


def tier_for_domain(domains_cleared: int, config: BalanceConfig = DEFAULT_CONFIG) -> int:
    t = config.tiers
    steps = max(0, domains_cleared - t.grace_domains) // t.domains_per_tier
    return _clamp(t.starting_tier + steps, 1, t.max_tier)


# =============================================================================
# Lucky Synergy
# =============================================================================

def lucky_synergy(
    lucky_number: int,
    protocol_roll: Iterable[int],
    domain_index: int,
    config: BalanceConfig = DEFAULT_CONFIG,
) -> LuckySynergy:
    """
    Compare a traveler's lucky number against the run's derived rolls.

    Precedence (first rule that fires wins):
        1. lucky number == wildcard                   -> strong
        2. exact matches >= strong_matches            -> strong
        3. within `adjacency` of any compared value   -> weak
        4. otherwise                                  -> none

    Compared values are the domain index plus each protocol roll die.
    """
    s = config.synergy
    if lucky_number == s.wildcard:
        return LuckySynergy.STRONG

    values = [domain_index] + [int(v) for v in protocol_roll]
    matches = sum(1 for v in values if v == lucky_number)
    if matches >= s.strong_matches:
        return LuckySynergy.STRONG
    if s.adjacency > 0 and any(abs(v - lucky_number) <= s.adjacency for v in values):
        return LuckySynergy.WEAK
    return LuckySynergy.NONE


def synergy_rarity_bump(luck: Union[LuckySynergy, str], config: BalanceConfig = DEFAULT_CONFIG) -> int:
    return _clamp(config.synergy.rarity_bump[_synergy(luck).level], 0, 2)


# =============================================================================
# Doors + Encounters
# =============================================================================

def door_chance(door_type, tier: int, config: BalanceConfig = DEFAULT_CONFIG) -> float:
    """Percent chance a door type is offered at `tier`. Unknown types get 0."""
    key = getattr(door_type, "value", door_type)
    weight = getattr(config.doors, str(key), None)
    if weight is None:
        return 0.0
    tier = _clamp(tier, 1, config.tiers.max_tier)
    return _clamp(weight.base + weight.per_tier * (tier - 1), weight.minimum, 100.0)


def door_min_room(door_type, config: BalanceConfig = DEFAULT_CONFIG) -> int:
    key = getattr(door_type, "value", door_type)
    weight = getattr(config.doors, str(key), None)
    return weight.min_room if weight is not None else 1


def encounter_chance(
    skip_pressure: int,
    bonus: float = 0.0,
    aggressive: bool = False,
    config: BalanceConfig = DEFAULT_CONFIG,
) -> float:
    e = config.encounters
    chance = e.base_chance + max(0, skip_pressure) * e.skip_pressure_bonus + bonus
    if aggressive:
        chance += e.aggressive_bonus
    return _clamp(chance, 0.0, e.max_chance)


def duel_chance(heat: int, config: BalanceConfig = DEFAULT_CONFIG) -> float:
    w = config.wanderers
    return _clamp(w.duel_base_chance - max(0, heat) * w.duel_heat_penalty, 5.0, 95.0)
