"""
Economy and difficulty tuning: BalanceConfig plus the pure formulas over it.
"""

from .config import (
    BalanceConfig,
    RewardConfig,
    PricingConfig,
    DifficultyConfig,
    DoorWeight,
    DoorConfig,
    EncounterConfig,
    TierConfig,
    WandererConfig,
    SynergyConfig,
    PlayerModel,
    TargetMetrics,
    SECTION_NAMES,
    PRESETS,
    DEFAULT_CONFIG,
    get_preset,
    load_config,
    perturb_config,
)
from .engine import (
    LuckySynergy,
    ROOMS_PER_DOMAIN,
    reward_tier_for_room,
    gold_reward,
    price_multiplier,
    favor_discount,
    item_price,
    reroll_cost,
    heat_difficulty,
    score_goal,
    tier_for_domain,
    lucky_synergy,
    synergy_rarity_bump,
    door_chance,
    door_min_room,
    encounter_chance,
    duel_chance,
)

__all__ = [
    "BalanceConfig",
    "RewardConfig",
    "PricingConfig",
    "DifficultyConfig",
    "DoorWeight",
    "DoorConfig",
    "EncounterConfig",
    "TierConfig",
    "WandererConfig",
    "SynergyConfig",
    "PlayerModel",
    "TargetMetrics",
    "SECTION_NAMES",
    "PRESETS",
    "DEFAULT_CONFIG",
    "get_preset",
    "load_config",
    "perturb_config",
    "LuckySynergy",
    "ROOMS_PER_DOMAIN",
    "reward_tier_for_room",
    "gold_reward",
    "price_multiplier",
    "favor_discount",
    "item_price",
    "reroll_cost",
    "heat_difficulty",
    "score_goal",
    "tier_for_domain",
    "lucky_synergy",
    "synergy_rarity_bump",
    "door_chance",
    "door_min_room",
    "encounter_chance",
    "duel_chance",
]
