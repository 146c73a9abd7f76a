"""
Balance Engine Tests

Pure economy/difficulty formulas, lucky synergy precedence, presets,
config (de)serialization and bounded perturbation.
"""

import dataclasses
import random

import pytest

from packages.procgen.balance.config import (
    DEFAULT_CONFIG,
    PRESETS,
    BalanceConfig,
    PricingConfig,
    RewardConfig,
    SECTION_NAMES,
    get_preset,
    load_config,
    perturb_config,
    tunable_fields,
)
from packages.procgen.balance.engine import (
    LuckySynergy,
    door_chance,
    duel_chance,
    encounter_chance,
    favor_discount,
    gold_reward,
    heat_difficulty,
    item_price,
    lucky_synergy,
    price_multiplier,
    reroll_cost,
    reward_tier_for_room,
    score_goal,
    synergy_rarity_bump,
    tier_for_domain,
)
from packages.procgen.errors import InvalidConfigError


# =============================================================================
# 1. Rewards
# =============================================================================


class TestGoldReward:
    """gold_reward over tier, domain, heat and synergy."""

    def test_base_case(self):
        assert gold_reward(1, 1, 0, LuckySynergy.NONE) == 50

    def test_reward_tiers(self):
        assert gold_reward(2, 1) == 100
        assert gold_reward(3, 1) == 200

    def test_unknown_tier_falls_back(self):
        assert gold_reward(0, 1) == 50
        assert gold_reward(9, 1) == 50

    def test_domain_scaling(self):
        assert gold_reward(1, 2) == 75
        assert gold_reward(1, 3) == 100
        assert gold_reward(1, 0) == gold_reward(1, 1)

    def test_heat_bonus_and_cap(self):
        assert gold_reward(1, 1, heat=1) == 60
        assert gold_reward(1, 1, heat=5) == 100
        assert gold_reward(1, 1, heat=50) == 100
        assert gold_reward(1, 1, heat=-3) == 50

    def test_synergy_multiplier(self):
        assert gold_reward(1, 1, 0, LuckySynergy.WEAK) == 55
        assert gold_reward(1, 1, 0, "strong") == 62
        assert gold_reward(1, 1, 0, "bogus") == 50

    def test_monotonic_in_heat(self):
        rewards = [gold_reward(2, 3, h) for h in range(10)]
        assert rewards == sorted(rewards)

    def test_reward_tier_for_room(self):
        assert [reward_tier_for_room(r) for r in (0, 1, 2, 3, 4)] == [1, 1, 2, 3, 3]


# =============================================================================
# 2. Pricing
# =============================================================================


class TestPricing:
    """Tier multipliers, favor discounts and reroll costs."""

    def test_price_multiplier_monotonic(self):
        multipliers = [price_multiplier(t) for t in range(1, 6)]
        assert multipliers == sorted(multipliers)

    def test_price_multiplier_clamps(self):
        assert price_multiplier(0) == price_multiplier(1)
        assert price_multiplier(9) == price_multiplier(5)

    def test_favor_discount(self):
        assert favor_discount(100, 0) == 100
        assert favor_discount(100, 1) == 85
        assert favor_discount(100, 2) == 70
        assert favor_discount(100, 10) == 50  # capped

    def test_favor_discount_floor(self):
        assert favor_discount(0, 0) == 1
        assert favor_discount(1, 3) == 1
        assert favor_discount(100, -2) == 100

    def test_item_price(self):
        assert item_price(100, 1) == 100
        assert item_price(100, 2) == 120
        assert item_price(100, 3, favor_tokens=1) == 127
        assert item_price(-5, 1) == 1

    def test_reroll_cost(self):
        assert reroll_cost(25, 0) == 25
        assert reroll_cost(25, 2) == 15
        assert reroll_cost(25, 10) == 0
        assert reroll_cost(25, -1) == 25


# =============================================================================
# 3. Difficulty + Tiers
# =============================================================================


class TestDifficulty:
    """Heat scaling, room goals and tier progression."""

    def test_heat_difficulty(self):
        assert heat_difficulty(1000, 0) == 1000
        assert heat_difficulty(1000, 2) == 1300
        assert heat_difficulty(1000, -1) == 1000
        assert heat_difficulty(-5, 1) == 0

    def test_score_goal_rooms(self):
        assert score_goal(3000, 1, 1) == 1800
        assert score_goal(3000, 1, 2) == 3000
        assert score_goal(3000, 1, 3) == 4500

    def test_final_boss_multiplier(self):
        assert score_goal(10000, 6, 3) == 18000
        assert score_goal(10000, 6, 2) == 10000

    def test_heat_dampen(self):
        hot = score_goal(3000, 1, 2, heat=2)
        dampened = score_goal(3000, 1, 2, heat=2, heat_dampen=0.5)
        assert hot == 3900
        assert 3000 < dampened < hot
        # dampening is capped at 90%
        assert score_goal(3000, 1, 2, heat=10, heat_dampen=5.0) == score_goal(3000, 1, 2, heat=10, heat_dampen=0.9)

    def test_tier_for_domain(self):
        tiers = [tier_for_domain(d) for d in range(0, 8)]
        assert tiers == [1, 1, 2, 3, 4, 5, 5, 5]

    def test_tier_for_negative(self):
        assert tier_for_domain(-3) == 1


# =============================================================================
# 4. Lucky Synergy
# =============================================================================


class TestLuckySynergy:
    """Precedence: wildcard, exact match, adjacency, none."""

    def test_zero_is_an_ordinary_number(self):
        assert lucky_synergy(0, (3, 4, 5), 1) is LuckySynergy.WEAK
        assert lucky_synergy(0, (1, 5, 5), 4) is LuckySynergy.WEAK
        assert lucky_synergy(0, (3, 3, 3), 3) is LuckySynergy.NONE

    def test_wildcard(self):
        assert lucky_synergy(7, (1, 1, 1), 1) is LuckySynergy.STRONG

    def test_exact_match(self):
        assert lucky_synergy(4, (1, 4, 6), 1) is LuckySynergy.STRONG

    def test_domain_index_counts(self):
        assert lucky_synergy(2, (6, 6, 6), 2) is LuckySynergy.STRONG

    def test_adjacent(self):
        assert lucky_synergy(3, (1, 4, 6), 1) is LuckySynergy.WEAK

    def test_none(self):
        assert lucky_synergy(3, (6, 6, 6), 6) is LuckySynergy.NONE

    def test_levels(self):
        assert [s.level for s in LuckySynergy] == [0, 1, 2]

    def test_rarity_bump(self):
        assert synergy_rarity_bump(LuckySynergy.NONE) == 0
        assert synergy_rarity_bump(LuckySynergy.WEAK) == 0
        assert synergy_rarity_bump(LuckySynergy.STRONG) == 1


# =============================================================================
# 5. Doors + Encounters
# =============================================================================


class TestChances:
    """Door and encounter percentages."""

    def test_door_chance_by_tier(self):
        assert door_chance("stable", 1) == 60.0
        assert door_chance("elite", 1) == 25.0
        assert door_chance("elite", 3) == 35.0
        assert door_chance("stable", 9) == 40.0

    def test_unknown_door(self):
        assert door_chance("portal", 1) == 0.0

    def test_encounter_chance(self):
        assert encounter_chance(0) == 20.0
        assert encounter_chance(2) == 50.0
        assert encounter_chance(0, aggressive=True) == 30.0
        assert encounter_chance(10) == 80.0

    def test_duel_chance(self):
        assert duel_chance(0) == 55.0
        assert duel_chance(2) == 45.0
        assert duel_chance(100) == 5.0


# =============================================================================
# 6. Config
# =============================================================================


class TestBalanceConfig:
    """Presets, validation and (de)serialization."""

    @pytest.mark.parametrize("name", sorted(PRESETS))
    def test_presets_validate(self, name):
        config = get_preset(name)
        assert config.name == name
        assert config.validate() is config

    def test_preset_alias(self):
        assert get_preset("riskReward").name == "risk_reward"

    def test_unknown_preset(self):
        with pytest.raises(InvalidConfigError, match="Unknown preset"):
            get_preset("impossible")

    def test_dict_round_trip(self):
        config = get_preset("brutal")
        assert BalanceConfig.from_dict(config.to_dict()) == config

    def test_to_dict_is_plain(self):
        data = DEFAULT_CONFIG.to_dict()
        assert isinstance(data["rewards"]["gold_by_tier"], list)
        assert set(SECTION_NAMES) <= set(data)

    def test_unknown_key(self):
        with pytest.raises(InvalidConfigError, match="unknown keys"):
            BalanceConfig.from_dict({"rewards": {"gold_per_room": 5}})

    def test_wrong_shape(self):
        with pytest.raises(InvalidConfigError):
            BalanceConfig.from_dict({"rewards": 5})

    def test_out_of_bounds_rejected(self):
        config = BalanceConfig(rewards=RewardConfig(heat_bonus_rate=5.0))
        with pytest.raises(InvalidConfigError, match="heat_bonus_rate"):
            config.validate()

    def test_non_monotonic_prices_rejected(self):
        config = BalanceConfig(pricing=PricingConfig(tier_multipliers=(1.0, 2.0, 1.5, 2.5, 3.0)))
        with pytest.raises(InvalidConfigError):
            config.validate()

    def test_invalid_config_is_value_error(self):
        with pytest.raises(ValueError):
            BalanceConfig(rewards=RewardConfig(gold_by_tier=(50, 100))).validate()

    def test_load_config_overrides(self):
        config = load_config({"rewards": {"heat_bonus_rate": 0.3}}, "balanced")
        assert config.rewards.heat_bonus_rate == 0.3
        assert config.rewards.gold_by_tier == (50, 100, 200)
        assert load_config(None, "easy") == get_preset("easy")

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_CONFIG.name = "changed"


class TestPerturbation:
    """Bounded mutation used by the tuner."""

    def test_stays_in_bounds(self):
        rand = random.Random(7)
        config = DEFAULT_CONFIG
        for _ in range(25):
            config = perturb_config(config, 0.5, rand.random)
            config.validate()

    def test_original_untouched(self):
        before = DEFAULT_CONFIG.to_dict()
        perturb_config(DEFAULT_CONFIG, 0.3, random.Random(1).random)
        assert DEFAULT_CONFIG.to_dict() == before

    def test_monotonic_tuples_stay_sorted(self):
        rand = random.Random(3)
        for _ in range(20):
            config = perturb_config(DEFAULT_CONFIG, 0.8, rand.random)
            assert list(config.pricing.tier_multipliers) == sorted(config.pricing.tier_multipliers)
            assert list(config.rewards.gold_by_tier) == sorted(config.rewards.gold_by_tier)

    def test_integer_knobs_stay_integers(self):
        config = perturb_config(DEFAULT_CONFIG, 0.5, random.Random(5).random)
        assert all(isinstance(g, int) for g in config.rewards.gold_by_tier)
        assert isinstance(config.pricing.base_reroll_cost, int)

    def test_targets_never_perturbed(self):
        config = perturb_config(DEFAULT_CONFIG, 0.9, random.Random(11).random)
        assert config.targets == DEFAULT_CONFIG.targets

    def test_zero_intensity_is_identity(self):
        config = perturb_config(DEFAULT_CONFIG, 0.0, random.Random(2).random)
        assert config == DEFAULT_CONFIG

    def test_tunable_fields(self):
        names = {f.name for f in tunable_fields(DEFAULT_CONFIG.rewards)}
        assert "gold_by_tier" in names
        assert "fallback_gold" not in names
