"""
Balance Configuration - the numeric knobs behind the run economy.

BalanceConfig is a frozen, nested value object. Each section groups the
levers of one concern (rewards, pricing, difficulty, doors, encounters,
tier progression, wanderer effects, lucky synergy, the virtual-player
score model, and the target metrics the tuner aims for).

Fields declared with `knob(...)` carry (low, high) bounds in their
dataclass metadata. The genetic tuner only touches those fields and
always keeps them inside their bounds; everything else is structural.

Presets:
    balanced     - default tuning target
    brutal       - harder goals, leaner rewards
    easy         - softer goals, higher target win rate
    risk_reward  - juicier elite doors and heat payouts, more items

Usage:
    config = get_preset("balanced")
    config.validate()
    data = config.to_dict()
    same = BalanceConfig.from_dict(data)
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..errors import InvalidConfigError


def knob(default, low: float, high: float, integer: bool = False, monotonic: bool = False):
    """Declare a tunable field with inclusive bounds."""
    return field(
        default=default,
        metadata={"tunable": True, "low": low, "high": high,
                  "integer": integer, "monotonic": monotonic},
    )


# =============================================================================
# Sections
# =============================================================================

@dataclass(frozen=True)
class RewardConfig:
    # Gold by event reward tier (small, big, boss)
    gold_by_tier: Tuple[int, ...] = knob((50, 100, 200), 10, 600, integer=True, monotonic=True)
    fallback_gold: int = 50
    domain_increment: float = knob(0.5, 0.05, 1.5)
    heat_bonus_rate: float = knob(0.20, 0.0, 0.6)
    max_heat_multiplier: float = knob(2.0, 1.0, 4.0)
    # Gold multiplier per synergy level (none, weak, strong)
    synergy_gold: Tuple[float, ...] = knob((1.0, 1.10, 1.25), 1.0, 2.0, monotonic=True)
    credits_promise_bonus: float = knob(0.10, 0.0, 0.5)


@dataclass(frozen=True)
class PricingConfig:
    tier_multipliers: Tuple[float, ...] = knob((1.0, 1.2, 1.5, 2.0, 2.5), 0.5, 5.0, monotonic=True)
    favor_discount_per_token: float = knob(0.15, 0.0, 0.5)
    max_favor_discount: float = knob(0.5, 0.0, 0.9)
    min_price: int = 1
    base_reroll_cost: int = knob(25, 5, 100, integer=True)
    reroll_reduction_per_calm: int = knob(5, 0, 25, integer=True)


@dataclass(frozen=True)
class DifficultyConfig:
    goal_scale: float = knob(1.0, 0.3, 3.0)
    # Score goal multiplier per room (small, big, boss)
    room_multipliers: Tuple[float, ...] = knob((0.6, 1.0, 1.5), 0.2, 3.0, monotonic=True)
    final_boss_multiplier: float = knob(1.8, 1.0, 3.0)
    heat_difficulty_rate: float = knob(0.15, 0.0, 0.5)


@dataclass(frozen=True)
class DoorWeight:
    base: float
    per_tier: float = 0.0
    minimum: float = 5.0
    min_room: int = 1


@dataclass(frozen=True)
class DoorConfig:
    stable: DoorWeight = DoorWeight(60.0, -5.0, 30.0)
    elite: DoorWeight = DoorWeight(25.0, 5.0, 5.0, min_room=1)
    anomaly: DoorWeight = DoorWeight(15.0, 0.0, 5.0)
    audit: DoorWeight = DoorWeight(100.0, 0.0, 100.0, min_room=3)


@dataclass(frozen=True)
class EncounterConfig:
    base_chance: float = knob(20.0, 0.0, 60.0)
    skip_pressure_bonus: float = knob(15.0, 0.0, 40.0)
    max_chance: float = knob(80.0, 20.0, 100.0)
    aggressive_bonus: float = 10.0
    anomaly_promise_bonus: float = 15.0
    sponsor_bias_chance: float = 70.0


@dataclass(frozen=True)
class TierConfig:
    starting_tier: int = 1
    max_tier: int = 5
    grace_domains: int = 1
    domains_per_tier: int = 1


@dataclass(frozen=True)
class WandererConfig:
    favor_per_accept: int = 1
    calm_per_decline: int = 1
    heat_per_provoke: int = 1
    duel_win_gold: int = knob(50, 0, 200, integer=True)
    duel_loss_damage: int = knob(15, 0, 60, integer=True)
    duel_base_chance: float = knob(55.0, 10.0, 90.0)
    duel_heat_penalty: float = knob(5.0, 0.0, 20.0)


@dataclass(frozen=True)
class SynergyConfig:
    wildcard: int = 7
    strong_matches: int = 1
    adjacency: int = 1
    # Rarity steps granted per synergy level (none, weak, strong)
    rarity_bump: Tuple[int, ...] = (0, 0, 1)


@dataclass(frozen=True)
class PlayerModel:
    """Virtual-player score model used by the simulator."""
    starting_gold: int = 0
    max_integrity: int = 100
    item_slots: int = knob(8, 3, 16, integer=True)
    base_performance: float = knob(1.05, 0.5, 2.0)
    performance_spread: float = knob(0.45, 0.05, 1.0)
    power_weight: float = knob(0.60, 0.0, 3.0)
    synergy_performance_bonus: float = knob(0.03, 0.0, 0.2)
    risk_reward_bias: float = 0.05


@dataclass(frozen=True)
class TargetMetrics:
    win_rate: float = 0.30
    # Fraction of runs that clear each domain (1..6)
    domain_survival: Tuple[float, ...] = (0.95, 0.82, 0.68, 0.55, 0.42, 0.30)
    avg_items: float = 4.0
    elite_rate: float = 0.375
    max_error_rate: float = 0.0


SECTION_NAMES: Tuple[str, ...] = (
    "rewards", "pricing", "difficulty", "doors", "encounters",
    "tiers", "wanderers", "synergy", "player", "targets",
)


@dataclass(frozen=True)
class BalanceConfig:
    name: str = "balanced"
    rewards: RewardConfig = field(default_factory=RewardConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    difficulty: DifficultyConfig = field(default_factory=DifficultyConfig)
    doors: DoorConfig = field(default_factory=DoorConfig)
    encounters: EncounterConfig = field(default_factory=EncounterConfig)
    tiers: TierConfig = field(default_factory=TierConfig)
    wanderers: WandererConfig = field(default_factory=WandererConfig)
    synergy: SynergyConfig = field(default_factory=SynergyConfig)
    player: PlayerModel = field(default_factory=PlayerModel)
    targets: TargetMetrics = field(default_factory=TargetMetrics)

    def validate(self) -> "BalanceConfig":
        """Raise InvalidConfigError on malformed values; returns self."""
        errors = _collect_errors(self)
        if errors:
            raise InvalidConfigError("; ".join(errors))
        return self

    def to_dict(self) -> Dict[str, Any]:
        return _to_plain(dataclasses.asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BalanceConfig":
        return _build(cls, data, "config").validate()

    def replace(self, **changes) -> "BalanceConfig":
        return dataclasses.replace(self, **changes)


# =============================================================================
# Validation + (de)serialization
# =============================================================================

def _collect_errors(config: BalanceConfig) -> List[str]:
    errors = []

    def expect(condition: bool, message: str) -> None:
        if not condition:
            errors.append(message)

    r, p, d, t = config.rewards, config.pricing, config.difficulty, config.tiers
    expect(len(r.gold_by_tier) == 3, "rewards.gold_by_tier needs 3 entries")
    expect(all(g > 0 for g in r.gold_by_tier), "rewards.gold_by_tier must be positive")
    expect(r.fallback_gold > 0, "rewards.fallback_gold must be positive")
    expect(len(r.synergy_gold) == 3, "rewards.synergy_gold needs 3 entries")
    expect(r.max_heat_multiplier >= 1.0, "rewards.max_heat_multiplier must be >= 1")

    expect(len(p.tier_multipliers) == t.max_tier, "pricing.tier_multipliers must cover every tier")
    expect(all(a <= b for a, b in zip(p.tier_multipliers, p.tier_multipliers[1:])),
           "pricing.tier_multipliers must be non-decreasing")
    expect(all(m > 0 for m in p.tier_multipliers), "pricing.tier_multipliers must be positive")
    expect(0.0 <= p.max_favor_discount < 1.0, "pricing.max_favor_discount must be in [0, 1)")
    expect(p.min_price >= 0, "pricing.min_price must be >= 0")
    expect(p.base_reroll_cost >= 0, "pricing.base_reroll_cost must be >= 0")

    expect(d.goal_scale > 0, "difficulty.goal_scale must be positive")
    expect(len(d.room_multipliers) == 3, "difficulty.room_multipliers needs 3 entries")
    expect(all(m > 0 for m in d.room_multipliers), "difficulty.room_multipliers must be positive")

    for door_name in ("stable", "elite", "anomaly", "audit"):
        weight = getattr(config.doors, door_name)
        expect(0.0 <= weight.minimum <= 100.0, f"doors.{door_name}.minimum must be a percentage")

    e = config.encounters
    expect(0.0 <= e.base_chance <= 100.0, "encounters.base_chance must be a percentage")
    expect(0.0 <= e.max_chance <= 100.0, "encounters.max_chance must be a percentage")

    expect(1 <= t.starting_tier <= t.max_tier, "tiers.starting_tier must be within 1..max_tier")
    expect(t.domains_per_tier >= 1, "tiers.domains_per_tier must be >= 1")

    s = config.synergy
    expect(len(s.rarity_bump) == 3, "synergy.rarity_bump needs 3 entries")
    expect(all(0 <= b <= 2 for b in s.rarity_bump), "synergy.rarity_bump entries must be 0-2")
    expect(s.strong_matches >= 1, "synergy.strong_matches must be >= 1")

    pl = config.player
    expect(pl.max_integrity > 0, "player.max_integrity must be positive")
    expect(pl.starting_gold >= 0, "player.starting_gold must be >= 0")

    tg = config.targets
    expect(0.0 <= tg.win_rate <= 1.0, "targets.win_rate must be in [0, 1]")
    expect(len(tg.domain_survival) == 6, "targets.domain_survival needs 6 entries")

    # Bounds on tunable knobs
    for section_name in SECTION_NAMES:
        section = getattr(config, section_name)
        for f in dataclasses.fields(section):
            if not f.metadata.get("tunable"):
                continue
            value = getattr(section, f.name)
            values = value if isinstance(value, tuple) else (value,)
            low, high = f.metadata["low"], f.metadata["high"]
            if any(v < low or v > high for v in values):
                errors.append(f"{section_name}.{f.name}={value!r} outside [{low}, {high}]")
    return errors


def _to_plain(value):
    if isinstance(value, dict):
        return {k: _to_plain(v) for k, v in value.items()}
    if isinstance(value, (tuple, list)):
        return [_to_plain(v) for v in value]
    return value


def _build(cls, data: Any, path: str):
    if not isinstance(data, dict):
        raise InvalidConfigError(f"{path}: expected an object, got {type(data).__name__}")
    known = {f.name: f for f in dataclasses.fields(cls)}
    unknown = set(data) - set(known)
    if unknown:
        raise InvalidConfigError(f"{path}: unknown keys {sorted(unknown)}")

    kwargs = {}
    for name, value in data.items():
        default = getattr(cls(), name) if _has_defaults(cls) else None
        if dataclasses.is_dataclass(default):
            kwargs[name] = _build(type(default), value, f"{path}.{name}")
        elif isinstance(default, tuple):
            if not isinstance(value, (list, tuple)):
                raise InvalidConfigError(f"{path}.{name}: expected a list")
            kwargs[name] = tuple(value)
        else:
            kwargs[name] = value
    try:
        return cls(**kwargs)
    except TypeError as e:
        raise InvalidConfigError(f"{path}: {e}") from e


def _has_defaults(cls) -> bool:
    return all(
        f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING
        for f in dataclasses.fields(cls)
    )


# =============================================================================
# Presets
# =============================================================================

def _balanced() -> BalanceConfig:
    return BalanceConfig(name="balanced")


def _brutal() -> BalanceConfig:
    return BalanceConfig(
        name="brutal",
        rewards=RewardConfig(gold_by_tier=(40, 80, 160), heat_bonus_rate=0.15),
        difficulty=DifficultyConfig(goal_scale=1.15, heat_difficulty_rate=0.20),
        encounters=EncounterConfig(base_chance=25.0),
        player=PlayerModel(performance_spread=0.5),
        targets=TargetMetrics(
            win_rate=0.30,
            domain_survival=(0.90, 0.78, 0.60, 0.50, 0.40, 0.30),
            avg_items=3.0,
        ),
    )


def _easy() -> BalanceConfig:
    return BalanceConfig(
        name="easy",
        rewards=RewardConfig(gold_by_tier=(60, 120, 240)),
        pricing=PricingConfig(favor_discount_per_token=0.20),
        difficulty=DifficultyConfig(goal_scale=0.85, heat_difficulty_rate=0.10),
        player=PlayerModel(starting_gold=50, base_performance=1.1),
        targets=TargetMetrics(
            win_rate=0.50,
            domain_survival=(0.98, 0.92, 0.85, 0.72, 0.60, 0.50),
            avg_items=5.0,
        ),
    )


def _risk_reward() -> BalanceConfig:
    return BalanceConfig(
        name="risk_reward",
        rewards=RewardConfig(heat_bonus_rate=0.30, max_heat_multiplier=2.5),
        doors=DoorConfig(elite=DoorWeight(35.0, 5.0, 10.0, min_room=1),
                         anomaly=DoorWeight(20.0, 2.0, 5.0)),
        player=PlayerModel(risk_reward_bias=0.10),
        targets=TargetMetrics(
            win_rate=0.30,
            domain_survival=(0.92, 0.80, 0.65, 0.52, 0.40, 0.30),
            avg_items=7.0,
            elite_rate=0.45,
        ),
    )


PRESETS: Dict[str, Callable[[], BalanceConfig]] = {
    "balanced": _balanced,
    "brutal": _brutal,
    "easy": _easy,
    "risk_reward": _risk_reward,
}

PRESET_ALIASES: Dict[str, str] = {"riskReward": "risk_reward", "risk-reward": "risk_reward"}

DEFAULT_CONFIG = BalanceConfig()


def get_preset(name: str) -> BalanceConfig:
    key = PRESET_ALIASES.get(name, name)
    if key not in PRESETS:
        raise InvalidConfigError(
            f"Unknown preset {name!r}. Choose from: {', '.join(sorted(PRESETS))}"
        )
    return PRESETS[key]().validate()


def load_config(data: Optional[Dict[str, Any]] = None, preset: str = "balanced") -> BalanceConfig:
    """Preset, optionally overridden section-by-section from a dict."""
    base = get_preset(preset)
    if not data:
        return base
    merged = base.to_dict()
    for key, value in data.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return BalanceConfig.from_dict(merged)


# =============================================================================
# Perturbation
# =============================================================================

def tunable_fields(section) -> List[dataclasses.Field]:
    return [f for f in dataclasses.fields(section) if f.metadata.get("tunable")]


def _clamp_value(value: float, meta: Dict[str, Any]) -> float:
    value = min(max(value, meta["low"]), meta["high"])
    if meta["integer"]:
        value = int(round(value))
    return value


def perturb_value(value, meta: Dict[str, Any], intensity: float, next_float: Callable[[], float]):
    """Bounded relative delta: value + (r - 0.5) * 2 * intensity * value."""
    def one(v):
        delta = (next_float() - 0.5) * 2 * intensity * v
        return _clamp_value(v + delta, meta)

    if isinstance(value, tuple):
        result = [one(v) for v in value]
        if meta.get("monotonic"):
            for i in range(1, len(result)):
                result[i] = max(result[i], result[i - 1])
        return tuple(result)
    return one(value)


def perturb_section(section, intensity: float, next_float: Callable[[], float]):
    changes = {
        f.name: perturb_value(getattr(section, f.name), f.metadata, intensity, next_float)
        for f in tunable_fields(section)
    }
    return dataclasses.replace(section, **changes) if changes else section


def perturb_config(
    config: BalanceConfig,
    intensity: float,
    next_float: Callable[[], float],
    sections: Tuple[str, ...] = SECTION_NAMES,
) -> BalanceConfig:
    """New config with every tunable knob nudged. Never mutates `config`."""
    changes = {}
    for name in sections:
        if name == "targets":
            continue
        changes[name] = perturb_section(getattr(config, name), intensity, next_float)
    return dataclasses.replace(config, **changes)
