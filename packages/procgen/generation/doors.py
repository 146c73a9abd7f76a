"""
Door generation - which corridors are offered and what they promise.

Door types, from safest to most hazardous:
    stable   - always offered
    anomaly  - separate tier-scaled chance, odd promises
    elite    - from a minimum room onward, tier-scaled chance, raises heat
    audit    - the boss corridor, entered from audit_warning

Offer chances come from balance.door_chance so door frequency is tuned
through BalanceConfig rather than here.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..balance.config import BalanceConfig, DEFAULT_CONFIG
from ..balance.engine import door_chance, door_min_room
from ..content.catalog import Domain, Element
from ..state.rng import RngPool
from .pools import PoolEntry, PoolKind, PoolResult


class DoorType(Enum):
    STABLE = "stable"
    ELITE = "elite"
    ANOMALY = "anomaly"
    AUDIT = "audit"


class DoorPromise(Enum):
    CREDITS = "+Credits"
    DATA = "+Data"
    RARE_ISSUANCE = "Rare Issuance"
    ANOMALY_CHANCE = "Anomaly Chance"
    WANDERER_BIAS = "Wanderer Bias"
    HEAT_SPIKE = "Heat Spike"
    OVERRIDE = "Override"


DOOR_LABELS: Dict[DoorType, str] = {
    DoorType.STABLE: "Stable Corridor",
    DoorType.ELITE: "High Heat Sector",
    DoorType.ANOMALY: "Anomaly Node",
    DoorType.AUDIT: "Director Audit",
}

DOOR_DIFFICULTY: Dict[DoorType, int] = {
    DoorType.STABLE: 2,
    DoorType.ELITE: 4,
    DoorType.ANOMALY: 3,
    DoorType.AUDIT: 5,
}

# Heat added simply by walking through the door
DOOR_HEAT: Dict[DoorType, int] = {
    DoorType.STABLE: 0,
    DoorType.ELITE: 1,
    DoorType.ANOMALY: 0,
    DoorType.AUDIT: 0,
}


@dataclass(frozen=True)
class DoorPreview:
    door_type: DoorType
    promises: Tuple[DoorPromise, ...]
    difficulty: int
    element: Optional[Element]
    label: str

    @property
    def slug(self) -> str:
        return self.door_type.value

    @property
    def is_risky(self) -> bool:
        return self.door_type in (DoorType.ELITE, DoorType.ANOMALY, DoorType.AUDIT)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "door_type": self.door_type.value,
            "promises": [p.value for p in self.promises],
            "difficulty": self.difficulty,
            "element": self.element.value if self.element else None,
            "label": self.label,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DoorPreview":
        element = data.get("element")
        door_type = DoorType(data["door_type"])
        return cls(
            door_type=door_type,
            promises=tuple(DoorPromise(p) for p in data.get("promises", ())),
            difficulty=int(data.get("difficulty", DOOR_DIFFICULTY[door_type])),
            element=Element(element) if element else None,
            label=data.get("label", DOOR_LABELS[door_type]),
        )


# =============================================================================
# Promise effects
# =============================================================================

@dataclass(frozen=True)
class PromiseEffects:
    """Resolved effect of a door's promises on the room behind it."""
    heat: int = 0
    gold_bonus: float = 0.0
    rarity_bump: int = 0
    override: bool = False
    encounter_bonus: float = 0.0
    sponsor_bias: int = 0


def promise_effects(
    door_type: DoorType,
    promises: Iterable[DoorPromise],
    config: BalanceConfig = DEFAULT_CONFIG,
) -> PromiseEffects:
    heat = DOOR_HEAT[door_type]
    gold_bonus = 0.0
    rarity_bump = 0
    override = False
    encounter_bonus = 0.0
    sponsor_bias = 0
    for promise in promises:
        if promise is DoorPromise.CREDITS:
            gold_bonus += config.rewards.credits_promise_bonus
        elif promise is DoorPromise.DATA:
            pass  # informational only
        elif promise is DoorPromise.RARE_ISSUANCE:
            rarity_bump += 1
        elif promise is DoorPromise.ANOMALY_CHANCE:
            encounter_bonus += config.encounters.anomaly_promise_bonus
        elif promise is DoorPromise.WANDERER_BIAS:
            sponsor_bias += 1
        elif promise is DoorPromise.HEAT_SPIKE:
            heat += 1
        elif promise is DoorPromise.OVERRIDE:
            override = True
        else:
            raise ValueError(f"Unknown door promise: {promise}")
    return PromiseEffects(
        heat=heat,
        gold_bonus=gold_bonus,
        rarity_bump=min(rarity_bump, 2),
        override=override,
        encounter_bonus=encounter_bonus,
        sponsor_bias=sponsor_bias,
    )


# =============================================================================
# Previews
# =============================================================================

def _element(domain: Optional[Domain]) -> Optional[Element]:
    return domain.element if domain is not None else None


def door_preview(
    rng: RngPool,
    door_type: DoorType,
    domain: Optional[Domain],
    room_index: int,
) -> DoorPreview:
    namespace = f"doorPreview:{door_type.value}:room:{room_index}"

    if door_type is DoorType.STABLE:
        promises = (
            DoorPromise.CREDITS,
            DoorPromise.DATA if rng.chance(namespace, 30) else DoorPromise.CREDITS,
        )
    elif door_type is DoorType.ELITE:
        promises = (
            DoorPromise.CREDITS,
            DoorPromise.RARE_ISSUANCE,
            DoorPromise.HEAT_SPIKE if rng.chance(namespace, 40) else DoorPromise.DATA,
        )
    elif door_type is DoorType.ANOMALY:
        first = DoorPromise.ANOMALY_CHANCE if rng.chance(namespace, 50) else DoorPromise.WANDERER_BIAS
        second = DoorPromise.OVERRIDE if rng.chance(namespace, 30) else DoorPromise.RARE_ISSUANCE
        promises = (first, second)
    else:
        promises = (DoorPromise.RARE_ISSUANCE, DoorPromise.OVERRIDE, DoorPromise.HEAT_SPIKE)

    return DoorPreview(
        door_type=door_type,
        promises=promises,
        difficulty=DOOR_DIFFICULTY[door_type],
        element=_element(domain),
        label=DOOR_LABELS[door_type],
    )


def available_doors(
    rng: RngPool,
    domain: Optional[Domain],
    room_index: int,
    tier: int,
    config: BalanceConfig = DEFAULT_CONFIG,
) -> PoolResult:
    """Stable always; elite and anomaly behind their own chance rolls."""
    namespace = f"doorSelect:room:{room_index}:tier:{tier}"
    doors: List[DoorPreview] = [door_preview(rng, DoorType.STABLE, domain, room_index)]

    if (room_index >= door_min_room(DoorType.ELITE, config)
            and rng.chance(f"{namespace}:elite", door_chance(DoorType.ELITE, tier, config))):
        doors.append(door_preview(rng, DoorType.ELITE, domain, room_index))

    if rng.chance(f"{namespace}:anomaly", door_chance(DoorType.ANOMALY, tier, config)):
        doors.append(door_preview(rng, DoorType.ANOMALY, domain, room_index))

    return PoolResult(
        PoolKind.DOOR,
        tuple(PoolEntry(door) for door in doors),
        len(doors),
        namespace,
        tier,
    )
