"""
Virtual players.

A persona is two numbers: `risk` (appetite for elite/anomaly doors and
for provoking wanderers) and `safety` (propensity to skip rooms and to
decline). Every decision draws from the run's own RngPool under
`sim:{persona}:{decision}:...`, so a batch is reproducible from the base
seed and run index alone.
"""

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence

from ..content.catalog import Item
from ..generation.doors import DoorPreview, DoorType
from ..state.ledger import WandererChoice
from ..state.rng import RngPool


LOW_INTEGRITY_RATIO = 0.30
SKIP_SCALE = 0.2  # safety -> per-room skip chance


@dataclass(frozen=True)
class Persona:
    name: str
    risk: float
    safety: float

    def adjusted(self, integrity_ratio: float) -> "Persona":
        """Play it safer when integrity is low."""
        if integrity_ratio >= LOW_INTEGRITY_RATIO:
            return self
        return replace(self, risk=self.risk * 0.5, safety=min(1.0, self.safety + 0.2))

    def _ns(self, decision: str, domain_index: int, room_index: int) -> str:
        return f"sim:{self.name}:{decision}:domain:{domain_index}:room:{room_index}"

    # Decisions

    def choose_door(
        self,
        rng: RngPool,
        doors: Sequence[DoorPreview],
        domain_index: int,
        room_index: int,
    ) -> DoorPreview:
        risky = [d for d in doors if d.is_risky]
        safe = [d for d in doors if d.door_type is DoorType.STABLE] or list(doors)
        ns = self._ns("door", domain_index, room_index)
        if risky and rng.random(ns) < self.risk:
            return rng.pick(ns, risky)
        return safe[0]

    def should_skip(self, rng: RngPool, domain_index: int, room_index: int) -> bool:
        return rng.random(self._ns("skip", domain_index, room_index)) < self.safety * SKIP_SCALE

    def wanderer_choice(self, rng: RngPool, domain_index: int, room_index: int) -> WandererChoice:
        roll = rng.random(self._ns("wanderer", domain_index, room_index))
        if roll < self.risk:
            return WandererChoice.PROVOKE
        if roll < self.risk + self.safety:
            return WandererChoice.DECLINE
        return WandererChoice.ACCEPT

    def shopping_list(
        self,
        offer: Sequence[Item],
        prices: Dict[str, int],
        gold: int,
        free_slots: int,
    ) -> List[Item]:
        """Strongest affordable items first; cautious players keep a reserve."""
        reserve = int(gold * self.safety * 0.5)
        budget = gold - reserve
        picked: List[Item] = []
        for item in sorted(offer, key=lambda i: (-i.power, prices[i.slug], i.slug)):
            if len(picked) >= free_slots:
                break
            price = prices[item.slug]
            if price <= budget:
                picked.append(item)
                budget -= price
        return picked

    def wants_reroll(self, gold: int, reroll_cost: int, rerolls: int) -> bool:
        return rerolls == 0 and self.risk >= 0.5 and gold >= reroll_cost * 3


PERSONAS: Dict[str, Persona] = {
    "cautious": Persona("cautious", risk=0.10, safety=0.50),
    "balanced": Persona("balanced", risk=0.33, safety=0.33),
    "aggressive": Persona("aggressive", risk=0.60, safety=0.10),
}

PERSONA_ORDER = ("cautious", "balanced", "aggressive")


def get_persona(name: str) -> Persona:
    try:
        return PERSONAS[name]
    except KeyError:
        raise ValueError(f"Unknown persona {name!r}; expected one of {', '.join(PERSONA_ORDER)}")


def persona_for_run(index: int, names: Optional[Sequence[str]] = None) -> Persona:
    """Round-robin assignment over `names` (all personas by default)."""
    names = tuple(names) if names else PERSONA_ORDER
    return get_persona(names[index % len(names)])
