"""
Content Catalog - static lootable entities keyed by slug.

Entries are frozen dataclasses, one closed type per category:
- Item: shop/loot entries with rarity, category, element and effects
- Wanderer: encounter NPCs with home locations and a sponsor number
- Domain: the six run domains in progression order
- Traveler: playable characters with a lucky number and starting loadout

The ContentCatalog builds its lookup tables once and validates them at
construction: duplicate slugs, dangling references and malformed entries
raise CatalogError before any run starts. The engine never mutates it.
"""

from dataclasses import dataclass
from enum import Enum
from functools import total_ordering
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..errors import CatalogError


# =============================================================================
# Enums
# =============================================================================

@total_ordering
class Rarity(Enum):
    """Rarity ladder. Ordered: COMMON < UNCOMMON < ... < UNIQUE."""
    COMMON = "Common"
    UNCOMMON = "Uncommon"
    RARE = "Rare"
    EPIC = "Epic"
    LEGENDARY = "Legendary"
    UNIQUE = "Unique"

    @property
    def rank(self) -> int:
        return _RARITY_ORDER.index(self)

    def __lt__(self, other):
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank < other.rank


_RARITY_ORDER = list(Rarity)


class Element(Enum):
    VOID = "Void"
    EARTH = "Earth"
    DEATH = "Death"
    FIRE = "Fire"
    ICE = "Ice"
    WIND = "Wind"
    NEUTRAL = "Neutral"


class ItemCategory(Enum):
    WEAPON = "Weapon"
    ARMOR = "Armor"
    CONSUMABLE = "Consumable"
    MATERIAL = "Material"
    ARTIFACT = "Artifact"
    QUEST = "Quest"
    CURRENCY = "Currency"


class EffectKind(Enum):
    """Closed set of item effect kinds. Magnitude semantics per kind."""
    SCORE_BONUS = "score_bonus"              # flat score per room
    SCORE_MULTIPLIER = "score_multiplier"    # fractional score bonus (0.05 = +5%)
    GOLD_BONUS = "gold_bonus"                # flat gold per room clear
    INTEGRITY_SHIELD = "integrity_shield"    # integrity damage absorbed per hit
    REROLL_DISCOUNT = "reroll_discount"      # gold off each shop reroll
    HEAT_DAMPEN = "heat_dampen"              # fraction of heat ignored for goals


@dataclass(frozen=True)
class Effect:
    kind: EffectKind
    magnitude: float


# Relative weight of each kind when collapsing a payload into one power
# number for the virtual-player score model.
EFFECT_POWER_WEIGHTS: Dict[EffectKind, float] = {
    EffectKind.SCORE_BONUS: 1.0 / 500.0,
    EffectKind.SCORE_MULTIPLIER: 1.0,
    EffectKind.GOLD_BONUS: 1.0 / 400.0,
    EffectKind.INTEGRITY_SHIELD: 1.0 / 100.0,
    EffectKind.REROLL_DISCOUNT: 1.0 / 250.0,
    EffectKind.HEAT_DAMPEN: 0.5,
}


def effect_power(effects: Iterable[Effect]) -> float:
    """Collapse an effect payload into a single scalar power value."""
    total = 0.0
    for effect in effects:
        weight = EFFECT_POWER_WEIGHTS.get(effect.kind)
        if weight is None:
            raise CatalogError(f"Unhandled effect kind: {effect.kind}")
        total += effect.magnitude * weight
    return total


def effect_total(effects: Iterable[Effect], kind: EffectKind) -> float:
    """Sum the magnitudes of one effect kind across a payload."""
    return sum(e.magnitude for e in effects if e.kind is kind)


# =============================================================================
# Entry Types
# =============================================================================

@dataclass(frozen=True)
class Item:
    slug: str
    name: str
    category: ItemCategory
    rarity: Rarity
    element: Element = Element.NEUTRAL
    value: int = 50
    effects: Tuple[Effect, ...] = ()

    @property
    def power(self) -> float:
        return effect_power(self.effects)


@dataclass(frozen=True)
class Wanderer:
    slug: str
    name: str
    rarity: Rarity
    element: Element = Element.NEUTRAL
    locations: Tuple[str, ...] = ()
    sponsor: int = 1  # 1-6, matched against the protocol roll sponsor die


@dataclass(frozen=True)
class Domain:
    index: int  # 1-6, progression order
    slug: str
    name: str
    element: Element
    base_score_goal: int


@dataclass(frozen=True)
class Traveler:
    slug: str
    name: str
    lucky_number: int  # 7 = wildcard
    element: Element = Element.NEUTRAL
    starting_loadout: Tuple[str, ...] = ()


CatalogEntry = Union[Item, Wanderer]


# =============================================================================
# Catalog
# =============================================================================

class ContentCatalog:
    """
    Read-only, slug-keyed catalog.

    Iteration order of every query is the declaration order of the
    source tables, so sampling built on top of it is reproducible.
    """

    def __init__(
        self,
        items: Sequence[Item],
        wanderers: Sequence[Wanderer] = (),
        domains: Sequence[Domain] = (),
        travelers: Sequence[Traveler] = (),
    ):
        self._items: Dict[str, Item] = self._index("item", items, Item)
        self._wanderers: Dict[str, Wanderer] = self._index("wanderer", wanderers, Wanderer)
        self._domains: Dict[str, Domain] = self._index("domain", domains, Domain)
        self._travelers: Dict[str, Traveler] = self._index("traveler", travelers, Traveler)
        self._domains_by_index: Dict[int, Domain] = {}
        self._validate()

    @staticmethod
    def _index(kind: str, entries: Iterable, expected_type: type) -> dict:
        table = {}
        for entry in entries:
            if not isinstance(entry, expected_type):
                raise CatalogError(f"Expected {expected_type.__name__} in {kind} table, got {entry!r}")
            if not entry.slug:
                raise CatalogError(f"Empty slug in {kind} table")
            if entry.slug in table:
                raise CatalogError(f"Duplicate {kind} slug: {entry.slug}")
            table[entry.slug] = entry
        return table

    def _validate(self) -> None:
        for item in self._items.values():
            if item.value < 0:
                raise CatalogError(f"Item {item.slug} has negative value {item.value}")

        for domain in self._domains.values():
            if domain.index in self._domains_by_index:
                raise CatalogError(f"Duplicate domain index: {domain.index}")
            if domain.base_score_goal <= 0:
                raise CatalogError(f"Domain {domain.slug} has non-positive score goal")
            self._domains_by_index[domain.index] = domain

        known_locations = set(self._domains) | {"mobile"}
        for wanderer in self._wanderers.values():
            if not 1 <= wanderer.sponsor <= 6:
                raise CatalogError(f"Wanderer {wanderer.slug} sponsor out of range: {wanderer.sponsor}")
            for location in wanderer.locations:
                if self._domains and location not in known_locations:
                    raise CatalogError(f"Wanderer {wanderer.slug} references unknown location {location}")

        for traveler in self._travelers.values():
            if not 0 <= traveler.lucky_number <= 7:
                raise CatalogError(f"Traveler {traveler.slug} lucky number out of range")
            for slug in traveler.starting_loadout:
                if slug not in self._items:
                    raise CatalogError(f"Traveler {traveler.slug} loadout references unknown item {slug}")

    def __repr__(self) -> str:
        return (f"ContentCatalog(items={len(self._items)}, wanderers={len(self._wanderers)}, "
                f"domains={len(self._domains)}, travelers={len(self._travelers)})")

    # Lookups (unknown slugs raise KeyError)

    def item(self, slug: str) -> Item:
        return self._items[slug]

    def wanderer(self, slug: str) -> Wanderer:
        return self._wanderers[slug]

    def traveler(self, slug: str) -> Traveler:
        return self._travelers[slug]

    def domain(self, key: Union[int, str]) -> Domain:
        if isinstance(key, int):
            return self._domains_by_index[key]
        return self._domains[key]

    def has_item(self, slug: str) -> bool:
        return slug in self._items

    @property
    def items(self) -> List[Item]:
        return list(self._items.values())

    @property
    def wanderers(self) -> List[Wanderer]:
        return list(self._wanderers.values())

    @property
    def domains(self) -> List[Domain]:
        return sorted(self._domains.values(), key=lambda d: d.index)

    @property
    def travelers(self) -> List[Traveler]:
        return list(self._travelers.values())

    @property
    def domain_count(self) -> int:
        return len(self._domains)

    def items_for_rarities(
        self,
        rarities: Iterable[Rarity],
        excluded: Iterable[ItemCategory] = (),
    ) -> List[Item]:
        allowed = set(rarities)
        blocked = set(excluded)
        return [
            item for item in self._items.values()
            if item.rarity in allowed and item.category not in blocked
        ]

    def wanderers_for_domain(self, domain_slug: str) -> List[Wanderer]:
        """Wanderers found in a domain: listed there, mobile, or unrestricted."""
        return [
            w for w in self._wanderers.values()
            if not w.locations or domain_slug in w.locations or "mobile" in w.locations
        ]

    def element_for(self, domain: Union[int, str, None]) -> Optional[Element]:
        if domain is None:
            return None
        try:
            return self.domain(domain).element
        except KeyError:
            return None
