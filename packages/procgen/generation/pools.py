"""
Requisition Pool Generation - seeded, tiered shop/loot selection.

A requisition pool is built in five steps:
1. Map the run tier (raised by lucky-synergy rarity bump, capped at 5)
   to an allowed rarity set.
2. Filter the catalog by rarity and excluded categories (Quest and
   Currency by default).
3. Stable-sort entries whose element matches the domain ahead of the
   rest. Catalog order is otherwise preserved.
4. If fewer than `count` entries survive, widen with the pool one tier
   below (floor 1), skipping duplicates.
5. Sample `count` entries with pick_n under the namespace
       requisition:tier:{effective}:domain:{slug}[:reroll:{n}]

An optional override pulls one Epic/Legendary entry from its own
`{namespace}:override` stream, prepends it, and drops the tail entry if
the pool would overflow.

Pools are never cached: the same inputs plus a fresh RngPool always
rebuild the same selection, and the run ledger stores the chosen slugs.

Usage:
    rng = RngPool("ABC123")
    pool = requisition_pool(rng, catalog, tier=1, domain="meadow", count=3)
    if pool.is_empty:
        show(pool.message)
    for entry in pool:
        print(entry.slug, entry.price)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from ..balance.config import BalanceConfig, DEFAULT_CONFIG
from ..balance.engine import item_price
from ..content.catalog import ContentCatalog, Domain, Element, Item, ItemCategory, Rarity
from ..state.rng import RngPool


# =============================================================================
# Constants
# =============================================================================

MAX_TIER = 5

TIER_RARITY_MAP: Dict[int, Tuple[Rarity, ...]] = {
    1: (Rarity.COMMON, Rarity.UNCOMMON),
    2: (Rarity.COMMON, Rarity.UNCOMMON, Rarity.RARE),
    3: (Rarity.UNCOMMON, Rarity.RARE, Rarity.EPIC),
    4: (Rarity.RARE, Rarity.EPIC, Rarity.LEGENDARY),
    5: (Rarity.EPIC, Rarity.LEGENDARY, Rarity.UNIQUE),
}

EXCLUDED_CATEGORIES: Tuple[ItemCategory, ...] = (ItemCategory.QUEST, ItemCategory.CURRENCY)

OVERRIDE_RARITIES: Tuple[Rarity, ...] = (Rarity.EPIC, Rarity.LEGENDARY)

DEFAULT_POOL_SIZE = 3
STARTER_KIT_SIZE = 3


class PoolKind(Enum):
    REQUISITION = "requisition"
    DOOR = "door"
    WANDERER = "wanderer"
    LOOT = "loot"
    STARTER_KIT = "starter_kit"


EMPTY_POOL_MESSAGES: Dict[str, str] = {
    "requisition": "NO ISSUANCE AVAILABLE",
    "door": "CORRIDOR SEALED",
    "wanderer": "SIGNAL LOST",
    "loot": "CACHE CORRUPTED",
    "default": "DATA REDACTED",
}


def empty_pool_message(context: Union[PoolKind, str]) -> str:
    key = context.value if isinstance(context, PoolKind) else context
    return EMPTY_POOL_MESSAGES.get(key, EMPTY_POOL_MESSAGES["default"])


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class PoolEntry:
    """One selected entry plus its computed price (None when not for sale)."""
    entry: Any
    price: Optional[int] = None

    @property
    def slug(self) -> str:
        return self.entry.slug

    def to_dict(self) -> Dict[str, Any]:
        data = {"slug": self.slug, "price": self.price}
        rarity = getattr(self.entry, "rarity", None)
        if rarity is not None:
            data["rarity"] = rarity.value
        return data


@dataclass(frozen=True)
class PoolResult:
    """
    Ordered selection for one decision point.

    An empty result is a value, not an error: check `is_empty` and show
    `message`. `underfilled` is set whenever fewer than `requested`
    entries were available.
    """
    kind: PoolKind
    entries: Tuple[PoolEntry, ...]
    requested: int
    namespace: str = ""
    tier: int = 0

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[PoolEntry]:
        return iter(self.entries)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def underfilled(self) -> bool:
        return len(self.entries) < self.requested

    @property
    def message(self) -> str:
        return empty_pool_message(self.kind) if self.is_empty else ""

    @property
    def slugs(self) -> List[str]:
        return [e.slug for e in self.entries]

    @property
    def values(self) -> List[Any]:
        return [e.entry for e in self.entries]

    def price_of(self, slug: str) -> Optional[int]:
        for entry in self.entries:
            if entry.slug == slug:
                return entry.price
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "namespace": self.namespace,
            "tier": self.tier,
            "requested": self.requested,
            "underfilled": self.underfilled,
            "empty": self.is_empty,
            "message": self.message,
            "entries": [e.to_dict() for e in self.entries],
        }


# =============================================================================
# Helpers
# =============================================================================

def clamp_tier(tier: int) -> int:
    return max(1, min(MAX_TIER, tier))


def resolve_domain(catalog: ContentCatalog, domain: Union[Domain, str, int, None]) -> Optional[Domain]:
    if domain is None or isinstance(domain, Domain):
        return domain
    try:
        return catalog.domain(domain)
    except KeyError:
        return None


def _domain_key(domain: Union[Domain, str, int, None], resolved: Optional[Domain]) -> str:
    if resolved is not None:
        return resolved.slug
    if domain is None:
        return "any"
    return str(domain)


def filter_by_tier(
    catalog: ContentCatalog,
    tier: int,
    excluded: Iterable[ItemCategory] = EXCLUDED_CATEGORIES,
) -> List[Item]:
    return catalog.items_for_rarities(TIER_RARITY_MAP[clamp_tier(tier)], excluded)


def sort_by_affinity(items: Sequence[Item], element: Optional[Element]) -> List[Item]:
    """Stable partition: matching element first, original order otherwise."""
    if element is None:
        return list(items)
    return sorted(items, key=lambda item: 0 if item.element == element else 1)


def requisition_namespace(effective_tier: int, domain_key: str, reroll: int = 0) -> str:
    namespace = f"requisition:tier:{effective_tier}:domain:{domain_key}"
    if reroll > 0:
        namespace += f":reroll:{reroll}"
    return namespace


# =============================================================================
# Requisition
# =============================================================================

def requisition_pool(
    rng: RngPool,
    catalog: ContentCatalog,
    tier: int,
    domain: Union[Domain, str, int, None] = None,
    count: int = DEFAULT_POOL_SIZE,
    excluded: Optional[Iterable[ItemCategory]] = None,
    synergy_bump: int = 0,
    reroll: int = 0,
    include_override: bool = False,
    favor_tokens: int = 0,
    config: BalanceConfig = DEFAULT_CONFIG,
) -> PoolResult:
    excluded = tuple(EXCLUDED_CATEGORIES if excluded is None else excluded)
    resolved = resolve_domain(catalog, domain)
    element = resolved.element if resolved is not None else None
    effective_tier = clamp_tier(tier + max(0, min(2, synergy_bump)))

    pool = sort_by_affinity(filter_by_tier(catalog, effective_tier, excluded), element)

    if len(pool) < count:
        seen = {item.slug for item in pool}
        lower = sort_by_affinity(filter_by_tier(catalog, max(1, effective_tier - 1), excluded), element)
        pool.extend(item for item in lower if item.slug not in seen)

    namespace = requisition_namespace(effective_tier, _domain_key(domain, resolved), reroll)
    selected: List[Item] = rng.pick_n(namespace, pool, count)

    if include_override and count > 0:
        chosen = {item.slug for item in selected}
        candidates = [
            item for item in catalog.items_for_rarities(OVERRIDE_RARITIES, excluded)
            if item.slug not in chosen
        ]
        override = rng.pick(f"{namespace}:override", candidates)
        if override is not None:
            selected = [override] + selected
            if len(selected) > count:
                selected = selected[:count]

    price_tier = clamp_tier(tier)
    entries = tuple(
        PoolEntry(item, item_price(item.value, price_tier, favor_tokens, config))
        for item in selected
    )
    return PoolResult(PoolKind.REQUISITION, entries, max(0, count), namespace, effective_tier)


# =============================================================================
# Starter Kits
# =============================================================================

STARTER_KITS: Dict[str, Tuple[ItemCategory, ...]] = {
    "balanced": (),
    "aggressive": (ItemCategory.WEAPON, ItemCategory.CONSUMABLE),
    "defensive": (ItemCategory.ARMOR, ItemCategory.ARTIFACT),
}


def starter_kits(rng: RngPool, catalog: ContentCatalog) -> Dict[str, PoolResult]:
    """Three tier-1 loadouts; a thin category filter falls back to all of tier 1."""
    tier1 = filter_by_tier(catalog, 1)
    kits = {}
    for name, categories in STARTER_KITS.items():
        pool = [i for i in tier1 if i.category in categories] if categories else tier1
        if len(pool) < STARTER_KIT_SIZE:
            pool = tier1
        namespace = f"starterKit:{name}"
        picked = rng.pick_n(namespace, pool, STARTER_KIT_SIZE)
        kits[name] = PoolResult(
            PoolKind.STARTER_KIT,
            tuple(PoolEntry(item) for item in picked),
            STARTER_KIT_SIZE,
            namespace,
            1,
        )
    return kits
