"""
Static content: items, wanderers, domains and travelers.
"""

from .catalog import (
    Rarity,
    Element,
    ItemCategory,
    EffectKind,
    Effect,
    Item,
    Wanderer,
    Domain,
    Traveler,
    CatalogEntry,
    ContentCatalog,
    effect_power,
    effect_total,
)
from .world import (
    DOMAINS,
    WANDERERS,
    TRAVELERS,
    DEFAULT_TRAVELER,
    FINAL_DOMAIN_INDEX,
    default_catalog,
)
from .items import ALL_ITEMS

__all__ = [
    "Rarity",
    "Element",
    "ItemCategory",
    "EffectKind",
    "Effect",
    "Item",
    "Wanderer",
    "Domain",
    "Traveler",
    "CatalogEntry",
    "ContentCatalog",
    "effect_power",
    "effect_total",
    "DOMAINS",
    "WANDERERS",
    "TRAVELERS",
    "DEFAULT_TRAVELER",
    "FINAL_DOMAIN_INDEX",
    "default_catalog",
    "ALL_ITEMS",
]
