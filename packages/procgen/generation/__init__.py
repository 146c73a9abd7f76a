"""
Seeded pool generation: requisition offers, starter kits, doors, encounters.
"""

from .pools import (
    TIER_RARITY_MAP,
    EXCLUDED_CATEGORIES,
    OVERRIDE_RARITIES,
    DEFAULT_POOL_SIZE,
    EMPTY_POOL_MESSAGES,
    PoolKind,
    PoolEntry,
    PoolResult,
    empty_pool_message,
    filter_by_tier,
    sort_by_affinity,
    requisition_namespace,
    requisition_pool,
    starter_kits,
)
from .doors import (
    DoorType,
    DoorPromise,
    DoorPreview,
    PromiseEffects,
    promise_effects,
    door_preview,
    available_doors,
)
from .encounters import (
    encounter_wanderer,
    encounter_check,
    duel_roll,
    sponsor_bias_for,
)

__all__ = [
    "TIER_RARITY_MAP",
    "EXCLUDED_CATEGORIES",
    "OVERRIDE_RARITIES",
    "DEFAULT_POOL_SIZE",
    "EMPTY_POOL_MESSAGES",
    "PoolKind",
    "PoolEntry",
    "PoolResult",
    "empty_pool_message",
    "filter_by_tier",
    "sort_by_affinity",
    "requisition_namespace",
    "requisition_pool",
    "starter_kits",
    "DoorType",
    "DoorPromise",
    "DoorPreview",
    "PromiseEffects",
    "promise_effects",
    "door_preview",
    "available_doors",
    "encounter_wanderer",
    "encounter_check",
    "duel_roll",
    "sponsor_bias_for",
]
