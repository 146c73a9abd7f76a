"""
Item table.

Grouped by category, then rarity. Declaration order is significant:
pool filtering preserves it, so reordering entries changes every seeded
selection downstream.
"""

from typing import List

from .catalog import Effect, EffectKind as K, Element, Item, ItemCategory as C, Rarity as R


def _fx(*pairs) -> tuple:
    return tuple(Effect(kind, magnitude) for kind, magnitude in pairs)


# =============================================================================
# Weapons
# =============================================================================

WEAPONS: List[Item] = [
    Item("rusty-dagger", "Rusty Dagger", C.WEAPON, R.COMMON, Element.NEUTRAL, 20,
         _fx((K.SCORE_BONUS, 60))),
    Item("sling", "Sling", C.WEAPON, R.COMMON, Element.WIND, 25,
         _fx((K.SCORE_BONUS, 70))),
    Item("bone-club", "Bone Club", C.WEAPON, R.COMMON, Element.DEATH, 30,
         _fx((K.SCORE_BONUS, 80))),
    Item("hand-axe", "Hand Axe", C.WEAPON, R.UNCOMMON, Element.EARTH, 60,
         _fx((K.SCORE_BONUS, 140))),
    Item("frost-spear", "Frost Spear", C.WEAPON, R.UNCOMMON, Element.ICE, 75,
         _fx((K.SCORE_MULTIPLIER, 0.05), (K.SCORE_BONUS, 60))),
    Item("ember-whip", "Ember Whip", C.WEAPON, R.RARE, Element.FIRE, 180,
         _fx((K.SCORE_MULTIPLIER, 0.10))),
    Item("hero-blade", "Hero Blade", C.WEAPON, R.RARE, Element.NEUTRAL, 200,
         _fx((K.SCORE_BONUS, 350))),
    Item("gale-bow", "Gale Bow", C.WEAPON, R.EPIC, Element.WIND, 380,
         _fx((K.SCORE_MULTIPLIER, 0.15), (K.SCORE_BONUS, 100))),
    Item("reaper-scythe", "Reaper Scythe", C.WEAPON, R.LEGENDARY, Element.DEATH, 700,
         _fx((K.SCORE_MULTIPLIER, 0.25))),
    Item("null-edge", "Null Edge", C.WEAPON, R.UNIQUE, Element.VOID, 1200,
         _fx((K.SCORE_MULTIPLIER, 0.35), (K.HEAT_DAMPEN, 0.25))),
]


# =============================================================================
# Armor
# =============================================================================

ARMOR: List[Item] = [
    Item("wooden-shield", "Wooden Shield", C.ARMOR, R.COMMON, Element.NEUTRAL, 25,
         _fx((K.INTEGRITY_SHIELD, 3))),
    Item("sneakers", "Sneakers", C.ARMOR, R.COMMON, Element.WIND, 30,
         _fx((K.SCORE_BONUS, 40), (K.INTEGRITY_SHIELD, 1))),
    Item("iron-boots", "Iron Boots", C.ARMOR, R.UNCOMMON, Element.EARTH, 100,
         _fx((K.INTEGRITY_SHIELD, 5))),
    Item("turtle-shell", "Turtle Shell", C.ARMOR, R.UNCOMMON, Element.NEUTRAL, 60,
         _fx((K.INTEGRITY_SHIELD, 4))),
    Item("heavy-shield", "Heavy Shield", C.ARMOR, R.UNCOMMON, Element.EARTH, 80,
         _fx((K.INTEGRITY_SHIELD, 6))),
    Item("spiked-vest", "Spiked Vest", C.ARMOR, R.UNCOMMON, Element.NEUTRAL, 100,
         _fx((K.INTEGRITY_SHIELD, 3), (K.SCORE_BONUS, 60))),
    Item("hero-boots", "Hero Boots", C.ARMOR, R.RARE, Element.NEUTRAL, 200,
         _fx((K.INTEGRITY_SHIELD, 5), (K.SCORE_MULTIPLIER, 0.04))),
    Item("hero-helm", "Hero Helm", C.ARMOR, R.RARE, Element.NEUTRAL, 200,
         _fx((K.INTEGRITY_SHIELD, 8))),
    Item("hero-cape", "Hero Cape", C.ARMOR, R.RARE, Element.NEUTRAL, 200,
         _fx((K.HEAT_DAMPEN, 0.10), (K.INTEGRITY_SHIELD, 3))),
    Item("rocket-boots", "Rocket Boots", C.ARMOR, R.EPIC, Element.FIRE, 400,
         _fx((K.SCORE_MULTIPLIER, 0.10), (K.INTEGRITY_SHIELD, 4))),
    Item("royal-cloak-of-duality", "Royal Cloak of Duality", C.ARMOR, R.LEGENDARY, Element.VOID, 800,
         _fx((K.HEAT_DAMPEN, 0.30), (K.INTEGRITY_SHIELD, 8))),
]


# =============================================================================
# Consumables
# =============================================================================

CONSUMABLES: List[Item] = [
    Item("stale-ration", "Stale Ration", C.CONSUMABLE, R.COMMON, Element.NEUTRAL, 15,
         _fx((K.INTEGRITY_SHIELD, 2))),
    Item("lucky-coin", "Lucky Coin", C.CONSUMABLE, R.COMMON, Element.NEUTRAL, 20,
         _fx((K.GOLD_BONUS, 10))),
    Item("smoke-bomb", "Smoke Bomb", C.CONSUMABLE, R.COMMON, Element.WIND, 25,
         _fx((K.SCORE_BONUS, 50))),
    Item("frost-salts", "Frost Salts", C.CONSUMABLE, R.UNCOMMON, Element.ICE, 50,
         _fx((K.HEAT_DAMPEN, 0.05), (K.SCORE_BONUS, 40))),
    Item("infernal-salts", "Infernal Salts", C.CONSUMABLE, R.UNCOMMON, Element.FIRE, 50,
         _fx((K.SCORE_MULTIPLIER, 0.04))),
    Item("calm-tonic", "Calm Tonic", C.CONSUMABLE, R.UNCOMMON, Element.NEUTRAL, 55,
         _fx((K.REROLL_DISCOUNT, 5))),
    Item("void-salts", "Void Salts", C.CONSUMABLE, R.RARE, Element.VOID, 100,
         _fx((K.SCORE_MULTIPLIER, 0.06), (K.HEAT_DAMPEN, 0.05))),
    Item("phoenix-ash", "Phoenix Ash", C.CONSUMABLE, R.EPIC, Element.FIRE, 350,
         _fx((K.INTEGRITY_SHIELD, 10), (K.SCORE_BONUS, 150))),
]


# =============================================================================
# Artifacts
# =============================================================================

ARTIFACTS: List[Item] = [
    Item("backpack", "Backpack", C.ARTIFACT, R.COMMON, Element.NEUTRAL, 40,
         _fx((K.GOLD_BONUS, 8))),
    Item("badge", "Badge", C.ARTIFACT, R.COMMON, Element.NEUTRAL, 20,
         _fx((K.SCORE_BONUS, 30))),
    Item("compass", "Compass", C.ARTIFACT, R.COMMON, Element.NEUTRAL, 30,
         _fx((K.REROLL_DISCOUNT, 3))),
    Item("crutch", "Crutch", C.ARTIFACT, R.COMMON, Element.NEUTRAL, 15,
         _fx((K.INTEGRITY_SHIELD, 2))),
    Item("eyepatch", "Eyepatch", C.ARTIFACT, R.COMMON, Element.DEATH, 25,
         _fx((K.SCORE_BONUS, 45))),
    Item("lockpick", "Lockpick", C.ARTIFACT, R.COMMON, Element.DEATH, 20,
         _fx((K.REROLL_DISCOUNT, 4))),
    Item("aviators", "Aviators", C.ARTIFACT, R.UNCOMMON, Element.WIND, 50,
         _fx((K.SCORE_MULTIPLIER, 0.03))),
    Item("duffel-bag", "Duffel Bag", C.ARTIFACT, R.UNCOMMON, Element.NEUTRAL, 60,
         _fx((K.GOLD_BONUS, 15))),
    Item("gas-mask", "Gas Mask", C.ARTIFACT, R.UNCOMMON, Element.DEATH, 75,
         _fx((K.HEAT_DAMPEN, 0.08))),
    Item("war-horn", "War Horn", C.ARTIFACT, R.UNCOMMON, Element.EARTH, 70,
         _fx((K.SCORE_BONUS, 120))),
    Item("radio", "Radio", C.ARTIFACT, R.UNCOMMON, Element.NEUTRAL, 60,
         _fx((K.GOLD_BONUS, 12))),
    Item("war-banner", "War Banner", C.ARTIFACT, R.RARE, Element.EARTH, 220,
         _fx((K.SCORE_MULTIPLIER, 0.08))),
    Item("robo-leg", "Robo Leg", C.ARTIFACT, R.RARE, Element.NEUTRAL, 200,
         _fx((K.SCORE_BONUS, 200), (K.INTEGRITY_SHIELD, 2))),
    Item("dice-of-fate", "Dice of Fate", C.ARTIFACT, R.EPIC, Element.NEUTRAL, 450,
         _fx((K.SCORE_MULTIPLIER, 0.12), (K.GOLD_BONUS, 20))),
    Item("crown-of-heat", "Crown of Heat", C.ARTIFACT, R.LEGENDARY, Element.FIRE, 750,
         _fx((K.HEAT_DAMPEN, 0.40), (K.SCORE_MULTIPLIER, 0.08))),
    Item("directors-seal", "Director's Seal", C.ARTIFACT, R.UNIQUE, Element.VOID, 1500,
         _fx((K.SCORE_MULTIPLIER, 0.30), (K.GOLD_BONUS, 40))),
]


# =============================================================================
# Materials
# =============================================================================

MATERIALS: List[Item] = [
    Item("malachite", "Malachite", C.MATERIAL, R.COMMON, Element.EARTH, 30,
         _fx((K.GOLD_BONUS, 5))),
    Item("shadow-essence", "Shadow Essence", C.MATERIAL, R.UNCOMMON, Element.DEATH, 70,
         _fx((K.SCORE_MULTIPLIER, 0.02))),
    Item("frost-crystal", "Frost Crystal", C.MATERIAL, R.UNCOMMON, Element.ICE, 75,
         _fx((K.SCORE_BONUS, 90))),
    Item("infernal-crystal", "Infernal Crystal", C.MATERIAL, R.UNCOMMON, Element.FIRE, 75,
         _fx((K.SCORE_BONUS, 90))),
    Item("ruby", "Ruby", C.MATERIAL, R.RARE, Element.FIRE, 160,
         _fx((K.GOLD_BONUS, 25))),
    Item("frost-cluster", "Frost Cluster", C.MATERIAL, R.RARE, Element.ICE, 150,
         _fx((K.SCORE_MULTIPLIER, 0.05), (K.INTEGRITY_SHIELD, 2))),
    Item("void-crystal", "Void Crystal", C.MATERIAL, R.EPIC, Element.VOID, 300,
         _fx((K.SCORE_MULTIPLIER, 0.10), (K.HEAT_DAMPEN, 0.05))),
    Item("diamond", "Diamond", C.MATERIAL, R.LEGENDARY, Element.EARTH, 650,
         _fx((K.GOLD_BONUS, 60), (K.SCORE_BONUS, 250))),
    Item("heart-of-the-throne", "Heart of the Throne", C.MATERIAL, R.UNIQUE, Element.FIRE, 1300,
         _fx((K.SCORE_BONUS, 600), (K.INTEGRITY_SHIELD, 6))),
]


# =============================================================================
# Non-requisition items (filtered out of shop pools by default)
# =============================================================================

QUEST_AND_CURRENCY: List[Item] = [
    Item("chest-key", "Chest Key", C.QUEST, R.COMMON, Element.NEUTRAL, 0),
    Item("iron-key", "Iron Key", C.QUEST, R.COMMON, Element.EARTH, 0),
    Item("armory-key", "Armory Key", C.QUEST, R.UNCOMMON, Element.NEUTRAL, 0),
    Item("void-key", "Void Key", C.QUEST, R.EPIC, Element.VOID, 0),
    Item("copper-scrip", "Copper Scrip", C.CURRENCY, R.COMMON, Element.NEUTRAL, 1),
    Item("gold-scrip", "Gold Scrip", C.CURRENCY, R.UNCOMMON, Element.NEUTRAL, 10),
]


ALL_ITEMS: List[Item] = WEAPONS + ARMOR + CONSUMABLES + ARTIFACTS + MATERIALS + QUEST_AND_CURRENCY
