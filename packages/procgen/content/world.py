"""
Domains, wanderers and travelers.

Domains are listed in progression order (index 1 is the first domain a
run enters). Wanderer locations reference domain slugs or "mobile".
"""

from functools import lru_cache
from typing import List

from .catalog import ContentCatalog, Domain, Element, Rarity, Traveler, Wanderer
from .items import ALL_ITEMS


DOMAINS: List[Domain] = [
    Domain(1, "meadow", "The Meadow", Element.EARTH, 3000),
    Domain(2, "forest", "The Forest", Element.WIND, 4000),
    Domain(3, "caverns", "The Caverns", Element.ICE, 5000),
    Domain(4, "ruins", "The Ruins", Element.DEATH, 6500),
    Domain(5, "abyss", "The Abyss", Element.VOID, 8000),
    Domain(6, "throne", "The Throne", Element.FIRE, 10000),
]

FINAL_DOMAIN_INDEX = 6


WANDERERS: List[Wanderer] = [
    Wanderer("willy", "Willy One Eye", Rarity.EPIC, Element.NEUTRAL, ("mobile",), sponsor=5),
    Wanderer("mr-bones", "Mr. Bones", Rarity.RARE, Element.DEATH, ("caverns", "ruins"), sponsor=5),
    Wanderer("dr-voss", "Dr. Voss", Rarity.RARE, Element.VOID, ("abyss",), sponsor=2),
    Wanderer("dr-maxwell", "Dr. Maxwell", Rarity.UNCOMMON, Element.FIRE, ("throne", "ruins"), sponsor=4),
    Wanderer("boo-g", "Boo-G", Rarity.UNCOMMON, Element.WIND, ("forest", "meadow"), sponsor=3),
    Wanderer("keith-man", "Keith Man", Rarity.COMMON, Element.EARTH, ("meadow",), sponsor=1),
    Wanderer("king-james", "King James", Rarity.LEGENDARY, Element.FIRE, ("throne",), sponsor=6),
    Wanderer("boots", "Boots", Rarity.COMMON, Element.NEUTRAL, (), sponsor=2),
    Wanderer("body-count", "Body Count", Rarity.RARE, Element.DEATH, ("ruins", "abyss"), sponsor=4),
    Wanderer("alien-baby", "Alien Baby", Rarity.EPIC, Element.VOID, ("abyss", "mobile"), sponsor=6),
    Wanderer("clausen", "Clausen", Rarity.UNCOMMON, Element.ICE, ("caverns",), sponsor=3),
]


TRAVELERS: List[Traveler] = [
    Traveler("never-die-guy", "Never Die Guy", 7, Element.NEUTRAL, ("rusty-dagger", "wooden-shield")),
    Traveler("mr-kevin", "Mr. Kevin", 4, Element.DEATH, ("eyepatch",)),
    Traveler("jane", "Jane", 3, Element.WIND, ("sling", "sneakers")),
    Traveler("john", "John", 2, Element.EARTH, ("iron-boots",)),
    Traveler("alice", "Alice", 5, Element.ICE, ("stale-ration",)),
    Traveler("peter", "Peter", 1, Element.FIRE, ()),
    Traveler("drifter", "The Drifter", 0, Element.NEUTRAL, ()),
]

DEFAULT_TRAVELER = "never-die-guy"


@lru_cache(maxsize=1)
def default_catalog() -> ContentCatalog:
    """The built-in catalog, constructed once per process."""
    return ContentCatalog(ALL_ITEMS, WANDERERS, DOMAINS, TRAVELERS)
