"""
Content Catalog Tests

Lookups, ordering guarantees and construction-time validation of the
slug-keyed catalog, plus sanity checks on the built-in tables.
"""

import pytest

from packages.procgen.content.catalog import (
    ContentCatalog,
    Domain,
    Effect,
    EffectKind,
    Element,
    Item,
    ItemCategory,
    Rarity,
    Traveler,
    Wanderer,
    effect_power,
    effect_total,
)
from packages.procgen.content.items import ALL_ITEMS
from packages.procgen.content.world import (
    DEFAULT_TRAVELER,
    DOMAINS,
    FINAL_DOMAIN_INDEX,
    TRAVELERS,
    WANDERERS,
    default_catalog,
)
from packages.procgen.errors import CatalogError


def _item(slug, rarity=Rarity.COMMON, category=ItemCategory.MATERIAL, value=10):
    return Item(slug, slug.title(), category, rarity, Element.NEUTRAL, value)


# =============================================================================
# 1. Enums + Effects
# =============================================================================


class TestRarity:
    """Rarity ladder ordering."""

    def test_ordering(self):
        assert Rarity.COMMON < Rarity.UNCOMMON < Rarity.RARE < Rarity.EPIC
        assert Rarity.EPIC < Rarity.LEGENDARY < Rarity.UNIQUE

    def test_rank(self):
        assert Rarity.COMMON.rank == 0
        assert Rarity.UNIQUE.rank == 5

    def test_sorting(self):
        assert sorted([Rarity.RARE, Rarity.COMMON, Rarity.EPIC]) == [Rarity.COMMON, Rarity.RARE, Rarity.EPIC]


class TestEffects:
    """Effect payload helpers."""

    def test_effect_total(self):
        effects = (Effect(EffectKind.SCORE_BONUS, 60), Effect(EffectKind.SCORE_BONUS, 40),
                   Effect(EffectKind.INTEGRITY_SHIELD, 3))
        assert effect_total(effects, EffectKind.SCORE_BONUS) == 100
        assert effect_total(effects, EffectKind.INTEGRITY_SHIELD) == 3
        assert effect_total(effects, EffectKind.GOLD_BONUS) == 0

    def test_effect_power_weights(self):
        assert effect_power(()) == 0.0
        assert effect_power((Effect(EffectKind.SCORE_MULTIPLIER, 0.1),)) == pytest.approx(0.1)
        assert effect_power((Effect(EffectKind.SCORE_BONUS, 500),)) == pytest.approx(1.0)

    def test_item_power(self, catalog):
        dagger = catalog.item("rusty-dagger")
        assert dagger.power == pytest.approx(60 / 500)


# =============================================================================
# 2. Lookups
# =============================================================================


class TestCatalogLookups:
    """Slug-keyed lookups on the built-in catalog."""

    def test_item_lookup(self, catalog):
        item = catalog.item("rusty-dagger")
        assert item.category is ItemCategory.WEAPON
        assert item.rarity is Rarity.COMMON

    def test_unknown_slug_raises_key_error(self, catalog):
        with pytest.raises(KeyError):
            catalog.item("no-such-item")
        with pytest.raises(KeyError):
            catalog.wanderer("nobody")
        with pytest.raises(KeyError):
            catalog.traveler("nobody")

    def test_domain_by_index_and_slug(self, catalog):
        assert catalog.domain(1).slug == "meadow"
        assert catalog.domain("throne").index == FINAL_DOMAIN_INDEX
        with pytest.raises(KeyError):
            catalog.domain(7)

    def test_domains_in_progression_order(self, catalog):
        assert [d.index for d in catalog.domains] == [1, 2, 3, 4, 5, 6]
        assert catalog.domain_count == 6

    def test_items_preserve_declaration_order(self, catalog):
        assert [i.slug for i in catalog.items] == [i.slug for i in ALL_ITEMS]

    def test_items_for_rarities(self, catalog):
        commons = catalog.items_for_rarities([Rarity.COMMON])
        assert commons
        assert all(i.rarity is Rarity.COMMON for i in commons)

    def test_items_for_rarities_excludes_categories(self, catalog):
        pool = catalog.items_for_rarities(list(Rarity), excluded=[ItemCategory.QUEST, ItemCategory.CURRENCY])
        assert all(i.category not in (ItemCategory.QUEST, ItemCategory.CURRENCY) for i in pool)

    def test_wanderers_for_domain(self, catalog):
        meadow = {w.slug for w in catalog.wanderers_for_domain("meadow")}
        assert "keith-man" in meadow       # listed
        assert "willy" in meadow           # mobile
        assert "boots" in meadow           # unrestricted
        assert "king-james" not in meadow  # throne only

    def test_element_for(self, catalog):
        assert catalog.element_for("forest") is Element.WIND
        assert catalog.element_for(None) is None
        assert catalog.element_for("nowhere") is None

    def test_default_catalog_cached(self):
        assert default_catalog() is default_catalog()


# =============================================================================
# 3. Validation
# =============================================================================


class TestCatalogValidation:
    """Malformed tables are rejected at construction."""

    def test_duplicate_item_slug(self):
        with pytest.raises(CatalogError, match="Duplicate item slug"):
            ContentCatalog([_item("pebble"), _item("pebble")])

    def test_empty_slug(self):
        with pytest.raises(CatalogError):
            ContentCatalog([_item("")])

    def test_negative_value(self):
        with pytest.raises(CatalogError):
            ContentCatalog([_item("pebble", value=-1)])

    def test_wrong_entry_type(self):
        with pytest.raises(CatalogError):
            ContentCatalog([Wanderer("boots", "Boots", Rarity.COMMON)])

    def test_duplicate_domain_index(self):
        domains = [Domain(1, "a", "A", Element.FIRE, 100), Domain(1, "b", "B", Element.ICE, 100)]
        with pytest.raises(CatalogError):
            ContentCatalog([_item("pebble")], domains=domains)

    def test_non_positive_goal(self):
        with pytest.raises(CatalogError):
            ContentCatalog([_item("pebble")], domains=[Domain(1, "a", "A", Element.FIRE, 0)])

    def test_sponsor_out_of_range(self):
        with pytest.raises(CatalogError):
            ContentCatalog([_item("pebble")], wanderers=[Wanderer("w", "W", Rarity.COMMON, sponsor=7)])

    def test_unknown_wanderer_location(self):
        domains = [Domain(1, "meadow", "Meadow", Element.EARTH, 100)]
        wanderers = [Wanderer("w", "W", Rarity.COMMON, locations=("moon",))]
        with pytest.raises(CatalogError):
            ContentCatalog([_item("pebble")], wanderers=wanderers, domains=domains)

    def test_traveler_lucky_number_range(self):
        with pytest.raises(CatalogError):
            ContentCatalog([_item("pebble")], travelers=[Traveler("t", "T", 8)])

    def test_traveler_loadout_must_exist(self):
        with pytest.raises(CatalogError):
            ContentCatalog([_item("pebble")], travelers=[Traveler("t", "T", 3, starting_loadout=("sword",))])

    def test_catalog_error_is_value_error(self):
        with pytest.raises(ValueError):
            ContentCatalog([_item("pebble"), _item("pebble")])


# =============================================================================
# 4. Built-in Tables
# =============================================================================


class TestBuiltInTables:
    """The shipped content validates and covers every tier."""

    def test_six_domains(self):
        assert len(DOMAINS) == 6
        assert DOMAINS[-1].index == FINAL_DOMAIN_INDEX

    def test_goals_increase_by_domain(self):
        goals = [d.base_score_goal for d in DOMAINS]
        assert goals == sorted(goals)

    def test_every_rarity_present(self):
        rarities = {i.rarity for i in ALL_ITEMS}
        assert rarities == set(Rarity)

    def test_default_traveler_exists(self, catalog):
        assert catalog.traveler(DEFAULT_TRAVELER).lucky_number == 7

    def test_tables_load(self):
        catalog = ContentCatalog(ALL_ITEMS, WANDERERS, DOMAINS, TRAVELERS)
        assert len(catalog.items) == len(ALL_ITEMS)
        assert len(catalog.travelers) == len(TRAVELERS)
