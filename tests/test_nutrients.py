"""Tests for the vitamin and mineral catalog."""

from calorie_tracker.domain.nutrients import (
    ALL_NUTRIENTS,
    MINERALS,
    VITAMINS,
    NutrientCategory,
    NutrientId,
    nutrient_for,
    parse_nutrient_map,
)


def test_catalog_covers_every_nutrient_once() -> None:
    ids = [definition.id for definition in ALL_NUTRIENTS]

    assert len(ids) == len(set(ids)) == len(NutrientId) == 26
    assert ALL_NUTRIENTS == VITAMINS + MINERALS
    assert all(item.category is NutrientCategory.VITAMIN for item in VITAMINS)
    assert all(item.category is NutrientCategory.MINERAL for item in MINERALS)


def test_nutrient_for_known_and_unknown_ids() -> None:
    vitamin_c = nutrient_for("vitaminC")

    assert vitamin_c is not None
    assert vitamin_c.unit == "mg"
    assert vitamin_c.target == 80
    assert nutrient_for("vitaminZ") is None


def test_progress_and_upper_limit() -> None:
    iron = nutrient_for(NutrientId.IRON)
    vitamin_k = nutrient_for(NutrientId.VITAMIN_K)
    assert iron is not None
    assert vitamin_k is not None

    assert iron.progress(7.0) == 0.5
    assert iron.exceeds_upper_limit(46.0)
    assert not iron.exceeds_upper_limit(45.0)
    assert not vitamin_k.exceeds_upper_limit(10_000.0)


def test_parse_nutrient_map_drops_unknown_and_missing_values() -> None:
    parsed = parse_nutrient_map(
        {"calcium": 120, "vitaminB12": 0.0, "caffeine": 80.0, "zinc": None}
    )

    assert parsed == {NutrientId.CALCIUM: 120.0, NutrientId.VITAMIN_B12: 0.0}
