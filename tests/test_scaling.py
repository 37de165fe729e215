"""Tests for nutrition scaling."""

from dataclasses import replace

import pytest

from calorie_tracker.domain.nutrients import NutrientId
from calorie_tracker.errors import InvalidAmountError
from calorie_tracker.services.scaling import (
    SugarPolicy,
    clamp_amount,
    derive_per_100g_from_weight,
    rescale,
    scale_from_per_100g,
    scale_from_portions,
    scale_from_servings,
)
from tests.conftest import make_entry, make_facts, make_product, make_supplement


def test_two_portions_of_a_115g_portion() -> None:
    product = make_product(
        per_100g=make_facts(82.0, protein=4.5, carbohydrates=12.0, fat=1.5),
        portion_size=115.0,
    )

    facts = scale_from_portions(product, 2)

    assert facts.calories == pytest.approx(188.6)
    assert facts.protein == pytest.approx(10.35)


def test_absent_values_stay_absent_and_zero_stays_zero() -> None:
    product = make_product(
        per_100g=make_facts(
            50.0,
            sugar=0.0,
            nutrients={NutrientId.IRON: 0.0, NutrientId.CALCIUM: 40.0},
        )
    )

    facts = scale_from_per_100g(product, 250.0)

    assert facts.sugar == 0.0
    assert facts.natural_sugar is None
    assert facts.added_sugar is None
    assert facts.fibre is None
    assert facts.sodium is None
    assert facts.nutrients == {NutrientId.IRON: 0.0, NutrientId.CALCIUM: 100.0}
    assert NutrientId.ZINC not in facts.nutrients


@pytest.mark.parametrize("grams", [0.0, -10.0])
def test_non_positive_grams_are_rejected(grams: float) -> None:
    with pytest.raises(InvalidAmountError):
        scale_from_per_100g(make_product(), grams)


def test_invalid_amount_is_a_value_error() -> None:
    with pytest.raises(ValueError, match="positive"):
        scale_from_per_100g(make_product(), 0.0)


def test_portions_require_a_portion_size() -> None:
    with pytest.raises(InvalidAmountError):
        scale_from_portions(make_product(portion_size=None), 1)


def test_servings_scale_by_serving_size() -> None:
    supplement = make_supplement()

    nutrients = scale_from_servings(supplement, 1.0)

    assert nutrients == {NutrientId.VITAMIN_C: 40.0, NutrientId.ZINC: 5.0}


def test_servings_reject_zero_serving_size() -> None:
    supplement = replace(make_supplement(), serving_size=0.0)

    with pytest.raises(InvalidAmountError):
        scale_from_servings(supplement, 1.0)


def test_rescale_composes() -> None:
    entry = make_entry(calories=300.0, amount=150.0)

    via_intermediate = rescale(
        replace(entry, amount=220.0, snapshot=rescale(entry, 220.0)), 90.0
    )
    direct = rescale(entry, 90.0)

    assert via_intermediate.calories == pytest.approx(direct.calories)
    assert via_intermediate.protein == pytest.approx(direct.protein)
    assert direct.calories == pytest.approx(180.0)


def test_rescale_clamps_the_new_amount() -> None:
    entry = make_entry(calories=100.0, amount=100.0)

    assert rescale(entry, 0.0).calories == pytest.approx(1.0)
    assert rescale(entry, 9000.0, max_amount=5000.0).calories == pytest.approx(5000.0)


def test_rescale_rejects_entry_without_amount() -> None:
    entry = make_entry(amount=0.0)

    with pytest.raises(InvalidAmountError):
        rescale(entry, 50.0)


def test_clamp_amount() -> None:
    assert clamp_amount(-3.0) == 1.0
    assert clamp_amount(42.0) == 42.0
    assert clamp_amount(7000.0, 5000.0) == 5000.0


def test_derived_product_reproduces_the_snapshot() -> None:
    snapshot = make_facts(
        455.0, protein=21.0, sugar=3.5, nutrients={NutrientId.POTASSIUM: 700.0}
    )

    product = derive_per_100g_from_weight(snapshot, 350.0, name="Chicken curry")
    facts = scale_from_per_100g(product, 350.0)

    assert product.is_custom
    assert product.per_100g.calories == pytest.approx(130.0)
    assert facts.calories == pytest.approx(snapshot.calories)
    assert facts.sugar == pytest.approx(snapshot.sugar)
    assert facts.fibre is None
    assert facts.nutrients[NutrientId.POTASSIUM] == pytest.approx(700.0)


def test_derive_treats_sub_gram_weights_as_one_gram() -> None:
    product = derive_per_100g_from_weight(make_facts(5.0), 0.0, name="Pinch of salt")

    assert product.per_100g.calories == pytest.approx(500.0)


def test_unspecified_sugar_counts_as_added_when_policy_says_so() -> None:
    product = make_product(per_100g=make_facts(400.0, sugar=60.0))

    recorded = scale_from_per_100g(product, 50.0)
    inferred = scale_from_per_100g(
        product, 50.0, sugar_policy=SugarPolicy.UNSPECIFIED_AS_ADDED
    )

    assert recorded.added_sugar is None
    assert inferred.added_sugar == pytest.approx(30.0)


def test_sugar_policy_keeps_an_explicit_split() -> None:
    product = make_product(per_100g=make_facts(400.0, sugar=60.0, natural_sugar=60.0))

    facts = scale_from_per_100g(
        product, 100.0, sugar_policy=SugarPolicy.UNSPECIFIED_AS_ADDED
    )

    assert facts.natural_sugar == pytest.approx(60.0)
    assert facts.added_sugar is None
