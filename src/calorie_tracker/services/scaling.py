"""Amount-proportional nutrition scaling.

All functions are pure. Values are IEEE-754 doubles and are never rounded
here; rounding to display precision belongs to the presentation layer.
Only present values are scaled: an unknown value stays unknown and a known
zero stays zero.
"""

from dataclasses import replace
from datetime import UTC, datetime
from enum import StrEnum
from uuid import UUID, uuid4

from calorie_tracker.domain.models import FoodEntry, NutritionFacts, Product, Supplement
from calorie_tracker.domain.nutrients import NutrientMap
from calorie_tracker.errors import InvalidAmountError

MIN_AMOUNT = 1.0
GRAMS_BASIS = 100.0


class SugarPolicy(StrEnum):
    """How to split total sugar when a product does not say.

    ``AS_RECORDED`` keeps whatever the product records. ``UNSPECIFIED_AS_ADDED``
    counts all sugar as added when the product records total sugar but
    neither natural nor added sugar.
    """

    AS_RECORDED = "as_recorded"
    UNSPECIFIED_AS_ADDED = "unspecified_as_added"


def scale_nutrients(nutrients: NutrientMap, factor: float) -> NutrientMap:
    """Multiply every present nutrient by ``factor``."""
    return {nutrient_id: value * factor for nutrient_id, value in nutrients.items()}


def scale_facts(facts: NutritionFacts, factor: float) -> NutritionFacts:
    """Multiply every present field of ``facts`` by ``factor``."""
    return NutritionFacts(
        calories=facts.calories * factor,
        protein=facts.protein * factor,
        carbohydrates=facts.carbohydrates * factor,
        fat=facts.fat * factor,
        sugar=_scale_optional(facts.sugar, factor),
        natural_sugar=_scale_optional(facts.natural_sugar, factor),
        added_sugar=_scale_optional(facts.added_sugar, factor),
        fibre=_scale_optional(facts.fibre, factor),
        sodium=_scale_optional(facts.sodium, factor),
        nutrients=scale_nutrients(facts.nutrients, factor),
    )


def apply_sugar_policy(facts: NutritionFacts, policy: SugarPolicy) -> NutritionFacts:
    """Return ``facts`` with the sugar split resolved under ``policy``."""
    if policy is SugarPolicy.AS_RECORDED:
        return facts
    if (
        facts.sugar is not None
        and facts.natural_sugar is None
        and facts.added_sugar is None
    ):
        return replace(facts, added_sugar=facts.sugar)
    return facts


def scale_from_per_100g(
    product: Product,
    grams: float,
    *,
    sugar_policy: SugarPolicy = SugarPolicy.AS_RECORDED,
) -> NutritionFacts:
    """Scale a product's per-100g values to ``grams``."""
    if grams <= 0:
        raise InvalidAmountError(f"Amount must be positive, got {grams}")
    base = apply_sugar_policy(product.per_100g, sugar_policy)
    return scale_facts(base, grams / GRAMS_BASIS)


def scale_from_portions(
    product: Product,
    portions: float,
    *,
    sugar_policy: SugarPolicy = SugarPolicy.AS_RECORDED,
) -> NutritionFacts:
    """Scale a product to a number of its portions."""
    if product.portion_size is None:
        raise InvalidAmountError(f"Product {product.name!r} has no portion size")
    return scale_from_per_100g(
        product, product.portion_size * portions, sugar_policy=sugar_policy
    )


def scale_from_servings(supplement: Supplement, servings: float) -> NutrientMap:
    """Scale a supplement's per-serving nutrients to ``servings`` taken."""
    if supplement.serving_size <= 0:
        raise InvalidAmountError(
            f"Supplement {supplement.name!r} has no usable serving size"
        )
    if servings <= 0:
        raise InvalidAmountError(f"Servings must be positive, got {servings}")
    return scale_nutrients(supplement.nutrients, servings / supplement.serving_size)


def clamp_amount(amount: float, max_amount: float | None = None) -> float:
    """Clamp an amount to at least one unit and at most ``max_amount``."""
    clamped = max(MIN_AMOUNT, amount)
    if max_amount is not None:
        clamped = min(clamped, max_amount)
    return clamped


def rescale(
    entry: FoodEntry, new_amount: float, *, max_amount: float | None = None
) -> NutritionFacts:
    """Rescale an entry's snapshot from its current amount to ``new_amount``."""
    if entry.amount <= 0:
        raise InvalidAmountError(
            f"Entry {entry.id} has amount {entry.amount}; cannot rescale"
        )
    ratio = clamp_amount(new_amount, max_amount) / entry.amount
    return scale_facts(entry.snapshot, ratio)


def derive_per_100g_from_weight(  # noqa: PLR0913
    snapshot: NutritionFacts,
    weight_grams: float,
    *,
    name: str,
    brand: str | None = None,
    product_id: UUID | None = None,
    date_added: datetime | None = None,
) -> Product:
    """Build a custom per-100g product from a snapshot of known weight.

    This is the inverse of :func:`scale_from_per_100g` for weights of at
    least one gram.
    """
    factor = GRAMS_BASIS / max(weight_grams, MIN_AMOUNT)
    return Product(
        id=product_id or uuid4(),
        name=name,
        brand=brand,
        per_100g=scale_facts(snapshot, factor),
        date_added=date_added or datetime.now(tz=UTC),
        is_custom=True,
    )


def _scale_optional(value: float | None, factor: float) -> float | None:
    if value is None:
        return None
    return value * factor
