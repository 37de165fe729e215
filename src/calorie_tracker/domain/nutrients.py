"""Vitamin and mineral catalog."""

from dataclasses import dataclass
from enum import Enum, StrEnum


class NutrientId(StrEnum):
    """Stable identifier for a tracked vitamin or mineral."""

    VITAMIN_A = "vitaminA"
    VITAMIN_C = "vitaminC"
    VITAMIN_D = "vitaminD"
    VITAMIN_E = "vitaminE"
    VITAMIN_K = "vitaminK"
    VITAMIN_B1 = "vitaminB1"
    VITAMIN_B2 = "vitaminB2"
    VITAMIN_B3 = "vitaminB3"
    VITAMIN_B5 = "vitaminB5"
    VITAMIN_B6 = "vitaminB6"
    VITAMIN_B7 = "vitaminB7"
    VITAMIN_B12 = "vitaminB12"
    FOLATE = "folate"
    CALCIUM = "calcium"
    IRON = "iron"
    ZINC = "zinc"
    MAGNESIUM = "magnesium"
    POTASSIUM = "potassium"
    PHOSPHORUS = "phosphorus"
    SELENIUM = "selenium"
    COPPER = "copper"
    MANGANESE = "manganese"
    CHROMIUM = "chromium"
    MOLYBDENUM = "molybdenum"
    IODINE = "iodine"
    CHLORIDE = "chloride"


NutrientMap = dict[NutrientId, float]


class NutrientCategory(Enum):
    """Catalog grouping."""

    VITAMIN = "vitamin"
    MINERAL = "mineral"


@dataclass(frozen=True)
class NutrientDefinition:
    """Display and target metadata for a single nutrient."""

    id: NutrientId
    name: str
    short_name: str
    unit: str
    target: float
    upper_limit: float | None
    category: NutrientCategory
    decimal_places: int

    def progress(self, value: float) -> float:
        """Return the fraction of the daily target covered by ``value``."""
        if self.target <= 0:
            return 0.0
        return value / self.target

    def exceeds_upper_limit(self, value: float) -> bool:
        """Return True when ``value`` is above the tolerable upper intake."""
        return self.upper_limit is not None and value > self.upper_limit


def _vitamin(  # noqa: PLR0913
    nutrient_id: NutrientId,
    name: str,
    short_name: str,
    unit: str,
    target: float,
    upper_limit: float | None,
    decimal_places: int,
) -> NutrientDefinition:
    return NutrientDefinition(
        id=nutrient_id,
        name=name,
        short_name=short_name,
        unit=unit,
        target=target,
        upper_limit=upper_limit,
        category=NutrientCategory.VITAMIN,
        decimal_places=decimal_places,
    )


def _mineral(  # noqa: PLR0913
    nutrient_id: NutrientId,
    name: str,
    short_name: str,
    unit: str,
    target: float,
    upper_limit: float | None,
    decimal_places: int,
) -> NutrientDefinition:
    return NutrientDefinition(
        id=nutrient_id,
        name=name,
        short_name=short_name,
        unit=unit,
        target=target,
        upper_limit=upper_limit,
        category=NutrientCategory.MINERAL,
        decimal_places=decimal_places,
    )


VITAMINS: tuple[NutrientDefinition, ...] = (
    _vitamin(NutrientId.VITAMIN_A, "Vitamin A", "A", "mcg", 800, 3000, 1),
    _vitamin(NutrientId.VITAMIN_C, "Vitamin C", "C", "mg", 80, 2000, 1),
    _vitamin(NutrientId.VITAMIN_D, "Vitamin D", "D", "mcg", 10, 100, 1),
    _vitamin(NutrientId.VITAMIN_E, "Vitamin E", "E", "mg", 12, 540, 2),
    _vitamin(NutrientId.VITAMIN_K, "Vitamin K", "K", "mcg", 75, None, 1),
    _vitamin(NutrientId.VITAMIN_B1, "Vitamin B1 (Thiamin)", "B1", "mg", 1.1, None, 3),
    _vitamin(
        NutrientId.VITAMIN_B2, "Vitamin B2 (Riboflavin)", "B2", "mg", 1.4, None, 3
    ),
    _vitamin(NutrientId.VITAMIN_B3, "Vitamin B3 (Niacin)", "B3", "mg", 16, 35, 1),
    _vitamin(
        NutrientId.VITAMIN_B5,
        "Vitamin B5 (Pantothenic Acid)",
        "B5",
        "mg",
        5,
        None,
        2,
    ),
    _vitamin(NutrientId.VITAMIN_B6, "Vitamin B6", "B6", "mg", 1.4, 25, 2),
    _vitamin(NutrientId.VITAMIN_B7, "Vitamin B7 (Biotin)", "B7", "mcg", 30, None, 1),
    _vitamin(NutrientId.VITAMIN_B12, "Vitamin B12", "B12", "mcg", 2.5, None, 2),
    _vitamin(NutrientId.FOLATE, "Folate (B9)", "Folate", "mcg", 400, 1000, 1),
)

MINERALS: tuple[NutrientDefinition, ...] = (
    _mineral(NutrientId.CALCIUM, "Calcium", "Calcium", "mg", 1000, 2500, 0),
    _mineral(NutrientId.IRON, "Iron", "Iron", "mg", 14, 45, 1),
    _mineral(NutrientId.ZINC, "Zinc", "Zinc", "mg", 10, 25, 1),
    _mineral(NutrientId.MAGNESIUM, "Magnesium", "Magnes.", "mg", 375, 400, 0),
    _mineral(NutrientId.POTASSIUM, "Potassium", "Potass.", "mg", 3500, 6000, 0),
    _mineral(NutrientId.PHOSPHORUS, "Phosphorus", "Phosph.", "mg", 700, 4000, 0),
    _mineral(NutrientId.SELENIUM, "Selenium", "Selenium", "mcg", 55, 400, 1),
    _mineral(NutrientId.COPPER, "Copper", "Copper", "mg", 1, 5, 2),
    _mineral(NutrientId.MANGANESE, "Manganese", "Mangan.", "mg", 2, 11, 2),
    _mineral(NutrientId.CHROMIUM, "Chromium", "Chromium", "mcg", 35, None, 1),
    _mineral(NutrientId.MOLYBDENUM, "Molybdenum", "Molyb.", "mcg", 45, 2000, 1),
    _mineral(NutrientId.IODINE, "Iodine", "Iodine", "mcg", 150, 1100, 1),
    _mineral(NutrientId.CHLORIDE, "Chloride", "Chloride", "mg", 2300, 3600, 0),
)

ALL_NUTRIENTS: tuple[NutrientDefinition, ...] = VITAMINS + MINERALS

_BY_ID = {definition.id: definition for definition in ALL_NUTRIENTS}


def nutrient_for(nutrient_id: str) -> NutrientDefinition | None:
    """Look up a nutrient definition by its id."""
    try:
        return _BY_ID.get(NutrientId(nutrient_id))
    except ValueError:
        return None


def parse_nutrient_map(raw: dict[str, float]) -> NutrientMap:
    """Convert a string-keyed mapping to a nutrient map, dropping unknown ids."""
    nutrients: NutrientMap = {}
    for key, value in raw.items():
        definition = nutrient_for(key)
        if definition is None or value is None:
            continue
        nutrients[definition.id] = float(value)
    return nutrients
