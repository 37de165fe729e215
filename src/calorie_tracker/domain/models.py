"""Domain models for products, daily logs and logged consumption."""

from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID

from calorie_tracker.domain.nutrients import NutrientMap

DEFAULT_CALORIE_TARGET = 2000.0
DEFAULT_PROTEIN_TARGET = 50.0
DEFAULT_CARB_TARGET = 250.0
DEFAULT_FAT_TARGET = 65.0


@dataclass(frozen=True)
class NutritionFacts:
    """Macro and micronutrient values on some basis.

    Products hold these per 100 g; entries and templates hold them already
    scaled to the consumed amount. ``None`` means unknown, not zero.
    """

    calories: float
    protein: float
    carbohydrates: float
    fat: float
    sugar: float | None = None
    natural_sugar: float | None = None
    added_sugar: float | None = None
    fibre: float | None = None
    sodium: float | None = None
    nutrients: NutrientMap = field(default_factory=dict)


@dataclass(frozen=True)
class Product:
    """Reference nutrition for a food, stored per 100 g."""

    id: UUID
    name: str
    per_100g: NutritionFacts
    date_added: datetime
    barcode: str | None = None
    brand: str | None = None
    emoji: str | None = None
    serving_size: float = 100.0
    serving_size_unit: str = "g"
    portion_size: float | None = None
    portions_per_package: int | None = None
    saturated_fat: float | None = None
    trans_fat: float | None = None
    cholesterol: float | None = None
    image_data: bytes | None = None
    main_image_data: bytes | None = None
    notes: str | None = None
    is_custom: bool = False


@dataclass(frozen=True)
class DailyLog:
    """A calendar day with its targets; entries point back to it by id."""

    id: UUID
    date: datetime
    calorie_target: float = DEFAULT_CALORIE_TARGET
    protein_target: float = DEFAULT_PROTEIN_TARGET
    carb_target: float = DEFAULT_CARB_TARGET
    fat_target: float = DEFAULT_FAT_TARGET

    @property
    def day(self) -> date:
        """Calendar day the log covers."""
        return self.date.date()


@dataclass(frozen=True)
class FoodEntry:
    """A logged food with nutrition frozen at log time."""

    id: UUID
    amount: float
    unit: str
    timestamp: datetime
    snapshot: NutritionFacts
    product_id: UUID | None = None
    daily_log_id: UUID | None = None
    product_name: str | None = None
    custom_food_name: str | None = None
    ai_generated: bool = False
    ai_prompt: str | None = None

    @property
    def display_name(self) -> str:
        """Name shown for the entry, independent of the product's lifetime."""
        return self.product_name or self.custom_food_name or "Unknown food"


@dataclass(frozen=True)
class AIFoodTemplate:
    """Reusable nutrition captured from an accepted AI estimate."""

    id: UUID
    name: str
    amount: float
    unit: str
    weight_in_grams: float
    snapshot: NutritionFacts
    date_created: datetime
    last_used: datetime
    use_count: int = 1
    ai_prompt: str | None = None


@dataclass(frozen=True)
class Supplement:
    """A supplement with nutrients per serving."""

    id: UUID
    name: str
    date_added: datetime
    brand: str | None = None
    dosage_form: str = "tablet"
    serving_size: float = 1.0
    serving_size_unit: str = "tablet"
    notes: str | None = None
    image_data: bytes | None = None
    nutrients: NutrientMap = field(default_factory=dict)


@dataclass(frozen=True)
class SupplementEntry:
    """A logged supplement intake with nutrients frozen at log time."""

    id: UUID
    amount: float
    unit: str
    timestamp: datetime
    supplement_id: UUID | None = None
    daily_log_id: UUID | None = None
    supplement_name: str | None = None
    nutrients: NutrientMap = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        """Name shown for the entry."""
        return self.supplement_name or "Unknown Supplement"


@dataclass(frozen=True)
class DailyTotals:
    """Totals for a day's food and supplement entries."""

    daily_log_id: UUID
    day: date
    calorie_target: float
    calories: float
    protein: float
    carbohydrates: float
    fat: float
    sugar: float | None
    natural_sugar: float | None
    added_sugar: float | None
    fibre: float | None
    sodium: float | None
    nutrients: NutrientMap
    entry_count: int

    @property
    def calories_remaining(self) -> float:
        """Calories left before reaching the target."""
        return self.calorie_target - self.calories

    @property
    def calorie_progress(self) -> float:
        """Fraction of the calorie target consumed, capped at 1."""
        if self.calorie_target <= 0:
            return 0.0
        return min(self.calories / self.calorie_target, 1.0)


@dataclass
class EntityGraph:
    """Every entity of a store, each list keyed by its own id.

    Cross references are plain ids. Used for exports, decoded backups and
    the set of entities an import will create.
    """

    products: list[Product] = field(default_factory=list)
    supplements: list[Supplement] = field(default_factory=list)
    daily_logs: list[DailyLog] = field(default_factory=list)
    food_entries: list[FoodEntry] = field(default_factory=list)
    supplement_entries: list[SupplementEntry] = field(default_factory=list)
    templates: list[AIFoodTemplate] = field(default_factory=list)

    def is_empty(self) -> bool:
        """Return True when the graph holds no entities."""
        return not any(
            (
                self.products,
                self.supplements,
                self.daily_logs,
                self.food_entries,
                self.supplement_entries,
                self.templates,
            )
        )
