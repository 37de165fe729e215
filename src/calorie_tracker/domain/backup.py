"""Backup document schema and import results."""

import base64
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from calorie_tracker.domain.calendar import as_aware
from calorie_tracker.domain.models import (
    AIFoodTemplate,
    DailyLog,
    EntityGraph,
    FoodEntry,
    NutritionFacts,
    Product,
    Supplement,
    SupplementEntry,
)
from calorie_tracker.domain.nutrients import NutrientId, NutrientMap, parse_nutrient_map

BACKUP_VERSION = 1
SUPPORTED_VERSIONS = frozenset({BACKUP_VERSION})


class BackupModel(BaseModel):
    """Base model using camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NutrientFields(BackupModel):
    """Vitamins and minerals flattened into optional top-level fields."""

    vitamin_a: float | None = None
    vitamin_c: float | None = None
    vitamin_d: float | None = None
    vitamin_e: float | None = None
    vitamin_k: float | None = None
    vitamin_b1: float | None = None
    vitamin_b2: float | None = None
    vitamin_b3: float | None = None
    vitamin_b5: float | None = None
    vitamin_b6: float | None = None
    vitamin_b7: float | None = None
    vitamin_b12: float | None = None
    folate: float | None = None
    calcium: float | None = None
    iron: float | None = None
    zinc: float | None = None
    magnesium: float | None = None
    potassium: float | None = None
    phosphorus: float | None = None
    selenium: float | None = None
    copper: float | None = None
    manganese: float | None = None
    chromium: float | None = None
    molybdenum: float | None = None
    iodine: float | None = None
    chloride: float | None = None

    def nutrient_map(self) -> NutrientMap:
        """Collect the present nutrient fields into a nutrient map."""
        nutrients: NutrientMap = {}
        for nutrient_id, field_name in NUTRIENT_FIELD_NAMES.items():
            value = getattr(self, field_name)
            if value is not None:
                nutrients[nutrient_id] = value
        return nutrients

    @staticmethod
    def fields_from_map(nutrients: NutrientMap) -> dict[str, float]:
        """Return field-name keyword arguments for a nutrient map."""
        return {
            NUTRIENT_FIELD_NAMES[nutrient_id]: value
            for nutrient_id, value in nutrients.items()
        }


NUTRIENT_FIELD_NAMES: dict[NutrientId, str] = {
    NutrientId(info.alias): name for name, info in NutrientFields.model_fields.items()
}


class ProductBackup(NutrientFields):
    """Serialized product; nutrition values are per 100 g."""

    id: UUID
    name: str
    barcode: str | None = None
    brand: str | None = None
    emoji: str | None = None
    serving_size: float = 100.0
    serving_size_unit: str = "g"
    portion_size: float | None = None
    portions_per_package: int | None = None
    calories: float
    protein: float
    carbohydrates: float
    fat: float
    saturated_fat: float | None = None
    trans_fat: float | None = None
    fibre: float | None = None
    sugar: float | None = None
    natural_sugar: float | None = None
    added_sugar: float | None = None
    sodium: float | None = None
    cholesterol: float | None = None
    date_added: datetime
    is_custom: bool = False
    image_data_base64: str | None = None
    main_image_data_base64: str | None = None
    notes: str | None = None

    @classmethod
    def from_product(cls, product: Product) -> "ProductBackup":
        """Build the backup form of a product."""
        facts = product.per_100g
        return cls(
            id=product.id,
            name=product.name,
            barcode=product.barcode,
            brand=product.brand,
            emoji=product.emoji,
            serving_size=product.serving_size,
            serving_size_unit=product.serving_size_unit,
            portion_size=product.portion_size,
            portions_per_package=product.portions_per_package,
            calories=facts.calories,
            protein=facts.protein,
            carbohydrates=facts.carbohydrates,
            fat=facts.fat,
            saturated_fat=product.saturated_fat,
            trans_fat=product.trans_fat,
            fibre=facts.fibre,
            sugar=facts.sugar,
            natural_sugar=facts.natural_sugar,
            added_sugar=facts.added_sugar,
            sodium=facts.sodium,
            cholesterol=product.cholesterol,
            date_added=product.date_added,
            is_custom=product.is_custom,
            image_data_base64=_encode_blob(product.image_data),
            main_image_data_base64=_encode_blob(product.main_image_data),
            notes=product.notes,
            **cls.fields_from_map(facts.nutrients),
        )

    def to_product(self, tz: tzinfo) -> Product:
        """Convert back to a domain product."""
        return Product(
            id=self.id,
            name=self.name,
            barcode=self.barcode,
            brand=self.brand,
            emoji=self.emoji,
            serving_size=self.serving_size,
            serving_size_unit=self.serving_size_unit,
            portion_size=self.portion_size,
            portions_per_package=self.portions_per_package,
            per_100g=NutritionFacts(
                calories=self.calories,
                protein=self.protein,
                carbohydrates=self.carbohydrates,
                fat=self.fat,
                sugar=self.sugar,
                natural_sugar=self.natural_sugar,
                added_sugar=self.added_sugar,
                fibre=self.fibre,
                sodium=self.sodium,
                nutrients=self.nutrient_map(),
            ),
            saturated_fat=self.saturated_fat,
            trans_fat=self.trans_fat,
            cholesterol=self.cholesterol,
            date_added=as_aware(self.date_added, tz),
            is_custom=self.is_custom,
            image_data=_decode_blob(self.image_data_base64),
            main_image_data=_decode_blob(self.main_image_data_base64),
            notes=self.notes,
        )


class SupplementBackup(NutrientFields):
    """Serialized supplement; nutrient values are per serving."""

    id: UUID
    name: str
    brand: str | None = None
    dosage_form: str = "tablet"
    serving_size: float = 1.0
    serving_size_unit: str = "tablet"
    notes: str | None = None
    image_data_base64: str | None = None
    date_added: datetime

    @classmethod
    def from_supplement(cls, supplement: Supplement) -> "SupplementBackup":
        """Build the backup form of a supplement."""
        return cls(
            id=supplement.id,
            name=supplement.name,
            brand=supplement.brand,
            dosage_form=supplement.dosage_form,
            serving_size=supplement.serving_size,
            serving_size_unit=supplement.serving_size_unit,
            notes=supplement.notes,
            image_data_base64=_encode_blob(supplement.image_data),
            date_added=supplement.date_added,
            **cls.fields_from_map(supplement.nutrients),
        )

    def to_supplement(self, tz: tzinfo) -> Supplement:
        """Convert back to a domain supplement."""
        return Supplement(
            id=self.id,
            name=self.name,
            brand=self.brand,
            dosage_form=self.dosage_form,
            serving_size=self.serving_size,
            serving_size_unit=self.serving_size_unit,
            notes=self.notes,
            image_data=_decode_blob(self.image_data_base64),
            date_added=as_aware(self.date_added, tz),
            nutrients=self.nutrient_map(),
        )


class DailyLogBackup(BackupModel):
    """Serialized daily log."""

    id: UUID
    date: datetime
    calorie_target: float
    protein_target: float
    carb_target: float
    fat_target: float

    @classmethod
    def from_daily_log(cls, daily_log: DailyLog) -> "DailyLogBackup":
        """Build the backup form of a daily log."""
        return cls(
            id=daily_log.id,
            date=daily_log.date,
            calorie_target=daily_log.calorie_target,
            protein_target=daily_log.protein_target,
            carb_target=daily_log.carb_target,
            fat_target=daily_log.fat_target,
        )

    def to_daily_log(self, tz: tzinfo) -> DailyLog:
        """Convert back to a domain daily log; the date is not yet truncated."""
        return DailyLog(
            id=self.id,
            date=as_aware(self.date, tz),
            calorie_target=self.calorie_target,
            protein_target=self.protein_target,
            carb_target=self.carb_target,
            fat_target=self.fat_target,
        )


class FoodEntryBackup(BackupModel):
    """Serialized food entry with its frozen nutrition."""

    id: UUID
    product_id: UUID | None = None
    daily_log_id: UUID | None = None
    product_name: str | None = None
    custom_food_name: str | None = None
    amount: float
    unit: str
    timestamp: datetime
    calories: float
    protein: float = 0.0
    carbohydrates: float = 0.0
    fat: float = 0.0
    sugar: float | None = None
    natural_sugar: float | None = None
    added_sugar: float | None = None
    fibre: float | None = None
    sodium: float | None = None
    nutrients: dict[str, float] = {}
    ai_generated: bool = False
    ai_prompt: str | None = None

    @classmethod
    def from_entry(cls, entry: FoodEntry) -> "FoodEntryBackup":
        """Build the backup form of a food entry."""
        facts = entry.snapshot
        return cls(
            id=entry.id,
            product_id=entry.product_id,
            daily_log_id=entry.daily_log_id,
            product_name=entry.product_name,
            custom_food_name=entry.custom_food_name,
            amount=entry.amount,
            unit=entry.unit,
            timestamp=entry.timestamp,
            calories=facts.calories,
            protein=facts.protein,
            carbohydrates=facts.carbohydrates,
            fat=facts.fat,
            sugar=facts.sugar,
            natural_sugar=facts.natural_sugar,
            added_sugar=facts.added_sugar,
            fibre=facts.fibre,
            sodium=facts.sodium,
            nutrients={str(key): value for key, value in facts.nutrients.items()},
            ai_generated=entry.ai_generated,
            ai_prompt=entry.ai_prompt,
        )

    def to_entry(self, tz: tzinfo) -> FoodEntry:
        """Convert back to a domain entry, keeping the raw foreign keys."""
        return FoodEntry(
            id=self.id,
            product_id=self.product_id,
            daily_log_id=self.daily_log_id,
            product_name=self.product_name,
            custom_food_name=self.custom_food_name,
            amount=self.amount,
            unit=self.unit,
            timestamp=as_aware(self.timestamp, tz),
            snapshot=NutritionFacts(
                calories=self.calories,
                protein=self.protein,
                carbohydrates=self.carbohydrates,
                fat=self.fat,
                sugar=self.sugar,
                natural_sugar=self.natural_sugar,
                added_sugar=self.added_sugar,
                fibre=self.fibre,
                sodium=self.sodium,
                nutrients=parse_nutrient_map(self.nutrients),
            ),
            ai_generated=self.ai_generated,
            ai_prompt=self.ai_prompt,
        )


class SupplementEntryBackup(BackupModel):
    """Serialized supplement entry with its frozen nutrients."""

    id: UUID
    supplement_id: UUID | None = None
    daily_log_id: UUID | None = None
    supplement_name: str | None = None
    amount: float
    unit: str
    timestamp: datetime
    nutrients: dict[str, float] = {}

    @classmethod
    def from_entry(cls, entry: SupplementEntry) -> "SupplementEntryBackup":
        """Build the backup form of a supplement entry."""
        return cls(
            id=entry.id,
            supplement_id=entry.supplement_id,
            daily_log_id=entry.daily_log_id,
            supplement_name=entry.supplement_name,
            amount=entry.amount,
            unit=entry.unit,
            timestamp=entry.timestamp,
            nutrients={str(key): value for key, value in entry.nutrients.items()},
        )

    def to_entry(self, tz: tzinfo) -> SupplementEntry:
        """Convert back to a domain entry, keeping the raw foreign keys."""
        return SupplementEntry(
            id=self.id,
            supplement_id=self.supplement_id,
            daily_log_id=self.daily_log_id,
            supplement_name=self.supplement_name,
            amount=self.amount,
            unit=self.unit,
            timestamp=as_aware(self.timestamp, tz),
            nutrients=parse_nutrient_map(self.nutrients),
        )


class AITemplateBackup(NutrientFields):
    """Serialized AI food template."""

    id: UUID
    name: str
    amount: float
    unit: str
    weight_in_grams: float
    calories: float
    protein: float = 0.0
    carbohydrates: float = 0.0
    fat: float = 0.0
    sugar: float | None = None
    natural_sugar: float | None = None
    added_sugar: float | None = None
    fibre: float | None = None
    sodium: float | None = None
    ai_prompt: str | None = None
    use_count: int = 1
    last_used: datetime
    date_created: datetime | None = None

    @classmethod
    def from_template(cls, template: AIFoodTemplate) -> "AITemplateBackup":
        """Build the backup form of a template."""
        facts = template.snapshot
        return cls(
            id=template.id,
            name=template.name,
            amount=template.amount,
            unit=template.unit,
            weight_in_grams=template.weight_in_grams,
            calories=facts.calories,
            protein=facts.protein,
            carbohydrates=facts.carbohydrates,
            fat=facts.fat,
            sugar=facts.sugar,
            natural_sugar=facts.natural_sugar,
            added_sugar=facts.added_sugar,
            fibre=facts.fibre,
            sodium=facts.sodium,
            ai_prompt=template.ai_prompt,
            use_count=template.use_count,
            last_used=template.last_used,
            date_created=template.date_created,
            **cls.fields_from_map(facts.nutrients),
        )

    def to_template(self, tz: tzinfo) -> AIFoodTemplate:
        """Convert back to a domain template, usage counters included."""
        last_used = as_aware(self.last_used, tz)
        return AIFoodTemplate(
            id=self.id,
            name=self.name,
            amount=self.amount,
            unit=self.unit,
            weight_in_grams=self.weight_in_grams,
            snapshot=NutritionFacts(
                calories=self.calories,
                protein=self.protein,
                carbohydrates=self.carbohydrates,
                fat=self.fat,
                sugar=self.sugar,
                natural_sugar=self.natural_sugar,
                added_sugar=self.added_sugar,
                fibre=self.fibre,
                sodium=self.sodium,
                nutrients=self.nutrient_map(),
            ),
            ai_prompt=self.ai_prompt,
            use_count=self.use_count,
            last_used=last_used,
            date_created=(
                as_aware(self.date_created, tz) if self.date_created else last_used
            ),
        )


class BackupDocument(BackupModel):
    """Top-level backup document."""

    version: int
    export_date: datetime
    products: list[ProductBackup] = []
    daily_logs: list[DailyLogBackup] = []
    food_entries: list[FoodEntryBackup] = []
    ai_templates: list[AITemplateBackup] = []
    supplements: list[SupplementBackup] = []
    supplement_entries: list[SupplementEntryBackup] = []


@dataclass(frozen=True)
class DecodedGraph:
    """A decoded backup: typed entities with their original ids and references."""

    version: int
    exported_at: datetime
    graph: EntityGraph


@dataclass
class EntityCounts:
    """Imported and skipped counts for one entity type."""

    imported: int = 0
    skipped: int = 0


@dataclass
class ImportSummary:
    """Outcome of merging a backup into the store."""

    products: EntityCounts = field(default_factory=EntityCounts)
    supplements: EntityCounts = field(default_factory=EntityCounts)
    daily_logs: EntityCounts = field(default_factory=EntityCounts)
    food_entries: EntityCounts = field(default_factory=EntityCounts)
    supplement_entries: EntityCounts = field(default_factory=EntityCounts)
    templates: EntityCounts = field(default_factory=EntityCounts)
    dropped_references: int = 0

    @property
    def total_imported(self) -> int:
        """Number of entities created."""
        return sum(counts.imported for counts in self._all())

    @property
    def total_skipped(self) -> int:
        """Number of entities recognised as already present."""
        return sum(counts.skipped for counts in self._all())

    def describe(self) -> str:
        """Return a one-line description of what was imported."""
        parts = [
            f"{count} {label}"
            for count, label in (
                (self.products.imported, "products"),
                (self.supplements.imported, "supplements"),
                (self.daily_logs.imported, "days"),
                (self.food_entries.imported, "entries"),
                (self.supplement_entries.imported, "supplement entries"),
                (self.templates.imported, "templates"),
            )
            if count > 0
        ]
        if not parts:
            return "No new data imported (all items already exist)"
        return "Imported: " + ", ".join(parts)

    def describe_skipped(self) -> str:
        """Return a description of skipped duplicates, or an empty string."""
        if self.total_skipped == 0:
            return ""
        return f"{self.total_skipped} duplicate items skipped"

    def _all(self) -> tuple[EntityCounts, ...]:
        return (
            self.products,
            self.supplements,
            self.daily_logs,
            self.food_entries,
            self.supplement_entries,
            self.templates,
        )


def _encode_blob(data: bytes | None) -> str | None:
    if data is None:
        return None
    return base64.b64encode(data).decode("ascii")


def _decode_blob(text: str | None) -> bytes | None:
    if text is None:
        return None
    return base64.b64decode(text, validate=True)
