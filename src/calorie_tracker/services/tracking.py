"""Daily tracking service: products, entries, templates and day totals."""

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, tzinfo
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from calorie_tracker.domain.calendar import as_aware, day_bounds
from calorie_tracker.domain.models import (
    DEFAULT_CALORIE_TARGET,
    DEFAULT_CARB_TARGET,
    DEFAULT_FAT_TARGET,
    DEFAULT_PROTEIN_TARGET,
    AIFoodTemplate,
    DailyLog,
    DailyTotals,
    FoodEntry,
    NutritionFacts,
    Product,
    Supplement,
    SupplementEntry,
)
from calorie_tracker.domain.nutrients import NutrientId, NutrientMap
from calorie_tracker.services.reconciler import match_template
from calorie_tracker.services.repository import NutritionRepository
from calorie_tracker.services.scaling import (
    SugarPolicy,
    clamp_amount,
    derive_per_100g_from_weight,
    rescale,
    scale_from_per_100g,
    scale_from_portions,
    scale_from_servings,
)

DEFAULT_MAX_ENTRY_AMOUNT = 5000.0

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class AIFoodEstimate(BaseModel):
    """A decoded AI nutrition estimate for a described or photographed food."""

    name: str = Field(min_length=1)
    amount: float = Field(gt=0)
    unit: str = "g"
    weight_in_grams: float = Field(gt=0)
    calories: float = Field(ge=0)
    protein: float = Field(default=0.0, ge=0)
    carbohydrates: float = Field(default=0.0, ge=0)
    fat: float = Field(default=0.0, ge=0)
    sugar: float | None = None
    natural_sugar: float | None = None
    added_sugar: float | None = None
    fibre: float | None = None
    sodium: float | None = None
    nutrients: dict[NutrientId, float] = {}
    ai_prompt: str | None = None

    def to_facts(self) -> NutritionFacts:
        """Return the estimate as nutrition for the stated amount."""
        return NutritionFacts(
            calories=self.calories,
            protein=self.protein,
            carbohydrates=self.carbohydrates,
            fat=self.fat,
            sugar=self.sugar,
            natural_sugar=self.natural_sugar,
            added_sugar=self.added_sugar,
            fibre=self.fibre,
            sodium=self.sodium,
            nutrients=dict(self.nutrients),
        )


@dataclass
class TrackingService:
    """Logs consumption against daily logs and keeps snapshots consistent.

    Every mutation runs under ``write_lock``, the same lock backup imports
    take, so the store has a single writer. Lookups of missing entities
    return ``None`` rather than raising.
    """

    repository: NutritionRepository
    timezone: tzinfo = UTC
    write_lock: threading.RLock = field(default_factory=threading.RLock)
    max_entry_amount: float = DEFAULT_MAX_ENTRY_AMOUNT
    sugar_policy: SugarPolicy = SugarPolicy.AS_RECORDED
    calorie_target: float = DEFAULT_CALORIE_TARGET
    protein_target: float = DEFAULT_PROTEIN_TARGET
    carb_target: float = DEFAULT_CARB_TARGET
    fat_target: float = DEFAULT_FAT_TARGET
    clock: Callable[[], datetime] = _utc_now

    def add_product(self, product: Product) -> Product:
        """Store a product."""
        with self.write_lock:
            self.repository.save_product(product)
        return product

    def add_supplement(self, supplement: Supplement) -> Supplement:
        """Store a supplement."""
        with self.write_lock:
            self.repository.save_supplement(supplement)
        return supplement

    def find_product_by_barcode(self, barcode: str) -> Product | None:
        """Return the product with this barcode, if any."""
        cleaned = barcode.strip()
        if not cleaned:
            return None
        return self.repository.find_product_by_barcode(cleaned)

    def get_or_create_daily_log(self, moment: datetime | None = None) -> DailyLog:
        """Return the log for the local day of ``moment``, creating it if needed."""
        start, end = day_bounds(moment or self.clock(), self.timezone)
        with self.write_lock:
            existing = self.repository.find_daily_log(start, end)
            if existing is not None:
                return existing
            daily_log = DailyLog(
                id=uuid4(),
                date=start,
                calorie_target=self.calorie_target,
                protein_target=self.protein_target,
                carb_target=self.carb_target,
                fat_target=self.fat_target,
            )
            self.repository.save_daily_log(daily_log)
        _logger.debug("Created daily log for %s", daily_log.day)
        return daily_log

    def log_product(
        self, product_id: UUID, grams: float, *, at: datetime | None = None
    ) -> FoodEntry | None:
        """Log ``grams`` of a product on the day of ``at``."""
        product = self.repository.get_product(product_id)
        if product is None:
            return None
        snapshot = scale_from_per_100g(product, grams, sugar_policy=self.sugar_policy)
        return self._record_product_entry(product, grams, snapshot, at)

    def log_product_portions(
        self, product_id: UUID, portions: float, *, at: datetime | None = None
    ) -> FoodEntry | None:
        """Log a number of portions of a product; the entry amount is in grams."""
        product = self.repository.get_product(product_id)
        if product is None:
            return None
        snapshot = scale_from_portions(
            product, portions, sugar_policy=self.sugar_policy
        )
        grams = (product.portion_size or 0.0) * portions
        return self._record_product_entry(product, grams, snapshot, at)

    def log_supplement(
        self, supplement_id: UUID, servings: float, *, at: datetime | None = None
    ) -> SupplementEntry | None:
        """Log servings of a supplement."""
        supplement = self.repository.get_supplement(supplement_id)
        if supplement is None:
            return None
        nutrients = scale_from_servings(supplement, servings)
        timestamp = self._timestamp(at)
        with self.write_lock:
            daily_log = self.get_or_create_daily_log(timestamp)
            entry = SupplementEntry(
                id=uuid4(),
                supplement_id=supplement.id,
                daily_log_id=daily_log.id,
                supplement_name=supplement.name,
                amount=servings,
                unit=supplement.serving_size_unit,
                timestamp=timestamp,
                nutrients=nutrients,
            )
            self.repository.save_supplement_entry(entry)
        return entry

    def accept_ai_estimate(
        self, estimate: AIFoodEstimate, *, at: datetime | None = None
    ) -> FoodEntry:
        """Log an AI estimate and remember it as a reusable template.

        A template with the same name (ignoring case) has its usage recorded
        instead of a second template being created.
        """
        timestamp = self._timestamp(at)
        snapshot = estimate.to_facts()
        with self.write_lock:
            daily_log = self.get_or_create_daily_log(timestamp)
            entry = FoodEntry(
                id=uuid4(),
                daily_log_id=daily_log.id,
                custom_food_name=estimate.name,
                amount=estimate.amount,
                unit=estimate.unit,
                timestamp=timestamp,
                snapshot=snapshot,
                ai_generated=True,
                ai_prompt=estimate.ai_prompt,
            )
            self.repository.save_food_entry(entry)

            candidate = AIFoodTemplate(
                id=uuid4(),
                name=estimate.name,
                amount=estimate.amount,
                unit=estimate.unit,
                weight_in_grams=estimate.weight_in_grams,
                snapshot=snapshot,
                date_created=timestamp,
                last_used=timestamp,
                ai_prompt=estimate.ai_prompt,
            )
            existing = match_template(candidate, self.repository.list_templates())
            if existing is None:
                self.repository.save_template(candidate)
            else:
                self.repository.save_template(_record_use(existing, timestamp))
        return entry

    def log_template(
        self, template_id: UUID, *, at: datetime | None = None
    ) -> FoodEntry | None:
        """Log a saved template again and record its use."""
        template = self.repository.get_template(template_id)
        if template is None:
            return None
        timestamp = self._timestamp(at)
        with self.write_lock:
            daily_log = self.get_or_create_daily_log(timestamp)
            entry = FoodEntry(
                id=uuid4(),
                daily_log_id=daily_log.id,
                custom_food_name=template.name,
                amount=template.amount,
                unit=template.unit,
                timestamp=timestamp,
                snapshot=template.snapshot,
                ai_generated=True,
                ai_prompt=template.ai_prompt,
            )
            self.repository.save_food_entry(entry)
            self.repository.save_template(_record_use(template, timestamp))
        return entry

    def save_template_as_product(
        self, template_id: UUID, *, at: datetime | None = None
    ) -> tuple[Product, FoodEntry] | None:
        """Turn a template into a custom per-100g product and log it once.

        The new entry carries the template's snapshot unchanged, logged as
        the template's weight in grams.
        """
        template = self.repository.get_template(template_id)
        if template is None:
            return None
        timestamp = self._timestamp(at)
        product = derive_per_100g_from_weight(
            template.snapshot,
            template.weight_in_grams,
            name=template.name,
            date_added=timestamp,
        )
        with self.write_lock:
            self.repository.save_product(product)
            daily_log = self.get_or_create_daily_log(timestamp)
            entry = FoodEntry(
                id=uuid4(),
                product_id=product.id,
                daily_log_id=daily_log.id,
                product_name=product.name,
                amount=template.weight_in_grams,
                unit="g",
                timestamp=timestamp,
                snapshot=template.snapshot,
            )
            self.repository.save_food_entry(entry)
        _logger.info("Saved template %r as product %s", template.name, product.id)
        return product, entry

    def set_entry_amount(self, entry_id: UUID, amount: float) -> FoodEntry | None:
        """Set an entry's amount, clamped to ``[1, max_entry_amount]``."""
        with self.write_lock:
            entry = self.repository.get_food_entry(entry_id)
            if entry is None:
                return None
            new_amount = clamp_amount(amount, self.max_entry_amount)
            updated = replace(
                entry,
                amount=new_amount,
                snapshot=rescale(entry, new_amount),
            )
            self.repository.save_food_entry(updated)
        return updated

    def adjust_entry_amount(self, entry_id: UUID, delta: float) -> FoodEntry | None:
        """Step an entry's amount by ``delta``, never below one unit."""
        with self.write_lock:
            entry = self.repository.get_food_entry(entry_id)
            if entry is None:
                return None
            new_amount = clamp_amount(entry.amount + delta)
            updated = replace(
                entry,
                amount=new_amount,
                snapshot=rescale(entry, new_amount),
            )
            self.repository.save_food_entry(updated)
        return updated

    def delete_food_entry(self, entry_id: UUID) -> None:
        """Delete a food entry."""
        with self.write_lock:
            self.repository.delete_food_entry(entry_id)

    def delete_supplement_entry(self, entry_id: UUID) -> None:
        """Delete a supplement entry."""
        with self.write_lock:
            self.repository.delete_supplement_entry(entry_id)

    def delete_product(self, product_id: UUID) -> None:
        """Delete a product; entries keep their snapshots and names."""
        with self.write_lock:
            self.repository.delete_product(product_id)

    def delete_supplement(self, supplement_id: UUID) -> None:
        """Delete a supplement; entries keep their snapshots and names."""
        with self.write_lock:
            self.repository.delete_supplement(supplement_id)

    def delete_daily_log(self, daily_log_id: UUID) -> None:
        """Delete a daily log and every entry on it."""
        with self.write_lock:
            self.repository.delete_daily_log(daily_log_id)

    def daily_totals(self, daily_log_id: UUID) -> DailyTotals | None:
        """Sum a day's food and supplement entries."""
        daily_log = self.repository.get_daily_log(daily_log_id)
        if daily_log is None:
            return None
        food_entries = self.repository.list_food_entries(daily_log_id)
        supplement_entries = self.repository.list_supplement_entries(daily_log_id)
        snapshots = [entry.snapshot for entry in food_entries]

        nutrients = _sum_nutrients(snapshot.nutrients for snapshot in snapshots)
        for nutrient_id, value in _sum_nutrients(
            entry.nutrients for entry in supplement_entries
        ).items():
            nutrients[nutrient_id] = nutrients.get(nutrient_id, 0.0) + value

        return DailyTotals(
            daily_log_id=daily_log.id,
            day=daily_log.date.astimezone(self.timezone).date(),
            calorie_target=daily_log.calorie_target,
            calories=sum(snapshot.calories for snapshot in snapshots),
            protein=sum(snapshot.protein for snapshot in snapshots),
            carbohydrates=sum(snapshot.carbohydrates for snapshot in snapshots),
            fat=sum(snapshot.fat for snapshot in snapshots),
            sugar=_sum_present(snapshot.sugar for snapshot in snapshots),
            natural_sugar=_sum_present(
                snapshot.natural_sugar for snapshot in snapshots
            ),
            added_sugar=_sum_present(snapshot.added_sugar for snapshot in snapshots),
            fibre=_sum_present(snapshot.fibre for snapshot in snapshots),
            sodium=_sum_present(snapshot.sodium for snapshot in snapshots),
            nutrients=nutrients,
            entry_count=len(food_entries) + len(supplement_entries),
        )

    def _timestamp(self, at: datetime | None) -> datetime:
        # Naive times are local to the configured zone.
        return as_aware(at or self.clock(), self.timezone)

    def _record_product_entry(
        self,
        product: Product,
        grams: float,
        snapshot: NutritionFacts,
        at: datetime | None,
    ) -> FoodEntry:
        timestamp = self._timestamp(at)
        with self.write_lock:
            daily_log = self.get_or_create_daily_log(timestamp)
            entry = FoodEntry(
                id=uuid4(),
                product_id=product.id,
                daily_log_id=daily_log.id,
                product_name=product.name,
                amount=grams,
                unit="g",
                timestamp=timestamp,
                snapshot=snapshot,
            )
            self.repository.save_food_entry(entry)
        return entry


def _record_use(template: AIFoodTemplate, moment: datetime) -> AIFoodTemplate:
    return replace(template, use_count=template.use_count + 1, last_used=moment)


def _sum_present(values: Iterable[float | None]) -> float | None:
    present = [value for value in values if value is not None]
    if not present:
        return None
    return sum(present)


def _sum_nutrients(maps: Iterable[NutrientMap]) -> NutrientMap:
    totals: NutrientMap = {}
    for nutrients in maps:
        for nutrient_id, value in nutrients.items():
            totals[nutrient_id] = totals.get(nutrient_id, 0.0) + value
    return totals
