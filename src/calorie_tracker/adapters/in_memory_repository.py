"""In-process repository keeping every entity in id-keyed tables."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from uuid import UUID

from calorie_tracker.domain.models import (
    AIFoodTemplate,
    DailyLog,
    EntityGraph,
    FoodEntry,
    Product,
    Supplement,
    SupplementEntry,
)
from calorie_tracker.errors import StorageFailureError
from calorie_tracker.services.repository import NutritionRepository


@dataclass
class InMemoryNutritionRepository(NutritionRepository):
    """Dictionary-backed repository for local use and tests."""

    products: dict[UUID, Product] = field(default_factory=dict)
    supplements: dict[UUID, Supplement] = field(default_factory=dict)
    daily_logs: dict[UUID, DailyLog] = field(default_factory=dict)
    food_entries: dict[UUID, FoodEntry] = field(default_factory=dict)
    supplement_entries: dict[UUID, SupplementEntry] = field(default_factory=dict)
    templates: dict[UUID, AIFoodTemplate] = field(default_factory=dict)

    def snapshot(self) -> EntityGraph:
        """Return every stored entity."""
        return EntityGraph(
            products=list(self.products.values()),
            supplements=list(self.supplements.values()),
            daily_logs=list(self.daily_logs.values()),
            food_entries=list(self.food_entries.values()),
            supplement_entries=list(self.supplement_entries.values()),
            templates=list(self.templates.values()),
        )

    def get_product(self, product_id: UUID) -> Product | None:
        """Return a product by id."""
        return self.products.get(product_id)

    def find_product_by_barcode(self, barcode: str) -> Product | None:
        """Return the product with this barcode, if any."""
        for product in self.products.values():
            if product.barcode == barcode:
                return product
        return None

    def save_product(self, product: Product) -> None:
        """Insert or replace a product."""
        self.products[product.id] = product

    def delete_product(self, product_id: UUID) -> None:
        """Delete a product and clear entry references to it."""
        self.products.pop(product_id, None)
        for entry in list(self.food_entries.values()):
            if entry.product_id == product_id:
                self.food_entries[entry.id] = replace(entry, product_id=None)

    def get_supplement(self, supplement_id: UUID) -> Supplement | None:
        """Return a supplement by id."""
        return self.supplements.get(supplement_id)

    def save_supplement(self, supplement: Supplement) -> None:
        """Insert or replace a supplement."""
        self.supplements[supplement.id] = supplement

    def delete_supplement(self, supplement_id: UUID) -> None:
        """Delete a supplement and clear entry references to it."""
        self.supplements.pop(supplement_id, None)
        for entry in list(self.supplement_entries.values()):
            if entry.supplement_id == supplement_id:
                self.supplement_entries[entry.id] = replace(entry, supplement_id=None)

    def get_daily_log(self, daily_log_id: UUID) -> DailyLog | None:
        """Return a daily log by id."""
        return self.daily_logs.get(daily_log_id)

    def find_daily_log(self, start: datetime, end: datetime) -> DailyLog | None:
        """Return the daily log dated within ``[start, end)``."""
        for daily_log in self.daily_logs.values():
            if start <= daily_log.date < end:
                return daily_log
        return None

    def save_daily_log(self, daily_log: DailyLog) -> None:
        """Insert or replace a daily log."""
        self.daily_logs[daily_log.id] = daily_log

    def delete_daily_log(self, daily_log_id: UUID) -> None:
        """Delete a daily log together with its entries."""
        self.daily_logs.pop(daily_log_id, None)
        self.food_entries = {
            entry_id: entry
            for entry_id, entry in self.food_entries.items()
            if entry.daily_log_id != daily_log_id
        }
        self.supplement_entries = {
            entry_id: entry
            for entry_id, entry in self.supplement_entries.items()
            if entry.daily_log_id != daily_log_id
        }

    def get_food_entry(self, entry_id: UUID) -> FoodEntry | None:
        """Return a food entry by id."""
        return self.food_entries.get(entry_id)

    def list_food_entries(self, daily_log_id: UUID) -> list[FoodEntry]:
        """Return food entries owned by a daily log, oldest first."""
        entries = [
            entry
            for entry in self.food_entries.values()
            if entry.daily_log_id == daily_log_id
        ]
        return sorted(entries, key=lambda entry: entry.timestamp)

    def save_food_entry(self, entry: FoodEntry) -> None:
        """Insert or replace a food entry."""
        self.food_entries[entry.id] = entry

    def delete_food_entry(self, entry_id: UUID) -> None:
        """Delete a food entry."""
        self.food_entries.pop(entry_id, None)

    def list_supplement_entries(self, daily_log_id: UUID) -> list[SupplementEntry]:
        """Return supplement entries owned by a daily log, oldest first."""
        entries = [
            entry
            for entry in self.supplement_entries.values()
            if entry.daily_log_id == daily_log_id
        ]
        return sorted(entries, key=lambda entry: entry.timestamp)

    def save_supplement_entry(self, entry: SupplementEntry) -> None:
        """Insert or replace a supplement entry."""
        self.supplement_entries[entry.id] = entry

    def delete_supplement_entry(self, entry_id: UUID) -> None:
        """Delete a supplement entry."""
        self.supplement_entries.pop(entry_id, None)

    def get_template(self, template_id: UUID) -> AIFoodTemplate | None:
        """Return an AI food template by id."""
        return self.templates.get(template_id)

    def list_templates(self) -> list[AIFoodTemplate]:
        """Return every AI food template."""
        return list(self.templates.values())

    def save_template(self, template: AIFoodTemplate) -> None:
        """Insert or replace an AI food template."""
        self.templates[template.id] = template

    def commit_import(self, graph: EntityGraph) -> None:
        """Insert every entity of ``graph`` or none of them."""
        products = _insert_all(self.products, graph.products, "product")
        supplements = _insert_all(self.supplements, graph.supplements, "supplement")
        daily_logs = _insert_all(self.daily_logs, graph.daily_logs, "daily log")
        food_entries = _insert_all(
            self.food_entries, graph.food_entries, "food entry"
        )
        supplement_entries = _insert_all(
            self.supplement_entries, graph.supplement_entries, "supplement entry"
        )
        templates = _insert_all(self.templates, graph.templates, "template")

        for entry in graph.food_entries:
            _check_reference(entry.product_id, products, "product")
            _check_reference(entry.daily_log_id, daily_logs, "daily log")
        for entry in graph.supplement_entries:
            _check_reference(entry.supplement_id, supplements, "supplement")
            _check_reference(entry.daily_log_id, daily_logs, "daily log")

        self.products = products
        self.supplements = supplements
        self.daily_logs = daily_logs
        self.food_entries = food_entries
        self.supplement_entries = supplement_entries
        self.templates = templates


def _insert_all(table: dict, rows: list, label: str) -> dict:
    staged = dict(table)
    for row in rows:
        if row.id in staged:
            raise StorageFailureError(f"Duplicate {label} id {row.id}")
        staged[row.id] = row
    return staged


def _check_reference(ref: UUID | None, table: dict, label: str) -> None:
    if ref is not None and ref not in table:
        raise StorageFailureError(f"Unknown {label} reference {ref}")
