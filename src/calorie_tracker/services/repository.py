"""Persistence interface shared by tracking and backup services."""

from datetime import datetime
from typing import Protocol
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


class NutritionRepository(Protocol):
    """Persistence interface for the nutrition store."""

    def snapshot(self) -> EntityGraph:
        """Return every stored entity."""

    def get_product(self, product_id: UUID) -> Product | None:
        """Return a product by id."""

    def find_product_by_barcode(self, barcode: str) -> Product | None:
        """Return the product with this barcode, if any."""

    def save_product(self, product: Product) -> None:
        """Insert or replace a product."""

    def delete_product(self, product_id: UUID) -> None:
        """Delete a product and clear entry references to it."""

    def get_supplement(self, supplement_id: UUID) -> Supplement | None:
        """Return a supplement by id."""

    def save_supplement(self, supplement: Supplement) -> None:
        """Insert or replace a supplement."""

    def delete_supplement(self, supplement_id: UUID) -> None:
        """Delete a supplement and clear entry references to it."""

    def get_daily_log(self, daily_log_id: UUID) -> DailyLog | None:
        """Return a daily log by id."""

    def find_daily_log(self, start: datetime, end: datetime) -> DailyLog | None:
        """Return the daily log dated within ``[start, end)``."""

    def save_daily_log(self, daily_log: DailyLog) -> None:
        """Insert or replace a daily log."""

    def delete_daily_log(self, daily_log_id: UUID) -> None:
        """Delete a daily log together with its entries."""

    def get_food_entry(self, entry_id: UUID) -> FoodEntry | None:
        """Return a food entry by id."""

    def list_food_entries(self, daily_log_id: UUID) -> list[FoodEntry]:
        """Return food entries owned by a daily log."""

    def save_food_entry(self, entry: FoodEntry) -> None:
        """Insert or replace a food entry."""

    def delete_food_entry(self, entry_id: UUID) -> None:
        """Delete a food entry."""

    def list_supplement_entries(self, daily_log_id: UUID) -> list[SupplementEntry]:
        """Return supplement entries owned by a daily log."""

    def save_supplement_entry(self, entry: SupplementEntry) -> None:
        """Insert or replace a supplement entry."""

    def delete_supplement_entry(self, entry_id: UUID) -> None:
        """Delete a supplement entry."""

    def get_template(self, template_id: UUID) -> AIFoodTemplate | None:
        """Return an AI food template by id."""

    def list_templates(self) -> list[AIFoodTemplate]:
        """Return every AI food template."""

    def save_template(self, template: AIFoodTemplate) -> None:
        """Insert or replace an AI food template."""

    def commit_import(self, graph: EntityGraph) -> None:
        """Insert every entity of ``graph`` atomically.

        Raises ``StorageFailureError`` and leaves the store unchanged when any
        insert is rejected.
        """
