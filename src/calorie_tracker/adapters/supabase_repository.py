"""Supabase repository for the nutrition store."""

from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from typing import Any
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from calorie_tracker.domain.backup import (
    AITemplateBackup,
    DailyLogBackup,
    FoodEntryBackup,
    ProductBackup,
    SupplementBackup,
    SupplementEntryBackup,
)
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

PRODUCTS = "products"
SUPPLEMENTS = "supplements"
DAILY_LOGS = "daily_logs"
FOOD_ENTRIES = "food_entries"
SUPPLEMENT_ENTRIES = "supplement_entries"
TEMPLATES = "ai_food_templates"

IMPORT_FUNCTION = "import_backup_graph"
DELETE_DAY_FUNCTION = "delete_daily_log"


@dataclass
class SupabaseNutritionRepository(NutritionRepository):
    """Supabase implementation of the nutrition store.

    Rows use the snake_case field names of the backup schema. Imports go
    through the ``import_backup_graph`` database function, which inserts
    every row in one transaction and returns the number of rows written.
    ``delete_daily_log`` removes a day and its entries the same way.
    Client errors surface as ``StorageFailureError``.
    """

    client: Client
    timezone: tzinfo = UTC

    def snapshot(self) -> EntityGraph:
        """Return every stored entity."""
        tz = self.timezone
        return EntityGraph(
            products=[
                ProductBackup.model_validate(row).to_product(tz)
                for row in self._select_all(PRODUCTS)
            ],
            supplements=[
                SupplementBackup.model_validate(row).to_supplement(tz)
                for row in self._select_all(SUPPLEMENTS)
            ],
            daily_logs=[
                DailyLogBackup.model_validate(row).to_daily_log(tz)
                for row in self._select_all(DAILY_LOGS)
            ],
            food_entries=[
                FoodEntryBackup.model_validate(row).to_entry(tz)
                for row in self._select_all(FOOD_ENTRIES)
            ],
            supplement_entries=[
                SupplementEntryBackup.model_validate(row).to_entry(tz)
                for row in self._select_all(SUPPLEMENT_ENTRIES)
            ],
            templates=[
                AITemplateBackup.model_validate(row).to_template(tz)
                for row in self._select_all(TEMPLATES)
            ],
        )

    def get_product(self, product_id: UUID) -> Product | None:
        """Return a product by id."""
        row = self._select_one(PRODUCTS, "id", str(product_id))
        if row is None:
            return None
        return ProductBackup.model_validate(row).to_product(self.timezone)

    def find_product_by_barcode(self, barcode: str) -> Product | None:
        """Return the product with this barcode, if any."""
        row = self._select_one(PRODUCTS, "barcode", barcode)
        if row is None:
            return None
        return ProductBackup.model_validate(row).to_product(self.timezone)

    def save_product(self, product: Product) -> None:
        """Insert or replace a product."""
        self._upsert(
            PRODUCTS, ProductBackup.from_product(product).model_dump(mode="json")
        )

    def delete_product(self, product_id: UUID) -> None:
        """Delete a product and clear entry references to it."""
        self._execute(
            self.client.table(FOOD_ENTRIES)
            .update({"product_id": None})
            .eq("product_id", str(product_id)),
            "detach product entries",
        )
        self._delete(PRODUCTS, product_id)

    def get_supplement(self, supplement_id: UUID) -> Supplement | None:
        """Return a supplement by id."""
        row = self._select_one(SUPPLEMENTS, "id", str(supplement_id))
        if row is None:
            return None
        return SupplementBackup.model_validate(row).to_supplement(self.timezone)

    def save_supplement(self, supplement: Supplement) -> None:
        """Insert or replace a supplement."""
        self._upsert(
            SUPPLEMENTS,
            SupplementBackup.from_supplement(supplement).model_dump(mode="json"),
        )

    def delete_supplement(self, supplement_id: UUID) -> None:
        """Delete a supplement and clear entry references to it."""
        self._execute(
            self.client.table(SUPPLEMENT_ENTRIES)
            .update({"supplement_id": None})
            .eq("supplement_id", str(supplement_id)),
            "detach supplement entries",
        )
        self._delete(SUPPLEMENTS, supplement_id)

    def get_daily_log(self, daily_log_id: UUID) -> DailyLog | None:
        """Return a daily log by id."""
        row = self._select_one(DAILY_LOGS, "id", str(daily_log_id))
        if row is None:
            return None
        return DailyLogBackup.model_validate(row).to_daily_log(self.timezone)

    def find_daily_log(self, start: datetime, end: datetime) -> DailyLog | None:
        """Return the daily log dated within ``[start, end)``."""
        response = self._execute(
            self.client.table(DAILY_LOGS)
            .select("*")
            .gte("date", start.isoformat())
            .lt("date", end.isoformat())
            .limit(1),
            "load daily log",
        )
        if not response.data:
            return None
        return DailyLogBackup.model_validate(response.data[0]).to_daily_log(
            self.timezone
        )

    def save_daily_log(self, daily_log: DailyLog) -> None:
        """Insert or replace a daily log."""
        self._upsert(
            DAILY_LOGS, DailyLogBackup.from_daily_log(daily_log).model_dump(mode="json")
        )

    def delete_daily_log(self, daily_log_id: UUID) -> None:
        """Delete a daily log together with its entries in one transaction."""
        self._execute(
            self.client.rpc(DELETE_DAY_FUNCTION, {"daily_log_id": str(daily_log_id)}),
            "delete daily log",
        )

    def get_food_entry(self, entry_id: UUID) -> FoodEntry | None:
        """Return a food entry by id."""
        row = self._select_one(FOOD_ENTRIES, "id", str(entry_id))
        if row is None:
            return None
        return FoodEntryBackup.model_validate(row).to_entry(self.timezone)

    def list_food_entries(self, daily_log_id: UUID) -> list[FoodEntry]:
        """Return food entries owned by a daily log, oldest first."""
        response = self._execute(
            self.client.table(FOOD_ENTRIES)
            .select("*")
            .eq("daily_log_id", str(daily_log_id))
            .order("timestamp", desc=False),
            "load food entries",
        )
        return [
            FoodEntryBackup.model_validate(row).to_entry(self.timezone)
            for row in response.data or []
        ]

    def save_food_entry(self, entry: FoodEntry) -> None:
        """Insert or replace a food entry."""
        self._upsert(
            FOOD_ENTRIES, FoodEntryBackup.from_entry(entry).model_dump(mode="json")
        )

    def delete_food_entry(self, entry_id: UUID) -> None:
        """Delete a food entry."""
        self._delete(FOOD_ENTRIES, entry_id)

    def list_supplement_entries(self, daily_log_id: UUID) -> list[SupplementEntry]:
        """Return supplement entries owned by a daily log, oldest first."""
        response = self._execute(
            self.client.table(SUPPLEMENT_ENTRIES)
            .select("*")
            .eq("daily_log_id", str(daily_log_id))
            .order("timestamp", desc=False),
            "load supplement entries",
        )
        return [
            SupplementEntryBackup.model_validate(row).to_entry(self.timezone)
            for row in response.data or []
        ]

    def save_supplement_entry(self, entry: SupplementEntry) -> None:
        """Insert or replace a supplement entry."""
        self._upsert(
            SUPPLEMENT_ENTRIES,
            SupplementEntryBackup.from_entry(entry).model_dump(mode="json"),
        )

    def delete_supplement_entry(self, entry_id: UUID) -> None:
        """Delete a supplement entry."""
        self._delete(SUPPLEMENT_ENTRIES, entry_id)

    def get_template(self, template_id: UUID) -> AIFoodTemplate | None:
        """Return an AI food template by id."""
        row = self._select_one(TEMPLATES, "id", str(template_id))
        if row is None:
            return None
        return AITemplateBackup.model_validate(row).to_template(self.timezone)

    def list_templates(self) -> list[AIFoodTemplate]:
        """Return every AI food template."""
        return [
            AITemplateBackup.model_validate(row).to_template(self.timezone)
            for row in self._select_all(TEMPLATES)
        ]

    def save_template(self, template: AIFoodTemplate) -> None:
        """Insert or replace an AI food template."""
        self._upsert(
            TEMPLATES, AITemplateBackup.from_template(template).model_dump(mode="json")
        )

    def commit_import(self, graph: EntityGraph) -> None:
        """Insert every entity of ``graph`` in a single database transaction."""
        payload = {
            PRODUCTS: [
                ProductBackup.from_product(item).model_dump(mode="json")
                for item in graph.products
            ],
            SUPPLEMENTS: [
                SupplementBackup.from_supplement(item).model_dump(mode="json")
                for item in graph.supplements
            ],
            DAILY_LOGS: [
                DailyLogBackup.from_daily_log(item).model_dump(mode="json")
                for item in graph.daily_logs
            ],
            FOOD_ENTRIES: [
                FoodEntryBackup.from_entry(item).model_dump(mode="json")
                for item in graph.food_entries
            ],
            SUPPLEMENT_ENTRIES: [
                SupplementEntryBackup.from_entry(item).model_dump(mode="json")
                for item in graph.supplement_entries
            ],
            TEMPLATES: [
                AITemplateBackup.from_template(item).model_dump(mode="json")
                for item in graph.templates
            ],
        }
        response = self._execute(
            self.client.rpc(IMPORT_FUNCTION, {"payload": payload}), "import backup"
        )
        if not response.data:
            raise StorageFailureError("Failed to import backup")

    def _select_all(self, table: str) -> list[dict[str, object]]:
        response = self._execute(self.client.table(table).select("*"), f"load {table}")
        return response.data or []

    def _select_one(
        self, table: str, column: str, value: str
    ) -> dict[str, object] | None:
        response = self._execute(
            self.client.table(table).select("*").eq(column, value).limit(1),
            f"load {table} row",
        )
        if not response.data:
            return None
        return response.data[0]

    def _upsert(self, table: str, row: dict[str, object]) -> None:
        response = self._execute(
            self.client.table(table).upsert(row), f"save {table} row"
        )
        if not response.data:
            raise StorageFailureError(f"Failed to save {table} row")

    def _delete(self, table: str, row_id: UUID) -> None:
        self._execute(
            self.client.table(table).delete().eq("id", str(row_id)),
            f"delete {table} row",
        )

    @staticmethod
    def _execute(query: Any, action: str) -> Any:
        try:
            return query.execute()
        except APIError as exc:
            raise StorageFailureError(f"Failed to {action}: {exc.message}") from exc
