"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from calorie_tracker.adapters.in_memory_repository import InMemoryNutritionRepository
from calorie_tracker.config import Settings
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
from calorie_tracker.domain.nutrients import NutrientId
from calorie_tracker.errors import StorageFailureError
from calorie_tracker.services.backup import BackupCodec, BackupService
from calorie_tracker.services.reconciler import ImportReconciler
from calorie_tracker.services.tracking import TrackingService

NOW = datetime(2026, 3, 14, 12, 30, tzinfo=UTC)


def fixed_clock() -> datetime:
    return NOW


def make_facts(calories: float = 100.0, **overrides: object) -> NutritionFacts:
    values: dict[str, object] = {
        "calories": calories,
        "protein": 5.0,
        "carbohydrates": 10.0,
        "fat": 2.0,
    }
    values.update(overrides)
    return NutritionFacts(**values)


def make_product(  # noqa: PLR0913
    name: str = "Oats",
    brand: str | None = "Quaker",
    barcode: str | None = None,
    product_id: UUID | None = None,
    per_100g: NutritionFacts | None = None,
    portion_size: float | None = None,
) -> Product:
    return Product(
        id=product_id or uuid4(),
        name=name,
        brand=brand,
        barcode=barcode,
        per_100g=per_100g
        or make_facts(
            379.0,
            protein=13.2,
            carbohydrates=67.7,
            fat=6.5,
            sugar=1.0,
            fibre=10.1,
            nutrients={NutrientId.IRON: 4.3, NutrientId.MAGNESIUM: 138.0},
        ),
        date_added=NOW,
        portion_size=portion_size,
    )


def make_daily_log(day: datetime = NOW, log_id: UUID | None = None) -> DailyLog:
    return DailyLog(
        id=log_id or uuid4(),
        date=day.replace(hour=0, minute=0, second=0, microsecond=0),
    )


def make_entry(  # noqa: PLR0913
    timestamp: datetime = NOW,
    calories: float = 250.0,
    amount: float = 100.0,
    product_id: UUID | None = None,
    daily_log_id: UUID | None = None,
    product_name: str | None = "Oats",
) -> FoodEntry:
    return FoodEntry(
        id=uuid4(),
        amount=amount,
        unit="g",
        timestamp=timestamp,
        snapshot=make_facts(calories),
        product_id=product_id,
        daily_log_id=daily_log_id,
        product_name=product_name,
    )


def make_supplement(
    name: str = "Multivitamin", brand: str | None = "Centrum"
) -> Supplement:
    return Supplement(
        id=uuid4(),
        name=name,
        brand=brand,
        date_added=NOW,
        serving_size=2.0,
        nutrients={NutrientId.VITAMIN_C: 80.0, NutrientId.ZINC: 10.0},
    )


def make_supplement_entry(
    timestamp: datetime = NOW,
    amount: float = 1.0,
    supplement_id: UUID | None = None,
    daily_log_id: UUID | None = None,
) -> SupplementEntry:
    return SupplementEntry(
        id=uuid4(),
        amount=amount,
        unit="tablet",
        timestamp=timestamp,
        supplement_id=supplement_id,
        daily_log_id=daily_log_id,
        supplement_name="Multivitamin",
        nutrients={NutrientId.VITAMIN_C: 40.0},
    )


def make_template(name: str = "Chicken curry", weight: float = 350.0) -> AIFoodTemplate:
    return AIFoodTemplate(
        id=uuid4(),
        name=name,
        amount=1.0,
        unit="plate",
        weight_in_grams=weight,
        snapshot=make_facts(520.0, protein=32.0, sugar=6.0),
        date_created=NOW,
        last_used=NOW,
        ai_prompt="plate of chicken curry with rice",
    )


def make_graph() -> EntityGraph:
    """A small store: one product eaten twice on one day, one supplement."""
    product = make_product(barcode="5000000000001")
    daily_log = make_daily_log()
    supplement = make_supplement()
    return EntityGraph(
        products=[product],
        supplements=[supplement],
        daily_logs=[daily_log],
        food_entries=[
            make_entry(
                timestamp=NOW.replace(hour=8),
                product_id=product.id,
                daily_log_id=daily_log.id,
            ),
            make_entry(
                timestamp=NOW.replace(hour=19),
                calories=410.0,
                product_id=product.id,
                daily_log_id=daily_log.id,
            ),
        ],
        supplement_entries=[
            make_supplement_entry(
                supplement_id=supplement.id, daily_log_id=daily_log.id
            )
        ],
        templates=[make_template()],
    )


def load_graph(repository: InMemoryNutritionRepository, graph: EntityGraph) -> None:
    repository.commit_import(graph)


@dataclass
class RejectingRepository(InMemoryNutritionRepository):
    """In-memory repository whose imports always fail."""

    import_attempts: list[EntityGraph] = field(default_factory=list)

    def commit_import(self, graph: EntityGraph) -> None:
        self.import_attempts.append(graph)
        raise StorageFailureError("disk full")


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, storage_backend="memory", timezone="UTC")


@pytest.fixture
def repository() -> InMemoryNutritionRepository:
    return InMemoryNutritionRepository()


@pytest.fixture
def tracking_service(repository: InMemoryNutritionRepository) -> TrackingService:
    return TrackingService(repository=repository, timezone=UTC, clock=fixed_clock)


@pytest.fixture
def backup_service(repository: InMemoryNutritionRepository) -> BackupService:
    return BackupService(
        repository=repository,
        codec=BackupCodec(timezone=UTC),
        reconciler=ImportReconciler(timezone=UTC),
        clock=fixed_clock,
    )
