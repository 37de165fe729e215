"""Tests for the in-memory repository."""

from datetime import timedelta
from uuid import uuid4

import pytest

from calorie_tracker.adapters.in_memory_repository import InMemoryNutritionRepository
from calorie_tracker.domain.models import EntityGraph
from calorie_tracker.errors import StorageFailureError
from tests.conftest import (
    NOW,
    load_graph,
    make_daily_log,
    make_entry,
    make_graph,
    make_product,
)


def test_delete_product_keeps_entry_snapshots(
    repository: InMemoryNutritionRepository,
) -> None:
    graph = make_graph()
    load_graph(repository, graph)
    product = graph.products[0]

    repository.delete_product(product.id)

    entries = repository.list_food_entries(graph.daily_logs[0].id)
    assert repository.get_product(product.id) is None
    assert len(entries) == 2
    assert all(entry.product_id is None for entry in entries)
    assert entries[0].snapshot == graph.food_entries[0].snapshot
    assert entries[0].display_name == "Oats"


def test_delete_supplement_nullifies_entries(
    repository: InMemoryNutritionRepository,
) -> None:
    graph = make_graph()
    load_graph(repository, graph)

    repository.delete_supplement(graph.supplements[0].id)

    entries = repository.list_supplement_entries(graph.daily_logs[0].id)
    assert entries[0].supplement_id is None
    assert entries[0].display_name == "Multivitamin"


def test_delete_daily_log_cascades(repository: InMemoryNutritionRepository) -> None:
    graph = make_graph()
    load_graph(repository, graph)

    repository.delete_daily_log(graph.daily_logs[0].id)

    assert repository.food_entries == {}
    assert repository.supplement_entries == {}
    assert len(repository.products) == 1
    assert len(repository.templates) == 1


def test_entries_are_listed_oldest_first(
    repository: InMemoryNutritionRepository,
) -> None:
    daily_log = make_daily_log()
    late = make_entry(timestamp=NOW + timedelta(hours=2), daily_log_id=daily_log.id)
    early = make_entry(timestamp=NOW, daily_log_id=daily_log.id)
    repository.save_daily_log(daily_log)
    repository.save_food_entry(late)
    repository.save_food_entry(early)

    assert repository.list_food_entries(daily_log.id) == [early, late]


def test_find_daily_log_uses_half_open_range(
    repository: InMemoryNutritionRepository,
) -> None:
    daily_log = make_daily_log()
    repository.save_daily_log(daily_log)
    start = daily_log.date

    assert repository.find_daily_log(start, start + timedelta(days=1)) == daily_log
    assert repository.find_daily_log(start - timedelta(days=1), start) is None


def test_find_product_by_barcode(repository: InMemoryNutritionRepository) -> None:
    product = make_product(barcode="4006381333931")
    repository.save_product(product)

    assert repository.find_product_by_barcode("4006381333931") == product
    assert repository.find_product_by_barcode("0000") is None


def test_commit_import_is_all_or_nothing(
    repository: InMemoryNutritionRepository,
) -> None:
    existing = make_product()
    repository.save_product(existing)
    graph = EntityGraph(
        products=[make_product(name="Rye bread")],
        food_entries=[make_entry(daily_log_id=uuid4())],
    )

    with pytest.raises(StorageFailureError):
        repository.commit_import(graph)

    assert list(repository.products) == [existing.id]
    assert repository.food_entries == {}


def test_commit_import_rejects_duplicate_ids(
    repository: InMemoryNutritionRepository,
) -> None:
    existing = make_product()
    repository.save_product(existing)

    with pytest.raises(StorageFailureError, match="Duplicate product"):
        repository.commit_import(EntityGraph(products=[existing]))


def test_list_templates(repository: InMemoryNutritionRepository) -> None:
    graph = make_graph()
    load_graph(repository, graph)

    assert repository.list_templates() == graph.templates
