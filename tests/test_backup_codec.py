"""Tests for the backup document codec."""

import json
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from calorie_tracker.domain.backup import NUTRIENT_FIELD_NAMES, NutrientFields
from calorie_tracker.domain.models import EntityGraph
from calorie_tracker.domain.nutrients import NutrientId
from calorie_tracker.errors import MalformedBackupError, UnsupportedVersionError
from calorie_tracker.services.backup import BackupCodec
from tests.conftest import NOW, make_entry, make_facts, make_graph, make_product

MINIMAL_DOCUMENT = {
    "version": 1,
    "exportDate": "2026-03-14T12:30:00Z",
    "products": [
        {
            "id": "0b7c1d5e-4a8e-4f57-9a55-2f3f8e3b7a01",
            "name": "Greek Yogurt",
            "brand": "Fage",
            "servingSize": 100,
            "servingSizeUnit": "g",
            "calories": 97,
            "protein": 9,
            "carbohydrates": 3.9,
            "fat": 5,
            "calcium": 110,
            "dateAdded": "2026-03-01T09:00:00Z",
            "isCustom": False,
        }
    ],
    "dailyLogs": [],
    "foodEntries": [],
    "aiTemplates": [],
}


def _encode(document: dict[str, object]) -> bytes:
    return json.dumps(document).encode("utf-8")


def test_nutrient_field_aliases_match_catalog_ids() -> None:
    aliases = {
        info.alias for info in NutrientFields.model_fields.values()
    }

    assert aliases == {str(nutrient_id) for nutrient_id in NutrientId}
    assert NUTRIENT_FIELD_NAMES[NutrientId.VITAMIN_B12] == "vitamin_b12"


def test_encode_is_deterministic() -> None:
    codec = BackupCodec()
    graph = make_graph()
    shuffled = EntityGraph(
        products=list(graph.products),
        supplements=list(graph.supplements),
        daily_logs=list(graph.daily_logs),
        food_entries=list(reversed(graph.food_entries)),
        supplement_entries=list(graph.supplement_entries),
        templates=list(graph.templates),
    )

    first = codec.encode(graph, NOW)
    second = codec.encode(shuffled, NOW)

    assert first == second


def test_encode_writes_camel_case_and_omits_absent_values() -> None:
    product = make_product(per_100g=make_facts(50.0, sugar=0.0))
    payload = json.loads(BackupCodec().encode(EntityGraph(products=[product]), NOW))

    row = payload["products"][0]
    assert payload["version"] == 1
    assert "exportDate" in payload
    assert row["sugar"] == 0.0
    assert "addedSugar" not in row
    assert "fibre" not in row
    assert row["servingSizeUnit"] == "g"
    assert payload["supplements"] == []


def test_decode_restores_the_encoded_graph() -> None:
    codec = BackupCodec()
    graph = make_graph()
    graph.products[0] = replace(graph.products[0], image_data=b"\x89PNG")

    decoded = codec.decode(codec.encode(graph, NOW))

    assert decoded.version == 1
    assert decoded.exported_at == NOW
    assert decoded.graph.products == graph.products
    assert decoded.graph.daily_logs == graph.daily_logs
    assert sorted(decoded.graph.food_entries, key=lambda e: e.timestamp) == sorted(
        graph.food_entries, key=lambda e: e.timestamp
    )
    assert decoded.graph.supplements == graph.supplements
    assert decoded.graph.supplement_entries == graph.supplement_entries
    assert decoded.graph.templates == graph.templates


def test_decode_accepts_documents_without_supplements() -> None:
    decoded = BackupCodec().decode(_encode(MINIMAL_DOCUMENT))

    product = decoded.graph.products[0]
    assert product.name == "Greek Yogurt"
    assert product.per_100g.nutrients == {NutrientId.CALCIUM: 110.0}
    assert product.per_100g.sugar is None
    assert decoded.graph.supplements == []


def test_decode_reads_naive_timestamps_in_configured_zone() -> None:
    document = dict(MINIMAL_DOCUMENT)
    document["foodEntries"] = [
        {
            "id": "5b0e8f0c-31a4-4d0e-8f5c-3d3c4a0e2b11",
            "amount": 150,
            "unit": "g",
            "timestamp": "2026-03-14T08:00:00",
            "calories": 145.5,
            "nutrients": {"calcium": 165, "caffeine": 3},
        }
    ]

    decoded = BackupCodec(timezone=ZoneInfo("Europe/Berlin")).decode(
        _encode(document)
    )

    entry = decoded.graph.food_entries[0]
    assert entry.timestamp.utcoffset() == timedelta(hours=1)
    assert entry.timestamp == datetime(2026, 3, 14, 7, 0, tzinfo=UTC)
    assert entry.snapshot.nutrients == {NutrientId.CALCIUM: 165.0}
    assert entry.snapshot.protein == 0.0
    assert entry.product_id is None


@pytest.mark.parametrize(
    "data",
    [
        b"not json",
        b"\xff\xfe\x00",
        b"[1, 2, 3]",
        b'{"exportDate": "2026-03-14T12:30:00Z"}',
        b'{"version": "1", "exportDate": "2026-03-14T12:30:00Z"}',
        b'{"version": true, "exportDate": "2026-03-14T12:30:00Z"}',
        b'{"version": 1.5, "exportDate": "2026-03-14T12:30:00Z"}',
        b'{"version": 1}',
        b'{"version": 1, "exportDate": "2026-03-14T12:30:00Z", "products": [{}]}',
    ],
)
def test_decode_rejects_malformed_documents(data: bytes) -> None:
    with pytest.raises(MalformedBackupError):
        BackupCodec().decode(data)


def test_decode_rejects_bad_image_data() -> None:
    document = json.loads(json.dumps(MINIMAL_DOCUMENT))
    document["products"][0]["imageDataBase64"] = "not base64!"

    with pytest.raises(MalformedBackupError):
        BackupCodec().decode(_encode(document))


def test_decode_rejects_unknown_versions() -> None:
    document = dict(MINIMAL_DOCUMENT, version=2)

    with pytest.raises(UnsupportedVersionError) as excinfo:
        BackupCodec().decode(_encode(document))

    assert excinfo.value.version == 2
    assert isinstance(excinfo.value, MalformedBackupError)


def test_entry_name_snapshot_survives_encoding() -> None:
    entry = make_entry(product_name="Porridge")
    codec = BackupCodec()

    decoded = codec.decode(codec.encode(EntityGraph(food_entries=[entry]), NOW))

    assert decoded.graph.food_entries[0].display_name == "Porridge"
