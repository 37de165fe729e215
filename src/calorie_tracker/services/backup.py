"""Backup export and import."""

import asyncio
import binascii
import json
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, tzinfo

from pydantic import ValidationError

from calorie_tracker.domain.backup import (
    BACKUP_VERSION,
    SUPPORTED_VERSIONS,
    AITemplateBackup,
    BackupDocument,
    DailyLogBackup,
    DecodedGraph,
    FoodEntryBackup,
    ImportSummary,
    ProductBackup,
    SupplementBackup,
    SupplementEntryBackup,
)
from calorie_tracker.domain.models import EntityGraph
from calorie_tracker.errors import (
    MalformedBackupError,
    StorageFailureError,
    UnsupportedVersionError,
)
from calorie_tracker.services.reconciler import ImportReconciler
from calorie_tracker.services.repository import NutritionRepository

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class BackupCodec:
    """Encodes entity graphs to versioned JSON documents and back.

    Output is canonical: keys are sorted, lists are ordered by id and
    absent optional values are omitted, so encoding the same graph with
    the same export time always yields the same bytes.
    """

    timezone: tzinfo = UTC

    def encode(self, graph: EntityGraph, exported_at: datetime) -> bytes:
        """Serialize ``graph`` as a version-1 backup document."""
        document = BackupDocument(
            version=BACKUP_VERSION,
            export_date=exported_at,
            products=[
                ProductBackup.from_product(product)
                for product in _by_id(graph.products)
            ],
            daily_logs=[
                DailyLogBackup.from_daily_log(daily_log)
                for daily_log in _by_id(graph.daily_logs)
            ],
            food_entries=[
                FoodEntryBackup.from_entry(entry)
                for entry in _by_id(graph.food_entries)
            ],
            ai_templates=[
                AITemplateBackup.from_template(template)
                for template in _by_id(graph.templates)
            ],
            supplements=[
                SupplementBackup.from_supplement(supplement)
                for supplement in _by_id(graph.supplements)
            ],
            supplement_entries=[
                SupplementEntryBackup.from_entry(entry)
                for entry in _by_id(graph.supplement_entries)
            ],
        )
        payload = document.model_dump(mode="json", by_alias=True, exclude_none=True)
        return json.dumps(payload, sort_keys=True, indent=2, ensure_ascii=False).encode(
            "utf-8"
        )

    def decode(self, data: bytes) -> DecodedGraph:
        """Parse a backup document.

        Raises ``MalformedBackupError`` for anything that is not a valid
        document and ``UnsupportedVersionError`` for unknown versions. Foreign
        keys are returned as written; resolving them is the reconciler's job.
        """
        try:
            payload = json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedBackupError(f"Backup is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise MalformedBackupError("Backup root must be a JSON object")

        version = payload.get("version")
        if version is None:
            raise MalformedBackupError("Backup has no version")
        if isinstance(version, bool) or not isinstance(version, int):
            raise MalformedBackupError(
                f"Backup version must be an integer: {version!r}"
            )
        if version not in SUPPORTED_VERSIONS:
            raise UnsupportedVersionError(version)

        try:
            document = BackupDocument.model_validate(payload)
        except ValidationError as exc:
            raise MalformedBackupError(f"Invalid backup document: {exc}") from exc

        tz = self.timezone
        try:
            graph = EntityGraph(
                products=[item.to_product(tz) for item in document.products],
                supplements=[item.to_supplement(tz) for item in document.supplements],
                daily_logs=[item.to_daily_log(tz) for item in document.daily_logs],
                food_entries=[item.to_entry(tz) for item in document.food_entries],
                supplement_entries=[
                    item.to_entry(tz) for item in document.supplement_entries
                ],
                templates=[item.to_template(tz) for item in document.ai_templates],
            )
        except (ValueError, binascii.Error) as exc:
            raise MalformedBackupError(f"Invalid backup content: {exc}") from exc

        return DecodedGraph(
            version=document.version,
            exported_at=document.export_date,
            graph=graph,
        )


@dataclass
class BackupService:
    """Exports the store and merges backups into it."""

    repository: NutritionRepository
    codec: BackupCodec
    reconciler: ImportReconciler
    write_lock: threading.RLock = field(default_factory=threading.RLock)
    clock: Callable[[], datetime] = _utc_now

    async def export_backup(self) -> bytes:
        """Serialize every stored entity."""
        return await asyncio.to_thread(self.export_backup_sync)

    async def import_backup(self, data: bytes) -> ImportSummary:
        """Decode ``data`` and merge it into the store."""
        return await asyncio.to_thread(self.import_backup_sync, data)

    def export_backup_sync(self) -> bytes:
        """Serialize every stored entity from a consistent snapshot."""
        with self.write_lock:
            graph = self.repository.snapshot()
        payload = self.codec.encode(graph, self.clock())
        _logger.info(
            "Exported backup: %d products, %d days, %d entries",
            len(graph.products),
            len(graph.daily_logs),
            len(graph.food_entries),
        )
        return payload

    def import_backup_sync(self, data: bytes) -> ImportSummary:
        """Decode, reconcile and commit a backup in one step.

        Nothing is written when decoding fails or the store rejects any
        insert.
        """
        decoded = self.codec.decode(data)
        with self.write_lock:
            plan = self.reconciler.reconcile(self.repository.snapshot(), decoded.graph)
            if not plan.created.is_empty():
                try:
                    self.repository.commit_import(plan.created)
                except StorageFailureError:
                    _logger.warning(
                        "Backup import rolled back: %d entities rejected",
                        plan.summary.total_imported,
                    )
                    raise
        summary = plan.summary
        _logger.info("%s", summary.describe())
        if summary.total_skipped:
            _logger.info("%s", summary.describe_skipped())
        if summary.dropped_references:
            _logger.info(
                "Dropped %d references to entities missing from the backup",
                summary.dropped_references,
            )
        return summary


def _by_id(items: list) -> list:
    return sorted(items, key=lambda item: str(item.id))
