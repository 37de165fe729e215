"""Dependency container wiring for the application."""

import threading
from dataclasses import dataclass
from datetime import timedelta

from supabase import create_client

from calorie_tracker.adapters.in_memory_repository import InMemoryNutritionRepository
from calorie_tracker.adapters.supabase_repository import SupabaseNutritionRepository
from calorie_tracker.config import Settings, parse_timezone
from calorie_tracker.services.backup import BackupCodec, BackupService
from calorie_tracker.services.reconciler import ImportReconciler
from calorie_tracker.services.repository import NutritionRepository
from calorie_tracker.services.tracking import TrackingService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    repository: NutritionRepository
    write_lock: threading.RLock
    tracking_service: TrackingService
    backup_service: BackupService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    tz = parse_timezone(resolved_settings.timezone)
    repository = _build_repository(resolved_settings)
    write_lock = threading.RLock()
    tracking_service = TrackingService(
        repository=repository,
        timezone=tz,
        write_lock=write_lock,
        max_entry_amount=resolved_settings.max_entry_amount,
        sugar_policy=resolved_settings.sugar_policy,
        calorie_target=resolved_settings.default_calorie_target,
        protein_target=resolved_settings.default_protein_target,
        carb_target=resolved_settings.default_carb_target,
        fat_target=resolved_settings.default_fat_target,
    )
    backup_service = BackupService(
        repository=repository,
        codec=BackupCodec(timezone=tz),
        reconciler=ImportReconciler(
            timezone=tz,
            entry_tolerance=timedelta(
                seconds=resolved_settings.entry_match_tolerance_seconds
            ),
        ),
        write_lock=write_lock,
    )
    return AppContainer(
        settings=resolved_settings,
        repository=repository,
        write_lock=write_lock,
        tracking_service=tracking_service,
        backup_service=backup_service,
    )


def _build_repository(settings: Settings) -> NutritionRepository:
    if settings.storage_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError("Supabase storage requires a URL and service key")
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseNutritionRepository(
            client, timezone=parse_timezone(settings.timezone)
        )
    return InMemoryNutritionRepository()
