"""Application configuration."""

import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from calorie_tracker.domain.models import (
    DEFAULT_CALORIE_TARGET,
    DEFAULT_CARB_TARGET,
    DEFAULT_FAT_TARGET,
    DEFAULT_PROTEIN_TARGET,
)
from calorie_tracker.services.scaling import SugarPolicy

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

STORAGE_BACKENDS = frozenset({"memory", "supabase"})


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    storage_backend: str = "memory"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    timezone: str = "UTC"
    max_entry_amount: float = 5000.0
    entry_match_tolerance_seconds: float = 1.0
    sugar_policy: SugarPolicy = SugarPolicy.AS_RECORDED
    default_calorie_target: float = DEFAULT_CALORIE_TARGET
    default_protein_target: float = DEFAULT_PROTEIN_TARGET
    default_carb_target: float = DEFAULT_CARB_TARGET
    default_fat_target: float = DEFAULT_FAT_TARGET
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @field_validator("storage_backend")
    @classmethod
    def _known_backend(cls, value: str) -> str:
        backend = value.strip().lower()
        if backend not in STORAGE_BACKENDS:
            raise ValueError(f"Unknown storage backend: {value}")
        return backend

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        parse_timezone(value)
        return value


def parse_timezone(raw: str | None) -> ZoneInfo:
    """Parse an IANA zone name, treating blank values as UTC."""
    cleaned = (raw or "").strip()
    if not cleaned:
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(cleaned)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {raw}") from exc
