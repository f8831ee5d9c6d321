"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    vault_path: str
    admin_token: str
    storage_folder: str = "Nutrition"
    meal_templates_file: str = "meal_templates.yaml"
    backup_folder: str = ".macros-backups"
    ledger_block_types: str = "macros,macroscalc"
    food_backend: str = "vault"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    case_sensitive_food_match: bool = True
    backup_on_rename: bool = True
    follow_renames_enabled: bool = True
    auto_confirm_renames: bool = False
    food_cache_ttl_seconds: int = 300
    energy_unit: str = "kcal"
    daily_calorie_target: float | None = None
    daily_protein_target: float | None = None
    daily_fat_target: float | None = None
    daily_carbs_target: float | None = None
    calorie_tolerance_percent: float = 10.0
    protein_tolerance_percent: float = 10.0
    fat_tolerance_percent: float = 15.0
    carbs_tolerance_percent: float = 15.0
    webhook_timeout_seconds: float = 10.0
    developer_mode: bool = False
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_block_types(raw: str | None) -> tuple[str, ...]:
    """Parse the comma-separated ledger fence keywords."""
    if raw is None:
        return ()
    return tuple(
        chunk.strip().lower() for chunk in raw.split(",") if chunk.strip()
    )


def parse_identifiers(raw: str | None) -> list[str]:
    """Parse a comma-separated list of ledger identifiers."""
    if raw is None:
        return []
    identifiers: list[str] = []
    for chunk in raw.split(","):
        value = chunk.strip()
        if value and value not in identifiers:
            identifiers.append(value)
    return identifiers
