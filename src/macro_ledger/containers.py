"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from macro_ledger.adapters.supabase_food_store import SupabaseFoodStore
from macro_ledger.adapters.supabase_meal_template_repository import (
    SupabaseMealTemplateRepository,
)
from macro_ledger.adapters.vault_document_store import VaultDocumentStore
from macro_ledger.adapters.vault_food_store import VaultFoodStore
from macro_ledger.adapters.vault_meal_template_store import VaultMealTemplateStore
from macro_ledger.adapters.webhook_renderer import WebhookViewRegistry
from macro_ledger.config import Settings, parse_block_types
from macro_ledger.domain.metrics import MacroTargets
from macro_ledger.services.aggregator import Aggregator, MealTemplateStore
from macro_ledger.services.cache import InMemoryCache
from macro_ledger.services.documents import DEFAULT_BLOCK_TYPES
from macro_ledger.services.ledger import LedgerService
from macro_ledger.services.ledger_cache import LedgerCache
from macro_ledger.services.metrics import MetricsService
from macro_ledger.services.refresh import RefreshCoordinator
from macro_ledger.services.rename import RenameService
from macro_ledger.services.resolver import FoodContentStore, FoodResolver


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    resolver: FoodResolver
    aggregator: Aggregator
    coordinator: RefreshCoordinator
    ledger_service: LedgerService
    rename_service: RenameService
    metrics: MetricsService
    views: WebhookViewRegistry
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    food_store, template_store = _build_food_stores(resolved_settings)
    documents = VaultDocumentStore.create(resolved_settings.vault_path)

    resolver = FoodResolver(
        store=food_store,
        cache=InMemoryCache(),
        ttl_seconds=resolved_settings.food_cache_ttl_seconds,
    )
    aggregator = Aggregator(resolver=resolver, templates=template_store)
    coordinator = RefreshCoordinator(
        cache=LedgerCache(), documents=documents, aggregator=aggregator
    )
    ledger_service = LedgerService(documents=documents, coordinator=coordinator)
    metrics = MetricsService(
        targets=MacroTargets(
            calories=resolved_settings.daily_calorie_target,
            protein=resolved_settings.daily_protein_target,
            fat=resolved_settings.daily_fat_target,
            carbs=resolved_settings.daily_carbs_target,
        ),
        tolerance_percents=MacroTargets(
            calories=resolved_settings.calorie_tolerance_percent,
            protein=resolved_settings.protein_tolerance_percent,
            fat=resolved_settings.fat_tolerance_percent,
            carbs=resolved_settings.carbs_tolerance_percent,
        ),
    )
    rename_service = RenameService(
        documents=documents,
        foods=food_store,
        coordinator=coordinator,
        block_types=(
            parse_block_types(resolved_settings.ledger_block_types)
            or DEFAULT_BLOCK_TYPES
        ),
        storage_folder=resolved_settings.storage_folder,
        backup_folder=resolved_settings.backup_folder,
        case_sensitive=resolved_settings.case_sensitive_food_match,
        backup_on_rename=resolved_settings.backup_on_rename,
        follow_renames_enabled=resolved_settings.follow_renames_enabled,
        auto_confirm_renames=resolved_settings.auto_confirm_renames,
    )
    views = WebhookViewRegistry.create(
        timeout_seconds=resolved_settings.webhook_timeout_seconds,
        energy_unit=resolved_settings.energy_unit,
    )

    async def close_resources() -> None:
        await views.close()

    return AppContainer(
        settings=resolved_settings,
        resolver=resolver,
        aggregator=aggregator,
        coordinator=coordinator,
        ledger_service=ledger_service,
        rename_service=rename_service,
        metrics=metrics,
        views=views,
        close_resources=close_resources,
    )


def _build_food_stores(
    settings: Settings,
) -> tuple[FoodContentStore, MealTemplateStore]:
    if settings.food_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError(
                "supabase_url and supabase_service_key are required "
                "for the supabase food backend"
            )
        supabase_client = create_client(
            settings.supabase_url, settings.supabase_service_key
        )
        return (
            SupabaseFoodStore(supabase_client),
            SupabaseMealTemplateRepository(supabase_client),
        )
    if settings.food_backend != "vault":
        raise ValueError(f"Unknown food backend: {settings.food_backend}")
    return (
        VaultFoodStore.create(settings.vault_path, settings.storage_folder),
        VaultMealTemplateStore.create(
            settings.vault_path, settings.meal_templates_file
        ),
    )
