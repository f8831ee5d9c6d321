"""Shared test fixtures."""

import asyncio
import logging
from dataclasses import dataclass, field

import httpx
import pytest

from macro_ledger.adapters.webhook_renderer import WebhookViewRegistry
from macro_ledger.config import Settings
from macro_ledger.containers import AppContainer
from macro_ledger.domain.meals import LedgerBreakdown, MealTemplate
from macro_ledger.domain.nutrition import FoodRecord, MacroTotals
from macro_ledger.services.aggregator import Aggregator, MealTemplateStore
from macro_ledger.services.cache import InMemoryCache
from macro_ledger.services.documents import (
    DocumentStore,
    read_block_lines,
    replace_block_lines,
)
from macro_ledger.services.ledger import LedgerService
from macro_ledger.services.ledger_cache import LedgerCache
from macro_ledger.services.metrics import MetricsService
from macro_ledger.services.refresh import RefreshCoordinator
from macro_ledger.services.rename import RenameService
from macro_ledger.services.resolver import FoodContentStore, FoodResolver

APPLE = FoodRecord("Apple", 100, 52, 0.3, 0.2, 14)
APPLE_JUICE = FoodRecord("Apple Juice", 250, 115, 0.2, 0.3, 28)
BANANA = FoodRecord("Banana", 100, 89, 1.1, 0.3, 22.8)
OATS = FoodRecord("Oats", 40, 150, 5, 3, 27)
MILK = FoodRecord("Milk", 100, 42, 3.4, 1, 5)


def ledger_document(identifier: str, *lines: str) -> str:
    body = "\n".join(lines)
    return f"# {identifier}\n\n```macros\nid: {identifier}\n{body}\n```\n"


@dataclass
class InMemoryDocumentStore(DocumentStore):
    """In-memory document store for tests."""

    documents: dict[str, str] = field(default_factory=dict)
    failing_reads: set[str] = field(default_factory=set)
    failing_writes: set[str] = field(default_factory=set)
    writes: list[str] = field(default_factory=list)
    block_reads: list[str] = field(default_factory=list)

    async def read_ledger_block(self, identifier: str) -> list[str]:
        self.block_reads.append(identifier)
        await asyncio.sleep(0)
        for handle in sorted(self.documents):
            lines = read_block_lines(self.documents[handle], identifier)
            if lines is not None:
                return lines
        return []

    async def write_ledger_block(self, identifier: str, lines: list[str]) -> bool:
        for handle in sorted(self.documents):
            updated = replace_block_lines(self.documents[handle], identifier, lines)
            if updated is not None:
                await self.write_document(handle, updated)
                return True
        return False

    async def list_all_documents(self) -> list[str]:
        return sorted(self.documents)

    async def read_document(self, handle: str) -> str:
        if handle in self.failing_reads:
            raise OSError(f"cannot read {handle}")
        return self.documents[handle]

    async def write_document(self, handle: str, content: str) -> None:
        if any(handle.startswith(prefix) for prefix in self.failing_writes):
            raise OSError(f"cannot write {handle}")
        self.documents[handle] = content
        self.writes.append(handle)


@dataclass
class InMemoryFoodStore(FoodContentStore):
    """In-memory food store for tests."""

    records: list[FoodRecord] = field(default_factory=list)
    list_calls: int = 0

    def list_food_records(self) -> list[FoodRecord]:
        self.list_calls += 1
        return list(self.records)

    def find_by_name(self, query: str) -> list[FoodRecord]:
        lowered = query.lower()
        return [r for r in self.records if lowered in r.canonical_name.lower()]


@dataclass
class InMemoryMealTemplateStore(MealTemplateStore):
    """In-memory meal template store for tests."""

    templates: dict[str, MealTemplate] = field(default_factory=dict)

    def add(self, name: str, *items: str) -> None:
        self.templates[name.lower()] = MealTemplate(name=name, items=items)

    def get_template(self, name: str) -> MealTemplate | None:
        return self.templates.get(name.lower())


@dataclass(eq=False)
class FakeRenderer:
    """Renderer handle that records every redraw."""

    identifiers: list[str]
    mounted: bool = True
    fail: bool = False
    redraws: list[tuple[MacroTotals, tuple[LedgerBreakdown, ...]]] = field(
        default_factory=list
    )

    def is_mounted(self) -> bool:
        return self.mounted

    def get_bound_identifiers(self) -> list[str]:
        return list(self.identifiers)

    async def redraw(
        self, totals: MacroTotals, breakdown: tuple[LedgerBreakdown, ...]
    ) -> None:
        if self.fail:
            raise RuntimeError("redraw failed")
        self.redraws.append((totals, breakdown))


@pytest.fixture(autouse=True)
def propagate_app_logs(monkeypatch) -> None:
    """Let caplog see records even after configure_logging has run."""
    monkeypatch.setattr(logging.getLogger("macro_ledger"), "propagate", True)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(vault_path=str(tmp_path), admin_token="admin-token")


@pytest.fixture
def food_store() -> InMemoryFoodStore:
    return InMemoryFoodStore(records=[APPLE, APPLE_JUICE, BANANA, OATS, MILK])


@pytest.fixture
def template_store() -> InMemoryMealTemplateStore:
    store = InMemoryMealTemplateStore()
    store.add("Porridge", "Oats:40g", "Milk:200g")
    return store


@pytest.fixture
def document_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def resolver(food_store: InMemoryFoodStore) -> FoodResolver:
    return FoodResolver(store=food_store, cache=InMemoryCache())


@pytest.fixture
def aggregator(
    resolver: FoodResolver, template_store: InMemoryMealTemplateStore
) -> Aggregator:
    return Aggregator(resolver=resolver, templates=template_store)


@pytest.fixture
def coordinator(
    document_store: InMemoryDocumentStore, aggregator: Aggregator
) -> RefreshCoordinator:
    return RefreshCoordinator(
        cache=LedgerCache(), documents=document_store, aggregator=aggregator
    )


@pytest.fixture
def rename_service(
    document_store: InMemoryDocumentStore,
    food_store: InMemoryFoodStore,
    coordinator: RefreshCoordinator,
) -> RenameService:
    return RenameService(
        documents=document_store, foods=food_store, coordinator=coordinator
    )


@pytest.fixture
def webhook_calls() -> list[httpx.Request]:
    return []


@pytest.fixture
def container(
    settings: Settings,
    document_store: InMemoryDocumentStore,
    resolver: FoodResolver,
    aggregator: Aggregator,
    coordinator: RefreshCoordinator,
    rename_service: RenameService,
    webhook_calls: list[httpx.Request],
) -> AppContainer:
    def handler(request: httpx.Request) -> httpx.Response:
        webhook_calls.append(request)
        return httpx.Response(200, json={"ok": True})

    views = WebhookViewRegistry(
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )

    async def close_resources() -> None:
        await views.close()

    return AppContainer(
        settings=settings,
        resolver=resolver,
        aggregator=aggregator,
        coordinator=coordinator,
        ledger_service=LedgerService(
            documents=document_store, coordinator=coordinator
        ),
        rename_service=rename_service,
        metrics=MetricsService(),
        views=views,
        close_resources=close_resources,
    )
