"""Tests for ledger block editing."""

import asyncio

from macro_ledger.services.ledger import LedgerService
from macro_ledger.services.refresh import RefreshCoordinator
from tests.conftest import FakeRenderer, InMemoryDocumentStore, ledger_document


def test_append_lines_merges_and_writes_back(
    coordinator: RefreshCoordinator, document_store: InMemoryDocumentStore
) -> None:
    document_store.documents["day.md"] = ledger_document(
        "2024-02-02", "Banana:100g", "meal:Porridge"
    )
    renderer = FakeRenderer(identifiers=["2024-02-02"])
    asyncio.run(coordinator.mount(renderer))
    service = LedgerService(documents=document_store, coordinator=coordinator)

    table = asyncio.run(
        service.append_lines("2024-02-02", ["Banana:50g", "  ", "meal:porridge"])
    )

    assert table is not None
    assert table.lines == ("Banana:150g", "meal:Porridge × 2")
    assert document_store.documents["day.md"] == ledger_document(
        "2024-02-02", "Banana:150g", "meal:Porridge × 2"
    )
    assert len(renderer.redraws) == 2
    assert renderer.redraws[-1][0].calories == 133.5 + 468.0


def test_append_lines_to_missing_block(
    coordinator: RefreshCoordinator, document_store: InMemoryDocumentStore
) -> None:
    service = LedgerService(documents=document_store, coordinator=coordinator)

    assert asyncio.run(service.append_lines("nope", ["Apple"])) is None
    assert document_store.writes == []


def test_get_table_loads_on_first_access(
    coordinator: RefreshCoordinator, document_store: InMemoryDocumentStore
) -> None:
    document_store.documents["day.md"] = ledger_document("d1", "Apple:10g", "Apple:5g")
    service = LedgerService(documents=document_store, coordinator=coordinator)

    table = asyncio.run(service.get_table("d1"))

    assert table is not None
    assert table.lines == ("Apple:15g",)
    assert asyncio.run(service.get_table("missing")) is None
