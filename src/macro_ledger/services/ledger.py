"""Editing of ledger blocks in the document store."""

import logging
from dataclasses import dataclass

from macro_ledger.domain.ledger import LedgerTable
from macro_ledger.services.documents import DocumentStore
from macro_ledger.services.ledger_cache import build_table
from macro_ledger.services.refresh import RefreshCoordinator

_logger = logging.getLogger(__name__)


@dataclass
class LedgerService:
    documents: DocumentStore
    coordinator: RefreshCoordinator

    async def get_table(self, identifier: str) -> LedgerTable | None:
        """Return the cached table, loading it on first access."""
        await self.coordinator.ensure_tables([identifier])
        return self.coordinator.cache.get_table(identifier)

    async def append_lines(self, identifier: str, lines: list[str]) -> LedgerTable | None:
        """Append lines to a ledger block and write back the merged text.

        Returns None when the identifier has no block in the document store.
        A full refresh runs after a successful write.
        """
        new_lines = [line.strip() for line in lines if line.strip()]
        existing = await self.documents.read_ledger_block(identifier)
        table = build_table(identifier, [*existing, *new_lines])

        written = await self.documents.write_ledger_block(identifier, list(table.lines))
        if not written:
            _logger.warning("Could not find ledger block %s to update", identifier)
            return None
        _logger.info("Appended %s lines to ledger %s", len(new_lines), identifier)

        self.coordinator.cache.replace_table(table)
        await self.coordinator.force_complete_refresh()
        return table
