"""Coordinated reload and redraw of cached ledgers."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from macro_ledger.domain.ledger import LedgerTable
from macro_ledger.domain.meals import MultiLedgerResult
from macro_ledger.services.aggregator import Aggregator
from macro_ledger.services.documents import DocumentStore
from macro_ledger.services.ledger_cache import (
    LedgerCache,
    RendererHandle,
    build_table,
    split_identifiers,
)

T = TypeVar("T")

_logger = logging.getLogger(__name__)


@dataclass
class RefreshCoordinator:
    """Owns the ledger cache and drives full refresh cycles.

    ``refresh_in_progress`` is the only mutual-exclusion mechanism. A refresh
    requested while it is set is skipped, and ``run_exclusive`` refuses work
    under the same flag.
    """

    cache: LedgerCache
    documents: DocumentStore
    aggregator: Aggregator
    refresh_in_progress: bool = False

    async def load_table(self, identifier: str) -> LedgerTable | None:
        """Read one ledger block and replace its cached table."""
        lines = await self.documents.read_ledger_block(identifier)
        if not lines:
            _logger.warning("No ledger data found for %s", identifier)
            return None
        table = build_table(identifier, lines)
        self.cache.replace_table(table)
        _logger.debug("Loaded %s lines for %s", len(table.lines), identifier)
        return table

    async def ensure_tables(self, identifiers: list[str]) -> None:
        """Load any identifiers that have no cached table yet."""
        for identifier in identifiers:
            if self.cache.get_table(identifier) is not None:
                continue
            try:
                await self.load_table(identifier)
            except Exception:
                _logger.exception("Failed to load ledger %s", identifier)

    async def compute(self, identifiers: list[str]) -> MultiLedgerResult:
        """Aggregate the given identifiers, loading missing tables first."""
        singles = split_identifiers(identifiers)
        await self.ensure_tables(singles)
        return self.aggregator.aggregate_ledgers(singles, self.cache.tables)

    async def mount(self, renderer: RendererHandle) -> MultiLedgerResult:
        """Bind a renderer and draw it once with current totals."""
        keys = self.cache.bind(renderer)
        result = await self.compute(keys[:1])
        await renderer.redraw(result.aggregate, result.breakdown)
        return result

    def unmount(self, renderer: RendererHandle) -> None:
        self.cache.unbind(renderer)

    async def force_complete_refresh(self) -> bool:
        """Reload every bound ledger, then redraw every live renderer.

        Returns false without touching any state when a refresh is already
        running.
        """
        if self.refresh_in_progress:
            _logger.debug("Refresh already in progress, skipping duplicate call")
            return False

        self.refresh_in_progress = True
        _logger.debug("Starting complete refresh")
        try:
            self.cache.clear_tables()
            self.aggregator.resolver.invalidate()

            identifiers = self.cache.bound_identifiers()
            _logger.debug("Reloading data for %s identifiers", len(identifiers))
            for identifier in identifiers:
                try:
                    await self.load_table(identifier)
                except Exception:
                    _logger.exception("Failed to reload ledger %s", identifier)

            for renderer in self._live_renderers():
                try:
                    identifiers = split_identifiers(renderer.get_bound_identifiers())
                    result = self.aggregator.aggregate_ledgers(
                        identifiers, self.cache.tables
                    )
                    await renderer.redraw(result.aggregate, result.breakdown)
                except Exception:
                    _logger.exception("Failed to redraw renderer %r", renderer)
            _logger.debug("Complete refresh finished")
        except Exception:
            _logger.exception("Error during complete refresh")
        finally:
            self.refresh_in_progress = False
        return True

    async def run_exclusive(self, operation: Callable[[], Awaitable[T]]) -> T | None:
        """Run ``operation`` under the refresh guard.

        Returns None without running it when the guard is already held.
        """
        if self.refresh_in_progress:
            _logger.debug("Coordinator busy, refusing exclusive operation")
            return None
        self.refresh_in_progress = True
        try:
            return await operation()
        finally:
            self.refresh_in_progress = False

    def _live_renderers(self) -> list[RendererHandle]:
        live: list[RendererHandle] = []
        rebuilt: dict[str, set[RendererHandle]] = {}
        for key, renderers in self.cache.bindings.items():
            alive = {renderer for renderer in renderers if _is_mounted(renderer)}
            if alive:
                rebuilt[key] = alive
            for renderer in alive:
                if renderer not in live:
                    live.append(renderer)
        self.cache.bindings = rebuilt
        return live


def _is_mounted(renderer: RendererHandle) -> bool:
    try:
        return renderer.is_mounted()
    except Exception:
        _logger.exception("Renderer liveness check failed for %r", renderer)
        return False
