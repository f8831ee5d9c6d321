"""Food reference resolution against the food content store."""

import logging
from dataclasses import dataclass
from typing import Protocol

from macro_ledger.domain.nutrition import (
    AmbiguousFood,
    FoodNotFound,
    FoodRecord,
    Resolution,
    ResolvedFood,
)
from macro_ledger.services.cache import Cache

_RECORDS_KEY = "foods:records"

_logger = logging.getLogger(__name__)


class FoodContentStore(Protocol):
    """Read-only source of canonical food records."""

    def list_food_records(self) -> list[FoodRecord]:
        """Return every known food record."""

    def find_by_name(self, query: str) -> list[FoodRecord]:
        """Return candidate records whose name contains the query."""


@dataclass
class FoodResolver:
    """Maps free-text food queries to a single canonical record.

    Exact case-insensitive name matches win when there is exactly one; otherwise
    a unique case-insensitive substring match is accepted. Anything else is
    reported as not found or ambiguous and never raises.
    """

    store: FoodContentStore
    cache: Cache
    ttl_seconds: int = 300

    def records(self) -> list[FoodRecord]:
        """Return the cached record snapshot, reloading it when expired."""
        cached = self.cache.get(_RECORDS_KEY)
        if isinstance(cached, list):
            return cached
        records = list(self.store.list_food_records())
        self.cache.set(_RECORDS_KEY, records, ttl_seconds=self.ttl_seconds)
        _logger.debug("Loaded %s food records", len(records))
        return records

    def invalidate(self) -> None:
        """Forget the record snapshot."""
        self.cache.invalidate(_RECORDS_KEY)

    def resolve(self, query: str) -> Resolution:
        """Resolve a query to one record, or explain why it can't be."""
        cleaned = query.strip()
        if not cleaned:
            return FoodNotFound(query=query, reason="empty query")

        lowered = cleaned.lower()
        exact, partial = _matches(lowered, self.records())
        if not partial:
            # The snapshot may predate a newly added food; ask the store.
            exact, partial = _matches(lowered, self.store.find_by_name(cleaned))
            if partial:
                _logger.debug("Food %r found past the cached snapshot", cleaned)
                self.invalidate()

        if len(exact) == 1:
            return _checked(query, exact[0])
        if len(partial) == 1:
            return _checked(query, partial[0])
        if len(partial) > 1:
            candidates = tuple(r.canonical_name for r in partial)
            _logger.warning(
                "Ambiguous food query %r matches %s records: %s",
                query,
                len(candidates),
                ", ".join(candidates),
            )
            return AmbiguousFood(query=query, candidates=candidates)

        _logger.warning("No food record found for query %r", query)
        return FoodNotFound(query=query)


def _matches(
    lowered: str, records: list[FoodRecord]
) -> tuple[list[FoodRecord], list[FoodRecord]]:
    exact = [r for r in records if r.canonical_name.lower() == lowered]
    partial = [r for r in records if lowered in r.canonical_name.lower()]
    return exact, partial


def _checked(query: str, record: FoodRecord) -> Resolution:
    if record.base_serving_grams <= 0:
        _logger.warning(
            "Food record %r has no usable base serving", record.canonical_name
        )
        return FoodNotFound(query=query, reason="malformed record")
    return ResolvedFood(query=query, record=record)
