"""Aggregation of ledger entries into macro totals."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from macro_ledger.domain.ledger import (
    MEAL,
    BareFoodItem,
    BulletFoodItem,
    LedgerEntry,
    LedgerTable,
    MealHeader,
)
from macro_ledger.domain.meals import (
    AggregateResult,
    EntryContribution,
    LedgerBreakdown,
    MealTemplate,
    MultiLedgerResult,
)
from macro_ledger.domain.nutrition import (
    ZERO_TOTALS,
    AmbiguousFood,
    MacroTotals,
    ResolvedFood,
)
from macro_ledger.services.merge import followed_by_bullets
from macro_ledger.services.parser import split_food_reference
from macro_ledger.services.resolver import FoodResolver
from macro_ledger.services.scaler import scale

STATUS_OK = "ok"
STATUS_NOT_FOUND = "not_found"
STATUS_AMBIGUOUS = "ambiguous"
STATUS_INVALID_QUANTITY = "invalid_quantity"

_logger = logging.getLogger(__name__)


class MealTemplateStore(Protocol):
    """Source of named meal templates."""

    def get_template(self, name: str) -> MealTemplate | None:
        """Return the template with this case-insensitive name, if any."""


@dataclass
class Aggregator:
    """Walks merged ledger entries and accumulates their macros."""

    resolver: FoodResolver
    templates: MealTemplateStore

    def aggregate(
        self, entries: list[LedgerEntry] | tuple[LedgerEntry, ...]
    ) -> AggregateResult:
        """Total a single ledger in source order.

        A meal header without bullets expands its template, scaled by the
        header's repeat count. Bullets count only while a meal is open, at
        their literal quantity. A bare item closes the open meal.
        """
        entries = list(entries)
        total = ZERO_TOTALS
        contributions: list[EntryContribution] = []
        current_meal: MealHeader | None = None

        for index, entry in enumerate(entries):
            if isinstance(entry, MealHeader):
                current_meal = entry
                if entry.kind == MEAL and not followed_by_bullets(entries, index):
                    for contribution in self._expand_template(entry):
                        total = _accumulate(total, contribution, contributions)
                continue

            if isinstance(entry, BulletFoodItem):
                if current_meal is None:
                    _logger.debug("Skipping bullet outside a meal: %r", entry.food_query)
                    continue
                contribution = self._contribute(
                    entry.food_query, entry.quantity_grams, meal=current_meal.name
                )
            elif isinstance(entry, BareFoodItem):
                current_meal = None
                contribution = self._contribute(entry.food_query, entry.quantity_grams)
            else:
                continue

            total = _accumulate(total, contribution, contributions)

        return AggregateResult(total=total, entries=tuple(contributions))

    def aggregate_ledgers(
        self, identifiers: list[str], tables: Mapping[str, LedgerTable]
    ) -> MultiLedgerResult:
        """Total several ledgers and sum their already-rounded totals."""
        aggregate = ZERO_TOTALS
        breakdown: list[LedgerBreakdown] = []
        for identifier in identifiers:
            table = tables.get(identifier)
            if table is None:
                _logger.debug("No ledger table cached for %s", identifier)
                continue
            try:
                result = self.aggregate(table.entries)
                aggregate = aggregate.plus(result.total)
            except Exception:
                _logger.exception("Failed to aggregate ledger %s", identifier)
                continue
            breakdown.append(LedgerBreakdown(identifier=identifier, totals=result.total))
        return MultiLedgerResult(aggregate=aggregate, breakdown=tuple(breakdown))

    def _expand_template(self, header: MealHeader) -> list[EntryContribution]:
        template = self.templates.get_template(header.name)
        if template is None:
            _logger.debug("No meal template named %r", header.name)
            return []
        contributions = []
        for item in template.items:
            query, grams = split_food_reference(item)
            if not query:
                continue
            contributions.append(
                self._contribute(
                    query, grams, meal=header.name, multiplier=header.count
                )
            )
        return contributions

    def _contribute(
        self,
        query: str,
        grams: float | None,
        meal: str | None = None,
        multiplier: int = 1,
    ) -> EntryContribution:
        resolution = self.resolver.resolve(query)
        if not isinstance(resolution, ResolvedFood):
            status = (
                STATUS_AMBIGUOUS
                if isinstance(resolution, AmbiguousFood)
                else STATUS_NOT_FOUND
            )
            return EntryContribution(
                food_query=query,
                quantity_grams=grams,
                macros=ZERO_TOTALS,
                status=status,
                meal=meal,
            )
        record = resolution.record
        quantity = record.base_serving_grams if grams is None else grams
        quantity *= multiplier
        try:
            macros = scale(record, quantity)
        except ValueError:
            _logger.warning("Ignoring out-of-range quantity for %r", query)
            return _invalid(query, grams, meal)
        return EntryContribution(
            food_query=query,
            quantity_grams=quantity,
            macros=macros,
            status=STATUS_OK,
            meal=meal,
            food_name=record.canonical_name,
        )


def _accumulate(
    total: MacroTotals,
    contribution: EntryContribution,
    contributions: list[EntryContribution],
) -> MacroTotals:
    try:
        updated = total.plus(contribution.macros)
    except ValueError:
        _logger.warning(
            "Ignoring %r, the ledger total would overflow", contribution.food_query
        )
        contributions.append(
            _invalid(
                contribution.food_query,
                contribution.quantity_grams,
                contribution.meal,
            )
        )
        return total
    contributions.append(contribution)
    return updated


def _invalid(query: str, grams: float | None, meal: str | None) -> EntryContribution:
    return EntryContribution(
        food_query=query,
        quantity_grams=grams,
        macros=ZERO_TOTALS,
        status=STATUS_INVALID_QUANTITY,
        meal=meal,
    )
