"""Domain models for meal templates and aggregation results."""

from dataclasses import dataclass

from macro_ledger.domain.nutrition import MacroTotals


@dataclass(frozen=True)
class MealTemplate:
    """Named list of food lines expanded when a meal has no bullets."""

    name: str
    items: tuple[str, ...]


@dataclass(frozen=True)
class EntryContribution:
    """What one food reference added to a ledger total."""

    food_query: str
    quantity_grams: float | None
    macros: MacroTotals
    status: str
    meal: str | None = None
    food_name: str | None = None


@dataclass(frozen=True)
class AggregateResult:
    """Totals for a single ledger with per-entry detail."""

    total: MacroTotals
    entries: tuple[EntryContribution, ...]


@dataclass(frozen=True)
class LedgerBreakdown:
    """Totals for one identifier inside a multi-ledger aggregation."""

    identifier: str
    totals: MacroTotals


@dataclass(frozen=True)
class MultiLedgerResult:
    """Per-identifier breakdown plus the combined aggregate."""

    aggregate: MacroTotals
    breakdown: tuple[LedgerBreakdown, ...]
