"""Domain models for multi-day ledger metrics."""

from dataclasses import dataclass
from datetime import date

from macro_ledger.domain.nutrition import MacroTotals

MACROS = ("calories", "protein", "fat", "carbs")


@dataclass(frozen=True)
class MacroTargets:
    """Optional per-day value for each macro."""

    calories: float | None = None
    protein: float | None = None
    fat: float | None = None
    carbs: float | None = None

    def configured(self) -> list[tuple[str, float]]:
        """Return ``(macro, value)`` pairs for the macros that are set."""
        pairs = []
        for macro in MACROS:
            value = getattr(self, macro)
            if value is not None and value > 0:
                pairs.append((macro, float(value)))
        return pairs


DEFAULT_TOLERANCE_PERCENTS = MacroTargets(calories=10, protein=10, fat=15, carbs=15)


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date
    day_count: int


@dataclass(frozen=True)
class Extreme:
    """The ledger holding the lowest or highest value of a macro."""

    identifier: str
    value: float


@dataclass(frozen=True)
class MacroExtremes:
    macro: str
    minimum: Extreme
    maximum: Extreme


@dataclass(frozen=True)
class MacroRatios:
    """Share of macro energy, in percent, from each macronutrient."""

    protein: float
    fat: float
    carbs: float


@dataclass(frozen=True)
class Streak:
    length: int
    start: date | None = None
    end: date | None = None


@dataclass(frozen=True)
class MacroAdherence:
    """How often, and how recently, daily values stayed near a target."""

    macro: str
    target: float
    tolerance_percent: float
    percentage: float
    current_streak: int
    longest_streak: Streak


@dataclass(frozen=True)
class Trend:
    """Latest rolling average over the requested window of days."""

    window: int
    through: date
    averages: MacroTotals


@dataclass(frozen=True)
class LedgerMetrics:
    """Summary statistics over a multi-ledger aggregation."""

    day_count: int
    date_range: DateRange | None
    averages: MacroTotals
    extremes: tuple[MacroExtremes, ...]
    ratios: MacroRatios | None
    adherence: tuple[MacroAdherence, ...]
    trend: Trend | None
