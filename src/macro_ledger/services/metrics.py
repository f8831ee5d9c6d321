"""Metrics over the per-day breakdown of a multi-ledger aggregation."""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date

from macro_ledger.domain.meals import LedgerBreakdown, MultiLedgerResult
from macro_ledger.domain.metrics import (
    DEFAULT_TOLERANCE_PERCENTS,
    MACROS,
    DateRange,
    Extreme,
    LedgerMetrics,
    MacroAdherence,
    MacroExtremes,
    MacroRatios,
    MacroTargets,
    Streak,
    Trend,
)
from macro_ledger.domain.nutrition import ZERO_TOTALS, MacroTotals, round1

_DAY = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

# kcal per gram
PROTEIN_ENERGY = 4
FAT_ENERGY = 9
CARBS_ENERGY = 4

_logger = logging.getLogger(__name__)


def parse_day(identifier: str) -> date | None:
    """Return the calendar day named by a ``YYYY-MM-DD`` identifier."""
    match = _DAY.match(identifier)
    if match is None:
        return None
    try:
        return date(int(match[1]), int(match[2]), int(match[3]))
    except ValueError:
        return None


def date_range(identifiers: Sequence[str]) -> DateRange | None:
    """Span of the identifiers that are calendar days, or None if none are."""
    days = sorted(day for day in map(parse_day, identifiers) if day is not None)
    if not days:
        return None
    return DateRange(start=days[0], end=days[-1], day_count=len(days))


def rolling_average(
    points: Sequence[tuple[date, float]], window: int
) -> list[tuple[date, float]]:
    """Average each run of ``window`` consecutive points, keyed by its last day."""
    if window < 1 or len(points) < window:
        return []
    averages = []
    for end in range(window - 1, len(points)):
        chunk = points[end - window + 1 : end + 1]
        averages.append((points[end][0], sum(value for _, value in chunk) / window))
    return averages


def find_extreme(
    points: Sequence[tuple[str, float]], highest: bool
) -> Extreme | None:
    """Return the first point holding the lowest or highest value."""
    best: tuple[str, float] | None = None
    for point in points:
        if best is None:
            best = point
        elif highest and point[1] > best[1]:
            best = point
        elif not highest and point[1] < best[1]:
            best = point
    if best is None:
        return None
    return Extreme(identifier=best[0], value=best[1])


def within_tolerance(value: float, target: float, tolerance_percent: float) -> bool:
    tolerance = target * tolerance_percent / 100
    return target - tolerance <= value <= target + tolerance


def adherence_percentage(
    values: Sequence[float], target: float, tolerance_percent: float
) -> float:
    """Percentage of values within ``tolerance_percent`` of the target."""
    if not values:
        return 0.0
    hits = sum(
        1 for value in values if within_tolerance(value, target, tolerance_percent)
    )
    return hits / len(values) * 100


def current_streak(
    values: Sequence[float], target: float, tolerance_percent: float = 0
) -> int:
    """Count consecutive on-target values ending with the most recent one."""
    streak = 0
    for value in reversed(values):
        if not within_tolerance(value, target, tolerance_percent):
            break
        streak += 1
    return streak


def longest_streak(
    points: Sequence[tuple[date, float]], target: float, tolerance_percent: float = 0
) -> Streak:
    """Return the longest run of on-target days, the earliest one on ties."""
    best = Streak(length=0)
    length = 0
    start: date | None = None
    for day, value in sorted(points, key=lambda point: point[0]):
        if not within_tolerance(value, target, tolerance_percent):
            length = 0
            start = None
            continue
        if length == 0:
            start = day
        length += 1
        if length > best.length:
            best = Streak(length=length, start=start, end=day)
    return best


def macro_ratios(totals: MacroTotals) -> MacroRatios | None:
    """Split macro energy between protein, fat and carbs.

    Returns None when there are no calories or no macro energy to split.
    """
    if totals.calories <= 0:
        return None
    protein = totals.protein * PROTEIN_ENERGY
    fat = totals.fat * FAT_ENERGY
    carbs = totals.carbs * CARBS_ENERGY
    energy = protein + fat + carbs
    if energy <= 0:
        return None
    return MacroRatios(
        protein=round1(protein / energy * 100),
        fat=round1(fat / energy * 100),
        carbs=round1(carbs / energy * 100),
    )


@dataclass
class MetricsService:
    """Computes averages, extremes, ratios, adherence and trends.

    Averages divide the aggregate by the number of requested identifiers that
    are calendar days, falling back to the number of ledgers in the breakdown.
    Adherence is only reported for macros with a configured daily target.
    """

    targets: MacroTargets = field(default_factory=MacroTargets)
    tolerance_percents: MacroTargets = DEFAULT_TOLERANCE_PERCENTS

    def compute(
        self, identifiers: Sequence[str], result: MultiLedgerResult
    ) -> LedgerMetrics:
        breakdown = result.breakdown
        span = date_range(identifiers)
        day_count = span.day_count if span else len(breakdown)
        return LedgerMetrics(
            day_count=day_count,
            date_range=span,
            averages=_averages(result.aggregate, day_count),
            extremes=_extremes(breakdown),
            ratios=macro_ratios(result.aggregate),
            adherence=self._adherence(breakdown),
            trend=_trend(identifiers, breakdown),
        )

    def _adherence(
        self, breakdown: tuple[LedgerBreakdown, ...]
    ) -> tuple[MacroAdherence, ...]:
        if not breakdown:
            return ()
        dated = _dated(breakdown)
        adherence = []
        for macro, target in self.targets.configured():
            tolerance = _tolerance(self.tolerance_percents, macro)
            values = [getattr(item.totals, macro) for item in breakdown]
            points = [(day, getattr(item.totals, macro)) for day, item in dated]
            adherence.append(
                MacroAdherence(
                    macro=macro,
                    target=target,
                    tolerance_percent=tolerance,
                    percentage=round1(adherence_percentage(values, target, tolerance)),
                    current_streak=current_streak(
                        [value for _, value in points], target, tolerance
                    ),
                    longest_streak=longest_streak(points, target, tolerance),
                )
            )
        return tuple(adherence)


def _tolerance(tolerances: MacroTargets, macro: str) -> float:
    value = getattr(tolerances, macro)
    if value is None or value <= 0:
        value = getattr(DEFAULT_TOLERANCE_PERCENTS, macro)
    return float(value)


def _averages(aggregate: MacroTotals, day_count: int) -> MacroTotals:
    if day_count <= 0:
        return ZERO_TOTALS
    return MacroTotals(
        **{macro: round1(getattr(aggregate, macro) / day_count) for macro in MACROS}
    )


def _extremes(breakdown: tuple[LedgerBreakdown, ...]) -> tuple[MacroExtremes, ...]:
    if not breakdown:
        return ()
    extremes = []
    for macro in MACROS:
        points = [(item.identifier, getattr(item.totals, macro)) for item in breakdown]
        extremes.append(
            MacroExtremes(
                macro=macro,
                minimum=find_extreme(points, highest=False),
                maximum=find_extreme(points, highest=True),
            )
        )
    return tuple(extremes)


def _dated(
    breakdown: tuple[LedgerBreakdown, ...],
) -> list[tuple[date, LedgerBreakdown]]:
    dated = []
    for item in breakdown:
        day = parse_day(item.identifier)
        if day is not None:
            dated.append((day, item))
    return sorted(dated, key=lambda pair: pair[0])


def _trend(
    identifiers: Sequence[str], breakdown: tuple[LedgerBreakdown, ...]
) -> Trend | None:
    dated_ids = sum(1 for identifier in identifiers if parse_day(identifier))
    window = dated_ids or len(breakdown)
    dated = _dated(breakdown)
    if window < 2 or len(dated) < window:
        _logger.debug("Not enough days for a trend: %s of %s", len(dated), window)
        return None

    latest: dict[str, float] = {}
    through = dated[-1][0]
    for macro in MACROS:
        points = [(day, getattr(item.totals, macro)) for day, item in dated]
        through, latest[macro] = rolling_average(points, window)[-1]
    return Trend(
        window=window,
        through=through,
        averages=MacroTotals(
            **{macro: round1(value) for macro, value in latest.items()}
        ),
    )
