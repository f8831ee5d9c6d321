"""Nutrition domain models."""

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

_ONE_DECIMAL = Decimal("0.1")
# Floats at or above 2**53 have no fractional digits left to round.
_WHOLE_FLOAT_LIMIT = 2.0**53


def round1(value: float) -> float:
    """Round to one decimal place, half away from zero.

    The value is first snapped to ten decimal places so binary noise such as
    ``0.44999999999999996`` rounds the way its decimal reading does. Raises
    ``ValueError`` for infinities and NaN.
    """
    if not math.isfinite(value):
        raise ValueError(f"Cannot round non-finite value {value!r}")
    if abs(value) >= _WHOLE_FLOAT_LIMIT:
        return float(value)
    snapped = Decimal(f"{value:.10f}")
    return float(snapped.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class FoodRecord:
    """Canonical nutrition facts for one serving of a food."""

    canonical_name: str
    base_serving_grams: float
    calories_per_serving: float
    protein_per_serving: float
    fat_per_serving: float
    carbs_per_serving: float


@dataclass(frozen=True)
class MacroTotals:
    """Calories and macronutrients in grams."""

    calories: float = 0.0
    protein: float = 0.0
    fat: float = 0.0
    carbs: float = 0.0

    def plus(self, other: "MacroTotals") -> "MacroTotals":
        """Return the sum with every field rounded to one decimal."""
        return MacroTotals(
            calories=round1(self.calories + round1(other.calories)),
            protein=round1(self.protein + other.protein),
            fat=round1(self.fat + other.fat),
            carbs=round1(self.carbs + other.carbs),
        )

    def as_dict(self) -> dict[str, float]:
        return {
            "calories": self.calories,
            "protein": self.protein,
            "fat": self.fat,
            "carbs": self.carbs,
        }


ZERO_TOTALS = MacroTotals()


@dataclass(frozen=True)
class ResolvedFood:
    """A query that matched exactly one usable food record."""

    query: str
    record: FoodRecord


@dataclass(frozen=True)
class FoodNotFound:
    """A query with no usable match."""

    query: str
    reason: str = "no match"


@dataclass(frozen=True)
class AmbiguousFood:
    """A query matching more than one food record."""

    query: str
    candidates: tuple[str, ...]


Resolution = ResolvedFood | FoodNotFound | AmbiguousFood
