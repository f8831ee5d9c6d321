"""Display strings for macro totals."""

import re
from datetime import date, timedelta

from macro_ledger.domain.nutrition import MacroTotals

KCAL = "kcal"
KJ = "kJ"
KCAL_TO_KJ_FACTOR = 4.184

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _trimmed(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.1f}"


def format_grams(value: float) -> str:
    return f"{_trimmed(value)}g"


def format_calories(value: float) -> str:
    return _trimmed(value)


def convert_energy(value: float, from_unit: str, to_unit: str) -> float:
    """Convert between kcal and kJ."""
    if from_unit == to_unit:
        return value
    if from_unit == KCAL and to_unit == KJ:
        return value * KCAL_TO_KJ_FACTOR
    if from_unit == KJ and to_unit == KCAL:
        return value / KCAL_TO_KJ_FACTOR
    raise ValueError(f"Unsupported energy units: {from_unit} -> {to_unit}")


def format_energy(value_in_kcal: float, unit: str = KCAL, decimals: int = 1) -> str:
    converted = convert_energy(value_in_kcal, KCAL, unit)
    return f"{converted:.{decimals}f} {unit}"


def summary_header(identifier: str, today: date | None = None) -> str:
    """Return a human-friendly header for a date identifier.

    Non-date identifiers get a plain ``Summary``.
    """
    if not _ISO_DATE.match(identifier):
        return "Summary"
    try:
        day = date.fromisoformat(identifier)
    except ValueError:
        return "Summary"
    today = today or date.today()
    if day == today:
        return "Today's Summary"
    if day == today - timedelta(days=1):
        return "Yesterday's Summary"
    return f"{day:%B} {day.day} Summary"


def display_totals(totals: MacroTotals, energy_unit: str = KCAL) -> dict[str, str]:
    """Format every field of ``totals`` for display."""
    return {
        "calories": format_calories(totals.calories),
        "energy": format_energy(totals.calories, energy_unit),
        "protein": format_grams(totals.protein),
        "fat": format_grams(totals.fat),
        "carbs": format_grams(totals.carbs),
    }
