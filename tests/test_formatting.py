"""Tests for display formatting helpers."""

from datetime import date

import pytest

from macro_ledger.domain.nutrition import MacroTotals
from macro_ledger.services.formatting import (
    convert_energy,
    display_totals,
    format_calories,
    format_energy,
    format_grams,
    summary_header,
)

TODAY = date(2024, 3, 15)


def test_whole_numbers_drop_the_decimal() -> None:
    assert format_grams(12.0) == "12g"
    assert format_grams(12.34) == "12.3g"
    assert format_calories(250.0) == "250"
    assert format_calories(250.25) == "250.2"


def test_energy_conversion() -> None:
    assert format_energy(100, "kcal") == "100.0 kcal"
    assert format_energy(100, "kJ") == "418.4 kJ"
    assert convert_energy(418.4, "kJ", "kcal") == pytest.approx(100)
    with pytest.raises(ValueError):
        convert_energy(1, "kcal", "BTU")


@pytest.mark.parametrize(
    ("identifier", "expected"),
    [
        ("2024-03-15", "Today's Summary"),
        ("2024-03-14", "Yesterday's Summary"),
        ("2024-01-05", "January 5 Summary"),
        ("2024-02-30", "Summary"),
        ("week-12", "Summary"),
    ],
)
def test_summary_header(identifier: str, expected: str) -> None:
    assert summary_header(identifier, TODAY) == expected


def test_display_totals() -> None:
    totals = MacroTotals(calories=78.0, protein=0.5, fat=0.3, carbs=21.0)

    assert display_totals(totals) == {
        "calories": "78",
        "energy": "78.0 kcal",
        "protein": "0.5g",
        "fat": "0.3g",
        "carbs": "21g",
    }
