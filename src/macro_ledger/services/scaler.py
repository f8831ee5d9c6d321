"""Scaling of food records to a requested serving."""

import math

from macro_ledger.domain.nutrition import FoodRecord, MacroTotals, round1


def scale(record: FoodRecord, requested_grams: float | None = None) -> MacroTotals:
    """Scale a record's per-serving macros to ``requested_grams``.

    Protein, fat and carbs are rounded to one decimal here. Calories are left
    unrounded and get rounded when added into a running total. Raises
    ``ValueError`` when the quantity or any scaled value is not a finite number.
    """
    if record.base_serving_grams <= 0:
        raise ValueError(f"{record.canonical_name!r} has no usable base serving")
    grams = record.base_serving_grams if requested_grams is None else requested_grams
    factor = grams / record.base_serving_grams
    calories = record.calories_per_serving * factor
    if not (math.isfinite(grams) and math.isfinite(calories)):
        raise ValueError(f"{grams!r}g of {record.canonical_name!r} is out of range")
    return MacroTotals(
        calories=calories,
        protein=round1(record.protein_per_serving * factor),
        fat=round1(record.fat_per_serving * factor),
        carbs=round1(record.carbs_per_serving * factor),
    )
