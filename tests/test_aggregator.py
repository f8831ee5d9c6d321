"""Tests for ledger aggregation."""

import logging
import math

import pytest

from macro_ledger.domain.nutrition import ZERO_TOTALS, MacroTotals
from macro_ledger.services.aggregator import (
    STATUS_AMBIGUOUS,
    STATUS_INVALID_QUANTITY,
    STATUS_NOT_FOUND,
    STATUS_OK,
    Aggregator,
)
from macro_ledger.services.ledger_cache import build_table
from macro_ledger.services.merge import merge
from macro_ledger.services.parser import parse_lines
from tests.conftest import InMemoryMealTemplateStore


def _total(aggregator: Aggregator, lines: list[str]) -> MacroTotals:
    return aggregator.aggregate(merge(parse_lines(lines))).total


def test_scaled_bare_item(aggregator: Aggregator) -> None:
    assert _total(aggregator, ["Apple:150g"]) == MacroTotals(
        calories=78.0, protein=0.5, fat=0.3, carbs=21.0
    )


def test_bullets_are_summed_independently_with_rounding(aggregator: Aggregator) -> None:
    result = aggregator.aggregate(
        merge(parse_lines(["meal:Breakfast", "-Apple:100g", "-Apple:50g"]))
    )

    assert len(result.entries) == 2
    assert result.total == MacroTotals(calories=78.0, protein=0.5, fat=0.3, carbs=21.0)
    assert {entry.meal for entry in result.entries} == {"Breakfast"}


def test_duplicate_bare_items_resolve_once(aggregator: Aggregator) -> None:
    result = aggregator.aggregate(merge(parse_lines(["Banana:100g", "Banana:50g"])))

    assert len(result.entries) == 1
    assert result.entries[0].quantity_grams == 150.0
    assert result.total.calories == 133.5


def test_ambiguous_query_contributes_zero(aggregator: Aggregator, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="macro_ledger"):
        result = aggregator.aggregate(parse_lines(["appl:100g", "Durian:50g"]))

    assert result.total == ZERO_TOTALS
    assert [entry.status for entry in result.entries] == [
        STATUS_AMBIGUOUS,
        STATUS_NOT_FOUND,
    ]
    assert "Ambiguous food query 'appl' matches 2 records" in caplog.text


def test_meal_without_bullets_expands_template(aggregator: Aggregator) -> None:
    result = aggregator.aggregate(parse_lines(["meal:Porridge"]))

    assert [entry.food_name for entry in result.entries] == ["Oats", "Milk"]
    assert result.total == MacroTotals(calories=234.0, protein=11.8, fat=5.0, carbs=37.0)


def test_repeat_count_scales_template_items(aggregator: Aggregator) -> None:
    result = aggregator.aggregate(parse_lines(["meal:Porridge × 2"]))

    assert [entry.quantity_grams for entry in result.entries] == [80.0, 400.0]
    assert result.total == MacroTotals(
        calories=468.0, protein=23.6, fat=10.0, carbs=74.0
    )


def test_gram_less_template_item_scales_base_serving(
    aggregator: Aggregator, template_store: InMemoryMealTemplateStore
) -> None:
    template_store.add("Snack", "Banana")

    result = aggregator.aggregate(parse_lines(["meal:Snack × 2"]))

    assert result.entries[0].quantity_grams == 200.0
    assert result.total.calories == 178.0


def test_explicit_bullets_override_template(aggregator: Aggregator) -> None:
    result = aggregator.aggregate(parse_lines(["meal:Porridge", "- Banana:100g"]))

    assert [entry.food_name for entry in result.entries] == ["Banana"]
    assert result.total.calories == 89.0


def test_group_never_expands_template(aggregator: Aggregator) -> None:
    result = aggregator.aggregate(parse_lines(["group:Porridge"]))

    assert result.entries == ()
    assert result.total == ZERO_TOTALS


def test_bare_item_closes_meal(aggregator: Aggregator) -> None:
    result = aggregator.aggregate(
        parse_lines(["meal:Lunch", "- Apple:100g", "Banana:100g", "- Apple:100g"])
    )

    assert [(entry.food_name, entry.meal) for entry in result.entries] == [
        ("Apple", "Lunch"),
        ("Banana", None),
    ]


def test_comments_and_ids_keep_meal_open(aggregator: Aggregator) -> None:
    result = aggregator.aggregate(
        parse_lines(["meal:Lunch", "// leftovers", "id: 2024-01-01", "- Apple:100g"])
    )

    assert [entry.meal for entry in result.entries] == ["Lunch"]
    assert result.entries[0].status == STATUS_OK


def test_aggregate_is_repeatable(aggregator: Aggregator) -> None:
    entries = merge(
        parse_lines(["Apple:33g", "meal:Porridge", "Banana:17g", "Milk:13g"])
    )

    assert aggregator.aggregate(entries) == aggregator.aggregate(entries)


def test_aggregate_ledgers_sums_rounded_per_ledger_totals(aggregator: Aggregator) -> None:
    tables = {
        "2024-01-01": build_table("2024-01-01", ["Apple:50g"]),
        "2024-01-02": build_table("2024-01-02", ["Apple:50g"]),
    }

    result = aggregator.aggregate_ledgers(
        ["2024-01-02", "missing", "2024-01-01"], tables
    )

    assert [item.identifier for item in result.breakdown] == ["2024-01-02", "2024-01-01"]
    assert result.breakdown[0].totals.protein == 0.2
    assert result.aggregate.protein == 0.4
    assert result.aggregate.calories == pytest.approx(52.0)


@pytest.mark.parametrize(
    "lines",
    [
        ["Apple:100g", "meal:Lunch", "Apple:50g", "- Banana:100g"],
        ["Apple:100g", "meal:Porridge", "Apple:50g", "- Banana:100g"],
        ["meal:Porridge", "Banana:10g", "meal:Porridge", "// note", "Banana:5g", "- Milk:100g"],
    ],
)
def test_merging_does_not_change_totals(
    aggregator: Aggregator, lines: list[str]
) -> None:
    direct = aggregator.aggregate(parse_lines(lines)).total

    assert aggregator.aggregate(merge(parse_lines(lines))).total == direct


def test_out_of_range_quantity_contributes_zero(aggregator: Aggregator) -> None:
    result = aggregator.aggregate(
        merge(parse_lines(["Apple:" + "9" * 400 + "g", "Banana:100g"]))
    )

    assert result.entries[0].status == STATUS_INVALID_QUANTITY
    assert result.total == MacroTotals(calories=89.0, protein=1.1, fat=0.3, carbs=22.8)


def test_overflowing_total_skips_the_entry(aggregator: Aggregator) -> None:
    huge = "- Apple:" + "9" * 308 + "g"
    result = aggregator.aggregate(parse_lines(["meal:Snacks", huge, huge, huge, huge]))

    assert [entry.status for entry in result.entries] == [
        STATUS_OK,
        STATUS_OK,
        STATUS_OK,
        STATUS_INVALID_QUANTITY,
    ]
    assert math.isfinite(result.total.calories)
