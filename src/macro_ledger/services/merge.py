"""Duplicate merging of ledger entries."""

from dataclasses import replace

from macro_ledger.domain.ledger import (
    BareFoodItem,
    BulletFoodItem,
    IdDirective,
    IgnoredLine,
    LedgerEntry,
    MealHeader,
)


def merge(entries: list[LedgerEntry] | tuple[LedgerEntry, ...]) -> list[LedgerEntry]:
    """Collapse repeated meal headers and top-level food items.

    Meal headers with the same case-insensitive name and kind fold into the
    first occurrence with their repeat counts summed. A header followed by its
    own bullets is a distinct meal instance and is left alone, as are the
    bullets themselves. Top-level items with the same case-insensitive name,
    an explicit gram quantity and no annotations fold into the first occurrence
    with their quantities summed. Surviving entries keep their original order.

    An entry is only folded away when removing it leaves every bullet in the
    same meal scope, so the merged ledger totals the same as the input.
    """
    entries = list(entries)
    headers: dict[tuple[str, str], int] = {}
    items: dict[str, int] = {}
    merged: list[LedgerEntry] = []

    for index, entry in enumerate(entries):
        closes_scope = followed_by_bullets(entries, index)

        if isinstance(entry, MealHeader) and not closes_scope:
            key = (entry.kind, entry.name.lower())
            first = headers.get(key)
            if first is None:
                headers[key] = len(merged)
                merged.append(entry)
                continue
            current = merged[first]
            merged[first] = replace(
                current, count=current.count + entry.count, source=None
            )
            continue

        if isinstance(entry, BareFoodItem) and _is_mergeable(entry):
            key = entry.food_query.lower()
            first = items.get(key)
            if first is None or closes_scope:
                items.setdefault(key, len(merged))
                merged.append(entry)
                continue
            current = merged[first]
            merged[first] = replace(
                current,
                quantity_grams=current.quantity_grams + entry.quantity_grams,
                source=None,
            )
            continue

        merged.append(entry)

    return merged


def followed_by_bullets(entries: list[LedgerEntry], index: int) -> bool:
    """Return true when the next meaningful entry after ``index`` is a bullet.

    For a meal header this means the meal lists its own bullets. For a bare
    item it means the item is what keeps those bullets out of the preceding
    meal.
    """
    for entry in entries[index + 1 :]:
        if isinstance(entry, IgnoredLine | IdDirective):
            continue
        return isinstance(entry, BulletFoodItem)
    return False


def _is_mergeable(entry: BareFoodItem) -> bool:
    return (
        entry.quantity_grams is not None
        and entry.comment is None
        and entry.timestamp is None
    )
