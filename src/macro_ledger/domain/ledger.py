"""Domain models for parsed ledger lines."""

from dataclasses import dataclass, field

MEAL = "meal"
GROUP = "group"


@dataclass(frozen=True)
class IdDirective:
    """Declares which identifiers a ledger block aggregates."""

    ids: tuple[str, ...]
    keyword: str = "id"
    source: str | None = field(default=None, compare=False)


@dataclass(frozen=True)
class MealHeader:
    """Opens a meal or group context for the bullets that follow."""

    name: str
    count: int = 1
    kind: str = MEAL
    comment: str | None = None
    timestamp: str | None = None
    source: str | None = field(default=None, compare=False)


@dataclass(frozen=True)
class BareFoodItem:
    """Top-level food reference outside any meal."""

    food_query: str
    quantity_grams: float | None = None
    comment: str | None = None
    timestamp: str | None = None
    source: str | None = field(default=None, compare=False)


@dataclass(frozen=True)
class BulletFoodItem:
    """Food reference belonging to the most recently opened meal."""

    food_query: str
    quantity_grams: float | None = None
    comment: str | None = None
    timestamp: str | None = None
    source: str | None = field(default=None, compare=False)


@dataclass(frozen=True)
class IgnoredLine:
    """Blank or comment-only line with no food or meal effect."""

    comment: str | None = None
    source: str | None = field(default=None, compare=False)


FoodItem = BareFoodItem | BulletFoodItem
LedgerEntry = IdDirective | MealHeader | BareFoodItem | BulletFoodItem | IgnoredLine


@dataclass(frozen=True)
class LedgerTable:
    """Parsed and merged contents of one ledger block."""

    identifier: str
    lines: tuple[str, ...]
    entries: tuple[LedgerEntry, ...]
