"""Ledger line grammar: parsing and canonical formatting.

A line is handled in two independent passes. The suffix extractors pull the
optional ``// comment`` and ``@HH:MM`` annotations off the raw text, in either
order, and the prefix dispatcher classifies what remains:

``id:``/``ids:``
    identifier directive (comma-separated list)
``meal:``/``group:``
    header that opens a meal context, optionally suffixed ``× N``
``-``
    bullet belonging to the open meal
anything else
    bare food item

Food references are ``name`` or ``name:<number>g``; the quantity is the first
numeric token after the colon and any trailing unit text is discarded.
"""

import re
from dataclasses import dataclass

from macro_ledger.domain.ledger import (
    GROUP,
    MEAL,
    BareFoodItem,
    BulletFoodItem,
    IdDirective,
    IgnoredLine,
    LedgerEntry,
    MealHeader,
)

COMMENT_MARKER = "//"
BULLET = "-"
REPEAT_SIGN = "×"

TIMESTAMP_PATTERN = re.compile(r"@(\d{2}:\d{2})")
_NUMBER = re.compile(r"\d+(?:\.\d+)?")
_REPEAT_COUNT = re.compile(r"^(.*?)\s+×\s+(\d+)$")
_HEADER_KINDS = {"meal:": MEAL, "group:": GROUP}
_ID_PREFIXES = ("ids:", "id:")


@dataclass(frozen=True)
class Annotations:
    """Content of a line with its annotations split off."""

    content: str
    timestamp: str | None
    comment: str | None


def split_annotations(raw: str) -> Annotations:
    """Extract the comment and timestamp suffixes from a line."""
    content = raw
    comment: str | None = None
    marker = raw.find(COMMENT_MARKER)
    if marker != -1:
        content = raw[:marker]
        comment = raw[marker + len(COMMENT_MARKER) :].strip()

    timestamp: str | None = None
    match = TIMESTAMP_PATTERN.search(content)
    if match:
        timestamp = match.group(1)
        content = content[: match.start()] + content[match.end() :]
    elif comment:
        match = TIMESTAMP_PATTERN.search(comment)
        if match:
            timestamp = match.group(1)
            comment = (comment[: match.start()] + comment[match.end() :]).strip()

    return Annotations(
        content=content.strip(),
        timestamp=timestamp,
        comment=comment or None,
    )


def parse_grams(value: str) -> float | None:
    """Return the first numeric token of ``value``, if any."""
    match = _NUMBER.search(value)
    if not match:
        return None
    return float(match.group(0))


def split_food_reference(text: str) -> tuple[str, float | None]:
    """Split ``name[:<number>g]`` into the food query and grams."""
    if ":" not in text:
        return text.strip(), None
    name, _, quantity = text.partition(":")
    return name.strip(), parse_grams(quantity)


def split_repeat_count(name: str) -> tuple[str, int]:
    """Split a ``name × N`` header name into the bare name and count."""
    match = _REPEAT_COUNT.match(name.strip())
    if not match:
        return name.strip(), 1
    return match.group(1).strip(), int(match.group(2))


def parse_line(raw: str) -> LedgerEntry:
    """Parse one raw ledger line into a typed entry."""
    stripped = raw.strip()
    if not stripped or stripped.startswith("#"):
        return IgnoredLine(source=raw)
    if stripped.startswith(COMMENT_MARKER):
        comment = stripped[len(COMMENT_MARKER) :].strip() or None
        return IgnoredLine(comment=comment, source=raw)

    annotations = split_annotations(stripped)
    content = annotations.content
    lowered = content.lower()

    for prefix in _ID_PREFIXES:
        if lowered.startswith(prefix):
            ids = tuple(
                chunk.strip() for chunk in content[len(prefix) :].split(",")
            )
            return IdDirective(
                ids=tuple(chunk for chunk in ids if chunk),
                keyword=prefix[:-1],
                source=raw,
            )

    for prefix, kind in _HEADER_KINDS.items():
        if lowered.startswith(prefix):
            name, count = split_repeat_count(content[len(prefix) :])
            return MealHeader(
                name=name,
                count=count,
                kind=kind,
                comment=annotations.comment,
                timestamp=annotations.timestamp,
                source=raw,
            )

    if content.startswith(BULLET):
        query, grams = split_food_reference(content[len(BULLET) :])
        return BulletFoodItem(
            food_query=query,
            quantity_grams=grams,
            comment=annotations.comment,
            timestamp=annotations.timestamp,
            source=raw,
        )

    query, grams = split_food_reference(content)
    if not query:
        return IgnoredLine(comment=annotations.comment, source=raw)
    return BareFoodItem(
        food_query=query,
        quantity_grams=grams,
        comment=annotations.comment,
        timestamp=annotations.timestamp,
        source=raw,
    )


def parse_lines(lines: list[str] | tuple[str, ...]) -> list[LedgerEntry]:
    """Parse every line of a ledger block."""
    return [parse_line(line) for line in lines]


def format_number(value: float) -> str:
    """Format a quantity without a trailing ``.0``."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def format_entry(entry: LedgerEntry) -> str:
    """Emit an entry as ledger text.

    Entries still carrying their source line are emitted unchanged; entries
    built or altered in code get the canonical
    ``<content> @HH:MM // <comment>`` form.
    """
    if entry.source is not None:
        return entry.source.strip()
    if isinstance(entry, IgnoredLine):
        return f"{COMMENT_MARKER} {entry.comment}" if entry.comment else ""
    if isinstance(entry, IdDirective):
        return f"{entry.keyword}:{','.join(entry.ids)}"
    if isinstance(entry, MealHeader):
        name = entry.name
        if entry.count > 1:
            name = f"{name} {REPEAT_SIGN} {entry.count}"
        return _with_annotations(f"{entry.kind}:{name}", entry.timestamp, entry.comment)

    content = entry.food_query
    if entry.quantity_grams is not None:
        content = f"{content}:{format_number(entry.quantity_grams)}g"
    if isinstance(entry, BulletFoodItem):
        content = f"{BULLET} {content}"
    return _with_annotations(content, entry.timestamp, entry.comment)


def format_entries(entries: list[LedgerEntry] | tuple[LedgerEntry, ...]) -> list[str]:
    """Emit entries as ledger lines, dropping blank output."""
    return [line for line in (format_entry(entry) for entry in entries) if line]


def _with_annotations(content: str, timestamp: str | None, comment: str | None) -> str:
    text = content
    if timestamp:
        text = f"{text} @{timestamp}"
    if comment:
        text = f"{text} {COMMENT_MARKER} {comment}"
    return text
