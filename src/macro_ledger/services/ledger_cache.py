"""Per-identifier ledger tables and renderer bindings."""

from dataclasses import dataclass, field
from typing import Protocol

from macro_ledger.domain.ledger import LedgerTable
from macro_ledger.domain.meals import LedgerBreakdown
from macro_ledger.domain.nutrition import MacroTotals
from macro_ledger.services.merge import merge
from macro_ledger.services.parser import format_entries, parse_lines


class RendererHandle(Protocol):
    """A mounted view that displays totals for one or more ledgers."""

    def is_mounted(self) -> bool:
        """Return true while the view still needs redraws."""

    async def redraw(
        self, totals: MacroTotals, breakdown: tuple[LedgerBreakdown, ...]
    ) -> None:
        """Redraw the view with fresh totals."""

    def get_bound_identifiers(self) -> list[str]:
        """Return the ledger identifiers this view displays."""


def split_identifier(identifier: str) -> list[str]:
    """Split a possibly comma-joined identifier into single keys."""
    return [chunk.strip() for chunk in identifier.split(",") if chunk.strip()]


def split_identifiers(identifiers: list[str]) -> list[str]:
    """Flatten identifiers into unique single keys, keeping first-seen order."""
    singles: list[str] = []
    for identifier in identifiers:
        for single in split_identifier(identifier):
            if single not in singles:
                singles.append(single)
    return singles


def binding_keys(identifiers: list[str]) -> list[str]:
    """Return the compound key followed by each single key."""
    singles = split_identifiers(identifiers)
    if not singles:
        return []
    compound = ",".join(singles)
    return [compound, *[single for single in singles if single != compound]]


def build_table(identifier: str, lines: list[str]) -> LedgerTable:
    """Parse and merge raw block lines into a ledger table."""
    entries = merge(parse_lines(lines))
    return LedgerTable(
        identifier=identifier,
        lines=tuple(format_entries(entries)),
        entries=tuple(entries),
    )


@dataclass
class LedgerCache:
    """Holds the cached tables and which renderers show which ledgers.

    Tables are only ever replaced, never patched, so a reader holding an old
    table keeps a consistent snapshot.
    """

    tables: dict[str, LedgerTable] = field(default_factory=dict)
    bindings: dict[str, set[RendererHandle]] = field(default_factory=dict)

    def get_table(self, identifier: str) -> LedgerTable | None:
        return self.tables.get(identifier)

    def replace_table(self, table: LedgerTable) -> None:
        self.tables[table.identifier] = table

    def clear_tables(self) -> None:
        self.tables = {}

    def bind(self, renderer: RendererHandle) -> list[str]:
        """Register a renderer under its compound and single keys."""
        keys = binding_keys(renderer.get_bound_identifiers())
        for key in keys:
            self.bindings.setdefault(key, set()).add(renderer)
        return keys

    def unbind(self, renderer: RendererHandle) -> None:
        """Remove a renderer from every binding set."""
        self.bindings = {
            key: {bound for bound in renderers if bound is not renderer}
            for key, renderers in self.bindings.items()
        }
        self.bindings = {key: value for key, value in self.bindings.items() if value}

    def renderers_for(self, identifier: str) -> set[RendererHandle]:
        return set(self.bindings.get(identifier, set()))

    def bound_identifiers(self) -> list[str]:
        """Return every single identifier referenced by a bound renderer."""
        return split_identifiers(list(self.bindings))
