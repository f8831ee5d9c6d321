"""Document store interface and fenced ledger block helpers."""

import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Protocol

DEFAULT_BLOCK_TYPES = ("macros", "macroscalc")
LEDGER_BLOCK_TYPE = "macros"

_ID_LINE = re.compile(r"^id:\s*(\S+)\s*$", re.IGNORECASE)


class DocumentStore(Protocol):
    """Host storage of markdown documents that contain ledger blocks."""

    async def read_ledger_block(self, identifier: str) -> list[str]:
        """Return the trimmed, non-blank lines of the identifier's block."""

    async def write_ledger_block(self, identifier: str, lines: list[str]) -> bool:
        """Replace the identifier's block body, returning false if absent."""

    async def list_all_documents(self) -> list[str]:
        """Return handles of every document in the store."""

    async def read_document(self, handle: str) -> str:
        """Return a document's full text."""

    async def write_document(self, handle: str, content: str) -> None:
        """Overwrite a document's full text."""


@dataclass(frozen=True)
class FencedBlock:
    """Line span of one fenced block, fences excluded.

    ``start`` is the index of the first body line and ``end`` the index of the
    closing fence, or the line count when the fence is never closed.
    """

    block_type: str
    fence: str
    start: int
    end: int


def opening_fence_pattern(block_types: tuple[str, ...] | list[str]) -> re.Pattern[str]:
    """Build the case-insensitive opening fence regex for ``block_types``."""
    alternatives = "|".join(re.escape(block_type) for block_type in block_types)
    return re.compile(rf"^\s*(```|~~~)\s*({alternatives})\b.*$", re.IGNORECASE)


def iter_fenced_blocks(
    lines: list[str], block_types: tuple[str, ...] | list[str] = DEFAULT_BLOCK_TYPES
) -> Iterator[FencedBlock]:
    """Yield every fenced block whose type is one of ``block_types``.

    A block is closed by the same fence delimiter that opened it.
    """
    opening = opening_fence_pattern(block_types)
    index = 0
    while index < len(lines):
        match = opening.match(lines[index])
        if not match:
            index += 1
            continue
        fence = match.group(1)
        end = index + 1
        while end < len(lines) and lines[end].strip() != fence:
            end += 1
        yield FencedBlock(
            block_type=match.group(2).lower(), fence=fence, start=index + 1, end=end
        )
        index = end + 1


def find_ledger_block(lines: list[str], identifier: str) -> FencedBlock | None:
    """Return the body span (after the ``id:`` line) of the identifier's block."""
    for block in iter_fenced_blocks(lines, (LEDGER_BLOCK_TYPE,)):
        first = block.start
        while first < block.end and not lines[first].strip():
            first += 1
        if first >= block.end:
            continue
        match = _ID_LINE.match(lines[first].strip())
        if match and match.group(1) == identifier:
            return FencedBlock(
                block_type=block.block_type,
                fence=block.fence,
                start=first + 1,
                end=block.end,
            )
    return None


def read_block_lines(content: str, identifier: str) -> list[str] | None:
    """Return the block's trimmed non-blank lines, or None if it is absent."""
    lines = content.split("\n")
    block = find_ledger_block(lines, identifier)
    if block is None:
        return None
    return [line.strip() for line in lines[block.start : block.end] if line.strip()]


def replace_block_lines(content: str, identifier: str, new_lines: list[str]) -> str | None:
    """Return ``content`` with the block body replaced, or None if absent."""
    lines = content.split("\n")
    block = find_ledger_block(lines, identifier)
    if block is None:
        return None
    updated = lines[: block.start] + list(new_lines) + lines[block.end :]
    return "\n".join(updated)
