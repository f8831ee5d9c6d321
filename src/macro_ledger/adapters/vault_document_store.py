"""Filesystem vault implementation of the document store."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from macro_ledger.services.documents import (
    DocumentStore,
    read_block_lines,
    replace_block_lines,
)

_logger = logging.getLogger(__name__)


@dataclass
class VaultDocumentStore(DocumentStore):
    """Markdown documents under a vault root, addressed by relative path.

    Directories starting with a dot (backups, editor state) are never listed.
    """

    root: Path

    @classmethod
    def create(cls, vault_path: str) -> "VaultDocumentStore":
        return cls(root=Path(vault_path).expanduser().resolve())

    async def list_all_documents(self) -> list[str]:
        return await asyncio.to_thread(self._list_documents)

    async def read_document(self, handle: str) -> str:
        return await asyncio.to_thread(self._path(handle).read_text, encoding="utf-8")

    async def write_document(self, handle: str, content: str) -> None:
        await asyncio.to_thread(self._write, handle, content)

    async def read_ledger_block(self, identifier: str) -> list[str]:
        """Return the lines of the first block declaring ``identifier``."""
        for handle in await self.list_all_documents():
            try:
                content = await self.read_document(handle)
            except OSError:
                _logger.exception("Failed to read %s for ledger %s", handle, identifier)
                continue
            lines = read_block_lines(content, identifier)
            if lines is not None:
                _logger.debug("Found %s lines for %s in %s", len(lines), identifier, handle)
                return lines
        _logger.debug("No ledger block found for %s", identifier)
        return []

    async def write_ledger_block(self, identifier: str, lines: list[str]) -> bool:
        for handle in await self.list_all_documents():
            content = await self.read_document(handle)
            updated = replace_block_lines(content, identifier, lines)
            if updated is None:
                continue
            await self.write_document(handle, updated)
            _logger.debug("Updated ledger block %s in %s", identifier, handle)
            return True
        return False

    def _list_documents(self) -> list[str]:
        if not self.root.is_dir():
            return []
        handles = []
        for path in self.root.rglob("*.md"):
            relative = path.relative_to(self.root)
            if any(part.startswith(".") for part in relative.parts):
                continue
            handles.append(relative.as_posix())
        return sorted(handles)

    def _write(self, handle: str, content: str) -> None:
        path = self._path(handle)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def _path(self, handle: str) -> Path:
        path = (self.root / handle.lstrip("/")).resolve()
        if not path.is_relative_to(self.root):
            raise ValueError(f"Document handle escapes the vault: {handle}")
        return path
