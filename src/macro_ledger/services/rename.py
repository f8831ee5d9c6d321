"""Propagation of food renames into ledger blocks across documents."""

import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date

from macro_ledger.domain.rename import (
    AffectedFile,
    FollowedRename,
    RenameMatch,
    RenameOutcome,
)
from macro_ledger.services.documents import (
    DEFAULT_BLOCK_TYPES,
    DocumentStore,
    iter_fenced_blocks,
)
from macro_ledger.services.parser import (
    COMMENT_MARKER,
    TIMESTAMP_PATTERN,
    split_annotations,
)
from macro_ledger.services.refresh import RefreshCoordinator
from macro_ledger.services.resolver import FoodContentStore

_KEY_PREFIX = re.compile(r"^\s*(?:[-*]\s*)?")
_RESERVED = (":", COMMENT_MARKER, "\n")

_logger = logging.getLogger(__name__)


class RenameValidationError(ValueError):
    """Raised when a rename would corrupt ledger references."""


def split_food_key(line: str) -> tuple[str, str, str]:
    """Split a ledger line into ``(prefix, key, suffix)``.

    The key is the food name before the first colon, read the way the parser
    reads it: with ``@HH:MM`` and ``// comment`` annotations removed. The
    prefix is everything before the key in the raw line, so it holds
    indentation, an optional ``-``/``*`` bullet and a leading timestamp.
    Joining the three parts gives back the original line.
    """
    bullet = _KEY_PREFIX.match(line).end()
    content = split_annotations(line[bullet:]).content
    key = content.partition(":")[0].strip()
    if not key:
        return line, "", ""

    region_end = line.find(COMMENT_MARKER, bullet)
    if region_end == -1:
        region_end = len(line)
    stamp = TIMESTAMP_PATTERN.search(line, bullet, region_end)
    start = line.find(key, bullet, region_end)
    while start != -1 and stamp and stamp.start() <= start < stamp.end():
        start = line.find(key, stamp.end(), region_end)
    if start == -1:
        return line, "", ""
    end = start + len(key)
    return line[:start], line[start:end], line[end:]


def names_match(left: str, right: str, case_sensitive: bool) -> bool:
    if case_sensitive:
        return left == right
    return left.lower() == right.lower()


def rename_in_line(line: str, old_name: str, new_name: str, case_sensitive: bool) -> str:
    """Replace the food key of ``line`` when it equals ``old_name``."""
    prefix, key, suffix = split_food_key(line)
    if not key or not names_match(key, old_name, case_sensitive):
        return line
    return f"{prefix}{new_name}{suffix}"


def scan_content(
    content: str,
    old_name: str,
    new_name: str,
    case_sensitive: bool,
    block_types: tuple[str, ...] = DEFAULT_BLOCK_TYPES,
) -> list[RenameMatch]:
    """Return the ledger lines of one document that reference ``old_name``.

    Only lines inside fenced ledger blocks are considered. Line numbers are
    one-based.
    """
    lines = content.split("\n")
    matches: list[RenameMatch] = []
    for block in iter_fenced_blocks(lines, block_types):
        for index in range(block.start, block.end):
            before = lines[index]
            after = rename_in_line(before, old_name, new_name, case_sensitive)
            if after != before:
                matches.append(
                    RenameMatch(line=index + 1, before_text=before, after_text=after)
                )
    return matches


def scan_documents(
    documents: Mapping[str, str],
    old_name: str,
    new_name: str,
    case_sensitive: bool,
    block_types: tuple[str, ...] = DEFAULT_BLOCK_TYPES,
    exclude_folder: str | None = None,
) -> list[AffectedFile]:
    """Build the rename change-set for already-read documents."""
    affected: list[AffectedFile] = []
    for handle, content in documents.items():
        if exclude_folder and _in_folder(handle, exclude_folder):
            continue
        matches = scan_content(content, old_name, new_name, case_sensitive, block_types)
        if matches:
            affected.append(AffectedFile(file=handle, matches=tuple(matches)))
    return affected


def backup_path(backup_folder: str, handle: str, day: date) -> str:
    """Return the dated backup location for a document."""
    return f"{backup_folder.rstrip('/')}/{day.isoformat()}/{handle.lstrip('/')}"


@dataclass
class RenameService:
    """Scans and rewrites ledger references after a food is renamed."""

    documents: DocumentStore
    foods: FoodContentStore
    coordinator: RefreshCoordinator
    block_types: tuple[str, ...] = DEFAULT_BLOCK_TYPES
    storage_folder: str = "Nutrition"
    backup_folder: str = ".macros-backups"
    case_sensitive: bool = True
    backup_on_rename: bool = True
    follow_renames_enabled: bool = True
    auto_confirm_renames: bool = False
    today: Callable[[], date] = date.today

    def validate(
        self,
        old_name: str,
        new_name: str,
        case_sensitive: bool | None = None,
        check_existing: bool = True,
    ) -> None:
        """Reject renames that would break the ledger grammar or collide."""
        sensitive = self.case_sensitive if case_sensitive is None else case_sensitive
        if not old_name.strip():
            raise RenameValidationError("Old name cannot be empty")
        if not new_name.strip():
            raise RenameValidationError("New name cannot be empty")
        for reserved in _RESERVED:
            if reserved in new_name:
                raise RenameValidationError(
                    f"Food name cannot contain {reserved!r}"
                )
        if names_match(old_name, new_name, True):
            raise RenameValidationError("New name is the same as the old name")
        if not check_existing:
            return
        for record in self.foods.list_food_records():
            name = record.canonical_name
            if names_match(name, new_name, sensitive) and not names_match(
                name, old_name, sensitive
            ):
                raise RenameValidationError(f"Food name {new_name!r} already exists")

    async def scan(
        self,
        old_name: str,
        new_name: str,
        case_sensitive: bool | None = None,
        check_existing: bool = True,
    ) -> list[AffectedFile]:
        """Validate, then read every document and build the change-set."""
        sensitive = self.case_sensitive if case_sensitive is None else case_sensitive
        self.validate(old_name, new_name, sensitive, check_existing=check_existing)

        contents: dict[str, str] = {}
        for handle in await self.documents.list_all_documents():
            if _in_folder(handle, self.storage_folder):
                continue
            try:
                contents[handle] = await self.documents.read_document(handle)
            except Exception:
                _logger.exception("Failed to read %s during rename scan", handle)
        affected = scan_documents(
            contents, old_name, new_name, sensitive, self.block_types
        )
        _logger.info(
            "Rename %r -> %r affects %s documents", old_name, new_name, len(affected)
        )
        return affected

    async def apply(
        self,
        selected_files: list[str],
        old_name: str,
        new_name: str,
        case_sensitive: bool | None = None,
        backup: bool | None = None,
        check_existing: bool = True,
    ) -> RenameOutcome:
        """Rewrite the selected documents, backing each up first if asked.

        Each file is rescanned from its current content. A failed backup or
        write skips that file and the remaining files are still processed.
        """
        sensitive = self.case_sensitive if case_sensitive is None else case_sensitive
        make_backup = self.backup_on_rename if backup is None else backup
        self.validate(old_name, new_name, sensitive, check_existing=check_existing)

        updated: list[str] = []
        failed: list[str] = []
        backups: list[str] = []
        for handle in selected_files:
            try:
                content = await self.documents.read_document(handle)
                matches = scan_content(
                    content, old_name, new_name, sensitive, self.block_types
                )
                if not matches:
                    continue
                if make_backup:
                    target = backup_path(self.backup_folder, handle, self.today())
                    await self.documents.write_document(target, content)
                    backups.append(target)
                lines = content.split("\n")
                for match in matches:
                    lines[match.line - 1] = match.after_text
                await self.documents.write_document(handle, "\n".join(lines))
                updated.append(handle)
            except Exception:
                _logger.exception("Failed to apply rename to %s", handle)
                failed.append(handle)

        _logger.info(
            "Renamed %r -> %r in %s documents, %s failed",
            old_name,
            new_name,
            len(updated),
            len(failed),
        )
        return RenameOutcome(
            updated_files=tuple(updated),
            failed_files=tuple(failed),
            backups=tuple(backups),
        )

    async def apply_and_refresh(
        self,
        selected_files: list[str],
        old_name: str,
        new_name: str,
        case_sensitive: bool | None = None,
        backup: bool | None = None,
        check_existing: bool = True,
    ) -> RenameOutcome | None:
        """Apply under the coordinator guard, then run a full refresh.

        Returns None when a refresh or another guarded operation is running.
        """
        self.validate(
            old_name, new_name, case_sensitive, check_existing=check_existing
        )
        outcome = await self.coordinator.run_exclusive(
            lambda: self.apply(
                selected_files,
                old_name,
                new_name,
                case_sensitive=case_sensitive,
                backup=backup,
                check_existing=check_existing,
            )
        )
        if outcome is None:
            return None
        await self.coordinator.force_complete_refresh()
        return outcome

    async def handle_food_renamed(
        self, old_name: str, new_name: str
    ) -> FollowedRename | None:
        """React to a food record being renamed in the food store.

        The food store already holds ``new_name``, so no collision check is
        made. Returns None when following renames is disabled or nothing
        changed.
        """
        if not self.follow_renames_enabled:
            return None
        if old_name == new_name:
            return None

        affected = await self.scan(old_name, new_name, check_existing=False)
        if not affected or not self.auto_confirm_renames:
            return FollowedRename(
                old_name=old_name, new_name=new_name, affected=tuple(affected)
            )

        outcome = await self.apply_and_refresh(
            [item.file for item in affected],
            old_name,
            new_name,
            check_existing=False,
        )
        return FollowedRename(
            old_name=old_name,
            new_name=new_name,
            affected=tuple(affected),
            outcome=outcome,
        )


def _in_folder(handle: str, folder: str) -> bool:
    folder = folder.strip("/")
    if not folder:
        return False
    return handle.strip("/") == folder or handle.lstrip("/").startswith(f"{folder}/")
