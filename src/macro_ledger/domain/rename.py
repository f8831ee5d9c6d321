"""Domain models for food rename propagation."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RenameMatch:
    """A single ledger line that references the renamed food."""

    line: int
    before_text: str
    after_text: str


@dataclass(frozen=True)
class AffectedFile:
    """A document with one or more matching ledger lines."""

    file: str
    matches: tuple[RenameMatch, ...]


@dataclass(frozen=True)
class RenameOutcome:
    """Result of applying a rename change-set."""

    updated_files: tuple[str, ...]
    failed_files: tuple[str, ...]
    backups: tuple[str, ...]


@dataclass(frozen=True)
class FollowedRename:
    """Change-set produced by a food rename notification.

    ``outcome`` is set only when the change-set was applied without waiting
    for confirmation.
    """

    old_name: str
    new_name: str
    affected: tuple[AffectedFile, ...]
    outcome: RenameOutcome | None = None
