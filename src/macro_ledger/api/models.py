"""Pydantic models for API payloads."""

from pydantic import BaseModel, Field


class AppendLinesRequest(BaseModel):
    """Lines to append to a ledger block."""

    lines: list[str] = Field(min_length=1)


class MountViewRequest(BaseModel):
    """A webhook view to mount."""

    identifiers: list[str] = Field(min_length=1)
    callback_url: str


class DocumentChangedRequest(BaseModel):
    """Notification that a document changed outside the service."""

    handle: str | None = None


class RenameScanRequest(BaseModel):
    old_name: str
    new_name: str
    case_sensitive: bool | None = None


class RenameApplyRequest(BaseModel):
    old_name: str
    new_name: str
    files: list[str]
    case_sensitive: bool | None = None
    backup: bool | None = None


class FoodRenamedRequest(BaseModel):
    old_name: str
    new_name: str
