"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from macro_ledger.api.models import (
    FoodRenamedRequest,
    RenameApplyRequest,
    RenameScanRequest,
)
from macro_ledger.api.serializers import (
    affected_payload,
    followed_payload,
    outcome_payload,
)
from macro_ledger.services.rename import RenameValidationError

if TYPE_CHECKING:
    from macro_ledger.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


def _unprocessable(exc: RenameValidationError) -> HTTPException:
    return HTTPException(status_code=422, detail=str(exc))


@router.post("/refresh", dependencies=[Depends(require_admin)])
async def refresh(request: Request) -> dict[str, bool]:
    """Reload every bound ledger and redraw mounted views."""
    container: AppContainer = request.app.state.container
    return {"refreshed": await container.coordinator.force_complete_refresh()}


@router.post("/rename/scan", dependencies=[Depends(require_admin)])
async def rename_scan(payload: RenameScanRequest, request: Request) -> dict[str, object]:
    """Return the change-set for a food rename without writing anything."""
    container: AppContainer = request.app.state.container
    try:
        affected = await container.rename_service.scan(
            payload.old_name, payload.new_name, payload.case_sensitive
        )
    except RenameValidationError as exc:
        raise _unprocessable(exc) from exc
    return {"affected": affected_payload(affected)}


@router.post("/rename/apply", dependencies=[Depends(require_admin)])
async def rename_apply(
    payload: RenameApplyRequest, request: Request
) -> dict[str, object]:
    """Rewrite the confirmed documents and refresh."""
    container: AppContainer = request.app.state.container
    try:
        outcome = await container.rename_service.apply_and_refresh(
            payload.files,
            payload.old_name,
            payload.new_name,
            case_sensitive=payload.case_sensitive,
            backup=payload.backup,
        )
    except RenameValidationError as exc:
        raise _unprocessable(exc) from exc
    if outcome is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Refresh in progress"
        )
    return outcome_payload(outcome)


@router.post("/rename/followed", dependencies=[Depends(require_admin)])
async def food_renamed(
    payload: FoodRenamedRequest, request: Request
) -> dict[str, object]:
    """Handle a food being renamed in the food store."""
    container: AppContainer = request.app.state.container
    try:
        followed = await container.rename_service.handle_food_renamed(
            payload.old_name, payload.new_name
        )
    except RenameValidationError as exc:
        raise _unprocessable(exc) from exc
    if followed is None:
        return {"status": "ignored"}
    return {"status": "ok", **followed_payload(followed)}
