"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status

from macro_ledger.api.admin import router as admin_router
from macro_ledger.api.models import (
    AppendLinesRequest,
    DocumentChangedRequest,
    MountViewRequest,
)
from macro_ledger.api.serializers import metrics_payload, totals_payload
from macro_ledger.app_logging import configure_logging
from macro_ledger.config import parse_identifiers
from macro_ledger.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(debug=container.settings.developer_mode)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/ledgers/totals")
    async def ledger_totals(ids: str, request: Request) -> dict[str, object]:
        """Aggregate one or more comma-separated ledger identifiers."""
        state_container: AppContainer = request.app.state.container
        identifiers = parse_identifiers(ids)
        if not identifiers:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="No identifiers"
            )
        result = await state_container.coordinator.compute(identifiers)
        metrics = state_container.metrics.compute(identifiers, result)
        return {
            **totals_payload(result, state_container.settings.energy_unit),
            "metrics": metrics_payload(metrics),
        }

    @app.get("/ledgers/{identifier}")
    async def ledger_lines(identifier: str, request: Request) -> dict[str, object]:
        """Return the merged lines of a ledger block."""
        state_container: AppContainer = request.app.state.container
        table = await state_container.ledger_service.get_table(identifier)
        if table is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {"identifier": table.identifier, "lines": list(table.lines)}

    @app.post("/ledgers/{identifier}/lines")
    async def append_lines(
        identifier: str, payload: AppendLinesRequest, request: Request
    ) -> dict[str, object]:
        """Append lines to a ledger block, merging duplicates."""
        state_container: AppContainer = request.app.state.container
        table = await state_container.ledger_service.append_lines(
            identifier, payload.lines
        )
        if table is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {"identifier": table.identifier, "lines": list(table.lines)}

    @app.post("/views")
    async def mount_view(payload: MountViewRequest, request: Request) -> dict[str, object]:
        """Mount a webhook view and draw it once."""
        state_container: AppContainer = request.app.state.container
        identifiers = parse_identifiers(",".join(payload.identifiers))
        renderer = state_container.views.open_view(identifiers, payload.callback_url)
        try:
            result = await state_container.coordinator.mount(renderer)
        except Exception:
            logger.exception("Initial draw failed for view %s", renderer.view_id)
            result = await state_container.coordinator.compute(identifiers)
        return {
            "view_id": renderer.view_id,
            **totals_payload(result, state_container.settings.energy_unit),
        }

    @app.delete("/views/{view_id}")
    async def unmount_view(view_id: str, request: Request) -> dict[str, str]:
        """Unmount a webhook view."""
        state_container: AppContainer = request.app.state.container
        renderer = state_container.views.close_view(view_id)
        if renderer is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        state_container.coordinator.unmount(renderer)
        return {"status": "ok"}

    @app.post("/documents/changed")
    async def document_changed(
        payload: DocumentChangedRequest, request: Request
    ) -> dict[str, object]:
        """Refresh all views after an external document change."""
        state_container: AppContainer = request.app.state.container
        logger.debug("Document changed: %s", payload.handle)
        refreshed = await state_container.coordinator.force_complete_refresh()
        return {"status": "ok", "refreshed": refreshed}

    return app
