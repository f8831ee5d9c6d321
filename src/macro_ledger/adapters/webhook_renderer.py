"""Renderer handles that deliver totals to HTTP callbacks."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from uuid import uuid4

import httpx

from macro_ledger.domain.meals import LedgerBreakdown
from macro_ledger.domain.nutrition import MacroTotals
from macro_ledger.services.formatting import display_totals, summary_header

_GONE_STATUSES = {404, 410}

_logger = logging.getLogger(__name__)


@dataclass(eq=False)
class WebhookRenderer:
    """A remote view that receives a JSON payload on every redraw.

    A callback answering 404 or 410 is treated as unmounted and reported to
    ``on_gone``.
    """

    view_id: str
    identifiers: list[str]
    callback_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 10.0
    energy_unit: str = "kcal"
    mounted: bool = True
    on_gone: Callable[[str], None] | None = None

    def is_mounted(self) -> bool:
        return self.mounted

    def get_bound_identifiers(self) -> list[str]:
        return list(self.identifiers)

    def unmount(self) -> None:
        self.mounted = False

    async def redraw(
        self, totals: MacroTotals, breakdown: tuple[LedgerBreakdown, ...]
    ) -> None:
        """Post the totals to the callback URL."""
        response = await self.http_client.post(
            self.callback_url,
            json=self.payload(totals, breakdown),
            timeout=self.timeout_seconds,
        )
        if response.status_code in _GONE_STATUSES:
            _logger.info("View %s is gone, unmounting", self.view_id)
            self.mounted = False
            if self.on_gone is not None:
                self.on_gone(self.view_id)
            return
        response.raise_for_status()

    def payload(
        self, totals: MacroTotals, breakdown: tuple[LedgerBreakdown, ...]
    ) -> dict[str, object]:
        header_id = self.identifiers[0] if len(self.identifiers) == 1 else ""
        return {
            "view_id": self.view_id,
            "identifiers": self.identifiers,
            "header": summary_header(header_id),
            "aggregate": totals.as_dict(),
            "display": display_totals(totals, self.energy_unit),
            "breakdown": [
                {"identifier": item.identifier, **item.totals.as_dict()}
                for item in breakdown
            ],
        }


@dataclass
class WebhookViewRegistry:
    """Creates and tracks webhook renderers sharing one httpx session."""

    http_client: httpx.AsyncClient
    timeout_seconds: float = 10.0
    energy_unit: str = "kcal"
    views: dict[str, WebhookRenderer] = field(default_factory=dict)

    @classmethod
    def create(
        cls, timeout_seconds: float = 10.0, energy_unit: str = "kcal"
    ) -> "WebhookViewRegistry":
        """Create a registry with a managed httpx session."""
        return cls(
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
            energy_unit=energy_unit,
        )

    def open_view(self, identifiers: list[str], callback_url: str) -> WebhookRenderer:
        renderer = WebhookRenderer(
            view_id=uuid4().hex,
            identifiers=list(identifiers),
            callback_url=callback_url,
            http_client=self.http_client,
            timeout_seconds=self.timeout_seconds,
            energy_unit=self.energy_unit,
            on_gone=self._forget,
        )
        self.views[renderer.view_id] = renderer
        return renderer

    def close_view(self, view_id: str) -> WebhookRenderer | None:
        """Forget a view and mark it unmounted."""
        renderer = self.views.pop(view_id, None)
        if renderer is not None:
            renderer.unmount()
        return renderer

    def get_view(self, view_id: str) -> WebhookRenderer | None:
        return self.views.get(view_id)

    def _forget(self, view_id: str) -> None:
        self.views.pop(view_id, None)

    async def close(self) -> None:
        """Close the httpx session."""
        await self.http_client.aclose()
