"""
Report lifecycle management.

The report list shown to the operator is always the server's most recent list
response. Generate and delete never patch it locally; they re-fetch it.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable

from ..api import endpoints
from ..api.client import FinOpsApiClient
from ..api.models import DeleteReportResponse, GenerateReportResponse, ReportArtifact
from ..api.outcome import Outcome
from ..utils.cache import ResultCache
from .fanout import FanOutOrchestrator, ViewState

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], bool | Awaitable[bool]]


class ReportLifecycleManager:
    """List, generate and delete server-held report artifacts."""

    def __init__(
        self,
        client: FinOpsApiClient,
        confirm: ConfirmCallback,
        default_format: str = "pdf",
        cache: ResultCache | None = None,
    ):
        self.client = client
        self.confirm = confirm
        self.default_format = default_format
        self._view = FanOutOrchestrator(
            client, "reports", [endpoints.reports()], cache=cache or ResultCache("reports")
        )

    @property
    def state(self) -> ViewState:
        return self._view.state

    @property
    def reports(self) -> tuple[ReportArtifact, ...]:
        """Reports from the last successful list response."""
        listing = self._view.state.values.get("reports")
        return tuple(listing.reports) if listing else ()

    @property
    def filenames(self) -> list[str]:
        return [report.filename for report in self.reports]

    async def list(self) -> ViewState:
        return await self._view.load()

    async def generate(self, report_format: str | None = None) -> Outcome[GenerateReportResponse]:
        """Ask the server to render a report, then reload the list."""
        outcome = await self.client.fetch(
            endpoints.generate_report(report_format or self.default_format)
        )
        if outcome.is_ok:
            logger.info(f"Generated report {outcome.value.filename} ({outcome.value.size})")
            await self.list()
        return outcome

    async def delete(self, filename: str) -> Outcome[DeleteReportResponse] | None:
        """Delete ``filename`` after explicit confirmation.

        Returns None without issuing a request when the confirmation is
        declined. On failure the current list is left untouched.
        """
        answer = self.confirm(f'Are you sure you want to delete "{filename}"?')
        if inspect.isawaitable(answer):
            answer = await answer
        if not answer:
            logger.info(f"Deletion of {filename} cancelled")
            return None

        outcome = await self.client.fetch(endpoints.delete_report(filename))
        if outcome.is_ok:
            logger.info(f"Deleted report {filename}")
            await self.list()
        return outcome

    def download_url(self, filename: str) -> str:
        return self.client.report_download_url(filename)
