"""
Console views.

Each view is a fan-out batch over the console API. Views that compose figures
from several sources (dashboard, cost analysis) also check that the sources
agree before the snapshot becomes ready.
"""

import asyncio
import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from ..api import endpoints
from ..api.client import FinOpsApiClient
from ..api.endpoints import ContractRequest
from ..api.models import AIModelsResponse, AIStatus, ApiConfig, ForecastSeries, SetModelResponse
from ..api.outcome import Err, ErrorKind, Ok, Outcome
from ..utils.cache import ResultCache
from .fanout import ConsistencyCheck, FanOutOrchestrator, ViewState
from .forecast import ForecastOverlapError, ForecastReconciler, Timeline

logger = logging.getLogger(__name__)


def service_total_check(
    relative_tolerance: float = 0.01, absolute_floor: float = 1.0
) -> ConsistencyCheck:
    """Service costs must add up to the summary's current-month spend."""

    def check(values: Mapping[str, Any]) -> str | None:
        summary = values["summary"]
        services_total = sum(service.value for service in values["services"])
        allowed = max(absolute_floor, abs(summary.current_month) * relative_tolerance)
        if abs(services_total - summary.current_month) > allowed:
            return (
                f"Service costs sum to {services_total:.2f} but the summary reports "
                f"{summary.current_month:.2f} for the current month"
            )
        return None

    return check


class DashboardView(FanOutOrchestrator):
    """Summary, service breakdown and six-month trend."""

    def __init__(
        self,
        client: FinOpsApiClient,
        check: ConsistencyCheck | None = None,
        cache: ResultCache | None = None,
    ):
        super().__init__(
            client,
            "dashboard",
            [endpoints.summary(), endpoints.service_costs(), endpoints.cost_trend()],
            cache=cache,
            check=check,
        )

    async def refresh(self) -> ViewState:
        """Ask the server to recompute its data, then reload the whole view."""
        outcome = await self.client.fetch(endpoints.refresh_data())
        if not outcome.is_ok:
            generation = self.cache.issue(self.name)
            return self._resolve_error(outcome, MappingProxyType({}), generation)
        logger.info(f"Server refresh accepted at {outcome.value.timestamp}")
        return await self.load()


def cost_analysis_view(
    client: FinOpsApiClient,
    check: ConsistencyCheck | None = None,
    cache: ResultCache | None = None,
) -> FanOutOrchestrator:
    return FanOutOrchestrator(
        client,
        "cost-analysis",
        [endpoints.service_costs(), endpoints.summary()],
        cache=cache,
        check=check,
    )


def resources_view(client: FinOpsApiClient, cache: ResultCache | None = None) -> FanOutOrchestrator:
    return FanOutOrchestrator(
        client, "resources", [endpoints.resources_summary(), endpoints.audits()], cache=cache
    )


def single_source_view(
    client: FinOpsApiClient, request: ContractRequest, cache: ResultCache | None = None
) -> FanOutOrchestrator:
    """View backed by exactly one request (audit detail, recommendations, ...)."""
    return FanOutOrchestrator(client, request.name, [request], cache=cache)


class TrendsView(FanOutOrchestrator):
    """Cost trend with a lazily loaded forecast overlay.

    The trend is required. The forecast summary and the forecast itself are
    optional: their failures never put the view in error.
    """

    def __init__(
        self,
        client: FinOpsApiClient,
        forecast_days: int = 90,
        historical_days: int = 180,
        summary_days: int = 30,
        show_forecast: bool = True,
        cache: ResultCache | None = None,
    ):
        super().__init__(
            client,
            "trends",
            [endpoints.cost_trend()],
            optional=[endpoints.forecast_summary(summary_days)],
            cache=cache,
        )
        self.forecast_request = endpoints.forecast(forecast_days, historical_days)
        self.reconciler = ForecastReconciler()
        self.show_forecast = show_forecast
        self._forecast_in_flight = 0

    @property
    def forecast(self) -> Outcome[ForecastSeries] | None:
        return self.cache.get(self.forecast_request.cache_key)

    @property
    def forecast_loading(self) -> bool:
        return self._forecast_in_flight > 0

    def _needs_forecast(self) -> bool:
        forecast = self.forecast
        return self.show_forecast and (forecast is None or not forecast.is_ok)

    async def load(self) -> ViewState:
        if self._needs_forecast():
            state, _ = await asyncio.gather(super().load(), self.load_forecast())
            return state
        return await super().load()

    async def retry(self) -> ViewState:
        """Re-issue the trend batch and, while it is shown, the forecast."""
        if self.show_forecast:
            state, _ = await asyncio.gather(super().load(), self.load_forecast())
            return state
        return await super().load()

    async def load_forecast(self) -> Outcome[ForecastSeries]:
        key = self.forecast_request.cache_key
        generation = self.cache.issue(key)
        self._forecast_in_flight += 1
        try:
            outcome = await self.client.fetch(self.forecast_request)
        finally:
            self._forecast_in_flight -= 1
        if not outcome.is_ok:
            logger.warning(f"Forecast unavailable ({outcome.kind.value}): {outcome.message}")
        self.cache.settle(key, generation, outcome)
        return outcome

    async def set_show_forecast(self, show: bool) -> None:
        self.show_forecast = show
        if self._needs_forecast():
            await self.load_forecast()

    @property
    def forecast_error(self) -> Err | None:
        """Why the forecast is left out of the timeline while it is switched on."""
        forecast = self.forecast
        if not self.show_forecast or forecast is None:
            return None
        if not forecast.is_ok:
            return forecast
        if self.state.is_ready:
            try:
                self.reconciler.check_overlap(self.state.value("trend"), forecast.value)
            except ForecastOverlapError as e:
                return Err(ErrorKind.DECODE, str(e))
        return None

    def timeline(self) -> Outcome[Timeline] | None:
        """Merged history and forecast, or None until the trend has loaded.

        A forecast that cannot be merged is left out; the history is always shown.
        """
        if not self.state.is_ready:
            return None

        history = self.state.value("trend")
        forecast = None
        if self.show_forecast and self.forecast is not None and self.forecast.is_ok:
            forecast = self.forecast.value

        try:
            return Ok(self.reconciler.merge(history, forecast))
        except ForecastOverlapError as e:
            logger.warning(f"Forecast left out of the timeline: {e}")
            return Ok(self.reconciler.merge(history, None))


def parse_regions(text: str) -> list[str]:
    """Split a comma-separated region list, dropping blanks."""
    return [region.strip() for region in text.split(",") if region.strip()]


class SettingsView(FanOutOrchestrator):
    """Backend configuration, health and AI model selection."""

    def __init__(self, client: FinOpsApiClient, cache: ResultCache | None = None):
        super().__init__(
            client,
            "settings",
            [endpoints.get_config(), endpoints.health()],
            optional=[endpoints.ai_status(), endpoints.ai_models()],
            cache=cache,
        )

    @property
    def ai_status(self) -> AIStatus | None:
        return self.state.optional_value("ai_status")

    @property
    def ai_models(self) -> AIModelsResponse | None:
        return self.state.optional_value("ai_models")

    async def save_config(
        self, config: ApiConfig, regions: str | None = None
    ) -> Outcome[ApiConfig]:
        """Post the configuration, then reload so health reflects it."""
        if regions is not None:
            config = config.model_copy(update={"regions": parse_regions(regions)})
        outcome = await self.client.fetch(endpoints.update_config(config))
        if outcome.is_ok:
            logger.info("Configuration saved")
            await self.load()
        return outcome

    async def select_model(self, model_id: str) -> Outcome[SetModelResponse]:
        """Switch the AI model for this server session, then reload AI status."""
        outcome = await self.client.fetch(endpoints.ai_set_model(model_id))
        if outcome.is_ok:
            logger.info(f"AI model set to {outcome.value.model}")
            await self.load()
        return outcome
