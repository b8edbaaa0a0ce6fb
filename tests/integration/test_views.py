"""Integration tests for console views against a mocked console API."""

import json

import httpx
import pytest
import respx

from finops_console.api.client import FinOpsApiClient
from finops_console.api.models import ApiConfig
from finops_console.api.outcome import ErrorKind
from finops_console.orchestration.views import (
    DashboardView,
    SettingsView,
    TrendsView,
    parse_regions,
    resources_view,
    service_total_check,
)
from finops_console.utils.http_client import TransportGateway

BASE = "http://testserver"


@pytest.fixture
async def client():
    gateway = TransportGateway(BASE)
    yield FinOpsApiClient(gateway)
    await gateway.aclose()


@pytest.fixture
def dashboard_api(summary_payload, services_payload, trend_payload):
    with respx.mock(base_url=BASE, assert_all_called=False) as router:
        router.get("/api/summary", name="summary").mock(
            return_value=httpx.Response(200, json=summary_payload)
        )
        router.get("/api/costs/services", name="services").mock(
            return_value=httpx.Response(200, json=services_payload)
        )
        router.get("/api/costs/trend", name="trend").mock(
            return_value=httpx.Response(200, json=trend_payload)
        )
        yield router


@pytest.mark.integration
class TestDashboardView:
    async def test_consistent_sources(self, dashboard_api, client) -> None:
        view = DashboardView(client, check=service_total_check())

        state = await view.load()

        assert state.is_ready
        assert state.value("summary").billing_month == "2024-03"

    async def test_services_must_add_up(self, dashboard_api, client, services_payload) -> None:
        dashboard_api["services"].mock(
            return_value=httpx.Response(200, json=services_payload[:1])
        )
        view = DashboardView(client, check=service_total_check())

        state = await view.load()

        assert state.error.kind is ErrorKind.DECODE
        assert "sum to 900.00" in state.error.message

    async def test_refresh_then_reload(self, dashboard_api, client) -> None:
        refresh = dashboard_api.post("/api/refresh").mock(
            return_value=httpx.Response(
                200, json={"status": "ok", "timestamp": "2024-03-01T10:00:00"}
            )
        )
        view = DashboardView(client)

        state = await view.refresh()

        assert refresh.called
        assert state.is_ready
        assert dashboard_api["summary"].call_count == 1

    async def test_refresh_failure_errors_the_view(self, dashboard_api, client) -> None:
        dashboard_api.post("/api/refresh").mock(
            return_value=httpx.Response(500, json={"detail": "BigQuery unavailable"})
        )
        view = DashboardView(client)

        state = await view.refresh()

        assert state.error.message == "BigQuery unavailable"
        assert not dashboard_api["summary"].called


@pytest.mark.integration
class TestTrendsView:
    @pytest.fixture
    def trends_api(self, trend_payload, forecast_payload, forecast_summary_payload):
        with respx.mock(base_url=BASE, assert_all_called=False) as router:
            router.get("/api/costs/trend", name="trend").mock(
                return_value=httpx.Response(200, json=trend_payload)
            )
            router.get("/api/forecast/summary", name="forecast_summary").mock(
                return_value=httpx.Response(200, json=forecast_summary_payload)
            )
            router.get("/api/forecast", name="forecast").mock(
                return_value=httpx.Response(200, json=forecast_payload)
            )
            yield router

    async def test_timeline_with_forecast(self, trends_api, client) -> None:
        view = TrendsView(client)

        state = await view.load()
        timeline = view.timeline()

        assert state.is_ready
        assert state.optional_value("forecast_summary").forecast_days == 30
        assert [point.label for point in timeline.value.points] == [
            "Jan",
            "Feb",
            "03-01",
            "03-02",
            "03-03",
        ]

    async def test_forecast_request_parameters(self, trends_api, client) -> None:
        await TrendsView(client, forecast_days=60, historical_days=120).load()

        params = trends_api["forecast"].calls.last.request.url.params
        assert (params["days"], params["historical_days"]) == ("60", "120")

    async def test_forecast_failure_is_not_blocking(self, trends_api, client) -> None:
        trends_api["forecast"].mock(return_value=httpx.Response(500))
        view = TrendsView(client)

        state = await view.load()

        assert state.is_ready
        assert view.forecast.kind is ErrorKind.HTTP
        assert view.timeline().value.forecast == ()

    async def test_history_only(self, trends_api, client) -> None:
        view = TrendsView(client, show_forecast=False)

        await view.load()

        assert not trends_api["forecast"].called
        assert len(view.timeline().value.points) == 2

        await view.set_show_forecast(True)
        assert trends_api["forecast"].called
        assert len(view.timeline().value.points) == 5

    async def test_overlapping_forecast_keeps_history(self, trends_api, client) -> None:
        trends_api["trend"].mock(
            return_value=httpx.Response(
                200,
                json=[
                    {"month": "2024-02", "cost": 1.0, "change": 0.0},
                    {"month": "2024-03", "cost": 1.0, "change": 0.0},
                ],
            )
        )
        view = TrendsView(client)

        state = await view.load()
        timeline = view.timeline()

        assert state.is_ready
        assert [point.label for point in timeline.value.points] == ["2024-02", "2024-03"]
        assert view.forecast_error.kind is ErrorKind.DECODE
        assert "overlaps" in view.forecast_error.message

    async def test_forecast_error_reports_failed_fetch(self, trends_api, client) -> None:
        trends_api["forecast"].mock(return_value=httpx.Response(500))
        view = TrendsView(client)

        await view.load()

        assert view.forecast_error.status_code == 500

    async def test_no_forecast_error_when_merged(self, trends_api, client) -> None:
        view = TrendsView(client)

        await view.load()

        assert view.forecast_error is None

    async def test_retry_fetches_forecast_again(self, trends_api, client) -> None:
        view = TrendsView(client)
        await view.load()
        await view.load()

        assert trends_api["forecast"].call_count == 1

        await view.retry()

        assert trends_api["forecast"].call_count == 2
        assert trends_api["trend"].call_count == 3

    async def test_timeline_requires_trend(self, trends_api, client) -> None:
        trends_api["trend"].mock(return_value=httpx.Response(503))
        view = TrendsView(client)

        state = await view.load()

        assert not state.is_ready
        assert view.timeline() is None


@pytest.mark.integration
class TestResourcesView:
    async def test_resources_and_audits(self, client, resources_payload, audits_payload) -> None:
        with respx.mock(base_url=BASE, assert_all_called=False) as router:
            router.get("/api/resources/summary").mock(
                return_value=httpx.Response(200, json=resources_payload)
            )
            router.get("/api/audits").mock(return_value=httpx.Response(200, json=audits_payload))

            state = await resources_view(client).load()

        assert state.value("resources").idle == 8
        assert set(state.value("audits")) == {"compute", "storage"}


@pytest.mark.integration
class TestSettingsView:
    @pytest.fixture
    def settings_api(self, api_config_payload, health_payload, ai_status_enabled, ai_models_payload):
        with respx.mock(base_url=BASE, assert_all_called=False) as router:
            router.get("/api/config", name="config").mock(
                return_value=httpx.Response(200, json=api_config_payload)
            )
            router.get("/api/health", name="health").mock(
                return_value=httpx.Response(200, json=health_payload)
            )
            router.get("/api/ai/status", name="ai_status").mock(
                return_value=httpx.Response(200, json=ai_status_enabled)
            )
            router.get("/api/ai/models", name="ai_models").mock(
                return_value=httpx.Response(200, json=ai_models_payload)
            )
            yield router

    async def test_ai_sources_are_optional(self, settings_api, client) -> None:
        settings_api["ai_status"].mock(return_value=httpx.Response(500))
        view = SettingsView(client)

        state = await view.load()

        assert state.is_ready
        assert view.ai_status is None
        assert view.ai_models.current_model == "llama-3.3-70b-versatile"

    async def test_save_config_posts_and_reloads(
        self, settings_api, client, api_config_payload
    ) -> None:
        save = settings_api.post("/api/config").mock(
            return_value=httpx.Response(
                200, json=dict(api_config_payload, regions=["eu-west1", "us-east1"])
            )
        )
        view = SettingsView(client)
        await view.load()

        outcome = await view.save_config(view.state.value("config"), regions=" eu-west1, ,us-east1 ")

        assert outcome.value.regions == ["eu-west1", "us-east1"]
        assert json.loads(save.calls.last.request.content)["regions"] == ["eu-west1", "us-east1"]
        assert settings_api["health"].call_count == 2

    async def test_select_model(self, settings_api, client) -> None:
        select = settings_api.post("/api/ai/models/set").mock(
            return_value=httpx.Response(
                200,
                json={"success": True, "model": "mixtral-8x7b-32768", "message": "Model updated"},
            )
        )
        view = SettingsView(client)

        outcome = await view.select_model("mixtral-8x7b-32768")

        assert outcome.value.model == "mixtral-8x7b-32768"
        assert select.calls.last.request.url.params["model_id"] == "mixtral-8x7b-32768"
        assert settings_api["ai_status"].called


def test_parse_regions():
    assert parse_regions("us-central1, europe-west1,,") == ["us-central1", "europe-west1"]
    assert parse_regions("") == []


def test_api_config_is_optional_everywhere():
    assert ApiConfig().model_dump(exclude_none=True) == {}
