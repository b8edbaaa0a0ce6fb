"""Integration tests for the transport gateway and typed client with mocked HTTP responses."""

import httpx
import pytest
import respx

from finops_console.api import endpoints
from finops_console.api.client import FinOpsApiClient
from finops_console.api.outcome import ErrorKind, Ok
from finops_console.utils.http_client import TransportGateway

BASE = "http://testserver"


@pytest.mark.integration
class TestTransportGateway:
    @respx.mock
    async def test_success(self) -> None:
        respx.get(f"{BASE}/api/health").mock(
            return_value=httpx.Response(200, json={"status": "healthy"})
        )

        async with TransportGateway(BASE) as gateway:
            outcome = await gateway.call(endpoints.health().descriptor)

        assert outcome == Ok({"status": "healthy"})

    @respx.mock
    async def test_connection_error(self) -> None:
        respx.get(f"{BASE}/api/health").mock(side_effect=httpx.ConnectError("Connection refused"))

        async with TransportGateway(BASE) as gateway:
            outcome = await gateway.call(endpoints.health().descriptor)

        assert outcome.kind is ErrorKind.NETWORK
        assert "Connection refused" in outcome.message

    @respx.mock
    async def test_timeout(self) -> None:
        respx.get(f"{BASE}/api/summary").mock(side_effect=httpx.ReadTimeout("timed out"))

        async with TransportGateway(BASE, timeout=1) as gateway:
            outcome = await gateway.call(endpoints.summary().descriptor)

        assert outcome.kind is ErrorKind.NETWORK

    @respx.mock
    async def test_http_error_uses_detail(self) -> None:
        respx.delete(f"{BASE}/api/reports/missing.pdf").mock(
            return_value=httpx.Response(404, json={"detail": "Report not found"})
        )

        async with TransportGateway(BASE) as gateway:
            outcome = await gateway.call(endpoints.delete_report("missing.pdf").descriptor)

        assert outcome.kind is ErrorKind.HTTP
        assert outcome.message == "Report not found"
        assert outcome.is_not_found

    @respx.mock
    async def test_validation_detail_list(self) -> None:
        respx.post(f"{BASE}/api/ai/ask").mock(
            return_value=httpx.Response(
                422, json={"detail": [{"loc": ["query", "question"], "msg": "field required"}]}
            )
        )

        async with TransportGateway(BASE) as gateway:
            outcome = await gateway.call(endpoints.ai_ask("why?").descriptor)

        assert outcome.message == "field required"
        assert outcome.status_code == 422

    @respx.mock
    async def test_http_error_without_detail(self) -> None:
        respx.get(f"{BASE}/api/summary").mock(return_value=httpx.Response(500, text="oops"))

        async with TransportGateway(BASE) as gateway:
            outcome = await gateway.call(endpoints.summary().descriptor)

        assert outcome.message == "HTTP error! status: 500"
        assert outcome.status_code == 500

    @respx.mock
    async def test_invalid_json(self) -> None:
        respx.get(f"{BASE}/api/summary").mock(return_value=httpx.Response(200, text="<html>"))

        async with TransportGateway(BASE) as gateway:
            outcome = await gateway.call(endpoints.summary().descriptor)

        assert outcome.kind is ErrorKind.DECODE

    @respx.mock
    async def test_no_content(self) -> None:
        respx.post(f"{BASE}/api/refresh").mock(return_value=httpx.Response(204))

        async with TransportGateway(BASE) as gateway:
            outcome = await gateway.call(endpoints.refresh_data().descriptor)

        assert outcome == Ok(None)

    @respx.mock
    async def test_query_parameters_and_body(self) -> None:
        forecast = respx.get(f"{BASE}/api/forecast").mock(
            return_value=httpx.Response(200, json={})
        )

        async with TransportGateway(BASE) as gateway:
            await gateway.call(endpoints.forecast(90, 180).descriptor)

        params = forecast.calls.last.request.url.params
        assert params["days"] == "90"
        assert params["historical_days"] == "180"
        assert "refresh" not in params

    def test_url_for(self) -> None:
        gateway = TransportGateway(f"{BASE}/")

        assert gateway.url_for("/api/reports") == f"{BASE}/api/reports"


@pytest.mark.integration
class TestFinOpsApiClient:
    @respx.mock
    async def test_decodes_payload(self, summary_payload) -> None:
        respx.get(f"{BASE}/api/summary").mock(return_value=httpx.Response(200, json=summary_payload))

        async with TransportGateway(BASE) as gateway:
            outcome = await FinOpsApiClient(gateway).fetch(endpoints.summary())

        assert outcome.value.project_id == "prod-core"

    @respx.mock
    async def test_shape_mismatch_is_decode_error(self, summary_payload) -> None:
        summary_payload["current_month"] = "1500"
        respx.get(f"{BASE}/api/summary").mock(return_value=httpx.Response(200, json=summary_payload))

        async with TransportGateway(BASE) as gateway:
            outcome = await FinOpsApiClient(gateway).fetch(endpoints.summary())

        assert outcome.kind is ErrorKind.DECODE
        assert "current_month" in outcome.message

    @respx.mock
    async def test_errors_pass_through(self) -> None:
        respx.get(f"{BASE}/api/audits").mock(return_value=httpx.Response(503))

        async with TransportGateway(BASE) as gateway:
            outcome = await FinOpsApiClient(gateway).fetch(endpoints.audits())

        assert outcome.kind is ErrorKind.HTTP
        assert outcome.status_code == 503
