"""
Pytest configuration and shared fixtures for FinOps console tests.

This module provides common payloads, a scripted API client for
orchestration tests and markers used across all test modules.
"""

import asyncio
from collections import defaultdict, deque
from typing import Any

import pytest

from finops_console.api.client import decode
from finops_console.api.endpoints import ContractRequest, report_download_path
from finops_console.api.outcome import Err, ErrorKind, Ok

BASE = "http://testserver"


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "race: mark test as exercising out-of-order completions")


class FakeClient:
    """Scripted stand-in for ``FinOpsApiClient``.

    Responses are keyed by request name. A list of responses is consumed in
    call order and the last one repeats. Raw payloads go through the real
    decoder; ``Err`` values are returned as they are. ``hold`` parks the next
    call of a request until the returned event is set.
    """

    def __init__(self):
        self.responses: dict[str, list[Any]] = {}
        self.calls: list[ContractRequest] = []
        self._holds: dict[str, deque] = defaultdict(deque)

    def respond(self, name: str, *responses: Any) -> "FakeClient":
        self.responses[name] = list(responses)
        return self

    def hold(self, name: str) -> asyncio.Event:
        gate = asyncio.Event()
        self._holds[name].append(gate)
        return gate

    def call_names(self) -> list[str]:
        return [request.name for request in self.calls]

    def count(self, name: str) -> int:
        return self.call_names().count(name)

    async def fetch(self, request: ContractRequest):
        self.calls.append(request)
        scripted = self.responses.get(request.name)
        if not scripted:
            response = Err(ErrorKind.HTTP, "Not Found", status_code=404)
        elif len(scripted) > 1:
            response = scripted.pop(0)
        else:
            response = scripted[0]

        if self._holds[request.name]:
            await self._holds[request.name].popleft().wait()

        if isinstance(response, Err):
            return response
        return decode(Ok(response), request.response_type, request.descriptor.path)

    def report_download_url(self, filename: str) -> str:
        return f"{BASE}{report_download_path(filename)}"


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


# Sample payload fixtures
@pytest.fixture
def summary_payload() -> dict[str, Any]:
    return {
        "current_month": 1500.0,
        "last_month": 1200.0,
        "ytd": 9000.0,
        "change_pct": 25.0,
        "resources_active": 42,
        "potential_savings": 120.5,
        "project_id": "prod-core",
        "billing_month": "2024-03",
    }


@pytest.fixture
def services_payload() -> list[dict[str, Any]]:
    return [
        {"name": "Compute Engine", "value": 900.0},
        {"name": "Cloud Storage", "value": 400.0},
        {"name": "BigQuery", "value": 200.0},
    ]


@pytest.fixture
def trend_payload() -> list[dict[str, Any]]:
    return [
        {"month": "Jan", "cost": 1000.0, "change": 0.0},
        {"month": "Feb", "cost": 1200.0, "change": 20.0},
    ]


@pytest.fixture
def forecast_payload() -> dict[str, Any]:
    return {
        "forecast_points": [
            {"date": "2024-03-01", "predicted_cost": 50.0, "lower_bound": 40.0, "upper_bound": 60.0},
            {"date": "2024-03-02", "predicted_cost": 52.0, "lower_bound": 41.0, "upper_bound": 63.0},
            {"date": "2024-03-03", "predicted_cost": 54.0, "lower_bound": 42.0, "upper_bound": 66.0},
        ],
        "total_predicted_cost": 156.0,
        "forecast_days": 3,
        "model_confidence": 0.82,
        "trend": "increasing",
        "generated_at": "2024-02-29T12:00:00",
    }


@pytest.fixture
def forecast_summary_payload() -> dict[str, Any]:
    return {
        "predicted_cost_next_30d": 1650.0,
        "current_month_cost": 1500.0,
        "trend": "increasing",
        "confidence": 0.82,
        "forecast_days": 30,
    }


@pytest.fixture
def resources_payload() -> dict[str, Any]:
    return {"total": 42, "running": 30, "idle": 8, "untagged": 4}


@pytest.fixture
def audits_payload() -> dict[str, Any]:
    return {
        "compute": {
            "resource_type": "compute",
            "total_count": 20,
            "untagged_count": 2,
            "idle_count": 5,
            "over_provisioned_count": 1,
            "issues": ["vm-batch-7 idle for 14 days"],
            "potential_monthly_savings": 85.0,
        },
        "storage": {
            "resource_type": "storage",
            "total_count": 12,
            "untagged_count": 2,
            "idle_count": 3,
            "over_provisioned_count": 0,
            "issues": [],
            "potential_monthly_savings": 35.5,
        },
    }


@pytest.fixture
def recommendations_payload() -> list[dict[str, Any]]:
    return [
        {
            "resource_type": "compute",
            "resource_name": "vm-batch-7",
            "region": "us-central1",
            "issue": "Idle instance",
            "recommendation": "Stop or delete the instance",
            "potential_monthly_savings": 85.0,
            "priority": "high",
        }
    ]


@pytest.fixture
def dashboard_data_payload(audits_payload, recommendations_payload) -> dict[str, Any]:
    return {
        "project_id": "prod-core",
        "billing_month": "2024-03",
        "current_month_cost": 1500.0,
        "last_month_cost": 1200.0,
        "ytd_cost": 9000.0,
        "service_costs": {
            "BigQuery": 200.0,
            "Compute Engine": 900.0,
            "Cloud Storage": 400.0,
        },
        "total_potential_savings": 120.5,
        "audit_results": audits_payload,
        "recommendations": recommendations_payload,
    }


def make_report(filename: str) -> dict[str, Any]:
    return {
        "filename": filename,
        "size": "12.4 KB",
        "size_bytes": 12698,
        "created_at": "2024-03-01T09:00:00",
        "download_url": f"/api/reports/{filename}/download",
        "project_id": "prod-core",
    }


def make_report_list(*filenames: str) -> dict[str, Any]:
    return {"reports": [make_report(name) for name in filenames], "total": len(filenames)}


@pytest.fixture
def ai_status_enabled() -> dict[str, Any]:
    return {
        "enabled": True,
        "model": "llama-3.3-70b-versatile",
        "provider": "groq",
        "message": "AI features are enabled",
    }


@pytest.fixture
def ai_status_disabled() -> dict[str, Any]:
    return {
        "enabled": False,
        "model": None,
        "provider": "groq",
        "message": "Set GROQ_API_KEY to enable AI features",
    }


def make_executive_summary(text: str) -> dict[str, Any]:
    return {
        "success": True,
        "summary": text,
        "project_id": "prod-core",
        "billing_month": "2024-03",
    }


@pytest.fixture
def ask_payload() -> dict[str, Any]:
    return {
        "success": True,
        "question": "Why did storage go up?",
        "answer": "Snapshot retention doubled in February.",
        "generated_at": "2024-03-01T10:00:00",
    }


@pytest.fixture
def api_config_payload() -> dict[str, Any]:
    return {
        "project_id": "prod-core",
        "billing_dataset": "billing_export",
        "billing_table_prefix": "gcp_billing_export_v1",
        "regions": ["us-central1"],
    }


@pytest.fixture
def health_payload() -> dict[str, Any]:
    return {"status": "healthy", "timestamp": "2024-03-01T10:00:00", "configured": True}


@pytest.fixture
def ai_models_payload() -> dict[str, Any]:
    return {
        "models": [
            {
                "id": "llama-3.3-70b-versatile",
                "name": "Llama 3.3 70B",
                "description": "General purpose",
                "context_window": 128000,
                "recommended": True,
            },
            {
                "id": "mixtral-8x7b-32768",
                "name": "Mixtral 8x7B",
                "description": "Long context",
                "context_window": 32768,
                "recommended": False,
            },
        ],
        "current_model": "llama-3.3-70b-versatile",
        "default_model": "llama-3.3-70b-versatile",
    }
