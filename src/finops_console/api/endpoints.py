"""
Endpoint catalogue for the console API.

Each builder returns a ``ContractRequest``: the immutable request descriptor
paired with the type its response body must decode into.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar
from urllib.parse import quote

from .models import (
    AIAnalysisResponse,
    AIAskResponse,
    AIExecutiveSummaryResponse,
    AIExplainSpikeResponse,
    AIModelsResponse,
    AIPrioritizeResponse,
    AIStatus,
    AISuggestBudgetsResponse,
    AIUtilizationResponse,
    AlertThresholdsResponse,
    ApiConfig,
    AuditMap,
    AuditResult,
    CostTrend,
    DashboardData,
    DashboardSummary,
    DeleteReportResponse,
    ForecastSeries,
    ForecastSummary,
    ForecastTrendsResponse,
    GenerateReportResponse,
    HealthStatus,
    Recommendation,
    RefreshStatus,
    ReportsListResponse,
    ResourcesSummary,
    ServiceCostList,
    ServiceForecast,
    SetModelResponse,
)
from .outcome import RequestDescriptor

T = TypeVar("T")

REPORT_FORMATS = ("pdf", "html", "csv", "json")
RECOMMENDATION_PRIORITIES = ("high", "medium", "low")


@dataclass(frozen=True)
class ContractRequest(Generic[T]):
    """A request descriptor plus the shape its response must have."""

    name: str
    descriptor: RequestDescriptor
    response_type: Any

    @property
    def cache_key(self) -> str:
        return self.descriptor.cache_key


def _segment(value: str) -> str:
    return quote(value, safe="")


def health() -> ContractRequest[HealthStatus]:
    return ContractRequest("health", RequestDescriptor.build("/api/health"), HealthStatus)


def get_config() -> ContractRequest[ApiConfig]:
    return ContractRequest("config", RequestDescriptor.build("/api/config"), ApiConfig)


def update_config(config: ApiConfig) -> ContractRequest[ApiConfig]:
    descriptor = RequestDescriptor.build(
        "/api/config", method="POST", body=config.model_dump(exclude_none=True)
    )
    return ContractRequest("update_config", descriptor, ApiConfig)


def summary() -> ContractRequest[DashboardSummary]:
    return ContractRequest("summary", RequestDescriptor.build("/api/summary"), DashboardSummary)


def service_costs() -> ContractRequest[ServiceCostList]:
    return ContractRequest(
        "services", RequestDescriptor.build("/api/costs/services"), ServiceCostList
    )


def cost_trend() -> ContractRequest[CostTrend]:
    return ContractRequest("trend", RequestDescriptor.build("/api/costs/trend"), CostTrend)


def audits() -> ContractRequest[AuditMap]:
    return ContractRequest("audits", RequestDescriptor.build("/api/audits"), AuditMap)


def audit(audit_type: str, refresh: bool = False) -> ContractRequest[AuditResult]:
    descriptor = RequestDescriptor.build(
        f"/api/audits/{_segment(audit_type)}", params={"refresh": refresh}
    )
    return ContractRequest("audit", descriptor, AuditResult)


def recommendations(
    priority: str | None = None,
    resource_type: str | None = None,
    limit: int | None = None,
) -> ContractRequest[list[Recommendation]]:
    if priority is not None and priority not in RECOMMENDATION_PRIORITIES:
        raise ValueError(
            f'Invalid priority "{priority}". Must be one of: {", ".join(RECOMMENDATION_PRIORITIES)}'
        )
    descriptor = RequestDescriptor.build(
        "/api/recommendations",
        params={"priority": priority, "resource_type": resource_type, "limit": limit or None},
    )
    return ContractRequest("recommendations", descriptor, list[Recommendation])


def resources_summary() -> ContractRequest[ResourcesSummary]:
    return ContractRequest(
        "resources", RequestDescriptor.build("/api/resources/summary"), ResourcesSummary
    )


def dashboard(refresh: bool = False) -> ContractRequest[DashboardData]:
    descriptor = RequestDescriptor.build("/api/dashboard", params={"refresh": refresh})
    return ContractRequest("dashboard", descriptor, DashboardData)


def refresh_data() -> ContractRequest[RefreshStatus]:
    return ContractRequest(
        "refresh", RequestDescriptor.build("/api/refresh", method="POST"), RefreshStatus
    )


def reports() -> ContractRequest[ReportsListResponse]:
    return ContractRequest("reports", RequestDescriptor.build("/api/reports"), ReportsListResponse)


def generate_report(report_format: str = "pdf") -> ContractRequest[GenerateReportResponse]:
    if report_format not in REPORT_FORMATS:
        raise ValueError(
            f'Invalid report format "{report_format}". Must be one of: {", ".join(REPORT_FORMATS)}'
        )
    descriptor = RequestDescriptor.build(
        "/api/reports/generate", method="POST", params={"format": report_format}
    )
    return ContractRequest("generate_report", descriptor, GenerateReportResponse)


def delete_report(filename: str) -> ContractRequest[DeleteReportResponse]:
    descriptor = RequestDescriptor.build(f"/api/reports/{_segment(filename)}", method="DELETE")
    return ContractRequest("delete_report", descriptor, DeleteReportResponse)


def report_download_path(filename: str) -> str:
    return f"/api/reports/{_segment(filename)}/download"


def ai_status() -> ContractRequest[AIStatus]:
    return ContractRequest("ai_status", RequestDescriptor.build("/api/ai/status"), AIStatus)


def ai_analyze(refresh: bool = False) -> ContractRequest[AIAnalysisResponse]:
    descriptor = RequestDescriptor.build(
        "/api/ai/analyze", method="POST", params={"refresh": refresh}
    )
    return ContractRequest("ai_analyze", descriptor, AIAnalysisResponse)


def ai_explain_spike() -> ContractRequest[AIExplainSpikeResponse]:
    descriptor = RequestDescriptor.build("/api/ai/explain-spike", method="POST")
    return ContractRequest("ai_explain_spike", descriptor, AIExplainSpikeResponse)


def ai_executive_summary() -> ContractRequest[AIExecutiveSummaryResponse]:
    descriptor = RequestDescriptor.build("/api/ai/executive-summary", method="POST")
    return ContractRequest("ai_executive_summary", descriptor, AIExecutiveSummaryResponse)


def ai_ask(question: str) -> ContractRequest[AIAskResponse]:
    if not question or not question.strip():
        raise ValueError("Question must not be empty")
    descriptor = RequestDescriptor.build(
        "/api/ai/ask", method="POST", params={"question": question.strip()}
    )
    return ContractRequest("ai_ask", descriptor, AIAskResponse)


def ai_prioritize_recommendations() -> ContractRequest[AIPrioritizeResponse]:
    descriptor = RequestDescriptor.build("/api/ai/prioritize-recommendations", method="POST")
    return ContractRequest("ai_prioritize", descriptor, AIPrioritizeResponse)


def ai_suggest_budgets() -> ContractRequest[AISuggestBudgetsResponse]:
    descriptor = RequestDescriptor.build("/api/ai/suggest-budgets", method="POST")
    return ContractRequest("ai_suggest_budgets", descriptor, AISuggestBudgetsResponse)


def ai_analyze_utilization() -> ContractRequest[AIUtilizationResponse]:
    descriptor = RequestDescriptor.build("/api/ai/analyze-utilization", method="POST")
    return ContractRequest("ai_utilization", descriptor, AIUtilizationResponse)


def ai_models() -> ContractRequest[AIModelsResponse]:
    return ContractRequest("ai_models", RequestDescriptor.build("/api/ai/models"), AIModelsResponse)


def ai_set_model(model_id: str) -> ContractRequest[SetModelResponse]:
    descriptor = RequestDescriptor.build(
        "/api/ai/models/set", method="POST", params={"model_id": model_id}
    )
    return ContractRequest("ai_set_model", descriptor, SetModelResponse)


def forecast(
    days: int | None = None, historical_days: int | None = None, refresh: bool = False
) -> ContractRequest[ForecastSeries]:
    descriptor = RequestDescriptor.build(
        "/api/forecast",
        params={"days": days, "historical_days": historical_days, "refresh": refresh},
    )
    return ContractRequest("forecast", descriptor, ForecastSeries)


def forecast_summary(days: int = 30) -> ContractRequest[ForecastSummary]:
    descriptor = RequestDescriptor.build("/api/forecast/summary", params={"days": days})
    return ContractRequest("forecast_summary", descriptor, ForecastSummary)


def service_forecast(
    service_name: str, days: int | None = None, historical_days: int | None = None
) -> ContractRequest[ServiceForecast]:
    descriptor = RequestDescriptor.build(
        f"/api/forecast/service/{_segment(service_name)}",
        params={"days": days, "historical_days": historical_days},
    )
    return ContractRequest("service_forecast", descriptor, ServiceForecast)


def forecast_trends() -> ContractRequest[ForecastTrendsResponse]:
    return ContractRequest(
        "forecast_trends", RequestDescriptor.build("/api/forecast/trends"), ForecastTrendsResponse
    )


def forecast_alert_thresholds() -> ContractRequest[AlertThresholdsResponse]:
    return ContractRequest(
        "alert_thresholds",
        RequestDescriptor.build("/api/forecast/alert-thresholds"),
        AlertThresholdsResponse,
    )
