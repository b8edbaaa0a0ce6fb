"""
API data models for the FinOps console.

Pydantic models describing every payload the console API returns. Models run
in strict mode so a payload of the wrong shape is rejected instead of being
coerced, and contract invariants are enforced as validators.
"""

import math
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator

_SIGN_EPSILON = 1e-9

_MONTH_FORMATS = ("%Y-%m", "%Y/%m", "%b %Y", "%B %Y", "%b-%Y", "%m/%Y", "%Y-%m-%d")
_YEARLESS_MONTH_FORMATS = ("%b", "%B")


def _sign(value: float) -> int:
    if abs(value) < _SIGN_EPSILON:
        return 0
    return 1 if value > 0 else -1


def parse_month_label(label: str) -> tuple[int | None, int]:
    """Parse a trend month label into ``(year, month)``.

    Labels such as ``"2024-03"`` or ``"Mar 2024"`` carry a year; short labels
    such as ``"Mar"`` do not, in which case the year is ``None``.
    """
    text = label.strip()
    for fmt in _MONTH_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return parsed.year, parsed.month
    for fmt in _YEARLESS_MONTH_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return None, parsed.month
    raise ValueError(f"Unrecognised month label: {label!r}")


def is_next_month(previous: tuple[int | None, int], current: tuple[int | None, int]) -> bool:
    """Check that ``current`` is the calendar month right after ``previous``."""
    prev_year, prev_month = previous
    cur_year, cur_month = current
    if prev_year is not None and cur_year is not None:
        return cur_year * 12 + cur_month == prev_year * 12 + prev_month + 1
    return cur_month == prev_month % 12 + 1


class ContractModel(BaseModel):
    """Base class for payloads decoded from the console API."""

    model_config = ConfigDict(strict=True, frozen=True)


class Trend(str, Enum):
    """Forecast trend direction as reported by the forecasting model."""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class HealthStatus(ContractModel):
    status: str
    timestamp: str
    configured: bool


class ApiConfig(ContractModel):
    project_id: str | None = None
    billing_dataset: str | None = None
    billing_table_prefix: str | None = None
    regions: list[str] | None = None


class DashboardSummary(ContractModel):
    """Headline spend figures for the current billing period."""

    current_month: float
    last_month: float
    ytd: float
    change_pct: float
    resources_active: int = Field(ge=0)
    potential_savings: float = Field(ge=0)
    project_id: str
    billing_month: str

    @model_validator(mode="after")
    def validate_change_sign(self):
        """The reported change must point the same way as the raw difference."""
        delta = self.current_month - self.last_month

        # A change against an empty previous month is undefined; the API reports 0.
        if self.last_month == 0 and _sign(self.change_pct) == 0:
            return self

        if _sign(self.change_pct) != _sign(delta):
            raise ValueError(
                f"change_pct {self.change_pct} disagrees with "
                f"current_month - last_month = {delta:.2f}"
            )
        return self

    @property
    def is_increase(self) -> bool:
        return self.change_pct >= 0


class ServiceCost(ContractModel):
    name: str
    value: float = Field(ge=0)


def _unique_service_names(services: list[ServiceCost]) -> list[ServiceCost]:
    seen: set[str] = set()
    for service in services:
        if service.name in seen:
            raise ValueError(f"Duplicate service name in snapshot: {service.name}")
        seen.add(service.name)
    return services


ServiceCostList = Annotated[list[ServiceCost], AfterValidator(_unique_service_names)]


class CostTrendItem(ContractModel):
    month: str
    cost: float = Field(ge=0)
    change: float

    @field_validator("month")
    @classmethod
    def validate_month(cls, v: str) -> str:
        parse_month_label(v)
        return v

    @property
    def month_key(self) -> tuple[int | None, int]:
        return parse_month_label(self.month)


def _chronological_months(items: list[CostTrendItem]) -> list[CostTrendItem]:
    for previous, current in zip(items, items[1:]):
        if not is_next_month(previous.month_key, current.month_key):
            raise ValueError(
                f"Cost trend is not one entry per consecutive month: "
                f"{previous.month!r} followed by {current.month!r}"
            )
    return items


CostTrend = Annotated[list[CostTrendItem], AfterValidator(_chronological_months)]


class AuditResult(ContractModel):
    resource_type: str
    total_count: int = Field(ge=0)
    untagged_count: int = Field(ge=0)
    idle_count: int = Field(ge=0)
    over_provisioned_count: int = Field(ge=0)
    issues: list[str] = Field(max_length=200)
    potential_monthly_savings: float = Field(ge=0)


AuditMap = dict[str, AuditResult]


class Recommendation(ContractModel):
    resource_type: str
    resource_name: str
    region: str
    issue: str
    recommendation: str
    potential_monthly_savings: float = Field(ge=0)
    priority: Literal["high", "medium", "low"]
    details: dict[str, Any] | None = None


class ResourcesSummary(ContractModel):
    total: int = Field(ge=0)
    running: int = Field(ge=0)
    idle: int = Field(ge=0)
    untagged: int = Field(ge=0)


class DashboardData(ContractModel):
    project_id: str
    billing_month: str
    current_month_cost: float
    last_month_cost: float
    ytd_cost: float
    service_costs: dict[str, float]
    total_potential_savings: float = Field(ge=0)
    audit_results: dict[str, AuditResult]
    recommendations: list[Recommendation]


class RefreshStatus(ContractModel):
    status: str
    timestamp: str


class ReportArtifact(ContractModel):
    filename: str = Field(min_length=1)
    size: str
    size_bytes: int = Field(ge=0)
    created_at: str
    download_url: str
    project_id: str | None = None


class ReportsListResponse(ContractModel):
    reports: list[ReportArtifact]
    total: int = Field(ge=0)

    @field_validator("reports")
    @classmethod
    def validate_unique_filenames(cls, v: list[ReportArtifact]) -> list[ReportArtifact]:
        filenames = [report.filename for report in v]
        if len(filenames) != len(set(filenames)):
            raise ValueError("Report filenames must be unique")
        return v

    @property
    def filenames(self) -> list[str]:
        return [report.filename for report in self.reports]


class GenerateReportResponse(ContractModel):
    success: bool
    filename: str
    size: str
    size_bytes: int = Field(ge=0)
    created_at: str
    download_url: str
    project_id: str


class DeleteReportResponse(ContractModel):
    success: bool
    message: str


class AIStatus(ContractModel):
    enabled: bool
    model: str | None = None
    provider: str
    message: str


class AIAnalysisResponse(ContractModel):
    success: bool
    analysis: str
    model: str
    project_id: str
    billing_month: str
    generated_at: str


class AIExplainSpikeResponse(ContractModel):
    success: bool
    explanation: str
    current_month: float
    last_month: float
    change_pct: float


class AIExecutiveSummaryResponse(ContractModel):
    success: bool
    summary: str
    project_id: str
    billing_month: str


class AIAskResponse(ContractModel):
    success: bool
    question: str
    answer: str
    generated_at: str


class AIPrioritizeResponse(ContractModel):
    success: bool
    prioritization: str
    total_recommendations: int = Field(ge=0)


class AISuggestBudgetsResponse(ContractModel):
    success: bool
    suggestions: str
    current_month_cost: float
    ytd_cost: float


class AIUtilizationResponse(ContractModel):
    success: bool
    analysis: str
    total_resources: int = Field(ge=0)
    idle_resources: int = Field(ge=0)


class AIModel(ContractModel):
    id: str
    name: str
    description: str
    context_window: int = Field(gt=0)
    recommended: bool


class AIModelsResponse(ContractModel):
    models: list[AIModel]
    current_model: str
    default_model: str


class SetModelResponse(ContractModel):
    success: bool
    model: str
    message: str


class ForecastPoint(ContractModel):
    """One predicted day.

    Bound ordering is not enforced here: a point with inverted bounds is
    dropped by the forecast reconciler instead of failing the whole series.
    """

    date: Annotated[date, Field(strict=False)]
    predicted_cost: float
    lower_bound: float
    upper_bound: float

    @property
    def has_valid_band(self) -> bool:
        return self.lower_bound <= self.predicted_cost <= self.upper_bound


class ForecastSeries(ContractModel):
    forecast_points: list[ForecastPoint]
    total_predicted_cost: float
    forecast_days: int = Field(ge=0)
    model_confidence: float = Field(ge=0, le=1)
    trend: Trend = Field(strict=False)
    generated_at: str

    @field_validator("forecast_points")
    @classmethod
    def validate_increasing_dates(cls, v: list[ForecastPoint]) -> list[ForecastPoint]:
        for previous, current in zip(v, v[1:]):
            if current.date <= previous.date:
                raise ValueError(
                    f"Forecast dates must be strictly increasing: "
                    f"{previous.date} followed by {current.date}"
                )
        return v

    @model_validator(mode="after")
    def validate_total(self):
        """The total must be the sum of the per-day predictions."""
        expected = sum(point.predicted_cost for point in self.forecast_points)
        tolerance = 0.01 * max(1, len(self.forecast_points))
        if not math.isclose(self.total_predicted_cost, expected, rel_tol=1e-3, abs_tol=tolerance):
            raise ValueError(
                f"total_predicted_cost {self.total_predicted_cost} does not match "
                f"the sum of forecast points {expected:.2f}"
            )
        return self

    @property
    def first_date(self) -> date | None:
        return self.forecast_points[0].date if self.forecast_points else None


class ServiceForecast(ForecastSeries):
    service_name: str


class ForecastSummary(ContractModel):
    predicted_cost_next_30d: float
    current_month_cost: float
    trend: Trend = Field(strict=False)
    confidence: float = Field(ge=0, le=1)
    forecast_days: int = Field(ge=0)

    @property
    def projected_change_pct(self) -> float | None:
        """Change of the 30-day prediction against the current month."""
        if self.current_month_cost == 0:
            return None
        diff = self.predicted_cost_next_30d - self.current_month_cost
        return diff / self.current_month_cost * 100


class ForecastTrend(ContractModel):
    service_name: str
    current_cost: float
    predicted_cost_30d: float
    trend: Trend = Field(strict=False)
    confidence: float = Field(ge=0, le=1)


class ForecastTrendsResponse(ContractModel):
    trends: list[ForecastTrend]
    generated_at: str


class RecommendedThresholds(ContractModel):
    conservative: float
    warning: float
    critical: float


class AlertThresholdsResponse(ContractModel):
    predicted_monthly_cost: float
    recommended_thresholds: RecommendedThresholds
    confidence: float = Field(ge=0, le=1)
    trend: Trend = Field(strict=False)
    generated_at: str
