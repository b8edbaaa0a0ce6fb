"""
Text rendering for the console.

Turns view snapshots and outcomes into terminal text. Renderers only read the
values they are given; they never touch the orchestration state.
"""

import sys
from collections.abc import Mapping, Sequence
from typing import Any

import click

from ..api.models import (
    AIModelsResponse,
    AlertThresholdsResponse,
    AuditResult,
    DashboardData,
    ForecastSummary,
    ForecastTrendsResponse,
    HealthStatus,
    Recommendation,
    ReportArtifact,
)
from ..api.outcome import Err, Outcome
from ..orchestration.context import ContextSnapshot
from ..orchestration.forecast import Timeline, trend_affordance
from ..orchestration.insights import InsightKind, InsightResult
from .themes import ConsoleTheme

INSIGHT_TITLES = {
    InsightKind.FULL_ANALYSIS: "AI Cost Analysis",
    InsightKind.SPIKE_EXPLANATION: "Cost Change Explanation",
    InsightKind.EXECUTIVE_SUMMARY: "Executive Summary",
    InsightKind.PRIORITIZATION: "Prioritized Recommendations",
    InsightKind.BUDGET_SUGGESTION: "Budget Suggestions",
    InsightKind.UTILIZATION: "Utilization Analysis",
    InsightKind.FREE_FORM_ANSWER: "Answer",
}


def fmt_currency(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def fmt_pct(value: float) -> str:
    return f"{'+' if value > 0 else ''}{value:.1f}%"


class ConsoleRenderer:
    """Formats console output for one session context."""

    def __init__(self, context: ContextSnapshot | None = None, use_colors: bool | None = None):
        self.context = context
        self.theme = ConsoleTheme(context.theme if context else "dark")
        if use_colors is None:
            use_colors = hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
        self.use_colors = use_colors

    def style(self, text: str, role: str, bold: bool = False) -> str:
        if not self.use_colors:
            return text
        return click.style(text, fg=self.theme.color(role), bold=bold)

    def heading(self, text: str) -> str:
        return self.style(text, "primary", bold=True)

    def error(self, error: Err) -> str:
        """Error banner with a retry hint; disabled features render as information."""
        if error.is_disabled:
            return "\n".join(
                [
                    self.style("ℹ Feature not enabled", "info", bold=True),
                    error.message,
                ]
            )
        status = f" (HTTP {error.status_code})" if error.status_code else ""
        return "\n".join(
            [
                self.style(f"❌ Error{status}: {error.message}", "danger", bold=True),
                self.style("Run the command again to retry.", "muted"),
            ]
        )

    def context_line(self) -> str:
        if not self.context or not self.context.projects:
            return ""
        selected = ", ".join(self.context.selected_projects) or "none"
        return self.style(
            f"Projects: {selected} | Range: {self.context.date_range}", "muted"
        )

    def dashboard(self, values: Mapping[str, Any]) -> str:
        summary = values["summary"]
        change_role = "danger" if summary.is_increase else "success"
        lines = [
            self.heading(f"Dashboard: {summary.project_id} ({summary.billing_month})"),
            f"  Current month:     {fmt_currency(summary.current_month)} "
            + self.style(fmt_pct(summary.change_pct), change_role),
            f"  Last month:        {fmt_currency(summary.last_month)}",
            f"  Year to date:      {fmt_currency(summary.ytd)}",
            f"  Active resources:  {summary.resources_active}",
            f"  Potential savings: {self.style(fmt_currency(summary.potential_savings), 'success')}",
            "",
            self.services(values["services"]),
            "",
            self.trend_table(values["trend"]),
        ]
        return "\n".join(line for line in lines if line is not None)

    def overview(self, data: DashboardData, top: int = 3) -> str:
        """Server-aggregated snapshot: spend, savings, audits and the top recommendations."""
        lines = [
            self.heading(f"Overview: {data.project_id} ({data.billing_month})"),
            f"  Current month:     {fmt_currency(data.current_month_cost)}",
            f"  Last month:        {fmt_currency(data.last_month_cost)}",
            f"  Year to date:      {fmt_currency(data.ytd_cost)}",
            f"  Potential savings: {self.style(fmt_currency(data.total_potential_savings), 'success')}",
        ]
        if data.service_costs:
            lines.extend(["", self.heading("Top services")])
            ranked = sorted(data.service_costs.items(), key=lambda item: item[1], reverse=True)
            for name, value in ranked[:top]:
                lines.append(f"  {name:<32} {fmt_currency(value):>14}")
        if data.audit_results:
            lines.extend(["", self.heading("Audits")])
            for audit in data.audit_results.values():
                lines.append(
                    f"  {audit.resource_type:<12} {len(audit.issues)} issue(s), "
                    f"saves {fmt_currency(audit.potential_monthly_savings)}/month"
                )
        if data.recommendations:
            ranked = sorted(
                data.recommendations, key=lambda rec: rec.potential_monthly_savings, reverse=True
            )
            lines.extend(["", self.recommendations(ranked[:top])])
        return "\n".join(lines)

    def services(self, services: Sequence[Any]) -> str:
        if not services:
            return "No service costs for this period."
        total = sum(service.value for service in services)
        lines = [self.heading("Cost by service")]
        for service in sorted(services, key=lambda s: s.value, reverse=True):
            share = service.value / total * 100 if total else 0.0
            lines.append(f"  {service.name:<32} {fmt_currency(service.value):>14} {share:5.1f}%")
        return "\n".join(lines)

    def trend_table(self, trend: Sequence[Any]) -> str:
        if not trend:
            return "No trend data available. Cost data will appear once billing export is enabled."
        lines = [self.heading("Monthly trend")]
        for item in trend:
            role = "danger" if item.change > 0 else "success" if item.change < 0 else "muted"
            lines.append(
                f"  {item.month:<10} {fmt_currency(item.cost):>14} {self.style(fmt_pct(item.change), role)}"
            )
        return "\n".join(lines)

    def cost_analysis(self, values: Mapping[str, Any]) -> str:
        summary = values["summary"]
        return "\n".join(
            [
                self.heading(f"Cost analysis: {summary.billing_month}"),
                f"  Total: {fmt_currency(summary.current_month)} ({fmt_pct(summary.change_pct)} vs last month)",
                "",
                self.services(values["services"]),
            ]
        )

    def audit(self, audit: AuditResult) -> str:
        lines = [
            self.heading(audit.resource_type),
            f"  Total: {audit.total_count}  Untagged: {audit.untagged_count}  "
            f"Idle: {audit.idle_count}  Over-provisioned: {audit.over_provisioned_count}",
            f"  Potential savings: {fmt_currency(audit.potential_monthly_savings)}/month",
        ]
        for issue in audit.issues:
            lines.append(self.style(f"  ⚠ {issue}", "warning"))
        return "\n".join(lines)

    def resources(self, values: Mapping[str, Any]) -> str:
        summary = values["resources"]
        lines = [
            self.heading("Resources"),
            f"  Total: {summary.total}  Running: {summary.running}  "
            f"Idle: {summary.idle}  Untagged: {summary.untagged}",
        ]
        for audit in values["audits"].values():
            lines.extend(["", self.audit(audit)])
        return "\n".join(lines)

    def recommendations(self, recommendations: Sequence[Recommendation]) -> str:
        if not recommendations:
            return "No recommendations."
        lines = [self.heading(f"{len(recommendations)} recommendation(s)")]
        for rec in recommendations:
            priority = self.style(
                rec.priority.upper(), ConsoleTheme.PRIORITY_COLORS.get(rec.priority, "text")
            )
            lines.append(
                f"  [{priority}] {rec.resource_type}/{rec.resource_name} ({rec.region}): {rec.issue}"
            )
            lines.append(
                f"      → {rec.recommendation} (saves {fmt_currency(rec.potential_monthly_savings)}/month)"
            )
        return "\n".join(lines)

    def trend_badge(self, trend) -> str:
        affordance = trend_affordance(trend)
        icon = self.theme.affordance_icon(affordance)
        label = trend.value if trend is not None else "unknown"
        if not self.use_colors:
            return f"{icon} {label}"
        return click.style(f"{icon} {label}", fg=self.theme.affordance_color(affordance))

    def forecast_summary(self, summary: ForecastSummary) -> str:
        change = summary.projected_change_pct
        return "\n".join(
            [
                self.heading("Forecast summary"),
                f"  Predicted ({summary.forecast_days}d): {fmt_currency(summary.predicted_cost_next_30d)}",
                f"  Current month:   {fmt_currency(summary.current_month_cost)}",
                f"  Trend:           {self.trend_badge(summary.trend)}"
                + (f" {fmt_pct(change)}" if change is not None else ""),
                f"  Confidence:      {summary.confidence * 100:.0f}%",
            ]
        )

    def timeline(self, timeline: Timeline) -> str:
        lines = [self.heading("Cost timeline")]
        for point in timeline.points:
            if point.is_forecast:
                band = (
                    f" [{fmt_currency(point.lower)} – {fmt_currency(point.upper)}]"
                    if point.has_band
                    else ""
                )
                lines.append(
                    self.style(f"  {point.index:>3} {point.label:<10} ~{fmt_currency(point.predicted)}{band}", "info")
                )
            else:
                lines.append(f"  {point.index:>3} {point.label:<10}  {fmt_currency(point.actual)}")
        if timeline.trend is not None:
            lines.append(
                f"  Trend: {self.trend_badge(timeline.trend)}  "
                f"Confidence: {timeline.confidence * 100:.0f}%  "
                f"Predicted total: {fmt_currency(timeline.total_predicted_cost)}"
            )
        for rejected in timeline.rejected:
            lines.append(self.style(f"  skipped: {rejected.message}", "muted"))
        return "\n".join(lines)

    def forecast_trends(self, response: ForecastTrendsResponse) -> str:
        lines = [self.heading("Service forecast trends")]
        for trend in response.trends:
            lines.append(
                f"  {trend.service_name:<32} {fmt_currency(trend.current_cost):>12} → "
                f"{fmt_currency(trend.predicted_cost_30d):>12}  {self.trend_badge(trend.trend)}"
            )
        return "\n".join(lines)

    def thresholds(self, response: AlertThresholdsResponse) -> str:
        thresholds = response.recommended_thresholds
        return "\n".join(
            [
                self.heading("Recommended alert thresholds"),
                f"  Predicted monthly cost: {fmt_currency(response.predicted_monthly_cost)} "
                f"{self.trend_badge(response.trend)}",
                f"  Conservative: {fmt_currency(thresholds.conservative)}",
                f"  Warning:      {self.style(fmt_currency(thresholds.warning), 'warning')}",
                f"  Critical:     {self.style(fmt_currency(thresholds.critical), 'danger')}",
            ]
        )

    def insight(self, outcome: Outcome[InsightResult] | None, kind: InsightKind | None) -> str:
        if kind is None or outcome is None:
            return "No insight selected."
        if not outcome.is_ok:
            return self.error(outcome)
        result = outcome.value
        lines = [self.heading(INSIGHT_TITLES[result.kind])]
        if result.question:
            lines.append(self.style(f"Q: {result.question}", "muted"))
        if result.kind is InsightKind.SPIKE_EXPLANATION and "change_pct" in result.metadata:
            lines.append(f"Change: {fmt_pct(result.metadata['change_pct'])}")
        lines.extend(["", result.text])
        return "\n".join(lines)

    def reports(self, reports: Sequence[ReportArtifact], download_url) -> str:
        if not reports:
            return "No reports yet. Generate one with `finops-console reports generate`."
        lines = [self.heading(f"{len(reports)} report(s)")]
        for report in reports:
            project = f" [{report.project_id}]" if report.project_id else ""
            lines.append(f"  {report.filename}{project}  {report.size}  {report.created_at}")
            lines.append(self.style(f"      {download_url(report.filename)}", "muted"))
        return "\n".join(lines)

    def health(self, health: HealthStatus) -> str:
        role = "success" if health.status == "healthy" and health.configured else "warning"
        configured = "configured" if health.configured else "not configured"
        return self.style(f"● {health.status} ({configured}) at {health.timestamp}", role)

    def settings(self, values: Mapping[str, Any], ai_status=None) -> str:
        config = values["config"]
        lines = [
            self.heading("Backend configuration"),
            f"  Project:        {config.project_id or '-'}",
            f"  Billing dataset: {config.billing_dataset or '-'}",
            f"  Table prefix:   {config.billing_table_prefix or '-'}",
            f"  Regions:        {', '.join(config.regions or []) or '-'}",
            f"  Health:         {self.health(values['health'])}",
        ]
        if ai_status is not None:
            state = "enabled" if ai_status.enabled else "disabled"
            lines.append(f"  AI:             {state} ({ai_status.provider}, {ai_status.model or '-'})")
        return "\n".join(lines)

    def ai_models(self, response: AIModelsResponse) -> str:
        lines = [self.heading("AI models")]
        for model in response.models:
            marker = "*" if model.id == response.current_model else " "
            recommended = " (recommended)" if model.recommended else ""
            lines.append(
                f" {marker} {model.id:<36} {model.name}{recommended} "
                f"[{model.context_window:,} tokens]"
            )
        return "\n".join(lines)
