"""
Main CLI interface for the FinOps console.

Provides the command-line console over the cost observability API: dashboard,
cost analysis, resources, trends and forecasts, AI insights, reports and
settings.
"""

import asyncio
import logging
import sys

import click

from . import __version__
from .api import endpoints
from .api.client import FinOpsApiClient
from .api.endpoints import RECOMMENDATION_PRIORITIES, REPORT_FORMATS
from .api.outcome import Err
from .config.settings import get_config
from .console.render import ConsoleRenderer
from .orchestration.context import AppContext
from .orchestration.forecast import ForecastReconciler
from .orchestration.insights import InsightKind, InsightTabController
from .orchestration.reports import ReportLifecycleManager
from .orchestration.views import (
    DashboardView,
    SettingsView,
    TrendsView,
    cost_analysis_view,
    resources_view,
    service_total_check,
    single_source_view,
)
from .utils.http_client import TransportGateway

# Set up logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

GENERATED_INSIGHTS = [kind.value for kind in InsightKind if kind is not InsightKind.FREE_FORM_ANSWER]


def setup_logging(verbose: bool = False):
    """Configure logging based on verbosity settings."""
    # Default is quiet: only results and errors reach the terminal
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    else:
        logging.getLogger().setLevel(logging.ERROR)

    for logger_name in ["httpx", "httpcore"]:
        logging.getLogger(logger_name).setLevel(logging.INFO if verbose else logging.WARNING)


async def _with_client(config, handler):
    async with TransportGateway(config.api_url, timeout=config.api_timeout) as gateway:
        return await handler(FinOpsApiClient(gateway))


def _run(ctx, handler):
    """Run ``handler(client)`` and exit according to the error it returns, if any.

    Handlers echo their own output and return an ``Err`` (or None on success).
    """
    error = asyncio.run(_with_client(ctx.obj["config"], handler))
    if error is not None:
        renderer = ctx.obj["renderer"]
        click.echo(renderer.error(error), err=not error.is_disabled)
        sys.exit(0 if error.is_disabled else 1)


def _consistency_check(config):
    views = config.views
    if not views.get("enforce_service_total", True):
        return None
    return service_total_check(float(views.get("service_total_tolerance", 0.01)))


@click.group()
@click.option("--config", "-c", "config_file", help="Path to an extra configuration file")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging and debug output")
@click.option("--api-url", help="Console API base URL (default from configuration)")
@click.option("--timeout", type=float, help="Request timeout in seconds")
@click.pass_context
def cli(ctx, config_file, verbose, api_url, timeout):
    """FinOps Console - cost observability from the terminal."""
    setup_logging(verbose)

    # Ensure context object exists
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    # Load configuration
    try:
        config = get_config()
        if config_file:
            config.load_file(config_file)
        config.override_from_cli({"api_url": api_url, "timeout": timeout})
        app_context = AppContext.from_config(config)
    except (OSError, ValueError) as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    ctx.obj["config"] = config
    ctx.obj["context"] = app_context
    ctx.obj["renderer"] = ConsoleRenderer(app_context.snapshot())


@cli.command()
@click.pass_context
def health(ctx):
    """Check the console API health."""
    renderer = ctx.obj["renderer"]

    async def _health(client):
        outcome = await client.fetch(endpoints.health())
        if not outcome.is_ok:
            return outcome
        click.echo(renderer.health(outcome.value))
        return None

    _run(ctx, _health)


@cli.command()
@click.option("--refresh", is_flag=True, help="Ask the server to recompute its data first")
@click.pass_context
def dashboard(ctx, refresh):
    """Show the cost dashboard."""
    renderer = ctx.obj["renderer"]

    async def _dashboard(client):
        view = DashboardView(client, check=_consistency_check(ctx.obj["config"]))
        state = await (view.refresh() if refresh else view.load())
        if not state.is_ready:
            return state.error

        context_line = renderer.context_line()
        if context_line:
            click.echo(context_line)
        click.echo(renderer.dashboard(state.values))
        return None

    _run(ctx, _dashboard)


@cli.command()
@click.option("--refresh", is_flag=True, help="Bypass the server's cached aggregate")
@click.pass_context
def overview(ctx, refresh):
    """Show the server-aggregated overview in a single request."""
    renderer = ctx.obj["renderer"]

    async def _overview(client):
        state = await single_source_view(client, endpoints.dashboard(refresh)).load()
        if not state.is_ready:
            return state.error
        click.echo(renderer.overview(state.value("dashboard")))
        return None

    _run(ctx, _overview)


@cli.command()
@click.pass_context
def costs(ctx):
    """Show the cost analysis by service."""
    renderer = ctx.obj["renderer"]

    async def _costs(client):
        state = await cost_analysis_view(client, check=_consistency_check(ctx.obj["config"])).load()
        if not state.is_ready:
            return state.error
        click.echo(renderer.cost_analysis(state.values))
        return None

    _run(ctx, _costs)


@cli.command()
@click.pass_context
def resources(ctx):
    """Show resource counts and audit results."""
    renderer = ctx.obj["renderer"]

    async def _resources(client):
        state = await resources_view(client).load()
        if not state.is_ready:
            return state.error
        click.echo(renderer.resources(state.values))
        return None

    _run(ctx, _resources)


@cli.command()
@click.argument("audit_type")
@click.option("--refresh", is_flag=True, help="Re-run the audit instead of using cached results")
@click.pass_context
def audit(ctx, audit_type, refresh):
    """Show one audit (e.g. compute, storage, network)."""
    renderer = ctx.obj["renderer"]

    async def _audit(client):
        state = await single_source_view(client, endpoints.audit(audit_type, refresh)).load()
        if not state.is_ready:
            return state.error
        click.echo(renderer.audit(state.value("audit")))
        return None

    _run(ctx, _audit)


@cli.command()
@click.option("--priority", type=click.Choice(RECOMMENDATION_PRIORITIES), help="Only this priority")
@click.option("--resource-type", help="Only this resource type")
@click.option("--limit", type=click.IntRange(min=1), help="Maximum number of recommendations")
@click.pass_context
def recommendations(ctx, priority, resource_type, limit):
    """List cost optimization recommendations."""
    renderer = ctx.obj["renderer"]

    async def _recommendations(client):
        request = endpoints.recommendations(priority, resource_type, limit)
        state = await single_source_view(client, request).load()
        if not state.is_ready:
            return state.error
        click.echo(renderer.recommendations(state.value("recommendations")))
        return None

    _run(ctx, _recommendations)


@cli.command()
@click.option("--no-forecast", is_flag=True, help="Show the cost history only")
@click.pass_context
def trends(ctx, no_forecast):
    """Show the cost trend with the forecast overlay."""
    config = ctx.obj["config"]
    renderer = ctx.obj["renderer"]

    async def _trends(client):
        view = TrendsView(
            client,
            forecast_days=config.get_forecast_setting("days", 90),
            historical_days=config.get_forecast_setting("historical_days", 180),
            summary_days=config.get_forecast_setting("summary_days", 30),
            show_forecast=not no_forecast,
        )
        state = await view.load()
        if not state.is_ready:
            return state.error

        click.echo(renderer.timeline(view.timeline().value))

        forecast_error = view.forecast_error
        if forecast_error is not None:
            click.echo(renderer.style(f"Forecast unavailable: {forecast_error.message}", "muted"))

        summary = state.optional_value("forecast_summary")
        if summary is not None:
            click.echo("")
            click.echo(renderer.forecast_summary(summary))
        return None

    _run(ctx, _trends)


@cli.command("forecast-service")
@click.argument("service_name")
@click.option("--days", type=click.IntRange(min=1), help="Days to forecast")
@click.pass_context
def forecast_service(ctx, service_name, days):
    """Show the forecast for a single service."""
    config = ctx.obj["config"]
    renderer = ctx.obj["renderer"]

    async def _forecast_service(client):
        request = endpoints.service_forecast(
            service_name,
            days or config.get_forecast_setting("days", 90),
            config.get_forecast_setting("historical_days", 180),
        )
        state = await single_source_view(client, request).load()
        if not state.is_ready:
            return state.error

        series = state.value("service_forecast")
        click.echo(renderer.heading(series.service_name))
        # A service forecast has no monthly history to overlap with
        click.echo(renderer.timeline(ForecastReconciler().merge([], series)))
        return None

    _run(ctx, _forecast_service)


@cli.command("forecast-trends")
@click.pass_context
def forecast_trends(ctx):
    """Show the predicted trend for every service."""
    renderer = ctx.obj["renderer"]

    async def _forecast_trends(client):
        state = await single_source_view(client, endpoints.forecast_trends()).load()
        if not state.is_ready:
            return state.error
        click.echo(renderer.forecast_trends(state.value("forecast_trends")))
        return None

    _run(ctx, _forecast_trends)


@cli.command()
@click.pass_context
def thresholds(ctx):
    """Show forecast-based alert threshold recommendations."""
    renderer = ctx.obj["renderer"]

    async def _thresholds(client):
        state = await single_source_view(client, endpoints.forecast_alert_thresholds()).load()
        if not state.is_ready:
            return state.error
        click.echo(renderer.thresholds(state.value("alert_thresholds")))
        return None

    _run(ctx, _thresholds)


def _run_insight(ctx, kind: InsightKind, question=None, refresh=False):
    renderer = ctx.obj["renderer"]

    async def _insight(client):
        controller = InsightTabController(client)
        outcome = await controller.trigger(kind, question=question, refresh=refresh)
        if not outcome.is_ok:
            return outcome
        click.echo(renderer.insight(controller.active, controller.selected))
        return None

    _run(ctx, _insight)


@cli.command()
@click.argument("kind", type=click.Choice(GENERATED_INSIGHTS))
@click.option("--refresh", is_flag=True, help="Regenerate instead of using the server cache")
@click.pass_context
def insight(ctx, kind, refresh):
    """Generate an AI insight."""
    _run_insight(ctx, InsightKind(kind), refresh=refresh)


@cli.command()
@click.argument("question", nargs=-1, required=True)
@click.pass_context
def ask(ctx, question):
    """Ask the AI a free-form question about your costs."""
    text = " ".join(question).strip()
    if not text:
        raise click.UsageError("Question must not be empty")
    _run_insight(ctx, InsightKind.FREE_FORM_ANSWER, question=text)


@cli.group("reports")
def reports_group():
    """Manage generated reports."""


def _report_manager(ctx, client, yes=False):
    config = ctx.obj["config"]

    def confirm(message: str) -> bool:
        return yes or click.confirm(message, default=False)

    return ReportLifecycleManager(
        client, confirm, default_format=config.reports.get("default_format", "pdf")
    )


def _echo_report_list(renderer, manager) -> Err | None:
    if not manager.state.is_ready:
        return manager.state.error
    click.echo(renderer.reports(manager.reports, manager.download_url))
    return None


@reports_group.command("list")
@click.pass_context
def reports_list(ctx):
    """List reports held by the server."""
    renderer = ctx.obj["renderer"]

    async def _list(client):
        manager = _report_manager(ctx, client)
        await manager.list()
        return _echo_report_list(renderer, manager)

    _run(ctx, _list)


@reports_group.command("generate")
@click.option("--format", "report_format", type=click.Choice(REPORT_FORMATS), help="Report format")
@click.pass_context
def reports_generate(ctx, report_format):
    """Generate a new report."""
    renderer = ctx.obj["renderer"]

    async def _generate(client):
        manager = _report_manager(ctx, client)
        outcome = await manager.generate(report_format)
        if not outcome.is_ok:
            return outcome
        click.echo(renderer.style(f"✅ Generated {outcome.value.filename}", "success"))
        return _echo_report_list(renderer, manager)

    _run(ctx, _generate)


@reports_group.command("delete")
@click.argument("filename")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def reports_delete(ctx, filename, yes):
    """Delete a report."""
    renderer = ctx.obj["renderer"]

    async def _delete(client):
        manager = _report_manager(ctx, client, yes=yes)
        outcome = await manager.delete(filename)
        if outcome is None:
            click.echo("Cancelled")
            return None
        if not outcome.is_ok:
            return outcome
        click.echo(renderer.style(f"✅ {outcome.value.message}", "success"))
        return _echo_report_list(renderer, manager)

    _run(ctx, _delete)


@reports_group.command("url")
@click.argument("filename")
@click.pass_context
def reports_url(ctx, filename):
    """Print the download link for a report."""

    async def _url(client):
        click.echo(_report_manager(ctx, client).download_url(filename))
        return None

    _run(ctx, _url)


@cli.group("config")
def config_group():
    """Show or change the backend configuration."""


@config_group.command("show")
@click.pass_context
def config_show(ctx):
    """Show backend configuration, health and AI status."""
    renderer = ctx.obj["renderer"]

    async def _show(client):
        view = SettingsView(client)
        state = await view.load()
        if not state.is_ready:
            return state.error
        click.echo(renderer.settings(state.values, view.ai_status))
        return None

    _run(ctx, _show)


@config_group.command("set")
@click.option("--project-id", help="Cloud project id")
@click.option("--billing-dataset", help="Billing export dataset")
@click.option("--billing-table-prefix", help="Billing export table prefix")
@click.option("--regions", help="Comma-separated list of regions")
@click.pass_context
def config_set(ctx, project_id, billing_dataset, billing_table_prefix, regions):
    """Update the backend configuration."""
    renderer = ctx.obj["renderer"]
    changes = {
        "project_id": project_id,
        "billing_dataset": billing_dataset,
        "billing_table_prefix": billing_table_prefix,
    }
    changes = {name: value for name, value in changes.items() if value is not None}
    if not changes and regions is None:
        raise click.UsageError("Nothing to update")

    async def _set(client):
        view = SettingsView(client)
        state = await view.load()
        if not state.is_ready:
            return state.error

        current = state.value("config").model_copy(update=changes)
        outcome = await view.save_config(current, regions=regions)
        if not outcome.is_ok:
            return outcome
        click.echo(renderer.style("✅ Configuration saved", "success"))
        if view.state.is_ready:
            click.echo(renderer.settings(view.state.values, view.ai_status))
        return None

    _run(ctx, _set)


@cli.group("models")
def models_group():
    """List or select AI models."""


@models_group.command("list")
@click.pass_context
def models_list(ctx):
    """List the available AI models."""
    renderer = ctx.obj["renderer"]

    async def _list(client):
        state = await single_source_view(client, endpoints.ai_models()).load()
        if not state.is_ready:
            return state.error
        click.echo(renderer.ai_models(state.value("ai_models")))
        return None

    _run(ctx, _list)


@models_group.command("set")
@click.argument("model_id")
@click.pass_context
def models_set(ctx, model_id):
    """Select the AI model for this server session."""
    renderer = ctx.obj["renderer"]

    async def _set(client):
        outcome = await SettingsView(client).select_model(model_id)
        if not outcome.is_ok:
            return outcome
        click.echo(renderer.style(f"✅ {outcome.value.message}", "success"))
        return None

    _run(ctx, _set)


@cli.command()
def version():
    """Show version information."""
    click.echo(f"FinOps Console v{__version__}")
    click.echo("Cost observability for cloud projects")


if __name__ == "__main__":
    cli()
