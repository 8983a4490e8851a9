"""
CLI interface for AI Usage Dashboard.

Renders usage, currency-aware costs and plan savings in the terminal.
"""

import asyncio
import json
import logging
import os
import sys
from dataclasses import replace
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ai_usage_dashboard.client.api import UsageApiClient, UsageFeedError
from ai_usage_dashboard.config.loader import (
    BASE_URL_ENV,
    DashboardConfig,
    load_dashboard_config,
)
from ai_usage_dashboard.core.aggregator import UsageAggregator
from ai_usage_dashboard.core.currency import Currency, format_amount
from ai_usage_dashboard.core.rates import describe_rates
from ai_usage_dashboard.core.savings import PlanTier
from ai_usage_dashboard.core.series import Language
from ai_usage_dashboard.observability.logger import setup_logging

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

ConfigOption = typer.Option(None, "--config", "-c", help="Path to YAML config file")
BaseUrlOption = typer.Option(None, "--base-url", help=f"API root (defaults to ${BASE_URL_ENV})")
ApiKeyOption = typer.Option(None, "--api-key", help="Value sent as the x-api-key header")
CurrencyOption = typer.Option(None, "--currency", help="Display currency: USD or JPY")
LanguageOption = typer.Option(None, "--language", "-l", help="Display language: en or ja")
RateOption = typer.Option(None, "--rate", help="Override rate applied to every date after loading")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug details to stderr")
):
    """AI Usage Dashboard CLI."""
    setup_logging(logging.DEBUG if verbose else logging.WARNING)
    if ctx.invoked_subcommand is None:
        console.print("AI Usage Dashboard - Use --help to see available commands")


def resolve_config(
    config_path: Optional[str],
    base_url: Optional[str],
    api_key: Optional[str],
    currency: Optional[str],
    language: Optional[str]
) -> DashboardConfig:
    """Merge the config file, environment and command-line flags.

    Raises:
        ValueError: If no API root is configured or a value is invalid
    """
    if config_path:
        config = load_dashboard_config(config_path)
    else:
        url = base_url or os.environ.get(BASE_URL_ENV)
        if not url:
            raise ValueError(f"No API root configured; pass --base-url, --config or set {BASE_URL_ENV}")
        config = DashboardConfig.default(url)

    api = config.api
    if base_url:
        api = replace(api, base_url=base_url)
    if api_key:
        api = replace(api, api_key=api_key)
    config = replace(config, api=api)

    if currency:
        config = replace(config, currency=replace(config.currency, display=Currency.parse(currency)))
    if language:
        config = replace(config, language=Language.parse(language))
    return config


async def load_dashboard(
    client: UsageApiClient,
    config: DashboardConfig,
    rate: Optional[str] = None
) -> UsageAggregator:
    """Run one full load cycle and apply an optional override rate.

    The caller owns ``client``; the aggregator can reload for as long as
    the client stays open.
    """
    aggregator = UsageAggregator(
        client,
        pricing=config.plans,
        initial_rate=config.currency.initial_rate,
        currency=config.currency.display,
        language=config.language,
        rate_retries=config.api.rate_retries,
    )
    await aggregator.reload()

    if rate is not None:
        aggregator.set_override_rate(rate)
    return aggregator


async def _load_once(config: DashboardConfig, rate: Optional[str]) -> UsageAggregator:
    async with UsageApiClient(
        config.api.base_url,
        api_key=config.api.api_key,
        timeout_seconds=config.api.timeout_seconds,
    ) as client:
        return await load_dashboard(client, config, rate)


def _load_or_exit(
    config_path: Optional[str],
    base_url: Optional[str],
    api_key: Optional[str],
    currency: Optional[str],
    language: Optional[str],
    rate: Optional[str]
) -> UsageAggregator:
    try:
        config = resolve_config(config_path, base_url, api_key, currency, language)
        return asyncio.run(_load_once(config, rate))
    except UsageFeedError as e:
        console.print(f"[red]Failed to load usage data:[/] {escape(str(e))}")
        console.print("Check the API root and key, then run the command again to retry.")
        sys.exit(EXIT_CODE_FAIL)
    except (ValueError, FileNotFoundError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def show(
    config: Optional[str] = ConfigOption,
    base_url: Optional[str] = BaseUrlOption,
    api_key: Optional[str] = ApiKeyOption,
    currency: Optional[str] = CurrencyOption,
    language: Optional[str] = LanguageOption,
    rate: Optional[str] = RateOption
):
    """Show totals, plan savings and the most recent days."""
    aggregator = _load_or_exit(config, base_url, api_key, currency, language, rate)
    _display_summary(aggregator)
    _display_savings(aggregator)
    _display_daily_table(aggregator)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def series(
    config: Optional[str] = ConfigOption,
    base_url: Optional[str] = BaseUrlOption,
    api_key: Optional[str] = ApiKeyOption,
    currency: Optional[str] = CurrencyOption,
    language: Optional[str] = LanguageOption,
    rate: Optional[str] = RateOption,
    as_json: bool = typer.Option(False, "--json", help="Print the series as JSON")
):
    """Print the chart series, oldest day first."""
    aggregator = _load_or_exit(config, base_url, api_key, currency, language, rate)
    points = aggregator.chart_series()

    if as_json:
        typer.echo(json.dumps([point.to_dict() for point in points], ensure_ascii=False, indent=2))
        sys.exit(EXIT_CODE_PASS)

    table = Table(title="Usage Series")
    table.add_column("Date")
    table.add_column(f"Cost ({aggregator.state.currency.value})", justify="right")
    table.add_column("Tokens", justify="right")
    table.add_column("Input", justify="right")
    table.add_column("Output", justify="right")
    table.add_column("Cache", justify="right")
    for point in points:
        table.add_row(
            point.label,
            format_amount(point.cost, aggregator.state.currency),
            f"{point.tokens:.1f}M",
            f"{point.input_tokens:.1f}M",
            f"{point.output_tokens:.1f}M",
            f"{point.cache_tokens:.1f}M",
        )
    console.print(table)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def rates(
    config: Optional[str] = ConfigOption,
    base_url: Optional[str] = BaseUrlOption,
    api_key: Optional[str] = ApiKeyOption,
    rate: Optional[str] = RateOption
):
    """Print the resolved exchange rate for each date."""
    aggregator = _load_or_exit(config, base_url, api_key, Currency.JPY.value, None, rate)
    state = aggregator.state

    table = Table(title="Exchange Rates (JPY per USD)")
    table.add_column("Date")
    table.add_column("Rate", justify="right")
    for day, value in describe_rates(state.rates).items():
        table.add_row(day, f"{value:.2f}")
    console.print(table)

    suffix = " (override)" if state.override_rate is not None else ""
    console.print(f"Current rate: {aggregator.rate_label()}{suffix}")
    sys.exit(EXIT_CODE_PASS)


def _display_summary(aggregator: UsageAggregator) -> None:
    summary = aggregator.summary()
    console.print("\n[bold]Usage Summary[/bold]")
    console.print("-" * 40)
    console.print(f"Total cost: {summary.total_cost}")
    console.print(f"Total tokens: {summary.total_tokens}")
    console.print(f"Avg daily cost: {summary.average_daily_cost}")
    console.print(f"Active days: {summary.active_days}")
    if not aggregator.state.currency.is_base:
        console.print(f"Rate: {aggregator.rate_label()}")


def _display_savings(aggregator: UsageAggregator) -> None:
    pacing = aggregator.daily_savings()
    if pacing.tier is PlanTier.OVER:
        pacing_text = f"{abs(pacing.savings_percent):.1f}% over"
    else:
        pacing_text = f"{pacing.savings_percent:.1f}% saved"

    comparison = aggregator.period_comparison()
    console.print("\n[bold]Fixed Plan Comparison[/bold]")
    console.print("-" * 40)
    console.print(f"Daily pacing: {pacing.plan_label} ({pacing_text})")
    console.print(
        f"Current billing period total: {aggregator.format_cost(comparison.total_cost)} "
        f"({comparison.plan_label})"
    )
    for difference in comparison.differences:
        status = "Saving" if difference.saving else "Over"
        console.print(
            f"vs Max ${difference.monthly_price:g}: "
            f"{aggregator.format_cost(difference.amount)} {status}"
        )


def _display_daily_table(aggregator: UsageAggregator) -> None:
    rows = aggregator.daily_rows()
    if not rows:
        console.print("\n[dim]No daily usage recorded.[/]")
        return

    table = Table(title="Daily Usage")
    table.add_column("Date")
    table.add_column("Cost", justify="right")
    table.add_column("Tokens", justify="right")
    table.add_column("Input", justify="right")
    table.add_column("Output", justify="right")
    for row in rows:
        table.add_row(row.label, row.cost, row.total_tokens, row.input_tokens, row.output_tokens)
    console.print()
    console.print(table)


if __name__ == "__main__":
    app()
