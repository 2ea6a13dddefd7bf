"""
CLI interface for Conjugation Guard.

Operator access to usage, budgets, provider settings and a guarded
evaluation run.
"""

import logging
import sys
from dataclasses import replace
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from conjugation_guard.config.loader import GuardConfig, StorageConfig, load_guard_config
from conjugation_guard.config.settings import SettingsStore, normalize_provider_id
from conjugation_guard.core.budget import BudgetLimits
from conjugation_guard.core.errors import GuardError
from conjugation_guard.sdk.evaluator import SentenceEvaluator
from conjugation_guard.sdk.feedback import Feedback
from conjugation_guard.sdk.providers import PROVIDERS, get_available_providers
from conjugation_guard.storage.kv import SqliteKeyValueStore, initialize_schema
from conjugation_guard.storage.repository import UsageLedger

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML configuration file"
    ),
    db_path: Optional[str] = typer.Option(
        None,
        "--db",
        help="Override the SQLite database path"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show log output"
    ),
):
    """Conjugation Guard CLI."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        config = load_guard_config(config_path) if config_path else GuardConfig()
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error loading configuration:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if db_path:
        config = replace(config, storage=StorageConfig(db_path=db_path))
    ctx.obj = config

    if ctx.invoked_subcommand is None:
        console.print("Conjugation Guard - Use --help to see available commands")


def _settings(config: GuardConfig) -> SettingsStore:
    return SettingsStore(
        SqliteKeyValueStore(config.storage.db_path),
        default_provider=config.provider.default,
        default_limits=config.budget,
    )


def _format_currency(amount: float) -> str:
    """Format sub-cent amounts with enough precision to be visible."""
    return f"${amount:,.4f}"


@app.command()
def init(ctx: typer.Context):
    """Initialize the Conjugation Guard database."""
    config: GuardConfig = ctx.obj
    try:
        initialize_schema(config.storage.db_path)
        console.print("[green]✓[/] Database initialized successfully")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error initializing database:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def status(ctx: typer.Context):
    """Show the active provider, credential state and budget limits."""
    config: GuardConfig = ctx.obj
    settings = _settings(config)

    try:
        provider = settings.get_active_provider()
        has_key = settings.get_credential(provider) is not None
        limits = settings.get_budget_limits()
    except GuardError as e:
        console.print(f"[red]Error:[/] {e.message}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(f"[bold]Provider:[/bold] {provider}")
    if has_key:
        console.print("[green]✓[/] API key configured")
    else:
        console.print("[yellow]![/] No API key configured (use `set-key`)")
    console.print(
        f"[bold]Budget:[/bold] daily {_format_currency(limits.daily)}, "
        f"weekly {_format_currency(limits.weekly)}, "
        f"monthly {_format_currency(limits.monthly)}"
    )


@app.command()
def usage(ctx: typer.Context):
    """Show recorded spend against the budget limits."""
    config: GuardConfig = ctx.obj
    store = SqliteKeyValueStore(config.storage.db_path)
    try:
        stats = UsageLedger(store).get_stats()
        limits = _settings(config).get_budget_limits()
    except GuardError as e:
        console.print(f"[red]Error:[/] {e.message}")
        sys.exit(EXIT_CODE_FAIL)

    table = Table(title="AI Usage")
    table.add_column("Period")
    table.add_column("Spend", justify="right")
    table.add_column("Limit", justify="right")
    table.add_column("Used", justify="right")

    for period, spent, limit in (
        ("Daily", stats.daily_cost, limits.daily),
        ("Weekly", stats.weekly_cost, limits.weekly),
        ("Monthly", stats.monthly_cost, limits.monthly),
    ):
        used = f"{spent / limit * 100:,.1f}%" if limit > 0 else "N/A"
        table.add_row(period, _format_currency(spent), _format_currency(limit), used)

    console.print(table)
    console.print(f"Total requests: {stats.total_requests:,}")
    console.print(f"Total cost: {_format_currency(stats.total_cost)}")


@app.command()
def reset(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete all recorded usage."""
    config: GuardConfig = ctx.obj
    if not yes and not typer.confirm("Delete all recorded usage?"):
        console.print("Aborted")
        sys.exit(EXIT_CODE_FAIL)

    try:
        UsageLedger(SqliteKeyValueStore(config.storage.db_path)).reset_usage_stats()
    except GuardError as e:
        console.print(f"[red]Error:[/] {e.message}")
        sys.exit(EXIT_CODE_FAIL)
    console.print("[green]✓[/] Usage stats reset")


@app.command()
def budget(
    ctx: typer.Context,
    daily: Optional[float] = typer.Option(None, "--daily", "-d", help="Daily limit in USD"),
    weekly: Optional[float] = typer.Option(None, "--weekly", "-w", help="Weekly limit in USD"),
    monthly: Optional[float] = typer.Option(None, "--monthly", "-m", help="Monthly limit in USD"),
):
    """Show budget limits, or update the ones given."""
    config: GuardConfig = ctx.obj
    settings = _settings(config)

    try:
        limits = settings.get_budget_limits()
        if daily is not None or weekly is not None or monthly is not None:
            limits = BudgetLimits(
                daily=limits.daily if daily is None else daily,
                weekly=limits.weekly if weekly is None else weekly,
                monthly=limits.monthly if monthly is None else monthly,
            )
            settings.set_budget_limits(limits)
            console.print("[green]✓[/] Budget limits updated")
    except (ValueError, GuardError) as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(f"Daily: {_format_currency(limits.daily)}")
    console.print(f"Weekly: {_format_currency(limits.weekly)}")
    console.print(f"Monthly: {_format_currency(limits.monthly)}")


@app.command()
def provider(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="Provider id to make active"),
):
    """List available providers, or select one."""
    config: GuardConfig = ctx.obj
    settings = _settings(config)

    try:
        if name is None:
            active = settings.get_active_provider()
            for entry in get_available_providers():
                marker = "[green]*[/]" if entry["id"] == active else " "
                console.print(f"{marker} {entry['id']} - {entry['name']}")
            return

        provider_id = normalize_provider_id(name)
        if provider_id not in PROVIDERS:
            console.print(f"[red]Error:[/] Unknown AI provider: {name}")
            sys.exit(EXIT_CODE_FAIL)
        settings.set_active_provider(provider_id)
    except (ValueError, GuardError) as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    console.print(f"[green]✓[/] Active provider set to {provider_id}")


@app.command("set-key")
def set_key(
    ctx: typer.Context,
    provider_id: str = typer.Argument(..., help="Provider id, e.g. grok"),
    api_key: str = typer.Option(..., "--key", prompt=True, hide_input=True, help="API key"),
):
    """Store the API key for a provider."""
    config: GuardConfig = ctx.obj
    try:
        provider_id = normalize_provider_id(provider_id)
        _settings(config).save_credential(provider_id, api_key)
    except (ValueError, GuardError) as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    console.print(f"[green]✓[/] API key saved for {provider_id}")


@app.command()
def evaluate(
    ctx: typer.Context,
    verb: str = typer.Argument(..., help="Verb infinitive, e.g. manger"),
    tense: str = typer.Argument(..., help="Required tense, e.g. Présent"),
    sentence: str = typer.Argument(..., help="Sentence to evaluate"),
):
    """Evaluate a sentence through every guard and the active provider."""
    config: GuardConfig = ctx.obj
    evaluator = SentenceEvaluator.from_config(config)

    try:
        feedback = evaluator.evaluate_sentence(verb, tense, sentence)
    except GuardError as e:
        console.print(f"[red]{type(e).__name__}:[/] {e.user_message}")
        sys.exit(EXIT_CODE_FAIL)

    _display_feedback(feedback)


def _display_feedback(feedback: Feedback):
    """Display feedback in a readable layout."""
    if feedback.is_correct:
        console.print("\n[bold green]Correct![/bold green]")
    else:
        console.print("\n[bold red]Not quite.[/bold red]")
        if feedback.correct_conjugation:
            console.print(f"Correct conjugation: {feedback.correct_conjugation}")

    if feedback.parse_error:
        console.print("[dim]Feedback could not be parsed; raw answer follows.[/]")
        console.print(feedback.full_feedback)
        return

    if feedback.verb_analysis:
        console.print(f"\n[bold]Verb:[/bold] {feedback.verb_analysis}")
    for issue in feedback.grammar_issues:
        console.print(f"  - {issue}")
    if feedback.semantic_analysis:
        console.print(f"\n[bold]Naturalness:[/bold] {feedback.semantic_analysis}")
    for phrasing in feedback.alternative_phrasings:
        console.print(f"  > {phrasing}")
    if feedback.suggestion:
        console.print(f"\n[bold]Tip:[/bold] {feedback.suggestion}")
    if feedback.encouragement:
        console.print(f"\n{feedback.encouragement}")
    if not feedback.usage_recorded:
        console.print("\n[yellow]Warning:[/] usage for this request could not be recorded")


if __name__ == "__main__":
    app()
