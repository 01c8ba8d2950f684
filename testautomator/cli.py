"""CLI entry point for TestAutomator locator suggestions."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from testautomator.ai.client import AIClient, set_debug_dir
from testautomator.errors import InvalidRequest, SuggestionError
from testautomator.models.config import DEFAULT_CONFIG_PATH, AdvisorConfig
from testautomator.models.suggestion import SuggestionResponse
from testautomator.session import SuggestionSession
from testautomator.suggester import LocatorSuggester
from testautomator.validation import URL_MESSAGE, validate_form

console = Console()
# Logs go to stderr so --json output stays machine-readable
log_console = Console(stderr=True)
logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_INVALID = 2


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=log_console, rich_tracebacks=True)],
    )


def load_config(path: Optional[str]) -> AdvisorConfig:
    if path is None:
        return AdvisorConfig.load_or_default(DEFAULT_CONFIG_PATH)
    return AdvisorConfig.load(path)


def build_model_client(cfg: AdvisorConfig) -> AIClient:
    if cfg.debug_dir:
        set_debug_dir(cfg.debug_dir)
    return AIClient(
        model=cfg.ai_model,
        max_tokens=cfg.ai_max_tokens,
        timeout=cfg.ai_timeout_seconds,
        temperature=cfg.ai_temperature,
    )


def _print_field_errors(errors: dict[str, str]) -> None:
    for field, message in errors.items():
        console.print(f"[red]{field}:[/red] {message}")


def _render_result(result: SuggestionResponse) -> None:
    # Text() keeps [data-testid=...] selectors from being read as rich markup
    console.print(Panel(Text(result.reasoning or "(no reasoning given)"), title="Reasoning"))
    if not result.suggested_locators:
        console.print("[yellow]No alternative locators suggested[/yellow]")
        return
    table = Table(title="Suggested Locators")
    table.add_column("#", style="bold", justify="right")
    table.add_column("Locator")
    for i, locator in enumerate(result.suggested_locators, 1):
        table.add_row(str(i), Text(locator))
    console.print(table)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """TestAutomator: AI suggestions for robust UI test locators"""
    setup_logging(verbose)


@cli.command()
@click.option("--url", "-u", default=None, help="Page URL (defaults to the configured default_url)")
@click.option("--locator", "-l", "locator", required=True, help="Current CSS locator")
@click.option(
    "--screenshot", "-s", required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Screenshot image of the page (PNG, JPG, GIF)",
)
@click.option("--config", "-c", default=None, help="Config file path")
@click.option("--json", "as_json", is_flag=True, help="Print the raw response JSON")
def suggest(url: Optional[str], locator: str, screenshot: Path, config: Optional[str], as_json: bool) -> None:
    """Suggest more robust alternatives for a CSS locator."""
    try:
        cfg = load_config(config)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config}[/red]")
        console.print("Run 'testautomator init' to create a default config.")
        sys.exit(EXIT_FAILURE)

    url = url if url is not None else cfg.default_url
    verdict = validate_form(url, locator)
    if not verdict.ok:
        _print_field_errors(verdict.errors)
        sys.exit(EXIT_INVALID)

    try:
        client = build_model_client(cfg)
    except EnvironmentError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(EXIT_FAILURE)

    session = SuggestionSession(LocatorSuggester(client), default_url=cfg.default_url)
    session.url = url
    session.current_locator = locator

    try:
        session.attach_screenshot(screenshot)
        with console.status("Analyzing..."):
            result = session.submit()
    except InvalidRequest as e:
        _print_field_errors(e.errors)
        sys.exit(EXIT_INVALID)
    except SuggestionError as e:
        logger.debug("Suggestion failed", exc_info=True)
        console.print("[red]Failed to get suggestions. Please check the log and try again.[/red]")
        console.print(f"Reason: {e.reason} ({e.message})", markup=False)
        sys.exit(EXIT_FAILURE)

    if as_json:
        click.echo(json.dumps(result.to_wire(), indent=2))
        return
    _render_result(result)


@cli.command()
@click.option("--url", "-u", default=None, help="Default page URL for suggestions")
@click.option("--config", "-c", default=DEFAULT_CONFIG_PATH, help="Config file path")
def init(url: Optional[str], config: str) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    try:
        cfg = AdvisorConfig(default_url=url) if url else AdvisorConfig()
    except ValidationError:
        console.print(f"[red]url:[/red] {URL_MESSAGE}")
        sys.exit(EXIT_INVALID)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nYou can now run:")
    console.print("  [blue]testautomator suggest -l '#login-button' -s screenshot.png[/blue]")


if __name__ == "__main__":
    cli()
