"""reconops command line interface."""

import asyncio
import sys

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from reconops.agents.registry import build_default_registry
from reconops.config import get_settings
from reconops.domain.catalog import ReferenceCatalog, get_catalog
from reconops.orchestrator.classifier import IntentClassifier
from reconops.orchestrator.control_cycle import Orchestrator
from reconops.orchestrator.display import CycleDisplay
from reconops.utils.log_config import configure_logging

console = Console()


def _catalog(settings) -> ReferenceCatalog:
    if settings.catalog_path is not None:
        return ReferenceCatalog.load(settings.catalog_path)
    return get_catalog()


@click.group()
@click.version_option(package_name="reconops")
def main():
    """reconops - multi-agent operations analysis for reconciliation platforms.

    Classifies a free-text request, runs the planned agents one after
    another and prints a synthesized decision report.
    """
    try:
        settings = get_settings()
    except ValidationError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)
    configure_logging(settings.log_level, settings.log_format)


@main.command()
@click.argument("text")
@click.option("--seed", type=int, default=None, help="Seed for reproducible agent output")
@click.option("--fast", is_flag=True, help="Disable pacing delays and simulated latency")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
def run(text: str, seed: int | None, fast: bool, as_json: bool):
    """Run one control cycle for TEXT and print the report."""
    settings = get_settings()
    if seed is not None:
        settings = settings.model_copy(update={"random_seed": seed})
    if fast:
        settings = settings.without_pacing()

    catalog = _catalog(settings)
    registry = build_default_registry(settings=settings, catalog=catalog)
    orchestrator = Orchestrator(
        registry, classifier=IntentClassifier(catalog), settings=settings
    )
    display = CycleDisplay(console)

    try:
        callbacks = None if as_json else display.callbacks()
        result = asyncio.run(orchestrator.run_cycle(text, callbacks))
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if as_json:
        click.echo(result.model_dump_json(indent=2))
    else:
        display.print_report(result)


@main.command()
@click.argument("text")
def classify(text: str):
    """Print the intent profile for TEXT as JSON."""
    settings = get_settings()
    profile = IntentClassifier(_catalog(settings)).classify(text)
    click.echo(profile.model_dump_json(indent=2))


@main.command()
def agents():
    """List registered agents."""
    settings = get_settings()
    registry = build_default_registry(settings=settings, catalog=_catalog(settings))
    CycleDisplay(console).print_agents(registry)


if __name__ == "__main__":
    main()
