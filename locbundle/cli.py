"""Command-line interface for the localization pipeline."""

import asyncio
import functools
import logging
import sys
import time
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from . import __version__
from .config import ProjectConfig, TranslationMode, load_project_config, settings
from .errors import LocBundleError
from .logging_config import get_log_directory, setup_logging
from .models.bundle import LocalizationState
from .models.entity import LocalizationEntity
from .pipeline import export_localizations, formatted_duration, import_localizations, translate_localizations
from .review.reviewer import ConsoleReviewer
from .storage.bundle_store import read_bundle
from .translation.translator import OpenAITranslator, Translator

console = Console()
logger = logging.getLogger(__name__)

CONFIG_HELP = "Path to the config file. Will search locbundle.y[a]ml in the current directory if not specified"


def handle_errors(func):
    """Print pipeline errors in red and exit with status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except LocBundleError as e:
            logger.error("%s failed: %s", func.__name__, e)
            console.print(f"[red]Error:[/red] {e}")
            sys.exit(1)
        except (click.exceptions.Exit, click.Abort, click.ClickException):
            raise
        except Exception as e:
            logger.exception("Unexpected error in %s", func.__name__)
            console.print(f"[red]Unexpected error:[/red] {e}")
            console.print(f"[dim]Details in {get_log_directory()}[/dim]")
            sys.exit(1)

    return wrapper


def create_translator(config: ProjectConfig) -> Translator:
    return OpenAITranslator.from_config(config)


def _load_config(config_path: Optional[str]) -> ProjectConfig:
    start = time.perf_counter()
    config = load_project_config(config_path)
    console.print(
        f"[green]Configuration loaded[/green] from {config.config_path} "
        f"({formatted_duration(time.perf_counter() - start)})"
    )
    return config


def _export(config: ProjectConfig) -> Path:
    start = time.perf_counter()
    with console.status("Exporting localizations"):
        export_folder = export_localizations(config)
    console.print(
        f"[green]{len(config.localizations)} localization bundles exported[/green] "
        f"({formatted_duration(time.perf_counter() - start)})"
    )
    console.print(f"[dim]{export_folder}[/dim]")
    return export_folder


def _translate(config: ProjectConfig) -> None:
    start = time.perf_counter()
    translator = create_translator(config)

    if config.translator.mode == TranslationMode.INTERACTIVE:
        runs = asyncio.run(translate_localizations(config, translator, ConsoleReviewer(console)))
    else:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("Translating", total=100)

            def update_progress(fraction: float) -> None:
                progress.update(task, completed=fraction * 100)

            runs = asyncio.run(translate_localizations(config, translator, on_progress=update_progress))

    for localization_id, run in runs.items():
        if run is None:
            console.print(f"  [dim]{localization_id}: nothing to translate[/dim]")
            continue
        line = f"  {localization_id}: {len(run.results)} strings updated"
        if config.translator.mode == TranslationMode.INTERACTIVE:
            line += f", {run.approved} approved, {run.declined} declined"
        if run.untranslated:
            line += f", [yellow]{run.untranslated} not fully translated[/yellow]"
        console.print(line)
    console.print(
        f"[green]Finished translation process[/green] "
        f"({formatted_duration(time.perf_counter() - start)})"
    )


def _import(config: ProjectConfig, bundle_path: Optional[str]) -> None:
    start = time.perf_counter()
    with console.status("Merging translations"):
        import_localizations(config, bundle_path)
    console.print(
        f"[green]Translations merged[/green] ({formatted_duration(time.perf_counter() - start)})"
    )


@click.group()
@click.version_option(version=__version__)
def cli():
    """Export, translate and import localization files."""
    # the API key may also come from the project config
    errors = settings.validate(require_api_key=False)
    if errors:
        console.print("[red]Configuration errors:[/red]")
        for error in errors:
            console.print(f"  - {error}")
        raise click.Abort()
    setup_logging(console=console)


@cli.command()
@click.option("--config", "-c", "config_path", type=click.Path(), help=CONFIG_HELP)
@handle_errors
def localize(config_path: Optional[str]):
    """Export, translate and import localization strings in one go."""
    logger.info("============= Localize ============")
    console.print(f"[dim]Detailed logs directory: {get_log_directory()}[/dim]\n")
    start = time.perf_counter()

    console.print("[bold]=== Step 0: Load config ===[/bold]")
    config = _load_config(config_path)
    console.print("[bold]=== Step 1: Export strings ===[/bold]")
    export_folder = _export(config)
    console.print("[bold]=== Step 2: Translate strings ===[/bold]")
    _translate(config)
    console.print("[bold]=== Step 3: Import translations ===[/bold]")
    _import(config, str(export_folder))

    console.print(f"[green]Done[/green] (Total {formatted_duration(time.perf_counter() - start)})")


@cli.command()
@click.option("--config", "-c", "config_path", type=click.Path(), help=CONFIG_HELP)
@handle_errors
def export(config_path: Optional[str]):
    """Export localization strings into bundles."""
    logger.info("============= Exporting ===========")
    config = _load_config(config_path)
    _export(config)


@cli.command()
@click.option("--config", "-c", "config_path", type=click.Path(), help=CONFIG_HELP)
@handle_errors
def translate(config_path: Optional[str]):
    """Translate the exported bundles."""
    logger.info("============= Translating ===========")
    config = _load_config(config_path)
    _translate(config)


@cli.command(name="import")
@click.option("--config", "-c", "config_path", type=click.Path(), help=CONFIG_HELP)
@click.option(
    "--bundle-path", "-p",
    "bundle_path",
    required=True,
    type=click.Path(),
    help="Path to the translated bundle folder",
)
@handle_errors
def import_command(config_path: Optional[str], bundle_path: str):
    """Import translated bundles into the localization files."""
    logger.info("============= Importing ===========")
    config = _load_config(config_path)
    _import(config, bundle_path)
    console.print("[green]Done[/green]")


@cli.command()
@click.option(
    "--bundle", "-b",
    "bundle_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a bundle.json file",
)
@handle_errors
def stats(bundle_path: str):
    """Show statistics for a bundle file."""
    bundle = read_bundle(bundle_path)

    table = Table(title=f"Statistics for {bundle.file_id}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    total = len(bundle.strings)
    table.add_row("Total strings", str(total))
    table.add_row("Source language", bundle.source_language)

    languages = bundle.languages()
    table.add_row("Languages", ", ".join(languages) or "None")

    for lang in languages:
        if lang == bundle.source_language:
            continue
        targets = [unit.localizations.get(lang) for unit in bundle.strings.values()]
        translated = sum(
            1 for target in targets
            if target is not None and LocalizationEntity.is_translated(target)
        )
        reviewed = sum(
            1 for target in targets
            if target is not None and target.state == LocalizationState.REVIEWED
        )
        coverage = (translated / total) * 100 if total else 0
        table.add_row(f"  {lang} translated", f"{translated}/{total} ({coverage:.1f}%)")
        table.add_row(f"  {lang} reviewed", f"{reviewed}/{total}")

    console.print(table)


@cli.command()
@click.option(
    "--bundle", "-b",
    "bundle_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a bundle.json file",
)
@click.option(
    "--language", "-l",
    required=True,
    help="Language code to show untranslated strings for",
)
@click.option(
    "--limit",
    type=int,
    default=20,
    help="Limit number of strings to show",
)
@handle_errors
def untranslated(bundle_path: str, language: str, limit: int):
    """Show untranslated strings for a specific language."""
    bundle = read_bundle(bundle_path)

    untranslated_keys = []
    for key, unit in bundle.strings.items():
        target = unit.localizations.get(language)
        if target is None or target.skip:
            continue
        if not LocalizationEntity.is_translated(target):
            untranslated_keys.append(key)

    console.print(f"[cyan]Untranslated strings for {language}:[/cyan] {len(untranslated_keys)} total")

    if not untranslated_keys:
        console.print("[green]All strings are translated![/green]")
        return

    table = Table(show_header=True)
    table.add_column("Key", style="dim", max_width=40)
    table.add_column("Source Value", max_width=60)

    for key in untranslated_keys[:limit]:
        source = bundle.source_unit(key).value
        table.add_row(key[:40], source[:60])

    console.print(table)

    if len(untranslated_keys) > limit:
        console.print(f"\n[dim]... and {len(untranslated_keys) - limit} more[/dim]")


if __name__ == "__main__":
    cli()
