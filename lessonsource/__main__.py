"""
CLI entry point for the lesson source extractor.

Usage:
    python -m lessonsource analyze page.html --url https://example.com/article
    python -m lessonsource validate article.txt --language en --confidence 0.9
    python -m lessonsource extract page.html --url https://example.com/article
    python -m lessonsource robots https://example.com/article
"""

import asyncio
import json
import sys
from dataclasses import replace
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from lessonsource import __version__
from lessonsource.analysis.content_analyzer import ContentAnalysisEngine
from lessonsource.config import PrivacySettings, ValidationConfig, load_config
from lessonsource.exceptions import ContentParseError
from lessonsource.extraction.document import PageDocument
from lessonsource.extraction.enhanced_extractor import EnhancedContentExtractor
from lessonsource.models import ExtractionResult, ValidationContext, ValidationResult
from lessonsource.privacy.manager import PrivacyManager
from lessonsource.utils.logging import setup_logging
from lessonsource.utils.metrics import EXTRACTOR_INFO
from lessonsource.validation.engine import ContentValidationEngine

console = Console()


def _read(path: str) -> str:
    return Path(path).read_text(encoding="utf-8", errors="replace")


def _print_validation(result: ValidationResult) -> None:
    status = "[green]valid[/green]" if result.is_valid else "[red]invalid[/red]"
    console.print(f"Validation: {status} (score {result.score:.1f})")

    if result.issues:
        table = Table(title="Issues")
        table.add_column("Type")
        table.add_column("Severity")
        table.add_column("Message")
        for issue in result.issues:
            table.add_row(issue.type.value, issue.severity.value, issue.message)
        console.print(table)

    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")
    for recommendation in result.recommendations:
        console.print(f"[cyan]Tip:[/cyan] {recommendation}")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default="console",
    help="Log output format (default: console).",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, log_format: str) -> None:
    """LessonSource - suitability analysis and privacy-safe content extraction."""
    setup_logging(level="DEBUG" if verbose else "WARNING", format_type=log_format)
    EXTRACTOR_INFO.info({"version": __version__})
    ctx.obj = {"settings": load_config(), "verbose": verbose}


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--url", "-u", required=True, help="URL the HTML was fetched from.")
def analyze(file: str, url: str) -> None:
    """Analyze a saved HTML page and decide whether it suits a lesson."""
    try:
        document = PageDocument.parse(_read(file), url)
    except ContentParseError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        sys.exit(1)

    analysis, decision = ContentAnalysisEngine().evaluate_page(document)

    table = Table(title="Page analysis")
    table.add_column("Field")
    table.add_column("Value")
    for key, value in analysis.to_dict().items():
        table.add_row(key, str(value))
    console.print(table)

    if decision.suitable:
        console.print("[bold green]Suitable for lesson generation[/bold green]")
    else:
        console.print("[bold red]Not suitable for lesson generation[/bold red]")
        for reason in decision.reasons:
            console.print(f"  - {reason}")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--language", "-l", default=None, help="Language code of the text.")
@click.option("--confidence", "-c", type=float, default=None, help="Language detection confidence.")
@click.option("--title", default=None, help="Title of the content.")
@click.option("--strict", is_flag=True, help="Apply stricter thresholds.")
@click.pass_context
def validate(
    ctx: click.Context,
    file: str,
    language: str | None,
    confidence: float | None,
    title: str | None,
    strict: bool,
) -> None:
    """Validate plain text for lesson generation."""
    config = ValidationConfig.from_settings(ctx.obj["settings"])
    if strict:
        config = replace(config, strict_mode=True)
    engine = ContentValidationEngine(config)

    context = ValidationContext(title=title, language=language, language_confidence=confidence)
    result = engine.validate_content(_read(file), context)
    _print_validation(result)

    if not result.is_valid:
        console.print(f"\n[bold]{engine.get_error_message(result.issues)}[/bold]")
        for option in engine.get_recovery_options(result.issues):
            console.print(f"  - {option}")
        sys.exit(1)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--url", "-u", required=True, help="URL the HTML was fetched from.")
@click.option(
    "--check-robots/--skip-robots",
    default=True,
    help="Check robots.txt before extracting (default: check).",
)
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON.")
@click.pass_context
def extract(ctx: click.Context, file: str, url: str, check_robots: bool, as_json: bool) -> None:
    """Run the full extraction pipeline on a saved HTML page."""
    settings = PrivacySettings.from_settings(ctx.obj["settings"])
    if not check_robots:
        settings = replace(settings, respect_robots_txt=False)
        console.print("[yellow]Warning: robots.txt will not be checked![/yellow]")

    extractor = EnhancedContentExtractor(
        privacy_manager=PrivacyManager(settings),
        validation_config=ValidationConfig.from_settings(ctx.obj["settings"]),
    )

    try:
        result = asyncio.run(extractor.extract(_read(file), url))
    except KeyboardInterrupt:
        console.print("\n[yellow]Extraction interrupted by user[/yellow]")
        sys.exit(0)

    _print_extraction(result)
    if as_json:
        console.print_json(json.dumps(result.to_dict()))
    if not result.success:
        sys.exit(1)


def _print_extraction(result: ExtractionResult) -> None:
    if result.blocked:
        console.print(f"[bold red]Blocked:[/bold red] {result.reason}")
        return

    content = result.content
    if content is None:
        console.print(f"[bold red]Extraction failed:[/bold red] {result.reason}")
        for option in result.recovery_options:
            console.print(f"  - {option}")
        return

    console.print(f"[bold blue]{content.metadata.title}[/bold blue]")
    console.print(f"Source: {content.source_info.url}")
    console.print(f"Language: {content.metadata.language}")
    console.print(f"Content type: {content.metadata.content_type.value}")
    console.print(f"Words: {content.quality.word_count} (~{content.quality.reading_time} min)")
    console.print(f"Complexity: {content.quality.complexity.value}")
    console.print(f"Suggested lesson: {content.suggested_lesson_type.value}")
    console.print(f"Suggested level: {content.suggested_cefr_level.value}")
    if content.source_info.attribution:
        console.print(f"[dim]{content.source_info.attribution}[/dim]")
    console.print(f"Duration: {result.duration_ms:.1f}ms\n")

    if result.validation is not None:
        _print_validation(result.validation)
    for option in result.recovery_options:
        console.print(f"  - {option}")


@main.command()
@click.argument("url")
@click.pass_context
def robots(ctx: click.Context, url: str) -> None:
    """Check whether robots.txt allows extracting a URL."""
    manager = PrivacyManager(PrivacySettings.from_settings(ctx.obj["settings"]))
    decision = asyncio.run(manager.respect_robots_txt(url))
    color = "green" if decision.allowed else "red"
    console.print(f"[{color}]{decision.reason}[/{color}] (user agent: {decision.user_agent})")


if __name__ == "__main__":
    main()
