"""Report export CLI."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from reportgen.config import settings
from reportgen.exceptions import ReportExportError
from reportgen.exporter import (
    DirectorySaveTarget,
    ExportResult,
    FixedChoicePrompt,
    ReportExporter,
)
from reportgen.models import ExportChoice, ExportOutcome
from reportgen.pipeline import normalize, render, to_html

app = typer.Typer(
    name="reportgen",
    help="Export projector service and site reports as print-quality PDFs",
    add_completion=False,
)
console = Console()


class ConsoleNotifier:
    """Prints exporter notifications to the console."""

    STYLES = {"success": "green", "info": "blue", "warning": "yellow", "error": "bold red"}

    def notify(self, message: str, level: str = "info") -> None:
        console.print(f"[{self.STYLES.get(level, 'white')}]{message}[/]")


class ConsolePrompt:
    """Asks on the terminal whether to retry, print instead, or abort."""

    def choose(self, error: ReportExportError) -> ExportChoice:
        console.print(f"[yellow]PDF generation failed:[/yellow] {error.message}")
        answer = typer.prompt(
            "Open a printable version instead? [retry/fallback/abort]",
            default=ExportChoice.FALLBACK.value,
        )
        try:
            return ExportChoice(answer.strip().lower())
        except ValueError:
            console.print(f"[red]Unknown choice {answer!r}, aborting[/red]")
            return ExportChoice.ABORT


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _load_json(path: Path) -> Any:
    try:
        return _read_json(path)
    except (OSError, json.JSONDecodeError) as exc:
        console.print(f"[red]Cannot read {path}:[/red] {exc}")
        raise typer.Exit(code=1)


def _build_exporter(output_dir: str, fallback: Optional[bool]) -> ReportExporter:
    if fallback is None:
        prompt = ConsolePrompt()
    else:
        prompt = FixedChoicePrompt(ExportChoice.FALLBACK if fallback else ExportChoice.ABORT)
    return ReportExporter(
        prompt=prompt,
        notifier=ConsoleNotifier(),
        save_target=DirectorySaveTarget(output_dir),
    )


def _print_result(result: ExportResult) -> None:
    if result.outcome == ExportOutcome.SAVED:
        console.print(
            f"[bold green]Saved:[/bold green] {result.location} "
            f"[dim]({result.page_count} pages)[/dim]"
        )
    else:
        console.print(f"[bold blue]Printable report opened:[/bold blue] {result.identifier}")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


@app.command()
def export(
    report_path: Path = typer.Argument(..., help="Report record (JSON)"),
    output_dir: str = typer.Option(settings.output_dir, help="Output directory"),
    fallback: Optional[bool] = typer.Option(
        None,
        "--fallback/--no-fallback",
        help="Answer the fallback question up front instead of prompting",
    ),
) -> None:
    """Export a single service report."""
    console.print(f"[bold blue]Exporting:[/bold blue] {report_path}")
    record = _load_json(report_path)
    exporter = _build_exporter(output_dir, fallback)
    try:
        result = asyncio.run(exporter.export_report(record))
    except ReportExportError as exc:
        console.print(f"[bold red]{exc.code}:[/bold red] {exc.message}")
        raise typer.Exit(code=1)
    _print_result(result)


@app.command("export-site")
def export_site(
    site_path: Path = typer.Argument(..., help="Site record (JSON)"),
    analytics: Optional[Path] = typer.Option(None, help="Site analytics (JSON)"),
    output_dir: str = typer.Option(settings.output_dir, help="Output directory"),
    fallback: Optional[bool] = typer.Option(None, "--fallback/--no-fallback"),
) -> None:
    """Export an aggregate site report."""
    console.print(f"[bold blue]Exporting site:[/bold blue] {site_path}")
    site = _load_json(site_path)
    analytics_data = _load_json(analytics) if analytics else None
    exporter = _build_exporter(output_dir, fallback)
    try:
        result = asyncio.run(exporter.export_site_report(site, analytics_data))
    except ReportExportError as exc:
        console.print(f"[bold red]{exc.code}:[/bold red] {exc.message}")
        raise typer.Exit(code=1)
    _print_result(result)


@app.command()
def batch(
    directory: Path = typer.Argument(..., help="Directory containing report JSON files"),
    output_dir: str = typer.Option(settings.output_dir, help="Output directory"),
    fallback: Optional[bool] = typer.Option(False, "--fallback/--no-fallback"),
) -> None:
    """Export every report in a directory, one at a time."""
    paths = sorted(directory.glob("*.json"))
    console.print(f"[bold blue]Batch exporting:[/bold blue] {len(paths)} reports from {directory}")
    exporter = _build_exporter(output_dir, fallback)

    summary = Table(title="Batch export")
    summary.add_column("Report")
    summary.add_column("Outcome")
    summary.add_column("Pages", justify="right")

    async def run() -> int:
        failures = 0
        for path in paths:
            try:
                record = _read_json(path)
            except (OSError, json.JSONDecodeError) as exc:
                failures += 1
                console.print(f"[red]Cannot read {path}:[/red] {exc}")
                summary.add_row(path.name, "[red]UNREADABLE[/red]", "-")
                continue
            try:
                result = await exporter.export_report(record)
            except ReportExportError as exc:
                failures += 1
                summary.add_row(path.name, f"[red]{exc.code}[/red]", "-")
                continue
            summary.add_row(path.name, result.outcome.value, str(result.page_count))
        return failures

    failures = asyncio.run(run())
    console.print(summary)
    if failures:
        raise typer.Exit(code=1)


@app.command()
def preview(
    report_path: Path = typer.Argument(..., help="Report record (JSON)"),
    out: Path = typer.Option(Path("preview.html"), help="Output HTML file"),
) -> None:
    """Write the printable HTML version of a report without printing it."""
    view = normalize(_load_json(report_path), observation_rows=settings.observation_rows)
    html = to_html(render(view), printable=False)
    out.write_text(html, encoding="utf-8")
    console.print(f"[bold green]Preview written:[/bold green] {out}")


if __name__ == "__main__":
    app()
