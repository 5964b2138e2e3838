#!/usr/bin/env python3
"""
Dark Pattern Detector CLI Interface
Command-line interface for scanning, annotating and cleaning pages
"""

import asyncio
from pathlib import Path
from typing import List, Optional, Tuple

import typer
from bs4 import BeautifulSoup
from rich.console import Console
from rich.table import Table

from dpd.core.engine import ScanEngine
from dpd.core.errors import DPDError
from dpd.core.document import load_document, load_document_file
from dpd.core.plugin_loader import DetectorLoader
from dpd.core.result_manager import ResultManager
from dpd.utils.http_client import HTTPClient
from dpd.utils.logger import setup_logger
from dpd.utils.overlay import attach_panel
from dpd.utils.progress_manager import ProgressManager
from dpd.utils.report import ReportGenerator

app = typer.Typer(
    name="dpd",
    help="Dark Pattern Detector: rule-based detection of manipulative UI patterns",
    no_args_is_help=True
)

console = Console()

REPORT_FORMATS = ("json", "html", "csv", "txt")


def parse_list(value: Optional[str]) -> Optional[List[str]]:
    """Split a comma-separated option into a list."""
    if not value:
        return None
    items = [item.strip() for item in value.split(",") if item.strip()]
    return items or None


def load_page(file: Optional[str],
              url: Optional[str],
              timeout: int,
              user_agent: str) -> Tuple[BeautifulSoup, str]:
    """Parse a local file or fetch a URL."""
    if bool(file) == bool(url):
        raise typer.BadParameter("Give exactly one of --file or --url")

    if file:
        return load_document_file(file), str(Path(file))

    async def fetch():
        async with HTTPClient(timeout=timeout, user_agent=user_agent) as client:
            return await client.fetch_document(url)

    page = asyncio.run(fetch())
    return load_document(page.text), page.final_url


def write_page(soup: BeautifulSoup, output: str) -> None:
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(str(soup), encoding="utf-8")


@app.command()
def scan(
    file: Optional[str] = typer.Option(
        None, "--file", "-f",
        help="Local HTML file to scan"
    ),
    url: Optional[str] = typer.Option(
        None, "--url", "-u",
        help="URL of the page to fetch and scan"
    ),
    detectors: Optional[str] = typer.Option(
        None, "--detectors", "-d",
        help="Comma-separated list of detectors to run (default: all)"
    ),
    patterns: Optional[str] = typer.Option(
        None, "--patterns",
        help="JSON pattern file merged over the built-in pattern tables"
    ),
    output_dir: str = typer.Option(
        "./reports", "--output-dir", "-o",
        help="Output directory for reports"
    ),
    formats: str = typer.Option(
        "json", "--format",
        help="Comma-separated report formats: json, html, csv, txt"
    ),
    annotate_out: Optional[str] = typer.Option(
        None, "--annotate-out",
        help="Write the annotated page with the findings panel to this file"
    ),
    viewport_width: int = typer.Option(
        1280, "--viewport-width",
        help="Viewport width used to estimate element sizes"
    ),
    timeout: int = typer.Option(
        30, "--timeout",
        help="Request timeout in seconds"
    ),
    user_agent: str = typer.Option(
        "DarkPatternDetector/3.0", "--user-agent", "-ua",
        help="Custom User-Agent string"
    ),
    verbose: int = typer.Option(
        1, "--verbose", "-v",
        help="Verbosity level: 0=minimal, 1=standard, 2=debug"
    ),
    log_file: Optional[str] = typer.Option(
        None, "--log-file",
        help="Write a detailed debug log to this file"
    )
):
    """Scan a page for dark patterns."""

    format_list = parse_list(formats) or []
    unknown = [name for name in format_list if name not in REPORT_FORMATS]
    if unknown:
        console.print(f"[red]ERROR: Unknown report format(s): {', '.join(unknown)}[/red]")
        raise typer.Exit(1)

    logger = setup_logger(verbose, log_file)
    progress_manager = ProgressManager(console, verbosity=verbose)

    try:
        soup, source = load_page(file, url, timeout, user_agent)

        engine = ScanEngine(
            detectors=parse_list(detectors),
            patterns_file=patterns,
            viewport_width=viewport_width,
            logger=logger,
            progress_manager=progress_manager,
        )

        progress_manager.start_scan(source, len(engine.selected))
        report = engine.run(soup)

        generator = ReportGenerator(output_dir)
        if verbose >= 1:
            progress_manager.complete_scan(report)
        else:
            console.print(generator.generate_console_summary(report.to_dict()), markup=False)

        result_manager = ResultManager(output_dir)
        written = result_manager.generate_reports(report, source, format_list)
        if "csv" in format_list:
            written["csv"] = generator.generate_csv_report(report.to_dict())
        if "txt" in format_list:
            written["txt"] = generator.generate_summary_report(report.to_dict(), source)

        if annotate_out:
            attach_panel(soup, report)
            write_page(soup, annotate_out)
            written["annotated"] = annotate_out

        for name, path in written.items():
            progress_manager.log_message("INFO", f"{name} saved to: {path}")

    except DPDError as e:
        console.print(f"[red]ERROR: {e}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("[yellow]Scan interrupted by user[/yellow]")
        raise typer.Exit(1)


@app.command()
def toggle(
    input_file: str = typer.Argument(..., help="HTML page to toggle"),
    output_file: str = typer.Argument(..., help="Where to write the result"),
    patterns: Optional[str] = typer.Option(
        None, "--patterns",
        help="JSON pattern file merged over the built-in pattern tables"
    ),
    verbose: int = typer.Option(
        0, "--verbose", "-v",
        help="Verbosity level: 0=minimal, 1=standard, 2=debug"
    )
):
    """Annotate a page with the findings panel, or remove a panel that is already there."""
    logger = setup_logger(verbose)

    try:
        soup = load_document_file(input_file)
        engine = ScanEngine(patterns_file=patterns, logger=logger)
        report = engine.toggle(soup)
        write_page(soup, output_file)
    except DPDError as e:
        console.print(f"[red]ERROR: {e}[/red]")
        raise typer.Exit(1)

    if report is None:
        console.print(f"[green]Panel removed, page restored: {output_file}[/green]")
    else:
        console.print(
            f"[green]Annotated {len(report.findings)} findings "
            f"({report.tier}, score {report.score}): {output_file}[/green]"
        )


@app.command()
def clean(
    input_file: str = typer.Argument(..., help="Annotated HTML page"),
    output_file: str = typer.Argument(..., help="Where to write the restored page")
):
    """Remove the panel and every annotation from a page."""
    try:
        soup = load_document_file(input_file)
        result = ScanEngine().clean(soup)
        write_page(soup, output_file)
    except DPDError as e:
        console.print(f"[red]ERROR: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Restored {result['restored']} elements: {output_file}[/green]")


@app.command()
def list_detectors():
    """List all available detectors."""
    loader = DetectorLoader()
    loader.load_all_detectors()

    table = Table(title="Available Detectors", show_header=True, header_style="bold magenta")
    table.add_column("", justify="center")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Category", style="yellow")
    table.add_column("Severity", justify="center")

    for detector_id, metadata in loader.detector_metadata.items():
        status = "✓" if metadata.get("implemented", False) else "○"
        table.add_row(status, detector_id, metadata["name"], metadata["category"], metadata["severity_hint"])

    console.print(table)


@app.command()
def version():
    """Show version information."""
    from dpd import __version__, __author__
    console.print(f"Dark Pattern Detector v{__version__}")
    console.print(f"By {__author__}")


if __name__ == "__main__":
    app()
