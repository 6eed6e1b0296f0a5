"""
CLI Interface
=============
Command-line interface for the ETS answer extractor.

Usage:
    python -m ets_extract extract <paper_dir> [options]
    python -m ets_extract papers [resource_dir]
    python -m ets_extract inspect <json_path>
    python -m ets_extract render <json_path> -o <html_path>
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .engine import OUTPUT_FORMATS, ExtractorConfig, ExtractorEngine
from .errors import ExtractionError
from .papers import default_resource_dir, discover_papers
from .renderer import DocumentRenderer
from .serializer import export_json, load_json
from .validator import ValidationEngine

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="ets-extract")
def cli():
    """ETS answer extractor: answer keys from downloaded ETS papers."""
    pass


@cli.command()
@click.argument("paper_path", type=click.Path(exists=True, file_okay=False))
@click.option(
    "--output", "-o",
    default="output",
    help="Output directory for generated files",
)
@click.option(
    "--format", "-f", "formats",
    multiple=True,
    type=click.Choice(OUTPUT_FORMATS),
    help="Output format (repeatable, default: json + html)",
)
@click.option(
    "--name", "-n",
    default=None,
    help="Base name for output files (defaults to the paper id)",
)
@click.option(
    "--template-dir",
    default=None,
    type=click.Path(exists=True, file_okay=False),
    help="Directory with a custom answer_sheet.html",
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Fail when the sheet breaks an answer/option invariant",
)
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
@click.option(
    "--log-file",
    default=None,
    help="Path to log file",
)
@click.option(
    "--json-output",
    is_flag=True,
    default=False,
    help="Print only the JSON sheet to stdout (for programmatic use)",
)
def extract(
    paper_path: str,
    output: str,
    formats: tuple[str, ...],
    name: str,
    template_dir: str,
    strict: bool,
    log_level: str,
    log_file: str,
    json_output: bool,
):
    """Extract the answer sheet of one paper directory."""

    if json_output:
        # Keep stdout clean for the JSON document
        log_level = "ERROR"

    config = ExtractorConfig(
        output_dir=output,
        formats=formats or ("json", "html"),
        template_dir=template_dir,
        strict_validation=strict,
        log_level=log_level,
        log_file=log_file,
    )

    if not json_output:
        console.print()
        console.print(
            Panel.fit(
                f"[bold cyan]ETS Answer Extractor v{__version__}[/]\n"
                f"[dim]Paper: {Path(paper_path).resolve().name}[/]",
                border_style="cyan",
            )
        )
        console.print()

    try:
        engine = ExtractorEngine(config)
        sheet = engine.extract(paper_path)

        if json_output:
            click.echo(export_json(sheet))
            return

        outputs = engine.export(sheet, name or Path(paper_path).resolve().name)
        _display_sheet(sheet)
        _display_validation_table(engine.last_report.model_dump())
        for fmt, path in outputs.items():
            console.print(f"[green]✓[/] {fmt.upper()}: {path}")
        console.print()

    except ExtractionError as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Unexpected error:[/] {escape(str(e))}")
        if log_level == "DEBUG":
            console.print_exception()
        sys.exit(1)


@cli.command()
@click.argument(
    "resource_dir",
    required=False,
    type=click.Path(file_okay=False),
)
def papers(resource_dir: str):
    """List downloaded papers in the ETS resource folder."""

    root = Path(resource_dir) if resource_dir else default_resource_dir()
    if root is None:
        console.print(
            "[red]Error:[/] no resource directory given and neither "
            "ETS_RESOURCE_DIR nor APPDATA is set"
        )
        sys.exit(1)

    try:
        found = discover_papers(root)
    except ExtractionError as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(1)

    if not found:
        console.print(f"[yellow]No papers found in: {root}[/]")
        return

    table = Table(title=f"Papers in {root}", border_style="cyan")
    table.add_column("Paper", style="bold")
    table.add_column("Downloaded", justify="right")
    table.add_column("Path")
    for paper in found:
        table.add_row(
            paper.paper_id,
            paper.modified.isoformat() if paper.modified else "-",
            paper.paper_path,
        )

    console.print()
    console.print(table)
    console.print()


@cli.command()
@click.argument("json_path", type=click.Path(exists=True, dir_okay=False))
def inspect(json_path: str):
    """Validate a previously generated answer sheet JSON."""

    try:
        sheet = load_json(json_path)
    except ExtractionError as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(1)

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Answer Sheet[/]\n"
            f"[dim]File: {json_path}[/]",
            border_style="cyan",
        )
    )
    console.print()

    _display_sheet(sheet)
    report = ValidationEngine().validate(sheet)
    _display_validation_table(report.model_dump())


@cli.command()
@click.argument("json_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", required=True, help="HTML file to write")
@click.option(
    "--template-dir",
    default=None,
    type=click.Path(exists=True, file_okay=False),
    help="Directory with a custom answer_sheet.html",
)
def render(json_path: str, output: str, template_dir: str):
    """Render HTML from a previously generated answer sheet JSON."""

    try:
        sheet = load_json(json_path)
        renderer = DocumentRenderer(template_dir)
        path = renderer.export_html(sheet, output, title=Path(json_path).stem)
    except ExtractionError as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(1)

    console.print(f"[green]✓[/] HTML: {path}")


# ─── Display Helpers ──────────────────────────────────────────────────────────


def _display_sheet(sheet):
    """Display section counts of a sheet."""
    table = Table(title="Answer Sheet", border_style="cyan")
    table.add_column("Section", style="bold")
    table.add_column("Entries", justify="right")

    question_count = sum(1 for _ in sheet.iter_choice_questions())
    table.add_row(
        "Multiple Choice",
        f"{len(sheet.multiple_choice)} sets / {question_count} questions",
    )
    table.add_row("Fill-in", str(len(sheet.fill_in.entries)))
    table.add_row(
        "Picture Narration",
        f"{len(sheet.picture_narration.model_answers)} answers / "
        f"{len(sheet.picture_narration.key_points)} key points",
    )
    table.add_row(
        "Read Aloud",
        f"{len(sheet.read_aloud.passage_text)} chars",
    )
    table.add_row("Dialogue", str(len(sheet.dialogue.dialogues)))

    console.print(table)
    console.print()


def _display_validation_table(validation: dict):
    """Display validation report as a rich table."""
    table = Table(title="Validation Report", border_style="green")
    table.add_column("Check", style="bold")
    table.add_column("Value", justify="right")
    table.add_column("Status", justify="center")

    def status_icon(count, threshold=0):
        if count <= threshold:
            return "[green]✓[/]"
        return "[red]✗[/]"

    choice_sets = validation.get("choice_set_count", 0)
    table.add_row(
        "Choice Sets",
        str(choice_sets),
        "[green]✓[/]" if choice_sets == 9 else "[yellow]⚠[/]",
    )

    invalid = validation.get("invalid_option_letters", [])
    table.add_row("Invalid Option Letters", str(len(invalid)), status_icon(len(invalid)))

    unmatched = validation.get("unmatched_answers", [])
    table.add_row("Unmatched Answers", str(len(unmatched)), status_icon(len(unmatched)))

    duplicates = validation.get("duplicate_fill_in_indices", [])
    table.add_row(
        "Duplicate Fill-in Indices",
        str(len(duplicates)),
        status_icon(len(duplicates)),
    )

    missing = validation.get("missing_sections", [])
    table.add_row(
        "Empty Sections",
        ", ".join(missing) or "-",
        "[green]✓[/]" if not missing else "[yellow]⚠[/]",
    )

    console.print(table)
    console.print()


# ─── Entry point (for python -m ets_extract.cli) ──────────────────────────────


if __name__ == "__main__":
    cli()
