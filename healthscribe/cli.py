"""Command line interface for HealthScribe."""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from healthscribe.ai import OllamaChatClient
from healthscribe.config import PipelineSettings, load_settings
from healthscribe.errors import (
    AnalysisUnavailable,
    ExtractionFailed,
    HealthScribeError,
    OracleTimeout,
    OracleUnavailable,
)
from healthscribe.logging_config import close_debug_log, error, set_console_level
from healthscribe.pipeline import HealthReportOrchestrator, ProjectHealthReport


console = Console(stderr=True)
app = typer.Typer(help="HealthScribe - project health reports from Jira/Confluence exports")

STATUS_STYLES = {"GREEN": "bold green", "YELLOW": "bold yellow", "RED": "bold red"}


def _setup_logging(verbose: bool) -> None:
    set_console_level(verbose)


def _parse_sources(source_args: List[str]) -> dict[str, str]:
    """Read LABEL=PATH arguments into a label -> text mapping, keeping order."""
    sources: dict[str, str] = {}
    for arg in source_args:
        label, sep, path_text = arg.partition("=")
        label = label.strip()
        if not sep or not label or not path_text.strip():
            raise typer.BadParameter(f"Expected LABEL=PATH, got {arg!r}", param_hint="--source")
        if label in sources:
            raise typer.BadParameter(f"Duplicate source label: {label}", param_hint="--source")
        path = Path(path_text.strip()).expanduser()
        if not path.is_file():
            raise typer.BadParameter(f"Source file not found: {path}", param_hint="--source")
        sources[label] = path.read_text(encoding="utf-8")
    return sources


def _failure_kind(exc: HealthScribeError) -> str:
    if isinstance(exc, OracleTimeout):
        return "OracleTimeout"
    if isinstance(exc, OracleUnavailable):
        return "OracleUnavailable"
    if isinstance(exc, AnalysisUnavailable):
        return "AnalysisUnavailable"
    if isinstance(exc, ExtractionFailed):
        return "ExtractionFailed"
    return type(exc).__name__


def _exit_abandoning_workers(code: int) -> None:
    """
    Exit immediately, without waiting for pool threads.

    Oracle calls that outlived the request deadline cannot be interrupted,
    and the interpreter joins executor threads on a normal exit. os._exit
    skips that join so a timed-out run ends when it reports the timeout.
    """
    close_debug_log()
    sys.stdout.flush()
    sys.stderr.flush()
    os._exit(code)


def _report_table(report: ProjectHealthReport) -> Table:
    metrics = report.metrics
    status = report.project_health.value

    table = Table(show_header=True, header_style="bold magenta", title="Project Health")
    table.add_column("Metric")
    table.add_column("Value")
    table.add_row("Status", f"[{STATUS_STYLES[status]}]{status}[/]")
    table.add_row("Score", f"{report.score:g}")
    table.add_row("Velocity", f"{metrics.velocity:g}")
    table.add_row(
        "Issues",
        f"open {metrics.issue_status.open}, in progress {metrics.issue_status.in_progress}, "
        f"closed {metrics.issue_status.closed}",
    )
    for name, score in metrics.team_performance.items():
        table.add_row(f"Team: {name}", f"{score:g}")
    table.add_row("Risks", str(report.risk_count))
    table.add_row("Milestones", str(len(metrics.milestones)))
    table.add_row("Recommendations", str(len(metrics.recommendations)))
    return table


@app.command()
def analyze(
    source: List[str] = typer.Option(
        ..., "--source", "-s", help="Data source as LABEL=PATH (repeatable), e.g. Jira=jira.txt"
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="Pipeline settings YAML file"),
    model: Optional[str] = typer.Option(None, help="Ollama model name"),
    api_base: Optional[str] = typer.Option(None, "--api-base", help="Ollama base URL"),
    chunk_chars: Optional[int] = typer.Option(None, help="Maximum chunk size in characters"),
    max_chunks: Optional[int] = typer.Option(None, help="Process at most N chunks per source"),
    timeout: Optional[float] = typer.Option(None, help="Deadline for the whole request (seconds)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write report JSON here"),
    table: bool = typer.Option(False, "--table", help="Print a summary table"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Generate a project health report from text exports."""
    _setup_logging(verbose)
    sources = _parse_sources(source)

    try:
        settings = load_settings(
            config,
            overrides={
                "model_name": model,
                "api_base": api_base,
                "chunk_chars": chunk_chars,
                "max_chunks_per_source": max_chunks,
                "request_timeout_seconds": timeout,
            },
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    orchestrator = HealthReportOrchestrator.from_settings(settings)

    def on_progress(phase: str, current: int, total: int, message: str) -> None:
        console.print(f"[dim]\\[{phase} {current}/{total}][/dim] {message}")

    try:
        result = orchestrator.analyze(sources, progress_callback=on_progress)
    except HealthScribeError as exc:
        error(f"[CLI] Analysis failed ({_failure_kind(exc)}): {exc}", exc_info=True)
        console.print(f"[red]{_failure_kind(exc)}:[/red] {exc}")
        raw_text = getattr(exc, "raw_text", "")
        if raw_text:
            console.print("[yellow]Raw oracle response:[/yellow]")
            console.print(raw_text, markup=False, highlight=False)
        if isinstance(exc, OracleTimeout):
            _exit_abandoning_workers(1)
        raise typer.Exit(code=1)
    finally:
        close_debug_log()

    report_json = json.dumps(result.report.to_dict(), indent=2)
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(report_json + "\n", encoding="utf-8")
        console.print(f"Report written to [bold]{output}[/bold]")
    else:
        typer.echo(report_json)

    if table:
        console.print(_report_table(result.report))
    console.print(
        f"Processed {result.chunk_count} chunks from {len(result.summaries)} sources "
        f"in {result.total_time_seconds:.1f}s"
    )


@app.command()
def check(
    config: Optional[Path] = typer.Option(None, "--config", help="Pipeline settings YAML file"),
    model: Optional[str] = typer.Option(None, help="Ollama model name"),
    api_base: Optional[str] = typer.Option(None, "--api-base", help="Ollama base URL"),
) -> None:
    """Check that Ollama is reachable and the model is installed."""
    settings: PipelineSettings = load_settings(
        config, overrides={"model_name": model, "api_base": api_base}
    )
    status = OllamaChatClient.from_settings(settings).health_check()

    if not status["connected"]:
        console.print(f"[red]Cannot reach Ollama at {status['api_base']}[/red]")
        raise typer.Exit(code=1)

    console.print(f"Connected to Ollama at [bold]{status['api_base']}[/bold]")
    if not status["model_installed"]:
        console.print(
            f"[yellow]Model {status['model']} is not installed. "
            f"Run: ollama pull {status['model']}[/yellow]"
        )
        raise typer.Exit(code=1)
    console.print(f"Model [bold]{status['model']}[/bold] is ready")


if __name__ == "__main__":
    app()
