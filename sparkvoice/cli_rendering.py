"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
reconciliation status, batch reports, and scheduler job status.
"""

from __future__ import annotations

from typing import Mapping, NoReturn, Sequence

import typer

from .errors import CommandError
from .models.datatypes import BatchReport, GenerationResult, JobStatus, PurgeReport, StatusReport


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, CommandError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_status_report(report: StatusReport) -> None:
    """Print aggregate counts followed by one row per item."""

    typer.echo(
        f"Items: {report.total} (generated={report.generated} "
        f"pending={report.pending} outdated={report.outdated})"
    )
    for row in report.items:
        url = row.audio_url or "-"
        typer.echo(f"{row.id}. [{row.status.value}] {row.title} {url}")


def echo_generation_result(result: GenerationResult) -> None:
    """Print the outcome of one item generation."""

    if not result.success:
        typer.echo(f"Item {result.item_id}: failed ({result.error.cause if result.error else 'unknown'})")
        return
    state = "current" if result.skipped else "generated"
    url = result.metadata.public_url if result.metadata else "-"
    typer.echo(f"Item {result.item_id}: {state} {url}")


def echo_generation_results(results: Sequence[GenerationResult]) -> None:
    """Print per-item outcomes and a failure count."""

    for result in results:
        echo_generation_result(result)
    failed = sum(1 for result in results if not result.success)
    typer.echo(f"Regenerated: {len(results) - failed} Failed: {failed}")


def echo_batch_report(report: BatchReport) -> None:
    """Print batch counters and failed items."""

    duration = (report.completed_at - report.started_at).total_seconds()
    typer.echo(
        f"Items: {report.total_items} successful={report.successful} "
        f"skipped={report.skipped} failed={report.failed} ({duration:.1f}s)"
    )
    for result in report.results:
        if not result.success:
            echo_generation_result(result)


def echo_purge_report(report: PurgeReport) -> None:
    """Print purge counters and collected errors."""

    typer.echo(f"Deleted files: {report.deleted_count}")
    for error in report.errors:
        typer.secho(f"Error: {error}", fg=typer.colors.YELLOW, err=True)


def echo_job_status(status: Mapping[str, JobStatus]) -> None:
    """Print one row per scheduled job."""

    for name, job in status.items():
        next_run = job.next_run_at.isoformat() if job.next_run_at else "-"
        last_run = job.last_run_at.isoformat() if job.last_run_at else "-"
        typer.echo(
            f"{name}: next={next_run} last={last_run} "
            f"running={'yes' if job.is_running else 'no'} errors={job.error_count}"
        )
