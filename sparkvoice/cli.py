"""Command-line interface for Sparkvoice.

Responsibilities:
- Expose administrative commands for audio generation, status, and purge.
- Evaluate cron expressions and run the built-in maintenance jobs.
- Host the background scheduler via `serve`.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
import threading
from pathlib import Path
from typing import Annotated, Iterator

import typer

from .cli_rendering import (
    echo_batch_report,
    echo_generation_result,
    echo_generation_results,
    echo_job_status,
    echo_purge_report,
    echo_status_report,
    exit_with_command_error,
)
from .config import ConfigLoader, SparkvoiceConfig
from .errors import CommandError, InvalidCronExpression
from .pipeline import AudioPipeline
from .runtime import build_pipeline, build_scheduler, register_audio_jobs
from .scheduler.cron import CronExpression
from .telemetry.logger import EventLogger

PURGE_CONFIRMATION_TOKEN = "DELETE_ALL_AUDIO"

app = typer.Typer(
    name="sparkvoice",
    no_args_is_help=True,
    help="Sparkvoice narration audio CLI.",
)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to YAML config file. Defaults to `SPARKVOICE_*` env."),
]


def _load_config(config_path: Path | None) -> SparkvoiceConfig:
    """Load YAML or environment config and map failures to command errors."""

    if config_path is None:
        try:
            return ConfigLoader.from_env()
        except ValueError as exc:
            raise CommandError(
                stage="config",
                detail=f"Invalid environment configuration: {exc}",
                hint="Fix the `SPARKVOICE_*` variables or pass `--config <path.yaml>`.",
            ) from exc

    try:
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise CommandError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise CommandError(
            stage="config",
            detail=f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc


@contextmanager
def _command_runtime(
    config_path: Path | None,
) -> Iterator[tuple[SparkvoiceConfig, EventLogger, AudioPipeline]]:
    """Yield loaded config, an event logger, and a wired pipeline for one command."""

    config = _load_config(config_path)
    event_logger = EventLogger()
    try:
        yield config, event_logger, build_pipeline(config, event_logger)
    finally:
        event_logger.close()


@app.command("status")
def status_command(config_file: ConfigOption = None) -> None:
    """Show which items have current, missing, or outdated audio."""

    try:
        with _command_runtime(config_file) as (_, _, pipeline):
            report = pipeline.get_status()
    except Exception as exc:
        exit_with_command_error("status", exc)

    echo_status_report(report)


@app.command("generate-all")
def generate_all_command(
    force: Annotated[
        bool, typer.Option("--force", help="Regenerate even when audio is current.")
    ] = False,
    concurrency: Annotated[
        int | None,
        typer.Option("--concurrency", min=1, help="Maximum items synthesized at once."),
    ] = None,
    config_file: ConfigOption = None,
) -> None:
    """Generate audio for every content item."""

    try:
        with _command_runtime(config_file) as (config, _, pipeline):
            report = pipeline.generate_all(
                force=force,
                concurrency=concurrency if concurrency is not None else config.default_concurrency,
            )
    except Exception as exc:
        exit_with_command_error("generate-all", exc)

    echo_batch_report(report)
    if report.failed:
        raise typer.Exit(code=1)


@app.command("generate")
def generate_command(
    item_id: Annotated[int, typer.Argument(help="Content item id.")],
    force: Annotated[
        bool, typer.Option("--force", help="Regenerate even when audio is current.")
    ] = False,
    config_file: ConfigOption = None,
) -> None:
    """Generate audio for one content item."""

    try:
        with _command_runtime(config_file) as (_, _, pipeline):
            result = pipeline.generate_for_item(item_id, force=force)
    except Exception as exc:
        exit_with_command_error("generate", exc)

    echo_generation_result(result)
    if not result.success:
        raise typer.Exit(code=1)


@app.command("regenerate-outdated")
def regenerate_outdated_command(config_file: ConfigOption = None) -> None:
    """Regenerate audio for items whose text changed since generation."""

    try:
        with _command_runtime(config_file) as (_, _, pipeline):
            results = pipeline.regenerate_outdated()
    except Exception as exc:
        exit_with_command_error("regenerate-outdated", exc)

    echo_generation_results(results)
    if any(not result.success for result in results):
        raise typer.Exit(code=1)


@app.command("purge")
def purge_command(
    confirm: Annotated[
        str | None,
        typer.Option("--confirm", help=f"Must equal `{PURGE_CONFIRMATION_TOKEN}`."),
    ] = None,
    config_file: ConfigOption = None,
) -> None:
    """Delete all generated audio and clear stored metadata."""

    try:
        if confirm != PURGE_CONFIRMATION_TOKEN:
            raise CommandError(
                stage="confirm",
                detail="Refusing to delete audio without confirmation.",
                hint=f"Rerun with `--confirm {PURGE_CONFIRMATION_TOKEN}`.",
            )
        with _command_runtime(config_file) as (_, _, pipeline):
            report = pipeline.delete_all_audio()
    except Exception as exc:
        exit_with_command_error("purge", exc)

    echo_purge_report(report)


@app.command("audio-url")
def audio_url_command(
    item_id: Annotated[int, typer.Argument(help="Content item id.")],
    config_file: ConfigOption = None,
) -> None:
    """Print the public audio URL stored for an item."""

    try:
        with _command_runtime(config_file) as (_, _, pipeline):
            url = pipeline.get_audio_url(item_id)
        if url is None:
            raise CommandError(
                stage="lookup",
                detail=f"No audio generated for item {item_id}.",
                hint=f"Run `sparkvoice generate {item_id}` first.",
            )
    except Exception as exc:
        exit_with_command_error("audio-url", exc)

    typer.echo(url)


@app.command("next-run")
def next_run_command(
    expression: Annotated[str, typer.Argument(help="Five-field cron expression.")],
    now: Annotated[
        str | None,
        typer.Option("--now", help="ISO-8601 reference time. Defaults to the current UTC time."),
    ] = None,
) -> None:
    """Print the next time a cron expression fires."""

    try:
        if now is None:
            reference = datetime.now(timezone.utc)
        else:
            try:
                reference = datetime.fromisoformat(now)
            except ValueError as exc:
                raise CommandError(
                    stage="arguments",
                    detail=f"`--now` is not an ISO-8601 timestamp: `{now}`.",
                ) from exc
        try:
            cron = CronExpression.parse(expression)
        except InvalidCronExpression as exc:
            raise CommandError(
                stage="cron",
                detail=str(exc),
                hint="Use five fields: minute hour day-of-month month day-of-week.",
            ) from exc
        next_run_at = cron.next_after(reference)
    except Exception as exc:
        exit_with_command_error("next-run", exc)

    typer.echo(next_run_at.isoformat())


@app.command("run-job")
def run_job_command(
    job_name: Annotated[str, typer.Argument(help="Built-in job name.")],
    config_file: ConfigOption = None,
) -> None:
    """Run one built-in maintenance job immediately."""

    try:
        with _command_runtime(config_file) as (config, event_logger, pipeline):
            scheduler = build_scheduler(config, event_logger)
            register_audio_jobs(scheduler, pipeline, config)
            scheduler.run_now(job_name)
            status = scheduler.get_status()
    except Exception as exc:
        exit_with_command_error("run-job", exc)

    echo_job_status({job_name: status[job_name]})
    if status[job_name].error_count:
        raise typer.Exit(code=1)


@app.command("serve")
def serve_command(config_file: ConfigOption = None) -> None:
    """Run the built-in maintenance jobs on their schedules until interrupted."""

    try:
        with _command_runtime(config_file) as (config, event_logger, pipeline):
            scheduler = build_scheduler(config, event_logger)
            register_audio_jobs(scheduler, pipeline, config)
            scheduler.start()
            echo_job_status(scheduler.get_status())
            stopped = threading.Event()
            try:
                while not stopped.wait(timeout=1.0):
                    pass
            except KeyboardInterrupt:
                typer.echo("Stopping scheduler.")
            finally:
                scheduler.stop()
    except Exception as exc:
        exit_with_command_error("serve", exc)


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
