"""In-process cron job scheduler.

Responsibilities:
- Keep a registry of named jobs, each with a cron expression and a handler.
- Arm one timer per job and re-arm it after every run, success or failure.
- Guarantee that a job never overlaps with itself.
- Expose manual triggering and per-job bookkeeping status.

Each job moves through `IDLE -> ARMED -> RUNNING -> ARMED -> ...` while the
scheduler is started. `stop()` cancels every pending timer; handlers already
running finish but are not re-armed. The next run time is recomputed from the
clock after each run, so the cadence drifts by the handler's own runtime.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from time import monotonic
from typing import Any, Callable, Protocol

from ..errors import JobAlreadyRunning, JobNotFound
from ..models.datatypes import JobStatus
from ..telemetry.logger import EventLogger, shared_event_logger
from .cron import CronExpression

_COMPONENT = "scheduler"
MIN_TIMER_DELAY_SECONDS = 1.0


class JobState(str, Enum):
    """Per-job lifecycle state."""

    IDLE = "idle"
    ARMED = "armed"
    RUNNING = "running"


class TimerHandle(Protocol):
    """Subset of `threading.Timer` the scheduler relies on."""

    daemon: bool

    def start(self) -> None:
        """Start the countdown."""

    def cancel(self) -> None:
        """Cancel the countdown if it has not fired."""


TimerFactory = Callable[..., TimerHandle]


def _utc_now() -> datetime:
    """Return the current timezone-aware UTC time."""

    return datetime.now(timezone.utc)


@dataclass(slots=True)
class ScheduledJob:
    """Registry entry and run bookkeeping for one named job."""

    name: str
    cron: CronExpression
    handler: Callable[[], Any]
    state: JobState = JobState.IDLE
    is_running: bool = False
    last_run_at: datetime | None = None
    next_run_at: datetime | None = None
    error_count: int = 0
    timer: TimerHandle | None = field(default=None, repr=False)

    @property
    def cron_expression(self) -> str:
        """Return the cron expression the job was registered with."""

        return self.cron.source


class JobScheduler:
    """Run registered handlers on their cron schedules within one process."""

    def __init__(
        self,
        event_logger: EventLogger | None = None,
        clock: Callable[[], datetime] = _utc_now,
        timer_factory: TimerFactory = threading.Timer,
        min_delay_seconds: float = MIN_TIMER_DELAY_SECONDS,
    ) -> None:
        """Initialize an empty, stopped scheduler."""

        self.event_logger = event_logger or shared_event_logger()
        self.clock = clock
        self.timer_factory = timer_factory
        self.min_delay_seconds = min_delay_seconds
        self._jobs: dict[str, ScheduledJob] = {}
        self._lock = threading.Lock()
        self._started = False

    @property
    def is_started(self) -> bool:
        """Return whether timers are being armed."""

        return self._started

    def job_names(self) -> list[str]:
        """Return registered job names in registration order."""

        return list(self._jobs)

    def register(self, name: str, cron_expression: str, handler: Callable[[], Any]) -> None:
        """Register a job; a duplicate name logs a warning and is ignored.

        Raises:
            InvalidCronExpression: If the expression cannot be parsed.
        """

        if name in self._jobs:
            self.event_logger.warning(_COMPONENT, "job_duplicate", job=name)
            return

        cron = CronExpression.parse(cron_expression)
        job = ScheduledJob(
            name=name,
            cron=cron,
            handler=handler,
            next_run_at=cron.next_after(self.clock()),
        )
        self._jobs[name] = job
        self.event_logger.info(
            _COMPONENT,
            "job_registered",
            job=name,
            cron=cron_expression,
            next_run_at=job.next_run_at.isoformat(),
        )
        if self._started:
            self._arm(job)

    def start(self) -> None:
        """Arm a timer for every registered job."""

        with self._lock:
            if self._started:
                already_started = True
            else:
                already_started = False
                self._started = True
        if already_started:
            self.event_logger.warning(_COMPONENT, "already_started")
            return

        for job in list(self._jobs.values()):
            if not job.is_running:
                self._arm(job)
        self.event_logger.info(_COMPONENT, "started", jobs=len(self._jobs))

    def stop(self) -> None:
        """Cancel all pending timers; in-flight handlers run to completion."""

        with self._lock:
            self._started = False
            for job in self._jobs.values():
                if job.timer is not None:
                    job.timer.cancel()
                    job.timer = None
                if not job.is_running:
                    job.state = JobState.IDLE
        self.event_logger.info(_COMPONENT, "stopped")

    def run_now(self, name: str) -> None:
        """Run a job immediately in the caller's thread, then re-arm its schedule.

        Handler failures are recorded in the job's `error_count`, not raised.

        Raises:
            JobNotFound: If no job has this name.
            JobAlreadyRunning: If the job is currently executing.
        """

        job = self._jobs.get(name)
        if job is None:
            raise JobNotFound(name)
        if not self._claim(job):
            raise JobAlreadyRunning(name)
        self.event_logger.info(_COMPONENT, "job_triggered", job=name)
        self._execute(job)

    def get_status(self) -> dict[str, JobStatus]:
        """Return a bookkeeping snapshot for every job."""

        with self._lock:
            return {
                name: JobStatus(
                    last_run_at=job.last_run_at,
                    next_run_at=job.next_run_at,
                    is_running=job.is_running,
                    error_count=job.error_count,
                )
                for name, job in self._jobs.items()
            }

    def job_state(self, name: str) -> JobState:
        """Return the lifecycle state of one job."""

        job = self._jobs.get(name)
        if job is None:
            raise JobNotFound(name)
        return job.state

    def _arm(self, job: ScheduledJob) -> None:
        """Compute the next run time and replace the job's pending timer."""

        with self._lock:
            if job.timer is not None:
                job.timer.cancel()
                job.timer = None
            if not self._started:
                job.state = JobState.IDLE
                return
            now = self.clock()
            next_run_at = job.cron.next_after(now)
            remaining = next_run_at.astimezone(timezone.utc) - now.astimezone(timezone.utc)
            delay = max(remaining.total_seconds(), self.min_delay_seconds)
            timer = self.timer_factory(delay, self._on_timer, args=(job.name,))
            timer.daemon = True
            job.timer = timer
            job.next_run_at = next_run_at
            job.state = JobState.ARMED
            timer.start()

    def _on_timer(self, name: str) -> None:
        """Timer callback: run the job unless it is already running."""

        job = self._jobs.get(name)
        if job is None:
            return
        with self._lock:
            if not self._started:
                return
        if not self._claim(job):
            self.event_logger.warning(_COMPONENT, "job_overlap_skipped", job=name)
            return
        self._execute(job)

    def _claim(self, job: ScheduledJob) -> bool:
        """Atomically mark a job as running; return `False` if it already is."""

        with self._lock:
            if job.is_running:
                return False
            job.is_running = True
            job.state = JobState.RUNNING
            return True

    def _execute(self, job: ScheduledJob) -> None:
        """Run a claimed job's handler, record the outcome, and re-arm."""

        started = monotonic()
        self.event_logger.info(_COMPONENT, "job_start", job=job.name)
        try:
            job.handler()
        except Exception as exc:
            with self._lock:
                job.error_count += 1
                error_count = job.error_count
            self.event_logger.error(
                _COMPONENT,
                "job_failed",
                job=job.name,
                error_count=error_count,
                error_type=type(exc).__name__,
            )
        else:
            with self._lock:
                job.last_run_at = self.clock()
                job.error_count = 0
            self.event_logger.info(
                _COMPONENT,
                "job_complete",
                job=job.name,
                duration_ms=int((monotonic() - started) * 1000),
            )
        finally:
            with self._lock:
                job.is_running = False
                job.state = JobState.IDLE
            self._arm(job)
