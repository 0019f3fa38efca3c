"""Cron-style background job scheduling.

This package contains the cron expression evaluator and the in-process job
scheduler that drives periodic audio maintenance.
"""

from .cron import CronExpression, CronPatterns, next_run_time
from .jobs import JobScheduler, JobState, ScheduledJob

__all__ = [
    "CronExpression",
    "CronPatterns",
    "JobScheduler",
    "JobState",
    "ScheduledJob",
    "next_run_time",
]
