"""Telemetry and observability helpers.

This package emits structured event lines for pipeline and scheduler runs.
"""

from .logger import EventLogger, shared_event_logger

__all__ = ["EventLogger", "shared_event_logger"]
