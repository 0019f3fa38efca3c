"""Top-level package for Sparkvoice.

This package turns daily devotional content items into narrated MP3 files,
keeps them in sync with their text through content fingerprints, and runs
periodic maintenance jobs on cron schedules. The main entry points are
`AudioPipeline` and `JobScheduler`.
"""

from .pipeline import AudioPipeline
from .scheduler import JobScheduler

__all__ = ["AudioPipeline", "JobScheduler", "__version__"]

__version__ = "0.1.0"
