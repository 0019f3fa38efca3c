"""Sparkvoice pipeline package.

This package contains the content-addressed narration audio pipeline.
"""

from .audio import AudioPipeline

__all__ = ["AudioPipeline"]
