"""Text-to-speech provider abstractions.

This package contains voice profile types, the synthesizer interface, and the
OpenAI-backed implementation used by the audio pipeline.
"""

from .rate_limiter import RateLimiter
from .synthesizer import OpenAISpeechSynthesizer, SpeechSynthesizer
from .voices import DEFAULT_VOICE_ROSTER, VoiceProfile, select_voice_for_item

__all__ = [
    "DEFAULT_VOICE_ROSTER",
    "OpenAISpeechSynthesizer",
    "RateLimiter",
    "SpeechSynthesizer",
    "VoiceProfile",
    "select_voice_for_item",
]
