"""Speech synthesizer interface and OpenAI-backed implementation.

Responsibilities:
- Define the protocol the pipeline uses to turn narration text into audio bytes.
- Provide an OpenAI-backed synthesizer with request pacing.
"""

from __future__ import annotations

from typing import Protocol

from .openai_client import OpenAISpeechClient
from .rate_limiter import RateLimiter
from .voices import VoiceProfile


class SpeechSynthesizer(Protocol):
    """Protocol for speech provider implementations.

    Implementations raise `SynthesisError` on provider failure, timeout, or
    quota exhaustion.
    """

    def synthesize(self, text: str, voice: VoiceProfile) -> bytes:
        """Synthesize narration text and return encoded audio bytes."""


class OpenAISpeechSynthesizer:
    """OpenAI-backed synthesizer returning MP3 bytes."""

    def __init__(
        self,
        model: str = "tts-1-hd",
        api_key: str | None = None,
        timeout_seconds: float = 60.0,
        rate_limiter: RateLimiter | None = None,
        client: OpenAISpeechClient | None = None,
    ) -> None:
        """Initialize OpenAI-backed TTS synthesizer settings."""

        self.model = model
        self.client = client or OpenAISpeechClient(
            api_key=api_key,
            timeout_seconds=timeout_seconds,
        )
        self.rate_limiter = rate_limiter or RateLimiter()

    def synthesize(self, text: str, voice: VoiceProfile) -> bytes:
        """Synthesize one MP3 payload, pacing requests per model."""

        self.rate_limiter.acquire(f"openai:speech:{self.model}")
        return self.client.synthesize_speech(
            model=self.model,
            voice=voice.provider_voice_id,
            text=text,
            response_format="mp3",
            speed=max(0.25, min(4.0, voice.speaking_rate)),
        )
