"""OpenAI HTTP client for narration speech synthesis.

Responsibilities:
- Send minimal `/audio/speech` requests to OpenAI's REST API.
- Raise `SynthesisError` tagged with a failure kind the CLI can report.
"""

from __future__ import annotations

import json
import re
from typing import Any

import requests

from ..errors import SynthesisError

_MAX_MESSAGE_CHARS = 180
_SECRET_PATTERN = re.compile(r"\bsk-[A-Za-z0-9_-]{8,}\b|(?i:bearer\s+[A-Za-z0-9._-]{12,})")

# HTTP status -> (failure kind, headline)
_STATUS_FAILURES = {
    401: ("invalid_api_key", "OpenAI authentication failed"),
    408: ("timeout", "OpenAI speech request timed out"),
    429: ("rate_limited", "OpenAI rate limit reached"),
    504: ("timeout", "OpenAI speech request timed out"),
}


class OpenAISpeechClient:
    """Minimal requests-based OpenAI speech HTTP client."""

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = "https://api.openai.com/v1",
        timeout_seconds: float = 60.0,
    ) -> None:
        """Initialize OpenAI HTTP client settings."""

        self.api_key = api_key.strip() if isinstance(api_key, str) else ""
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def synthesize_speech(
        self,
        *,
        model: str,
        voice: str,
        text: str,
        response_format: str = "mp3",
        speed: float = 1.0,
    ) -> bytes:
        """Return synthesized audio bytes from OpenAI `/audio/speech`."""

        if not self.api_key:
            raise SynthesisError(
                "Missing OpenAI API key. Set `OPENAI_API_KEY` or `api_key` in the config file.",
                failure_kind="invalid_api_key",
            )

        audio_bytes = self._post_speech(
            {
                "model": model,
                "voice": voice,
                "input": text,
                "response_format": response_format,
                "speed": speed,
            }
        )
        if not audio_bytes:
            raise SynthesisError("OpenAI speech response is empty.", failure_kind="empty_response")
        return audio_bytes

    def _post_speech(self, payload: dict[str, Any]) -> bytes:
        """POST one speech request and map every failure to `SynthesisError`."""

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = requests.post(
                f"{self.base_url}/audio/speech",
                headers=headers,
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise _status_error(exc.response) from exc
        except requests.Timeout as exc:
            raise SynthesisError("OpenAI speech request timed out.", failure_kind="timeout") from exc
        except requests.RequestException as exc:
            raise SynthesisError(
                f"OpenAI speech request failed to connect: {_redact(str(exc))}",
                failure_kind="transport",
            ) from exc
        return bytes(response.content)


def _status_error(response: requests.Response | None) -> SynthesisError:
    """Build a `SynthesisError` from a non-2xx speech response."""

    status_code = response.status_code if response is not None else 0
    failure_kind, headline = _STATUS_FAILURES.get(
        status_code, ("http_error", "OpenAI speech request failed")
    )
    message = _provider_message(bytes(response.content)) if response is not None else ""
    if message:
        return SynthesisError(f"{headline} (HTTP {status_code}): {message}", failure_kind=failure_kind)
    return SynthesisError(f"{headline} (HTTP {status_code}).", failure_kind=failure_kind)


def _provider_message(body: bytes) -> str:
    """Return the provider's `error.message`, or the raw body, redacted and capped."""

    text = body.decode("utf-8", errors="replace").strip()
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        text = str(payload["error"].get("message") or text)
    return _redact(text)


def _redact(text: str) -> str:
    """Mask API-key-like tokens and cap the message length."""

    text = _SECRET_PATTERN.sub("[redacted-key]", " ".join(text.split()))
    if len(text) <= _MAX_MESSAGE_CHARS:
        return text
    return f"{text[: _MAX_MESSAGE_CHARS - 3]}..."
