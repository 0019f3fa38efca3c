"""Integration-test fixtures for deterministic provider behavior."""

from __future__ import annotations

from pathlib import Path

import pytest

from sparkvoice.tts.openai_client import OpenAISpeechClient


@pytest.fixture
def speech_calls() -> list[dict[str, object]]:
    """Collect every mocked OpenAI speech request."""

    return []


@pytest.fixture(autouse=True)
def _mock_openai_speech_calls(
    monkeypatch: pytest.MonkeyPatch, speech_calls: list[dict[str, object]]
) -> None:
    """Mock OpenAI speech calls in integration tests to avoid network/key requirements."""

    def _mock_synthesize_speech(self: OpenAISpeechClient, **kwargs: object) -> bytes:
        """Return a deterministic placeholder MP3 payload."""

        _ = self
        speech_calls.append(kwargs)
        return b"ID3" + str(kwargs["text"]).encode("utf-8")

    monkeypatch.setattr(OpenAISpeechClient, "synthesize_speech", _mock_synthesize_speech)


@pytest.fixture
def cli_config(tmp_path: Path, content_path: Path, storage_root: Path) -> Path:
    """Write a YAML config pointing at the tmp-path content and storage."""

    config_path = tmp_path / "sparkvoice.yml"
    config_path.write_text(
        "\n".join(
            [
                f"content_path: {content_path}",
                f"storage_root: {storage_root}",
                "api_key: integration-key",
                "min_request_interval_seconds: 0",
                "default_concurrency: 2",
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    return config_path
