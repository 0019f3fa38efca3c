"""Shared pytest fixtures for the full Sparkvoice test suite."""

from __future__ import annotations

import io
import json
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Iterator

import pytest

from sparkvoice.errors import SynthesisError
from sparkvoice.io.repository import JsonContentRepository
from sparkvoice.io.storage import FilesystemArtifactStore
from sparkvoice.pipeline import AudioPipeline
from sparkvoice.telemetry.logger import EventLogger
from sparkvoice.tts.voices import VoiceProfile


class FakeSynthesizer:
    """Deterministic synthesizer that records calls and can fail selected texts."""

    def __init__(self, fail_when: Callable[[str], bool] | None = None, delay: float = 0.0) -> None:
        """Initialize call tracking and optional failure predicate."""

        self.fail_when = fail_when
        self.delay = delay
        self.calls: list[tuple[str, str]] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def synthesize(self, text: str, voice: VoiceProfile) -> bytes:
        """Return fake MP3 bytes derived from the script text."""

        with self._lock:
            self.calls.append((text, voice.provider_voice_id))
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                threading.Event().wait(self.delay)
            if self.fail_when is not None and self.fail_when(text):
                raise SynthesisError("provider unavailable", failure_kind="transport")
            return b"ID3" + text.encode("utf-8")
        finally:
            with self._lock:
                self.active -= 1


class TickingClock:
    """Clock returning a strictly increasing UTC timestamp on every call."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)) -> None:
        """Initialize the clock start and per-call increment."""

        self.current = start or datetime(2026, 1, 19, 10, 0, tzinfo=timezone.utc)
        self.step = step
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        """Advance and return the current time."""

        with self._lock:
            self.current += self.step
            return self.current


def item_payload(item_id: int, **overrides: Any) -> dict[str, Any]:
    """Build one complete content record with optional field overrides."""

    payload: dict[str, Any] = {
        "id": item_id,
        "title": f"Spark {item_id}",
        "scripture_ref": f"Psalm {item_id}:1",
        "full_passage": f"Passage text {item_id}.",
        "full_teaching": f"Teaching body {item_id}.",
        "reflection_question": f"Question {item_id}?",
        "today_action": f"Action {item_id}.",
        "prayer_line": f"Prayer {item_id}.",
        "audio_metadata": None,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def write_content(tmp_path: Path) -> Callable[[list[dict[str, Any]]], Path]:
    """Provide a helper that writes a content JSON document and returns its path."""

    def _write(items: list[dict[str, Any]]) -> Path:
        """Write items under an `items` key."""

        path = tmp_path / "content.json"
        path.write_text(json.dumps({"items": items}), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_item() -> Callable[..., dict[str, Any]]:
    """Expose the content record builder to tests."""

    return item_payload


@pytest.fixture
def content_path(write_content: Callable[[list[dict[str, Any]]], Path]) -> Path:
    """Write three complete content items."""

    return write_content([item_payload(1), item_payload(2), item_payload(3)])


@pytest.fixture
def repository(content_path: Path) -> JsonContentRepository:
    """Provide a JSON repository over the default three items."""

    return JsonContentRepository(content_path)


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    """Provide the artifact store root directory."""

    return tmp_path / "storage"


@pytest.fixture
def store(storage_root: Path) -> FilesystemArtifactStore:
    """Provide a filesystem artifact store."""

    return FilesystemArtifactStore(storage_root)


@pytest.fixture
def synthesizer() -> FakeSynthesizer:
    """Provide a synthesizer that always succeeds."""

    return FakeSynthesizer()


@pytest.fixture
def clock() -> TickingClock:
    """Provide a strictly increasing clock."""

    return TickingClock()


@pytest.fixture
def event_stream() -> io.StringIO:
    """Capture event logger output."""

    return io.StringIO()


@pytest.fixture
def event_logger(event_stream: io.StringIO) -> Iterator[EventLogger]:
    """Provide an event logger writing into `event_stream`."""

    logger = EventLogger(sink=event_stream)
    yield logger
    logger.close()


@pytest.fixture
def pipeline(
    repository: JsonContentRepository,
    synthesizer: FakeSynthesizer,
    store: FilesystemArtifactStore,
    event_logger: EventLogger,
    clock: TickingClock,
) -> AudioPipeline:
    """Provide a pipeline wired to fakes and tmp-path persistence."""

    return AudioPipeline(
        repository=repository,
        synthesizer=synthesizer,
        store=store,
        event_logger=event_logger,
        clock=clock,
    )


@pytest.fixture
def make_synthesizer() -> type[FakeSynthesizer]:
    """Expose the fake synthesizer class for tests that need custom failures."""

    return FakeSynthesizer
