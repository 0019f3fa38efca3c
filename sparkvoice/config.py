"""Configuration model and loaders for Sparkvoice.

Responsibilities:
- Define runtime configuration as a typed dataclass.
- Provide loader entry points for YAML files and environment variables.

Key types:
- `SparkvoiceConfig`: normalized runtime settings for the pipeline and scheduler.
- `ConfigLoader`: static construction helpers for `SparkvoiceConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from .errors import InvalidCronExpression
from .io.storage import DEFAULT_PUBLIC_BASE_URL, DEFAULT_STORAGE_PREFIX
from .parsing import normalize_optional_string, parse_name_list
from .scheduler.cron import CronExpression, CronPatterns


_DEFAULT_TTS_MODEL = "tts-1-hd"
_DEFAULT_VOICES = ("onyx", "nova")


@dataclass(slots=True)
class SparkvoiceConfig:
    """Runtime configuration for the audio pipeline and job scheduler.

    Attributes:
        content_path: JSON document holding content items and audio metadata.
        storage_root: Root directory of the filesystem artifact store.
        storage_prefix: Store path prefix for audio objects.
        public_base_url: URL prefix clients use to fetch audio.
        tts_model: Speech model identifier.
        tts_speed: Speaking rate multiplier passed to the provider.
        voices: Ordered provider voice ids; items alternate by `id % len(voices)`.
        api_key: Optional provider API key.
        request_timeout_seconds: Per-request provider timeout.
        min_request_interval_seconds: Minimum spacing between provider requests.
        default_concurrency: Worker count for batch generation.
        timezone: IANA zone the scheduler evaluates cron expressions in.
        regenerate_outdated_cron: Schedule of the outdated-audio repair job.
        generate_missing_cron: Schedule of the missing-audio batch job.
    """

    content_path: Path = Path("content.json")
    storage_root: Path = Path("storage")
    storage_prefix: str = DEFAULT_STORAGE_PREFIX
    public_base_url: str = DEFAULT_PUBLIC_BASE_URL
    tts_model: str = _DEFAULT_TTS_MODEL
    tts_speed: float = 0.95
    voices: tuple[str, ...] = field(default_factory=lambda: _DEFAULT_VOICES)
    api_key: str | None = None
    request_timeout_seconds: float = 60.0
    min_request_interval_seconds: float = 0.05
    default_concurrency: int = 3
    timezone: str = "UTC"
    regenerate_outdated_cron: str = CronPatterns.DAILY_3AM
    generate_missing_cron: str = CronPatterns.DAILY_5AM

    def validate(self) -> None:
        """Validate configuration values before wiring runtime components."""

        self._require_non_empty(self.storage_prefix, "storage_prefix")
        self._require_non_empty(self.public_base_url, "public_base_url")
        self._require_non_empty(self.tts_model, "tts_model")
        if not self.voices:
            raise ValueError("`voices` must list at least one voice id.")
        if not 0.25 <= self.tts_speed <= 4.0:
            raise ValueError("`tts_speed` must be between 0.25 and 4.0.")
        if self.request_timeout_seconds <= 0:
            raise ValueError("`request_timeout_seconds` must be positive.")
        if self.min_request_interval_seconds < 0:
            raise ValueError("`min_request_interval_seconds` must not be negative.")
        if self.default_concurrency <= 0:
            raise ValueError("`default_concurrency` must be a positive integer.")
        self.zone()
        for key in ("regenerate_outdated_cron", "generate_missing_cron"):
            try:
                CronExpression.parse(getattr(self, key))
            except InvalidCronExpression as exc:
                raise ValueError(f"`{key}`: {exc}") from exc

    def zone(self) -> ZoneInfo:
        """Return the configured scheduler timezone."""

        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown `timezone` value `{self.timezone}`.") from exc

    @staticmethod
    def _require_non_empty(value: str, field_name: str) -> None:
        """Validate that string fields are not empty."""

        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"`{field_name}` must be a non-empty string.")


class ConfigLoader:
    """Factory methods for creating `SparkvoiceConfig` from external sources."""

    _PATH_KEYS = frozenset({"content_path", "storage_root"})
    _STRING_KEYS = frozenset(
        {
            "storage_prefix",
            "public_base_url",
            "tts_model",
            "api_key",
            "timezone",
            "regenerate_outdated_cron",
            "generate_missing_cron",
        }
    )
    _FLOAT_KEYS = frozenset(
        {"tts_speed", "request_timeout_seconds", "min_request_interval_seconds"}
    )
    _INT_KEYS = frozenset({"default_concurrency"})
    _SUPPORTED_YAML_KEYS = _PATH_KEYS | _STRING_KEYS | _FLOAT_KEYS | _INT_KEYS | {"voices"}
    _ENV_PREFIX = "SPARKVOICE_"

    @staticmethod
    def from_yaml(path: Path) -> SparkvoiceConfig:
        """Create a validated config from a YAML file."""

        path_text = path.read_text(encoding="utf-8")
        try:
            payload = yaml.safe_load(path_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML config `{path}` is not valid YAML: {exc}") from exc
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            raise ValueError(
                f"YAML `{path}` includes unsupported key(s): {', '.join(map(str, unknown))}."
            )
        return ConfigLoader._build_config(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> SparkvoiceConfig:
        """Create a validated config from `SPARKVOICE_*` variables and `OPENAI_API_KEY`."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        payload: dict[str, Any] = {}
        for key in ConfigLoader._SUPPORTED_YAML_KEYS:
            env_key = f"{ConfigLoader._ENV_PREFIX}{key.upper()}"
            value = normalize_optional_string(env_map.get(env_key))
            if value is not None:
                payload[key] = value
        if "api_key" not in payload:
            api_key = normalize_optional_string(env_map.get("OPENAI_API_KEY"))
            if api_key is not None:
                payload["api_key"] = api_key
        return ConfigLoader._build_config(payload, source_label="environment")

    @staticmethod
    def _build_config(payload: Mapping[str, Any], source_label: str) -> SparkvoiceConfig:
        """Build a validated config from a normalized mapping payload."""

        values: dict[str, Any] = {}
        for key in ConfigLoader._PATH_KEYS:
            text = ConfigLoader._optional_string(payload, key)
            if text is not None:
                values[key] = Path(text)
        for key in ConfigLoader._STRING_KEYS:
            text = ConfigLoader._optional_string(payload, key)
            if text is not None:
                values[key] = text
        for key in ConfigLoader._FLOAT_KEYS:
            if key in payload:
                values[key] = ConfigLoader._number(payload[key], key, source_label, float)
        for key in ConfigLoader._INT_KEYS:
            if key in payload:
                values[key] = ConfigLoader._number(payload[key], key, source_label, int)
        if "voices" in payload:
            voices = parse_name_list(payload["voices"])
            if not voices:
                raise ValueError(f"{source_label} field `voices` must list at least one voice.")
            values["voices"] = voices

        config = SparkvoiceConfig(**values)
        try:
            config.validate()
        except ValueError as exc:
            raise ValueError(f"{source_label}: {exc}") from exc
        return config

    @staticmethod
    def _optional_string(payload: Mapping[str, Any], key: str) -> str | None:
        """Read an optional string field and normalize blank values to `None`."""

        if key not in payload:
            return None
        return normalize_optional_string(payload[key])

    @staticmethod
    def _number(raw_value: Any, key: str, source_label: str, kind: type) -> Any:
        """Parse an int or float field, rejecting booleans and junk text."""

        if isinstance(raw_value, bool):
            raise ValueError(f"{source_label} field `{key}` must be a number.")
        try:
            return kind(raw_value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{source_label} field `{key}` must be a number.") from exc
