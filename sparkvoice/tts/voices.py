"""Voice profile models and deterministic voice selection.

Responsibilities:
- Represent provider voice identities and tuning metadata.
- Pick a stable voice per content item without persisting a voice field.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True, slots=True)
class VoiceProfile:
    """Declarative voice profile used by TTS providers.

    Attributes:
        name: Human-readable profile name.
        provider_voice_id: Provider-native voice identifier.
        language: BCP-47 or short language code.
        speaking_rate: Relative speaking rate multiplier.
    """

    name: str
    provider_voice_id: str
    language: str = "en"
    speaking_rate: float = 0.95


DEFAULT_VOICE_ROSTER: tuple[VoiceProfile, ...] = (
    VoiceProfile(name="Deep male (US)", provider_voice_id="onyx"),
    VoiceProfile(name="Warm female (US)", provider_voice_id="nova"),
)


def build_voice_roster(voice_ids: Sequence[str], speaking_rate: float = 0.95) -> tuple[VoiceProfile, ...]:
    """Build a roster of profiles from provider voice ids, preserving order."""

    return tuple(
        VoiceProfile(name=voice_id, provider_voice_id=voice_id, speaking_rate=speaking_rate)
        for voice_id in voice_ids
    )


def select_voice_for_item(item_id: int, roster: Sequence[VoiceProfile]) -> VoiceProfile:
    """Return `roster[item_id % len(roster)]` so repeated generations share a voice."""

    if not roster:
        raise ValueError("Voice roster must contain at least one voice.")
    return roster[item_id % len(roster)]
