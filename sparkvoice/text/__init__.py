"""Pure text helpers for narration.

This package contains the content fingerprint and the narration script
composer. Neither touches network or storage.
"""

from .fingerprint import content_fingerprint, narratable_fields
from .narration import compose_narration_script

__all__ = ["content_fingerprint", "narratable_fields", "compose_narration_script"]
