"""
QR Drop - Shared Constants

Defines the wire markers, transfer profiles, and configuration defaults.
"""

from dataclasses import dataclass
from typing import Optional

# =============================================================================
# Wire Markers
# =============================================================================

# A file starts with FILE_START_PREFIX + name + FILE_START_SUFFIX
FILE_START_PREFIX = "*^*~"
FILE_START_SUFFIX = "~*^*"

# Ends a file. Also ends the session unless a distinct end marker is in use.
TERMINATOR = "*^*~TER~*^*"

# Optional session end marker for multi-file sessions
SESSION_END = "*^*~END~*^*"

# Substrings a file name must never contain
RESERVED_SUBSTRINGS = (FILE_START_PREFIX, FILE_START_SUFFIX)

# Names whose start marker would read as a terminator or end marker
RESERVED_NAMES = ("TER", "END")

# =============================================================================
# Transfer Profiles
# =============================================================================

@dataclass(frozen=True)
class TransferProfile:
    """Pacing and sizing for one transfer."""
    name: str
    chunk_size: int         # characters per QR payload
    settle_delay_ms: int    # gate stays closed this long after each accept
    tick_ms: int            # scan loop period

    def settle_delay(self, override: Optional[int] = None) -> int:
        """Settle delay in ms; an explicit override wins, including 0."""
        return self.settle_delay_ms if override is None else override


PROFILE_CAREFUL = TransferProfile("careful", chunk_size=300, settle_delay_ms=2000, tick_ms=33)
PROFILE_STANDARD = TransferProfile("standard", chunk_size=500, settle_delay_ms=1000, tick_ms=16)
PROFILE_FAST = TransferProfile("fast", chunk_size=900, settle_delay_ms=600, tick_ms=16)

DEFAULT_PROFILE = PROFILE_STANDARD

PROFILES = {
    p.name: p for p in (PROFILE_CAREFUL, PROFILE_STANDARD, PROFILE_FAST)
}


def get_profile(name: str) -> TransferProfile:
    """Look up a built-in profile by name."""
    try:
        return PROFILES[name]
    except KeyError:
        raise ValueError(
            f"Unknown profile '{name}'. Choose from: {', '.join(PROFILES)}"
        ) from None

# =============================================================================
# Readiness Indicator
# =============================================================================

# The flag toggles on every accepted chunk; the operator advances the sender
# when the glyph changes.
GLYPH_READY = "●"      # filled circle
GLYPH_WAITING = "○"    # hollow circle

# =============================================================================
# Capture Settings
# =============================================================================

CAPTURE_WIDTH = 1280
CAPTURE_HEIGHT = 720
CAPTURE_FPS = 30
DEFAULT_DEVICE_INDEX = 0

# =============================================================================
# QR Rendering
# =============================================================================

QR_MODULE_PIXELS = 8    # screen pixels per QR module
QR_QUIET_ZONE = 4       # modules of white border
DISPLAY_WIDTH = 1280
DISPLAY_HEIGHT = 720

# =============================================================================
# Export
# =============================================================================

TEXT_ENCODING = "utf-8"
STAGING_PREFIX = "qrdrop_"
