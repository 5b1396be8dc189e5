"""
QR Drop - Shared Module

Common code used by both sender and receiver.
"""

from .constants import (
    FILE_START_PREFIX, FILE_START_SUFFIX, TERMINATOR, SESSION_END,
    RESERVED_SUBSTRINGS, RESERVED_NAMES,
    TransferProfile, PROFILE_CAREFUL, PROFILE_STANDARD, PROFILE_FAST,
    DEFAULT_PROFILE, PROFILES, get_profile,
    GLYPH_READY, GLYPH_WAITING,
    CAPTURE_WIDTH, CAPTURE_HEIGHT, CAPTURE_FPS, DEFAULT_DEVICE_INDEX,
    QR_MODULE_PIXELS, QR_QUIET_ZONE, DISPLAY_WIDTH, DISPLAY_HEIGHT,
    TEXT_ENCODING, STAGING_PREFIX,
)

from .errors import (
    QRDropError, CaptureUnavailable, CaptureError,
    ExportFailure, InvalidTransition,
)

from .framing import (
    FileRecord, MIN_CHUNK_SIZE,
    file_start_marker, validate_file_name, frame_file,
    build_stream, split_stream, extract_files,
)

__all__ = [
    # Constants
    'FILE_START_PREFIX', 'FILE_START_SUFFIX', 'TERMINATOR', 'SESSION_END',
    'RESERVED_SUBSTRINGS', 'RESERVED_NAMES',
    'TransferProfile', 'PROFILE_CAREFUL', 'PROFILE_STANDARD', 'PROFILE_FAST',
    'DEFAULT_PROFILE', 'PROFILES', 'get_profile',
    'GLYPH_READY', 'GLYPH_WAITING',
    'CAPTURE_WIDTH', 'CAPTURE_HEIGHT', 'CAPTURE_FPS', 'DEFAULT_DEVICE_INDEX',
    'QR_MODULE_PIXELS', 'QR_QUIET_ZONE', 'DISPLAY_WIDTH', 'DISPLAY_HEIGHT',
    'TEXT_ENCODING', 'STAGING_PREFIX',
    # Errors
    'QRDropError', 'CaptureUnavailable', 'CaptureError',
    'ExportFailure', 'InvalidTransition',
    # Framing
    'FileRecord', 'MIN_CHUNK_SIZE',
    'file_start_marker', 'validate_file_name', 'frame_file',
    'build_stream', 'split_stream', 'extract_files',
]
