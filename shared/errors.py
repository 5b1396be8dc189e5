"""
QR Drop - Exceptions

All errors are scoped to a single session and cleared by a reset.
"""


class QRDropError(Exception):
    """Base class for QR Drop errors."""


class CaptureUnavailable(QRDropError):
    """The capture device could not be acquired (missing, busy, or denied)."""


class CaptureError(QRDropError):
    """The capture device failed while a session was scanning."""


class ExportFailure(QRDropError):
    """A single file record could not be turned into an exported resource."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"Cannot export '{name}': {reason}")
        self.name = name
        self.reason = reason


class InvalidTransition(QRDropError):
    """A lifecycle call was made from a state that does not allow it."""
