"""
QR Drop - Flow Control

Duplicate suppression and the single-slot flow gate.

The sender keeps showing a code until the operator advances it, so the
same payload is decoded on many ticks. The deduplicator drops repeats of
the last accepted payload. The gate closes on every accept and reopens
after a settle delay, which gives the operator time to see the readiness
indicator change and advance the sender. At most one chunk is ever
accepted per gate cycle.
"""

from typing import Callable, Optional

from shared import DEFAULT_PROFILE


class Deduplicator:
    """Remembers the last accepted payload."""

    def __init__(self):
        self.last_accepted: Optional[str] = None
        self.duplicates = 0

    def is_duplicate(self, payload: str) -> bool:
        if payload == self.last_accepted:
            self.duplicates += 1
            return True
        return False

    def remember(self, payload: str):
        self.last_accepted = payload

    def reset(self):
        self.last_accepted = None
        self.duplicates = 0


class FlowGate:
    """
    Open/closed gate with a deferred reopen.

    Not a counter: closing an already closed gate changes nothing, and
    there is never more than one reopen timer pending.
    """

    def __init__(
        self,
        scheduler,
        settle_delay_ms: int = DEFAULT_PROFILE.settle_delay_ms,
        on_reopen: Optional[Callable[[], None]] = None
    ):
        """
        Initialize gate.

        Args:
            scheduler: Object with call_later(ms, fn) and cancel(handle)
            settle_delay_ms: Time between an accept and the reopen
            on_reopen: Called each time the gate reopens
        """
        self.scheduler = scheduler
        self.settle_delay_ms = settle_delay_ms
        self.on_reopen = on_reopen

        self._open = True
        self._timer = None

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def reopen_pending(self) -> bool:
        return self._timer is not None

    def close(self):
        self._open = False

    def schedule_reopen(self):
        """Reopen after the settle delay. Replaces any pending reopen."""
        self.cancel_reopen()
        self._timer = self.scheduler.call_later(self.settle_delay_ms, self._reopen)

    def cancel_reopen(self):
        if self._timer is not None:
            self.scheduler.cancel(self._timer)
            self._timer = None

    def _reopen(self):
        self._timer = None
        self._open = True
        if self.on_reopen:
            self.on_reopen()

    def reset(self):
        """Cancel any pending reopen and leave the gate open."""
        self.cancel_reopen()
        self._open = True
