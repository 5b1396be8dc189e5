"""
QR Drop - Scan Loop

Self-rescheduling sampler: one capture and one decode per tick.
"""

from typing import Callable, Optional

from shared import DEFAULT_PROFILE, CaptureError
from .flow import FlowGate


class ScanLoop:
    """
    Pulls decoded payloads out of the capture device, one per tick.

    While the gate is closed the loop schedules nothing and touches no
    hardware; resume() (wired to the gate's reopen) starts it again.
    """

    def __init__(
        self,
        capture,
        decode: Callable,
        gate: FlowGate,
        scheduler,
        on_payload: Callable[[str], None],
        on_error: Optional[Callable[[Exception], None]] = None,
        tick_ms: int = DEFAULT_PROFILE.tick_ms
    ):
        """
        Initialize scan loop.

        Args:
            capture: Object with read_frame() and release()
            decode: decode(pixels, width, height) -> Optional[str]
            gate: Flow gate consulted before every capture
            scheduler: Object with call_later(ms, fn) and cancel(handle)
            on_payload: Receives every non-empty decode result
            on_error: Receives a CaptureError raised mid-scan
            tick_ms: Delay between ticks
        """
        self.capture = capture
        self.decode = decode
        self.gate = gate
        self.scheduler = scheduler
        self.on_payload = on_payload
        self.on_error = on_error
        self.tick_ms = max(1, tick_ms)

        self._running = False
        self._handle = None

        # Stats
        self.ticks = 0
        self.frames_sampled = 0
        self.decode_misses = 0
        self.payloads_seen = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def tick_pending(self) -> bool:
        return self._handle is not None

    def start(self):
        if self._running:
            return
        self._running = True
        self._schedule()

    def resume(self):
        """Continue after the gate reopens."""
        if self._running and self._handle is None and self.gate.is_open:
            self._schedule()

    def stop(self):
        """Cancel the next tick and release the capture device."""
        self._running = False
        if self._handle is not None:
            self.scheduler.cancel(self._handle)
            self._handle = None
        self.capture.release()

    def _schedule(self):
        self._handle = self.scheduler.call_later(self.tick_ms, self._tick)

    def _tick(self):
        self._handle = None
        if not self._running or not self.gate.is_open:
            return

        self.ticks += 1

        try:
            frame = self.capture.read_frame()
        except CaptureError as e:
            self.stop()
            if self.on_error:
                self.on_error(e)
            return

        if frame is not None:
            self.frames_sampled += 1
            height, width = frame.shape[:2]
            text = self.decode(frame, width, height)

            if text:
                self.payloads_seen += 1
                self.on_payload(text)
            else:
                self.decode_misses += 1

        # on_payload may have closed the gate or stopped the loop
        if self._running and self.gate.is_open and self._handle is None:
            self._schedule()
