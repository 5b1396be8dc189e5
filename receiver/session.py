"""
QR Drop - Receive Session

Owns one transfer from start to extracted files and wires the scan loop,
deduplicator, flow gate, accumulator, terminator detector and exporter
together.

States:
    IDLE -> SCANNING -> COMPLETED | ERROR

stop() returns SCANNING to IDLE and keeps everything received so far;
reset() returns any state to IDLE and discards it.
"""

import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional

from shared import (
    DEFAULT_PROFILE, TERMINATOR, TransferProfile,
    FileRecord, extract_files,
    CaptureUnavailable, CaptureError, ExportFailure, InvalidTransition,
)
from .assembler import StreamAccumulator, TerminatorDetector
from .flow import Deduplicator, FlowGate
from .scanner import ScanLoop


class SessionState(Enum):
    """Externally visible session state."""
    IDLE = "idle"
    SCANNING = "scanning"
    COMPLETED = "completed"
    ERROR = "error"


class AcceptOutcome(Enum):
    """What accept() did with a payload."""
    ACCEPTED = "accepted"
    DUPLICATE = "duplicate"      # same as the last accepted payload
    GATE_CLOSED = "gate_closed"  # still settling after the previous accept
    INACTIVE = "inactive"        # session is not scanning
    EMPTY = "empty"              # nothing decoded


@dataclass
class Session:
    """Mutable state of the live session."""
    state: SessionState = SessionState.IDLE
    accumulator: StreamAccumulator = field(default_factory=StreamAccumulator)
    dedup: Deduplicator = field(default_factory=Deduplicator)
    ready: bool = False
    files: List[FileRecord] = field(default_factory=list)
    last_error: Optional[str] = None
    extractions: int = 0
    started_at: Optional[float] = None
    completed_at: Optional[float] = None


class SessionController:
    """
    Receive-side state machine.

    Collaborators are injected so the same controller runs under tkinter,
    in a console loop, or in tests with fakes.
    """

    def __init__(
        self,
        capture,
        decode: Callable,
        scheduler,
        indicator=None,
        exporter=None,
        profile: TransferProfile = DEFAULT_PROFILE,
        settle_delay_ms: Optional[int] = None,
        session_end: str = TERMINATOR,
        on_progress: Optional[Callable[[dict], None]] = None,
        on_complete: Optional[Callable[[List[FileRecord]], None]] = None
    ):
        """
        Initialize controller.

        Args:
            capture: acquire() / read_frame() / release()
            decode: decode(pixels, width, height) -> Optional[str]
            scheduler: call_later(ms, fn) / cancel(handle)
            indicator: show(ready) sink for the readiness flag (optional)
            exporter: export(record) -> resource (optional)
            profile: Transfer profile (settle delay and tick period)
            settle_delay_ms: Overrides the profile's settle delay
            session_end: Marker that ends the session
            on_progress: Called with a progress dict after every change
            on_complete: Called with the file list when a session completes
        """
        self.capture = capture
        self.scheduler = scheduler
        self.indicator = indicator
        self.exporter = exporter
        self.profile = profile
        self.on_progress = on_progress
        self.on_complete = on_complete

        delay = profile.settle_delay(settle_delay_ms)

        self.session = Session()
        self.detector = TerminatorDetector(session_end)
        self.gate = FlowGate(scheduler, delay, on_reopen=self._on_gate_reopen)
        self.loop = ScanLoop(
            capture=capture,
            decode=decode,
            gate=self.gate,
            scheduler=scheduler,
            on_payload=self.accept,
            on_error=self._on_capture_error,
            tick_ms=profile.tick_ms,
        )

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def buffer(self) -> str:
        return self.session.accumulator.buffer

    @property
    def chunk_count(self) -> int:
        return self.session.accumulator.chunk_count

    @property
    def last_accepted(self) -> Optional[str]:
        return self.session.dedup.last_accepted

    @property
    def ready(self) -> bool:
        return self.session.ready

    @property
    def files(self) -> List[FileRecord]:
        return list(self.session.files)

    @property
    def last_error(self) -> Optional[str]:
        return self.session.last_error

    @property
    def is_scanning(self) -> bool:
        return self.session.state is SessionState.SCANNING

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self):
        """
        Acquire the capture device and start scanning.

        Starting from IDLE or ERROR continues the stream received so far;
        starting from COMPLETED begins a new stream.

        Raises:
            InvalidTransition: already scanning
            CaptureUnavailable: the device could not be acquired
        """
        if self.is_scanning:
            raise InvalidTransition("Session is already scanning")

        previous = self.session.state

        try:
            self.capture.acquire()
        except CaptureUnavailable as e:
            # A finished stream must not be resumed by the retry
            if previous is SessionState.COMPLETED:
                self._clear_stream()
            self.session.state = SessionState.IDLE
            self.session.last_error = str(e)
            print(f"  Capture unavailable: {e}")
            self._fire_progress()
            raise

        if previous is SessionState.COMPLETED:
            self._clear_stream()

        self.session.last_error = None
        self.session.started_at = time.time()
        self.session.completed_at = None
        self.session.state = SessionState.SCANNING
        self.gate.reset()
        self._show_ready()

        print(f"  Scanning (settle delay {self.gate.settle_delay_ms} ms)...")
        self.loop.start()
        self._fire_progress()

    def stop(self):
        """Stop scanning and release the device. Received data is kept."""
        if not self.is_scanning:
            return

        self.loop.stop()
        self.gate.cancel_reopen()
        self.session.state = SessionState.IDLE
        print(f"  Stopped after {self.chunk_count} chunk(s)")
        self._fire_progress()

    def reset(self):
        """Discard the stream and all extracted files."""
        if self.is_scanning:
            self.loop.stop()
        self.gate.reset()

        self._clear_stream()
        self._release_files()
        self.session.files = []
        self.session.last_error = None
        self.session.started_at = None
        self.session.completed_at = None
        self.session.state = SessionState.IDLE

        self._show_ready()
        self._fire_progress()

    def close(self):
        """Reset and remove any staged exports."""
        self.reset()
        if self.exporter is not None and hasattr(self.exporter, "cleanup"):
            self.exporter.cleanup()

    # -------------------------------------------------------------------------
    # Chunk acceptance
    # -------------------------------------------------------------------------

    def accept(self, payload: str) -> AcceptOutcome:
        """
        Offer one decoded payload to the session.

        Accepting closes the gate until the settle delay has passed, so at
        most one chunk is accepted per gate cycle.
        """
        if not payload:
            return AcceptOutcome.EMPTY
        if not self.is_scanning:
            return AcceptOutcome.INACTIVE
        if not self.gate.is_open:
            return AcceptOutcome.GATE_CLOSED

        session = self.session
        if session.dedup.is_duplicate(payload):
            return AcceptOutcome.DUPLICATE

        session.dedup.remember(payload)
        self.gate.close()
        session.accumulator.append(payload)
        session.ready = not session.ready
        self._show_ready()

        print(f"  Chunk {self.chunk_count} accepted ({len(payload)} chars)")

        if self.detector.is_terminated(session.accumulator.buffer, payload):
            self._finalize()
        else:
            self.gate.schedule_reopen()

        self._fire_progress()
        return AcceptOutcome.ACCEPTED

    def _finalize(self):
        """Extract files, then stop scanning for good."""
        buffer = self.session.accumulator.buffer
        records = extract_files(buffer)

        print(f"\n  End of transmission after {self.chunk_count} chunk(s), {len(buffer):,} chars")
        if not records:
            print(f"  WARNING: no complete file found in stream (buffer kept for inspection)")

        self._install_files(records)
        self.session.extractions += 1

        self.loop.stop()
        self.gate.cancel_reopen()
        self.session.state = SessionState.COMPLETED
        self.session.completed_at = time.time()

        if self.on_complete:
            self.on_complete(self.files)

    def _install_files(self, records: List[FileRecord]):
        """Replace the file list, exporting each record on the way in."""
        self._release_files()

        installed = []
        for record in records:
            if self.exporter is None:
                installed.append(record)
                continue
            try:
                resource = self.exporter.export(record)
                installed.append(replace(record, resource=resource))
                print(f"    {record.name} ({record.size:,} bytes)")
            except ExportFailure as e:
                print(f"    {record.name}: EXPORT FAILED - {e.reason}")
                installed.append(replace(record, error=str(e)))

        self.session.files = installed

    def _release_files(self):
        for record in self.session.files:
            if record.resource is not None:
                record.resource.release()

    # -------------------------------------------------------------------------
    # Saving
    # -------------------------------------------------------------------------

    def save_files(self, output_dir: str) -> List[str]:
        """
        Copy every exported file into `output_dir`.

        A file that cannot be written is reported and skipped.

        Returns:
            Paths of the files written
        """
        saved = []
        for record in self.session.files:
            if record.resource is None:
                continue
            try:
                path = record.resource.save_to(output_dir)
                saved.append(path)
                print(f"  Saved: {path}")
            except (OSError, ExportFailure) as e:
                print(f"  Could not save {record.name}: {e}")
        return saved

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _clear_stream(self):
        self.session.accumulator.clear()
        self.session.dedup.reset()
        self.session.ready = False

    def _on_gate_reopen(self):
        self.loop.resume()

    def _on_capture_error(self, error: CaptureError):
        self.gate.cancel_reopen()
        self.session.state = SessionState.ERROR
        self.session.last_error = str(error)
        print(f"  Capture error: {error}")
        self._fire_progress()

    def _show_ready(self):
        if self.indicator is not None:
            self.indicator.show(self.session.ready)

    def _fire_progress(self):
        """Fire the on_progress callback with current stats."""
        if not self.on_progress:
            return
        session = self.session
        started = session.started_at
        end = session.completed_at or time.time()
        self.on_progress({
            'state': session.state,
            'chunks_received': session.accumulator.chunk_count,
            'chars_received': len(session.accumulator),
            'duplicates': session.dedup.duplicates,
            'ready': session.ready,
            'files': len(session.files),
            'elapsed': end - started if started else 0.0,
            'error': session.last_error,
        })
