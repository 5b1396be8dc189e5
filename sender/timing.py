"""
QR Drop - Presentation Timing

Tracks which chunk is on screen and when to move to the next one.

The operator normally advances by hand each time the receiver's indicator
flips. An optional auto-advance interval moves on without input, which only
works when the interval is longer than the receiver's settle delay.
"""

import time
from typing import Callable, Optional


class ChunkPresenter:
    """
    Presentation control for a fixed list of chunks.

    Manages the current chunk index, manual stepping, optional timed
    auto-advance, pause/resume and progress tracking.
    """

    def __init__(
        self,
        total_chunks: int,
        auto_advance_ms: Optional[int] = None,
        on_change: Optional[Callable[[int], None]] = None,
        on_complete: Optional[Callable[[], None]] = None,
        clock: Callable[[], float] = time.perf_counter
    ):
        """
        Initialize presenter.

        Args:
            total_chunks: Number of chunks to present
            auto_advance_ms: Advance automatically after this long (None = manual)
            on_change: Callback when the shown chunk changes (receives index)
            on_complete: Callback when advancing past the last chunk
            clock: Time source in seconds
        """
        if total_chunks < 1:
            raise ValueError("Nothing to present")

        self.total_chunks = total_chunks
        self.auto_advance_ms = auto_advance_ms
        self.on_change = on_change
        self.on_complete = on_complete
        self._clock = clock

        self._index = 0
        self._running = False
        self._paused = False
        self._complete = False
        self._shown_at = 0.0
        self._started_at = 0.0

    def start(self, start_index: int = 0):
        """Show the first chunk (or start_index, for resume)."""
        self._index = max(0, min(start_index, self.total_chunks - 1))
        self._running = True
        self._paused = False
        self._complete = False
        self._started_at = self._clock()
        self._show()

    def stop(self):
        self._running = False

    def pause(self):
        """Hold the current chunk; auto-advance is suspended."""
        if self._running and not self._paused:
            self._paused = True

    def resume(self):
        """Resume auto-advance with a fresh interval."""
        if self._running and self._paused:
            self._paused = False
            self._shown_at = self._clock()

    def next(self) -> bool:
        """
        Move to the next chunk.

        Returns:
            True if a new chunk is shown, False if the last one was passed
        """
        if not self._running:
            return False

        if self._index + 1 >= self.total_chunks:
            self._running = False
            self._complete = True
            if self.on_complete:
                self.on_complete()
            return False

        self._index += 1
        self._show()
        return True

    def prev(self) -> bool:
        """Go back one chunk (for a code the receiver missed)."""
        if not self._running or self._index == 0:
            return False
        self._index -= 1
        self._show()
        return True

    def poll(self) -> bool:
        """
        Advance if the auto-advance interval has elapsed.

        Call this from the render loop.

        Returns:
            True while presentation should continue
        """
        if not self._running:
            return False
        if self._paused or not self.auto_advance_ms:
            return True

        elapsed_ms = (self._clock() - self._shown_at) * 1000
        if elapsed_ms >= self.auto_advance_ms:
            return self.next()
        return True

    def _show(self):
        self._shown_at = self._clock()
        if self.on_change:
            self.on_change(self._index)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def progress(self) -> float:
        """Get progress as fraction (0.0 to 1.0)."""
        if self._complete:
            return 1.0
        return self._index / self.total_chunks

    @property
    def chunks_remaining(self) -> int:
        """Chunks not yet shown, excluding the current one."""
        if self._complete:
            return 0
        return self.total_chunks - self._index - 1

    @property
    def elapsed(self) -> float:
        if not self._started_at:
            return 0.0
        return self._clock() - self._started_at

    @property
    def estimated_time_remaining(self) -> Optional[float]:
        """Seconds left under auto-advance; None when paced by hand."""
        if not self.auto_advance_ms:
            return None
        return self.chunks_remaining * self.auto_advance_ms / 1000

    @property
    def is_running(self) -> bool:
        return self._running and not self._paused

    @property
    def is_paused(self) -> bool:
        return self._running and self._paused

    @property
    def is_complete(self) -> bool:
        return self._complete


def format_duration(seconds: float) -> str:
    """Format duration as human-readable string."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"
