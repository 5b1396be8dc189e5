"""
QR Drop - Readiness Indicators

The receiver has no way to talk back to the sender. Instead it flips a
readiness flag on every accepted chunk and shows one of two glyphs; the
person at the sender advances to the next code when the glyph changes.
"""

from typing import Callable, Optional

from shared import GLYPH_READY, GLYPH_WAITING


class ConsoleIndicator:
    """Prints the current glyph on its own line."""

    def __init__(self, ready_glyph: str = GLYPH_READY, waiting_glyph: str = GLYPH_WAITING):
        self.ready_glyph = ready_glyph
        self.waiting_glyph = waiting_glyph
        self.current: Optional[bool] = None

    def glyph(self, ready: bool) -> str:
        return self.ready_glyph if ready else self.waiting_glyph

    def show(self, ready: bool):
        if ready == self.current:
            return
        self.current = ready
        print(f"  [{self.glyph(ready)}] advance sender when this changes")


class CallbackIndicator:
    """Forwards the readiness flag and its glyph to a callable."""

    def __init__(
        self,
        callback: Callable[[bool, str], None],
        ready_glyph: str = GLYPH_READY,
        waiting_glyph: str = GLYPH_WAITING
    ):
        self.callback = callback
        self.ready_glyph = ready_glyph
        self.waiting_glyph = waiting_glyph

    def show(self, ready: bool):
        self.callback(ready, self.ready_glyph if ready else self.waiting_glyph)
