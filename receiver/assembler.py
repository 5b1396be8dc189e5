"""
QR Drop - Stream Assembler

Accumulates accepted payloads into the session stream and detects the end
of transmission.
"""

from typing import List

from shared import TERMINATOR


class StreamAccumulator:
    """
    Append-only stream buffer.

    Payloads carry no sequence numbers, so acceptance order is the stream
    order. Nothing is ever reordered or removed short of clear().
    """

    def __init__(self):
        self._parts: List[str] = []
        self._buffer = ""

    def append(self, payload: str):
        self._parts.append(payload)
        self._buffer += payload

    @property
    def buffer(self) -> str:
        return self._buffer

    @property
    def chunk_count(self) -> int:
        return len(self._parts)

    @property
    def chunks(self) -> List[str]:
        return list(self._parts)

    def clear(self):
        self._parts.clear()
        self._buffer = ""

    def __len__(self) -> int:
        return len(self._buffer)


class TerminatorDetector:
    """
    Decides whether the stream is finished.

    Checks the newest payload's tail and the whole buffer, so a marker sent
    as its own trailing chunk or split across two chunks is still found.
    """

    def __init__(self, marker: str = TERMINATOR):
        self.marker = marker

    def is_terminated(self, buffer: str, newest: str = "") -> bool:
        if newest and newest.endswith(self.marker):
            return True
        return self.marker in buffer

