"""
QR Drop - Stream Framing

Builds the delimited text stream carried by the QR payloads and parses
finished streams back into file records.

Stream layout (no lengths, no sequence numbers):

    *^*~name~*^*content*^*~TER~*^*  [next file ...]  [*^*~END~*^*]
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .constants import (
    FILE_START_PREFIX, FILE_START_SUFFIX, TERMINATOR, SESSION_END,
    RESERVED_SUBSTRINGS, RESERVED_NAMES,
)

MIN_CHUNK_SIZE = 16


@dataclass(frozen=True)
class FileRecord:
    """One reconstructed file. The resource is set once it has been exported."""
    name: str
    content: str
    resource: Optional[object] = None
    error: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content.encode("utf-8"))

    @property
    def exported(self) -> bool:
        return self.resource is not None


def file_start_marker(name: str) -> str:
    """Return the literal marker that opens a file named `name`."""
    return f"{FILE_START_PREFIX}{name}{FILE_START_SUFFIX}"


def validate_file_name(name: str):
    """
    Reject names that would corrupt parsing.

    Raises:
        ValueError: name is empty, multi-line, reserved, or contains a delimiter
    """
    if not name:
        raise ValueError("File name must not be empty")
    if name in RESERVED_NAMES:
        raise ValueError(f"File name {name!r} is reserved")
    if "\n" in name or "\r" in name:
        raise ValueError(f"File name must be a single line: {name!r}")
    for reserved in RESERVED_SUBSTRINGS:
        if reserved in name:
            raise ValueError(
                f"File name {name!r} contains reserved delimiter {reserved!r}"
            )


def frame_file(name: str, content: str) -> str:
    """Wrap one file's content in its start marker and terminator."""
    validate_file_name(name)
    return file_start_marker(name) + content + TERMINATOR


def build_stream(files: Iterable[Tuple[str, str]], session_end: str = TERMINATOR) -> str:
    """
    Concatenate framed files into a single stream.

    When `session_end` differs from the terminator it is appended after the
    last file; otherwise the last file's terminator already ends the session.
    """
    stream = "".join(frame_file(name, content) for name, content in files)
    if session_end != TERMINATOR:
        stream += session_end
    return stream


def split_stream(stream: str, chunk_size: int) -> List[str]:
    """
    Split a stream into payloads of at most `chunk_size` characters.

    The receiver drops a payload equal to the one before it, so a chunk that
    would repeat its predecessor (long runs of identical text) is shortened
    by one character and the remainder moves into the next chunk.
    """
    if chunk_size < MIN_CHUNK_SIZE:
        raise ValueError(f"chunk_size must be at least {MIN_CHUNK_SIZE}")

    chunks: List[str] = []
    pos = 0
    while pos < len(stream):
        piece = stream[pos:pos + chunk_size]
        if chunks and piece == chunks[-1]:
            piece = piece[:-1]
        chunks.append(piece)
        pos += len(piece)
    return chunks


def extract_files(buffer: str) -> List[FileRecord]:
    """
    Extract every complete file from a finished stream, in stream order.

    Scans left to right for a start marker, then takes the shortest content
    up to the next terminator. Matches never overlap. Terminators and end
    markers are never read as start markers, and a start marker with an
    empty name is skipped. Anything that does not form a complete span is
    ignored, so a malformed stream yields an empty list.
    """
    records: List[FileRecord] = []
    pos = 0
    prefix_len = len(FILE_START_PREFIX)
    suffix_len = len(FILE_START_SUFFIX)

    while True:
        start = buffer.find(FILE_START_PREFIX, pos)
        if start < 0:
            break

        if buffer.startswith(TERMINATOR, start):
            pos = start + len(TERMINATOR)
            continue
        if buffer.startswith(SESSION_END, start):
            pos = start + len(SESSION_END)
            continue

        name_start = start + prefix_len
        name_end = buffer.find(FILE_START_SUFFIX, name_start)
        if name_end < 0:
            break

        # A prefix inside the name means this marker was never closed;
        # restart from the innermost one
        inner = buffer.rfind(FILE_START_PREFIX, start + 1, name_end)
        if inner >= 0:
            pos = inner
            continue

        if name_end == name_start:
            pos = start + 1
            continue

        content_start = name_end + suffix_len
        end = buffer.find(TERMINATOR, content_start)
        if end < 0:
            # No terminator after this start marker, so none after any later one
            break

        records.append(FileRecord(
            name=buffer[name_start:name_end],
            content=buffer[content_start:end],
        ))
        pos = end + len(TERMINATOR)

    return records
