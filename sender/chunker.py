"""
QR Drop - File Chunker

Frames files into the transfer stream and splits it into QR payloads.
"""

import os
from typing import List, Optional, Tuple

from shared import (
    TransferProfile, DEFAULT_PROFILE,
    TERMINATOR, SESSION_END, TEXT_ENCODING,
    validate_file_name, build_stream, split_stream,
)


class FileChunker:
    """
    Turns a set of text files into the ordered list of QR payloads.

    Handles:
    - File name validation (no delimiter substrings)
    - Stream framing (start markers, terminators, optional end marker)
    - Splitting into payloads that never repeat their predecessor
    """

    def __init__(
        self,
        profile: TransferProfile = DEFAULT_PROFILE,
        chunk_size: Optional[int] = None,
        distinct_end: bool = False
    ):
        """
        Initialize chunker.

        Args:
            profile: Transfer profile (determines default chunk size)
            chunk_size: Characters per payload (overrides profile)
            distinct_end: Close the session with the distinct end marker
                          instead of the last file's terminator
        """
        self.profile = profile
        self.chunk_size = chunk_size or profile.chunk_size
        self.session_end = SESSION_END if distinct_end else TERMINATOR

        self.files: List[Tuple[str, str]] = []

    def add_text(self, name: str, content: str):
        """Queue text content under a file name."""
        validate_file_name(name)
        self.files.append((name, content))

    def add_file(self, file_path: str, name: Optional[str] = None):
        """
        Queue a file from disk.

        Raises:
            ValueError: file is not UTF-8 text or its name is not allowed
        """
        name = name or os.path.basename(file_path)
        validate_file_name(name)

        with open(file_path, 'rb') as f:
            data = f.read()
        try:
            content = data.decode(TEXT_ENCODING)
        except UnicodeDecodeError:
            raise ValueError(f"{file_path} is not {TEXT_ENCODING} text") from None

        self.files.append((name, content))

    def add_path(self, path: str) -> int:
        """
        Queue a file, or every regular file directly inside a folder.

        Returns:
            Number of files queued
        """
        if os.path.isdir(path):
            entries = sorted(
                e for e in os.listdir(path)
                if os.path.isfile(os.path.join(path, e))
            )
            for entry in entries:
                self.add_file(os.path.join(path, entry))
            return len(entries)

        self.add_file(path)
        return 1

    def build_stream(self) -> str:
        if not self.files:
            raise ValueError("No files queued")
        return build_stream(self.files, self.session_end)

    def generate_chunks(self) -> List[str]:
        """
        Build the stream and split it.

        Returns:
            Payloads in send order
        """
        return split_stream(self.build_stream(), self.chunk_size)

    @property
    def total_chars(self) -> int:
        return len(self.build_stream()) if self.files else 0

    def estimate_chunks(self) -> int:
        """Lower bound on the number of payloads."""
        total = self.total_chars
        return (total + self.chunk_size - 1) // self.chunk_size
