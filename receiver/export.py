"""
QR Drop - File Export

Turns extracted file records into files on disk.

Each record is first staged in a private temporary directory. The staged
copy is the record's resource handle: it can be saved into any folder and
is deleted again when the handle is released.
"""

import os
import shutil
import tempfile
from typing import Optional

from shared import (
    FileRecord, ExportFailure,
    TEXT_ENCODING, STAGING_PREFIX,
)


def safe_filename(name: str) -> str:
    """
    Reduce a received name to a bare file name.

    Received names come from the other device, so directory parts and
    drive letters are dropped.
    """
    name = name.replace("\\", "/").split("/")[-1]
    name = name.split(":")[-1].strip()
    if name in ("", ".", ".."):
        return ""
    return name


def unique_path(directory: str, filename: str) -> str:
    """Return a path in `directory` that does not exist yet."""
    path = os.path.join(directory, filename)
    base, ext = os.path.splitext(path)
    counter = 1
    while os.path.exists(path):
        path = f"{base}_{counter}{ext}"
        counter += 1
    return path


class ExportedResource:
    """A staged file backing one FileRecord."""

    def __init__(self, name: str, path: str, size: int):
        self.name = name
        self.path = path
        self.size = size
        self.released = False

    def save_to(self, output_dir: str) -> str:
        """
        Copy the staged file into `output_dir` without overwriting.

        Returns:
            Path of the written file
        """
        if self.released:
            raise ExportFailure(self.name, "resource has been released")

        os.makedirs(output_dir, exist_ok=True)
        out_path = unique_path(output_dir, os.path.basename(self.path))

        # Write next to the target, then move into place
        temp_path = out_path + ".tmp"
        shutil.copyfile(self.path, temp_path)
        os.replace(temp_path, out_path)
        return out_path

    def release(self):
        """Delete the staged copy. Safe to call more than once."""
        if self.released:
            return
        self.released = True
        try:
            os.remove(self.path)
            os.rmdir(os.path.dirname(self.path))
        except FileNotFoundError:
            pass

    def __repr__(self) -> str:
        state = "released" if self.released else self.path
        return f"ExportedResource({self.name!r}, {state})"


class FileExporter:
    """Stages file records as UTF-8 files."""

    def __init__(self, staging_dir: Optional[str] = None):
        """
        Initialize exporter.

        Args:
            staging_dir: Where staged copies live (default: new temp dir)
        """
        if staging_dir is None:
            self.staging_dir = tempfile.mkdtemp(prefix=STAGING_PREFIX)
        else:
            self.staging_dir = staging_dir
            os.makedirs(staging_dir, exist_ok=True)

        self.exports = 0

    def export(self, record: FileRecord) -> ExportedResource:
        """
        Stage one record.

        Raises:
            ExportFailure: unusable name or the file could not be written
        """
        filename = safe_filename(record.name)
        if not filename:
            raise ExportFailure(record.name, "no usable file name")

        data = record.content.encode(TEXT_ENCODING)

        try:
            # One directory per export so equal names never collide
            slot = tempfile.mkdtemp(dir=self.staging_dir)
            path = os.path.join(slot, filename)
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise ExportFailure(record.name, str(e)) from e

        self.exports += 1
        return ExportedResource(record.name, path, len(data))

    def cleanup(self):
        """Remove the staging directory and everything in it."""
        shutil.rmtree(self.staging_dir, ignore_errors=True)
