"""
QR Drop - Sender Main Application

Shows files as a sequence of QR codes for a receiver's camera.

Usage:
    python -m sender.main notes.txt config.yaml
    python -m sender.main ./folder --distinct-end --fullscreen --display 1
    python -m sender.main notes.txt --auto-advance-ms 1500
"""

import argparse
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))

from shared import DEFAULT_PROFILE, PROFILES, TERMINATOR, TransferProfile, get_profile
from .chunker import FileChunker
from .encoder import QRFrameEncoder
from .renderer import FrameRenderer, CMD_NEXT, CMD_PREV, CMD_PAUSE, CMD_QUIT
from .timing import ChunkPresenter, format_duration

# Render loop poll interval
POLL_MS = 15


class SenderApplication:
    """
    Main sender application.

    Frames the files once up front, then shows one chunk at a time. The
    operator advances when the receiver's indicator flips.
    """

    def __init__(
        self,
        chunks: List[str],
        encoder: QRFrameEncoder,
        renderer: FrameRenderer,
        auto_advance_ms: Optional[int] = None
    ):
        self.chunks = chunks
        self.encoder = encoder
        self.renderer = renderer

        self._frames: Dict[int, np.ndarray] = {}
        self._dirty = True

        self.presenter = ChunkPresenter(
            total_chunks=len(chunks),
            auto_advance_ms=auto_advance_ms,
            on_change=self._on_change,
            on_complete=self._on_complete,
        )

    def frame_for(self, index: int) -> np.ndarray:
        """Encode (and cache) the frame for a chunk."""
        frame = self._frames.get(index)
        if frame is None:
            caption = f"chunk {index + 1}/{len(self.chunks)}"
            frame = self.encoder.encode_to_frame(self.chunks[index], caption=caption)
            self._frames[index] = frame
        return frame

    def _on_change(self, index: int):
        self._dirty = True
        print(f"  Showing chunk {index + 1}/{len(self.chunks)}")

    def _on_complete(self):
        print(f"  All {len(self.chunks)} chunk(s) shown in "
              f"{format_duration(self.presenter.elapsed)}")

    def handle_command(self, command: str) -> bool:
        """
        Apply one operator command.

        Returns:
            False when presentation should end
        """
        if command == CMD_QUIT:
            self.presenter.stop()
            return False
        if command == CMD_NEXT:
            return self.presenter.next()
        if command == CMD_PREV:
            self.presenter.prev()
        elif command == CMD_PAUSE:
            if self.presenter.is_paused:
                self.presenter.resume()
                print(f"  Resumed")
            else:
                self.presenter.pause()
                print(f"  Paused")
        return True

    def run(self) -> bool:
        """
        Run the render loop.

        Returns:
            True if every chunk was shown
        """
        if not self.renderer.initialize():
            return False

        try:
            self.presenter.start()
            running = True
            while running:
                for command in self.renderer.poll_commands():
                    if not self.handle_command(command):
                        running = False
                        break

                if running:
                    running = self.presenter.poll()

                if running and self._dirty:
                    self.renderer.render_frame(self.frame_for(self.presenter.current_index))
                    self._dirty = False

                self.renderer.wait(POLL_MS)
        except KeyboardInterrupt:
            print(f"\n  Interrupted by user.")
        finally:
            self.renderer.shutdown()

        return self.presenter.is_complete


def build_chunker(
    paths: List[str],
    profile: TransferProfile = DEFAULT_PROFILE,
    chunk_size: Optional[int] = None,
    distinct_end: bool = False
) -> FileChunker:
    """Queue every path (files or folders) on a new chunker."""
    chunker = FileChunker(profile=profile, chunk_size=chunk_size, distinct_end=distinct_end)
    for path in paths:
        if not os.path.exists(path):
            raise FileNotFoundError(f"File not found: {path}")
        chunker.add_path(path)
    return chunker


def pacing_warnings(
    chunker: FileChunker,
    profile: TransferProfile,
    auto_advance_ms: Optional[int] = None
) -> List[str]:
    """Problems the receiver will hit with these settings."""
    warnings = []
    if len(chunker.files) > 1 and chunker.session_end == TERMINATOR:
        warnings.append(
            f"{len(chunker.files)} files without --distinct-end: the receiver "
            f"stops after {chunker.files[0][0]}"
        )
    if auto_advance_ms and auto_advance_ms <= profile.settle_delay_ms:
        warnings.append(
            f"auto-advance is not longer than the {profile.settle_delay_ms} ms settle delay"
        )
    return warnings


def main(argv=None):
    """Entry point for sender application."""
    parser = argparse.ArgumentParser(
        description='QR Drop Sender - show files as a sequence of QR codes'
    )
    parser.add_argument('paths', nargs='+',
                        help='Text files (or folders of text files) to send')
    parser.add_argument('--profile', '-p', choices=list(PROFILES), default=DEFAULT_PROFILE.name,
                        help=f'Transfer profile (default: {DEFAULT_PROFILE.name})')
    parser.add_argument('--chunk-size', type=int, default=None,
                        help='Characters per QR code (overrides profile)')
    parser.add_argument('--distinct-end', action='store_true',
                        help='Close the session with the distinct end marker (multi-file)')
    parser.add_argument('--auto-advance-ms', type=int, default=None,
                        help='Advance automatically instead of waiting for SPACE')
    parser.add_argument('--fullscreen', action='store_true',
                        help='Use fullscreen mode')
    parser.add_argument('--display', type=int, default=-1,
                        help='Display index for the window (default: primary)')
    args = parser.parse_args(argv)

    profile = get_profile(args.profile)

    try:
        chunker = build_chunker(args.paths, profile, args.chunk_size, args.distinct_end)
        chunks = chunker.generate_chunks()
    except (OSError, ValueError) as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    print(f"\n{'='*60}")
    print(f"  QR DROP SENDER")
    print(f"{'='*60}")
    for name, content in chunker.files:
        print(f"  {name}: {len(content):,} chars")
    print(f"  Profile: {profile.name}")
    print(f"  Chunk size: {chunker.chunk_size} chars")
    print(f"  Chunks: {len(chunks)}")
    if args.distinct_end:
        print(f"  Receiver must enable the distinct end marker")
    for warning in pacing_warnings(chunker, profile, args.auto_advance_ms):
        print(f"  WARNING: {warning}")
    if args.auto_advance_ms:
        print(f"  Auto-advance: {args.auto_advance_ms} ms")
    else:
        print(f"  SPACE/RIGHT = next, LEFT = back, P = pause, ESC = quit")
    print(f"{'='*60}\n")

    app = SenderApplication(
        chunks=chunks,
        encoder=QRFrameEncoder(),
        renderer=FrameRenderer(fullscreen=args.fullscreen, display_index=args.display),
        auto_advance_ms=args.auto_advance_ms,
    )
    success = app.run()
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
