"""
QR Drop - Receiver Main Application

Entry point for the receiver. Runs the tkinter UI by default, or a console
session with --headless.

Usage:
    python -m receiver.main
    python -m receiver.main --headless --device 1 --output ./received
    python -m receiver.main --headless --video recording.mp4
"""

import argparse
import dataclasses
import os
import sys
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).parent.parent))

from shared import (
    DEFAULT_PROFILE, DEFAULT_DEVICE_INDEX, PROFILES,
    TERMINATOR, SESSION_END, TransferProfile, get_profile,
    CaptureUnavailable, InvalidTransition,
)
from .capture import CameraCapture, VideoFileCapture
from .decoder import QRDecoder
from .export import FileExporter
from .indicator import CallbackIndicator, ConsoleIndicator
from .scheduler import LoopScheduler, TkScheduler
from .session import SessionController, SessionState


class ReceiverApplication:
    """
    Main receiver application.

    Connects the UI to a session controller running on Tk's event loop.
    """

    def __init__(self, profile: TransferProfile = DEFAULT_PROFILE,
                 device_index: int = DEFAULT_DEVICE_INDEX,
                 settle_delay_ms: Optional[int] = None):
        from .ui import ReceiverUI

        self.settle_delay_ms = settle_delay_ms

        self.ui = ReceiverUI()
        self.ui.device_var.set(device_index)
        self.ui.profile_var.set(profile.name)

        self.capture = CameraCapture(device_index=device_index)
        self.controller = SessionController(
            capture=self.capture,
            decode=QRDecoder(),
            scheduler=TkScheduler(self.ui.root),
            indicator=CallbackIndicator(self.ui.show_ready),
            exporter=FileExporter(),
            profile=profile,
            settle_delay_ms=settle_delay_ms,
            on_progress=self.ui.update_progress,
            on_complete=self._on_complete,
        )

        self._setup_ui_callbacks()

    def _setup_ui_callbacks(self):
        """Connect UI callbacks."""
        self.ui.on_start = self._on_start
        self.ui.on_stop = self.controller.stop
        self.ui.on_reset = self._on_reset
        self.ui.on_save = self._on_save
        self.ui.on_close = self.controller.close

    def _apply_settings(self, settings: dict):
        """Settings only change between scans, while the device is released."""
        profile = settings['profile']
        self.capture.device_index = settings['device_index']
        self.controller.profile = profile
        self.controller.gate.settle_delay_ms = profile.settle_delay(self.settle_delay_ms)
        self.controller.loop.tick_ms = profile.tick_ms
        self.controller.detector.marker = SESSION_END if settings['distinct_end'] else TERMINATOR

    def _on_start(self, settings: dict):
        """Handle start scanning."""
        self._apply_settings(settings)
        try:
            self.controller.start()
        except CaptureUnavailable as e:
            self.ui.show_message("Camera unavailable", str(e), error=True)
        except InvalidTransition:
            pass

    def _on_reset(self):
        self.controller.reset()
        self.ui.show_files([])

    def _on_complete(self, files):
        self.ui.show_files(files)
        if files:
            self.ui.show_message(
                "Transfer complete",
                f"Received {len(files)} file(s).\n\nUse 'Save Files' to write them to:\n{self.ui.output_dir}"
            )
        else:
            self.ui.show_message(
                "Transfer complete",
                "End marker received but no complete file was found.",
                error=True
            )

    def _on_save(self, output_dir: str):
        saved = self.controller.save_files(output_dir)
        self.ui.show_message("Saved", f"Wrote {len(saved)} file(s) to:\n{output_dir}")

    def run(self):
        """Run the application."""
        self.ui.run()


def run_headless(
    output_dir: str,
    device_index: int = DEFAULT_DEVICE_INDEX,
    profile: TransferProfile = DEFAULT_PROFILE,
    settle_delay_ms: Optional[int] = None,
    distinct_end: bool = False,
    video_path: Optional[str] = None,
    timeout: Optional[float] = None
) -> bool:
    """
    Receive one session in the console and save the files.

    Returns:
        True if the session completed with at least one file saved
    """
    print(f"\n{'='*60}")
    print(f"  QR DROP RECEIVER")
    print(f"{'='*60}")
    print(f"  Output: {os.path.abspath(output_dir)}")
    print(f"  Source: {video_path or f'camera {device_index}'}")
    print(f"  Profile: {profile.name}")

    if video_path:
        capture = VideoFileCapture(video_path)
        try:
            capture.acquire()
        except CaptureUnavailable as e:
            print(f"  FATAL: {e}")
            return False
        # Replay at the recording's own pace so the settle delay means the same thing
        if capture.video_fps > 0:
            profile = dataclasses.replace(profile, tick_ms=max(1, int(1000 / capture.video_fps)))
    else:
        capture = CameraCapture(device_index=device_index)

    scheduler = LoopScheduler(realtime=True)
    controller = SessionController(
        capture=capture,
        decode=QRDecoder(),
        scheduler=scheduler,
        indicator=ConsoleIndicator(),
        exporter=FileExporter(),
        profile=profile,
        settle_delay_ms=settle_delay_ms,
        session_end=SESSION_END if distinct_end else TERMINATOR,
    )

    try:
        controller.start()
    except CaptureUnavailable as e:
        print(f"  FATAL: {e}")
        return False

    print(f"  (Press Ctrl+C to stop)\n")

    def finished() -> bool:
        if controller.state is not SessionState.SCANNING:
            return True
        return getattr(capture, 'finished', False)

    try:
        scheduler.run(until=finished, timeout=timeout)
    except KeyboardInterrupt:
        print(f"\n  Interrupted by user.")
    finally:
        controller.stop()

    success = False
    if controller.state is SessionState.COMPLETED:
        saved = controller.save_files(output_dir)
        success = len(saved) > 0
    elif controller.state is SessionState.ERROR:
        print(f"  Session failed: {controller.last_error}")
    else:
        print(f"  Incomplete: {controller.chunk_count} chunk(s), no end marker seen")

    controller.close()
    return success


def main(argv=None):
    """Entry point for receiver application."""
    parser = argparse.ArgumentParser(
        description='QR Drop Receiver - receive files shown as QR codes'
    )
    parser.add_argument('--headless', action='store_true',
                        help='Run in the console without the window')
    parser.add_argument('--output', '-o', default='./received',
                        help='Output directory for headless mode (default: ./received)')
    parser.add_argument('--device', '-d', type=int, default=DEFAULT_DEVICE_INDEX,
                        help=f'Camera device index (default: {DEFAULT_DEVICE_INDEX})')
    parser.add_argument('--video', default=None,
                        help='Decode a recorded video instead of a camera (headless)')
    parser.add_argument('--profile', '-p', choices=list(PROFILES), default=DEFAULT_PROFILE.name,
                        help=f'Transfer profile (default: {DEFAULT_PROFILE.name})')
    parser.add_argument('--settle-ms', type=int, default=None,
                        help='Override the settle delay after each chunk')
    parser.add_argument('--distinct-end', action='store_true',
                        help='Wait for the distinct session end marker (multi-file senders)')
    parser.add_argument('--timeout', type=float, default=None,
                        help='Give up after this many seconds (headless)')
    args = parser.parse_args(argv)

    profile = get_profile(args.profile)

    if args.headless or args.video:
        success = run_headless(
            output_dir=args.output,
            device_index=args.device,
            profile=profile,
            settle_delay_ms=args.settle_ms,
            distinct_end=args.distinct_end,
            video_path=args.video,
            timeout=args.timeout,
        )
        sys.exit(0 if success else 1)

    app = ReceiverApplication(
        profile=profile, device_index=args.device, settle_delay_ms=args.settle_ms
    )
    app.ui.distinct_end_var.set(args.distinct_end)
    app.run()


if __name__ == "__main__":
    main()
