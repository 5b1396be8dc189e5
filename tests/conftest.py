"""
Pytest configuration and fixtures
"""
import sys
from pathlib import Path
from typing import List, Optional

import numpy as np
import pytest

# Ensure project root is on sys.path for imports in tests
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from shared import CaptureUnavailable, CaptureError, TransferProfile
from receiver.scheduler import LoopScheduler
from receiver.session import SessionController
from receiver.export import FileExporter

# Small, fast profile for virtual-time tests
TEST_PROFILE = TransferProfile("test", chunk_size=32, settle_delay_ms=100, tick_ms=10)


class FakeScreen:
    """Whatever the sender is currently showing. None means a blank screen."""

    def __init__(self):
        self.text: Optional[str] = None

    def show(self, text: Optional[str]):
        self.text = text


class FakeCapture:
    """Capture device returning a tiny blank frame on every read."""

    def __init__(self, fail_acquire: int = 0):
        self.fail_acquire = fail_acquire
        self.fail_reads = False
        self.acquired = 0
        self.released = 0
        self.reads = 0
        self.open = False

    def acquire(self):
        if self.fail_acquire > 0:
            self.fail_acquire -= 1
            raise CaptureUnavailable("camera busy")
        self.acquired += 1
        self.open = True

    def read_frame(self):
        if not self.open:
            return None
        self.reads += 1
        if self.fail_reads:
            raise CaptureError("camera unplugged")
        return np.zeros((4, 4, 3), dtype=np.uint8)

    def release(self):
        self.released += 1
        self.open = False


class ScreenDecoder:
    """Decodes whatever the fake screen shows; misses when it is blank."""

    def __init__(self, screen: FakeScreen):
        self.screen = screen
        self.calls = 0

    def __call__(self, pixels, width, height):
        self.calls += 1
        return self.screen.text


class RecordingIndicator:
    def __init__(self):
        self.shown: List[bool] = []

    def show(self, ready: bool):
        self.shown.append(ready)


@pytest.fixture
def scheduler():
    return LoopScheduler(realtime=False)


@pytest.fixture
def screen():
    return FakeScreen()


@pytest.fixture
def capture():
    return FakeCapture()


@pytest.fixture
def indicator():
    return RecordingIndicator()


@pytest.fixture
def exporter(tmp_path):
    exp = FileExporter(staging_dir=str(tmp_path / "staging"))
    yield exp
    exp.cleanup()


@pytest.fixture
def make_controller(scheduler, screen, capture, indicator, exporter):
    """Build a controller wired to the fakes. Keyword arguments override."""
    created = []

    def factory(**kwargs):
        options = dict(
            capture=capture,
            decode=ScreenDecoder(screen),
            scheduler=scheduler,
            indicator=indicator,
            exporter=exporter,
            profile=TEST_PROFILE,
        )
        options.update(kwargs)
        controller = SessionController(**options)
        created.append(controller)
        return controller

    yield factory

    for controller in created:
        controller.reset()


def present(scheduler, screen, chunks, dwell_ms=150):
    """
    Show each chunk for dwell_ms, like an operator advancing the sender.

    dwell_ms must exceed the settle delay so each chunk gets a gate cycle.
    """
    for chunk in chunks:
        screen.show(chunk)
        scheduler.advance(dwell_ms)


@pytest.fixture
def profile():
    return TEST_PROFILE


@pytest.fixture(name="present")
def present_fixture(scheduler, screen):
    def run(chunks, dwell_ms=150):
        present(scheduler, screen, chunks, dwell_ms)
    return run
