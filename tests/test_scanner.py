"""
QR Drop - Scan loop tests
"""

from receiver.flow import FlowGate
from receiver.scanner import ScanLoop

from .conftest import FakeCapture, FakeScreen, ScreenDecoder


def make_loop(scheduler, capture, screen, payloads, errors=None, tick_ms=10):
    gate = FlowGate(scheduler, settle_delay_ms=100)
    loop = ScanLoop(
        capture=capture,
        decode=ScreenDecoder(screen),
        gate=gate,
        scheduler=scheduler,
        on_payload=payloads.append,
        on_error=errors.append if errors is not None else None,
        tick_ms=tick_ms,
    )
    gate.on_reopen = loop.resume
    return loop, gate


def test_miss_reschedules_without_payload(scheduler):
    capture, screen, payloads = FakeCapture(), FakeScreen(), []
    capture.acquire()
    loop, _ = make_loop(scheduler, capture, screen, payloads)

    loop.start()
    scheduler.advance(100)

    assert payloads == []
    assert loop.ticks == 10
    assert loop.decode_misses == 10
    assert loop.tick_pending


def test_one_tick_one_payload(scheduler):
    capture, screen, payloads = FakeCapture(), FakeScreen(), []
    capture.acquire()
    loop, _ = make_loop(scheduler, capture, screen, payloads)
    screen.show("hello")

    loop.start()
    scheduler.advance(30)

    assert payloads == ["hello", "hello", "hello"]


def test_closed_gate_stops_sampling(scheduler):
    capture, screen, payloads = FakeCapture(), FakeScreen(), []
    capture.acquire()
    loop, gate = make_loop(scheduler, capture, screen, payloads)
    screen.show("x")

    def close_on_first(payload):
        payloads.append(payload)
        gate.close()
        gate.schedule_reopen()

    loop.on_payload = close_on_first
    loop.start()
    scheduler.advance(10)

    reads = capture.reads
    assert payloads == ["x"]
    assert not loop.tick_pending

    # Gate closed: no capture at all until the reopen
    scheduler.advance(99)
    assert capture.reads == reads

    # Reopen at 110 resumes; the next tick lands at 120
    scheduler.advance(11)
    assert capture.reads == reads + 1
    assert payloads == ["x", "x"]


def test_stop_cancels_tick_and_releases(scheduler):
    capture, screen, payloads = FakeCapture(), FakeScreen(), []
    capture.acquire()
    loop, _ = make_loop(scheduler, capture, screen, payloads)

    loop.start()
    scheduler.advance(25)
    loop.stop()

    assert capture.released == 1
    assert not loop.tick_pending
    assert scheduler.pending == 0

    ticks = loop.ticks
    scheduler.advance(100)
    assert loop.ticks == ticks


def test_resume_ignored_when_stopped(scheduler):
    capture, screen, payloads = FakeCapture(), FakeScreen(), []
    loop, _ = make_loop(scheduler, capture, screen, payloads)

    loop.resume()
    assert not loop.tick_pending


def test_capture_error_stops_loop(scheduler):
    capture, screen, payloads, errors = FakeCapture(), FakeScreen(), [], []
    capture.acquire()
    loop, _ = make_loop(scheduler, capture, screen, payloads, errors)

    loop.start()
    scheduler.advance(20)
    capture.fail_reads = True
    scheduler.advance(10)

    assert len(errors) == 1
    assert not loop.is_running
    assert capture.released == 1
    assert scheduler.pending == 0
