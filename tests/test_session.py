"""
QR Drop - Session controller tests

Drives the controller through the fakes in conftest with virtual time.
"""

import os

import pytest

from shared import (
    SESSION_END, TERMINATOR, ExportFailure, CaptureUnavailable, InvalidTransition,
)
from receiver.session import AcceptOutcome, SessionState

from .conftest import TEST_PROFILE, FakeCapture


# =============================================================================
# accept()
# =============================================================================

def test_accept_scenario(make_controller):
    controller = make_controller()
    controller.start()

    assert controller.accept("*^*~f~*^*AB") is AcceptOutcome.ACCEPTED
    controller.gate.reset()
    assert controller.accept("*^*~f~*^*AB") is AcceptOutcome.DUPLICATE
    assert controller.accept("CD*^*~TER~*^*") is AcceptOutcome.ACCEPTED

    assert controller.buffer == "*^*~f~*^*ABCD*^*~TER~*^*"
    assert controller.chunk_count == 2
    assert controller.state is SessionState.COMPLETED
    assert [(r.name, r.content) for r in controller.files] == [("f", "ABCD")]


def test_accept_requires_scanning(make_controller):
    controller = make_controller()
    assert controller.accept("data") is AcceptOutcome.INACTIVE
    assert controller.accept("") is AcceptOutcome.EMPTY
    assert controller.chunk_count == 0


def test_same_payload_twice_is_one_chunk(make_controller, present):
    controller = make_controller()
    controller.start()
    present(["*^*~a~*^*x", "*^*~a~*^*x"])

    assert controller.chunk_count == 1
    assert controller.session.dedup.duplicates > 0


def test_gate_blocks_second_accept_until_reopen(make_controller, scheduler, indicator):
    controller = make_controller()
    controller.start()

    assert controller.accept("one") is AcceptOutcome.ACCEPTED
    for payload in ("two", "three", "four"):
        assert controller.accept(payload) is AcceptOutcome.GATE_CLOSED
    assert controller.chunk_count == 1

    scheduler.advance(controller.gate.settle_delay_ms)
    assert controller.gate.is_open
    assert controller.accept("two") is AcceptOutcome.ACCEPTED


def test_readiness_flag_toggles_per_chunk(make_controller, present, indicator):
    controller = make_controller()
    controller.start()
    present(["*^*~a~*^*1", "2", "3"])

    assert controller.ready is True
    # start() shows the initial flag, then one flip per chunk
    assert indicator.shown == [False, True, False, True]


def test_buffer_preserves_accept_order(make_controller, present):
    controller = make_controller()
    controller.start()
    chunks = ["*^*~o~*^*", "c", "b", "a", "c"]
    present(chunks)

    assert controller.buffer == "".join(chunks)
    assert controller.session.accumulator.chunks == chunks


# =============================================================================
# Termination
# =============================================================================

def test_termination_extracts_once_and_stops(make_controller, present, capture, screen, scheduler):
    completed = []
    controller = make_controller(on_complete=completed.append)
    controller.start()
    present(["*^*~a.txt~*^*hel", "lo*^*~TER~*^*"])

    assert controller.state is SessionState.COMPLETED
    assert controller.session.extractions == 1
    assert len(completed) == 1
    assert capture.released == 1
    assert scheduler.pending == 0

    # Nothing more is accepted once completed
    screen.show("more")
    scheduler.advance(500)
    assert controller.accept("more") is AcceptOutcome.INACTIVE
    assert controller.chunk_count == 2
    assert controller.session.extractions == 1


def test_terminator_split_across_chunks(make_controller, present):
    controller = make_controller()
    controller.start()
    present(["*^*~s~*^*data*^*~T", "ER~*^*"])

    assert controller.state is SessionState.COMPLETED
    assert controller.files[0].content == "data"


def test_terminator_as_standalone_chunk(make_controller, present):
    controller = make_controller()
    controller.start()
    present(["*^*~s~*^*data", TERMINATOR])

    assert controller.state is SessionState.COMPLETED
    assert controller.files[0].name == "s"


def test_malformed_stream_completes_with_no_files(make_controller, present):
    controller = make_controller()
    controller.start()
    present(["no markers at all ", TERMINATOR])

    assert controller.state is SessionState.COMPLETED
    assert controller.files == []
    assert controller.buffer == "no markers at all " + TERMINATOR


def test_distinct_end_marker_keeps_multi_file_session_open(make_controller, present):
    controller = make_controller(session_end=SESSION_END)
    controller.start()
    present(["*^*~a~*^*1*^*~TER~*^*", "*^*~b~*^*2*^*~TER~*^*"])

    assert controller.state is SessionState.SCANNING

    present([SESSION_END])
    assert controller.state is SessionState.COMPLETED
    assert [r.name for r in controller.files] == ["a", "b"]


# =============================================================================
# Lifecycle
# =============================================================================

def test_start_twice_is_invalid(make_controller):
    controller = make_controller()
    controller.start()
    with pytest.raises(InvalidTransition):
        controller.start()


def test_capture_unavailable_is_retryable(make_controller, scheduler):
    capture = FakeCapture(fail_acquire=1)
    progress = []
    controller = make_controller(capture=capture, on_progress=progress.append)

    with pytest.raises(CaptureUnavailable):
        controller.start()

    assert controller.state is SessionState.IDLE
    assert controller.last_error == "camera busy"
    assert scheduler.pending == 0
    assert progress[-1]['error'] == "camera busy"

    controller.start()
    assert controller.state is SessionState.SCANNING
    assert controller.last_error is None


def test_stop_keeps_buffer_and_resumes(make_controller, present, capture, scheduler):
    controller = make_controller()
    controller.start()
    present(["*^*~r~*^*first "])

    controller.stop()
    assert controller.state is SessionState.IDLE
    assert capture.released == 1
    assert scheduler.pending == 0
    assert controller.chunk_count == 1

    controller.start()
    present(["second", TERMINATOR])
    assert controller.files[0].content == "first second"


def test_stop_outside_scanning_is_noop(make_controller, capture):
    controller = make_controller()
    controller.stop()
    assert controller.state is SessionState.IDLE
    assert capture.released == 0


def test_start_after_completion_begins_fresh_stream(make_controller, present):
    controller = make_controller()
    controller.start()
    present(["*^*~one~*^*1" + TERMINATOR])
    first = controller.files[0]

    controller.start()
    assert controller.chunk_count == 0
    assert controller.last_accepted is None
    # Previous files stay until the next extraction replaces them
    assert controller.files == [first]

    present(["*^*~two~*^*2" + TERMINATOR])
    assert [r.name for r in controller.files] == ["two"]
    assert first.resource.released


def test_failed_restart_after_completion_still_begins_fresh_stream(make_controller, present, capture):
    controller = make_controller()
    controller.start()
    present(["*^*~one~*^*1" + TERMINATOR])

    capture.fail_acquire = 1
    with pytest.raises(CaptureUnavailable):
        controller.start()
    assert controller.state is SessionState.IDLE
    assert controller.chunk_count == 0
    assert [r.name for r in controller.files] == ["one"]

    controller.start()
    present(["*^*~two~*^*first half "])
    assert controller.state is SessionState.SCANNING
    assert controller.buffer == "*^*~two~*^*first half "

    present(["second half" + TERMINATOR])
    assert [(r.name, r.content) for r in controller.files] == [("two", "first half second half")]


def test_reset_clears_everything(make_controller, present, indicator):
    controller = make_controller()
    controller.start()
    present(["*^*~z~*^*zz" + TERMINATOR])
    resources = [r.resource for r in controller.files]

    controller.reset()

    assert controller.state is SessionState.IDLE
    assert controller.chunk_count == 0
    assert controller.buffer == ""
    assert controller.last_accepted is None
    assert controller.ready is False
    assert controller.files == []
    assert all(r.released for r in resources)
    assert indicator.shown[-1] is False


def test_reset_while_scanning_stops_loop(make_controller, present, capture, scheduler):
    controller = make_controller()
    controller.start()
    present(["*^*~p~*^*partial"])

    controller.reset()
    assert capture.released == 1
    assert scheduler.pending == 0
    assert controller.state is SessionState.IDLE


def test_capture_error_moves_to_error_state(make_controller, present, capture):
    controller = make_controller()
    controller.start()
    present(["*^*~e~*^*kept"])

    capture.fail_reads = True
    present([None])

    assert controller.state is SessionState.ERROR
    assert controller.last_error == "camera unplugged"
    assert controller.buffer == "*^*~e~*^*kept"

    capture.fail_reads = False
    controller.start()
    present([TERMINATOR])
    assert controller.files[0].content == "kept"


# =============================================================================
# Export
# =============================================================================

class FlakyExporter:
    """Fails for one file name, delegates the rest."""

    def __init__(self, inner, bad_name):
        self.inner = inner
        self.bad_name = bad_name

    def export(self, record):
        if record.name == self.bad_name:
            raise ExportFailure(record.name, "disk full")
        return self.inner.export(record)


def test_export_failure_is_per_file(make_controller, present, exporter):
    controller = make_controller(
        exporter=FlakyExporter(exporter, "bad.txt"), session_end=SESSION_END
    )
    controller.start()
    present([
        "*^*~good.txt~*^*ok*^*~TER~*^*",
        "*^*~bad.txt~*^*no*^*~TER~*^*",
        "*^*~also.txt~*^*ok2*^*~TER~*^*",
        SESSION_END,
    ])

    files = controller.files
    assert [r.name for r in files] == ["good.txt", "bad.txt", "also.txt"]
    assert files[0].exported and files[2].exported
    assert not files[1].exported
    assert "disk full" in files[1].error


def test_save_files_writes_exported_content(make_controller, present, tmp_path):
    controller = make_controller()
    controller.start()
    present(["*^*~hello.txt~*^*hi there" + TERMINATOR])

    saved = controller.save_files(str(tmp_path / "out"))

    assert len(saved) == 1
    with open(saved[0], encoding="utf-8") as f:
        assert f.read() == "hi there"


def test_progress_reports_counts(make_controller, present):
    progress = []
    controller = make_controller(on_progress=progress.append)
    controller.start()
    present(["*^*~c~*^*12", "34"])

    last = progress[-1]
    assert last['state'] is SessionState.SCANNING
    assert last['chunks_received'] == 2
    assert last['chars_received'] == len("*^*~c~*^*1234")


def test_close_resets_and_removes_staging(make_controller, present, exporter, capture):
    controller = make_controller()
    controller.start()
    present(["*^*~a.txt~*^*x" + TERMINATOR])
    assert controller.files

    controller.close()

    assert controller.state is SessionState.IDLE
    assert controller.files == []
    assert not capture.open
    assert not os.path.exists(exporter.staging_dir)


def test_zero_settle_delay_override_is_kept(make_controller):
    assert TEST_PROFILE.settle_delay() == 100
    assert TEST_PROFILE.settle_delay(0) == 0

    controller = make_controller(settle_delay_ms=0)
    assert controller.gate.settle_delay_ms == 0
