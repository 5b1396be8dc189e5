"""
QR Drop - Sender tests

Chunker, presenter timing, and a sender-to-receiver round trip through a
session controller.
"""

import pytest

from shared import SESSION_END, TERMINATOR, TransferProfile
from receiver.session import SessionState
from sender.chunker import FileChunker
from sender.timing import ChunkPresenter, format_duration

from .conftest import TEST_PROFILE


# =============================================================================
# Chunker
# =============================================================================

def test_chunker_reads_text_files(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello world", encoding="utf-8")

    chunker = FileChunker(TEST_PROFILE)
    chunker.add_file(str(path))

    assert chunker.files == [("notes.txt", "hello world")]
    assert "".join(chunker.generate_chunks()) == "*^*~notes.txt~*^*hello world" + TERMINATOR


def test_chunker_rejects_binary_files(tmp_path):
    path = tmp_path / "image.bin"
    path.write_bytes(b"\xff\xfe\x00\x81")

    with pytest.raises(ValueError):
        FileChunker(TEST_PROFILE).add_file(str(path))


def test_chunker_rejects_reserved_names():
    chunker = FileChunker(TEST_PROFILE)
    with pytest.raises(ValueError):
        chunker.add_text("bad~*^*name", "x")
    with pytest.raises(ValueError):
        chunker.add_text("TER", "x")
    assert chunker.files == []


def test_chunker_expands_folders_in_name_order(tmp_path):
    (tmp_path / "b.txt").write_text("b", encoding="utf-8")
    (tmp_path / "a.txt").write_text("a", encoding="utf-8")
    (tmp_path / "sub").mkdir()

    chunker = FileChunker(TEST_PROFILE)
    assert chunker.add_path(str(tmp_path)) == 2
    assert [name for name, _ in chunker.files] == ["a.txt", "b.txt"]


def test_chunker_chunk_size_and_distinct_end():
    chunker = FileChunker(TEST_PROFILE, chunk_size=20, distinct_end=True)
    chunker.add_text("a", "x" * 50)

    chunks = chunker.generate_chunks()
    assert all(len(c) <= 20 for c in chunks)
    assert "".join(chunks).endswith(SESSION_END)
    assert chunker.estimate_chunks() <= len(chunks)


def test_chunker_without_files_fails():
    with pytest.raises(ValueError):
        FileChunker(TEST_PROFILE).generate_chunks()


# =============================================================================
# Presenter
# =============================================================================

class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def test_presenter_manual_stepping():
    shown, done = [], []
    presenter = ChunkPresenter(3, on_change=shown.append, on_complete=lambda: done.append(1))

    presenter.start()
    assert presenter.next()
    assert presenter.prev()
    assert not presenter.prev()
    assert presenter.next() and presenter.next()
    assert not presenter.next()

    assert shown == [0, 1, 0, 1, 2]
    assert done == [1]
    assert presenter.is_complete
    assert presenter.progress == 1.0
    assert presenter.chunks_remaining == 0


def test_presenter_auto_advance_and_pause():
    clock = FakeClock()
    shown = []
    presenter = ChunkPresenter(3, auto_advance_ms=1500, on_change=shown.append, clock=clock)
    presenter.start()

    clock.now += 1.0
    assert presenter.poll()
    assert presenter.current_index == 0

    clock.now += 0.5
    assert presenter.poll()
    assert presenter.current_index == 1

    presenter.pause()
    clock.now += 10
    assert presenter.poll()
    assert presenter.current_index == 1

    presenter.resume()
    clock.now += 1.5
    presenter.poll()
    assert shown == [0, 1, 2]
    assert presenter.estimated_time_remaining == 0


def test_presenter_needs_chunks():
    with pytest.raises(ValueError):
        ChunkPresenter(0)


def test_format_duration():
    assert format_duration(5) == "5.0s"
    assert format_duration(125) == "2m 5s"
    assert format_duration(7260) == "2h 1m"


# =============================================================================
# Sender -> receiver
# =============================================================================

def test_round_trip_through_session(make_controller, present):
    text = "line one\nline two ✓\n" * 10
    chunker = FileChunker(TEST_PROFILE)
    chunker.add_text("poem.txt", text)
    chunks = chunker.generate_chunks()
    assert len(chunks) > 3

    controller = make_controller()
    controller.start()
    present(chunks)

    assert controller.state is SessionState.COMPLETED
    assert controller.chunk_count == len(chunks)
    assert [(r.name, r.content) for r in controller.files] == [("poem.txt", text)]


def test_multi_file_round_trip_with_distinct_end(make_controller, present):
    chunker = FileChunker(TEST_PROFILE, distinct_end=True)
    chunker.add_text("one.txt", "first file " * 5)
    chunker.add_text("two.txt", "second file " * 5)

    controller = make_controller(session_end=SESSION_END)
    controller.start()
    present(chunker.generate_chunks())

    assert controller.state is SessionState.COMPLETED
    assert [(r.name, r.content) for r in controller.files] == chunker.files


def test_repetitive_content_survives_deduplication(make_controller, present):
    text = "=" * 200
    chunker = FileChunker(TransferProfile("t", chunk_size=16, settle_delay_ms=100, tick_ms=10))
    chunker.add_text("rule.txt", text)

    controller = make_controller()
    controller.start()
    present(chunker.generate_chunks())

    assert controller.files[0].content == text


def test_qr_frame_decodes_back_to_payload():
    pytest.importorskip("cv2")
    from sender.encoder import QRFrameEncoder
    from receiver.decoder import QRDecoder

    payload = "*^*~a.txt~*^*hello qr"
    frame = QRFrameEncoder().encode_to_frame(payload, caption="chunk 1/1")
    height, width = frame.shape[:2]

    assert QRDecoder().decode(frame, width, height) == payload


def test_pacing_warnings_for_multiple_files_without_end_marker():
    from sender.main import pacing_warnings

    chunker = FileChunker(TEST_PROFILE)
    chunker.add_text("one.txt", "1")
    assert pacing_warnings(chunker, TEST_PROFILE) == []

    chunker.add_text("two.txt", "2")
    warnings = pacing_warnings(chunker, TEST_PROFILE)
    assert len(warnings) == 1
    assert "one.txt" in warnings[0]

    marked = FileChunker(TEST_PROFILE, distinct_end=True)
    marked.add_text("one.txt", "1")
    marked.add_text("two.txt", "2")
    assert pacing_warnings(marked, TEST_PROFILE) == []


def test_pacing_warnings_for_short_auto_advance():
    from sender.main import pacing_warnings

    chunker = FileChunker(TEST_PROFILE)
    chunker.add_text("one.txt", "1")

    assert pacing_warnings(chunker, TEST_PROFILE, auto_advance_ms=100)
    assert pacing_warnings(chunker, TEST_PROFILE, auto_advance_ms=500) == []
