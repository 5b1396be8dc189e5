"""
QR Drop - Environment check script tests
"""

import check_setup


def test_python_version_is_supported():
    assert check_setup.check_python_version()


def test_required_packages_are_listed():
    assert set(check_setup.REQUIRED.values()) == {"numpy", "opencv-python", "pygame"}


def test_basic_self_test_passes(capsys):
    assert check_setup.run_basic_test()
    assert "PASSED" in capsys.readouterr().out


def test_basic_self_test_skips_qr_without_opencv(monkeypatch, capsys):
    import receiver.capture
    monkeypatch.setattr(receiver.capture, "OPENCV_AVAILABLE", False)

    assert check_setup.run_basic_test()
    out = capsys.readouterr().out
    assert "Skipping QR check" in out
    assert "PASSED" in out


def test_camera_and_display_checks_report_missing_backends(monkeypatch, capsys):
    import receiver.capture
    import sender.renderer
    monkeypatch.setattr(receiver.capture, "OPENCV_AVAILABLE", False)
    monkeypatch.setattr(sender.renderer, "PYGAME_AVAILABLE", False)

    assert not check_setup.check_cameras()
    assert not check_setup.check_displays()
    out = capsys.readouterr().out
    assert "OpenCV not available" in out
    assert "pygame not available" in out
