#!/usr/bin/env python3
"""
QR Drop - Environment Check

Installs dependencies and verifies the sender/receiver environment.

Usage:
    python check_setup.py            # Check installation
    python check_setup.py --install  # Install dependencies
    python check_setup.py --test     # Run basic test
    python check_setup.py --cameras  # List cameras
    python check_setup.py --displays # List displays
"""

import sys
import subprocess
import argparse
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

REQUIRED = {
    "numpy": "numpy",
    "cv2": "opencv-python",
    "pygame": "pygame",
}


def check_python_version():
    """Check Python version is 3.8+."""
    if sys.version_info < (3, 8):
        print(f"ERROR: Python 3.8+ required, got {sys.version}")
        return False
    print(f"Python: {sys.version}")
    return True


def install_dependencies():
    """Install required Python packages."""
    print("\nInstalling dependencies...")

    for package in REQUIRED.values():
        print(f"  Installing {package}...")
        result = subprocess.run(
            [sys.executable, "-m", "pip", "install", package],
            capture_output=True,
            text=True
        )
        if result.returncode != 0:
            print(f"    ERROR: {result.stderr}")
            return False
        print(f"    OK")

    return True


def check_dependencies():
    """Check all dependencies are installed."""
    print("\nChecking dependencies...")

    all_ok = True
    for module, package in REQUIRED.items():
        try:
            __import__(module)
            print(f"  {package}: OK")
        except ImportError:
            print(f"  {package}: MISSING")
            all_ok = False

    try:
        __import__("tkinter")
        print(f"  tkinter: OK")
    except ImportError:
        print(f"  tkinter: MISSING (receiver window unavailable, --headless still works)")

    return all_ok


def check_cameras():
    """List camera devices the receiver can open."""
    print("\nChecking cameras...")

    from receiver.capture import check_opencv_available, list_capture_devices

    if not check_opencv_available():
        print("  OpenCV not available")
        return False

    devices = list_capture_devices()
    for device in devices:
        print(f"  Device {device['index']}: {device['width']}x{device['height']}")
    if not devices:
        print("  No camera found (use --video with the receiver to decode a recording)")
    return bool(devices)


def check_displays():
    """List displays the sender can render on."""
    print("\nChecking displays...")

    from sender.renderer import check_pygame_available, list_displays

    if not check_pygame_available():
        print("  pygame not available")
        return False

    displays = list_displays()
    for display in displays:
        print(f"  Display {display['index']}: {display['width']}x{display['height']}")
    if not displays:
        print("  No display found")
    return bool(displays)


def run_basic_test():
    """Frame a file, split it, and extract it again."""
    print("\nRunning basic test...")

    from shared import PROFILE_STANDARD, extract_files
    from sender.chunker import FileChunker

    text = "Hello QR Drop!\n" * 100
    chunker = FileChunker(PROFILE_STANDARD)
    chunker.add_text("hello.txt", text)
    chunks = chunker.generate_chunks()
    print(f"  Profile: {PROFILE_STANDARD.name}")
    print(f"  Chunks: {len(chunks)} x {chunker.chunk_size} chars")

    records = extract_files("".join(chunks))
    if len(records) != 1 or records[0].content != text:
        print("  Basic test: FAILED (stream did not round-trip)")
        return False

    from receiver.capture import check_opencv_available

    if not check_opencv_available():
        print("  Skipping QR check: OpenCV not available")
    else:
        from sender.encoder import QRFrameEncoder
        from receiver.decoder import QRDecoder

        encoder, decoder = QRFrameEncoder(), QRDecoder()
        sample = chunks[0][:100]
        frame = encoder.encode_to_frame(sample)
        height, width = frame.shape[:2]
        decoded = decoder.decode(frame, width, height)
        if decoded != sample:
            print("  Basic test: FAILED (QR frame did not decode)")
            return False
        print(f"  QR frame: {width}x{height} decoded OK")

    print("  Basic test: PASSED")
    return True


def print_usage():
    """Print usage information."""
    print("""
QR Drop - Setup Complete

SENDING FILES:
    qrdrop-send notes.txt
    qrdrop-send ./folder --distinct-end --fullscreen --display 1

RECEIVING FILES:
    qrdrop-receive                                  # window
    qrdrop-receive --headless -o ./received         # console
    qrdrop-receive --headless --video capture.mp4   # recorded video

PROFILES:
    careful   - 300 chars/code, 2000 ms settle delay
    standard  - 500 chars/code, 1000 ms settle delay (default)
    fast      - 900 chars/code,  600 ms settle delay
""")


def main(argv=None):
    parser = argparse.ArgumentParser(description="QR Drop Setup")
    parser.add_argument('--install', action='store_true', help='Install dependencies')
    parser.add_argument('--test', action='store_true', help='Run basic test')
    parser.add_argument('--cameras', action='store_true', help='List camera devices')
    parser.add_argument('--displays', action='store_true', help='List displays')

    args = parser.parse_args(argv)

    print("=" * 60)
    print("QR DROP - SETUP")
    print("=" * 60)

    if not check_python_version():
        sys.exit(1)

    if args.install:
        if not install_dependencies():
            print("\nERROR: Failed to install dependencies")
            sys.exit(1)

    if not check_dependencies():
        print("\nERROR: Missing dependencies. Run: python check_setup.py --install")
        sys.exit(1)

    if args.cameras:
        check_cameras()

    if args.displays:
        check_displays()

    if args.test:
        if not run_basic_test():
            sys.exit(1)

    print("\n" + "=" * 60)
    print("SETUP COMPLETE")
    print("=" * 60)

    print_usage()


if __name__ == "__main__":
    main()
