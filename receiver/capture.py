"""
QR Drop - Frame Capture

Reads frames from a camera (or a recorded video) using OpenCV.

Capture is polled from the scan loop: read_frame() grabs one frame per
call and never blocks on a background thread.
"""

import numpy as np
from typing import Optional, List

from shared import (
    CAPTURE_WIDTH, CAPTURE_HEIGHT, CAPTURE_FPS, DEFAULT_DEVICE_INDEX,
    CaptureUnavailable, CaptureError,
)

try:
    import cv2
    OPENCV_AVAILABLE = True
except ImportError:
    OPENCV_AVAILABLE = False

# Consecutive failed reads before the device is considered lost
MAX_FAILED_READS = 60


def _require_opencv():
    if not OPENCV_AVAILABLE:
        raise ImportError(
            "OpenCV not available. Install with: pip install opencv-python"
        )


class CameraCapture:
    """
    Captures frames from a camera device.

    Frames are returned as RGB numpy arrays.
    """

    def __init__(
        self,
        device_index: int = DEFAULT_DEVICE_INDEX,
        width: int = CAPTURE_WIDTH,
        height: int = CAPTURE_HEIGHT,
        fps: int = CAPTURE_FPS,
        backend: Optional[int] = None
    ):
        """
        Initialize capture device.

        Args:
            device_index: Camera device index
            width: Requested capture width
            height: Requested capture height
            fps: Requested capture FPS
            backend: OpenCV backend constant (None = OpenCV default)
        """
        _require_opencv()

        self.device_index = device_index
        self.width = width
        self.height = height
        self.fps = fps
        self.backend = backend

        self.cap = None
        self._failed_reads = 0

        # Stats
        self.frames_captured = 0

    def acquire(self):
        """
        Open the device.

        Raises:
            CaptureUnavailable: device missing, busy, or permission denied
        """
        if self.is_open:
            return

        if self.backend is None:
            cap = cv2.VideoCapture(self.device_index)
        else:
            cap = cv2.VideoCapture(self.device_index, self.backend)

        if not cap.isOpened():
            cap.release()
            raise CaptureUnavailable(
                f"Cannot open camera {self.device_index}. "
                f"Check that it is connected and camera access is allowed."
            )

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        cap.set(cv2.CAP_PROP_FPS, self.fps)
        # Keep latency low: we only ever want the newest frame
        cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        actual_width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        print(f"  Camera {self.device_index}: {actual_width}x{actual_height}")

        self.cap = cap
        self._failed_reads = 0

    def read_frame(self) -> Optional[np.ndarray]:
        """
        Read the current frame.

        Returns:
            RGB frame, or None if no frame is ready yet

        Raises:
            CaptureError: the device stopped delivering frames
        """
        if self.cap is None:
            return None

        ret, frame = self.cap.read()
        if not ret or frame is None:
            self._failed_reads += 1
            if self._failed_reads >= MAX_FAILED_READS:
                raise CaptureError(
                    f"Camera {self.device_index} stopped delivering frames"
                )
            return None

        self._failed_reads = 0
        self.frames_captured += 1
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def release(self):
        """Release the device. Safe to call more than once."""
        if self.cap is not None:
            self.cap.release()
            self.cap = None

    @property
    def is_open(self) -> bool:
        return self.cap is not None and self.cap.isOpened()


class VideoFileCapture:
    """
    Replays a recorded video through the capture interface.

    Useful for decoding a phone recording of a transfer after the fact.
    """

    def __init__(self, video_path: str, loop: bool = False):
        """
        Initialize video file capture.

        Args:
            video_path: Path to the video file
            loop: Restart from the first frame at the end of the file
        """
        _require_opencv()

        self.video_path = video_path
        self.loop = loop
        self.cap = None

        # Video info
        self.total_frames = 0
        self.current_frame = 0
        self.video_fps = 0.0
        self.frames_captured = 0
        self._eof = False

    def acquire(self):
        if self.cap is not None:
            return

        cap = cv2.VideoCapture(self.video_path)
        if not cap.isOpened():
            cap.release()
            raise CaptureUnavailable(f"Cannot open video file: {self.video_path}")

        self.total_frames = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
        self.video_fps = cap.get(cv2.CAP_PROP_FPS)
        self.current_frame = 0
        self._eof = False
        print(f"  Video: {self.video_path} ({self.total_frames} frames @ {self.video_fps:.1f} FPS)")

        self.cap = cap

    def read_frame(self) -> Optional[np.ndarray]:
        if self.cap is None:
            return None

        ret, frame = self.cap.read()
        if not ret or frame is None:
            if self.loop:
                self.cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
                self.current_frame = 0
            else:
                self._eof = True
            return None

        self.current_frame += 1
        self.frames_captured += 1
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def release(self):
        if self.cap is not None:
            self.cap.release()
            self.cap = None

    @property
    def finished(self) -> bool:
        """True once a non-looping replay has run out of frames."""
        if self.loop:
            return False
        # Some containers report no frame count, so a failed read also ends the replay
        return self._eof or (self.total_frames > 0 and self.current_frame >= self.total_frames)


def list_capture_devices(max_index: int = 10) -> List[dict]:
    """
    Probe device indices and report the ones that open.

    Returns:
        List of device info dictionaries
    """
    if not OPENCV_AVAILABLE:
        return []

    devices = []
    for i in range(max_index):
        cap = cv2.VideoCapture(i)
        if cap.isOpened():
            w = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
            h = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
            devices.append({
                'index': i,
                'width': w,
                'height': h,
                'description': f"Device {i} - {w}x{h}",
            })
        cap.release()

    return devices


def check_opencv_available() -> bool:
    """Check if OpenCV is available."""
    return OPENCV_AVAILABLE
