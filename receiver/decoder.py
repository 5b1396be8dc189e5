"""
QR Drop - QR Decoder

Wraps OpenCV's QR detector behind a pure decode function.
"""

import numpy as np
from typing import Optional

try:
    import cv2
    OPENCV_AVAILABLE = True
except ImportError:
    OPENCV_AVAILABLE = False


class QRDecoder:
    """
    Decodes the QR code visible in a frame.

    Stateless from the caller's point of view: the same pixels always give
    the same result.
    """

    def __init__(self):
        if not OPENCV_AVAILABLE:
            raise ImportError(
                "OpenCV not available. Install with: pip install opencv-python"
            )
        self._detector = cv2.QRCodeDetector()

        # Stats
        self.frames_decoded = 0
        self.frames_missed = 0

    def decode(self, pixels: np.ndarray, width: int, height: int) -> Optional[str]:
        """
        Decode one frame.

        Args:
            pixels: RGB, BGR or grayscale frame
            width: Frame width in pixels
            height: Frame height in pixels

        Returns:
            Decoded text, or None if no readable code is visible
        """
        if pixels is None or width <= 0 or height <= 0:
            return None

        if pixels.ndim == 3:
            gray = cv2.cvtColor(pixels, cv2.COLOR_RGB2GRAY)
        else:
            gray = pixels

        try:
            text, points, _ = self._detector.detectAndDecode(gray)
        except cv2.error:
            # Detector chokes on some degenerate quads; treat as a miss
            self.frames_missed += 1
            return None

        if points is None or not text:
            self.frames_missed += 1
            return None

        self.frames_decoded += 1
        return text

    def __call__(self, pixels: np.ndarray, width: int, height: int) -> Optional[str]:
        return self.decode(pixels, width, height)
