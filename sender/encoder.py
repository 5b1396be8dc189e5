"""
QR Drop - Frame Encoder

Renders payloads as QR codes on a display-sized RGB frame.
"""

import numpy as np
from typing import Optional

from shared import (
    QR_MODULE_PIXELS, QR_QUIET_ZONE,
    DISPLAY_WIDTH, DISPLAY_HEIGHT,
)

try:
    import cv2
    OPENCV_AVAILABLE = True
except ImportError:
    OPENCV_AVAILABLE = False

CAPTION_HEIGHT = 40


class QRFrameEncoder:
    """
    Encodes one payload into a frame ready for rendering.

    The QR symbol is scaled by whole pixels per module and centred on a
    white background, with an optional caption line above it.
    """

    def __init__(
        self,
        width: int = DISPLAY_WIDTH,
        height: int = DISPLAY_HEIGHT,
        module_pixels: int = QR_MODULE_PIXELS,
        quiet_zone: int = QR_QUIET_ZONE
    ):
        """
        Initialize encoder.

        Args:
            width: Frame width in pixels
            height: Frame height in pixels
            module_pixels: Preferred pixels per QR module
            quiet_zone: White border in modules
        """
        if not OPENCV_AVAILABLE:
            raise ImportError(
                "OpenCV not available. Install with: pip install opencv-python"
            )

        self.width = width
        self.height = height
        self.module_pixels = module_pixels
        self.quiet_zone = quiet_zone
        self._encoder = cv2.QRCodeEncoder.create()

    def encode_symbol(self, payload: str) -> np.ndarray:
        """
        Encode a payload as a bare QR symbol, one pixel per module.

        Returns:
            Grayscale uint8 array including the quiet zone
        """
        symbol = self._encoder.encode(payload)
        if symbol is None or symbol.size == 0:
            raise ValueError(f"Payload of {len(payload)} chars does not fit in a QR code")

        if symbol.ndim == 3:
            symbol = cv2.cvtColor(symbol, cv2.COLOR_BGR2GRAY)

        q = self.quiet_zone
        return cv2.copyMakeBorder(symbol, q, q, q, q, cv2.BORDER_CONSTANT, value=255)

    def encode_to_frame(self, payload: str, caption: Optional[str] = None) -> np.ndarray:
        """
        Encode a payload into a full display frame.

        Args:
            payload: Text to encode
            caption: Optional line drawn above the code

        Returns:
            RGB frame (height, width, 3)
        """
        symbol = self.encode_symbol(payload)
        size = symbol.shape[0]

        available = min(self.width, self.height - CAPTION_HEIGHT)
        scale = max(1, min(self.module_pixels, available // size))
        scaled = cv2.resize(
            symbol, (size * scale, size * scale), interpolation=cv2.INTER_NEAREST
        )

        frame = np.full((self.height, self.width, 3), 255, dtype=np.uint8)
        side = scaled.shape[0]
        top = CAPTION_HEIGHT + max(0, (self.height - CAPTION_HEIGHT - side) // 2)
        left = max(0, (self.width - side) // 2)

        # Clip if the symbol is larger than the frame even at scale 1
        h = min(side, self.height - top)
        w = min(side, self.width - left)
        frame[top:top + h, left:left + w] = scaled[:h, :w, np.newaxis]

        if caption:
            cv2.putText(
                frame, caption, (10, CAPTION_HEIGHT - 12),
                cv2.FONT_HERSHEY_SIMPLEX, 0.8, (0, 0, 0), 2, cv2.LINE_AA
            )

        return frame
