"""
QR Drop - Sender Module

Frames files into QR payloads and shows them one at a time.
"""

from .chunker import FileChunker
from .encoder import QRFrameEncoder
from .renderer import FrameRenderer, check_pygame_available, list_displays
from .timing import ChunkPresenter, format_duration

__all__ = [
    'FileChunker',
    'QRFrameEncoder',
    'FrameRenderer',
    'check_pygame_available',
    'list_displays',
    'ChunkPresenter',
    'format_duration',
]
