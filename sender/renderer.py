"""
QR Drop - Frame Renderer

Shows QR frames in a pygame window and reads the operator's keys.
"""

import os
import numpy as np
from typing import List, Optional

from shared import DISPLAY_WIDTH, DISPLAY_HEIGHT

try:
    import pygame
    PYGAME_AVAILABLE = True
except ImportError:
    PYGAME_AVAILABLE = False


# Operator commands returned by poll_commands()
CMD_NEXT = 'next'
CMD_PREV = 'prev'
CMD_PAUSE = 'pause'
CMD_QUIT = 'quit'


class FrameRenderer:
    """
    Renders frames to a display using pygame.

    Supports both windowed and fullscreen modes, and can target a
    secondary display.
    """

    def __init__(
        self,
        width: int = DISPLAY_WIDTH,
        height: int = DISPLAY_HEIGHT,
        fullscreen: bool = False,
        display_index: int = -1,
        window_title: str = "QR Drop - Sender"
    ):
        """
        Initialize renderer.

        Args:
            width: Window width
            height: Window height
            fullscreen: Use fullscreen mode
            display_index: Display to use (-1 for default, 0 for primary, 1 for secondary)
            window_title: Window title (for windowed mode)
        """
        if not PYGAME_AVAILABLE:
            raise ImportError(
                "pygame not available. Install with: pip install pygame"
            )

        self.width = width
        self.height = height
        self.fullscreen = fullscreen
        self.display_index = display_index
        self.window_title = window_title
        self.screen = None
        self._initialized = False

    def initialize(self) -> bool:
        """
        Initialize pygame and create display.

        Returns:
            True if successful
        """
        if self._initialized:
            return True

        try:
            pygame.init()
            pygame.display.set_caption(self.window_title)

            num_displays = pygame.display.get_num_displays()
            if self.display_index >= num_displays:
                print(f"Warning: Display {self.display_index} not found, using default")
                self.display_index = -1

            # Position the window on the target display
            if self.display_index > 0:
                sizes = pygame.display.get_desktop_sizes()
                x_offset = sum(sizes[i][0] for i in range(self.display_index))
                os.environ['SDL_VIDEO_WINDOW_POS'] = f"{x_offset},0"

            flags = pygame.DOUBLEBUF
            if self.fullscreen:
                flags |= pygame.FULLSCREEN
            self.screen = pygame.display.set_mode((self.width, self.height), flags)

            if self.fullscreen:
                pygame.mouse.set_visible(False)

            self._initialized = True
            return True

        except pygame.error as e:
            print(f"Failed to initialize renderer: {e}")
            return False

    def shutdown(self):
        """Shutdown pygame and cleanup."""
        if self._initialized:
            pygame.quit()
            self._initialized = False
            self.screen = None

    def render_frame(self, frame: np.ndarray):
        """
        Render a frame to the display.

        Args:
            frame: RGB frame as numpy array (height, width, 3)
        """
        if not self._initialized:
            self.initialize()

        if self.screen is None:
            return

        # pygame expects (width, height) format for surfarray
        surface = pygame.surfarray.make_surface(np.transpose(frame, (1, 0, 2)))
        self.screen.blit(surface, (0, 0))
        pygame.display.flip()

    def poll_commands(self) -> List[str]:
        """
        Drain pending window events.

        SPACE/RIGHT advance, LEFT goes back, P pauses, ESC or closing the
        window quits.
        """
        commands = []
        if not self._initialized:
            return commands

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                commands.append(CMD_QUIT)
            elif event.type == pygame.KEYDOWN:
                if event.key in (pygame.K_SPACE, pygame.K_RIGHT):
                    commands.append(CMD_NEXT)
                elif event.key == pygame.K_LEFT:
                    commands.append(CMD_PREV)
                elif event.key == pygame.K_p:
                    commands.append(CMD_PAUSE)
                elif event.key == pygame.K_ESCAPE:
                    commands.append(CMD_QUIT)
        return commands

    def wait(self, ms: int):
        pygame.time.wait(ms)


def check_pygame_available() -> bool:
    """Check if pygame is available."""
    return PYGAME_AVAILABLE


def list_displays() -> list:
    """List available displays."""
    if not PYGAME_AVAILABLE:
        return []

    pygame.init()
    try:
        return [
            {
                'index': i,
                'width': size[0],
                'height': size[1],
                'description': f"Display {i}: {size[0]}x{size[1]}"
            }
            for i, size in enumerate(pygame.display.get_desktop_sizes())
        ]
    finally:
        pygame.quit()
