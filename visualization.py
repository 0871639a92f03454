# visualization.py
"""
Hosts the simulation in a Pygame window.

The Visualizer owns the display surface the driver draws on, pumps window
events, and paces frames with a Pygame clock. It knows nothing about
regions; the driver draws directly onto `Visualizer.screen`.
"""
import logging
import pygame
from typing import Any, Dict, Optional

from constants import DEFAULT_WINDOW_SIZE, FPS, WINDOW_CAPTION

# --- Data Contracts ---
#
# class Visualizer:
#   - __init__(self, params: Optional[Dict[str, Any]] = None):
#     - Inputs: the "visualization" config section ("fullscreen", "width",
#       "height", "fps", "caption").
#     - Side Effects: Initializes Pygame and creates the display surface.
#
#   - pump_events(self) -> bool:
#     - Outputs: False once the user has closed the window or pressed ESC.
#
#   - present(self) -> float:
#     - Side Effects: Flips the display and waits for the next frame slot.
#     - Outputs: milliseconds since the previous frame.


class Visualizer:
    """
    A Pygame window that shows the simulation surface.
    """
    def __init__(self, params: Optional[Dict[str, Any]] = None):
        params = params if params is not None else {}
        pygame.init()

        if params.get('fullscreen', False):
            display_info = pygame.display.Info()
            width, height = display_info.current_w, display_info.current_h
            self.screen = pygame.display.set_mode((width, height), pygame.FULLSCREEN)
        else:
            width = int(params.get('width', DEFAULT_WINDOW_SIZE[0]))
            height = int(params.get('height', DEFAULT_WINDOW_SIZE[1]))
            self.screen = pygame.display.set_mode((width, height))

        self.width = width
        self.height = height
        self.fps = int(params.get('fps', FPS))
        self.closed = False

        pygame.display.set_caption(params.get('caption', WINDOW_CAPTION))
        self.clock = pygame.time.Clock()

        logging.info(f"Visualizer initialized with Pygame display ({width}x{height}).")

    def pump_events(self) -> bool:
        """
        Handles pending window events.

        Returns:
            bool: False if the application should exit, True otherwise.
        """
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down visualizer.")
                return False
            if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                logging.info("ESC key pressed. Shutting down visualizer.")
                return False
        return True

    def present(self) -> float:
        pygame.display.flip()
        return self.clock.tick(self.fps)

    def current_fps(self) -> float:
        return self.clock.get_fps()

    def close(self):
        """Shuts down Pygame."""
        if self.closed:
            return
        self.closed = True
        pygame.quit()
