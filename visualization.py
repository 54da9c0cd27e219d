# visualization.py
"""
Handles the display side of the snowfall using Pygame.

The Visualizer owns the window. It plays three roles for the simulation:
it is the viewport (size, resize notifications), the page the overlay is
composited onto, and the frame scheduler that calls the bound callback once
per frame with the elapsed milliseconds. OverlayTarget is the transparent
surface the snowflakes are drawn into.
"""
import logging
import math
import pygame
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from constants import (
    BACKGROUND_COLOR, DEFAULT_WINDOW_SIZE, FLAKE_RGB, FRAME_RATE_CAP,
    WINDOW_CAPTION
)

# --- Data Contracts ---
#
# class OverlayTarget:
#   - width, height: int, current pixel size of the surface.
#   - clear() -> None: makes every pixel fully transparent.
#   - resize(width, height) -> None: replaces the surface with an empty one.
#   - draw_circle(center, radius, opacity) -> None: blends a white circle
#     with alpha round(opacity * 255) over what is already drawn.
#
# class Visualizer:
#   - __init__(self, fullscreen, window_size, frame_rate_cap, background_color, caption):
#     - Side Effects: Initializes Pygame and creates the display window.
#   - size -> (int, int)
#   - attach_overlay() -> OverlayTarget: sized to the window, composited
#     every frame in attach order.
#   - add_resize_listener(listener: Callable[[int, int], None]) -> None
#   - bind(callback: Callable[[float], None]) / start() -> None
#   - step(self) -> bool:
#     - Outputs: False if the user has quit, True otherwise.
#     - Side Effects: handles events, calls the bound callback once with the
#       frame delta in milliseconds, composites overlays and flips.
#     - Raises: RuntimeError if no callback is bound.
#     - Invariants: resize listeners never run while the callback runs.


def flake_color(opacity: float) -> Tuple[int, int, int, int]:
    """Converts an opacity fraction to a white RGBA color."""
    alpha = max(0, min(255, round(opacity * 255)))
    return (*FLAKE_RGB, alpha)


class OverlayTarget:
    """
    A full-window surface with per-pixel alpha that snowflakes are drawn into.

    Flakes are pre-rendered onto small sprites and blitted, so overlapping
    flakes blend their alpha instead of overwriting each other.
    """
    def __init__(self, width: int, height: int):
        self.surface = self._new_surface(width, height)
        self._sprites: Dict[Tuple[float, int], pygame.Surface] = {}

    @staticmethod
    def _new_surface(width: int, height: int) -> pygame.Surface:
        return pygame.Surface((max(1, int(width)), max(1, int(height))), pygame.SRCALPHA)

    @property
    def width(self) -> int:
        return self.surface.get_width()

    @property
    def height(self) -> int:
        return self.surface.get_height()

    def clear(self):
        self.surface.fill((0, 0, 0, 0))

    def resize(self, width: int, height: int):
        self.surface = self._new_surface(width, height)

    def _sprite(self, radius: float, opacity: float) -> pygame.Surface:
        """Returns the cached circle sprite for a radius (to 0.1px) and opacity."""
        color = flake_color(opacity)
        key = (round(radius, 1), color[3])
        sprite = self._sprites.get(key)
        if sprite is None:
            size = 2 * math.ceil(key[0]) + 2
            sprite = pygame.Surface((size, size), pygame.SRCALPHA)
            pygame.draw.circle(sprite, color, (size / 2, size / 2), key[0])
            self._sprites[key] = sprite
            logging.debug(f"Pre-rendered flake sprite {key} ({len(self._sprites)} cached).")
        return sprite

    def draw_circle(self, center: Tuple[float, float], radius: float, opacity: float):
        sprite = self._sprite(radius, opacity)
        half = sprite.get_width() / 2
        self.surface.blit(sprite, (round(center[0] - half), round(center[1] - half)))


class Visualizer:
    """
    Displays the overlays over a plain background and drives the frame loop.

    Frame pacing comes from pygame.time.Clock: each step sleeps until the
    frame rate cap allows the next frame. It is not tied to the monitor's
    vertical refresh, so with the cap at 0 frames run as fast as they can be
    drawn and the delta shrinks accordingly.
    """
    def __init__(self, fullscreen: bool = False,
                 window_size: Tuple[int, int] = DEFAULT_WINDOW_SIZE,
                 frame_rate_cap: int = FRAME_RATE_CAP,
                 background_color: Sequence[int] = BACKGROUND_COLOR,
                 caption: str = WINDOW_CAPTION):
        """
        Initializes Pygame and the display window.
        """
        pygame.init()

        if fullscreen:
            display_info = pygame.display.Info()
            width, height = display_info.current_w, display_info.current_h
            self.screen = pygame.display.set_mode((width, height), pygame.FULLSCREEN)
        else:
            width, height = window_size
            self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)

        pygame.display.set_caption(caption)
        self.clock = pygame.time.Clock()
        self.frame_rate_cap = max(0, int(frame_rate_cap))

        try:
            self.background_color = pygame.Color(*background_color)
        except (ValueError, TypeError) as e:
            logging.error(
                f"Could not parse background color {background_color!r}: {e}. "
                f"Falling back to the default."
            )
            self.background_color = pygame.Color(*BACKGROUND_COLOR)

        self.overlays: List[OverlayTarget] = []
        self._resize_listeners: List[Callable[[int, int], None]] = []
        self._callback: Optional[Callable[[float], None]] = None
        self.running = False
        self.last_delta = 0

        logging.info(
            f"Visualizer initialized with Pygame display ({width}x{height}, "
            f"{'uncapped' if not self.frame_rate_cap else f'capped at {self.frame_rate_cap} fps'})."
        )

    # --- Viewport ---

    @property
    def size(self) -> Tuple[int, int]:
        return self.screen.get_size()

    def attach_overlay(self) -> OverlayTarget:
        overlay = OverlayTarget(*self.size)
        self.overlays.append(overlay)
        logging.debug(f"Overlay attached ({overlay.width}x{overlay.height}).")
        return overlay

    def add_resize_listener(self, listener: Callable[[int, int], None]):
        self._resize_listeners.append(listener)

    # --- Frame scheduler ---

    def bind(self, callback: Callable[[float], None]):
        self._callback = callback

    def start(self):
        self.running = True
        # Reset the clock so the first delta does not include setup time.
        self.clock.tick()
        logging.info("Frame loop started.")

    def stop(self):
        self.running = False

    @property
    def fps(self) -> float:
        return self.clock.get_fps()

    def _handle_events(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Stopping frame loop.")
                self.stop()
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                logging.info("ESC key pressed. Stopping frame loop.")
                self.stop()
            elif event.type == pygame.VIDEORESIZE:
                logging.debug(f"Window resized to {event.w}x{event.h}.")
                for listener in self._resize_listeners:
                    listener(event.w, event.h)

    def step(self) -> bool:
        """
        Runs a single frame.

        Returns:
            bool: False if the loop should exit, True otherwise.
        """
        if self._callback is None:
            raise RuntimeError("No frame callback bound. Call bind() before step().")

        self._handle_events()
        if not self.running:
            return False

        self.last_delta = self.clock.tick(self.frame_rate_cap)
        self._callback(self.last_delta)

        self.screen.fill(self.background_color)
        for overlay in self.overlays:
            self.screen.blit(overlay.surface, (0, 0))
        pygame.display.flip()
        return True

    def close(self):
        """Shuts down Pygame."""
        self.running = False
        pygame.quit()
