# simulation.py
"""
Handles the core snowfall simulation loop.

This module defines the SnowflakeCanvas class, which owns the three parallax
layers of snowflakes and advances them by one frame each time its scheduler
calls `tick`. Every frame it clears the overlay, maybe spawns a new flake,
moves and draws every flake from the back layer to the front one, and drops
the flakes that have fallen off the bottom of the screen.
"""
import logging
import numbers
from typing import List, Optional, Tuple

import numpy as np

from constants import (
    LAYER_COUNT, DRAW_ORDER, OFFSCREEN_MARGIN, SPAWN_PROBABILITY,
    DEFAULT_MAX_SNOWFLAKES
)
from snowflake import Snowflake

# --- Data Contracts ---
#
# should_spawn(rng, live_count: int, max_snowflakes: int, probability: float) -> bool
# choose_layer(rng) -> int
#   - Pure apart from consuming draws from rng.
#
# class SnowflakeCanvas:
#   - __init__(self, viewport, scheduler, max_snowflakes=200, rng=None,
#              spawn_probability=0.167):
#     - Inputs:
#       - viewport: provides `size`, `attach_overlay()` and
#         `add_resize_listener(listener)`.
#       - scheduler: provides `bind(callback)` and `start()`. It calls the
#         callback with the milliseconds elapsed since the previous frame.
#       - max_snowflakes: positive int, cap on live flakes across all layers.
#       - rng: np.random.Generator. A fresh unseeded one if None.
#       - spawn_probability: float in [0, 1], chance to spawn per frame.
#     - Side Effects: attaches an overlay render target, registers a resize
#       listener, binds `tick` to the scheduler and starts it.
#     - Raises: ValueError on invalid max_snowflakes or spawn_probability.
#
#   - tick(self, delta: float) -> None:
#     - Side Effects: redraws the overlay and updates the layers.
#     - Invariants: live_count <= max_snowflakes afterwards. Layer order of
#       surviving flakes is unchanged.
#
#   - update_canvas_size(self, width: int, height: int) -> None:
#     - Side Effects: clears and resizes the overlay. Flakes are untouched.


def should_spawn(rng: np.random.Generator, live_count: int, max_snowflakes: int,
                 probability: float) -> bool:
    """
    Decides whether a new flake is created on this frame.

    The draw is only made while there is room under the cap. The probability
    applies per frame, so the spawn rate follows the display's frame rate.
    """
    if live_count >= max_snowflakes:
        return False
    return rng.random() < probability


def choose_layer(rng: np.random.Generator) -> int:
    """Picks one of the parallax layers uniformly."""
    return int(rng.integers(0, LAYER_COUNT))


class SnowflakeCanvas:
    """
    Manages the snowflake layers and runs one frame of the effect per tick.
    """
    def __init__(self, viewport, scheduler, max_snowflakes: int = DEFAULT_MAX_SNOWFLAKES,
                 rng: Optional[np.random.Generator] = None,
                 spawn_probability: float = SPAWN_PROBABILITY):
        """
        Initializes the layers and starts the animation.

        Args:
            viewport: The window the overlay is attached to.
            scheduler: Frame clock that will drive `tick`.
            max_snowflakes (int): Maximum number of live flakes.
            rng (np.random.Generator): Source of all random draws.
            spawn_probability (float): Chance of spawning a flake per frame.
        """
        self._validate(max_snowflakes, spawn_probability)
        self.max_snowflakes = int(max_snowflakes)
        self.spawn_probability = float(spawn_probability)
        self.rng = rng if rng is not None else np.random.default_rng()

        # Index 0 is the foremost layer.
        self.snowflakes: List[List[Snowflake]] = [[] for _ in range(LAYER_COUNT)]

        self.target = viewport.attach_overlay()
        viewport.add_resize_listener(self.update_canvas_size)

        self.scheduler = scheduler
        self.scheduler.bind(self.tick)

        logging.info(
            f"SnowflakeCanvas initialized on a {self.target.width}x{self.target.height} "
            f"overlay (max {self.max_snowflakes} snowflakes, "
            f"spawn probability {self.spawn_probability:.3f} per frame)."
        )
        self.scheduler.start()

    @staticmethod
    def _validate(max_snowflakes, spawn_probability):
        problem = None
        if (isinstance(max_snowflakes, bool) or not isinstance(max_snowflakes, numbers.Integral)
                or max_snowflakes <= 0):
            problem = f"max_snowflakes must be a positive integer, got {max_snowflakes!r}."
        elif (isinstance(spawn_probability, bool) or not isinstance(spawn_probability, numbers.Real)
                or not 0.0 <= spawn_probability <= 1.0):
            problem = f"spawn_probability must be a number in [0, 1], got {spawn_probability!r}."

        if problem:
            msg = f"Configuration error: {problem}"
            logging.critical(msg)
            raise ValueError(msg)

    @property
    def live_count(self) -> int:
        return sum(len(layer) for layer in self.snowflakes)

    def layer_counts(self) -> Tuple[int, ...]:
        return tuple(len(layer) for layer in self.snowflakes)

    def iter_snowflakes(self):
        """Yields every live flake, back layer first."""
        for layer in DRAW_ORDER:
            yield from self.snowflakes[layer]

    def tick(self, delta: float):
        """
        Executes one frame of the animation.

        Args:
            delta (float): Milliseconds elapsed since the previous frame.
        """
        # 1. Erase the whole overlay
        self.target.clear()

        # 2. Maybe spawn a new flake at the top of a random layer
        if should_spawn(self.rng, self.live_count, self.max_snowflakes, self.spawn_probability):
            layer = choose_layer(self.rng)
            self.snowflakes[layer].append(Snowflake.spawn(layer, self.target.width, self.rng))

        # 3. Move and draw, farthest layer first so nearer flakes end up on top
        for layer in DRAW_ORDER:
            for flake in self.snowflakes[layer]:
                flake.advance(delta)
                flake.render(self.target)

        # 4. Drop flakes that have fallen past the bottom edge
        limit = self.target.height + OFFSCREEN_MARGIN
        for flakes in self.snowflakes:
            flakes[:] = [flake for flake in flakes if not flake.is_below(limit)]

    def update_canvas_size(self, width: int, height: int):
        """Clears the overlay and matches it to the new window size."""
        self.target.clear()
        self.target.resize(width, height)
        logging.info(f"Overlay resized to {width}x{height}.")
