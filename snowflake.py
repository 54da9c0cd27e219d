# snowflake.py
"""
Defines a single snowflake of the snowfall overlay.

Each Snowflake keeps track of all its own state. Its horizontal position
follows a sine wave around a fixed center line to imitate the gentle
back-and-forth flutter of falling snow, while it drops at a constant speed.
Flakes in farther layers are smaller, sway less and fall slower.
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from constants import (
    TAU, LAYER_COUNT, LAYER_OPACITY, LAYER_DEPTH_FACTOR, RADIUS_RANGE,
    SWAY_AMPLITUDE_RANGE, FALL_SPEED_RANGE, SWAY_PERIOD_RANGE
)

# --- Data Contracts ---
#
# class FlakeTraits (frozen):
#   - layer: int in [0, LAYER_COUNT). 0 is the foremost layer.
#   - radius, center_x, sway_amplitude: float, pixels.
#   - fall_speed: float, pixels per millisecond.
#   - sway_period: float, milliseconds per full sway cycle.
#   - Invariants: immutable after construction.
#
# class Snowflake:
#   - spawn(layer: int, viewport_width: float, rng: np.random.Generator) -> Snowflake
#     - Side Effects: consumes draws from rng.
#     - Invariants: y == -radius, 0 <= sway_phase < TAU.
#
#   - advance(self, delta: float) -> None:
#     - Inputs: delta, non-negative milliseconds since the previous frame.
#     - Side Effects: updates y, sway_phase and current_x of this flake only.
#     - Invariants: y never decreases. sway_phase stays in [0, TAU).
#
#   - render(self, target) -> None:
#     - Inputs: any object with draw_circle(center, radius, opacity).
#     - Side Effects: draws onto target. Does not touch the flake's state.


def check_layer(layer: int):
    if not 0 <= layer < LAYER_COUNT:
        raise ValueError(f"Snowflake layer must be in [0, {LAYER_COUNT}), got {layer}.")


@dataclass(frozen=True)
class FlakeTraits:
    """The fixed physical parameters of one snowflake."""

    layer: int
    radius: float
    center_x: float
    sway_amplitude: float
    fall_speed: float
    sway_period: float

    def __post_init__(self):
        check_layer(self.layer)

    @property
    def opacity(self) -> float:
        return LAYER_OPACITY[self.layer]

    @property
    def depth_factor(self) -> float:
        return LAYER_DEPTH_FACTOR[self.layer]


class Snowflake:
    """
    A single falling snowflake with its own position and sway phase.
    """
    def __init__(self, traits: FlakeTraits, sway_phase: float = 0.0, y: Optional[float] = None):
        """
        Args:
            traits (FlakeTraits): The flake's fixed parameters.
            sway_phase (float): Starting position in the sine wave, in radians.
            y (float): Starting height. Defaults to just above the top edge.
        """
        self.traits = traits
        self.y = -traits.radius if y is None else float(y)
        self.sway_phase = sway_phase % TAU
        self.current_x = self._sway_x()

    @classmethod
    def spawn(cls, layer: int, viewport_width: float, rng: np.random.Generator) -> "Snowflake":
        """
        Creates a flake in the given layer with randomized traits.

        Every trait is drawn independently and uniformly from its range in
        constants.py, then scaled by the layer's depth factor where it applies.
        """
        check_layer(layer)
        depth = LAYER_DEPTH_FACTOR[layer]
        traits = FlakeTraits(
            layer=layer,
            radius=float(rng.uniform(*RADIUS_RANGE)) * depth,
            center_x=float(rng.uniform(0.0, viewport_width)),
            sway_amplitude=float(rng.uniform(*SWAY_AMPLITUDE_RANGE)) * depth,
            fall_speed=float(rng.uniform(*FALL_SPEED_RANGE)) * depth,
            sway_period=float(rng.uniform(*SWAY_PERIOD_RANGE)),
        )
        flake = cls(traits, sway_phase=float(rng.uniform(0.0, TAU)))
        logging.debug(
            f"Spawned snowflake in layer {layer} at x={traits.center_x:.1f} "
            f"(radius {traits.radius:.2f}px, speed {traits.fall_speed:.3f}px/ms)."
        )
        return flake

    @property
    def layer(self) -> int:
        return self.traits.layer

    @property
    def position(self) -> Tuple[float, float]:
        return (self.current_x, self.y)

    def _sway_x(self) -> float:
        return self.traits.center_x + self.traits.sway_amplitude * math.sin(self.sway_phase)

    def advance(self, delta: float):
        """Moves the flake forward by `delta` milliseconds."""
        self.y += delta * self.traits.fall_speed

        self.sway_phase = (self.sway_phase + (delta / self.traits.sway_period) * TAU) % TAU

        self.current_x = self._sway_x()

    def render(self, target):
        target.draw_circle(self.position, self.traits.radius, self.traits.opacity)

    def is_below(self, limit: float) -> bool:
        """True once the flake has fallen past the given y coordinate."""
        return self.y > limit
