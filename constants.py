# constants.py
"""
Application-level constants.

These values are static and do not change between runs. They describe the
fixed look of the snowfall (per-layer opacity and depth scaling, the ranges
snowflake traits are drawn from) and the defaults used when config.json
leaves a setting out.
"""
import math

TAU = 2 * math.pi

# --- Parallax Layers ---
# Index 0 is the foremost layer, 2 the farthest back.
LAYER_COUNT = 3
# Opacity of the white flakes per layer. Nearer flakes are more opaque.
LAYER_OPACITY = (0.95, 0.80, 0.60)
# Multiplier applied to radius, sway width and fall speed per layer.
LAYER_DEPTH_FACTOR = (1.0, 0.8, 0.6)
# Layers are drawn back to front so nearer flakes paint over farther ones.
DRAW_ORDER = (2, 1, 0)

# --- Snowflake Trait Ranges (low, high) ---
# All values are before the depth factor is applied, except the sway period.
RADIUS_RANGE = (2.0, 4.0)             # pixels
SWAY_AMPLITUDE_RANGE = (50.0, 170.0)  # pixels
FALL_SPEED_RANGE = (0.02, 0.17)       # pixels per millisecond
SWAY_PERIOD_RANGE = (2500.0, 3500.0)  # milliseconds

# A flake is removed once it has fallen this far past the bottom edge.
OFFSCREEN_MARGIN = 10

# Chance of spawning a flake on any single frame. Tuned for roughly 10 flakes
# per second at 60 fps; it is not scaled by the frame delta.
SPAWN_PROBABILITY = 0.167
DEFAULT_MAX_SNOWFLAKES = 200

# Flakes are pure white; only the alpha channel varies.
FLAKE_RGB = (255, 255, 255)

# --- Visualization ---
DEFAULT_WINDOW_SIZE = (1280, 720)
FRAME_RATE_CAP = 60
BACKGROUND_COLOR = (16, 24, 40)  # Night Blue
WINDOW_CAPTION = "Snowfall"

# Values used for any key config.json does not provide.
DEFAULT_CONFIG = {
    "snowfall": {
        "max_snowflakes": DEFAULT_MAX_SNOWFLAKES,
        "spawn_probability": SPAWN_PROBABILITY,
        "seed": None,
    },
    "visualization": {
        "fullscreen": False,
        "window_width": DEFAULT_WINDOW_SIZE[0],
        "window_height": DEFAULT_WINDOW_SIZE[1],
        "frame_rate_cap": FRAME_RATE_CAP,
        "background_color": list(BACKGROUND_COLOR),
        "caption": WINDOW_CAPTION,
    },
    "run_control": {
        "max_frames": 0,
        "log_throttle_frames": 300,
        "profile": False,
    },
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s - %(levelname)s - %(message)s",
        "log_file": "logs/snowfall.log",
    },
}
