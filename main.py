# main.py
"""
Main entry point for the snowfall overlay.

This script orchestrates the whole lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Opens the window and attaches the snowfall canvas to it.
4. Runs the frame loop until the window is closed or the frame limit is hit.
5. Handles clean shutdown.
"""
import cProfile
import io
import logging
import pstats

import numpy as np

from utils import setup_logging, load_config, validate_config


def log_frame_metrics(frame_num: int, canvas, visualizer) -> None:
    """Throttled status line for the hot loop."""
    counts = canvas.layer_counts()
    logging.info(
        f"Frame {frame_num} | {canvas.live_count}/{canvas.max_snowflakes} snowflakes "
        f"(layers front to back: {counts}) | {visualizer.fps:.1f} fps"
    )
    speeds = [flake.traits.fall_speed for flake in canvas.iter_snowflakes()]
    if speeds:
        logging.debug(
            f"Frame {frame_num} | Mean fall speed: {np.mean(speeds):.4f}px/ms | "
            f"Last delta: {visualizer.last_delta}ms"
        )


def main():
    """
    The main function to run the snowfall.
    """
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config('config.json')
        validate_config(config)
    except Exception as e:
        print(f"FATAL: Could not load config.json. Error: {e}")
        return

    setup_logging(config)

    logging.info("--- Snowfall Starting ---")

    snow_params = config['snowfall']
    vis_params = config['visualization']
    run_params = config['run_control']

    from simulation import SnowflakeCanvas
    from visualization import Visualizer

    # --- Component Initialization ---
    # 1. The visualizer opens the window; it also acts as the frame scheduler.
    visualizer = Visualizer(
        fullscreen=vis_params['fullscreen'],
        window_size=(vis_params['window_width'], vis_params['window_height']),
        frame_rate_cap=vis_params['frame_rate_cap'],
        background_color=vis_params['background_color'],
        caption=vis_params['caption'],
    )

    # 2. All randomness comes from a single generator, seeded if configured.
    rng = np.random.default_rng(snow_params['seed'])

    # 3. The canvas attaches its overlay, binds to the frame clock and starts it.
    canvas = SnowflakeCanvas(
        visualizer, visualizer,
        max_snowflakes=snow_params['max_snowflakes'],
        rng=rng,
        spawn_probability=snow_params['spawn_probability'],
    )

    profiler = cProfile.Profile() if run_params['profile'] else None

    log_throttle = run_params['log_throttle_frames']
    max_frames = run_params['max_frames']
    frame_num = 0

    if profiler:
        profiler.enable()
    try:
        while visualizer.step():
            frame_num += 1

            # Hot loops must throttle logs
            if frame_num % log_throttle == 0:
                log_frame_metrics(frame_num, canvas, visualizer)

            if max_frames and frame_num >= max_frames:
                logging.info(f"Reached max_frames ({max_frames}). Stopping.")
                break
    finally:
        if profiler:
            profiler.disable()
        visualizer.close()
    logging.info(f"Frame loop finished after {frame_num} frames.")

    if profiler:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Snowfall Shutting Down ---")


if __name__ == "__main__":
    main()
