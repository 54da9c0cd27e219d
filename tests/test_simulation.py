"""
Tests for the SnowflakeCanvas simulation loop.
"""

import numpy as np
import pytest

from constants import LAYER_OPACITY, OFFSCREEN_MARGIN
from simulation import SnowflakeCanvas, choose_layer, should_spawn
from snowflake import FlakeTraits, Snowflake


class FixedRandom:
    """Stand-in generator that returns scripted values."""

    def __init__(self, randoms=(), integers=()):
        self.randoms = list(randoms)
        self.ints = list(integers)
        self.random_calls = 0

    def random(self):
        self.random_calls += 1
        return self.randoms.pop(0)

    def integers(self, low, high):
        value = self.ints.pop(0)
        assert low <= value < high
        return value

    def uniform(self, low=0.0, high=1.0, size=None):
        return low


def place_flake(canvas, layer, y, fall_speed=0.0):
    traits = FlakeTraits(layer=layer, radius=2.0, center_x=50.0,
                         sway_amplitude=10.0, fall_speed=fall_speed, sway_period=3000.0)
    flake = Snowflake(traits, y=y)
    canvas.snowflakes[layer].append(flake)
    return flake


@pytest.fixture
def canvas(viewport, scheduler, rng):
    return SnowflakeCanvas(viewport, scheduler, max_snowflakes=200, rng=rng)


class TestSpawnPolicy:
    """Pure spawn helpers with an injected random source."""

    def test_spawns_below_probability(self):
        assert should_spawn(FixedRandom(randoms=[0.1]), 0, 10, 0.167)

    def test_no_spawn_above_probability(self):
        assert not should_spawn(FixedRandom(randoms=[0.5]), 0, 10, 0.167)

    def test_no_draw_when_full(self):
        rng = FixedRandom(randoms=[0.0])
        assert not should_spawn(rng, 10, 10, 1.0)
        assert rng.random_calls == 0

    def test_zero_probability_never_spawns(self, rng):
        assert not any(should_spawn(rng, 0, 10, 0.0) for _ in range(1000))

    def test_choose_layer_uniform(self, rng):
        picks = [choose_layer(rng) for _ in range(3000)]
        counts = np.bincount(picks, minlength=3)
        assert set(picks) == {0, 1, 2}
        assert all(800 < c < 1200 for c in counts)


class TestConstruction:
    """Wiring to viewport and scheduler."""

    def test_binds_and_starts_scheduler(self, canvas, scheduler):
        assert scheduler.callback == canvas.tick
        assert scheduler.started

    def test_attaches_overlay_sized_to_viewport(self, canvas, viewport):
        assert viewport.targets == [canvas.target]
        assert (canvas.target.width, canvas.target.height) == viewport.size

    def test_registers_resize_listener(self, canvas, viewport):
        assert viewport.resize_listeners == [canvas.update_canvas_size]

    def test_starts_empty(self, canvas):
        assert canvas.snowflakes == [[], [], []]
        assert canvas.live_count == 0

    def test_default_rng_created(self, viewport, scheduler):
        canvas = SnowflakeCanvas(viewport, scheduler)
        assert isinstance(canvas.rng, np.random.Generator)
        assert canvas.max_snowflakes == 200

    @pytest.mark.parametrize("max_snowflakes", [0, -5, 2.5, "200", True, None])
    def test_invalid_max_rejected(self, viewport, scheduler, max_snowflakes):
        with pytest.raises(ValueError):
            SnowflakeCanvas(viewport, scheduler, max_snowflakes=max_snowflakes)
        assert not scheduler.started

    @pytest.mark.parametrize("probability", [-0.1, 1.5, "0.2"])
    def test_invalid_probability_rejected(self, viewport, scheduler, probability):
        with pytest.raises(ValueError):
            SnowflakeCanvas(viewport, scheduler, spawn_probability=probability)


class TestTick:
    """One frame of the simulation."""

    def test_clears_first(self, canvas):
        place_flake(canvas, 0, y=10.0)
        canvas.tick(16)
        assert canvas.target.calls[0] == ("clear",)

    def test_single_slot_spawns_once(self, viewport, scheduler, rng):
        """With a cap of one and certain spawning only one flake ever lives."""
        canvas = SnowflakeCanvas(viewport, scheduler, max_snowflakes=1, rng=rng,
                                 spawn_probability=1.0)
        canvas.tick(16)
        assert canvas.live_count == 1
        first = next(canvas.iter_snowflakes())
        for _ in range(20):
            canvas.tick(16)
            assert canvas.live_count == 1
            assert next(canvas.iter_snowflakes()) is first

    def test_respawns_after_removal(self, viewport, scheduler, rng):
        canvas = SnowflakeCanvas(viewport, scheduler, max_snowflakes=1, rng=rng,
                                 spawn_probability=1.0)
        canvas.tick(16)
        first = next(canvas.iter_snowflakes())
        first.y = viewport.size[1] + OFFSCREEN_MARGIN + 1
        canvas.tick(0)
        assert canvas.live_count == 0
        canvas.tick(16)
        assert canvas.live_count == 1
        assert next(canvas.iter_snowflakes()) is not first

    def test_spawn_goes_to_chosen_layer(self, viewport, scheduler):
        rng = FixedRandom(randoms=[0.0], integers=[2])
        canvas = SnowflakeCanvas(viewport, scheduler, rng=rng)
        canvas.tick(16)
        assert canvas.layer_counts() == (0, 0, 1)

    def test_cap_never_exceeded(self, viewport, scheduler, rng):
        canvas = SnowflakeCanvas(viewport, scheduler, max_snowflakes=25, rng=rng,
                                 spawn_probability=1.0)
        for _ in range(2000):
            canvas.tick(16)
            assert canvas.live_count <= 25
        assert canvas.live_count > 0

    def test_draw_order_back_to_front(self, canvas):
        for layer in (0, 1, 2, 0, 2, 1):
            place_flake(canvas, layer, y=100.0)
        canvas.spawn_probability = 0.0
        canvas.tick(16)
        opacities = [opacity for _, _, opacity in canvas.target.circles]
        assert opacities == [LAYER_OPACITY[2]] * 2 + [LAYER_OPACITY[1]] * 2 + [LAYER_OPACITY[0]] * 2

    def test_every_flake_advanced_and_drawn_once(self, canvas):
        flakes = [place_flake(canvas, layer, y=0.0, fall_speed=0.1) for layer in (0, 1, 2)]
        canvas.spawn_probability = 0.0
        canvas.tick(100)
        assert len(canvas.target.circles) == 3
        assert all(flake.y == pytest.approx(10.0) for flake in flakes)

    def test_prunes_below_margin(self, canvas, viewport):
        height = viewport.size[1]
        canvas.spawn_probability = 0.0
        keep = place_flake(canvas, 1, y=height + OFFSCREEN_MARGIN)
        gone = place_flake(canvas, 1, y=height + OFFSCREEN_MARGIN + 0.5)
        canvas.tick(0)
        assert canvas.snowflakes[1] == [keep]
        assert gone not in canvas.snowflakes[1]

    def test_prune_keeps_order(self, canvas, viewport):
        height = viewport.size[1]
        canvas.spawn_probability = 0.0
        ys = [0.0, height + 50, 5.0, height + 60, height + 70, 7.0]
        flakes = [place_flake(canvas, 0, y=y) for y in ys]
        canvas.tick(0)
        assert canvas.snowflakes[0] == [flakes[0], flakes[2], flakes[5]]

    def test_removed_on_first_crossing_frame(self, canvas, viewport):
        """A flake is drawn every frame until the one where it crosses the limit."""
        height = viewport.size[1]
        canvas.spawn_probability = 0.0
        flake = place_flake(canvas, 0, y=height, fall_speed=1.0)
        draws = 0
        for _ in range(5):
            canvas.target.circles.clear()
            canvas.tick(4)
            draws += len(canvas.target.circles)
            if not canvas.live_count:
                break
        # y goes 604, 608, 612 -> removed on the third frame
        assert draws == 3
        assert flake.y == pytest.approx(height + 12)
        assert canvas.live_count == 0

    def test_driven_by_scheduler(self, canvas, scheduler):
        canvas.spawn_probability = 1.0
        scheduler.run(10)
        assert canvas.live_count == 10


class TestResize:
    """Viewport resize handling."""

    def test_resize_updates_target(self, canvas, viewport):
        viewport.resize(1024, 768)
        assert (canvas.target.width, canvas.target.height) == (1024, 768)
        assert canvas.target.calls[-2:] == [("clear",), ("resize", 1024, 768)]

    def test_resize_leaves_flakes_alone(self, canvas, viewport):
        for _ in range(30):
            canvas.tick(16)
        before = [(f, f.y, f.sway_phase, f.current_x) for f in canvas.iter_snowflakes()]
        viewport.resize(320, 240)
        after = [(f, f.y, f.sway_phase, f.current_x) for f in canvas.iter_snowflakes()]
        assert after == before

    def test_prune_uses_new_height(self, canvas, viewport):
        canvas.spawn_probability = 0.0
        flake = place_flake(canvas, 2, y=300.0)
        viewport.resize(800, 200)
        canvas.tick(0)
        assert flake not in canvas.snowflakes[2]
