"""
Shared fixtures and test doubles for the snowfall tests.
"""

import logging
import os

# Pygame must not open a real window during tests.
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import numpy as np
import pytest


class FakeTarget:
    """Records every call the canvas makes on its render target."""

    def __init__(self, width, height):
        self.width = width
        self.height = height
        self.calls = []
        self.circles = []

    def clear(self):
        self.calls.append(("clear",))

    def resize(self, width, height):
        self.calls.append(("resize", width, height))
        self.width = width
        self.height = height

    def draw_circle(self, center, radius, opacity):
        self.calls.append(("draw_circle", center, radius, opacity))
        self.circles.append((center, radius, opacity))


class FakeViewport:
    def __init__(self, width=800, height=600):
        self.size = (width, height)
        self.targets = []
        self.resize_listeners = []

    def attach_overlay(self):
        target = FakeTarget(*self.size)
        self.targets.append(target)
        return target

    def add_resize_listener(self, listener):
        self.resize_listeners.append(listener)

    def resize(self, width, height):
        self.size = (width, height)
        for listener in self.resize_listeners:
            listener(width, height)


class FakeScheduler:
    def __init__(self):
        self.callback = None
        self.started = False

    def bind(self, callback):
        self.callback = callback

    def start(self):
        self.started = True

    def run(self, frames, delta=16.0):
        for _ in range(frames):
            self.callback(delta)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def viewport():
    return FakeViewport()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def target():
    return FakeTarget(800, 600)


@pytest.fixture
def restore_root_logger():
    """Puts the root logger back after a test that called setup_logging."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
