"""
Shared fixtures: a virtual clock host, an in-memory surface and a factory
for typewriters wired to both.
"""

import random

import pytest

from twriter.animation.typewriter import Typewriter
from twriter.display.memory_surface import MemorySurface
from twriter.host import VirtualHost


@pytest.fixture
def host():
    return VirtualHost()


@pytest.fixture
def surface(host):
    return MemorySurface(host)


@pytest.fixture
def make_writer(host, surface):
    """Build a typewriter with fixed, fast speeds unless overridden."""

    def _make(**options):
        merged = {"type_speed": 10, "delete_speed": 5, "animate_cursor": False}
        merged.update(options)
        return Typewriter(surface, merged, host=host, rng=random.Random(7))

    return _make


@pytest.fixture
def change_times(surface):
    """Timestamps at which the typed text changed, first frame excluded."""

    def _times():
        return _change_times(surface)

    return _times


def _change_times(surface):
    times = []
    previous = None
    for frame in surface.frames:
        if previous is not None and frame.text != previous:
            times.append(frame.timestamp)
        previous = frame.text
    return times
