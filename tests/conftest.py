import numpy as np
import pytest

from canvas import Canvas


@pytest.fixture
def canvas():
    """A 5x5 opaque white canvas with a seeded airbrush."""
    return Canvas(5, 5, rng=np.random.default_rng(0))


@pytest.fixture
def white():
    """Factory for opaque white (height, width, 4) buffers."""
    def make(width, height):
        return np.full((height, width, 4), 255, dtype=np.uint8)
    return make
