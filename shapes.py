from enum import Enum

import numpy as np


class Shape(Enum):
    """
    Footprint of a tool around its centre.

    `contains` works on plain ints as well as on numpy coordinate grids, so a
    whole bounding box can be tested at once.
    """
    CIRCLE = "circle"
    SQUARE = "square"
    DIAMOND = "diamond"

    def contains(self, x, y, cx, cy, thickness):
        """True where the pixel (x, y) falls inside the shape centred on (cx, cy)."""
        try:
            test = _CONTAINS[self]
        except KeyError:
            raise ValueError(f"Invalid shape: {self!r}") from None
        return test(x - cx, y - cy, thickness)

    def next(self) -> "Shape":
        members = list(Shape)
        return members[(members.index(self) + 1) % len(members)]

    def previous(self) -> "Shape":
        members = list(Shape)
        return members[(members.index(self) - 1) % len(members)]


def _circle(dx, dy, thickness):
    # Boundary inclusive.
    return dx * dx + dy * dy <= thickness * thickness


def _square(dx, dy, thickness):
    return np.maximum(abs(dx), abs(dy)) <= thickness


def _diamond(dx, dy, thickness):
    # Boundary exclusive.
    return abs(dx) + abs(dy) < thickness


_CONTAINS = {
    Shape.CIRCLE: _circle,
    Shape.SQUARE: _square,
    Shape.DIAMOND: _diamond,
}
