import logging
from collections import deque

import numpy as np

logger = logging.getLogger(__name__)

# Maximum possible squared distance between two RGBA colours.
MAX_DISTANCE = 4 * 255 * 255


def color_distance(pixels, color):
    """Squared distance over R, G, B and A between `pixels` and `color`."""
    diff = np.asarray(pixels, dtype=np.int64) - np.asarray(color, dtype=np.int64)
    return (diff * diff).sum(axis=-1)


def flood_fill(buffer, x, y, color, threshold, breadth_first=False):
    """
    Recolour the 4-connected region around (x, y) whose pixels are within
    `threshold` of the seed colour.

    `buffer` is an (height, width, 4) uint8 array modified in place and
    `threshold` is in [0, 1], relative to MAX_DISTANCE. Pixels identical to
    the seed always match, so a zero threshold fills the exact-colour region.
    Every pixel is compared against the seed colour captured before any
    write, so the traversal order does not change the result.

    Returns the number of pixels filled.
    """
    height, width = buffer.shape[:2]
    if not (0 <= x < width and 0 <= y < height):
        logger.debug("Fill seed (%d, %d) outside %dx%d buffer", x, y, width, height)
        return 0

    seed = buffer[y, x].copy()
    distance = color_distance(buffer, seed)
    matches = (distance == 0) | (distance < threshold * threshold * MAX_DISTANCE)

    done = np.zeros((height, width), dtype=bool)
    region = np.zeros((height, width), dtype=bool)
    work = deque([(x, y)])
    pop = work.popleft if breadth_first else work.pop

    while work:
        px, py = pop()
        if done[py, px]:
            continue
        done[py, px] = True
        if not matches[py, px]:
            continue
        region[py, px] = True

        if px > 0 and not done[py, px - 1]:
            work.append((px - 1, py))
        if px < width - 1 and not done[py, px + 1]:
            work.append((px + 1, py))
        if py > 0 and not done[py - 1, px]:
            work.append((px, py - 1))
        if py < height - 1 and not done[py + 1, px]:
            work.append((px, py + 1))

    buffer[region] = np.asarray(color, dtype=np.uint8)
    filled = int(region.sum())
    logger.debug("Filled %d pixels from (%d, %d)", filled, x, y)
    return filled
