import logging
import math
from typing import Callable, List, Optional, Tuple

import numpy as np
from PIL import Image

from compositing import erase, source_over
from flood_fill import flood_fill
from history import HistoryEntry, HistoryStack
from shapes import Shape
from tool_config import Tool, ToolConfig

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int, int]
ResizeListener = Callable[[int, int], None]

DEFAULT_COLOR = (0, 0, 0, 255)


class Canvas:
    """
    Manages the drawing canvas: the RGBA pixel buffer, the active colour and
    tool configuration, the per-stroke pixel mask and the undo/redo history.
    """
    def __init__(
        self,
        width: int,
        height: int,
        image=None,
        config: Optional[ToolConfig] = None,
        history_limit: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config if config is not None else ToolConfig()
        self.color: Color = DEFAULT_COLOR
        self.history = HistoryStack(history_limit)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.buffer: Optional[np.ndarray] = None
        self.done: Optional[np.ndarray] = None
        self.width = 0
        self.height = 0
        self._resize_listeners: List[ResizeListener] = []
        self.resize(width, height, image)

    @property
    def pixels(self) -> np.ndarray:
        """The live (height, width, 4) buffer, ready for presentation."""
        return self.buffer

    @property
    def data(self) -> np.ndarray:
        """Flat row-major RGBA view of the buffer."""
        return self.buffer.reshape(-1)

    def add_resize_listener(self, callback: ResizeListener) -> None:
        self._resize_listeners.append(callback)

    def remove_resize_listener(self, callback: ResizeListener) -> None:
        self._resize_listeners.remove(callback)

    def resize(self, width: int, height: int, image=None) -> None:
        """
        Replace the buffer with a new one of the given size. Without an image
        the canvas is opaque white, otherwise the image is drawn at the origin
        over transparent pixels.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid canvas size {width}x{height}")
        if image is None:
            buffer = np.full((height, width, 4), 255, dtype=np.uint8)
        else:
            buffer = np.zeros((height, width, 4), dtype=np.uint8)
            source = _image_array(image)
            h = min(height, source.shape[0])
            w = min(width, source.shape[1])
            buffer[:h, :w] = source[:h, :w]
        self._set_buffer(buffer)
        logger.debug("Canvas resized to %dx%d", width, height)
        self._notify_resize()

    def set_color(self, r: int, g: int, b: int, a: int = 255) -> bool:
        color = (r, g, b, a)
        if not all(_is_channel(c) for c in color):
            logger.warning("Invalid color %r, keeping %r", color, self.color)
            return False
        self.color = tuple(int(c) for c in color)
        return True

    def start_stroke(self) -> None:
        """Start a new stroke: every pixel may be painted once again."""
        self.done.fill(False)

    def tool_action(self, x: int, y: int) -> None:
        """Apply the active tool centred on (x, y)."""
        tool = self.config.tool
        if tool is Tool.PICKER:
            self.picker(x, y)
            return
        if tool is Tool.FILLER:
            self.filler(x, y)
            return

        try:
            action = self._PIXEL_ACTIONS[tool]
        except KeyError:
            raise ValueError(f"Invalid tool: {tool!r}") from None

        box = self._box(x, y)
        if box is None:
            return
        inside = self._inside(box, x, y)
        fresh = inside & ~self.done[box]
        action(self, self.buffer[box], fresh)
        self.done[box] |= fresh

    def tool_line(self, x1: int, y1: int, x2: int, y2: int) -> None:
        """Apply the active tool at every point of the line (Bresenham's algorithm)."""
        dx = abs(x2 - x1)
        dy = abs(y2 - y1)
        sx = 1 if x1 < x2 else -1
        sy = 1 if y1 < y2 else -1
        err = dx - dy

        while True:
            self.tool_action(x1, y1)
            if x1 == x2 and y1 == y2:
                break
            e2 = 2 * err
            if e2 > -dy:
                err -= dy
                x1 += sx
            if e2 < dx:
                err += dx
                y1 += sy

    def _brush(self, region, fresh):
        region[fresh] = source_over(region[fresh], self.color, self.config.opacity)

    def _airbrush(self, region, fresh):
        hits = fresh & (self.rng.random(fresh.shape) < self.config.density)
        region[hits] = source_over(region[hits], self.color, self.config.opacity)

    def _eraser(self, region, fresh):
        region[fresh] = erase(region[fresh], self.config.opacity)

    _PIXEL_ACTIONS = {
        Tool.BRUSH: _brush,
        Tool.AIRBRUSH: _airbrush,
        Tool.ERASER: _eraser,
    }

    def filler(self, x: int, y: int) -> int:
        """Bucket fill from (x, y) with the active colour, alpha scaled by opacity."""
        r, g, b, a = self.color
        fill = (r, g, b, int(a * self.config.opacity + 0.5))
        return flood_fill(self.buffer, x, y, fill, self.config.threshold)

    def picker(self, x: int, y: int) -> Color:
        """
        Set the active colour from the canvas: the exact pixel for thin tools,
        otherwise the truncated average over the tool's shape.
        """
        if self.config.thickness <= 1:
            if 0 <= x < self.width and 0 <= y < self.height:
                self.color = tuple(int(c) for c in self.buffer[y, x])
            return self.color

        box = self._box(x, y)
        if box is None:
            return self.color
        samples = self.buffer[box][self._inside(box, x, y)]
        n = len(samples)
        if n == 0:
            return self.color
        totals = samples.sum(axis=0, dtype=np.int64)
        self.color = tuple(int(total) // n for total in totals)
        return self.color

    def snapshot(self) -> None:
        """Save the current buffer for undo."""
        self.history.snapshot(self.buffer)

    def undo(self) -> bool:
        """Restores the previous canvas state."""
        entry = self.history.undo(self.buffer)
        if entry is None:
            logger.debug("Nothing to undo")
            return False
        self._restore(entry)
        return True

    def redo(self) -> bool:
        """Restores a previously undone canvas state."""
        entry = self.history.redo(self.buffer)
        if entry is None:
            logger.debug("Nothing to redo")
            return False
        self._restore(entry)
        return True

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    def _restore(self, entry: HistoryEntry) -> None:
        resized = (entry.width, entry.height) != (self.width, self.height)
        self._set_buffer(entry.restore())
        if resized:
            self._notify_resize()

    def _set_buffer(self, buffer: np.ndarray) -> None:
        self.buffer = buffer
        self.height, self.width = buffer.shape[:2]
        if self.done is None or self.done.shape != (self.height, self.width):
            self.done = np.zeros((self.height, self.width), dtype=bool)

    def _notify_resize(self) -> None:
        for callback in list(self._resize_listeners):
            callback(self.width, self.height)

    def _box(self, x: int, y: int):
        """Bounding box of the tool around (x, y), clipped to the canvas."""
        t = self.config.thickness
        y0 = max(0, math.ceil(y - t))
        y1 = min(self.height - 1, math.floor(y + t))
        x0 = max(0, math.ceil(x - t))
        x1 = min(self.width - 1, math.floor(x + t))
        if y0 > y1 or x0 > x1:
            return None
        return slice(y0, y1 + 1), slice(x0, x1 + 1)

    def _inside(self, box, x: int, y: int) -> np.ndarray:
        rows, cols = box
        ys, xs = np.mgrid[rows, cols]
        return Shape.contains(self.config.shape, xs, ys, x, y, self.config.thickness)


def _is_channel(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        return False
    return 0 <= value <= 255


def _image_array(image) -> np.ndarray:
    if isinstance(image, Image.Image):
        return np.asarray(image.convert("RGBA"), dtype=np.uint8)
    array = np.asarray(image, dtype=np.uint8)
    if array.ndim != 3 or array.shape[2] != 4:
        raise ValueError(f"Expected an RGBA image, got array of shape {array.shape}")
    return array
