"""
Per-pixel compositing used by the painting tools.

Pixels are numpy arrays whose last axis holds the R, G, B, A channels, so the
same functions serve a single pixel of shape (4,) or a stack of them of shape
(n, 4).
"""

import numpy as np


def _round(values):
    # Half-up rounding of non-negative values, then back to bytes.
    return np.clip(np.floor(values + 0.5), 0, 255).astype(np.uint8)


def source_over(pixels, color, opacity):
    """
    Composite `color` over `pixels` with the colour's own alpha scaled by
    `opacity`. Returns the new pixels, the input is left untouched.
    """
    pixels = np.asarray(pixels, dtype=np.uint8)
    src = np.asarray(color, dtype=np.float64)
    a = src[3] / 255 * opacity
    na = (1 - a) * (pixels[..., 3] / 255)
    da = a + na

    out = np.empty_like(pixels)
    out[..., 3] = _round(255 * da)
    rgb = pixels[..., :3] * na[..., np.newaxis] + src[:3] * a
    out[..., :3] = np.where(da[..., np.newaxis] > 0, _round(rgb), 0)
    return out


def blend(buffer, index, color, opacity):
    """Alpha blend `color` onto the pixel at flat index `index` of `buffer`, in place."""
    flat = buffer.reshape(-1, 4)
    flat[index] = source_over(flat[index], color, opacity)


def erase(pixels, opacity):
    """Decay the alpha channel by `opacity`. Colour channels are kept."""
    pixels = np.array(pixels, dtype=np.uint8)
    pixels[..., 3] = _round(pixels[..., 3] * (1 - opacity))
    return pixels
