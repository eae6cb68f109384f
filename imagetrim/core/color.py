"""
Colour similarity model used for border detection.

Channels are 8-bit on the way in. Each colour is widened to 16 bits and
premultiplied by its alpha, (v * 257) * a // 255, before the distance is
taken, so the normalised distance lands in the same 0-255 range as the
threshold:

    dist = sqrt((dr² + dg² + db²) / (3 * 256²))

The distance is truncated toward zero before it is compared with the
threshold. A fully transparent pixel compares equal to black.
"""

import math

import numpy as np

BLACK = (0, 0, 0, 255)

MIN_THRESHOLD = 0
MAX_THRESHOLD = 200
DEFAULT_THRESHOLD = 20

_WIDEN = 257
_NORM = 3 * 256 * 256


def clamp_threshold(value):
    """Clamp a threshold into [0, 200]."""
    value = int(value)
    if value < MIN_THRESHOLD:
        return MIN_THRESHOLD
    if value > MAX_THRESHOLD:
        return MAX_THRESHOLD
    return value


def premultiplied(color):
    """16-bit alpha-premultiplied (r, g, b) of an 8-bit RGB or RGBA colour."""
    a = int(color[3]) if len(color) > 3 else 255
    return tuple(int(c) * _WIDEN * a // 255 for c in color[:3])


def color_distance(c1, c2):
    """Normalised, truncated distance between two 8-bit colours."""
    r1, g1, b1 = premultiplied(c1)
    r2, g2, b2 = premultiplied(c2)
    dr, dg, db = r1 - r2, g1 - g2, b1 - b2
    return int(math.sqrt((dr * dr + dg * dg + db * db) / _NORM))


def is_similar_color(c1, c2, threshold):
    return color_distance(c1, c2) <= threshold


def similarity_mask(image, color, threshold):
    """
    Vectorised is_similar_color over a whole RGBA array.

    Returns a (height, width) bool array. int(sqrt(x / n)) <= t is the same
    as x < (t + 1)² * n, which keeps the test in integers.
    """
    alpha = image[..., 3].astype(np.int64)
    ref = premultiplied(color)
    total = np.zeros(image.shape[:2], dtype=np.int64)
    for ch in range(3):
        diff = image[..., ch].astype(np.int64) * _WIDEN * alpha // 255 - ref[ch]
        total += diff * diff

    return total < (threshold + 1) ** 2 * _NORM


def reference_color(image, allow_color):
    """
    Colour treated as border for this image: the top-left pixel when other
    colours are allowed, opaque black otherwise.
    """
    if allow_color:
        return tuple(int(v) for v in image[0, 0])
    return BLACK
