"""
Border Trim Engine

Rotate, scan the left edge, crop; four times. Starting from a 90° rotation,
the four scans see the top, right, bottom and left edges of the original
image in that order, and the fourth rotation brings it back upright.
"""

import cv2
import numpy as np

from .color import similarity_mask

STEPS = 4


def rotate90(img):
    """Rotate an RGBA array 90° counter-clockwise into a new array."""
    h, w = img.shape[:2]
    if h == 0 or w == 0:
        # cv2 refuses empty matrices
        return np.empty((w, h) + img.shape[2:], dtype=img.dtype)
    return cv2.rotate(np.ascontiguousarray(img), cv2.ROTATE_90_COUNTERCLOCKWISE)


def get_border(img, color, threshold):
    """
    Width of the leading run of columns made only of border-coloured pixels.

    Returns the full width when every pixel matches the reference colour.
    """
    w = img.shape[1]
    border_cols = similarity_mask(img, color, threshold).all(axis=0)
    content = np.flatnonzero(~border_cols)
    if content.size == 0:
        return w
    return int(content[0])


def crop_left(img, delta):
    """Drop the first `delta` columns."""
    return img[:, delta:].copy()


def trim_borders(img, color, threshold):
    """
    Strip border-coloured margins from all four edges of an RGBA array.

    Returns:
        tuple: (trimmed_array, [top, right, bottom, left], any_cropped)

    When nothing was cropped the returned array has the same pixels as the
    input. An image made entirely of border colour ends up empty.
    """
    current = rotate90(img)
    trimmed = []
    cropped = False

    for step in range(STEPS):
        delta = get_border(current, color, threshold)
        trimmed.append(delta)
        if delta > 0:
            current = crop_left(current, delta)
            cropped = True
        if step < STEPS - 1:
            current = rotate90(current)

    return current, trimmed, cropped
