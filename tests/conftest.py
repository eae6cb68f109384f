import numpy as np
import pytest
from PIL import Image

BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255, 255)


def _canvas(h, w, color):
    img = np.empty((h, w, 4), dtype=np.uint8)
    img[...] = color
    return img


@pytest.fixture
def canvas():
    """Solid RGBA array factory: canvas(h, w, color)."""
    return _canvas


@pytest.fixture
def bordered():
    """
    Image with a solid border of the given widths around random content that
    is never close to black.
    """

    def build(h, w, top, right, bottom, left, border=BLACK, seed=0):
        img = _canvas(h, w, border)
        rng = np.random.default_rng(seed)
        content = img[top:h - bottom, left:w - right]
        content[..., :3] = rng.integers(100, 256, size=content.shape[:2] + (3,))
        content[..., 3] = 255
        return img

    return build


@pytest.fixture
def save_image(tmp_path):
    """Write an RGBA array to tmp_path/name; `mode` converts before saving."""

    def save(name, pixels, mode=None, folder=None, **params):
        path = (folder or tmp_path) / name
        path.parent.mkdir(parents=True, exist_ok=True)
        img = Image.fromarray(pixels)
        if mode is not None:
            img = img.convert(mode)
        img.save(path, **params)
        return path

    return save
