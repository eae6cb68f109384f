"""
Image I/O: decode to RGBA arrays, encode by destination extension, and
verbatim copies for files that need no trimming.
"""

import enum
import os
import shutil
from dataclasses import dataclass

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import CopyError, DecodeError, EncodeError

WEBP_QUALITY = 75


@dataclass(frozen=True)
class DecodedImage:
    """RGBA pixels plus what is needed to write them back faithfully."""

    pixels: np.ndarray
    mode: str
    has_alpha: bool

    @property
    def size(self):
        h, w = self.pixels.shape[:2]
        return (w, h)


@dataclass(frozen=True)
class EncodeOptions:
    pil_format: str
    save_args: tuple = ()
    keeps_alpha: bool = True


class ImageFormat(enum.Enum):
    JPEG = EncodeOptions("JPEG", keeps_alpha=False)
    PNG = EncodeOptions("PNG")
    WEBP = EncodeOptions("WEBP", (("lossless", False), ("quality", WEBP_QUALITY)))
    BMP = EncodeOptions("BMP")
    TIFF = EncodeOptions("TIFF")

    @classmethod
    def from_path(cls, path):
        ext = os.path.splitext(path)[1].lower()
        try:
            return _FORMATS_BY_EXT[ext]
        except KeyError:
            raise EncodeError(f"No encoder for extension '{ext}'") from None


_FORMATS_BY_EXT = {
    ".jpg": ImageFormat.JPEG,
    ".jpeg": ImageFormat.JPEG,
    ".png": ImageFormat.PNG,
    ".webp": ImageFormat.WEBP,
    ".bmp": ImageFormat.BMP,
    ".tif": ImageFormat.TIFF,
    ".tiff": ImageFormat.TIFF,
}


def _has_alpha(img):
    return "A" in img.getbands() or "transparency" in img.info


def _to_rgba(img):
    if img.mode == "I" or img.mode.startswith("I;16"):
        # 16-bit grey: keep the high byte instead of clipping at 255
        grey = np.clip(np.asarray(img).astype(np.int64), 0, 65535) >> 8
        rgba = np.empty(grey.shape + (4,), dtype=np.uint8)
        rgba[..., :3] = grey[..., None]
        rgba[..., 3] = 255
        return rgba
    return np.array(img.convert("RGBA"))


def decode_image(path):
    """
    Read an image file into an RGBA uint8 array.

    16-bit greyscale is scaled down to 8 bits rather than clipped.

    Raises:
        DecodeError: if the file is missing, unreadable or not an image.
    """
    try:
        with Image.open(path) as img:
            mode = img.mode
            has_alpha = _has_alpha(img)
            pixels = _to_rgba(img)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise DecodeError(f"Cannot decode {path}: {exc}") from exc

    return DecodedImage(pixels=pixels, mode=mode, has_alpha=has_alpha)


def encode_image(pixels, path, has_alpha=True):
    """
    Write an RGBA array to `path`, picking the encoder from its extension.

    `.webp` is always written lossy at quality 75; every other format uses
    Pillow's default settings.

    Raises:
        EncodeError: for empty images, unknown extensions or write failures.
    """
    fmt = ImageFormat.from_path(path)
    h, w = pixels.shape[:2]
    if h == 0 or w == 0:
        raise EncodeError(f"Refusing to encode an empty {w}x{h} image: {path}")

    img = Image.fromarray(np.ascontiguousarray(pixels))
    if not (has_alpha and fmt.value.keeps_alpha):
        img = img.convert("RGB")

    try:
        img.save(path, format=fmt.value.pil_format, **dict(fmt.value.save_args))
    except (OSError, ValueError) as exc:
        raise EncodeError(f"Cannot write {path}: {exc}") from exc


def copy_file(src, dst):
    """Copy `src` to `dst` byte for byte, overwriting `dst`."""
    try:
        shutil.copyfile(src, dst)
    except OSError as exc:
        raise CopyError(f"Cannot copy {src} -> {dst}: {exc}") from exc
