import numpy as np
import pytest
from PIL import Image

from imagetrim.core.codec import (
    WEBP_QUALITY,
    ImageFormat,
    copy_file,
    decode_image,
    encode_image,
)
from imagetrim.core.errors import CopyError, DecodeError, EncodeError


@pytest.mark.parametrize("name, fmt", [
    ("a.jpg", ImageFormat.JPEG),
    ("a.JPEG", ImageFormat.JPEG),
    ("a.png", ImageFormat.PNG),
    ("a.Webp", ImageFormat.WEBP),
    ("a.bmp", ImageFormat.BMP),
    ("a.tiff", ImageFormat.TIFF),
    ("a.tif", ImageFormat.TIFF),
])
def test_format_from_extension(name, fmt):
    assert ImageFormat.from_path(name) is fmt


def test_unknown_extension():
    with pytest.raises(EncodeError):
        ImageFormat.from_path("a.gif")


def test_only_webp_carries_options():
    assert dict(ImageFormat.WEBP.value.save_args) == {"lossless": False, "quality": 75}
    for fmt in ImageFormat:
        if fmt is not ImageFormat.WEBP:
            assert fmt.value.save_args == ()


def test_webp_saved_at_quality_75(tmp_path, bordered, monkeypatch):
    calls = []
    monkeypatch.setattr(Image.Image, "save", lambda self, fp, format=None, **params: calls.append((format, params)))

    encode_image(bordered(8, 8, 1, 1, 1, 1), str(tmp_path / "out.webp"))

    assert calls == [("WEBP", {"lossless": False, "quality": WEBP_QUALITY})]


def test_png_saved_with_defaults(tmp_path, bordered, monkeypatch):
    calls = []
    monkeypatch.setattr(Image.Image, "save", lambda self, fp, format=None, **params: calls.append((format, params)))

    encode_image(bordered(8, 8, 1, 1, 1, 1), str(tmp_path / "out.png"))

    assert calls == [("PNG", {})]


def test_decode_normalises_to_rgba(save_image, bordered):
    img = bordered(5, 7, 1, 1, 1, 1)
    path = save_image("rgb.png", img, mode="RGB")

    decoded = decode_image(path)

    assert decoded.pixels.shape == (5, 7, 4)
    assert decoded.pixels.dtype == np.uint8
    assert decoded.size == (7, 5)
    assert decoded.mode == "RGB"
    assert not decoded.has_alpha
    assert np.all(decoded.pixels[..., 3] == 255)
    assert np.array_equal(decoded.pixels[..., :3], img[..., :3])


def test_decode_keeps_alpha_flag(save_image, bordered):
    decoded = decode_image(save_image("rgba.png", bordered(4, 4, 1, 1, 1, 1)))
    assert decoded.has_alpha


def test_decode_garbage(tmp_path):
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"definitely not a jpeg")
    with pytest.raises(DecodeError):
        decode_image(path)


def test_decode_missing_file(tmp_path):
    with pytest.raises(DecodeError):
        decode_image(tmp_path / "missing.png")


def test_encode_empty_image(tmp_path):
    with pytest.raises(EncodeError):
        encode_image(np.empty((0, 0, 4), dtype=np.uint8), str(tmp_path / "out.png"))
    assert not (tmp_path / "out.png").exists()


def test_encode_into_missing_folder(tmp_path, bordered):
    with pytest.raises(EncodeError):
        encode_image(bordered(4, 4, 1, 1, 1, 1), str(tmp_path / "nope" / "out.png"))


def test_jpeg_is_written_as_rgb(tmp_path, bordered):
    path = tmp_path / "out.jpg"
    encode_image(bordered(8, 8, 1, 1, 1, 1), str(path), has_alpha=True)
    with Image.open(path) as img:
        assert img.mode == "RGB"
        assert img.size == (8, 8)


@pytest.mark.parametrize("has_alpha, mode", [(True, "RGBA"), (False, "RGB")])
def test_png_keeps_source_alpha(tmp_path, bordered, has_alpha, mode):
    path = tmp_path / "out.png"
    encode_image(bordered(4, 6, 1, 1, 1, 1), str(path), has_alpha=has_alpha)
    with Image.open(path) as img:
        assert img.mode == mode
        assert img.size == (6, 4)


def test_non_contiguous_pixels(tmp_path, bordered):
    img = bordered(6, 6, 1, 1, 1, 1)[:, ::2]
    path = tmp_path / "out.bmp"
    encode_image(img, str(path))
    with Image.open(path) as reread:
        assert reread.size == (3, 6)


def test_copy_file_is_verbatim(tmp_path):
    src = tmp_path / "a.png"
    src.write_bytes(bytes(range(256)) * 3)
    dst = tmp_path / "b.png"

    copy_file(src, dst)

    assert dst.read_bytes() == src.read_bytes()


def test_copy_file_failure(tmp_path):
    with pytest.raises(CopyError):
        copy_file(tmp_path / "missing.png", tmp_path / "b.png")


def test_16bit_grey_is_scaled_not_clipped(save_image):
    grey = np.full((4, 5), 1000, dtype=np.uint16)
    grey[1, 1] = 40000
    grey[2, 2] = 65535
    path = save_image("scan16.png", grey)

    decoded = decode_image(path)

    assert decoded.pixels.shape == (4, 5, 4)
    assert tuple(decoded.pixels[0, 0]) == (3, 3, 3, 255)
    assert tuple(decoded.pixels[1, 1]) == (156, 156, 156, 255)
    assert tuple(decoded.pixels[2, 2]) == (255, 255, 255, 255)
    assert not decoded.has_alpha


def test_oversized_image_is_a_decode_error(save_image, canvas, monkeypatch):
    path = save_image("huge.png", canvas(40, 40, (0, 0, 0, 255)))
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 500)

    with pytest.raises(DecodeError):
        decode_image(path)
