from __future__ import annotations

import io

import pytest
from PIL import Image

from memory_box.errors import ImagePreparationError
from memory_box.images import compress_image, decode_data_url, to_data_url


def _open(data_url: str) -> Image.Image:
    media_type, payload = decode_data_url(data_url)
    assert media_type == "image/jpeg"
    return Image.open(io.BytesIO(payload))


def test_large_photo_is_downscaled_to_max_edge(make_image):
    data_url = compress_image(make_image(size=(3000, 2000)))
    image = _open(data_url)
    assert image.format == "JPEG"
    assert image.size == (1280, 853)


def test_portrait_photo_limits_height(make_image):
    image = _open(compress_image(make_image(size=(1000, 2560), fmt="JPEG")))
    assert image.size == (500, 1280)


def test_small_photo_is_not_upscaled(make_image):
    image = _open(compress_image(make_image(size=(100, 50))))
    assert image.size == (100, 50)


def test_transparent_png_becomes_jpeg(make_image):
    png = make_image(size=(40, 40), mode="RGBA", color=(255, 0, 0, 128))
    image = _open(compress_image(png))
    assert image.mode == "RGB"


def test_unreadable_bytes_raise():
    with pytest.raises(ImagePreparationError):
        compress_image(b"definitely not an image")


def test_data_url_round_trip():
    url = to_data_url(b"\x89PNG", "image/png")
    assert url.startswith("data:image/png;base64,")
    assert decode_data_url(url) == ("image/png", b"\x89PNG")


@pytest.mark.parametrize(
    "url", ["https://example.com/a.jpg", "data:image/png,plain", "data:;base64,@@@"]
)
def test_invalid_data_urls(url: str):
    with pytest.raises(ValueError):
        decode_data_url(url)
