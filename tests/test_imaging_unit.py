"""
Unit tests for image acquisition.

Tests RasterImage construction from arrays, PIL images and accessors, and
the bytes / base64 / file / URL loaders.
"""
import base64
from unittest.mock import Mock, patch

import cv2
import numpy as np
import pytest
import requests
from PIL import Image

from brilliance.config import config
from brilliance.services.colors.utils import RGB
from brilliance.services.imaging import (
    RasterImage,
    decode_base64_image,
    fetch_image,
    image_source_kind,
    load_image_bytes,
    load_image_file,
    to_raster,
)
from brilliance.services.reliability import InvalidInput


class TestRasterImage:
    """Test RasterImage construction"""

    def test_rgb_array(self):
        pixels = np.zeros((4, 6, 3), dtype=np.uint8)
        pixels[1, 2] = (9, 8, 7)
        image = RasterImage.from_array(pixels)

        assert (image.width, image.height, image.pixel_count) == (6, 4, 24)
        assert image.get_rgb(2, 1) == RGB(9, 8, 7)

    def test_pixels_are_read_only(self):
        image = RasterImage.from_array(np.zeros((2, 2, 3), dtype=np.uint8))
        with pytest.raises(ValueError):
            image.pixels[0, 0] = (1, 1, 1)

    def test_rgba_alpha_is_dropped(self):
        """Alpha is ignored, channels are kept as-is"""
        pixels = np.zeros((2, 2, 4), dtype=np.uint8)
        pixels[:] = (10, 20, 30, 0)
        assert RasterImage.from_array(pixels).get_rgb(1, 1) == RGB(10, 20, 30)

    def test_grayscale_array(self):
        pixels = np.full((3, 3), 77, dtype=np.uint8)
        assert RasterImage.from_array(pixels).get_rgb(0, 2) == RGB(77, 77, 77)

    def test_packed_argb_array(self):
        """Packed 0xAARRGGBB integers are masked to 8-bit channels"""
        pixels = np.array([[0xFF112233, 0x00ABCDEF]], dtype=np.uint32)
        image = RasterImage.from_array(pixels)
        assert image.get_rgb(0, 0) == RGB(0x11, 0x22, 0x33)
        assert image.get_rgb(1, 0) == RGB(0xAB, 0xCD, 0xEF)

    def test_float_array_rejected(self):
        with pytest.raises(InvalidInput):
            RasterImage.from_array(np.zeros((2, 2, 3), dtype=np.float32))

    @pytest.mark.parametrize("shape", [(2, 2, 2), (2, 2, 5), (4,), (0, 3, 3)])
    def test_bad_shapes_rejected(self, shape):
        with pytest.raises(InvalidInput):
            RasterImage.from_array(np.zeros(shape, dtype=np.uint8))

    def test_from_accessor(self):
        """Accessors may return RGB tuples or packed integers"""
        image = RasterImage.from_accessor(3, 2, lambda x, y: (x * 10, y * 10, 5) if x else 0x010203)
        assert image.get_rgb(0, 1) == RGB(1, 2, 3)
        assert image.get_rgb(2, 1) == RGB(20, 10, 5)

    def test_from_accessor_rejects_empty(self):
        with pytest.raises(InvalidInput):
            RasterImage.from_accessor(0, 5, lambda x, y: 0)

    def test_from_pil_rgba_mode(self):
        """Non-RGB PIL modes are converted"""
        pil = Image.new("RGBA", (5, 4), (40, 90, 160, 128))
        image = RasterImage.from_pil(pil)
        assert (image.width, image.height) == (5, 4)
        assert image.get_rgb(4, 3) == RGB(40, 90, 160)


class TestLoaders:
    """Test bytes, base64, file and URL loaders"""

    def test_load_png_bytes(self, two_tone_pixels, two_tone_png):
        image = load_image_bytes(two_tone_png)
        np.testing.assert_array_equal(image.pixels, two_tone_pixels)

    def test_load_invalid_bytes(self):
        with pytest.raises(InvalidInput, match="decode"):
            load_image_bytes(b"definitely not an image")

    def test_load_empty_bytes(self):
        with pytest.raises(InvalidInput, match="Empty"):
            load_image_bytes(b"")

    def test_oversized_payload(self, two_tone_png, monkeypatch):
        monkeypatch.setattr(type(config), "MAX_FILE_MB", 0)
        with pytest.raises(InvalidInput, match="too large"):
            load_image_bytes(two_tone_png)

    def test_decode_base64_png(self):
        """OpenCV decodes BGR; the raster is RGB"""
        bgr = np.zeros((8, 8, 3), dtype=np.uint8)
        bgr[:, :] = (200, 150, 100)
        success, buffer = cv2.imencode(".png", bgr)
        assert success
        b64_str = base64.b64encode(buffer).decode("ascii")

        image = decode_base64_image(b64_str)
        assert image.get_rgb(3, 3) == RGB(100, 150, 200)

        data_url = decode_base64_image("data:image/png;base64," + b64_str)
        assert data_url.get_rgb(0, 0) == RGB(100, 150, 200)

    def test_decode_base64_invalid(self):
        with pytest.raises(InvalidInput):
            decode_base64_image("invalid_base64_data!!")

    def test_decode_base64_not_an_image(self):
        with pytest.raises(InvalidInput):
            decode_base64_image(base64.b64encode(b"plain text").decode("ascii"))

    def test_load_file(self, tmp_path, two_tone_pixels, two_tone_png):
        path = tmp_path / "two_tone.png"
        path.write_bytes(two_tone_png)
        np.testing.assert_array_equal(load_image_file(path).pixels, two_tone_pixels)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(InvalidInput, match="does not exist"):
            load_image_file(tmp_path / "missing.png")

    def test_fetch_image(self, two_tone_png):
        response = Mock(content=two_tone_png)
        response.raise_for_status.return_value = None
        with patch("brilliance.services.imaging.requests.get", return_value=response) as get:
            image = fetch_image("https://example.com/a.png")

        get.assert_called_once_with("https://example.com/a.png", timeout=config.FETCH_TIMEOUT)
        assert image.get_rgb(0, 0) == RGB(220, 30, 40)

    def test_fetch_image_http_error(self):
        response = Mock()
        response.raise_for_status.side_effect = requests.HTTPError("404 Client Error")
        with patch("brilliance.services.imaging.requests.get", return_value=response):
            with pytest.raises(InvalidInput, match="unreachable"):
                fetch_image("https://example.com/missing.png")

    def test_fetch_image_connection_error(self):
        with patch("brilliance.services.imaging.requests.get", side_effect=requests.ConnectionError("refused")):
            with pytest.raises(InvalidInput, match="unreachable"):
                fetch_image("http://localhost:1/a.png")


class TestToRaster:
    """Test source dispatch"""

    def test_passthrough_and_array(self, two_tone_pixels):
        image = RasterImage.from_array(two_tone_pixels)
        assert to_raster(image) is image
        assert to_raster(two_tone_pixels).width == 20

    def test_bytes_and_path(self, tmp_path, two_tone_png):
        path = tmp_path / "img.png"
        path.write_bytes(two_tone_png)
        assert to_raster(two_tone_png).height == 10
        assert to_raster(str(path)).height == 10
        assert to_raster(path).height == 10

    def test_url_dispatch(self):
        with patch("brilliance.services.imaging.fetch_image") as fetch:
            to_raster("HTTPS://example.com/x.png")
        fetch.assert_called_once()

    @pytest.mark.parametrize("source", [None, "", "   ", 42])
    def test_invalid_sources(self, source):
        with pytest.raises(InvalidInput):
            to_raster(source)

    def test_source_kind(self, two_tone_png):
        assert image_source_kind("http://x/y.png") == "url"
        assert image_source_kind("data:image/png;base64,AAAA") == "base64"
        assert image_source_kind("/tmp/a.png") == "file"
        assert image_source_kind(two_tone_png) == "bytes"
        assert image_source_kind(np.zeros((1, 1, 3), dtype=np.uint8)) == "array"
        assert image_source_kind(Image.new("RGB", (1, 1))) == "pil"


def test_encode_png_helper_roundtrip(two_tone_pixels, encode_png):
    """Sanity check for the PNG helper used across tests"""
    assert load_image_bytes(encode_png(two_tone_pixels)).get_rgb(19, 9) == RGB(20, 60, 200)
