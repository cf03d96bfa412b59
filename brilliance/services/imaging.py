"""
Brilliance Imaging Utilities
Raster image model plus acquisition from arrays, PIL images, bytes, base64,
files and URLs. Every acquisition failure surfaces as ``InvalidInput``.
"""
import base64
import binascii
import io
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Union

import cv2
import numpy as np
import requests
from loguru import logger
from PIL import Image, UnidentifiedImageError

from brilliance.config import config
from brilliance.services.colors.utils import RGB, unpack_rgb
from brilliance.services.reliability import InvalidInput


PixelAccessor = Callable[[int, int], Union[RGB, tuple, int]]


@dataclass(frozen=True, eq=False)
class RasterImage:
    """
    Immutable decoded image.

    Fields:
        pixels: ``(height, width, 3)`` uint8 RGB array, read-only.
    """
    pixels: np.ndarray

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 3 or self.pixels.dtype != np.uint8:
            raise InvalidInput(f"Expected (H, W, 3) uint8 pixels, got {self.pixels.shape} {self.pixels.dtype}")
        if self.pixels.shape[0] == 0 or self.pixels.shape[1] == 0:
            raise InvalidInput("Image has no pixels")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def get_rgb(self, x: int, y: int) -> RGB:
        r, g, b = self.pixels[y, x]
        return RGB(int(r), int(g), int(b))

    def flat_pixels(self) -> np.ndarray:
        """Row-major ``(N, 3)`` view: flat index ``i`` is pixel ``(i % width, i // width)``."""
        return self.pixels.reshape(-1, 3)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "RasterImage":
        """
        Build from a numpy array.

        Accepts ``(H, W, 3)`` RGB, ``(H, W, 4)`` RGBA (alpha dropped),
        ``(H, W)`` / ``(H, W, 1)`` grayscale uint8, and ``(H, W)`` wider
        integer arrays holding packed ``0xAARRGGBB`` values.
        """
        if array is None:
            raise InvalidInput("Specified image is null.")
        array = np.asarray(array)
        if not np.issubdtype(array.dtype, np.integer):
            raise InvalidInput(f"Unsupported pixel dtype: {array.dtype}")

        if array.ndim == 3 and array.shape[2] == 1:
            array = array[:, :, 0]

        if array.ndim == 2:
            if array.dtype == np.uint8:
                rgb = np.repeat(array[:, :, None], 3, axis=2)
            else:
                packed = array.astype(np.int64)
                rgb = np.stack([(packed >> 16) & 0xFF, (packed >> 8) & 0xFF, packed & 0xFF], axis=-1)
        elif array.ndim == 3 and array.shape[2] in (3, 4):
            rgb = array[:, :, :3]
        else:
            raise InvalidInput(f"Unsupported image array shape: {array.shape}")

        rgb = np.ascontiguousarray(rgb.astype(np.int64) & 0xFF, dtype=np.uint8)
        rgb.setflags(write=False)
        return cls(pixels=rgb)

    @classmethod
    def from_pil(cls, image: Image.Image) -> "RasterImage":
        if image.mode != 'RGB':
            image = image.convert('RGB')
        return cls.from_array(np.array(image))

    @classmethod
    def from_accessor(cls, width: int, height: int, accessor: PixelAccessor) -> "RasterImage":
        """Materialise an image from an ``(x, y) -> RGB | packed int`` accessor."""
        if width <= 0 or height <= 0:
            raise InvalidInput(f"Invalid image dimensions: {width}x{height}")
        rgb = np.empty((height, width, 3), dtype=np.uint8)
        for y in range(height):
            for x in range(width):
                value = accessor(x, y)
                rgb[y, x] = unpack_rgb(value) if isinstance(value, (int, np.integer)) else tuple(value)[:3]
        rgb.setflags(write=False)
        return cls(pixels=rgb)


def _check_payload_size(size: int, source: str) -> None:
    if size == 0:
        raise InvalidInput(f"Empty image payload from {source}")
    if size > config.max_file_bytes:
        raise InvalidInput(f"Image too large from {source}. Maximum size: {config.MAX_FILE_MB}MB")


def load_image_bytes(data: bytes, source: str = "bytes") -> RasterImage:
    """Decode encoded image bytes (any Pillow-supported format)."""
    _check_payload_size(len(data), source)
    try:
        pil_image = Image.open(io.BytesIO(data))
        pil_image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidInput(f"Failed to decode image from {source}: {str(e)}") from e
    return RasterImage.from_pil(pil_image)


def decode_base64_image(b64_data: str) -> RasterImage:
    """Decode base64 image data (``data:`` URL prefix allowed) with OpenCV."""
    if ',' in b64_data:
        b64_data = b64_data.split(',', 1)[1]
    try:
        img_bytes = base64.b64decode(b64_data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInput(f"Invalid base64 image data: {str(e)}") from e

    _check_payload_size(len(img_bytes), "base64")
    nparr = np.frombuffer(img_bytes, np.uint8)
    image_bgr = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    if image_bgr is None:
        raise InvalidInput("Failed to decode image data")

    return RasterImage.from_array(cv2.cvtColor(image_bgr, cv2.COLOR_BGR2RGB))


def load_image_file(file_path: Union[str, Path]) -> RasterImage:
    path = Path(file_path)
    if not path.exists() or not path.is_file():
        raise InvalidInput(f"Specified file path does not exist: {path}")
    return load_image_bytes(path.read_bytes(), source=str(path))


def fetch_image(url: str) -> RasterImage:
    """Fetch and decode an image from an http(s) URL."""
    logger.debug(f"Fetching image from {url}")
    try:
        response = requests.get(url, timeout=config.FETCH_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        raise InvalidInput(f"Specified image URL is unreachable: {url} ({str(e)})") from e
    return load_image_bytes(response.content, source=url)


def is_url(value: str) -> bool:
    return value.lower().startswith(("http://", "https://"))


def to_raster(source: Any) -> RasterImage:
    """
    Coerce any supported image source into a :class:`RasterImage`.

    Supported: RasterImage, numpy array, PIL image, bytes-like, ``data:``
    URL, http(s) URL string, filesystem path.
    """
    if source is None:
        raise InvalidInput("Specified image is null.")
    if isinstance(source, RasterImage):
        return source
    if isinstance(source, np.ndarray):
        return RasterImage.from_array(source)
    if isinstance(source, Image.Image):
        return RasterImage.from_pil(source)
    if isinstance(source, (bytes, bytearray, memoryview)):
        return load_image_bytes(bytes(source))
    if isinstance(source, str):
        if not source.strip():
            raise InvalidInput("Specified image string is empty.")
        if is_url(source):
            return fetch_image(source)
        if source.startswith("data:"):
            return decode_base64_image(source)
        return load_image_file(source)
    if isinstance(source, Path):
        return load_image_file(source)
    raise InvalidInput(f"Unsupported image source type: {type(source).__name__}")


def image_source_kind(source: Any) -> str:
    """Short label for metrics and logs."""
    if isinstance(source, str):
        if is_url(source):
            return "url"
        return "base64" if source.startswith("data:") else "file"
    if isinstance(source, (bytes, bytearray, memoryview)):
        return "bytes"
    if isinstance(source, Path):
        return "file"
    if isinstance(source, Image.Image):
        return "pil"
    if isinstance(source, (np.ndarray, RasterImage)):
        return "array"
    return "unknown"
