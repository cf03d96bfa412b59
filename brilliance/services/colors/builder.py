"""
Fluent builder around :func:`extract`.

    color = Brilliance().image("photo.jpg").scale(True).gray_tolerance(100).build()

Setters only record the requested settings. ``build()`` snapshots them into
an immutable :class:`ExtractionConfig`, so the effective (scaled/decayed)
values are read from ``result`` and never written back into the builder.
"""
from typing import Any, Optional

from loguru import logger

from brilliance.config import config as app_config
from brilliance.services.imaging import RasterImage, image_source_kind, to_raster
from brilliance.services.reliability import CancellationToken, InvalidInput
from .dominant import ExtractionConfig, ExtractionResult, extract
from .utils import RGB


class Brilliance:
    """Chainable dominant color builder."""

    def __init__(self):
        self._image: Optional[RasterImage] = None
        self._quality = app_config.DEFAULT_QUALITY
        self._include_gray = app_config.DEFAULT_INCLUDE_GRAY
        self._gray_tolerance = app_config.DEFAULT_GRAY_TOLERANCE
        self._scale = app_config.DEFAULT_SCALE
        self._speed = app_config.DEFAULT_SPEED
        self._log = False
        self._result: Optional[ExtractionResult] = None

    def image(self, source: Any) -> "Brilliance":
        """
        Image used for the color search.

        Accepts a RasterImage, numpy array, PIL image, encoded bytes, file
        path or http(s) URL. Unreadable sources raise ``InvalidInput`` here.
        """
        self._image = to_raster(source)
        logger.debug(f"Loaded {image_source_kind(source)} image: {self._image.width}x{self._image.height}")
        return self

    def scale(self, scale_quality: bool) -> "Brilliance":
        """Derive the quality from the image size (large images only)."""
        self._scale = bool(scale_quality)
        return self

    def quality(self, quality: int) -> "Brilliance":
        """Sampling stride. Lower = more pixels sampled."""
        self._quality = quality
        return self

    def include_gray(self, include_gray: bool) -> "Brilliance":
        """Count gray/white/black pixels as well."""
        self._include_gray = bool(include_gray)
        return self

    def gray_tolerance(self, tolerance: int) -> "Brilliance":
        """Higher = less gray; forces the most vibrant color."""
        self._gray_tolerance = tolerance
        return self

    def speed(self, progressive_decrease: int) -> "Brilliance":
        """Tolerance decrease per retry: ``new = current - speed``."""
        self._speed = progressive_decrease
        return self

    def log(self, logging: bool) -> "Brilliance":
        """Log the color and its statistics after each build."""
        self._log = bool(logging)
        return self

    def copy_from(self, other: Optional["Brilliance"]) -> "Brilliance":
        """Copy image, gray tolerance, include-gray, quality and speed from ``other``."""
        if other is not None:
            self._image = other._image
            self._gray_tolerance = other._gray_tolerance
            self._include_gray = other._include_gray
            self._quality = other._quality
            self._speed = other._speed
        return self

    @property
    def raster(self) -> Optional[RasterImage]:
        return self._image

    @property
    def requested_quality(self) -> int:
        return self._quality

    @property
    def requested_gray_tolerance(self) -> int:
        return self._gray_tolerance

    @property
    def requested_speed(self) -> int:
        return self._speed

    @property
    def scaling(self) -> bool:
        return self._scale

    @property
    def allow_gray(self) -> bool:
        return self._include_gray

    @property
    def logging(self) -> bool:
        return self._log

    @property
    def result(self) -> Optional[ExtractionResult]:
        """Result of the last successful build."""
        return self._result

    @property
    def benchmark(self) -> int:
        """Elapsed milliseconds of the last build (0 before the first)."""
        return self._result.elapsed_ms if self._result is not None else 0

    def config(self) -> ExtractionConfig:
        """Snapshot of the current settings; the table backend comes from config."""
        return ExtractionConfig.from_defaults(
            quality=self._quality,
            include_gray=self._include_gray,
            gray_tolerance=self._gray_tolerance,
            speed=self._speed,
            scale=self._scale,
            log=self._log,
        )

    def build(self, cancel_token: Optional[CancellationToken] = None) -> RGB:
        """Run the extraction and return the dominant color."""
        if self._image is None:
            raise InvalidInput("Specified image is null.")
        self._result = extract(self._image, self.config(), cancel_token=cancel_token)
        return self._result.color
