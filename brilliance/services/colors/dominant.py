"""
Dominant color extraction.

Samples the image at a linear stride over the row-major pixel index,
optionally skips near-gray pixels, counts packed RGB values and returns the
most frequent one. When a pass finds no repeated qualifying color the gray
tolerance is lowered by ``speed`` and the pass is repeated against the same
frequency table.
"""
import dataclasses
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np
from loguru import logger

from brilliance.config import config as app_config
from brilliance.services.imaging import RasterImage, to_raster
from brilliance.services.reliability import (
    CancellationToken,
    Deadline,
    InvalidInput,
    RetryLimitExceeded,
)
from .frequency import TABLE_KINDS, ColorFrequencyTable
from .utils import RGB, near_gray_mask, pack_rgb_array, unpack_rgb

# Fixed policy constants
AUTO_SCALE_MIN_PIXELS = 400_000
AUTO_SCALE_DIVISOR = 250_000
MAX_QUALITY = 500
MAX_GRAY_TOLERANCE = 500


@dataclass(frozen=True)
class ExtractionConfig:
    """
    Immutable per-call extraction settings.

    Fields:
        quality: Sampling stride over the row-major pixel index (1 = every pixel).
        include_gray: Count near-gray pixels too.
        gray_tolerance: Initial near-gray admission threshold (0-500).
        speed: Tolerance decrease applied after each pass that found nothing.
        scale: Derive quality from the pixel count on large images.
        log: Emit the result line at INFO level.
        max_passes: Optional cap on retry passes (None = unbounded).
        timeout_ms: Optional deadline for the whole call.
        table: Frequency table backend, "dense" or "sparse".
    """
    quality: int = 1
    include_gray: bool = False
    gray_tolerance: int = 15
    speed: int = 2
    scale: bool = False
    log: bool = False
    max_passes: Optional[int] = None
    timeout_ms: Optional[float] = None
    table: str = "dense"

    @classmethod
    def from_defaults(cls, **overrides) -> "ExtractionConfig":
        """Build from environment-driven defaults, then apply ``overrides``."""
        values = {
            "quality": app_config.DEFAULT_QUALITY,
            "include_gray": app_config.DEFAULT_INCLUDE_GRAY,
            "gray_tolerance": app_config.DEFAULT_GRAY_TOLERANCE,
            "speed": app_config.DEFAULT_SPEED,
            "scale": app_config.DEFAULT_SCALE,
            "table": app_config.FREQUENCY_TABLE,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of one :func:`extract` call."""
    color: RGB
    elapsed_ms: int
    effective_quality: int
    effective_tolerance: int
    initial_quality: int
    initial_tolerance: int
    speed: int
    width: int
    height: int
    passes: int
    sampled_pixels: int
    max_frequency: int

    @property
    def hex(self) -> str:
        return self.color.hex

    def log_line(self) -> str:
        r, g, b = self.color
        return (f"[{r},{g},{b}] [{self.elapsed_ms}ms] Image: {self.width}x{self.height}, "
                f"Quality: {self.initial_quality} -> {self.effective_quality}, "
                f"Tolerance: {self.initial_tolerance} -> {self.effective_tolerance}, "
                f"Speed: {self.speed}")

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data["color"] = list(self.color)
        data["hex"] = self.hex
        return data


def validate_config(image: Optional[RasterImage], config: ExtractionConfig) -> None:
    """Reject a call before any sampling work. Raises ``InvalidInput``."""
    if image is None:
        raise InvalidInput("Specified image is null.")
    if config.gray_tolerance > MAX_GRAY_TOLERANCE:
        raise InvalidInput(f"Specified gray tolerance is over the max of {MAX_GRAY_TOLERANCE}!")
    if config.quality > MAX_QUALITY:
        raise InvalidInput(f"Specified quality is over the max of {MAX_QUALITY}!")
    if config.quality < 1:
        raise InvalidInput("Specified quality must be at least 1.")
    if config.gray_tolerance < 0:
        raise InvalidInput("Specified gray tolerance must not be negative.")
    if config.speed < 1:
        raise InvalidInput("Specified speed must be at least 1.")
    if config.max_passes is not None and config.max_passes < 1:
        raise InvalidInput("Specified max_passes must be at least 1.")
    if config.timeout_ms is not None and config.timeout_ms < 0:
        raise InvalidInput("Specified timeout must not be negative.")
    if config.table not in TABLE_KINDS:
        raise InvalidInput(f"Unknown frequency table {config.table!r}, expected one of {TABLE_KINDS}")


def scaled_quality(pixel_count: int, quality: int, scale: bool) -> int:
    """Quality actually used: ``floor(pixels / 250000)`` for large images when scaling."""
    if scale and pixel_count >= AUTO_SCALE_MIN_PIXELS:
        return pixel_count // AUTO_SCALE_DIVISOR
    return quality


def sample_indices(pixel_count: int, quality: int) -> np.ndarray:
    """Flat row-major indices ``0, q, 2q, ... < pixel_count``."""
    return np.arange(0, pixel_count, quality, dtype=np.int64)


def sample_pixels(image: RasterImage, quality: int) -> np.ndarray:
    """``(ceil(N / quality), 3)`` uint8 RGB samples in sampling order."""
    return image.flat_pixels()[sample_indices(image.pixel_count, quality)]


def qualifying_colors(samples_rgb: np.ndarray, include_gray: bool, tolerance: int) -> np.ndarray:
    """Packed colors of the samples that count toward the frequency table, in order."""
    if include_gray:
        return pack_rgb_array(samples_rgb)
    keep = ~near_gray_mask(samples_rgb, tolerance)
    return pack_rgb_array(samples_rgb[keep])


def accumulate_pass(table: ColorFrequencyTable, packed: np.ndarray) -> Tuple[int, int]:
    """
    Count one pass of qualifying colors and return ``(max_frequency, dominant)``.

    Equivalent to the sequential rule: for each color read the count before
    incrementing and adopt it as the new maximum only when strictly greater.
    Starting from a maximum of 0, that leaves the largest cumulative count
    minus one, held by the maximal color whose last occurrence in the pass
    comes first. ``(0, 0)`` means no color has been counted twice yet.
    """
    if packed.size == 0:
        return 0, 0

    # Unique over the reversed pass gives each color's last position
    colors, first_in_reversed, occurrences = np.unique(
        packed[::-1], return_index=True, return_counts=True
    )
    last_position = packed.size - 1 - first_in_reversed
    totals = table.counts(colors) + occurrences
    table.increment(colors, occurrences)

    top = int(totals.max())
    if top <= 1:
        return 0, 0

    candidates = np.where(totals == top, last_position, packed.size)
    return top - 1, int(colors[int(np.argmin(candidates))])


def extract(image: Any,
            config: Optional[ExtractionConfig] = None,
            *,
            cancel_token: Optional[CancellationToken] = None) -> ExtractionResult:
    """
    Find the dominant color of ``image``.

    Args:
        image: RasterImage, or any source accepted by
            :func:`~brilliance.services.imaging.to_raster` (numpy array, PIL
            image, encoded bytes, path, URL).
        config: Extraction settings; library defaults when omitted.
        cancel_token: Optional token checked before every retry pass.

    Returns:
        ExtractionResult with the color and the effective quality/tolerance.

    Raises:
        InvalidInput: Missing or unreadable image, or settings out of range.
        ExtractionCancelled: ``cancel_token`` was cancelled during retries.
        ExtractionTimeoutError: ``config.timeout_ms`` elapsed during retries.
        RetryLimitExceeded: ``config.max_passes`` passes found nothing.
    """
    if config is None:
        config = ExtractionConfig()
    if image is not None and not isinstance(image, RasterImage):
        image = to_raster(image)
    validate_config(image, config)

    start = time.perf_counter()
    deadline = Deadline(config.timeout_ms)

    width, height = image.width, image.height
    pixel_count = width * height
    quality = scaled_quality(pixel_count, config.quality, config.scale)
    tolerance = config.gray_tolerance

    samples = sample_pixels(image, quality)
    table = ColorFrequencyTable.create(config.table)
    max_frequency = 0
    dominant = 0
    passes = 0

    while max_frequency == 0:
        if passes > 0:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            deadline.check("dominant color extraction")
            if config.max_passes is not None and passes >= config.max_passes:
                raise RetryLimitExceeded(
                    f"No qualifying color after {passes} passes (tolerance {config.gray_tolerance} -> {tolerance})"
                )

        packed = qualifying_colors(samples, config.include_gray, tolerance)
        max_frequency, dominant = accumulate_pass(table, packed)
        passes += 1
        logger.debug(f"Pass {passes}: sampled={len(samples)} counted={packed.size} "
                     f"tolerance={tolerance} max_frequency={max_frequency}")

        if max_frequency == 0:
            tolerance -= config.speed

    elapsed_ms = int((time.perf_counter() - start) * 1000)
    result = ExtractionResult(
        color=unpack_rgb(dominant),
        elapsed_ms=elapsed_ms,
        effective_quality=quality,
        effective_tolerance=tolerance,
        initial_quality=config.quality,
        initial_tolerance=config.gray_tolerance,
        speed=config.speed,
        width=width,
        height=height,
        passes=passes,
        sampled_pixels=int(len(samples)),
        max_frequency=max_frequency,
    )

    if config.log:
        logger.info(result.log_line())

    return result
