"""
Brilliance

Extracts the single most visually dominant color from a raster image,
optionally skipping near-gray tones.
"""

__version__ = "1.0.0"

from brilliance.services.colors.builder import Brilliance
from brilliance.services.colors.dominant import ExtractionConfig, ExtractionResult, extract
from brilliance.services.colors.utils import RGB
from brilliance.services.imaging import RasterImage, to_raster
from brilliance.services.reliability import (
    CancellationToken,
    ExtractionCancelled,
    ExtractionTimeoutError,
    InvalidInput,
    RetryLimitExceeded,
)

__all__ = [
    'Brilliance',
    'CancellationToken',
    'ExtractionCancelled',
    'ExtractionConfig',
    'ExtractionResult',
    'ExtractionTimeoutError',
    'InvalidInput',
    'RGB',
    'RasterImage',
    'RetryLimitExceeded',
    'extract',
    'to_raster',
]
