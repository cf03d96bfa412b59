"""
Brilliance Configuration
Manages environment variables and defaults for the extractor and the HTTP service.
"""
import os
from typing import Literal, Optional

from dotenv import load_dotenv

load_dotenv()


def _optional_int(name: str) -> Optional[int]:
    """Positive integer from the environment; unset, empty or <= 0 means None."""
    value = os.environ.get(name, "").strip()
    return int(value) if value and int(value) > 0 else None


class Config:
    """Configuration class for Brilliance services."""

    # Extraction defaults
    DEFAULT_QUALITY: int = int(os.environ.get("BRILLIANCE_DEFAULT_QUALITY", "1"))
    DEFAULT_GRAY_TOLERANCE: int = int(os.environ.get("BRILLIANCE_DEFAULT_GRAY_TOLERANCE", "15"))
    DEFAULT_SPEED: int = int(os.environ.get("BRILLIANCE_DEFAULT_SPEED", "2"))
    DEFAULT_SCALE: bool = bool(int(os.environ.get("BRILLIANCE_DEFAULT_SCALE", "0")))
    DEFAULT_INCLUDE_GRAY: bool = bool(int(os.environ.get("BRILLIANCE_DEFAULT_INCLUDE_GRAY", "0")))
    FREQUENCY_TABLE: Literal["dense", "sparse"] = os.environ.get("BRILLIANCE_FREQUENCY_TABLE", "dense")

    # Retry loop guards for the service (unset/0 = unbounded, as in the library)
    MAX_PASSES: Optional[int] = _optional_int("BRILLIANCE_MAX_PASSES")
    TIMEOUT_EXTRACTION: int = int(os.environ.get("BRILLIANCE_TIMEOUT_EXTRACTION", "0"))  # ms

    # Image acquisition
    MAX_FILE_MB: int = int(os.environ.get("BRILLIANCE_MAX_FILE_MB", "10"))
    FETCH_TIMEOUT: float = float(os.environ.get("BRILLIANCE_FETCH_TIMEOUT", "10"))  # seconds

    # Logging
    LOG_LEVEL: str = os.environ.get("BRILLIANCE_LOG_LEVEL", "INFO")
    LOG_JSON: bool = bool(int(os.environ.get("BRILLIANCE_LOG_JSON", "0")))

    # Supported image formats for uploads
    SUPPORTED_MIME_TYPES = ["image/jpeg", "image/png", "image/gif", "image/bmp", "image/webp"]

    @property
    def max_file_bytes(self) -> int:
        return self.MAX_FILE_MB * 1024 * 1024


# Global config instance
config = Config()
