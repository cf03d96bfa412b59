"""
Brilliance API Schemas
Pydantic models for dominant color request/response validation.
"""
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator

from brilliance.config import config


class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = Field(True, description="Service health status")
    version: str = Field(..., description="Service version")
    service: str = Field("brilliance-dominant-color", description="Service name")


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str = Field(..., description="Error message")


# ============================================================================
# DOMINANT COLOR SCHEMAS
# ============================================================================

class DominantColorOptions(BaseModel):
    """Extraction settings accepted by every dominant color endpoint."""
    quality: int = Field(
        config.DEFAULT_QUALITY,
        ge=1,
        le=500,
        description="Sampling stride over the row-major pixel index (1 = every pixel)"
    )
    scale: bool = Field(
        config.DEFAULT_SCALE,
        description="Derive quality from pixel count on images of 400,000+ pixels"
    )
    include_gray: bool = Field(
        config.DEFAULT_INCLUDE_GRAY,
        description="Count gray/white/black pixels as well"
    )
    gray_tolerance: int = Field(
        config.DEFAULT_GRAY_TOLERANCE,
        ge=0,
        le=500,
        description="Initial near-gray admission threshold"
    )
    speed: int = Field(
        config.DEFAULT_SPEED,
        ge=1,
        description="Tolerance decrease per retry pass"
    )
    max_passes: Optional[int] = Field(
        None,
        ge=1,
        description="Optional cap on retry passes (defaults to BRILLIANCE_MAX_PASSES)"
    )


class DominantColorRequest(DominantColorOptions):
    """JSON mode request: exactly one of image_url or image_b64."""
    image_url: Optional[str] = Field(
        None,
        pattern=r"^https?://",
        description="http(s) URL of the image to fetch"
    )
    image_b64: Optional[str] = Field(
        None,
        description="Base64-encoded image bytes, optionally as a data: URL"
    )

    @model_validator(mode="after")
    def check_single_source(self):
        if (self.image_url is None) == (self.image_b64 is None):
            raise ValueError("Provide exactly one of image_url or image_b64")
        return self


class DominantColorResponse(BaseModel):
    """Dominant color and the effective settings used to find it."""
    request_id: str = Field(..., description="Request identifier for tracing")
    hex: str = Field(
        ...,
        pattern=r"^#[0-9A-Fa-f]{6}$",
        description="Dominant color as #RRGGBB"
    )
    rgb: List[int] = Field(
        ...,
        min_length=3,
        max_length=3,
        description="Dominant color as [red, green, blue]"
    )
    elapsed_ms: int = Field(..., ge=0, description="Extraction wall-clock time in milliseconds")
    width: int = Field(..., gt=0, description="Image width in pixels")
    height: int = Field(..., gt=0, description="Image height in pixels")
    initial_quality: int = Field(..., description="Requested sampling stride")
    effective_quality: int = Field(..., description="Sampling stride after auto-scaling")
    initial_tolerance: int = Field(..., description="Requested gray tolerance")
    effective_tolerance: int = Field(..., description="Gray tolerance after decay (may be negative)")
    speed: int = Field(..., description="Tolerance decay step")
    passes: int = Field(..., ge=1, description="Retry loop passes performed")
    sampled_pixels: int = Field(..., ge=0, description="Pixels sampled per pass")
    source: str = Field(..., description="Image source kind: upload, url or base64")
