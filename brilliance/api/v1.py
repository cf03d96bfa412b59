"""
Brilliance v1 API Routes
Dominant color extraction endpoints and metrics.
"""
from typing import Optional

from fastapi import APIRouter, File, HTTPException, Query, UploadFile

from brilliance.config import config
from brilliance.schemas import DominantColorOptions, DominantColorRequest, DominantColorResponse, ErrorResponse
from brilliance.services.colors.extract_api import handle_extract
from brilliance.services.reliability import (
    ExtractionCancelled,
    ExtractionTimeoutError,
    InvalidInput,
    RetryLimitExceeded,
)
from brilliance.utils.metrics import get_metrics

router = APIRouter(prefix="/v1", tags=["Dominant Color"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid or unreadable image"},
    422: {"model": ErrorResponse, "description": "Invalid options or retry limit reached"},
    504: {"model": ErrorResponse, "description": "Extraction deadline exceeded"},
}


async def _run(**kwargs) -> DominantColorResponse:
    """Translate extraction errors into HTTP errors."""
    try:
        return await handle_extract(**kwargs)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RetryLimitExceeded as e:
        raise HTTPException(status_code=422, detail=str(e))
    except (ExtractionTimeoutError, ExtractionCancelled) as e:
        raise HTTPException(status_code=504, detail=str(e))


@router.post("/dominant",
             response_model=DominantColorResponse,
             responses=ERROR_RESPONSES,
             summary="Dominant color of an uploaded image")
async def dominant_from_upload(
    file: UploadFile = File(..., description="Image file (JPG, PNG, GIF, BMP, WebP)"),
    quality: int = Query(config.DEFAULT_QUALITY, ge=1, le=500, description="Sampling stride (1 = every pixel)"),
    scale: bool = Query(config.DEFAULT_SCALE, description="Auto-scale quality on large images"),
    include_gray: bool = Query(config.DEFAULT_INCLUDE_GRAY, description="Count gray pixels too"),
    gray_tolerance: int = Query(config.DEFAULT_GRAY_TOLERANCE, ge=0, le=500, description="Initial gray tolerance"),
    speed: int = Query(config.DEFAULT_SPEED, ge=1, description="Tolerance decay per retry pass"),
    max_passes: Optional[int] = Query(None, ge=1, description="Optional retry pass cap")
):
    """
    Extract the dominant color from an uploaded image.

    - **quality**: sampling stride over the row-major pixel index (1-500)
    - **scale**: on images of 400,000+ pixels use quality = pixels / 250,000
    - **include_gray**: disable near-gray filtering
    - **gray_tolerance**: initial near-gray threshold (0-500)
    - **speed**: tolerance decrease when a pass finds no color
    - **max_passes**: stop with 422 after this many passes
    """
    options = DominantColorOptions(
        quality=quality,
        scale=scale,
        include_gray=include_gray,
        gray_tolerance=gray_tolerance,
        speed=speed,
        max_passes=max_passes,
    )
    return await _run(file=file, options=options)


@router.post("/dominant/json",
             response_model=DominantColorResponse,
             responses=ERROR_RESPONSES,
             summary="Dominant color of an image URL or base64 payload")
async def dominant_from_json(request: DominantColorRequest):
    """Extract the dominant color from ``image_url`` or ``image_b64``."""
    return await _run(request=request)


@router.get("/metrics", summary="In-process extraction metrics")
def dominant_metrics():
    """Get dominant color extraction metrics."""
    return get_metrics().get_summary()
