"""
Dominant Color API Orchestrator

Handles Upload and JSON (URL / base64) modes. Coordinates image acquisition,
extraction in the worker threadpool, logging and metrics.
"""
import time
from typing import Optional, Tuple

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from brilliance.config import config
from brilliance.schemas import DominantColorOptions, DominantColorRequest, DominantColorResponse
from brilliance.services.colors.dominant import ExtractionConfig, extract
from brilliance.services.imaging import RasterImage, decode_base64_image, fetch_image, load_image_bytes
from brilliance.services.reliability import InvalidInput
from brilliance.utils.ids import generate_request_id
from brilliance.utils.logging import request_logger
from brilliance.utils.metrics import get_metrics


def build_extraction_config(options: DominantColorOptions) -> ExtractionConfig:
    """Map validated request options onto an immutable extraction config."""
    max_passes = options.max_passes if options.max_passes is not None else (config.MAX_PASSES or None)
    return ExtractionConfig(
        quality=options.quality,
        include_gray=options.include_gray,
        gray_tolerance=options.gray_tolerance,
        speed=options.speed,
        scale=options.scale,
        max_passes=max_passes,
        timeout_ms=config.TIMEOUT_EXTRACTION or None,
        table=config.FREQUENCY_TABLE,
    )


async def handle_extract(
    file: Optional[UploadFile] = None,
    request: Optional[DominantColorRequest] = None,
    options: Optional[DominantColorOptions] = None
) -> DominantColorResponse:
    """
    Main orchestrator for dominant color extraction.

    Args:
        file: Uploaded image file for Upload mode
        request: JSON mode request carrying image_url or image_b64 and options
        options: Extraction options for Upload mode (ignored in JSON mode)

    Returns:
        DominantColorResponse with the color and effective settings

    Raises:
        InvalidInput: For missing, unreadable or oversized images
        RetryLimitExceeded / ExtractionTimeoutError: When the retry guards trip
    """
    request_id = generate_request_id("dom")
    start_time = time.time()
    mode = "upload" if file is not None else "json"
    log = request_logger(request_id, mode=mode)
    metrics = get_metrics()

    log.info("Starting dominant color extraction")

    source = "unknown"
    try:
        if file is None and request is None:
            raise InvalidInput("Either 'file' (Upload) or a JSON request body must be provided")
        if file is not None and request is not None:
            raise InvalidInput("Cannot specify both 'file' and a JSON request body simultaneously")

        if request is not None:
            options = request
        elif options is None:
            options = DominantColorOptions()

        source, raster = await _acquire_image(file, request)
        log = log.bind(source=source)
        decode_time = time.time() - start_time
        log.bind(ms_decode=decode_time * 1000).debug(
            f"Image acquired from {source}: {raster.width}x{raster.height}")

        extraction_config = build_extraction_config(options)
        result = await run_in_threadpool(extract, raster, extraction_config)

        total_time = time.time() - start_time
        log.bind(
            passes=result.passes,
            ms_decode=decode_time * 1000,
            ms_total=total_time * 1000,
            result="ok",
        ).info(result.log_line())

        metrics.increment_request_count(source)
        metrics.record_timing("extract", result.elapsed_ms)
        metrics.record_timing("request", total_time * 1000)
        metrics.record_passes(result.passes)

        return DominantColorResponse(
            request_id=request_id,
            hex=result.hex,
            rgb=list(result.color),
            elapsed_ms=result.elapsed_ms,
            width=result.width,
            height=result.height,
            initial_quality=result.initial_quality,
            effective_quality=result.effective_quality,
            initial_tolerance=result.initial_tolerance,
            effective_tolerance=result.effective_tolerance,
            speed=result.speed,
            passes=result.passes,
            sampled_pixels=result.sampled_pixels,
            source=source,
        )

    except Exception as e:
        error_time = time.time() - start_time
        log.bind(
            source=source,
            ms_total=error_time * 1000,
            result="error",
            error_type=type(e).__name__,
        ).error(f"Dominant color extraction failed: {str(e)}")
        metrics.increment_failure_count(type(e).__name__.lower())
        raise


async def _acquire_image(file: Optional[UploadFile],
                         request: Optional[DominantColorRequest]) -> Tuple[str, RasterImage]:
    """Decode the image for whichever mode was used."""
    if file is not None:
        if file.content_type and file.content_type not in config.SUPPORTED_MIME_TYPES:
            raise InvalidInput(
                f"Unsupported media type. Supported: {', '.join(config.SUPPORTED_MIME_TYPES)}"
            )
        data = await file.read()
        return "upload", await run_in_threadpool(load_image_bytes, data, file.filename or "upload")

    if request.image_url is not None:
        return "url", await run_in_threadpool(fetch_image, request.image_url)

    return "base64", await run_in_threadpool(decode_base64_image, request.image_b64)
