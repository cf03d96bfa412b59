"""
Brilliance HTTP service.

Run with ``uvicorn brilliance.main:app``.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from brilliance import __version__
from brilliance.api.v1 import router as v1_router
from brilliance.schemas import HealthResponse
from brilliance.utils.logging import configure_logging

configure_logging()

app = FastAPI(
    title="Brilliance Dominant Color Service",
    description="Extracts the most visually dominant color from an image",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(v1_router)


@app.get("/healthz", response_model=HealthResponse)
def health_check():
    """Service health check."""
    return HealthResponse(ok=True, version=__version__)


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": "Brilliance Dominant Color API",
        "version": __version__,
        "docs": "/docs"
    }
