"""
FastAPI application entry point.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from symbolicator.config import settings
from symbolicator.api import maps, reports
from symbolicator.services.pipeline import start_pipeline, stop_pipeline
from symbolicator.utils.logging import setup_logging, get_logger

# Configure structured logging
setup_logging(settings.log_level)

logger = get_logger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the report pipeline on startup and close it on shutdown."""
    logger.info("Starting JS error symbolicator API")
    await start_pipeline()
    logger.info("Report pipeline initialized")

    yield

    logger.info("Shutting down JS error symbolicator API")
    await stop_pipeline()
    logger.info("Report pipeline closed")


# Create FastAPI application
app = FastAPI(
    title="JS Error Symbolicator",
    description="Captures client-side exceptions and resolves minified stack frames through source maps",
    version=VERSION,
    lifespan=lifespan,
)

# Browsers post reports from the monitored site's origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "healthy", "version": VERSION}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "JS Error Symbolicator API",
        "version": VERSION,
        "docs": "/docs"
    }


# Include API routers
app.include_router(reports.router)
app.include_router(maps.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
