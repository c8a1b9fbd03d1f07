"""
FastAPI Application Entry Point
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from voice_campaigns.api.v1.dependencies import get_campaign_service, reset_campaign_service
from voice_campaigns.api.v1.routes import api_router
from voice_campaigns.core.config import get_settings
from voice_campaigns.domain.exceptions import (
    CampaignCoreError,
    ConflictingUpdate,
    InvalidTransition,
    NotFound,
    PreconditionFailed,
)

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

# Domain failure -> HTTP status
ERROR_STATUS_CODES = {
    NotFound: 404,
    InvalidTransition: 409,
    PreconditionFailed: 400,
    ConflictingUpdate: 409,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan - startup and shutdown events.

    Startup:
    - Builds the campaign service (SQL or in-memory store)
    - Seeds the default voice catalogue
    """
    logger.info("Starting Voice Campaign Dialer...")

    service = get_campaign_service()
    logger.info(f"Campaign service ready ({type(service.repository).__name__})")

    yield  # Application is running

    logger.info("Shutting down Voice Campaign Dialer...")
    reset_campaign_service()


app = FastAPI(
    title="Voice Campaign Dialer",
    description="Outbound AI-voice calling campaigns: call progress and statistics",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CampaignCoreError)
async def campaign_error_handler(request: Request, exc: CampaignCoreError):
    status_code = ERROR_STATUS_CODES.get(type(exc), 400)
    logger.info(f"{request.method} {request.url.path} rejected ({status_code}): {exc.message}")
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


# Include API routes
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    return {"message": "Voice Campaign Dialer API", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns basic health status and the storage backend in use.
    """
    health = {"status": "healthy"}

    try:
        service = get_campaign_service()
        health["storage"] = type(service.repository).__name__
        health["campaigns"] = len(service.list_campaigns())
    except Exception as e:
        health["storage"] = f"error: {str(e)}"

    return health


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("voice_campaigns.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
