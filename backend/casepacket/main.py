"""
FastAPI application for the Immigration Packet Assistant.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from datetime import datetime
import logging

from casepacket.config import Config
from casepacket.errors import MissingRequiredField, PacketError
from casepacket.models import HealthResponse, RateLimitStatus
from casepacket.routes.packet_pipeline import router as packet_router, get_ai_client, get_rate_limiter

# Configure logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Immigration Packet Assistant API",
    description="API for intake reconciliation and immigration filing packet generation",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(packet_router)


@app.on_event("startup")
async def startup_event():
    """Initialize application on startup."""
    try:
        Config.validate()
        logger.info("Configuration validated successfully")

        client = get_ai_client()
        if not client.is_available:
            logger.warning("AI API key not configured; classification will use heuristics "
                           "and extraction/narrative requests will be rejected")
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        raise


@app.exception_handler(PacketError)
async def packet_error_handler(request: Request, exc: PacketError):
    """Surface packet errors verbatim with their mapped status code."""
    logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    content = {"detail": exc.message, "error": type(exc).__name__}
    if isinstance(exc, MissingRequiredField):
        content["missing"] = exc.missing
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now()
    )


@app.get("/api/rate-limit", response_model=RateLimitStatus)
async def get_rate_limit_status():
    """Current AI call budget usage."""
    stats = get_rate_limiter().get_stats()
    return RateLimitStatus(
        total_calls=stats['total_calls'],
        max_calls=stats['max_calls'],
        remaining_calls=stats['remaining_calls'],
        calls_by_service=stats['calls_by_service'],
        rate_limiting_enabled=stats['rate_limiting_enabled'],
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "casepacket.main:app",
        host=Config.API_HOST,
        port=Config.API_PORT,
        reload=True
    )
