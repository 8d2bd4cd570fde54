"""
Gemini Chat - FastAPI Application

Main entry point for the backend API.
Provides chatroom endpoints with quota-gated, queue-backed AI replies.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gemini_chat.config.settings import settings
from gemini_chat.infrastructure.exceptions import (
    AdmissionDeniedError,
    ChatBackendError,
    EnqueueError,
    NotFoundError,
    ValidationError,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    from gemini_chat.api.dependencies import get_cache_client, get_generation_queue
    from gemini_chat.infrastructure.db.database import close_db, init_db

    # Startup
    logger.info(f"Gemini Chat Backend starting in {settings.environment} mode...")

    if settings.database_url:
        await init_db()
        logger.info("SQLModel database connection pool initialized")
    else:
        logger.warning("DATABASE_URL not set; database-backed routes will fail")

    get_cache_client()
    get_generation_queue()
    logger.info(f"Redis clients ready for {settings.redis_url}")

    yield

    # Shutdown
    await get_cache_client().aclose()
    get_cache_client.cache_clear()
    get_generation_queue().queue.connection.close()
    get_generation_queue.cache_clear()

    await close_db()
    logger.info("Gemini Chat Backend shutting down...")


app = FastAPI(
    title="Gemini Chat",
    description="Chatrooms with asynchronous Gemini replies and daily quotas",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS configuration from Settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Exception Handlers
# ============================================================================

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Handle validation errors."""
    return JSONResponse(
        status_code=400,
        content=exc.to_dict(),
    )


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    """Handle not found errors."""
    return JSONResponse(
        status_code=404,
        content=exc.to_dict(),
    )


@app.exception_handler(AdmissionDeniedError)
async def admission_denied_handler(request: Request, exc: AdmissionDeniedError):
    """Handle exhausted daily quota."""
    return JSONResponse(
        status_code=429,
        content=exc.to_dict(),
    )


@app.exception_handler(EnqueueError)
async def enqueue_error_handler(request: Request, exc: EnqueueError):
    """Queue unavailable; the message is stored and will be swept later."""
    logger.error(f"Enqueue failed: {exc.message}")
    return JSONResponse(
        status_code=503,
        content=exc.to_dict(),
    )


@app.exception_handler(ChatBackendError)
async def general_error_handler(request: Request, exc: ChatBackendError):
    """Handle all other application errors."""
    logger.error(f"{exc.__class__.__name__}: {exc.message}")
    return JSONResponse(
        status_code=500,
        content=exc.to_dict(),
    )


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "gemini-chat"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Gemini Chat API",
        "version": "1.0.0",
        "docs": "/docs",
    }


# ============================================================================
# Import and register routers
# ============================================================================

from gemini_chat.api.routes import chatrooms, users

app.include_router(chatrooms.router, prefix="/api", tags=["Chatrooms"])
app.include_router(users.router, prefix="/api", tags=["Users"])
