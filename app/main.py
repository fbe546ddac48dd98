"""
Chat History Backend - FastAPI application entry point.

A small chat backend where named users:
- Register and log in by name + generated id
- Exchange messages with an OpenAI chat model
- Keep one persisted conversation history each
"""

import logging
import traceback
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import api_router
from app.core.config import settings
from app.core.errors import ChatAppError, ConfigurationError
from app.schemas.chat import HealthResponse, StatusBanner
from app.services.completion_gateway import CompletionGateway
from app.services.conversation_service import ConversationService
from app.services.conversation_store import ConversationStore
from app.services.database import database
from app.services.user_directory import UserDirectory

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("chatapp")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup (fails the process if the database never comes up):
    - Require DATABASE_URL and connect with bounded retries
    - Build the completion gateway (disabled without OPENAI_API_KEY)
    - Wire the user directory and conversation service onto app.state

    Shutdown:
    - Close database connections
    """
    logger.info("Starting up %s...", settings.PROJECT_NAME)

    if not settings.DATABASE_URL:
        logger.critical("DATABASE_URL is not configured - refusing to start")
        raise ConfigurationError("DATABASE_URL is not configured")

    await database.connect_with_retry()

    gateway = CompletionGateway.from_settings()
    store = ConversationStore(database)

    app.state.completion_gateway = gateway
    app.state.user_directory = UserDirectory(database, store)
    app.state.conversation_service = ConversationService(store, gateway)

    yield

    logger.info("Shutting down...")
    await database.close()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Named-user chat backend with persisted conversation history",
    version="0.1.0",
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    lifespan=lifespan,
)

# =============================================================================
# Middleware
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security headers; API responses are also marked non-cacheable."""
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    if request.url.path.startswith(settings.API_PREFIX):
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        response.headers["Pragma"] = "no-cache"

    return response


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info("%s %s", request.method, request.url.path)
    return await call_next(request)


@app.middleware("http")
async def catch_exceptions_middleware(request: Request, call_next):
    """
    Global exception handler for anything the error handlers did not map.

    Logs the full exception and returns a generic 500. In development the
    exception text and traceback are included in the body.
    """
    try:
        return await call_next(request)
    except Exception as exc:
        logger.exception("Unhandled exception during request to %s", request.url.path)

        content = {"error": "Internal server error"}
        if settings.is_development:
            content["details"] = str(exc)
            content["stack"] = traceback.format_exc()
        return JSONResponse(status_code=500, content=content)


# =============================================================================
# Error handlers
# =============================================================================


@app.exception_handler(ChatAppError)
async def chat_app_error_handler(request: Request, exc: ChatAppError):
    if exc.status_code >= 500:
        logger.error("%s on %s: %s (%s)", type(exc).__name__, request.url.path, exc.message, exc.details)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(include_details=settings.is_development),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as 400 in the application's error shape."""
    details = [
        {"field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Invalid request body", "details": details})


# =============================================================================
# Routes
# =============================================================================

app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/", response_model=StatusBanner)
async def root(request: Request) -> StatusBanner:
    """Status banner."""
    gateway: CompletionGateway | None = getattr(request.app.state, "completion_gateway", None)
    if gateway is not None and gateway.is_configured:
        provider = f"OpenAI configured (model {gateway.model})"
    else:
        provider = "OpenAI not configured - chat disabled"
    return StatusBanner(message="Chat API is running", status=provider)


@app.get(f"{settings.API_PREFIX}/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint for container orchestration."""
    return HealthResponse(timestamp=datetime.now(UTC))
