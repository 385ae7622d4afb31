"""
AdStudio Backend - FastAPI Application
Main entry point with all routes configured.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager

from adstudio.config import settings
from adstudio.core.exceptions import AdStudioException
from adstudio.database import init_db
from adstudio.schemas.common import HealthResponse

# Import all API routers
from adstudio.api import auth, brands, campaigns, generation

# Import models to ensure they are registered with SQLModel
from adstudio.models import User, Brand, Campaign, ActivityLog  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    await init_db()
    logger.info("Database ready")
    yield
    # Shutdown


app = FastAPI(
    title="AdStudio API",
    description="AI-assisted TV ad creation: concepts, scripts, storyboards and rendered video",
    version="1.0.0",
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AdStudioException)
async def adstudio_exception_handler(request: Request, exc: AdStudioException):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return JSONResponse(status_code=400, content={"error": "Validation failed"})
    first = errors[0]
    field = first.get("loc", ())[-1] if first.get("loc") else None
    message = first.get("msg", "Invalid value")
    if field is not None and field != "body":
        message = f"Validation failed for field '{field}': {message}"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


# Include all routers
app.include_router(auth.router)
app.include_router(brands.router)
app.include_router(campaigns.router)
app.include_router(generation.router)  # /api/functions/*


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "message": "AdStudio API is running",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Detailed health check."""
    return HealthResponse()
