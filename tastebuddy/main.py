"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tastebuddy.api import discounts, items, jobs, recipes
from tastebuddy.config import get_settings
from tastebuddy.database import init_db
from tastebuddy.exceptions import TasteBuddyError

settings = get_settings()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    # Startup: create missing tables
    init_db()
    yield
    # Shutdown: Clean up resources here


app = FastAPI(
    title="TasteBuddy API",
    description="Recipe catalog with canonical items and retail discounts",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for development
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://localhost:5173",
            "http://localhost:8100",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(TasteBuddyError)
async def handle_domain_error(request: Request, exc: TasteBuddyError):
    """Map domain errors onto HTTP responses."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Register routers
app.include_router(recipes.router)
app.include_router(items.router)
app.include_router(discounts.router)
app.include_router(jobs.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
