from fastapi import FastAPI, Request, HTTPException, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import os
import logging

from moviecritic import __version__
from moviecritic.config import get_settings
from moviecritic.database import check_database, get_db
from moviecritic.exceptions import (
    ConfigurationError,
    NetworkError,
    PartialSyncFailure,
    UpstreamError,
)
from moviecritic.routes import admin, auth, movies, people, reviews, watchlists
from moviecritic.middleware.security import SecurityHeadersMiddleware
from moviecritic.services.background_jobs import background_jobs

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


# ============================================
# Application Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: log configuration, start the stale refresh job
    Shutdown: stop background jobs gracefully
    """
    settings = get_settings()
    logger.info(f"Movie Critic API {__version__} starting (environment: {settings.environment})")
    logger.info(f"TMDB API: {settings.tmdb_api_url}, CORS origins: {len(allowed_origins)} configured")

    background_jobs.start()

    yield

    logger.info("Movie Critic API shutting down")
    background_jobs.shutdown()


app = FastAPI(
    title="Movie Critic API",
    description="Movie reviews backed by a local, periodically refreshed copy of TMDB",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ============================================
# Security Configuration
# ============================================

# CORS - Whitelist allowed origins
allowed_origins = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://localhost:5173",
]
if production_url := os.getenv("FRONTEND_URL"):
    allowed_origins.append(production_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)

# Trusted Hosts - Production only
if os.getenv("ENVIRONMENT") == "production":
    if trusted_hosts := [h.strip() for h in os.getenv("TRUSTED_HOSTS", "").split(",") if h.strip()]:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=trusted_hosts)


# ============================================
# Exception Handlers - CORS headers on every error response
# ============================================

def _error_response(request: Request, status_code: int, detail: str) -> JSONResponse:
    """JSON error body, with CORS headers when the origin is allowed"""
    origin = request.headers.get("origin")
    response = JSONResponse(status_code=status_code, content={"detail": detail})

    if origin in allowed_origins:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "*"
        response.headers["Access-Control-Expose-Headers"] = "*"

    return response


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return _error_response(request, exc.status_code, exc.detail)


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError):
    """TMDB 404 passes through, every other upstream failure is a bad gateway"""
    status_code = 404 if exc.is_not_found else 502
    return _error_response(request, status_code, str(exc))


@app.exception_handler(NetworkError)
async def network_error_handler(request: Request, exc: NetworkError):
    return _error_response(request, 503, "TMDB is unreachable, try again later")


@app.exception_handler(PartialSyncFailure)
async def partial_sync_handler(request: Request, exc: PartialSyncFailure):
    logger.error(f"Partial sync failure: {str(exc)}")
    return _error_response(request, 502, str(exc))


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(str(exc))
    return _error_response(request, 500, "Server misconfigured")


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Catch-all handler so unexpected errors still carry CORS headers"""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return _error_response(request, 500, "Internal server error")


# ============================================
# Routes
# ============================================

@app.get("/", tags=["Health"])
async def root():
    """Basic health check"""
    return {
        "message": "Movie Critic API",
        "version": __version__,
        "status": "healthy",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
def health_check(db: Session = Depends(get_db)):
    """Detailed health check for monitoring"""
    database_ok = check_database(db)
    body = {
        "status": "healthy" if database_ok else "degraded",
        "api_version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "ok" if database_ok else "unavailable",
    }
    return JSONResponse(status_code=200 if database_ok else 503, content=body)


app.include_router(auth.router)
app.include_router(movies.router)
app.include_router(people.router)
app.include_router(reviews.router)
app.include_router(watchlists.router)
app.include_router(admin.router)  # Background jobs management

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
