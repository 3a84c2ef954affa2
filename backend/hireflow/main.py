from contextlib import asynccontextmanager
import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .config import get_settings
from .database import init_db
from .errors import ExtractionError, HireFlowError, NotFoundError, OracleError, ValidationError
from .routers import candidates_router, jobs_router, job_candidates_router, ai_router

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await init_db()
    logger.info(f"{settings.app_name} started (oracle configured: {settings.oracle_configured})")
    yield


app = FastAPI(
    title=settings.app_name,
    description="Resume ingestion and candidate matching API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,  # Disable docs in production
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware - uses origins from environment variable
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Error handlers
# ============================================================================

def _error_response(status_code: int, exc: HireFlowError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.reason, "detail": exc.detail},
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error_response(404, exc)


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    return _error_response(400, exc)


@app.exception_handler(ExtractionError)
async def extraction_handler(request: Request, exc: ExtractionError):
    return _error_response(422, exc)


@app.exception_handler(OracleError)
async def oracle_handler(request: Request, exc: OracleError):
    if exc.reason == OracleError.NOT_CONFIGURED:
        return _error_response(503, exc)
    logger.error(f"Oracle error on {request.url.path}: {exc}")
    return _error_response(502, exc)


# Include routers
app.include_router(candidates_router)
app.include_router(jobs_router)
app.include_router(job_candidates_router)
app.include_router(ai_router)

# Locally stored resumes are served from /uploads/resumes
os.makedirs(settings.upload_dir, exist_ok=True)
app.mount("/uploads/resumes", StaticFiles(directory=settings.upload_dir), name="resumes")


@app.get("/")
async def root():
    return {"message": settings.app_name, "status": "running", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancer"""
    return {"status": "healthy"}
