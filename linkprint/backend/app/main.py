# backend/app/main.py
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import time
import uuid

from app.core.config import settings
from app.core.exceptions import (
    CrossTenantAccessError,
    FeatureNotAvailableError,
    LinkPrintError,
    PlanNotFoundError,
    RecordNotFoundError,
    SlugTakenError,
    UsageLimitExceededError,
)
from app.core.logging import logger
from app.db.database import init_db, close_db
from app.api.v1.router import api_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting LinkPrint API")
    await init_db()

    yield

    # Shutdown
    logger.info("Shutting down LinkPrint API")
    await close_db()


app = FastAPI(
    title="LinkPrint API",
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=("/api/docs" if settings.ENVIRONMENT == "development" else None),
    redoc_url=("/api/redoc" if settings.ENVIRONMENT == "development" else None),
    lifespan=lifespan
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    request.state.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    response.headers["X-Request-ID"] = request.state.request_id
    return response


# Include routers
app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
    }


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None)


@app.exception_handler(UsageLimitExceededError)
async def usage_limit_handler(request: Request, exc: UsageLimitExceededError):
    return JSONResponse(
        status_code=403,
        content={
            "detail": {
                "error": "quota_exceeded",
                "message": str(exc),
                "resource": exc.resource,
                "limit": exc.limit,
                "current": exc.current,
                "upgrade_url": "/billing",
            }
        },
    )


@app.exception_handler(FeatureNotAvailableError)
async def feature_unavailable_handler(request: Request, exc: FeatureNotAvailableError):
    return JSONResponse(
        status_code=403,
        content={
            "detail": {
                "error": "feature_unavailable",
                "message": str(exc),
                "feature": exc.feature,
                "current_plan": exc.plan_slug,
                "upgrade_url": "/billing",
            }
        },
    )


@app.exception_handler(CrossTenantAccessError)
async def cross_tenant_handler(request: Request, exc: CrossTenantAccessError):
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(RecordNotFoundError)
async def not_found_handler(request: Request, exc: RecordNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(PlanNotFoundError)
async def plan_not_found_handler(request: Request, exc: PlanNotFoundError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(SlugTakenError)
async def slug_taken_handler(request: Request, exc: SlugTakenError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(LinkPrintError)
async def linkprint_error_handler(request: Request, exc: LinkPrintError):
    logger.error("Unmapped application error: %s", exc, extra={"request_id": _request_id(request)})
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.exception(
        "Unhandled exception while handling request",
        exc_info=exc,
        extra={"request_id": _request_id(request)},
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
