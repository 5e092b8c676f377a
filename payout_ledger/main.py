from contextlib import asynccontextmanager
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from payout_ledger.config import settings
from payout_ledger.api.v1.router import api_router
from payout_ledger.database import init_db, async_session_factory


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
    - Create payout ledger tables if missing
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    await init_db()

    yield

    logger.info("Shutting down...")


OPENAPI_TAGS = [
    {"name": "Payout Records", "description": "Payout ledger, commission calculation and lead hand-off"},
    {"name": "Health", "description": "Service and database health"},
]

FULL_API_DESCRIPTION = """
## Payout Ledger API

Admin payout ledger for an insurance lead-brokerage business.

### Commission Calculation

Gross commission depends on the record's **commission basis**:

| Basis | Gross commission |
|-------|------------------|
| **Net / Fixed** | Net premium x commission rate |
| **OD** / **TP** | OD or TP premium x commission rate |
| **OD+TP** | OD premium x OD % + TP premium x TP % |
| **ONLINE POINTS** | Points (flat amount) |
| *other* | Premium amount x commission rate |

TDS (default 2%) is deducted from gross commission, then discount,
brokerage and other expenses give the net profit. Net profit may be negative.

### Error Codes

| Code | Description |
|------|-------------|
| 404 | Not Found - Payout record doesn't exist |
| 422 | Unprocessable Entity - Validation failed |
| 500 | Internal Server Error |
"""

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=FULL_API_DESCRIPTION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=OPENAPI_TAGS,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return unhandled errors as JSON. Tracebacks are included only in DEBUG."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")

    error_detail = {
        "error": str(exc),
        "type": type(exc).__name__,
        "path": str(request.url.path),
        "method": request.method,
    }
    if settings.DEBUG:
        error_detail["traceback"] = traceback.format_exc()

    return JSONResponse(status_code=500, content=error_detail)


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint with database validation."""
    from sqlalchemy import text
    from datetime import datetime, timezone

    health_status = {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {
            "database": "unknown"
        }
    }

    # Check database connectivity
    try:
        async with async_session_factory() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
            health_status["checks"]["database"] = "connected"
    except Exception as e:
        logger.error(f"Health check database error: {e}")
        health_status["status"] = "unhealthy"
        health_status["checks"]["database"] = f"error: {str(e)}"

    # Return 503 if unhealthy
    if health_status["status"] == "unhealthy":
        return JSONResponse(status_code=503, content=health_status)

    return health_status


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
    }
