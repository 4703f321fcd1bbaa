"""
FastAPI application initialization for the MaxPulse backend.
This file configures all application components: routes, middleware, logging, etc.
"""
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException

from maxpulse_backend.core.config import settings
from maxpulse_backend.core.logging import setup_logging, get_logger
from maxpulse_backend.api import (
    functions_router, activation_router, dashboard_router,
    realtime_router, healthcheck_router, links_router
)
from maxpulse_backend.db.session import engine
from maxpulse_backend.db.migrations_manager import upgrade_database
from maxpulse_backend.models import create_tables
from maxpulse_backend.utils.error_handling import format_exception_for_client, error_response

setup_logging()
logger = get_logger(__name__)

RUN_MIGRATIONS = os.getenv("RUN_MIGRATIONS", "False").lower() == "true"

app = FastAPI(
    title="MaxPulse - Commission Backend",
    description="Distributor commissions, withdrawals, activation codes and app accounts",
    version=settings.VERSION,
    docs_url="/api/docs" if not settings.PRODUCTION else None,
    redoc_url="/api/redoc" if not settings.PRODUCTION else None
)

# All errors share the {"success": false, "error": ...} shape
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, exc.detail)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(400, "Validation error", details=jsonable_encoder(exc.errors()))

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    if settings.DEBUG:
        return JSONResponse(status_code=500, content=format_exception_for_client(exc, include_traceback=True))
    return error_response(500, "Internal server error")

# Setup CORS
origins = settings.CORS_ORIGINS.split(",") if isinstance(settings.CORS_ORIGINS, str) else settings.CORS_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(functions_router, prefix="/api/functions", tags=["Functions"])
app.include_router(activation_router, prefix="/api/activation-codes", tags=["Activation Codes"])
app.include_router(dashboard_router, prefix="/api/dashboard", tags=["Dashboard"])
app.include_router(links_router, prefix="/api/links", tags=["Links"])
app.include_router(realtime_router, tags=["Realtime"])
app.include_router(healthcheck_router, tags=["Health"])

@app.on_event("startup")
async def startup_event():
    """Application startup event"""
    logger.info("🚀 Starting MaxPulse backend...")

    try:
        if RUN_MIGRATIONS:
            upgrade_database()
        else:
            create_tables(engine)
    except Exception as e:
        logger.error(f"❌ Database initialization error: {str(e)}", exc_info=True)
        if not settings.PRODUCTION:
            raise

    logger.info("💰 Commission processor: /api/functions/commission-processor")
    logger.info("👤 Auth user creation:   /api/functions/create-auth-user")
    logger.info("🔗 Link tracking:        /api/links")
    logger.info("✅ Application started successfully")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("🛑 Application stopped")
