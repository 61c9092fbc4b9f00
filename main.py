"""
ClaimLedger - Claims & Invoicing Backend
FastAPI Application Entry Point
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from database.connection import create_tables
from controllers import (
    claims_controller,
    contacts_controller,
    invoices_controller,
    settlements_controller,
)
from utils.config import settings
from utils.errors import ClaimLedgerError
from utils.logging import setup_logging

logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging(settings.log_level)
    await create_tables()
    logger.info("ClaimLedger backend started (%s)", settings.environment)
    yield
    # Shutdown
    logger.info("ClaimLedger backend shutting down")


app = FastAPI(
    title="ClaimLedger API",
    description="Claims and invoicing backend with payment tracking and settlement reconciliation",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health Check
@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - STARTED_AT, 3),
        "environment": settings.environment,
        "version": "1.0.0",
        "service": "ClaimLedger Backend",
    }


# Claims Routes
app.include_router(claims_controller.router, prefix="/api/claims", tags=["Claims"])

# Invoice Routes
app.include_router(
    invoices_controller.router, prefix="/api/invoices", tags=["Invoices"]
)

# Contact Routes
app.include_router(
    contacts_controller.router, prefix="/api/contacts", tags=["Contacts"]
)

# Keeper settlement events
app.include_router(
    settlements_controller.router, prefix="/api/settlements", tags=["Settlements"]
)


# Error Handlers
@app.exception_handler(ClaimLedgerError)
async def claimledger_error_handler(request: Request, exc: ClaimLedgerError):
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc
        )
    else:
        logger.info("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": format_validation_error(exc)})


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def format_validation_error(exc: RequestValidationError) -> str:
    """Turn the first pydantic error into a one-line message."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    message = first.get("msg", "Invalid value")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f"{'.'.join(location)}: {message}" if location else message


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
