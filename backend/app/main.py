"""
Rescue Case Service - Backend API
=================================
FastAPI application that collects telemetry from rescue-tracking devices
and lets dispatchers work through the resulting cases.

ARCHITECTURE:
    [Rescue Devices] --POST /api/cases--> [This Backend] <--polling-- [Dispatcher Console]
                                                |
                                                v
                                        [Case Collection (JSON file)]

    Each device submission becomes a "case" (vitals + GPS + motion data).
    A device only ever has ONE pending case: reporting again replaces it.
    The dispatcher accepts or rejects cases; the console polls
    /api/buzzer-status to know when to sound the alarm.

HOW TO RUN:
    # Install dependencies
    pip install -e .

    # Copy environment config
    cp env.example.txt .env
    # Edit .env with your settings

    # Run the server
    cd backend
    uvicorn app.main:app --reload --port 3001
    # or: python -m app.main

API DOCUMENTATION:
    After starting the server, visit:
    - Swagger UI: http://localhost:3001/docs
    - ReDoc: http://localhost:3001/redoc
    - OpenAPI JSON: http://localhost:3001/openapi.json

Author: Rescue Service Team
"""

import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

from app.routers import cases_router, buzzer_router, get_case_store
from app.services import CaseServiceError, CaseStore, DocumentCollection


# Load environment variables from .env file
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format='[%(asctime)s] %(message)s',
    datefmt='%H:%M:%S',
    handlers=[logging.StreamHandler(sys.stderr)]
)
logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

def parse_cors_origins(raw: str, frontend_url: str = "") -> list[str]:
    """
    Split a comma-separated origin list and add the frontend URL.

    The frontend URL is left out when "*" already allows every origin.
    """
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    if frontend_url and "*" not in origins and frontend_url not in origins:
        origins.append(frontend_url)
    return origins


class Config:
    """
    Application configuration loaded from environment variables.

    Environment Variables:
        PORT: Port for `python -m app.main` (default: 3001)
        CASE_DB_FILE: JSON file the cases are kept in.
                      Set it to an empty string to keep cases in memory only.
        FRONTEND_URL: URL of the dispatcher console, added to the allowed origins
        CORS_ORIGINS: Comma-separated allowed origins (default: * = anyone)
    """

    PORT = int(os.getenv("PORT", "3001"))

    CASE_DB_FILE = os.getenv(
        "CASE_DB_FILE",
        str(Path(__file__).parent.parent / "cases_db.json")
    )

    FRONTEND_URL = os.getenv("FRONTEND_URL", "")

    # Devices post from anywhere, so every origin is allowed unless narrowed here
    CORS_ORIGINS = parse_cors_origins(os.getenv("CORS_ORIGINS", "*"), FRONTEND_URL)


def build_case_store() -> CaseStore:
    """Build the CaseStore described by Config."""
    path = Path(Config.CASE_DB_FILE) if Config.CASE_DB_FILE else None
    return CaseStore(DocumentCollection(path))


# =============================================================================
# APPLICATION LIFESPAN
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    STARTUP:
        1. Build the CaseStore on top of the case collection
        2. Load existing cases
        3. Park the store on app.state for the routers

    SHUTDOWN:
        1. Flush and close the collection
    """
    # ========== STARTUP ==========
    print("=" * 60)
    print("🚑 RESCUE CASE SERVICE - Starting Backend")
    print("=" * 60)

    store = build_case_store()
    await store.open()
    app.state.case_store = store

    print(f"✅ Case store ready")
    print(f"   Case database: {Config.CASE_DB_FILE or 'in-memory'}")
    print(f"   CORS origins: {', '.join(Config.CORS_ORIGINS)}")
    print()
    print(f"📖 API Documentation: http://localhost:{Config.PORT}/docs")
    print("=" * 60)

    yield  # Application runs here

    # ========== SHUTDOWN ==========
    print()
    print("🛑 Shutting down...")
    app.state.case_store = None
    await store.close()
    print("✅ Shutdown complete")


# =============================================================================
# CREATE FASTAPI APPLICATION
# =============================================================================

app = FastAPI(
    title="Rescue Case Service API",
    description="""
## Overview

Collects biometric and location telemetry from rescue-tracking devices and
turns each report into a **case** that a dispatcher can accept or reject.

## How It Works

1. **Device reports** - `POST /api/cases` with vitals, GPS and motion data
2. **One pending case per device** - reporting again replaces the pending case
3. **Dispatcher acts** - accept, reject or delete cases
4. **Buzzer** - `GET /api/buzzer-status` is active while anything is pending

## Case Status

| Status | Meaning |
|--------|---------|
| `none` | Pending, waiting for a dispatcher |
| `accepted` | Dispatcher took the case |
| `rejected` | Dispatcher dismissed the case |

## Errors

Every failure comes back as `{"error": "..."}` with status 400 (missing
fields), 404 (unknown case) or 500 (store error).
    """,
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# =============================================================================
# CORS MIDDLEWARE
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(CaseServiceError)
async def case_service_error_handler(request: Request, exc: CaseServiceError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are a 400, same as missing fields."""
    errors = exc.errors()
    reason = errors[0].get("msg", "malformed JSON") if errors else "malformed JSON"
    return JSONResponse(status_code=400, content={"error": f"Invalid request body: {reason}"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": f"Internal server error: {exc}"})


# =============================================================================
# INCLUDE ROUTERS
# =============================================================================

app.include_router(cases_router)
app.include_router(buzzer_router)


# =============================================================================
# ROOT ENDPOINTS
# =============================================================================

@app.get(
    "/",
    summary="API Information",
    description="Get basic API information and available endpoints."
)
async def root():
    """Root endpoint with API overview."""
    return {
        "name": "Rescue Case Service API",
        "message": "Rescue Service API is running",
        "version": "1.0.0",
        "documentation": {
            "swagger": "/docs",
            "redoc": "/redoc",
            "openapi": "/openapi.json"
        },
        "endpoints": {
            "ingest": "POST /api/cases",
            "list": {
                "all": "GET /api/cases",
                "pending": "GET /api/cases/pending",
                "processed": "GET /api/cases/processed",
                "by_device": "GET /api/cases/device/{deviceId}"
            },
            "case_actions": {
                "accept": "POST /api/cases/{id}/accept",
                "reject": "POST /api/cases/{id}/reject",
                "delete": "DELETE /api/cases/{id}"
            },
            "buzzer": "GET /api/buzzer-status"
        }
    }


@app.get(
    "/health",
    summary="Health Check",
    description="Check if the backend and its case store are up."
)
async def health(store: CaseStore = Depends(get_case_store)):
    """Health check endpoint."""
    return {"status": "healthy", **await store.stats()}


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=Config.PORT)
