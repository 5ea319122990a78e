"""Main FastAPI application module.

This module initializes the FastAPI application, owns the attendance-code
registry for the lifetime of the process and registers all route handlers.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.logging_config import setup_logging
from config import (
    CORS_ALLOWED_ORIGINS,
    API_HOST,
    API_PORT,
    ATTENDANCE_CODE_TTL_SECONDS,
    CODE_SWEEP_INTERVAL_SECONDS,
)
from api.routes import auth, roll_call
from utils.code_registry import ActiveCodeRegistry

# Setup logging
setup_logging()

logger = logging.getLogger(__name__)

# Initialize FastAPI application
app = FastAPI(
    title="Roll Call API",
    description="Attendance codes for taking roll call in class.",
    version="1.0.0",
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Active attendance codes are held in memory only
app.state.code_registry = ActiveCodeRegistry(ttl_seconds=ATTENDANCE_CODE_TTL_SECONDS)

# Register route handlers
app.include_router(auth.router)
app.include_router(roll_call.router)


@app.on_event("startup")
def start_code_sweeper() -> None:
    """Start the periodic removal of expired attendance codes."""
    app.state.code_registry.start_sweeper(CODE_SWEEP_INTERVAL_SECONDS)


@app.on_event("shutdown")
def stop_code_sweeper() -> None:
    app.state.code_registry.stop_sweeper()
    app.state.code_registry.clear()


@app.get("/", summary="API root", tags=["Info"])
def root() -> dict:
    """API root, returns API information and documentation links.

    Returns:
        Dictionary with API information and documentation links.
    """
    return {
        "name": "Roll Call API",
        "version": "1.0.0",
        "description": "Attendance codes for taking roll call in class.",
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc",
        },
        "health": "/api/health",
    }


@app.get("/api/health", summary="Health check", tags=["Health"])
def health() -> dict:
    """Health check endpoint.

    Returns:
        Dictionary with status "ok" and the number of active codes.
    """
    return {"status": "ok", "active_codes": app.state.code_registry.count()}


# --- Startup code for direct execution ---
if __name__ == "__main__":
    import uvicorn

    server_url = f"http://{API_HOST}:{API_PORT}"
    logger.info("Starting Roll Call API at %s (docs: %s/docs)", server_url, server_url)
    uvicorn.run("app:app", host=API_HOST, port=API_PORT, reload=True)
