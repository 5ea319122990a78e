"""Configuration module for the Roll Call API.

This module provides centralized configuration management, including directory
paths, API server settings, authentication and attendance-code policy.
All configuration values can be overridden via environment variables.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

# Data directory name
DATA_DIR_NAME = "data"
DATA_DIR = ROOT_DIR / DATA_DIR_NAME

# --- Database Configuration ---

DATABASE_URL: str = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR}/rollcall.db")

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))

# CORS allowed origins (comma-separated list)
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,"
    "http://127.0.0.1:3000",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Logging Configuration ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Authentication Configuration ---

JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "your-secret-key-change-in-production")
JWT_ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
    os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 12))
)

# --- Attendance Code Configuration ---

# Number of characters in a generated code. 36 ** 6 is roughly 2.18e9 codes.
ATTENDANCE_CODE_LENGTH: int = int(os.getenv("ATTENDANCE_CODE_LENGTH", "6"))

# How long a code stays redeemable after it is issued.
ATTENDANCE_CODE_TTL_SECONDS: int = int(os.getenv("ATTENDANCE_CODE_TTL_SECONDS", "600"))

# Upper bound on generate/register attempts before giving up with a capacity error.
CODE_GENERATION_MAX_ATTEMPTS: int = int(os.getenv("CODE_GENERATION_MAX_ATTEMPTS", "10"))

# Interval of the background sweep that drops expired codes.
CODE_SWEEP_INTERVAL_SECONDS: float = float(
    os.getenv("CODE_SWEEP_INTERVAL_SECONDS", "30")
)

# Maximum distance (inclusive) between a student and the geofence center.
GEOFENCE_RADIUS_METERS: float = float(os.getenv("GEOFENCE_RADIUS_METERS", "100.0"))

# Upper bound on roster preparation and mark-present calls.
COLLABORATOR_TIMEOUT_SECONDS: float = float(
    os.getenv("COLLABORATOR_TIMEOUT_SECONDS", "5.0")
)
