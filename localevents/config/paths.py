"""Path-related configuration and environment detection."""

from __future__ import annotations

import os
from pathlib import Path


# Environment detection
IS_DOCKER = os.getenv("DOCKER_ENV") == "1" or os.path.exists("/.dockerenv")

# Base Paths - environment-specific resolution
WORKING_DIR = Path(__file__).resolve().parent.parent.parent
if (data_override := os.getenv("LOCALEVENTS_DATA_DIR")):
    DATA_DIR = Path(data_override)
elif IS_DOCKER:
    # Docker environment: use fixed paths
    WORKING_DIR = Path("/app")
    DATA_DIR = Path("/app/data")
else:
    DATA_DIR = Path(WORKING_DIR, "data")

# Ensure data directory exists
if not DATA_DIR.exists():
    DATA_DIR.mkdir(parents=True, exist_ok=True)

# Web frontend files, served if present
WEB_DIR = Path(WORKING_DIR, "web")

# Persistent storage paths - use DATA_DIR for Docker compatibility
LOGS_DIR = Path(WORKING_DIR, "logs")
LOG_PATH = Path(LOGS_DIR, "LocalEvents.log")
SETTINGS_PATH = Path(DATA_DIR, "settings.json")
