"""Configuration for the API client and smoke script."""
from __future__ import annotations

import os

BACKEND_BASE_URL = os.getenv("BACKEND_BASE_URL", "http://localhost:8080")
REQUEST_TIMEOUT = float(os.getenv("BACKEND_TIMEOUT", "30"))
