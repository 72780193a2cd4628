"""Common/shared schemas."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class HealthStatus(BaseModel):
    status: str = "up"
    message: Optional[str] = None
    error: Optional[str] = None
    open_connections: Optional[str] = None
    in_use: Optional[str] = None
    idle: Optional[str] = None
    wait_count: Optional[str] = None
    wait_duration: Optional[str] = None
    max_idle_closed: Optional[str] = None
    max_lifetime_closed: Optional[str] = None
