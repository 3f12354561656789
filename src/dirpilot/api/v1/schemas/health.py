# Health schemas.
# Created: 2026-10-12

from __future__ import annotations

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    state: str
    directory_access_available: bool
    generator_configured: bool
