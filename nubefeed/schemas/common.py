"""
Common schemas.
"""

from pydantic import BaseModel
from typing import Optional


class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = True


class RedisHealthResponse(BaseModel):
    """Redis health check response."""
    ok: bool
    redis: str
    error: Optional[str] = None


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str
