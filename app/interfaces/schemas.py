"""
Pydantic schemas shared by every router.
"""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    version: str
    database: str = "ok"


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    success: bool = True
    message: str
