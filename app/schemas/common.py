"""
Common schemas used across the API
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class PaginationParams(BaseModel):
    """Pagination parameters for list endpoints"""
    skip: int = Field(default=0, ge=0, description="Number of items to skip")
    limit: int = Field(default=20, ge=1, le=100, description="Number of items to return")


class MessageResponse(BaseModel):
    """Plain acknowledgement"""
    message: str


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str = "ok"
    timestamp: str
    version: str
    environment: str
    services: Dict[str, Any] = {}
    error: Optional[str] = None
