"""Shared DTOs for the chat relay API."""
from typing import Dict, Optional

from pydantic import BaseModel, Field


class BaseDTO(BaseModel):
    """Base DTO with common configuration."""

    class Config:
        from_attributes = True


class ServiceInfoResponse(BaseDTO):
    """Payload served on ``GET /``."""
    message: str = Field(default="ChatAPI is running!")
    version: str = Field(default="1.0.0")
    endpoints: Dict[str, str] = Field(default_factory=dict)


class HealthCheckResponse(BaseDTO):
    """Health check response DTO."""
    status: str = Field(description="Service status")


class ErrorResponse(BaseDTO):
    """Error body returned for every non-2xx response."""
    error: str = Field(description="Error summary")
    message: Optional[str] = Field(default=None, description="Error detail, omitted in production")
