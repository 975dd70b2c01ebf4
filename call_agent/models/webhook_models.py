"""
Pydantic models for HTTP responses.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class HealthCheckResponse(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Overall status: ok or error")
    database: str = Field(..., description="Database status: ok or error")
    timestamp: datetime = Field(..., description="Check timestamp")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "status": "ok",
            "database": "ok",
            "timestamp": "2026-10-18T12:00:00Z"
        }
    })


class CustomerResponse(BaseModel):
    """Stored customer record."""
    phone_number: str = Field(..., description="Caller phone number")
    name: str
    favorite_color: str
    steak_preference: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, json_schema_extra={
        "example": {
            "phone_number": "+15551234567",
            "name": "Sam",
            "favorite_color": "blue",
            "steak_preference": "medium well",
            "created_at": "2026-10-18T12:00:00Z",
            "updated_at": "2026-10-18T12:00:00Z"
        }
    })
