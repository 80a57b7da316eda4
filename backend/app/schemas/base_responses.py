"""
Base response schemas for standardized API responses.

These schemas ensure consistent response formats across all API endpoints.
"""

from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """Standard paginated response for all list endpoints."""

    items: List[T] = Field(description="List of items")
    total: int = Field(description="Total number of items")
    page: int = Field(default=1, description="Current page number", ge=1)
    per_page: int = Field(default=100, description="Items per page", ge=1)
    has_next: bool = Field(description="Whether there's a next page")
    has_prev: bool = Field(description="Whether there's a previous page")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "items": ["..."],
                "total": 3,
                "page": 1,
                "per_page": 100,
                "has_next": False,
                "has_prev": False,
            }
        }
    )


class HealthResponse(BaseModel):
    """Health check payload."""

    status: str
    service: str
    version: str
    environment: str
    timestamp: str
