"""
Envelope schemas shared by all lab endpoints.

Every successful response is ``{"success": true, "message"?: str, "data": ...}``.
"""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = Field(default=True, description="Operation success status")
    message: Optional[str] = Field(default=None, description="Human-readable message")
    data: T


class PaginatedData(BaseModel, Generic[T]):
    """Page of items for staff list endpoints."""

    items: List[T] = Field(description="List of items")
    total: int = Field(description="Total number of items")
    page: int = Field(default=1, description="Current page number", ge=1)
    per_page: int = Field(default=20, description="Items per page", ge=1, le=100)
    has_next: bool = Field(description="Whether there's a next page")
    has_prev: bool = Field(description="Whether there's a previous page")
