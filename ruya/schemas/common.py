"""
Shared schema primitives used across the API.

Every response uses the `{success, data?, error?, code?, pagination?}`
envelope; routes serialize with `response_model_exclude_none=True` so
absent members are omitted.
"""
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaginationMeta(CamelModel):
    current: int = Field(description="Current page (1-based).")
    total: int = Field(description="Total number of pages.")
    count: int = Field(description="Total number of matching records.")
    per_page: int = Field(description="Page size actually applied.")


class ApiResponse(BaseModel, Generic[T]):
    """Standard envelope for every response."""
    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None
    code: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    pagination: Optional[PaginationMeta] = None
