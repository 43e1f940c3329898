"""
Dream request / response schemas.

Submit:     POST /dreams            → DreamSubmitRequest   → DreamResponse
Interpret:  PUT  /dreams[/{id}]     → InterpretRequest     → DreamResponse
Tags:       POST /dreams/{id}/tags  → TagsRequest          → DreamResponse
List:       GET  /dreams            → DreamListData (+ pagination)
Stats:      GET  /stats             → StatsResponse
"""
from __future__ import annotations

from typing import Optional

from pydantic import Field

from ruya.schemas.common import CamelModel


class DreamSubmitRequest(CamelModel):
    """
    Public form input. Fields are optional here on purpose: the submission
    service reports every missing or invalid field in one response.
    """
    name: Optional[str] = Field(default=None, examples=["Aisha"])
    gender: Optional[str] = Field(default=None, examples=["female"])
    marital_status: Optional[str] = Field(default=None, examples=["single"])
    dream: Optional[str] = Field(
        default=None,
        description="Free-text dream description, 10–5000 characters.",
        examples=["I saw myself walking by a river of clear water at dawn."],
    )


class InterpretRequest(CamelModel):
    id: Optional[str] = Field(
        default=None,
        description="Dream id; only read by `PUT /dreams` (id in body).",
    )
    interpretation: Optional[str] = Field(default=None, description="At least 10 characters.")
    interpreted_by: Optional[str] = Field(
        default=None,
        description="Defaults to the configured interpreter name.",
    )
    tags: Optional[list[str]] = None
    is_public: Optional[bool] = None


class TagsRequest(CamelModel):
    tags: list[str] = Field(min_length=1)


class PublicDreamResponse(CamelModel):
    """A dream as shown publicly: no client address."""
    id: str
    name: str
    gender: str
    marital_status: str
    dream: str
    submitted_at: str
    interpretation: Optional[str] = None
    interpreted_at: Optional[str] = None
    interpreted_by: Optional[str] = None
    status: str
    tags: list[str] = Field(default_factory=list)
    is_public: bool = False


class DreamResponse(PublicDreamResponse):
    ip_address: Optional[str] = None


class StatsResponse(CamelModel):
    pending: int
    interpreted: int
    archived: int
    total: int


class DreamListData(CamelModel):
    records: list[DreamResponse]
    stats: Optional[StatsResponse] = None


class PublicDreamListData(CamelModel):
    records: list[PublicDreamResponse]
