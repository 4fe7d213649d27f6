"""Pydantic schemas for job postings."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class JobCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=10, max_length=20000)
    location: str | None = Field(None, max_length=160)


class JobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    recruiter_id: UUID
    title: str
    description: str
    location: str | None
    status: str
    created_at: datetime


class JobListResponse(BaseModel):
    items: list[JobResponse]
    total: int
