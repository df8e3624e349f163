"""
Pydantic schemas for job endpoints.
"""
from typing import Optional
from pydantic import BaseModel, Field


class JobCreateRequest(BaseModel):
    """Request schema for posting a job."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    salary: Optional[str] = Field(None, max_length=100)
