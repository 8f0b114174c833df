"""
Pydantic schemas for API request/response validation.
"""
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field

from .models import SyncStatus


class SampleCreate(BaseModel):
    person: str = Field(..., min_length=1)
    barcode: str = Field(..., min_length=1)


class SampleResponse(BaseModel):
    id: int
    name: str
    barcode: str
    results: Optional[str]
    created_time: Optional[datetime]
    updated_time: Optional[datetime]
    sample_date: Optional[str]

    class Config:
        from_attributes = True


class SampleListResponse(BaseModel):
    samples: List[SampleResponse]


class SyncRunResponse(BaseModel):
    id: int
    trigger: str
    status: SyncStatus
    samples_checked: Optional[int]
    samples_resolved: Optional[int]
    errors: Optional[dict]
    started_at: datetime
    completed_at: Optional[datetime]

    class Config:
        from_attributes = True


class SyncStatusResponse(BaseModel):
    scheduler_running: bool
    poll_interval_hours: float
    next_run: Optional[datetime]
    last_run: Optional[SyncRunResponse]
