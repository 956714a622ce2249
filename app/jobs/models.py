"""Ingestion job data model for async processing."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field
import uuid


PROCESS_AUDIO = "process-audio"


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class IngestionJob(BaseModel):
    """One queued unit of ingestion work. Lives only in process memory."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    job_type: str = PROCESS_AUDIO
    track_id: str
    original_path: str
    status: JobStatus = JobStatus.PENDING
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
