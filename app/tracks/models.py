"""Track record data model."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field
import uuid


class TrackStatus(str, Enum):
    PROCESSING = "PROCESSING"
    READY = "READY"
    ERROR = "ERROR"


UNKNOWN_TITLE = "Unknown Title"


class Track(BaseModel):
    """An uploaded audio item and its ingestion lifecycle state."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str = UNKNOWN_TITLE
    artist: Optional[str] = None
    album: Optional[str] = None
    genre: Optional[str] = None
    year: Optional[int] = None
    duration: int = 0
    original_path: str
    processed_path: str = ""
    file_size: int = 0
    status: TrackStatus = TrackStatus.PROCESSING
    user_id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    def is_ready(self) -> bool:
        return self.status == TrackStatus.READY and bool(self.processed_path)


class TrackNotFoundError(LookupError):
    """Raised when a track id has no record."""

    def __init__(self, track_id: str):
        super().__init__(f"Track {track_id} not found")
        self.track_id = track_id
