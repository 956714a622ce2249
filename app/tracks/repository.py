"""Track repository interface plus in-memory and Supabase implementations."""

import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional

from app.config import settings
from app.tracks.models import Track, TrackNotFoundError


class TrackRepository(ABC):
    """Storage for track records. Only the ingestion worker mutates them after creation."""

    @abstractmethod
    def create_track(self, **fields: Any) -> Track:
        ...

    @abstractmethod
    def get_track(self, track_id: str) -> Optional[Track]:
        ...

    @abstractmethod
    def update_track(self, track_id: str, **fields: Any) -> Track:
        """Apply a partial update. Raises TrackNotFoundError for unknown ids."""
        ...


class InMemoryTrackRepository(TrackRepository):
    """Process-local store. Safe to call from the worker's executor thread."""

    def __init__(self):
        self._tracks: Dict[str, Track] = {}
        self._lock = threading.Lock()

    def create_track(self, **fields: Any) -> Track:
        track = Track(**fields)
        with self._lock:
            self._tracks[track.id] = track
        return track.model_copy()

    def get_track(self, track_id: str) -> Optional[Track]:
        with self._lock:
            track = self._tracks.get(track_id)
            return track.model_copy() if track else None

    def update_track(self, track_id: str, **fields: Any) -> Track:
        with self._lock:
            track = self._tracks.get(track_id)
            if track is None:
                raise TrackNotFoundError(track_id)
            data = track.model_dump()
            data.update(fields)
            data["updated_at"] = datetime.utcnow()
            updated = Track(**data)
            self._tracks[track_id] = updated
            return updated.model_copy()


class SupabaseTrackRepository(TrackRepository):
    """Track records in the Supabase `songs` table."""

    table = "songs"

    def __init__(self, client=None):
        if client is None:
            from app.db.supabase_client import get_supabase
            client = get_supabase()
        self._client = client

    def create_track(self, **fields: Any) -> Track:
        track = Track(**fields)
        response = (
            self._client.table(self.table)
            .insert(track.model_dump(mode="json"))
            .execute()
        )
        rows = response.data or []
        return Track(**rows[0]) if rows else track

    def get_track(self, track_id: str) -> Optional[Track]:
        response = (
            self._client.table(self.table)
            .select("*")
            .eq("id", track_id)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        return Track(**rows[0]) if rows else None

    def update_track(self, track_id: str, **fields: Any) -> Track:
        payload = dict(fields)
        payload["updated_at"] = datetime.utcnow()
        # Round-trip through the model so enums and datetimes serialise
        payload = {
            k: v for k, v in Track.model_validate(
                {"original_path": "", **payload}
            ).model_dump(mode="json").items()
            if k in payload
        }
        response = (
            self._client.table(self.table)
            .update(payload)
            .eq("id", track_id)
            .execute()
        )
        rows = response.data or []
        if not rows:
            raise TrackNotFoundError(track_id)
        return Track(**rows[0])


def build_track_repository() -> TrackRepository:
    """Pick the repository named by settings.track_store."""
    if settings.track_store == "supabase":
        return SupabaseTrackRepository()
    if settings.track_store == "memory":
        return InMemoryTrackRepository()
    raise ValueError(f"Unknown track_store '{settings.track_store}'")
