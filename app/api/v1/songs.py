"""Song upload, status and streaming endpoints.

  POST /songs/upload          : receive an audio file, queue ingestion
  GET  /songs/{song_id}       : poll a track's ingestion state
  GET  /songs/{song_id}/stream : full or byte-range audio stream
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Header, HTTPException, UploadFile

from app.auth.supabase_auth import get_current_user_id
from app.config import settings
from app.ingestion.intake import ingest_upload
from app.streaming.range_streamer import (
    RangeNotSatisfiableError,
    TrackNotStreamableError,
    stream_track,
)
from app.tracks.models import Track

logger = logging.getLogger(__name__)
router = APIRouter()

# Wired in during lifespan
_dispatcher = None
_tracks = None
_blob_store = None


def set_dispatcher(dispatcher):
    global _dispatcher
    _dispatcher = dispatcher


def set_track_repository(tracks):
    global _tracks
    _tracks = tracks


def set_blob_store(store):
    global _blob_store
    _blob_store = store


def _song_to_dict(track: Track) -> dict:
    return {
        "id": track.id,
        "title": track.title,
        "artist": track.artist,
        "album": track.album,
        "genre": track.genre,
        "year": track.year,
        "duration": track.duration,
        "file_size": track.file_size,
        "status": track.status.value,
        "created_at": track.created_at.isoformat(),
    }


async def _read_upload(file: UploadFile) -> bytes:
    chunks = []
    total = 0
    while True:
        chunk = await file.read(1024 * 1024)  # 1 MB chunks
        if not chunk:
            break
        total += len(chunk)
        if total > settings.max_upload_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File too large (max {settings.max_upload_bytes // (1024 * 1024)} MB)",
            )
        chunks.append(chunk)
    return b"".join(chunks)


# ---------------------------------------------------------------------------
# POST /songs/upload
# ---------------------------------------------------------------------------

@router.post("/songs/upload")
async def upload_song(
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
):
    """Accept an audio upload, persist it, and queue ingestion.

    Returns:
        {message, song: {id, title, status}, job_id}
    """
    if _dispatcher is None or _tracks is None or _blob_store is None:
        raise HTTPException(status_code=503, detail="Ingestion not ready")

    if not file.content_type or not file.content_type.startswith("audio/"):
        raise HTTPException(status_code=400, detail="File must be an audio file")

    data = await _read_upload(file)
    if not data:
        raise HTTPException(status_code=400, detail="No file provided")

    try:
        track, job_id = await ingest_upload(
            data, file.filename, user_id, _tracks, _blob_store, _dispatcher
        )
    except Exception as exc:
        logger.error("Upload failed for %s: %s", file.filename, exc, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save upload")

    return {
        "message": "File uploaded successfully",
        "song": {
            "id": track.id,
            "title": track.title,
            "status": track.status.value,
        },
        "job_id": job_id,
    }


# ---------------------------------------------------------------------------
# GET /songs/{song_id}
# ---------------------------------------------------------------------------

@router.get("/songs/{song_id}")
def get_song(song_id: str, user_id: str = Depends(get_current_user_id)):
    if _tracks is None:
        raise HTTPException(status_code=503, detail="Track store not ready")

    track = _tracks.get_track(song_id)
    if track is None or (track.user_id and track.user_id != user_id):
        raise HTTPException(status_code=404, detail="Song not found")
    return _song_to_dict(track)


# ---------------------------------------------------------------------------
# GET /songs/{song_id}/stream
# ---------------------------------------------------------------------------

@router.get("/songs/{song_id}/stream")
def stream_song(song_id: str, range_header: Optional[str] = Header(None, alias="Range")):
    """Stream a processed song. Honours single `bytes=start-[end]` ranges."""
    if _tracks is None:
        raise HTTPException(status_code=503, detail="Track store not ready")

    try:
        return stream_track(_tracks.get_track(song_id), range_header)
    except TrackNotStreamableError as exc:
        logger.warning("Stream refused for song %s: %s", song_id, exc)
        raise HTTPException(status_code=404, detail=str(exc))
    except RangeNotSatisfiableError as exc:
        raise HTTPException(
            status_code=416,
            detail=str(exc),
            headers={"Content-Range": f"bytes */{exc.size}", "Accept-Ranges": "bytes"},
        )
