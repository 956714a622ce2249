"""Upload intake: persist the raw upload, create its track, queue ingestion."""

import logging
import os
import uuid
from typing import Optional, Tuple

from app.jobs.dispatcher import JobDispatcher
from app.jobs.models import IngestionJob, PROCESS_AUDIO
from app.storage.blob_store import BlobStore
from app.tracks.models import Track, TrackStatus, UNKNOWN_TITLE
from app.tracks.repository import TrackRepository

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".mp3"


def blob_filename(original_filename: Optional[str]) -> str:
    """Generated `<uuid><ext>`; only the extension comes from the user."""
    ext = os.path.splitext(os.path.basename(original_filename or ""))[1].lower()
    if not ext or len(ext) > 10 or not ext[1:].isalnum():
        ext = DEFAULT_EXTENSION
    return f"{uuid.uuid4()}{ext}"


def title_from_filename(original_filename: Optional[str]) -> str:
    stem = os.path.splitext(os.path.basename(original_filename or ""))[0].strip()
    return stem or UNKNOWN_TITLE


async def ingest_upload(
    data: bytes,
    original_filename: Optional[str],
    owner_id: Optional[str],
    tracks: TrackRepository,
    store: BlobStore,
    dispatcher: JobDispatcher,
) -> Tuple[Track, str]:
    """Save the upload and enqueue its ingestion job.

    Returns (track, job_id). The track starts in PROCESSING. If the record
    cannot be created the saved blob is removed again; if only the job
    cannot be queued the track is marked ERROR and keeps its upload.
    """
    upload_path = store.upload_path(blob_filename(original_filename))
    store.save(data, upload_path)

    try:
        track = tracks.create_track(
            title=title_from_filename(original_filename),
            original_path=upload_path,
            file_size=len(data),
            status=TrackStatus.PROCESSING,
            user_id=owner_id,
        )
    except Exception:
        store.delete(upload_path)
        raise

    try:
        job_id = await dispatcher.enqueue(
            IngestionJob(
                job_type=PROCESS_AUDIO,
                track_id=track.id,
                original_path=upload_path,
            )
        )
    except Exception:
        tracks.update_track(track.id, status=TrackStatus.ERROR)
        raise

    logger.info(
        "Upload accepted: track %s (%d bytes) saved to %s, job %s",
        track.id, len(data), upload_path, job_id,
    )
    return track, job_id
