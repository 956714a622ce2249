"""Ingestion worker: materialise the processed blob, extract tags, update the track."""

import logging
import os

from app.audio.metadata import AudioMetadata, extract_metadata
from app.jobs.models import IngestionJob
from app.storage.blob_store import BlobStore
from app.tracks.models import UNKNOWN_TITLE, TrackStatus
from app.tracks.repository import TrackRepository

logger = logging.getLogger(__name__)


def processed_filename(track_id: str, original_path: str) -> str:
    """`<track_id><ext>` where ext is the original upload's extension."""
    return f"{track_id}{os.path.splitext(original_path)[1]}"


def ready_fields(processed_path: str, metadata: AudioMetadata) -> dict:
    """Fields written when a track becomes READY.

    Extracted tags overwrite the record only where present; title always
    gets a value so the track can be displayed.
    """
    fields = {
        "processed_path": processed_path,
        "status": TrackStatus.READY,
        "duration": metadata.duration,
    }
    fields.update(metadata.present_fields())
    fields["title"] = metadata.title or UNKNOWN_TITLE
    return fields


class IngestionWorker:
    """Handler for `process-audio` jobs. Called by the queue in a worker thread."""

    def __init__(self, tracks: TrackRepository, store: BlobStore):
        self._tracks = tracks
        self._store = store

    def __call__(self, job: IngestionJob) -> None:
        self.process(job)

    def process(self, job: IngestionJob) -> None:
        """Copy the upload, read its tags, then mark the track READY.

        The record only becomes READY after the processed file exists. Any
        failure in the copy or the update marks the track ERROR and re-raises
        so the queue records the job as failed. The original upload is kept.
        """
        logger.info("Ingesting track %s from %s", job.track_id, job.original_path)
        try:
            processed_path = self._store.processed_path(
                processed_filename(job.track_id, job.original_path)
            )
            self._store.copy(job.original_path, processed_path)

            metadata = extract_metadata(job.original_path)
            if metadata.degraded:
                logger.warning(
                    "Track %s: metadata unavailable, continuing with defaults", job.track_id
                )

            self._tracks.update_track(job.track_id, **ready_fields(processed_path, metadata))
        except Exception:
            self._mark_error(job.track_id)
            raise

        logger.info(
            "Track %s ready at %s (%ss)", job.track_id, processed_path, metadata.duration
        )

    def _mark_error(self, track_id: str) -> None:
        try:
            self._tracks.update_track(track_id, status=TrackStatus.ERROR)
        except Exception as exc:
            logger.error("Could not mark track %s as ERROR: %s", track_id, exc)
