"""Serve processed track bytes with single-range partial content support.

Full responses are 200 with `Accept-Ranges: bytes`. A `Range: bytes=S-[E]`
header yields 206 with `Content-Range: bytes S-E/SIZE`. Anything else in the
Range header (suffix ranges, multiple ranges, out-of-bounds offsets) is
rejected rather than falling back to the whole file.
"""

import os
import re
from dataclasses import dataclass
from typing import BinaryIO, Iterator, Optional, Tuple

from starlette.background import BackgroundTask
from fastapi.responses import StreamingResponse

from app.config import settings
from app.tracks.models import Track

AUDIO_MEDIA_TYPE = "audio/mpeg"

_RANGE_RE = re.compile(r"^bytes=(\d+)-(\d*)$")


class TrackNotStreamableError(Exception):
    """Track missing, not READY, or its processed file is gone."""


class RangeNotSatisfiableError(Exception):
    """Range header is malformed or outside the file."""

    def __init__(self, size: int, reason: str):
        super().__init__(reason)
        self.size = size


@dataclass(frozen=True)
class ByteRange:
    start: int
    end: int  # inclusive

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, size: int) -> str:
        return f"bytes {self.start}-{self.end}/{size}"


def parse_range(header: str, size: int) -> ByteRange:
    """Parse a single `bytes=start-[end]` range against a file of `size` bytes."""
    match = _RANGE_RE.match(header.strip())
    if not match:
        raise RangeNotSatisfiableError(size, f"Unsupported range '{header}'")

    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else size - 1

    if start >= size:
        raise RangeNotSatisfiableError(size, f"Range start {start} beyond size {size}")
    if end >= size:
        raise RangeNotSatisfiableError(size, f"Range end {end} beyond size {size}")
    if start > end:
        raise RangeNotSatisfiableError(size, f"Range start {start} after end {end}")
    return ByteRange(start, end)


def open_processed_file(track: Optional[Track]) -> Tuple[BinaryIO, int]:
    """Open a READY track's processed blob. Checked on every request."""
    if track is None or not track.is_ready():
        raise TrackNotStreamableError("Song not found or not processed")
    try:
        fh = open(track.processed_path, "rb")
    except OSError:
        raise TrackNotStreamableError("File not found on server")
    return fh, os.fstat(fh.fileno()).st_size


def iter_file(fh: BinaryIO, start: int, length: int, chunk_size: int) -> Iterator[bytes]:
    """Yield `length` bytes from `start`, closing the file when done."""
    try:
        fh.seek(start)
        remaining = length
        while remaining > 0:
            chunk = fh.read(min(chunk_size, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk
    finally:
        fh.close()


def stream_track(
    track: Optional[Track],
    range_header: Optional[str] = None,
    chunk_size: Optional[int] = None,
) -> StreamingResponse:
    """Build the full (200) or partial (206) response for a track.

    Raises TrackNotStreamableError or RangeNotSatisfiableError; the caller
    maps them to 404 and 416.
    """
    chunk_size = chunk_size or settings.stream_chunk_bytes
    fh, size = open_processed_file(track)

    if not range_header:
        return StreamingResponse(
            iter_file(fh, 0, size, chunk_size),
            status_code=200,
            media_type=AUDIO_MEDIA_TYPE,
            headers={"Content-Length": str(size), "Accept-Ranges": "bytes"},
            background=BackgroundTask(fh.close),
        )

    try:
        byte_range = parse_range(range_header, size)
    except RangeNotSatisfiableError:
        fh.close()
        raise

    return StreamingResponse(
        iter_file(fh, byte_range.start, byte_range.length, chunk_size),
        status_code=206,
        media_type=AUDIO_MEDIA_TYPE,
        headers={
            "Content-Range": byte_range.content_range(size),
            "Content-Length": str(byte_range.length),
            "Accept-Ranges": "bytes",
        },
        background=BackgroundTask(fh.close),
    )
