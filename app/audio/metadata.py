"""Best-effort audio metadata extraction using Mutagen.

Extraction never raises: a file Mutagen cannot parse yields a degraded
result with zero duration and no tag fields, and ingestion carries on.
"""

import logging
from typing import Any, Dict, List, Optional

from mutagen import File as MutagenFile
from pydantic import BaseModel

logger = logging.getLogger(__name__)

# ID3 (MP3/WAV/AIFF), MP4 atoms, then Vorbis/FLAC/APE comment keys
_TITLE_TAGS = ["TIT2", "\xa9nam", "TITLE", "title", "Title"]
_ARTIST_TAGS = ["TPE1", "\xa9ART", "ARTIST", "artist", "Artist"]
_ALBUM_TAGS = ["TALB", "\xa9alb", "ALBUM", "album", "Album"]
_GENRE_TAGS = ["TCON", "\xa9gen", "GENRE", "genre", "Genre"]
_YEAR_TAGS = ["TDRC", "TYER", "\xa9day", "DATE", "YEAR", "date", "year", "Year"]


class AudioMetadata(BaseModel):
    """Extracted metadata. Tag fields are None when the source lacks them."""
    duration: int = 0
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    genre: Optional[str] = None
    year: Optional[int] = None
    degraded: bool = False

    def present_fields(self) -> Dict[str, Any]:
        """Tag fields that were actually found in the file."""
        return self.model_dump(
            include={"title", "artist", "album", "genre", "year"},
            exclude_none=True,
        )


def get_tag_value(audio_file: Any, tag_names: List[str]) -> Optional[str]:
    """Return the first non-blank value among tag_names."""
    for tag_name in tag_names:
        try:
            value = audio_file.get(tag_name)
        except (KeyError, ValueError):
            # Vorbis comments raise ValueError for keys they cannot hold
            continue
        if not value:
            continue
        # ID3 frames carry their values in .text; TCON resolves "(17)" to "Rock"
        if getattr(value, "genres", None):
            value = value.genres
        elif hasattr(value, "text"):
            value = value.text
        if isinstance(value, list):
            if not value:
                continue
            value = value[0]
        text = str(value).strip()
        if text:
            return text
    return None


def parse_year(raw: Optional[str]) -> Optional[int]:
    """Year from '2001', '2001-05-02' or '2001/05'."""
    if not raw:
        return None
    head = raw.replace("/", "-").split("-")[0].strip()
    try:
        year = int(head)
    except ValueError:
        return None
    return year if year > 0 else None


def round_duration(seconds: Optional[float]) -> int:
    if not seconds or seconds < 0:
        return 0
    return int(seconds + 0.5)


def extract_metadata(file_path: str) -> AudioMetadata:
    """Parse duration and descriptive tags from an audio file."""
    try:
        audio_file = MutagenFile(file_path)
        if audio_file is None:
            logger.warning("Unrecognised audio container: %s", file_path)
            return AudioMetadata(degraded=True)

        duration = round_duration(getattr(getattr(audio_file, "info", None), "length", None))
        return AudioMetadata(
            duration=duration,
            title=get_tag_value(audio_file, _TITLE_TAGS),
            artist=get_tag_value(audio_file, _ARTIST_TAGS),
            album=get_tag_value(audio_file, _ALBUM_TAGS),
            genre=get_tag_value(audio_file, _GENRE_TAGS),
            year=parse_year(get_tag_value(audio_file, _YEAR_TAGS)),
        )
    except Exception as exc:
        logger.warning("Metadata extraction failed for %s: %s", file_path, exc)
        return AudioMetadata(degraded=True)
