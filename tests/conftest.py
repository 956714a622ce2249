"""Pytest configuration.

Points the blob store roots at a scratch directory before `app` is imported,
and provides helpers for synthesising small audio files.
"""

import os
import tempfile
import wave

import pytest

_SCRATCH = tempfile.mkdtemp(prefix="music-library-tests-")
os.environ["UPLOAD_DIR"] = os.path.join(_SCRATCH, "uploads")
os.environ["PROCESSED_DIR"] = os.path.join(_SCRATCH, "processed")
os.environ["TRACK_STORE"] = "memory"


def write_wav(path, seconds: float = 1.0, rate: int = 8000) -> str:
    """Write a mono 16-bit silent WAV file."""
    with wave.open(str(path), "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(rate)
        w.writeframes(b"\x00\x00" * int(rate * seconds))
    return str(path)


def tag_wav(path, **tags) -> str:
    """Add ID3 tags (title, artist, album, genre, year) to a WAV file."""
    from mutagen.id3 import TALB, TCON, TDRC, TIT2, TPE1
    from mutagen.wave import WAVE

    frames = {"title": TIT2, "artist": TPE1, "album": TALB, "genre": TCON, "year": TDRC}
    audio = WAVE(str(path))
    if audio.tags is None:
        audio.add_tags()
    for key, value in tags.items():
        audio.tags.add(frames[key](encoding=3, text=[str(value)]))
    audio.save()
    return str(path)


@pytest.fixture
def store(tmp_path):
    from app.storage.blob_store import BlobStore

    return BlobStore(str(tmp_path / "uploads"), str(tmp_path / "processed"))


def write_mp3(path, frames: int = 200) -> str:
    """Write silent MPEG-1 Layer III frames (128 kbps, 44.1 kHz, stereo).

    Each frame is 417 bytes and holds 1152 samples, so 200 frames last ~5.2s.
    """
    header = b"\xff\xfb\x90\x00"
    frame = header + b"\x00" * (417 - len(header))
    with open(path, "wb") as f:
        f.write(frame * frames)
    return str(path)


def tag_mp3(path, **frames) -> str:
    """Save ID3 frames onto an MP3 file, e.g. title=["One", "Two"]."""
    from mutagen.id3 import ID3, TALB, TCON, TDRC, TIT2, TPE1

    classes = {"title": TIT2, "artist": TPE1, "album": TALB, "genre": TCON, "year": TDRC}
    tags = ID3()
    for key, value in frames.items():
        text = value if isinstance(value, list) else [str(value)]
        tags.add(classes[key](encoding=3, text=text))
    tags.save(str(path))
    return str(path)
