"""Filesystem blob storage for uploaded and processed audio."""

import logging
import os
import shutil
import uuid
from typing import Optional

from app.config import settings

logger = logging.getLogger(__name__)


class BlobStore:
    """Maps generated filenames to paths under the upload and processed roots."""

    def __init__(self, upload_dir: str, processed_dir: str):
        self._upload_dir = upload_dir
        self._processed_dir = processed_dir

    @property
    def upload_dir(self) -> str:
        return self._upload_dir

    @property
    def processed_dir(self) -> str:
        return self._processed_dir

    def ensure_roots(self) -> None:
        os.makedirs(self._upload_dir, exist_ok=True)
        os.makedirs(self._processed_dir, exist_ok=True)

    @staticmethod
    def derive_path(root: str, filename: str) -> str:
        """Join a filename onto a root. No I/O."""
        return os.path.join(root, filename)

    def upload_path(self, filename: str) -> str:
        return self.derive_path(self._upload_dir, filename)

    def processed_path(self, filename: str) -> str:
        return self.derive_path(self._processed_dir, filename)

    def save(self, data: bytes, path: str) -> None:
        """Write bytes to path.

        Writes to a sibling temp file and renames it into place, so a reader
        never sees a half-written file. I/O errors propagate.
        """
        self.ensure_roots()
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        tmp_path = f"{path}.{uuid.uuid4().hex}.part"
        try:
            with open(tmp_path, "wb") as dst:
                dst.write(data)
            os.replace(tmp_path, path)
        except Exception:
            self._discard(tmp_path)
            raise

    def copy(self, src: str, dst: str) -> str:
        """Copy src to dst (src is left in place). Returns dst."""
        self.ensure_roots()
        os.makedirs(os.path.dirname(dst) or ".", exist_ok=True)
        tmp_path = f"{dst}.{uuid.uuid4().hex}.part"
        try:
            shutil.copyfile(src, tmp_path)
            os.replace(tmp_path, dst)
        except Exception:
            self._discard(tmp_path)
            raise
        return dst

    def delete(self, path: Optional[str]) -> None:
        """Best-effort delete. Missing files are fine; other errors only warn."""
        if not path:
            return
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not delete blob %s: %s", path, exc)

    @staticmethod
    def _discard(path: str) -> None:
        try:
            os.remove(path)
        except OSError:
            pass


# Global instance
blob_store = BlobStore(settings.upload_dir, settings.processed_dir)
