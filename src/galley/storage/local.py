"""Blob store adapters backed by a local directory or a dict."""

import logging
from pathlib import Path
from typing import Optional, Union

from galley.storage.base import BlobStore

logger = logging.getLogger(__name__)


class LocalBlobStore(BlobStore):
    """Serve uploads from a directory on disk.

    Paths that resolve outside ``base_dir`` are treated as missing.
    """

    def __init__(self, base_dir: Union[str, Path]) -> None:
        self.base_dir = Path(base_dir).resolve()

    def _resolve(self, path: str) -> Optional[Path]:
        full_path = (self.base_dir / path.lstrip("/")).resolve()
        try:
            full_path.relative_to(self.base_dir)
        except ValueError:
            logger.warning("Rejected blob path outside upload dir: %s", path)
            return None
        return full_path

    def get(self, path: str) -> Optional[bytes]:
        full_path = self._resolve(path)
        if full_path is None or not full_path.is_file():
            return None
        try:
            return full_path.read_bytes()
        except OSError as e:
            logger.warning("Could not read blob %s: %s", path, e)
            return None


class MemoryBlobStore(BlobStore):
    """Keep blobs in a dict; useful for tests and previews."""

    def __init__(self, blobs: Optional[dict[str, bytes]] = None) -> None:
        self.blobs: dict[str, bytes] = dict(blobs or {})

    def put(self, path: str, data: bytes) -> None:
        self.blobs[path] = data

    def get(self, path: str) -> Optional[bytes]:
        return self.blobs.get(path)
