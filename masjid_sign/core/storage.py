"""
Local blob bucket: files live under storage.directory/<bucket>/ and are served at
storage.public_url/<bucket>/<name>.
"""
import logging
import os
import re
import uuid
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


class StorageError(Exception):
    """Raised when a file cannot be stored; callers must not write the DB record."""


class BlobStorage:
    def __init__(self, config: Dict[str, Any]):
        self.logger = logging.getLogger(self.__class__.__name__)
        directory = config.get("directory") or ".uploads"
        self.root = Path(os.path.expanduser(directory)).resolve()
        self.public_url = str(config.get("public_url") or "").rstrip("/")

    def _bucket_dir(self, bucket: str) -> Path:
        path = self.root / _UNSAFE.sub("-", bucket)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def upload(self, bucket: str, filename: str, content: bytes) -> Tuple[str, str]:
        """Store content; returns (path inside the bucket, public URL). Raises StorageError."""
        if not content:
            raise StorageError("Empty file")
        stem, ext = os.path.splitext(os.path.basename(filename or "file"))
        name = f"{uuid.uuid4().hex}-{_UNSAFE.sub('-', stem)[:40]}{ext.lower()}"
        try:
            target = self._bucket_dir(bucket) / name
            target.write_bytes(content)
        except OSError as e:
            raise StorageError(f"Could not store {filename}: {e}") from e
        self.logger.info(f"Stored {filename} as {bucket}/{name}")
        return name, self.url_for(bucket, name)

    def url_for(self, bucket: str, name: str) -> str:
        return f"{self.public_url}/{bucket}/{name}"

    def path_for(self, bucket: str, name: str) -> Path:
        return self.root / bucket / name

    def delete(self, bucket: str, name: Optional[str]) -> bool:
        """Remove a stored file. Failure is logged, never raised."""
        if not name:
            return True
        try:
            self.path_for(bucket, os.path.basename(name)).unlink(missing_ok=True)
            return True
        except OSError as e:
            self.logger.error(f"Could not delete {bucket}/{name}: {e}")
            return False
