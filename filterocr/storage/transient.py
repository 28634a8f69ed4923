from __future__ import annotations

import logging
import time
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)


class TransientStore:
    """Short-lived on-disk copies of enhanced images, kept only for debugging.

    Nothing here may fail a request: write and discard errors are logged and
    swallowed.
    """

    def __init__(self, directory: str | Path, *, enabled: bool = True) -> None:
        self._dir = Path(directory)
        self._enabled = enabled

    @property
    def directory(self) -> Path:
        return self._dir

    def ensure_dir(self) -> None:
        if self._enabled:
            self._dir.mkdir(parents=True, exist_ok=True)

    def unique_path(self) -> Path:
        return self._dir / f"processed_{time.time_ns()}_{uuid.uuid4().hex}.png"

    def write(self, png_bytes: bytes) -> Path | None:
        if not self._enabled:
            return None
        path = self.unique_path()
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(png_bytes)
        except OSError as exc:
            logger.warning("transient_write_failed", extra={"path": str(path), "error": str(exc)})
            return None
        return path

    def discard(self, path: Path | None) -> None:
        if path is None:
            return
        try:
            path.unlink()
        except OSError as exc:
            logger.error("transient_delete_failed", extra={"path": str(path), "error": str(exc)})
