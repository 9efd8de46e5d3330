"""Storage for finalized audio artifacts and their handles."""

import random
import string
import logging
import threading
from pathlib import Path
from datetime import datetime
from typing import Dict, List

from ..models.audio import AudioArtifact

logger = logging.getLogger(__name__)


class ArtifactStore:
    """Writes audio artifacts to disk and tracks which handles are live.

    A handle is the artifact's ``file://`` URL. It can be dereferenced with
    ``resolve`` until ``revoke`` deletes the backing file.
    """

    def __init__(self, data_dir: str = "./data"):
        """Initialize artifact store with data directory.

        Args:
            data_dir: Base directory; artifacts go under ``<data_dir>/audio``
        """
        self.data_dir = Path(data_dir)
        self.audio_dir = self.data_dir / "audio"
        self.audio_dir.mkdir(parents=True, exist_ok=True)

        self._live: Dict[str, Path] = {}
        self._lock = threading.Lock()

        logger.info(f"ArtifactStore initialized with data_dir: {self.data_dir}")

    def create(self, blob: bytes, mime_type: str = "audio/wav", duration_seconds: float = 0.0) -> AudioArtifact:
        """Persist a blob and return an artifact with a live handle."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=6))
        artifact_id = f"{timestamp}_{random_suffix}"

        path = (self.audio_dir / f"recording_{artifact_id}.wav").resolve()
        path.write_bytes(blob)
        url = path.as_uri()

        with self._lock:
            self._live[url] = path

        logger.info(f"Audio artifact saved: {path} ({len(blob)} bytes)")
        return AudioArtifact(
            artifact_id=artifact_id,
            blob=blob,
            url=url,
            mime_type=mime_type,
            duration_seconds=duration_seconds,
        )

    def resolve(self, url: str) -> bytes:
        """Dereference a live handle.

        Raises:
            KeyError: If the handle is unknown or was revoked
        """
        with self._lock:
            path = self._live.get(url)
        if path is None:
            raise KeyError(f"Artifact handle is not live: {url}")
        return path.read_bytes()

    def revoke(self, artifact: AudioArtifact) -> bool:
        """Invalidate an artifact's handle and delete its file.

        Returns:
            True if a live handle was released, False if it was already gone
        """
        with self._lock:
            path = self._live.pop(artifact.url, None)
        if path is None:
            return False
        path.unlink(missing_ok=True)
        logger.debug(f"Revoked artifact handle: {artifact.url}")
        return True

    def live_handles(self) -> List[str]:
        with self._lock:
            return list(self._live)
