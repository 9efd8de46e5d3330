"""Audio-related data models."""

from dataclasses import dataclass


@dataclass
class AudioStats:
    """Audio capture statistics."""
    state: str
    duration_seconds: float
    total_chunks: int
    buffered_bytes: int
    sample_rate: int
    chunk_interval: float
    peak_level: float = 0.0


@dataclass(frozen=True)
class AudioArtifact:
    """Finalized recording with a dereferenceable handle.

    The handle (``url``) stays valid until it is revoked through the
    artifact store that created it.
    """
    artifact_id: str
    blob: bytes
    url: str
    mime_type: str = "audio/wav"
    duration_seconds: float = 0.0

    @property
    def size_bytes(self) -> int:
        return len(self.blob)
