"""Transcription-related data models."""

from dataclasses import dataclass
from typing import Optional, List


@dataclass(frozen=True)
class TranscriptFragment:
    """One increment of recognized speech, final or interim."""
    text: str
    is_final: bool
    confidence: float = 0.0
    alternatives: Optional[List[str]] = None


@dataclass(frozen=True)
class UpdatedTranscript:
    """Committed and live transcript after a batch of fragments."""
    committed: str
    live: str
