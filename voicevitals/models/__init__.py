"""Data models for the VoiceVitals voice capture session."""

from .transcription import TranscriptFragment, UpdatedTranscript
from .audio import AudioStats, AudioArtifact
from .events import AudioFrameEvent
from .session import Session, StartOutcome
from .errors import ErrorKind, VoiceSessionError

__all__ = [
    "TranscriptFragment",
    "UpdatedTranscript",
    "AudioStats",
    "AudioArtifact",
    "AudioFrameEvent",
    "Session",
    "StartOutcome",
    "ErrorKind",
    "VoiceSessionError",
]
