"""Session-related data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .audio import AudioArtifact
from .errors import ErrorKind


class StartOutcome(Enum):
    """Result of a start-recording request."""
    STARTED = "started"
    ALREADY_RECORDING = "already_recording"
    FAILED = "failed"


@dataclass
class Session:
    """State of one voice capture session.

    ``is_recording`` is what the user sees: it drops as soon as a stop is
    requested or an error occurs. ``is_active`` stays true until both the
    recognition and audio controllers have released their resources.
    """
    is_recording: bool = False
    is_active: bool = False
    committed_transcript: str = ""
    live_transcript: str = ""
    last_error: Optional[ErrorKind] = None
    error_message: str = ""
    retryable: bool = False
    audio_artifact: Optional[AudioArtifact] = None
    is_processing: bool = False
    response: Any = None
