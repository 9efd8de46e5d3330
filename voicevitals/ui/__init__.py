"""Terminal UI for VoiceVitals."""

from .transcript_screen import TranscriptScreen

__all__ = ["TranscriptScreen"]
