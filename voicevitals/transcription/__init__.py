"""Speech recognition module for VoiceVitals."""

from .accumulator import TranscriptAccumulator
from .base import AbstractRecognitionEngine, RecognitionCapability, Available, Unavailable
from .controller import RecognitionSessionController, RecognitionState
from .google_backend import GoogleStreamingRecognitionEngine, resolve_recognition_capability

__all__ = [
    "TranscriptAccumulator",
    "AbstractRecognitionEngine",
    "RecognitionCapability",
    "Available",
    "Unavailable",
    "RecognitionSessionController",
    "RecognitionState",
    "GoogleStreamingRecognitionEngine",
    "resolve_recognition_capability",
]
