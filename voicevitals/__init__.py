"""VoiceVitals: voice capture sessions for health logging."""

__version__ = "0.1.0"
