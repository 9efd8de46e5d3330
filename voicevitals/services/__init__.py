"""Service layer for VoiceVitals."""

from .voice_session import VoiceSessionOrchestrator
from .publisher import SessionPublisher
from .health_client import HealthApiClient, HealthApiError, submit_session_transcript

__all__ = [
    'VoiceSessionOrchestrator',
    'SessionPublisher',
    'HealthApiClient',
    'HealthApiError',
    'submit_session_transcript',
]
