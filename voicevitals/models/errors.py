"""Error taxonomy for voice capture sessions."""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Kinds of failure a voice capture session can surface."""
    UNSUPPORTED_CAPABILITY = "unsupported_capability"
    MICROPHONE_DENIED = "microphone_denied"
    DEVICE_ACCESS_DENIED = "device_access_denied"
    NO_SPEECH_DETECTED = "no_speech_detected"
    NETWORK_ERROR = "network_error"
    ABORTED = "aborted"
    SERVICE_UNAVAILABLE = "service_unavailable"
    UNKNOWN = "unknown"


# Engine error codes as reported by continuous recognition engines
ENGINE_ERROR_CODES = {
    "no-speech": ErrorKind.NO_SPEECH_DETECTED,
    "audio-capture": ErrorKind.MICROPHONE_DENIED,
    "not-allowed": ErrorKind.MICROPHONE_DENIED,
    "network": ErrorKind.NETWORK_ERROR,
    "aborted": ErrorKind.ABORTED,
    "service-not-allowed": ErrorKind.SERVICE_UNAVAILABLE,
}

ERROR_MESSAGES = {
    ErrorKind.UNSUPPORTED_CAPABILITY: "Speech recognition not supported",
    ErrorKind.MICROPHONE_DENIED: "Microphone access denied. Please allow microphone access and try again.",
    ErrorKind.DEVICE_ACCESS_DENIED: "Failed to access microphone. Please allow microphone access and try again.",
    ErrorKind.NO_SPEECH_DETECTED: "No speech detected. Please speak clearly and try again.",
    ErrorKind.NETWORK_ERROR: "Network error. Please check your connection and try again.",
    ErrorKind.ABORTED: "Recording was stopped. You can start recording again.",
    ErrorKind.SERVICE_UNAVAILABLE: "Speech recognition service not available. Please try again.",
}

TRANSIENT_KINDS = {ErrorKind.NO_SPEECH_DETECTED, ErrorKind.NETWORK_ERROR}


class VoiceSessionError(Exception):
    """Failure raised or reported by the voice capture components."""

    def __init__(self, kind: ErrorKind, code: Optional[str] = None, message: Optional[str] = None):
        self.kind = kind
        self.code = code or kind.value
        if message is None:
            message = ERROR_MESSAGES.get(
                kind, f"Speech recognition error: {self.code}. Please try again."
            )
        self.message = message
        super().__init__(message)

    @property
    def transient(self) -> bool:
        """True when speaking again or retrying may succeed without user action."""
        return self.kind in TRANSIENT_KINDS

    @classmethod
    def from_engine_code(cls, code: str) -> "VoiceSessionError":
        """Translate a raw engine error code into the session taxonomy."""
        return cls(ENGINE_ERROR_CODES.get(code, ErrorKind.UNKNOWN), code=code)

    def __repr__(self) -> str:
        return f"VoiceSessionError(kind={self.kind.name}, code={self.code!r})"
