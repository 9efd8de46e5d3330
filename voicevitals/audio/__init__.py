"""Audio capture module."""

from .audio_pub import AudioPublisher
from .capture import AudioCaptureController, AudioCaptureState
from .device import AbstractAudioDevice, PyAudioMicrophone

__all__ = [
    'AudioPublisher',
    'AudioCaptureController',
    'AudioCaptureState',
    'AbstractAudioDevice',
    'PyAudioMicrophone',
]
