"""Pytest configuration and fixtures for VoiceVitals tests."""

import pytest
import tempfile
import logging
from typing import List, Optional
from unittest.mock import Mock, patch
import numpy as np

from voicevitals.audio.device import AbstractAudioDevice
from voicevitals.models.errors import ErrorKind, VoiceSessionError
from voicevitals.models.transcription import TranscriptFragment
from voicevitals.storage.artifact_store import ArtifactStore
from voicevitals.transcription.base import AbstractRecognitionEngine


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class FakeRecognitionEngine(AbstractRecognitionEngine):
    """Recognition engine driven by the test.

    With ``auto_ready`` the ready event fires inside ``start``; with
    ``auto_end`` the ended event fires inside ``stop``, the way browser
    engines confirm quickly. ``fail_on_start`` makes the n-th start call raise.
    """

    def __init__(self, auto_ready: bool = True, auto_end: bool = True, fail_on_start: Optional[int] = None):
        super().__init__()
        self.auto_ready = auto_ready
        self.auto_end = auto_end
        self.fail_on_start = fail_on_start
        self.start_calls = 0
        self.stop_calls = 0

    def start(self) -> None:
        self.start_calls += 1
        if self.fail_on_start == self.start_calls:
            raise RuntimeError("recognition has already started")
        if self.auto_ready:
            self.emit_ready()

    def stop(self) -> None:
        self.stop_calls += 1
        if self.auto_end:
            self.emit_end()

    def emit_ready(self) -> None:
        self._emit_start()

    def emit_result(self, *fragments: TranscriptFragment) -> None:
        self._emit_result(list(fragments))

    def emit_final(self, text: str) -> None:
        self.emit_result(TranscriptFragment(text=text, is_final=True))

    def emit_interim(self, text: str) -> None:
        self.emit_result(TranscriptFragment(text=text, is_final=False))

    def emit_error(self, code: str) -> None:
        self._emit_error(code)

    def emit_end(self) -> None:
        self._emit_end()


class FakeAudioDevice(AbstractAudioDevice):
    """Audio device driven by the test; counts acquisitions and releases."""

    def __init__(self, deny: bool = False, auto_stop: bool = True):
        self.deny = deny
        self.auto_stop = auto_stop
        self.sample_rate = 16000
        self.channels = 1
        self.sample_width = 2
        self.acquire_calls = 0
        self.release_calls = 0
        self.stop_calls = 0
        self.timeslice: Optional[float] = None
        self._on_chunk = None
        self._on_stopped = None
        self._on_failure = None

    @property
    def held(self) -> bool:
        return self.acquire_calls > self.release_calls

    def acquire(self) -> None:
        if self.deny:
            raise VoiceSessionError(ErrorKind.DEVICE_ACCESS_DENIED, code="not-allowed")
        self.acquire_calls += 1

    def start(self, timeslice, on_chunk, on_stopped, on_failure) -> None:
        self.timeslice = timeslice
        self._on_chunk = on_chunk
        self._on_stopped = on_stopped
        self._on_failure = on_failure

    def stop(self) -> None:
        self.stop_calls += 1
        if self.auto_stop:
            self.confirm_stopped()

    def release(self) -> None:
        self.release_calls += 1

    def emit_chunk(self, data: bytes) -> None:
        self._on_chunk(data)

    def confirm_stopped(self) -> None:
        self._on_stopped()

    def fail(self, error: Exception) -> None:
        self._on_failure(error)


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def artifact_store(temp_data_dir):
    return ArtifactStore(temp_data_dir)


@pytest.fixture
def fake_engine():
    return FakeRecognitionEngine()


@pytest.fixture
def fake_device():
    return FakeAudioDevice()


@pytest.fixture
def sample_audio_chunk():
    """One second of a 440 Hz sine wave as 16-bit mono audio."""
    sample_rate = 16000
    t = np.linspace(0, 1.0, sample_rate, False)
    wave_data = np.sin(2 * np.pi * 440 * t) * 0.5
    return (wave_data * 32767).astype(np.int16).tobytes()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        mock_stream.read.return_value = b'\x00' * 2048  # Silent audio
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_sample_size.return_value = 2

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


def fragments(*pairs) -> List[TranscriptFragment]:
    """Build fragments from (text, is_final) pairs."""
    return [TranscriptFragment(text=text, is_final=is_final) for text, is_final in pairs]
