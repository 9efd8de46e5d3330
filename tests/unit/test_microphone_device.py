"""Unit tests for PyAudioMicrophone."""

import time
import threading
import pytest
from unittest.mock import MagicMock

from voicevitals.audio.audio_pub import AudioPublisher
from voicevitals.audio.device import PyAudioMicrophone
from voicevitals.models.errors import ErrorKind, VoiceSessionError


def wait_for(event: threading.Event, timeout: float = 2.0) -> bool:
    return event.wait(timeout)


@pytest.mark.unit
class TestPyAudioMicrophone:
    """Test cases for PyAudioMicrophone."""

    def test_initialization(self):
        mic = PyAudioMicrophone()

        assert mic.sample_rate == 16000
        assert mic.frames_per_buffer == 1024
        assert mic.channels == 1
        assert mic.stream is None

    def test_acquire_opens_input_stream(self, mock_pyaudio):
        mic = PyAudioMicrophone(sample_rate=44100, frames_per_buffer=512)

        mic.acquire()

        kwargs = mock_pyaudio['instance'].open.call_args.kwargs
        assert kwargs['rate'] == 44100
        assert kwargs['input'] is True
        assert kwargs['frames_per_buffer'] == 512
        assert mic.stream is mock_pyaudio['stream']

    def test_acquire_failure_raises_device_denied(self, mock_pyaudio):
        mock_pyaudio['instance'].open.side_effect = OSError(-9996, "Invalid input device")
        mic = PyAudioMicrophone()

        with pytest.raises(VoiceSessionError) as exc_info:
            mic.acquire()

        assert exc_info.value.kind == ErrorKind.DEVICE_ACCESS_DENIED
        mock_pyaudio['instance'].terminate.assert_called_once()
        assert mic.pyaudio_instance is None

    def test_start_requires_acquire(self):
        mic = PyAudioMicrophone()

        with pytest.raises(RuntimeError):
            mic.start(1.0, MagicMock(), MagicMock(), MagicMock())

    def test_release_closes_stream_and_terminates(self, mock_pyaudio):
        mic = PyAudioMicrophone()
        mic.acquire()

        mic.release()
        mic.release()

        mock_pyaudio['stream'].stop_stream.assert_called_once()
        mock_pyaudio['stream'].close.assert_called_once()
        mock_pyaudio['instance'].terminate.assert_called_once()

    @pytest.mark.slow
    def test_frames_grouped_into_chunks(self, mock_pyaudio):
        # 100 samples per frame, 400 samples per chunk at 4kHz/0.1s
        mock_pyaudio['stream'].read.return_value = b'\x01\x00' * 100
        mic = PyAudioMicrophone(sample_rate=4000, frames_per_buffer=100)
        chunks = []
        stopped = threading.Event()

        mic.acquire()
        mic.start(0.1, chunks.append, stopped.set, MagicMock())
        time.sleep(0.1)
        mic.stop()

        assert wait_for(stopped)
        assert mic.total_frames > 0
        assert b"".join(chunks) == b'\x01\x00' * 100 * mic.total_frames
        assert all(len(chunk) == 800 for chunk in chunks[:-1])

    @pytest.mark.slow
    def test_frames_published_on_topic(self, mock_pyaudio):
        publisher = AudioPublisher("test_microphone_frames")
        publisher.publish_frame = MagicMock()
        mic = PyAudioMicrophone(publisher=publisher)
        stopped = threading.Event()

        mic.acquire()
        mic.start(1.0, MagicMock(), stopped.set, MagicMock())
        time.sleep(0.05)
        mic.stop()

        assert wait_for(stopped)
        event = publisher.publish_frame.call_args_list[0][0][0]
        assert event.sequence_number == 1
        assert event.audio_data == b'\x00' * 2048
        assert event.frame_duration_ms == 64

    @pytest.mark.slow
    def test_read_error_reports_failure(self, mock_pyaudio):
        mock_pyaudio['stream'].read.side_effect = OSError("Stream closed")
        mic = PyAudioMicrophone()
        failed = threading.Event()
        errors = []

        def on_failure(error):
            errors.append(error)
            failed.set()

        mic.acquire()
        mic.start(1.0, MagicMock(), MagicMock(), on_failure)

        assert wait_for(failed)
        assert isinstance(errors[0], OSError)
