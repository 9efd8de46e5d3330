"""Unit tests for AudioCaptureController."""

import io
import wave
import pytest
from unittest.mock import MagicMock

from voicevitals.audio.capture import AudioCaptureController, AudioCaptureState
from voicevitals.models.audio import AudioStats
from voicevitals.models.errors import ErrorKind, VoiceSessionError
from conftest import FakeAudioDevice


class Harness:
    def __init__(self, device: FakeAudioDevice, artifact_store, chunk_interval: float = 1.0):
        self.device = device
        self.on_artifact = MagicMock()
        self.on_failure = MagicMock()
        self.on_idle = MagicMock()
        self.controller = AudioCaptureController(
            device_factory=lambda: device,
            artifact_store=artifact_store,
            on_artifact=self.on_artifact,
            on_failure=self.on_failure,
            on_idle=self.on_idle,
            chunk_interval=chunk_interval,
        )

    @property
    def artifact(self):
        return self.on_artifact.call_args[0][0]


@pytest.fixture
def harness(fake_device, artifact_store):
    return Harness(fake_device, artifact_store)


@pytest.mark.unit
class TestAudioCaptureController:
    """Test cases for AudioCaptureController."""

    def test_start_acquires_device_with_interval(self, fake_device, artifact_store):
        h = Harness(fake_device, artifact_store, chunk_interval=0.5)

        h.controller.start()

        assert h.controller.state == AudioCaptureState.RECORDING
        assert fake_device.acquire_calls == 1
        assert fake_device.timeslice == 0.5

    def test_default_interval_is_one_second(self, harness):
        harness.controller.start()

        assert harness.device.timeslice == 1.0

    def test_denied_device_raises(self, artifact_store):
        device = FakeAudioDevice(deny=True)
        h = Harness(device, artifact_store)

        with pytest.raises(VoiceSessionError) as exc_info:
            h.controller.start()

        assert exc_info.value.kind == ErrorKind.DEVICE_ACCESS_DENIED
        assert h.controller.state == AudioCaptureState.IDLE
        assert device.release_calls == 0

    def test_device_start_failure_releases_device(self, artifact_store):
        device = FakeAudioDevice()
        device.start = MagicMock(side_effect=RuntimeError("busy"))
        h = Harness(device, artifact_store)

        with pytest.raises(VoiceSessionError):
            h.controller.start()

        assert device.release_calls == 1
        assert h.controller.state == AudioCaptureState.IDLE

    def test_stop_concatenates_chunks_in_order(self, harness, artifact_store):
        harness.controller.start()
        harness.device.emit_chunk(b"\x01\x00" * 4)
        harness.device.emit_chunk(b"")
        harness.device.emit_chunk(b"\x02\x00" * 4)

        harness.controller.stop()

        artifact = harness.artifact
        with wave.open(io.BytesIO(artifact.blob), 'rb') as wf:
            assert wf.getnchannels() == 1
            assert wf.getframerate() == 16000
            assert wf.readframes(wf.getnframes()) == b"\x01\x00" * 4 + b"\x02\x00" * 4
        assert artifact.mime_type == "audio/wav"
        assert artifact_store.resolve(artifact.url) == artifact.blob

    def test_stop_releases_device_exactly_once(self, harness):
        harness.controller.start()
        harness.device.emit_chunk(b"\x00\x00" * 8)

        harness.controller.stop()
        harness.controller.stop()

        assert harness.device.release_calls == 1
        assert harness.controller.state == AudioCaptureState.IDLE
        harness.on_idle.assert_called_once()

    def test_finalizing_until_device_confirms(self, artifact_store):
        device = FakeAudioDevice(auto_stop=False)
        h = Harness(device, artifact_store)
        h.controller.start()

        h.controller.stop()
        assert h.controller.state == AudioCaptureState.FINALIZING
        assert device.release_calls == 0

        # Trailing chunk delivered while finalizing is kept
        device.emit_chunk(b"\x05\x00" * 2)
        device.confirm_stopped()

        assert h.controller.state == AudioCaptureState.IDLE
        assert h.artifact.duration_seconds == pytest.approx(2 / 16000)
        assert device.release_calls == 1

    def test_no_audio_produces_no_artifact(self, harness):
        harness.controller.start()

        harness.controller.stop()

        harness.on_artifact.assert_called_once_with(None)
        assert harness.device.release_calls == 1

    @pytest.mark.parametrize("error", [OSError("disk full"), RuntimeError("encoder broke")])
    def test_artifact_store_failure_still_goes_idle(self, fake_device, artifact_store, error):
        artifact_store.create = MagicMock(side_effect=error)
        h = Harness(fake_device, artifact_store)
        h.controller.start()
        fake_device.emit_chunk(b"\x00\x01" * 4)

        h.controller.stop()

        assert h.controller.state == AudioCaptureState.IDLE
        assert fake_device.release_calls == 1
        h.on_artifact.assert_called_once_with(None)
        h.on_idle.assert_called_once()

    def test_device_failure_finalizes_and_reports(self, harness):
        harness.controller.start()
        harness.device.emit_chunk(b"\x00\x10" * 4)

        harness.device.fail(OSError("Input overflowed"))

        assert harness.device.release_calls == 1
        assert harness.controller.state == AudioCaptureState.IDLE
        assert harness.artifact is not None
        error = harness.on_failure.call_args[0][0]
        assert error.kind == ErrorKind.DEVICE_ACCESS_DENIED

    def test_stop_after_failure_does_not_release_again(self, harness):
        harness.controller.start()
        harness.device.fail(OSError("unplugged"))

        harness.controller.stop()
        harness.device.confirm_stopped()

        assert harness.device.release_calls == 1

    def test_peak_level_tracks_loudest_chunk(self, harness, sample_audio_chunk):
        harness.controller.start()
        harness.device.emit_chunk(sample_audio_chunk)

        stats = harness.controller.get_capture_stats()

        assert isinstance(stats, AudioStats)
        assert stats.state == "recording"
        assert stats.total_chunks == 1
        assert stats.buffered_bytes == len(sample_audio_chunk)
        assert 0.4 < stats.peak_level < 0.6

    def test_start_while_recording_is_ignored(self, harness):
        harness.controller.start()
        harness.controller.start()

        assert harness.device.acquire_calls == 1
