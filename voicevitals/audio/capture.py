"""Audio capture controller recording alongside speech recognition."""

import io
import wave
import logging
import threading
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

import numpy as np

from .device import AbstractAudioDevice
from ..models.audio import AudioArtifact, AudioStats
from ..models.errors import ErrorKind, VoiceSessionError
from ..storage.artifact_store import ArtifactStore

logger = logging.getLogger(__name__)


class AudioCaptureState(Enum):
    IDLE = "idle"
    RECORDING = "recording"
    FINALIZING = "finalizing"


class AudioCaptureController:
    """Records raw audio for the session and produces one playable artifact.

    The device is held from ``start`` until finalization and released
    exactly once on every exit path.
    """

    def __init__(
        self,
        device_factory: Callable[[], AbstractAudioDevice],
        artifact_store: ArtifactStore,
        on_artifact: Callable[[Optional[AudioArtifact]], None],
        on_failure: Callable[[VoiceSessionError], None],
        on_idle: Callable[[], None],
        chunk_interval: float = 1.0,
        lock: Optional[threading.RLock] = None,
    ):
        """Initialize audio capture controller.

        Args:
            device_factory: Creates the device for each session
            artifact_store: Stores finalized recordings
            on_artifact: Receives the artifact (None if nothing was captured)
            on_failure: Receives device failures during capture
            on_idle: Called once the device has been released
            chunk_interval: Seconds of audio per emitted chunk
            lock: Lock shared with the rest of the session
        """
        self.device_factory = device_factory
        self.artifact_store = artifact_store
        self.on_artifact = on_artifact
        self.on_failure = on_failure
        self.on_idle = on_idle
        self.chunk_interval = chunk_interval
        self.lock = lock or threading.RLock()

        self.state = AudioCaptureState.IDLE
        self.device: Optional[AbstractAudioDevice] = None
        self.chunks: List[bytes] = []
        self.start_time: Optional[datetime] = None
        self.peak_level = 0.0

    @property
    def is_idle(self) -> bool:
        return self.state == AudioCaptureState.IDLE

    def start(self) -> None:
        """Acquire the microphone and begin chunk delivery.

        Raises:
            VoiceSessionError: DEVICE_ACCESS_DENIED if the device is refused
        """
        with self.lock:
            if self.state != AudioCaptureState.IDLE:
                logger.warning(f"Audio capture already running (state={self.state.value})")
                return

            device = self.device_factory()
            device.acquire()

            self.device = device
            self.chunks = []
            self.peak_level = 0.0
            self.start_time = datetime.now()
            self.state = AudioCaptureState.RECORDING
            logger.info(f"Starting audio capture ({self.chunk_interval}s chunks)")

            try:
                device.start(
                    self.chunk_interval,
                    on_chunk=self._handle_chunk,
                    on_stopped=self._handle_stopped,
                    on_failure=self._handle_failure,
                )
            except Exception as e:
                logger.error(f"Audio device failed to start: {e}")
                self._release_device()
                self.state = AudioCaptureState.IDLE
                raise VoiceSessionError(ErrorKind.DEVICE_ACCESS_DENIED, code=type(e).__name__) from e

    def stop(self) -> None:
        """Request finalization; ``on_idle`` fires once the device is released."""
        with self.lock:
            if self.state != AudioCaptureState.RECORDING:
                return
            logger.info("Stopping audio capture")
            self.state = AudioCaptureState.FINALIZING
            self.device.stop()

    def _handle_chunk(self, data: bytes) -> None:
        with self.lock:
            if self.state == AudioCaptureState.IDLE or not data:
                return
            self.chunks.append(data)
            self._update_peak_level(data)

    def _handle_stopped(self) -> None:
        with self.lock:
            if self.device is None:
                return
            self._finalize()

    def _handle_failure(self, error: Exception) -> None:
        with self.lock:
            if self.device is None:
                return
            logger.error(f"Audio capture failed: {error}")
            self.state = AudioCaptureState.FINALIZING
            self._finalize()
            self.on_failure(VoiceSessionError(ErrorKind.DEVICE_ACCESS_DENIED, code="audio-capture"))

    def _finalize(self) -> None:
        artifact = None
        try:
            audio_data = b"".join(self.chunks)
            if audio_data:
                artifact = self.artifact_store.create(
                    self._to_wav(audio_data),
                    mime_type="audio/wav",
                    duration_seconds=self._duration_of(audio_data),
                )
            else:
                logger.warning("No audio data captured")
        except Exception as e:
            logger.error(f"Error saving audio artifact: {e}", exc_info=True)
        finally:
            self._release_device()
            self.state = AudioCaptureState.IDLE

        logger.info(f"Audio capture finalized: {len(self.chunks)} chunks")
        self.on_artifact(artifact)
        self.on_idle()

    def _release_device(self) -> None:
        device, self.device = self.device, None
        if device is not None:
            device.release()

    def _to_wav(self, audio_data: bytes) -> bytes:
        buffer = io.BytesIO()
        with wave.open(buffer, 'wb') as wf:
            wf.setnchannels(self.device.channels)
            wf.setsampwidth(self.device.sample_width)
            wf.setframerate(self.device.sample_rate)
            wf.writeframes(audio_data)
        return buffer.getvalue()

    def _duration_of(self, audio_data: bytes) -> float:
        bytes_per_second = self.device.sample_rate * self.device.channels * self.device.sample_width
        return len(audio_data) / bytes_per_second

    def _update_peak_level(self, data: bytes) -> None:
        samples = np.frombuffer(data[:len(data) - len(data) % 2], dtype=np.int16)
        if samples.size:
            peak = float(np.abs(samples.astype(np.int32)).max()) / 32768.0
            self.peak_level = max(self.peak_level, peak)

    def get_capture_stats(self) -> AudioStats:
        """Get current capture statistics."""
        duration = 0.0
        if self.start_time and self.state != AudioCaptureState.IDLE:
            duration = (datetime.now() - self.start_time).total_seconds()

        device = self.device
        return AudioStats(
            state=self.state.value,
            duration_seconds=duration,
            total_chunks=len(self.chunks),
            buffered_bytes=sum(len(chunk) for chunk in self.chunks),
            sample_rate=device.sample_rate if device else 0,
            chunk_interval=self.chunk_interval,
            peak_level=self.peak_level,
        )
