"""Voice session orchestrator combining recognition and audio capture."""

import logging
import threading
from dataclasses import replace
from typing import Any, Callable, Optional

from ..audio.capture import AudioCaptureController
from ..audio.device import AbstractAudioDevice
from ..models.audio import AudioArtifact
from ..models.errors import VoiceSessionError
from ..models.session import Session, StartOutcome
from ..models.transcription import UpdatedTranscript
from ..storage.artifact_store import ArtifactStore
from ..transcription.accumulator import TranscriptAccumulator
from ..transcription.base import RecognitionCapability
from ..transcription.controller import RecognitionSessionController
from .publisher import SessionPublisher

logger = logging.getLogger(__name__)


class VoiceSessionOrchestrator:
    """Runs speech recognition and audio capture as one recording session.

    Both controllers share one reentrant lock, so their callbacks are
    handled one at a time no matter which thread delivers them. If either
    side fails or ends on its own, the other is stopped: the two never
    diverge. ``is_active`` stays true until both have released their
    resources, and a new session cannot start before that.
    """

    def __init__(self,
                 capability: RecognitionCapability,
                 device_factory: Callable[[], AbstractAudioDevice],
                 artifact_store: ArtifactStore,
                 publisher: Optional[SessionPublisher] = None,
                 language: str = "en-US",
                 max_alternatives: int = 3,
                 interim_results: bool = True,
                 chunk_interval: float = 1.0):
        self.artifact_store = artifact_store
        self.publisher = publisher
        self._lock = threading.RLock()
        self._session = Session()
        self.accumulator = TranscriptAccumulator()

        self.recognition = RecognitionSessionController(
            capability=capability,
            accumulator=self.accumulator,
            should_continue=self._should_keep_listening,
            on_transcript=self._on_transcript,
            on_failure=self._on_recognition_failure,
            on_idle=self._on_recognition_idle,
            language=language,
            max_alternatives=max_alternatives,
            interim_results=interim_results,
            lock=self._lock,
        )
        self.audio = AudioCaptureController(
            device_factory=device_factory,
            artifact_store=artifact_store,
            on_artifact=self._on_artifact,
            on_failure=self._on_audio_failure,
            on_idle=self._on_audio_idle,
            chunk_interval=chunk_interval,
            lock=self._lock,
        )

    @property
    def session(self) -> Session:
        """Snapshot of the current session."""
        with self._lock:
            return replace(self._session)

    @property
    def is_recording(self) -> bool:
        return self._session.is_recording

    @property
    def is_active(self) -> bool:
        return self._session.is_active

    @property
    def transcript(self) -> str:
        return self._session.live_transcript

    def start_recording(self) -> StartOutcome:
        """Start recognition and audio capture together.

        Returns:
            STARTED, ALREADY_RECORDING if a session is still recording or
            releasing its resources, or FAILED if either side could not start
        """
        with self._lock:
            if self._session.is_recording or self._session.is_active:
                logger.warning("Recording already in progress")
                return StartOutcome.ALREADY_RECORDING

            self._revoke_artifact()
            self.accumulator.reset()
            self._session = Session(is_recording=True, is_active=True)
            logger.info("Starting voice session")

            try:
                self.recognition.start()
                self.audio.start()
            except VoiceSessionError as e:
                logger.error(f"Failed to start recording: {e.message}")
                self._session.is_recording = False
                self._record_error(e)
                self.recognition.stop()
                self.audio.stop()
                self._settle()
                return StartOutcome.FAILED

            self._publish()
            return StartOutcome.STARTED

    def stop_recording(self) -> None:
        """Ask both controllers to stop; returns without waiting for them."""
        with self._lock:
            if not self._session.is_active:
                return
            logger.info("Stopping voice session")
            self._session.is_recording = False
            self.recognition.stop()
            self.audio.stop()
            self._settle()

    def clear_session(self) -> None:
        """Reset transcript, errors, response and audio artifact."""
        with self._lock:
            self._revoke_artifact()
            self.accumulator.reset()
            self._session = Session(
                is_recording=self._session.is_recording,
                is_active=self._session.is_active,
            )
            logger.debug("Session cleared")
            self._publish()

    def set_processing(self, is_processing: bool) -> None:
        with self._lock:
            self._session.is_processing = is_processing
            self._publish()

    def set_response(self, response: Any) -> None:
        with self._lock:
            self._session.response = response
            self._publish()

    def set_error(self, message: str) -> None:
        """Store an error message from outside the session (e.g. an upload).

        An empty message clears any error, including a recognition error.
        """
        with self._lock:
            self._session.error_message = message
            if not message:
                self._session.last_error = None
                self._session.retryable = False
            self._publish()

    def _should_keep_listening(self) -> bool:
        return self._session.is_recording

    def _on_transcript(self, update: UpdatedTranscript) -> None:
        self._session.committed_transcript = update.committed
        self._session.live_transcript = update.live
        self._publish()

    def _on_recognition_failure(self, error: VoiceSessionError) -> None:
        self._session.is_recording = False
        self._record_error(error)
        self.audio.stop()
        self._publish()

    def _on_audio_failure(self, error: VoiceSessionError) -> None:
        self._session.is_recording = False
        self._record_error(error)
        self.recognition.stop()
        self._publish()

    def _on_artifact(self, artifact: Optional[AudioArtifact]) -> None:
        if artifact is not None:
            self._session.audio_artifact = artifact

    def _on_recognition_idle(self) -> None:
        self._session.is_recording = False
        self.audio.stop()
        self._settle()

    def _on_audio_idle(self) -> None:
        self._session.is_recording = False
        self.recognition.stop()
        self._settle()

    def _settle(self) -> None:
        if self._session.is_active and self.recognition.is_idle and self.audio.is_idle:
            self._session.is_active = False
            logger.info(f"Voice session ended: '{self._session.committed_transcript}'")
        self._publish()

    def _record_error(self, error: VoiceSessionError) -> None:
        self._session.last_error = error.kind
        self._session.error_message = error.message
        self._session.retryable = error.transient

    def _revoke_artifact(self) -> None:
        artifact = self._session.audio_artifact
        if artifact is not None:
            self.artifact_store.revoke(artifact)
            self._session.audio_artifact = None

    def _publish(self) -> None:
        if self.publisher is not None:
            self.publisher.publish_session(replace(self._session))
