"""Recognition session controller with auto-restart on unexpected end."""

import logging
import threading
from functools import partial
from enum import Enum
from typing import Callable, List, Optional

from .accumulator import TranscriptAccumulator
from .base import AbstractRecognitionEngine, RecognitionCapability
from ..models.errors import ErrorKind, VoiceSessionError
from ..models.transcription import TranscriptFragment, UpdatedTranscript

logger = logging.getLogger(__name__)


class RecognitionState(Enum):
    IDLE = "idle"
    STARTING = "starting"
    LISTENING = "listening"
    ENDING = "ending"


class RecognitionSessionController:
    """Owns the lifecycle of one continuous recognition engine.

    Engines end on their own (silence timeouts, stream limits, network
    hiccups). While the session is still recording and no stop was requested,
    an ended engine is restarted immediately so the user sees one
    uninterrupted recording. Whether to restart is decided from live session
    state when the ended event fires.
    """

    def __init__(self,
                 capability: RecognitionCapability,
                 accumulator: TranscriptAccumulator,
                 should_continue: Callable[[], bool],
                 on_transcript: Callable[[UpdatedTranscript], None],
                 on_failure: Callable[[VoiceSessionError], None],
                 on_idle: Callable[[], None],
                 language: str = "en-US",
                 max_alternatives: int = 3,
                 interim_results: bool = True,
                 lock: Optional[threading.RLock] = None):
        self.capability = capability
        self.accumulator = accumulator
        self.should_continue = should_continue
        self.on_transcript = on_transcript
        self.on_failure = on_failure
        self.on_idle = on_idle
        self.language = language
        self.max_alternatives = max_alternatives
        self.interim_results = interim_results
        self.lock = lock or threading.RLock()

        self.state = RecognitionState.IDLE
        self.engine: Optional[AbstractRecognitionEngine] = None
        self._stop_requested = False
        self.restart_count = 0

    @property
    def is_idle(self) -> bool:
        return self.state == RecognitionState.IDLE

    def start(self) -> None:
        """Create and start an engine.

        Raises:
            VoiceSessionError: UNSUPPORTED_CAPABILITY when recognition is not
                available, or the translated failure of the engine start call
        """
        with self.lock:
            if self.state != RecognitionState.IDLE:
                logger.warning(f"Recognition already running (state={self.state.value})")
                return

            if not self.capability.available:
                logger.error(f"Recognition unavailable: {self.capability!r}")
                raise VoiceSessionError(ErrorKind.UNSUPPORTED_CAPABILITY)

            engine = self.capability.create_engine()
            engine.continuous = True
            engine.interim_results = self.interim_results
            engine.language = self.language
            engine.max_alternatives = self.max_alternatives
            engine.bind(
                on_start=partial(self._handle_start, engine),
                on_result=partial(self._handle_result, engine),
                on_error=partial(self._handle_error, engine),
                on_end=partial(self._handle_end, engine),
            )

            self.engine = engine
            self._stop_requested = False
            self.restart_count = 0
            self.state = RecognitionState.STARTING
            logger.info(f"Starting speech recognition ({self.language})")

            try:
                engine.start()
            except VoiceSessionError:
                self._detach()
                raise
            except Exception as e:
                logger.error(f"Recognition engine failed to start: {e}")
                self._detach()
                raise VoiceSessionError(ErrorKind.UNKNOWN, code=type(e).__name__) from e

    def stop(self) -> None:
        """Request a stop; the ended event completes it."""
        with self.lock:
            if self.state in (RecognitionState.IDLE, RecognitionState.ENDING):
                return

            logger.info("Stopping speech recognition")
            self._stop_requested = True
            self.state = RecognitionState.ENDING
            try:
                self.engine.stop()
            except Exception as e:
                logger.error(f"Error stopping recognition: {e}")
                self._finish()

    def _handle_start(self, engine: AbstractRecognitionEngine) -> None:
        with self.lock:
            if engine is not self.engine:
                return
            if self.state == RecognitionState.STARTING:
                # First readiness of this session; restarts keep the committed text
                self.accumulator.reset()
                self.state = RecognitionState.LISTENING
                logger.info("Speech recognition listening")
                self.on_transcript(self.accumulator.snapshot())
            elif self.state == RecognitionState.LISTENING:
                logger.debug(f"Speech recognition resumed (restart #{self.restart_count})")

    def _handle_result(self, engine: AbstractRecognitionEngine, fragments: List[TranscriptFragment]) -> None:
        with self.lock:
            if engine is not self.engine:
                return
            if self.state not in (RecognitionState.LISTENING, RecognitionState.ENDING):
                logger.debug(f"Ignoring {len(fragments)} fragments in state {self.state.value}")
                return
            self.on_transcript(self.accumulator.apply_fragments(fragments))

    def _handle_error(self, engine: AbstractRecognitionEngine, code: str) -> None:
        with self.lock:
            if engine is not self.engine:
                logger.debug(f"Ignoring error {code!r} from a detached engine")
                return
            error = VoiceSessionError.from_engine_code(code)
            user_stopped = self._stop_requested
            self._stop_requested = True
            self.state = RecognitionState.ENDING

            if error.kind == ErrorKind.ABORTED and user_stopped:
                logger.debug("Recognition aborted after stop request")
                return

            logger.error(f"Speech recognition error: {code} -> {error.kind.name}")
            self.on_failure(error)

    def _handle_end(self, engine: AbstractRecognitionEngine) -> None:
        with self.lock:
            if engine is not self.engine or self.state == RecognitionState.IDLE:
                return

            if (self.state == RecognitionState.LISTENING
                    and not self._stop_requested
                    and self.should_continue()):
                self.restart_count += 1
                logger.info(f"Speech recognition ended unexpectedly, restarting (#{self.restart_count})")
                try:
                    engine.start()
                    return
                except Exception as e:
                    logger.error(f"Failed to restart recognition: {e}")

            logger.info(f"Speech recognition ended, final transcript: '{self.accumulator.committed}'")
            self._finish()

    def _finish(self) -> None:
        self._detach()
        self.on_transcript(self.accumulator.finalize())
        self.on_idle()

    def _detach(self) -> None:
        self.state = RecognitionState.IDLE
        self.engine = None
