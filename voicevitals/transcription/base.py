"""Abstract base classes for continuous recognition engines."""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional
import logging

from ..models.errors import ErrorKind, VoiceSessionError
from ..models.transcription import TranscriptFragment

logger = logging.getLogger(__name__)


StartHandler = Callable[[], None]
ResultHandler = Callable[[List[TranscriptFragment]], None]
ErrorHandler = Callable[[str], None]
EndHandler = Callable[[], None]


class AbstractRecognitionEngine(ABC):
    """Continuous speech recognition engine.

    The engine reports progress through four events: ready (``on_start``),
    a batch of results, an error code and ended. Events may be delivered
    from any thread. ``start`` may be called again on the same instance
    after it has ended.
    """

    def __init__(self, language: str = "en-US"):
        """Initialize engine with default configuration."""
        self.continuous = True
        self.interim_results = True
        self.language = language
        self.max_alternatives = 1
        self._on_start: Optional[StartHandler] = None
        self._on_result: Optional[ResultHandler] = None
        self._on_error: Optional[ErrorHandler] = None
        self._on_end: Optional[EndHandler] = None

    def bind(self,
             on_start: StartHandler,
             on_result: ResultHandler,
             on_error: ErrorHandler,
             on_end: EndHandler) -> None:
        """Register the event handlers."""
        self._on_start = on_start
        self._on_result = on_result
        self._on_error = on_error
        self._on_end = on_end

    @abstractmethod
    def start(self) -> None:
        """Begin (or resume) listening. Readiness is reported via ``on_start``."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop listening. Completion is reported via ``on_end``."""
        pass

    def _emit_start(self) -> None:
        if self._on_start:
            self._on_start()

    def _emit_result(self, fragments: List[TranscriptFragment]) -> None:
        if self._on_result:
            self._on_result(fragments)

    def _emit_error(self, code: str) -> None:
        if self._on_error:
            self._on_error(code)

    def _emit_end(self) -> None:
        if self._on_end:
            self._on_end()


class RecognitionCapability(ABC):
    """Whether continuous recognition exists in this environment."""

    available: bool = False

    @abstractmethod
    def create_engine(self) -> AbstractRecognitionEngine:
        pass


class Available(RecognitionCapability):
    """Recognition is available through an engine factory."""

    available = True

    def __init__(self, factory: Callable[[], AbstractRecognitionEngine], name: str = "recognition"):
        self.factory = factory
        self.name = name

    def create_engine(self) -> AbstractRecognitionEngine:
        engine = self.factory()
        logger.debug(f"Created {self.name} engine: {engine.__class__.__name__}")
        return engine

    def __repr__(self) -> str:
        return f"Available({self.name!r})"


class Unavailable(RecognitionCapability):
    """Recognition cannot be used here."""

    available = False

    def __init__(self, reason: str = "Speech recognition not supported"):
        self.reason = reason

    def create_engine(self) -> AbstractRecognitionEngine:
        raise VoiceSessionError(ErrorKind.UNSUPPORTED_CAPABILITY)

    def __repr__(self) -> str:
        return f"Unavailable({self.reason!r})"
