"""Google Speech-to-Text continuous recognition engine."""

import queue
import time
import logging
import threading
from pathlib import Path
from typing import Iterator, List, Optional

from pubsub import pub
from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

from .base import AbstractRecognitionEngine, Available, RecognitionCapability, Unavailable
from ..models.events import AudioFrameEvent
from ..models.transcription import TranscriptFragment

logger = logging.getLogger(__name__)


class GoogleStreamingRecognitionEngine(AbstractRecognitionEngine):
    """Streaming recognition fed by microphone frames from the pub/sub topic.

    Each ``start`` opens one streaming call. Google closes streams after a
    few minutes (``OutOfRange``); that is reported as a plain end so the
    controller can restart. Silence longer than ``no_speech_timeout`` ends
    the stream with a ``no-speech`` error.
    """

    def __init__(self,
                 client: speech.SpeechClient,
                 audio_topic: str = "audio.frame",
                 sample_rate: int = 16000,
                 language: str = "en-US",
                 no_speech_timeout: float = 8.0,
                 enable_automatic_punctuation: bool = True):
        """Initialize Google streaming engine.

        Args:
            client: Authenticated Speech client
            audio_topic: Pub/sub topic carrying AudioFrameEvent messages
            sample_rate: Sample rate of the published frames
            language: Language code (e.g., 'en-US', 'es-ES')
            no_speech_timeout: Seconds without any result before 'no-speech'
            enable_automatic_punctuation: Enable automatic punctuation
        """
        super().__init__(language)
        self.client = client
        self.audio_topic = audio_topic
        self.sample_rate = sample_rate
        self.no_speech_timeout = no_speech_timeout
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.service_name = "Google Speech-to-Text"

        self._audio_queue: "queue.Queue[Optional[bytes]]" = queue.Queue()
        self._stop_event = threading.Event()
        self._stream_thread: Optional[threading.Thread] = None
        self._stream_started_at = 0.0
        self._heard_speech = False
        self._no_speech_timed_out = False

    def _streaming_config(self) -> speech.StreamingRecognitionConfig:
        config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=self.sample_rate,
            language_code=self.language,
            max_alternatives=self.max_alternatives,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
        )
        return speech.StreamingRecognitionConfig(
            config=config,
            interim_results=self.interim_results,
            single_utterance=not self.continuous,
        )

    def start(self) -> None:
        """Open a new streaming call in a background thread."""
        current = self._stream_thread
        # A restart is issued from the ended stream's own thread
        if current and current.is_alive() and current is not threading.current_thread():
            raise RuntimeError("Recognition stream already running")

        self._stop_event.clear()
        self._audio_queue = queue.Queue()
        self._heard_speech = False
        self._no_speech_timed_out = False
        pub.subscribe(self._on_audio_frame, self.audio_topic)

        self._stream_thread = threading.Thread(target=self._run_stream, daemon=True)
        self._stream_thread.name = "GoogleRecognitionThread"
        self._stream_thread.start()

    def stop(self) -> None:
        """Close the request stream; the ended event follows from the stream thread."""
        self._stop_event.set()
        self._audio_queue.put(None)

    def _on_audio_frame(self, event: AudioFrameEvent) -> None:
        if not self._stop_event.is_set():
            self._audio_queue.put(event.audio_data)

    def _request_stream(self) -> Iterator[speech.StreamingRecognizeRequest]:
        while not self._stop_event.is_set():
            if not self._heard_speech and time.monotonic() - self._stream_started_at > self.no_speech_timeout:
                logger.info(f"No speech within {self.no_speech_timeout}s, closing stream")
                self._no_speech_timed_out = True
                return
            try:
                data = self._audio_queue.get(timeout=0.1)
            except queue.Empty:
                continue
            if data is None:
                return
            yield speech.StreamingRecognizeRequest(audio_content=data)

    def _run_stream(self) -> None:
        error_code = None
        self._stream_started_at = time.monotonic()
        try:
            responses = self.client.streaming_recognize(
                config=self._streaming_config(),
                requests=self._request_stream(),
            )
            self._emit_start()
            for response in responses:
                fragments = self._extract_fragments(response)
                if fragments:
                    self._heard_speech = True
                    self._emit_result(fragments)
            if self._no_speech_timed_out:
                error_code = "no-speech"
        except gax_exceptions.OutOfRange as e:
            logger.info(f"Google stream duration limit reached: {e}")
        except (gax_exceptions.ServiceUnavailable, gax_exceptions.DeadlineExceeded) as e:
            logger.error(f"Google STT unreachable: {e}")
            error_code = "network"
        except (gax_exceptions.PermissionDenied, gax_exceptions.Unauthenticated) as e:
            logger.error(f"Google STT refused the request: {e}")
            error_code = "service-not-allowed"
        except gax_exceptions.Cancelled as e:
            logger.info(f"Google stream cancelled: {e}")
            error_code = "aborted"
        except gax_exceptions.GoogleAPICallError as e:
            logger.error(f"Google STT API call error: {e}")
            error_code = getattr(e.code, "name", str(e.code)).lower()
        except Exception as e:
            logger.error(f"Unhandled exception in recognition stream: {e}", exc_info=True)
            error_code = type(e).__name__
        finally:
            pub.unsubscribe(self._on_audio_frame, self.audio_topic)

        if error_code:
            self._emit_error(error_code)
        self._emit_end()

    def _extract_fragments(self, response: speech.StreamingRecognizeResponse) -> List[TranscriptFragment]:
        fragments = []
        for result in response.results:
            if not result.alternatives:
                continue
            best = result.alternatives[0]
            alternatives = [alt.transcript for alt in result.alternatives[1:self.max_alternatives]]
            fragments.append(TranscriptFragment(
                text=best.transcript,
                is_final=result.is_final,
                confidence=best.confidence,
                alternatives=alternatives or None,
            ))
            logger.debug(f"Result: '{best.transcript}' (confidence: {best.confidence}, final: {result.is_final})")
        return fragments


def resolve_recognition_capability(config) -> RecognitionCapability:
    """Resolve the recognition capability once at startup.

    Args:
        config: VoiceVitalsConfig

    Returns:
        Available with a Google engine factory when credentials are
        configured, Unavailable otherwise
    """
    credentials_path = config.get('google_cloud.credentials_path')
    if not credentials_path or not Path(credentials_path).exists():
        logger.warning(f"Google credentials not found ({credentials_path}), speech recognition unavailable")
        return Unavailable("Google credentials not configured")

    logger.info(f"Loading Google credentials from: {credentials_path}")
    credentials = service_account.Credentials.from_service_account_file(credentials_path)
    client = speech.SpeechClient(credentials=credentials)
    logger.info(f"Using Google Cloud project: {credentials.project_id}")

    def create_engine() -> GoogleStreamingRecognitionEngine:
        return GoogleStreamingRecognitionEngine(
            client=client,
            audio_topic=config.get('audio.frame_topic', 'audio.frame'),
            sample_rate=config.get('audio.sample_rate', 16000),
            language=config.get('recognition.language', 'en-US'),
            no_speech_timeout=config.get('recognition.no_speech_timeout_seconds', 8.0),
            enable_automatic_punctuation=config.get('google_cloud.enable_automatic_punctuation', True),
        )

    return Available(create_engine, name="google")
