"""Main application entry point for VoiceVitals."""

import sys
import time
import asyncio
import argparse
import logging
from pathlib import Path

from voicevitals.audio.audio_pub import AudioPublisher
from voicevitals.audio.device import PyAudioMicrophone
from voicevitals.models.session import StartOutcome
from voicevitals.services.health_client import HealthApiClient, submit_session_transcript
from voicevitals.services.publisher import SessionPublisher
from voicevitals.services.voice_session import VoiceSessionOrchestrator
from voicevitals.storage.artifact_store import ArtifactStore
from voicevitals.transcription.google_backend import resolve_recognition_capability
from voicevitals.ui.transcript_screen import TranscriptScreen

from .config import VoiceVitalsConfig

logger = logging.getLogger(__name__)


class VoiceVitalsApp:

    def __init__(self, config_path: str, log_level: str = None):
        self.config = VoiceVitalsConfig(config_path)
        setup_logging(self.config, log_level or self.config.get('logging.level', 'INFO'))

    def init(self):
        logger.info("Initializing services...")

        sample_rate = self.config.get('audio.sample_rate', 16000)
        frames_per_buffer = self.config.get('audio.frames_per_buffer', 1024)
        channels = self.config.get('audio.channels', 1)
        logger.info(f"Audio settings: {sample_rate}Hz, {frames_per_buffer} samples/frame, {channels} channels")

        self.audio_publisher = AudioPublisher(self.config.get('audio.frame_topic', 'audio.frame'))
        self.session_publisher = SessionPublisher("voice_session.state")
        self.artifact_store = ArtifactStore(self.config.get_data_directory())

        def create_microphone() -> PyAudioMicrophone:
            return PyAudioMicrophone(
                publisher=self.audio_publisher,
                sample_rate=sample_rate,
                frames_per_buffer=frames_per_buffer,
                channels=channels,
            )

        self.orchestrator = VoiceSessionOrchestrator(
            capability=resolve_recognition_capability(self.config),
            device_factory=create_microphone,
            artifact_store=self.artifact_store,
            publisher=self.session_publisher,
            language=self.config.get('recognition.language', 'en-US'),
            max_alternatives=self.config.get('recognition.max_alternatives', 3),
            interim_results=self.config.get('recognition.interim_results', True),
            chunk_interval=self.config.get('audio.chunk_interval_seconds', 1.0),
        )

    def record(self, duration: int, stop_timeout: float = 10.0) -> bool:
        """Record for ``duration`` seconds, then wait for the session to wind down.

        Returns:
            True if a transcript was captured
        """
        with TranscriptScreen(self.session_publisher):
            outcome = self.orchestrator.start_recording()
            if outcome != StartOutcome.STARTED:
                logger.error(f"Recording did not start: {outcome.value}")
                return False

            deadline = time.monotonic() + duration
            while self.orchestrator.is_recording and time.monotonic() < deadline:
                time.sleep(0.1)
            self.orchestrator.stop_recording()

            deadline = time.monotonic() + stop_timeout
            while self.orchestrator.is_active and time.monotonic() < deadline:
                time.sleep(0.1)
            if self.orchestrator.is_active:
                logger.warning("Session did not release its resources in time")

        session = self.orchestrator.session
        if session.error_message:
            print(f"Error: {session.error_message}")
            if session.retryable:
                print("Run voicevitals again to retry.")
        print(f"Transcript: {session.live_transcript or '(empty)'}")
        if session.audio_artifact is not None:
            print(f"Audio: {session.audio_artifact.url}")
        return bool(session.live_transcript)

    def upload(self) -> None:
        client = HealthApiClient(
            base_url=self.config.get('api.base_url', 'http://localhost:5000'),
            token=self.config.get_api_token(),
            timeout_seconds=self.config.get('api.timeout_seconds', 30),
        )
        response = asyncio.run(submit_session_transcript(self.orchestrator, client))
        if response is None:
            print(f"Upload failed: {self.orchestrator.session.error_message or 'empty transcript'}")
        else:
            print("Transcript submitted for analysis")
            logger.debug(f"Analysis response: {response}")

    def cleanup(self):
        orchestrator = getattr(self, "orchestrator", None)
        if orchestrator is not None:
            orchestrator.stop_recording()


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/voicevitals.log')
    console_output = config.get('logging.console_output', True)

    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    handlers.append(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("VoiceVitals starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def main() -> None:
    """Main entry point for VoiceVitals."""
    parser = argparse.ArgumentParser(
        description="VoiceVitals - voice-driven health logging",
    )

    parser.add_argument(
        "--config",
        type=str,
        default="voicevitals.yaml",
        help="Path to configuration YAML file (default: voicevitals.yaml)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides config)"
    )

    parser.add_argument(
        "--duration",
        type=int,
        default=15,
        help="Maximum recording duration in seconds (default: 15)"
    )

    parser.add_argument(
        "--upload",
        action="store_true",
        help="Send the transcript to the health API for analysis when recording ends"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="VoiceVitals v0.1.0"
    )

    args = parser.parse_args()

    app = None
    try:
        app = VoiceVitalsApp(args.config, args.log_level)
        app.init()
        if app.record(args.duration) and args.upload:
            app.upload()
    except KeyboardInterrupt:
        if app is not None:
            app.cleanup()
        print("\nGoodbye!")
    except Exception as e:
        print(f"Error: {e}")
        logging.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
