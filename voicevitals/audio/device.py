"""Audio input devices for the capture controller."""

import time
import logging
from abc import ABC, abstractmethod
from threading import Thread, Event
from typing import Callable, Optional

import pyaudio

from .audio_pub import AudioPublisher
from ..models.errors import ErrorKind, VoiceSessionError
from ..models.events import AudioFrameEvent

logger = logging.getLogger(__name__)


ChunkHandler = Callable[[bytes], None]
StoppedHandler = Callable[[], None]
FailureHandler = Callable[[Exception], None]


class AbstractAudioDevice(ABC):
    """Exclusive microphone handle emitting audio in periodic chunks.

    ``acquire`` and ``release`` bracket exclusive access. Between them,
    ``start`` begins chunk delivery and ``stop`` ends it; ``on_stopped`` is
    called once every buffered byte has been delivered.
    """

    sample_rate: int = 16000
    channels: int = 1
    sample_width: int = 2

    @abstractmethod
    def acquire(self) -> None:
        """Take exclusive access to the device.

        Raises:
            VoiceSessionError: DEVICE_ACCESS_DENIED if refused or missing
        """
        pass

    @abstractmethod
    def start(self,
              timeslice: float,
              on_chunk: ChunkHandler,
              on_stopped: StoppedHandler,
              on_failure: FailureHandler) -> None:
        pass

    @abstractmethod
    def stop(self) -> None:
        pass

    @abstractmethod
    def release(self) -> None:
        pass


class PyAudioMicrophone(AbstractAudioDevice):
    """Microphone input through PyAudio, read in a background thread."""

    def __init__(
        self,
        publisher: Optional[AudioPublisher] = None,
        sample_rate: int = 16000,
        frames_per_buffer: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
    ):
        """Initialize microphone with specified parameters.

        Args:
            publisher: Publishes every raw frame (used by streaming recognition)
            sample_rate: Audio sample rate (16kHz for speech recognition)
            frames_per_buffer: Samples read from the device per frame
            channels: Number of audio channels (1 for mono)
            format: Audio format (16-bit signed int)
        """
        self.publisher = publisher
        self.sample_rate = sample_rate
        self.frames_per_buffer = frames_per_buffer
        self.channels = channels
        self.format = format
        self.sample_width = 2

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream: Optional[pyaudio.Stream] = None

        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.total_frames = 0

    def acquire(self) -> None:
        if self.stream is not None:
            return
        try:
            self.pyaudio_instance = pyaudio.PyAudio()
            self.sample_width = self.pyaudio_instance.get_sample_size(self.format)
            self.stream = self.pyaudio_instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.frames_per_buffer,
                stream_callback=None
            )
        except OSError as e:
            logger.error(f"Could not open microphone: {e}")
            self.release()
            raise VoiceSessionError(ErrorKind.DEVICE_ACCESS_DENIED, code="audio-capture") from e
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.frames_per_buffer} samples/frame")

    def start(self, timeslice, on_chunk, on_stopped, on_failure) -> None:
        if self.stream is None:
            raise RuntimeError("Microphone must be acquired before starting")

        self.stop_event.clear()
        self.total_frames = 0
        bytes_per_chunk = int(self.sample_rate * timeslice) * self.channels * self.sample_width

        self.recording_thread = Thread(
            target=self._record_continuously,
            args=(bytes_per_chunk, on_chunk, on_stopped, on_failure),
            daemon=True,
        )
        self.recording_thread.name = "AudioCaptureThread"
        self.recording_thread.start()

    def stop(self) -> None:
        self.stop_event.set()

    def release(self) -> None:
        """Close the stream and hand the device back to the system."""
        if self.stream is not None:
            self.stream.stop_stream()
            self.stream.close()
            self.stream = None
        if self.pyaudio_instance is not None:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None
            logger.info("Microphone released")

    def __read_frame(self) -> bytes:
        frame = self.stream.read(self.frames_per_buffer, exception_on_overflow=False)
        self.total_frames += 1
        return frame

    def __publish_frame(self, frame: bytes) -> None:
        if self.publisher is None:
            return
        self.publisher.publish_frame(AudioFrameEvent(
            frame_id=f"frame_{self.total_frames}",
            audio_data=frame,
            timestamp=time.time(),
            sequence_number=self.total_frames,
            sample_rate=self.sample_rate,
            channels=self.channels,
        ))

    def _record_continuously(self, bytes_per_chunk, on_chunk, on_stopped, on_failure) -> None:
        """Internal method: read frames and group them into timeslice chunks."""
        pending = bytearray()
        try:
            while not self.stop_event.is_set():
                frame = self.__read_frame()
                self.__publish_frame(frame)
                pending.extend(frame)
                if len(pending) >= bytes_per_chunk:
                    on_chunk(bytes(pending))
                    pending.clear()
        except OSError as e:
            logger.error(f"Microphone read failed after {self.total_frames} frames: {e}")
            if pending:
                on_chunk(bytes(pending))
            on_failure(e)
            return

        if pending:
            on_chunk(bytes(pending))
        logger.info(f"Microphone stopped. Total frames: {self.total_frames}")
        on_stopped()
