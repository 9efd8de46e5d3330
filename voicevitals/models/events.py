"""Event models for pub/sub audio processing."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class AudioFrameEvent:
    """Raw microphone frame published while capturing."""
    frame_id: str
    audio_data: bytes
    timestamp: float  # Unix timestamp when frame was captured
    sequence_number: int
    sample_rate: int = 16000
    channels: int = 1
    frame_duration_ms: Optional[int] = None

    def __post_init__(self):
        """Calculate frame duration if not provided."""
        if self.frame_duration_ms is None and self.audio_data:
            # 16-bit audio (2 bytes per sample)
            bytes_per_second = self.sample_rate * self.channels * 2
            self.frame_duration_ms = int(len(self.audio_data) / bytes_per_second * 1000)
