"""Transcript accumulator merging final and interim recognition results.

Final fragments are committed to an append-only buffer. Interim fragments
are the engine's current guess: they are rebuilt from scratch on every batch
and never committed.
"""

import logging
from typing import Iterable

from ..models.transcription import TranscriptFragment, UpdatedTranscript

logger = logging.getLogger(__name__)


def join_text(left: str, right: str) -> str:
    """Concatenate two pieces of speech, inserting a space only when needed."""
    if not left:
        return right
    if not right:
        return left
    if left[-1].isspace() or right[0].isspace():
        return left + right
    return f"{left} {right}"


class TranscriptAccumulator:
    """Accumulates committed text and tracks the latest interim text."""

    def __init__(self):
        self._committed = ""
        self._interim = ""
        self.final_fragments = 0

    @property
    def committed(self) -> str:
        return self._committed.strip()

    @property
    def live(self) -> str:
        return join_text(self._committed, self._interim).strip()

    def apply_fragments(self, fragments: Iterable[TranscriptFragment]) -> UpdatedTranscript:
        """Apply one batch of fragments in delivery order.

        Args:
            fragments: Fragments from a single result event

        Returns:
            UpdatedTranscript with the committed and live text
        """
        final_text = ""
        interim_text = ""
        for fragment in fragments:
            if fragment.is_final:
                final_text = join_text(final_text, fragment.text)
                self.final_fragments += 1
            else:
                interim_text = join_text(interim_text, fragment.text)

        if final_text:
            self._committed = join_text(self._committed, final_text)
        self._interim = interim_text

        logger.debug(f"Committed: '{self.committed}' | interim: '{interim_text}'")
        return self.snapshot()

    def snapshot(self) -> UpdatedTranscript:
        return UpdatedTranscript(committed=self.committed, live=self.live)

    def finalize(self) -> UpdatedTranscript:
        """Drop pending interim text; the committed text becomes the live text."""
        self._interim = ""
        return self.snapshot()

    def reset(self) -> None:
        self._committed = ""
        self._interim = ""
        self.final_fragments = 0
