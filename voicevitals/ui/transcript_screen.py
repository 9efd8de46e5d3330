"""Terminal view of a running voice session."""

import logging
import threading
from typing import Optional

from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models.session import Session
from ..services.publisher import SessionPublisher

logger = logging.getLogger(__name__)


class TranscriptScreen:
    """Renders session snapshots received from the session publisher."""

    def __init__(self, publisher: SessionPublisher, console: Optional[Console] = None):
        self.publisher = publisher
        self.console = console or Console()
        self.latest = Session()
        self.lock = threading.Lock()
        self.live: Optional[Live] = None

    def render(self, session: Session) -> Panel:
        """Build the panel for one session snapshot."""
        table = Table.grid(padding=(0, 1))
        table.add_column(style="cyan", no_wrap=True)
        table.add_column(style="white")

        if session.is_recording:
            status = Text("RECORDING", style="bold red")
        elif session.is_active:
            status = Text("STOPPING", style="bold yellow")
        else:
            status = Text("STOPPED", style="bold yellow")
        table.add_row("Status", status)

        if session.live_transcript:
            committed = session.committed_transcript
            tentative = session.live_transcript[len(committed):]
            transcript = Text.assemble((committed, "white"), (tentative, "dim italic"))
        else:
            transcript = Text("Speak to start logging symptoms, vitals or medications", style="dim white italic")
        table.add_row("Transcript", transcript)

        if session.error_message:
            table.add_row("Error", Text(session.error_message, style="bold red"))
        if session.audio_artifact is not None:
            artifact = session.audio_artifact
            table.add_row("Audio", f"{artifact.url} ({artifact.duration_seconds:.1f}s)")

        return Panel(table, title="VoiceVitals", border_style="bright_blue")

    def _on_session(self, session: Session) -> None:
        with self.lock:
            self.latest = session
            if self.live is not None:
                self.live.update(self.render(session))

    def __enter__(self) -> "TranscriptScreen":
        self.live = Live(self.render(self.latest), console=self.console, refresh_per_second=10)
        self.live.__enter__()
        self.publisher.subscribe(self._on_session)
        return self

    def __exit__(self, *args) -> None:
        self.publisher.unsubscribe(self._on_session)
        with self.lock:
            live, self.live = self.live, None
        if live is not None:
            live.__exit__(*args)
