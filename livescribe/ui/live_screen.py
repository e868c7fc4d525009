"""Terminal view of a live chunked session."""

import logging
import threading
import time
from typing import Optional

from pubsub import pub
from rich.align import Align
from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from ..models.session import SessionState
from ..services.capture_scheduler import SessionCaptureScheduler

logger = logging.getLogger(__name__)


class LiveTranscriptionScreen:
    """Renders scheduler state and the running transcript with rich.

    Redraws are driven by the scheduler's pypubsub notifications; the
    screen never mutates scheduler state except through start/stop.
    """

    def __init__(self, scheduler: SessionCaptureScheduler, console: Optional[Console] = None):
        self.scheduler = scheduler
        self.console = console or Console()
        self._dirty = threading.Event()
        self._started_at: Optional[float] = None
        pub.subscribe(self._on_change, scheduler.topic)

    def _on_change(self, key: str) -> None:
        logger.debug(f"Scheduler changed: {key}")
        self._dirty.set()

    def create_layout(self) -> Layout:
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="transcript", ratio=1),
            Layout(name="footer", size=3),
        )
        return layout

    def update_layout(self, layout: Layout) -> None:
        status = self.scheduler.status()
        state_style = {
            SessionState.RECORDING: ("🔴 RECORDING", "bold red"),
            SessionState.STOPPING: ("⏳ STOPPING", "bold yellow"),
            SessionState.IDLE: ("⏹️  STOPPED", "bold yellow"),
        }[status.state]

        header = Text.assemble(
            ("🎙️  LiveScribe", "bold blue"), "  |  ",
            state_style, "  |  ",
            f"Session: {status.session_id or 'None'}",
        )
        layout["header"].update(Panel(Align.center(header), style="bright_blue"))

        lines = self.scheduler.transcript.lines
        body = Text("\n".join(lines)) if lines else Text("Waiting for speech...", style="dim")
        layout["transcript"].update(Panel(body, title="📝 Transcript", border_style="green"))

        elapsed = time.time() - self._started_at if self._started_at else 0.0
        peak_bar = "█" * int(status.peak_level * 20)
        footer = (f"Elapsed {elapsed:.0f}s  |  Audio [{peak_bar:<20}] {status.peak_level:.3f}  |  "
                  f"Chunks started {status.next_index}  |  "
                  f"In flight {status.outstanding_chunks}  |  Ctrl+C to stop")
        layout["footer"].update(Panel(Align.center(Text(footer, style="cyan"))))

    def run(self, duration: Optional[float] = None) -> str:
        """Run one session, until ``duration`` elapses or Ctrl+C.

        Returns:
            The final transcript text
        """
        if not self.scheduler.start():
            self.console.print("❌ Could not start recording (microphone unavailable?)", style="bold red")
            return ""

        self._started_at = time.time()
        layout = self.create_layout()
        try:
            with Live(layout, console=self.console, refresh_per_second=4, screen=False) as live:
                while True:
                    if duration and time.time() - self._started_at >= duration:
                        break
                    self._dirty.wait(0.25)
                    self._dirty.clear()
                    self.update_layout(layout)
                    live.refresh()

                self.scheduler.stop()
                while not self.scheduler.wait_until_idle(0.25):
                    self.update_layout(layout)
                    live.refresh()
                self.scheduler.dispatcher.wait_until_idle()
                self.update_layout(layout)
        except KeyboardInterrupt:
            logger.info("Live session interrupted")
            self.scheduler.stop()
            self.scheduler.wait_until_idle()
        finally:
            pub.unsubscribe(self._on_change, self.scheduler.topic)

        return self.scheduler.transcript.text
