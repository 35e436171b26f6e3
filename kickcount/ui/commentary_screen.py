"""Terminal commentary screen: latest transcript plus keyword counters."""

import time
import logging
from typing import Optional

from rich.align import Align
from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..config import KickCountConfig
from ..exceptions import PermissionDeniedError
from ..models.session import SessionState
from ..models.ui import DisplayState
from ..services.session import RecordingSessionController
from .dispatcher import UiDispatcher
from .keyboard_input import create_key_reader
from .permissions import MicrophonePermission, REQUEST_RECORD_AUDIO_PERMISSION

logger = logging.getLogger(__name__)

STATE_STYLES = {
    SessionState.IDLE: ("IDLE", "bold yellow"),
    SessionState.STREAMING: ("LISTENING", "bold red"),
    SessionState.STOPPED: ("STOPPED", "bold yellow"),
}


class CommentaryScreen:
    """Single-screen UI with Android-style lifecycle hooks.

    All display mutation happens on the thread that calls ``run``; other
    threads reach it through the dispatcher.
    """

    def __init__(self,
                 config: KickCountConfig,
                 controller: RecordingSessionController,
                 display: DisplayState,
                 dispatcher: UiDispatcher,
                 permission: MicrophonePermission,
                 console: Optional[Console] = None):
        self.config = config
        self.controller = controller
        self.display = display
        self.dispatcher = dispatcher
        self.permission = permission
        self.console = console or Console()
        self.finished = False
        self.paused = False
        self.key_reader = None

    # Lifecycle

    def on_create(self) -> None:
        self.display.set_transcript(self.config.get('ui.start_text', 'Start talking!'))
        self.controller.relay.refresh_counter_labels()
        self.permission.request_permissions(
            REQUEST_RECORD_AUDIO_PERMISSION, self.on_request_permissions_result)

    def on_request_permissions_result(self, request_code: int, granted: bool) -> None:
        if request_code == REQUEST_RECORD_AUDIO_PERMISSION:
            self.controller.permitted = granted

        # bail out if audio recording is not available
        if not self.controller.permitted:
            self.finish()

    def on_resume(self) -> None:
        if not self.controller.permitted:
            logger.error("No permission to record! Please allow and then relaunch the app!")
            self.finish()
            return
        if self.finished:
            return
        try:
            self.controller.resume()
            self.paused = False
        except PermissionDeniedError:
            logger.error("No permission to record! Please allow and then relaunch the app!")
            self.finish()
        except Exception as e:
            # Client construction or stream setup failed; the screen closes, the process survives.
            logger.error(f"Could not start listening: {e}", exc_info=True)
            self.finish()

    def on_pause(self) -> None:
        self.controller.pause()
        self.paused = True

    def on_destroy(self) -> None:
        self.controller.destroy()

    def finish(self) -> None:
        if not self.finished:
            logger.info("Commentary screen finishing")
        self.finished = True

    # Rendering

    def create_layout(self) -> Layout:
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="main", ratio=1),
            Layout(name="footer", size=3),
        )
        layout["main"].split_row(
            Layout(name="transcript", ratio=2),
            Layout(name="counters", ratio=1),
        )
        return layout

    def render(self, layout: Layout) -> Layout:
        state_text, state_style = STATE_STYLES[self.controller.state]
        layout["header"].update(Panel(
            Align.center(Text.assemble(
                ("KickCount - Live Commentary Tally", "bold blue"), "  |  ",
                (state_text, state_style),
                "  |  ",
                f"Mic level: {self._peak_level():.2f}",
            )),
            style="bright_blue",
        ))

        layout["transcript"].update(Panel(
            Align.center(Text(self.display.transcript, style="bold white"), vertical="middle"),
            title="Transcript",
            subtitle=f"#{self.display.transcript_updates}",
            border_style="blue",
        ))

        counters = Table(show_header=False, expand=True)
        counters.add_column("Count", style="cyan")
        for keyword, _ in self.controller.relay.tally.keywords:
            counters.add_row(self.display.counter_labels.get(keyword, ""))
        layout["counters"].update(Panel(counters, title="Tally", border_style="green"))

        layout["footer"].update(Panel(
            Align.center(Text.assemble(
                ("P", "bold yellow"), " Pause/Resume  ",
                ("Q", "bold red"), " Quit  ",
                ("Ctrl+C", "bold red"), " Force Quit",
            )),
            style="bright_black",
        ))
        return layout

    def _peak_level(self) -> float:
        session = self.controller.session
        if session is None or session.audio_capture is None:
            return 0.0
        return session.audio_capture.get_recording_stats().peak_level

    # Input

    def handle_key(self, key: str) -> bool:
        """Key thread entry point. Returns False to stop reading keys."""
        if key == 'q':
            self.dispatcher.run_on_ui_thread(self.finish)
            return False
        if key == 'p':
            self.dispatcher.run_on_ui_thread(self.toggle_pause)
        return True

    def toggle_pause(self) -> None:
        if self.paused:
            self.on_resume()
        else:
            self.on_pause()

    # Main loop

    def run(self, duration: Optional[float] = None) -> None:
        """Drive create -> resume -> (loop) -> pause -> destroy on the calling thread."""
        self.dispatcher.bind_to_current_thread()
        refresh = self.config.get('ui.refresh_per_second', 10)
        try:
            self.on_create()
            self.on_resume()
            if self.finished:
                return

            self.key_reader = create_key_reader(self.handle_key)
            if self.key_reader:
                self.key_reader.start()

            deadline = time.monotonic() + duration if duration else None
            layout = self.create_layout()
            with Live(self.render(layout), console=self.console,
                      refresh_per_second=refresh, screen=True) as live:
                while not self.finished:
                    self.dispatcher.drain()
                    live.update(self.render(layout))
                    if deadline is not None and time.monotonic() >= deadline:
                        logger.info(f"Auto mode: {duration}s elapsed")
                        self.finish()
                        break
                    time.sleep(1.0 / refresh)
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
        finally:
            if self.key_reader:
                self.key_reader.stop()
            self.on_pause()
            self.on_destroy()
            self.dispatcher.drain()
