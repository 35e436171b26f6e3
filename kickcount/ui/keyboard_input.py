"""Background key reader for the commentary screen."""

import sys
import threading
from typing import Callable, Optional
import logging

logger = logging.getLogger(__name__)

POLL_SECONDS = 0.1


class KeyReader:
    """Reads single keypresses on a daemon thread and hands them to a callback.

    The callback returns False to stop reading.
    """

    def __init__(self, callback: Callable[[str], bool], stream=None):
        self.callback = callback
        self.stream = stream if stream is not None else sys.stdin
        self._stop_event = threading.Event()
        self.thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self.thread = threading.Thread(target=self._read_loop, name="KeyReaderThread", daemon=True)
        self.thread.start()
        logger.info("Key reader started")

    def stop(self) -> None:
        self._stop_event.set()
        if self.thread and self.thread is not threading.current_thread():
            self.thread.join(timeout=1.0)
        logger.info("Key reader stopped")

    def _read_loop(self) -> None:
        while not self._stop_event.is_set():
            key = self._poll_key()
            if key is None:
                continue
            logger.debug(f"Key pressed: {key!r}")
            if not self.callback(key):
                logger.info("Key callback asked to stop reading")
                break

    def _poll_key(self) -> Optional[str]:
        if sys.platform == "win32":
            return self._poll_key_windows()
        return self._poll_key_posix()

    def _poll_key_windows(self) -> Optional[str]:
        import msvcrt

        if msvcrt.kbhit():
            return msvcrt.getwch().lower()
        self._stop_event.wait(POLL_SECONDS)
        return None

    def _poll_key_posix(self) -> Optional[str]:
        import select
        import termios
        import tty

        fd = self.stream.fileno()
        old_settings = termios.tcgetattr(fd)
        try:
            tty.setcbreak(fd)
            ready, _, _ = select.select([self.stream], [], [], POLL_SECONDS)
            if not ready:
                return None
            key = self.stream.read(1)
            return key.lower() if key else None
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)


def create_key_reader(callback: Callable[[str], bool]) -> Optional[KeyReader]:
    """Return a key reader when stdin is an interactive terminal, otherwise None."""
    if not sys.stdin.isatty():
        logger.warning("stdin is not a terminal; keyboard controls disabled")
        return None
    return KeyReader(callback)
