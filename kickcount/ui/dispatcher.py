"""Marshals work from capture and stream threads onto the UI thread."""

import queue
import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class UiDispatcher:
    """Single-consumer queue owned by the UI thread.

    Any thread may post; only the bound UI thread runs the callables, in the
    order they were posted.
    """

    def __init__(self):
        self._pending: "queue.SimpleQueue[Callable[[], None]]" = queue.SimpleQueue()
        self._ui_thread_id: Optional[int] = None

    def bind_to_current_thread(self) -> None:
        self._ui_thread_id = threading.get_ident()

    def is_ui_thread(self) -> bool:
        return self._ui_thread_id == threading.get_ident()

    def run_on_ui_thread(self, action: Callable[[], None]) -> None:
        """Run now if already on the UI thread, otherwise queue for the next drain."""
        if self.is_ui_thread():
            self._run(action)
        else:
            self._pending.put(action)

    def drain(self) -> int:
        """Run everything queued so far. Must be called on the UI thread."""
        if self._ui_thread_id is not None and not self.is_ui_thread():
            raise RuntimeError("drain() called off the UI thread")
        executed = 0
        while True:
            try:
                action = self._pending.get_nowait()
            except queue.Empty:
                return executed
            self._run(action)
            executed += 1

    @property
    def pending(self) -> int:
        return self._pending.qsize()

    @staticmethod
    def _run(action: Callable[[], None]) -> None:
        try:
            action()
        except Exception as e:
            logger.error(f"Error running UI action: {e}", exc_info=True)
