"""Microphone permission gate."""

import logging
from typing import Callable, Optional

from rich.console import Console
from rich.prompt import Confirm

logger = logging.getLogger(__name__)

REQUEST_RECORD_AUDIO_PERMISSION = 200
POLICIES = ("ask", "granted", "denied")


class MicrophonePermission:
    """Decides once whether the app may record, then reports the decision.

    ``policy`` is "ask" to prompt on the terminal, or "granted"/"denied" to
    answer without prompting.
    """

    def __init__(self, policy: str = "ask", console: Optional[Console] = None):
        if policy not in POLICIES:
            raise ValueError(f"Unknown microphone permission policy: {policy!r}")
        self.policy = policy
        self.console = console or Console()

    def request_permissions(self, request_code: int, callback: Callable[[int, bool], None]) -> None:
        granted = self._decide()
        logger.info(f"Microphone permission {'granted' if granted else 'denied'} "
                    f"(request code {request_code})")
        callback(request_code, granted)

    def _decide(self) -> bool:
        if self.policy == "granted":
            return True
        if self.policy == "denied":
            return False
        return Confirm.ask("Allow KickCount to record audio from your microphone?",
                           console=self.console, default=True)
