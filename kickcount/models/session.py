"""Recording session state."""

from enum import Enum


class SessionState(Enum):
    """Lifecycle of a single recording session.

    IDLE -> STREAMING on resume with permission. STREAMING -> STOPPED on
    pause, destroy, stream completion or transport error. There is no edge
    back to STREAMING; a later resume starts a new session.
    """
    IDLE = "idle"
    STREAMING = "streaming"
    STOPPED = "stopped"
