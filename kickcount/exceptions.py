"""Exception hierarchy for KickCount."""


class KickCountError(Exception):
    """Base class for all KickCount errors."""


class PermissionDeniedError(KickCountError):
    """Raised when recording is requested without microphone permission."""


class RecognitionStreamError(KickCountError):
    """A failure of the streaming recognition transport.

    Wraps whatever the client library raised so observers only need to
    handle one type.
    """

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.cause = cause
