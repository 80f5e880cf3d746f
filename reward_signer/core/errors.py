from enum import Enum
from typing import Optional

NOT_ENDED_MARKER = "epoch not ended"

class ErrorKind(str, Enum):
    NOT_YET_ENDED = "NOT_YET_ENDED"
    OTHER = "OTHER"

class SigningError(Exception):
    """
    Raised by signing clients when a submission fails.
    Carries a structured kind so callers do not have to inspect messages.
    """
    def __init__(self, message: str, kind: ErrorKind = ErrorKind.OTHER, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.reason = reason

class RewardsDataError(Exception):
    """Rewards distribution data could not be fetched or parsed."""

class ConfigError(Exception):
    """Settings are missing or unusable."""

def classify_error(exc: BaseException) -> ErrorKind:
    """
    Maps a collaborator exception to an ErrorKind.

    SigningError reports its own kind. Anything else goes through the
    compatibility shim: a substring match on the `reason` attribute, then on
    `message` (or str(exc) when the exception has no `message`). Collaborators
    whose errors carry the marker elsewhere degrade to OTHER.
    """
    if isinstance(exc, SigningError):
        return exc.kind

    reason = getattr(exc, "reason", None)
    if isinstance(reason, str) and NOT_ENDED_MARKER in reason:
        return ErrorKind.NOT_YET_ENDED

    message = getattr(exc, "message", None)
    if message is None:
        message = str(exc)
    if isinstance(message, str) and NOT_ENDED_MARKER in message:
        return ErrorKind.NOT_YET_ENDED

    return ErrorKind.OTHER
