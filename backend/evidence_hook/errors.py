"""
Exception hierarchy for the evidence hook.

Every error raised while handling an event derives from EvidenceHookError.
The application maps all of them to a 400 plain-text response; the message
of the exception is what the caller sees.
"""


class EvidenceHookError(Exception):
    """Base class for all receiver errors."""


class ConfigError(EvidenceHookError):
    """Required configuration is missing or invalid. Fatal at startup."""


class DecodeError(EvidenceHookError):
    """The inbound request body could not be decoded into an event."""


class InvalidEventType(EvidenceHookError):
    """The event type is not one of running, done, failed or progress."""

    def __init__(self, event_type: str):
        super().__init__(f"unexpected type: {event_type}")
        self.event_type = event_type


class ResolveError(EvidenceHookError):
    """A path could not be resolved to exactly one record."""


class NotFound(ResolveError):
    def __init__(self, path: str):
        super().__init__(f"path not found: {path}")
        self.path = path


class NotUnique(ResolveError):
    def __init__(self, path: str, count: int):
        super().__init__(f"path not unique: {path} matches {count} records")
        self.path = path
        self.count = count


class BackendError(EvidenceHookError):
    """Transport failure, undecodable response, or a backend-reported error."""


class AuthorizationError(BackendError):
    """The backend rejected the credentials or the current token."""


class UpdateError(EvidenceHookError):
    """The status could not be written to the resolved record."""
