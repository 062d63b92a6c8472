# session_clock/utils/errors.py


class SessionClockError(RuntimeError):
    """Base class for every error raised by session_clock."""


class ConfigError(SessionClockError):
    """Invalid configuration detected at load time (session table, zone, env)."""


class FeedError(SessionClockError):
    """Best-effort collaborator failure. Never fatal."""

    category = "feed"

    def __init__(self, message: str, *, source: str = ""):
        super().__init__(message)
        self.source = source


class NetworkUnavailable(FeedError):
    category = "network"


class MalformedResponse(FeedError):
    category = "malformed"


__all__ = ["SessionClockError", "ConfigError", "FeedError", "NetworkUnavailable", "MalformedResponse"]
