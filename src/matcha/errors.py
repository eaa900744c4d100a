"""Exception types raised by matcha."""


class MatchaError(Exception):
    """Base class for all matcha errors."""


class ConfigurationError(MatchaError):
    """Raised for bad configuration detected before any case runs.

    Covers unknown reporters, malformed grep patterns, unreadable config
    files and unknown option keys.
    """


class CallbackError(MatchaError):
    """Raised when a callback-style function reports a non-exception error."""

    def __init__(self, value: object) -> None:
        super().__init__(f"callback reported an error: {value!r}")
        self.value = value


class TaskCancelledError(MatchaError):
    """Raised when the task running an asynchronous function was cancelled."""

    def __init__(self) -> None:
        super().__init__("task running the function was cancelled")
