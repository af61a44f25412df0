"""Exceptions raised by proctrack."""


class ProctrackError(Exception):
    """Base class for all proctrack errors."""


class EnumerationError(ProctrackError):
    """The OS process table or memory information could not be read."""


class InvalidIntervalError(ProctrackError, ValueError):
    """A refresh interval was not a positive, finite number of seconds."""


class TerminationError(ProctrackError):
    """A process could not be terminated."""

    def __init__(self, pid: int, message: str) -> None:
        super().__init__(message)
        self.pid = pid


class ProcessNotFoundError(TerminationError, LookupError):
    """The process no longer exists."""

    def __init__(self, pid: int, message: str | None = None) -> None:
        super().__init__(pid, message or f"No such process: {pid}")


class ProcessPermissionError(TerminationError, PermissionError):
    """The caller is not allowed to terminate the process."""

    def __init__(self, pid: int, message: str | None = None) -> None:
        super().__init__(pid, message or f"Not permitted to terminate process {pid}")


class PlatformError(TerminationError, OSError):
    """Any other OS-level failure while terminating a process."""

    def __init__(self, pid: int, message: str | None = None) -> None:
        super().__init__(pid, message or f"Failed to terminate process {pid}")
