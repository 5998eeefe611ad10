# pyright: standard

"""backtor-restic: backtor_restic/__util__.py
Common errors and helpers shared by the worker modules.
"""


class BackupWorkerError(Exception):
    """Base class for every failure reported back as a failed task."""


class RequestError(BackupWorkerError):
    """Task input could not be turned into a valid request."""


class MissingField(RequestError):
    """A required input field is absent or empty."""

    def __init__(self, field: str) -> None:
        super().__init__(f"'{field}' is required as input data")
        self.field = field


class InvalidField(RequestError):
    """An input field is present but has an unusable value."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"'{field}' is invalid: {reason}")
        self.field = field
        self.reason = reason


class SourceNotFound(BackupWorkerError):
    """The local source directory for a backup does not exist."""

    def __init__(self, path) -> None:
        super().__init__(f"Source backup dir {path} doesn't exist")
        self.path = path


class EngineExecutionError(BackupWorkerError):
    """The backup engine exited non-zero or could not be started.

    ``outcome`` holds the captured command outcome when the process ran, so
    callers can log what the engine printed.
    """

    def __init__(self, message: str, outcome=None) -> None:
        super().__init__(message)
        self.outcome = outcome

    @property
    def output(self) -> str:
        return self.outcome.output if self.outcome is not None else ""


class EngineTimeoutError(BackupWorkerError, TimeoutError):
    """The backup engine did not finish before its deadline and was killed."""

    def __init__(self, command, timeout) -> None:
        super().__init__(f"Command timed out after {timeout} seconds: {command}")
        self.command = command
        self.timeout = timeout


class ResultNotFound(BackupWorkerError):
    """The engine finished cleanly but did not print the expected confirmation."""

    def __init__(self, pattern: str) -> None:
        super().__init__(f"Couldn't find returned id in engine output (pattern {pattern!r})")
        self.pattern = pattern


class IdentifierMismatch(BackupWorkerError):
    """The engine removed a different snapshot than the one requested."""

    def __init__(self, requested: str, reported: str) -> None:
        super().__init__(
            f"Returned id from forget is different from requested. {reported} != {requested}"
        )
        self.requested = requested
        self.reported = reported


class RepositoryInitError(BackupWorkerError):
    """The repository is neither reachable nor could be created."""


def log_heading(caption: str) -> str:
    """Formatted heading for logging output sections."""
    return f"{'-' * 10} {caption} {'-' * 10}"
