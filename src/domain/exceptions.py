"""Domain exceptions for the transcoding batch."""

from enum import Enum
from typing import Optional, Sequence


class ErrorKind(str, Enum):
    """Classification attached to every failed job."""

    USAGE = "usage"
    INPUT_NOT_FOUND = "input_not_found"
    OUTPUT_EXISTS = "output_exists"
    ENGINE_SPAWN = "engine_spawn"
    ENGINE_EXIT = "engine_exit"
    NO_DURATION = "no_duration"
    PROGRESS_PARSE = "progress_parse"
    CANCELLED = "cancelled"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class DomainException(Exception):
    """Base exception for all domain errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN


class UsageError(DomainException):
    """Raised when the invocation is malformed; aborts before any job runs."""

    kind = ErrorKind.USAGE


class ConfigurationError(UsageError):
    """Raised when configuration is invalid."""
    pass


class InputNotFoundError(DomainException):
    """Raised when an input path does not exist."""

    kind = ErrorKind.INPUT_NOT_FOUND


class OutputExistsError(DomainException):
    """Raised when the output path exists and overwrite was not requested."""

    kind = ErrorKind.OUTPUT_EXISTS


class EngineSpawnError(DomainException):
    """Raised when the engine process could not be started."""

    kind = ErrorKind.ENGINE_SPAWN


class EngineExitError(DomainException):
    """Raised when the engine exits with a nonzero status."""

    kind = ErrorKind.ENGINE_EXIT

    def __init__(
        self,
        message: str,
        exit_code: Optional[int] = None,
        tail: Sequence[str] = (),
        kind: Optional[ErrorKind] = None
    ):
        super().__init__(message)
        self.exit_code = exit_code
        self.tail = tuple(tail)
        if kind is not None:
            self.kind = kind


class ProgressParseError(DomainException):
    """Raised for a malformed progress line. Never leaves the monitor."""

    kind = ErrorKind.PROGRESS_PARSE


class JobCancelledError(DomainException):
    """Raised when the user interrupts a running job."""

    kind = ErrorKind.CANCELLED


class JobTimeoutError(DomainException):
    """Raised when a job runs longer than the configured timeout."""

    kind = ErrorKind.TIMEOUT
