"""Domain layer package."""

from .models import (
    STDIN_SENTINEL,
    CommonFlags,
    JobSpec,
    ProgressEvent,
    MonitorState,
    JobOutcome,
    BatchResult,
)
from .exceptions import (
    ErrorKind,
    DomainException,
    UsageError,
    ConfigurationError,
    InputNotFoundError,
    OutputExistsError,
    EngineSpawnError,
    EngineExitError,
    ProgressParseError,
    JobCancelledError,
    JobTimeoutError,
)
from .paths import resolve_output_path
from .protocols import (
    ICancellationToken,
    IEngineProcess,
    IEngineRunner,
    IReporter,
)

__all__ = [
    # Models
    "STDIN_SENTINEL",
    "CommonFlags",
    "JobSpec",
    "ProgressEvent",
    "MonitorState",
    "JobOutcome",
    "BatchResult",
    # Exceptions
    "ErrorKind",
    "DomainException",
    "UsageError",
    "ConfigurationError",
    "InputNotFoundError",
    "OutputExistsError",
    "EngineSpawnError",
    "EngineExitError",
    "ProgressParseError",
    "JobCancelledError",
    "JobTimeoutError",
    # Paths
    "resolve_output_path",
    # Protocols
    "ICancellationToken",
    "IEngineProcess",
    "IEngineRunner",
    "IReporter",
]
