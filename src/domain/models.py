"""Domain models for transcoding jobs."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, List

from .exceptions import DomainException, ErrorKind

# Input source meaning "read newline-separated paths from stdin"
STDIN_SENTINEL = "-"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


@dataclass(frozen=True)
class CommonFlags:
    """Flags shared by every job of a batch."""

    output_template: Optional[str] = None
    strip_audio: bool = False
    strip_video: bool = False
    overwrite: bool = False
    extra_args: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'extra_args', tuple(self.extra_args))


@dataclass(frozen=True)
class JobSpec:
    """Resolved configuration for one input file."""

    input: str
    output_template: Optional[str] = None
    strip_audio: bool = False
    strip_video: bool = False
    overwrite: bool = False
    extra_args: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'extra_args', tuple(self.extra_args))

    @classmethod
    def from_flags(cls, input_path: str, flags: CommonFlags) -> "JobSpec":
        """Build the job for one input from the batch-wide flags."""
        return cls(
            input=input_path,
            output_template=flags.output_template,
            strip_audio=flags.strip_audio,
            strip_video=flags.strip_video,
            overwrite=flags.overwrite,
            extra_args=flags.extra_args,
        )

    @property
    def strips_everything(self) -> bool:
        """Both streams dropped; the engine will most likely refuse it."""
        return self.strip_audio and self.strip_video


@dataclass(frozen=True)
class ProgressEvent:
    """One progress tick for a running job."""

    elapsed_media_time: float
    percent_complete: float
    estimated_time_remaining: Optional[float] = None
    total_duration: Optional[float] = None

    def __post_init__(self):
        if not 0.0 <= self.percent_complete <= 100.0:
            raise ValueError(f"percent_complete out of range: {self.percent_complete}")


class MonitorState(Enum):
    """States of the progress monitor."""

    AWAITING_DURATION = "awaiting_duration"
    STREAMING = "streaming"
    SUCCESS = "success"
    FAILURE = "failure"

    @property
    def is_terminal(self) -> bool:
        return self in (MonitorState.SUCCESS, MonitorState.FAILURE)


@dataclass(frozen=True)
class JobOutcome:
    """Result of one job. Either a success with an output path or a failure with a kind."""

    input_path: str
    success: bool
    output_path: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None
    tail: Tuple[str, ...] = ()
    duration_seconds: float = 0.0

    @classmethod
    def succeeded(cls, input_path: str, output_path: str, duration_seconds: float = 0.0) -> "JobOutcome":
        return cls(
            input_path=input_path,
            success=True,
            output_path=output_path,
            duration_seconds=duration_seconds,
        )

    @classmethod
    def failed(
        cls,
        input_path: str,
        error: DomainException,
        output_path: Optional[str] = None,
        duration_seconds: float = 0.0
    ) -> "JobOutcome":
        """
        Build a failure outcome from a domain exception.

        Args:
            input_path: Input the job was started for
            error: Exception that ended the job
            output_path: Resolved output path, if resolution got that far
            duration_seconds: Wall-clock time spent on the job

        Returns:
            Failure outcome carrying the exception's kind, message and tail
        """
        return cls(
            input_path=input_path,
            success=False,
            output_path=output_path,
            error_kind=error.kind,
            message=str(error),
            tail=tuple(getattr(error, 'tail', ())),
            duration_seconds=duration_seconds,
        )


@dataclass
class BatchResult:
    """Ordered outcomes of a batch, one per input encountered."""

    outcomes: List[JobOutcome] = field(default_factory=list)
    cancelled: bool = False

    def add(self, outcome: JobOutcome) -> None:
        """Append the outcome of the next job."""
        self.outcomes.append(outcome)

    @property
    def all_succeeded(self) -> bool:
        return all(o.success for o in self.outcomes)

    @property
    def failures(self) -> List[JobOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def exit_code(self) -> int:
        """0 when every job succeeded, 130 when interrupted, 1 otherwise."""
        if self.cancelled:
            return EXIT_INTERRUPTED
        return EXIT_OK if self.all_succeeded else EXIT_FAILURE
