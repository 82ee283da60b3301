"""Protocol definitions for dependency inversion."""

from typing import ContextManager, Protocol, Iterator, Optional, Sequence

from .models import JobSpec, JobOutcome, BatchResult, ProgressEvent


class ICancellationToken(Protocol):
    """Interface for a cooperative cancellation flag."""

    @property
    def cancelled(self) -> bool:
        """Whether cancellation was requested."""
        ...

    def hold_interrupts(self) -> ContextManager:
        """Context in which a live engine stops on its own when the token is set."""
        ...


class IEngineProcess(Protocol):
    """Interface for a running engine process."""

    def lines(
        self,
        cancel_token: Optional[ICancellationToken] = None,
        deadline: Optional[float] = None
    ) -> Iterator[str]:
        """Yield output lines as they arrive until the stream closes."""
        ...

    def wait(self) -> int:
        """Wait for the process and return its exit code."""
        ...

    def terminate(self) -> None:
        """Request termination of the process."""
        ...


class IEngineRunner(Protocol):
    """Interface for spawning the external engine."""

    def start(self, args: Sequence[str]) -> IEngineProcess:
        """Spawn the engine with the given arguments."""
        ...


class IReporter(Protocol):
    """Interface for surfacing batch progress to the user."""

    def job_started(self, index: int, job: JobSpec, output_path: str) -> None:
        """Called once per job before any check or spawn."""
        ...

    def progress(self, index: int, event: ProgressEvent) -> None:
        """Called for every progress event of the running job."""
        ...

    def job_finished(self, index: int, outcome: JobOutcome) -> None:
        """Called as soon as a job's outcome is known."""
        ...

    def batch_finished(self, result: BatchResult) -> None:
        """Called once after the last job."""
        ...
