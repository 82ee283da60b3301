"""Sequential batch driver."""

import sys
import time
from contextlib import nullcontext
from pathlib import Path
from typing import ContextManager, Iterable, Iterator, Optional, TextIO

from domain.models import (
    STDIN_SENTINEL, BatchResult, CommonFlags, JobOutcome, JobSpec, MonitorState
)
from domain.exceptions import (
    DomainException, EngineExitError, InputNotFoundError, JobCancelledError, OutputExistsError
)
from domain.paths import resolve_output_path
from domain.protocols import ICancellationToken, IEngineRunner, IReporter
from infrastructure.media.command import build_command
from infrastructure.media.progress import DEFAULT_TAIL_LINES, ProgressMonitor
from shared.logging import get_logger
from shared.metrics import MetricsCollector


def iter_inputs(source: str, stdin: Optional[TextIO] = None) -> Iterator[str]:
    """
    Expand an input source into a lazy sequence of paths.

    Args:
        source: A path, or ``-`` to read newline-separated paths from ``stdin``
        stdin: Stream used for ``-``

    Yields:
        Trimmed, non-blank paths in order
    """
    if source != STDIN_SENTINEL:
        yield source
        return

    for line in stdin if stdin is not None else sys.stdin:
        path = line.strip()
        if path:
            yield path


class BatchDriver:
    """Runs one engine process per input, strictly one after another."""

    def __init__(
        self,
        runner: IEngineRunner,
        reporter: Optional[IReporter] = None,
        cancel_token: Optional[ICancellationToken] = None,
        tail_lines: int = DEFAULT_TAIL_LINES,
        job_timeout: Optional[float] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        self._runner = runner
        self._reporter = reporter
        self._cancel_token = cancel_token
        self._tail_lines = tail_lines
        self._job_timeout = job_timeout
        self._metrics = metrics or MetricsCollector()
        self._logger = get_logger(__name__)

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    def run(self, inputs: Iterable[str], flags: CommonFlags) -> BatchResult:
        """
        Process every input in order.

        A failed job is recorded and the batch moves on. A user interrupt
        terminates the running job and stops the batch.

        Args:
            inputs: Paths, consumed once; blank entries are skipped
            flags: Flags applied to every job

        Returns:
            Outcomes in input order
        """
        result = BatchResult()

        for raw in inputs:
            if self._is_cancelled():
                result.cancelled = True
                break

            path = raw.strip()
            if not path:
                continue

            job = JobSpec.from_flags(path, flags)
            outcome = self._run_job(len(result.outcomes), job)
            result.add(outcome)

            if self._is_cancelled():
                result.cancelled = True
                break

        summary = self._metrics.get_summary()
        counters = summary["counters"]
        self._logger.info(
            f"Batch finished: {counters.get('total', 0)} jobs, "
            f"{counters.get('succeeded', 0)} succeeded, {counters.get('failed', 0)} failed "
            f"in {summary['total_elapsed']:.1f}s"
        )
        if self._reporter:
            self._reporter.batch_finished(result)
        return result

    def _run_job(self, index: int, job: JobSpec) -> JobOutcome:
        # Resolved exactly once: the existence check and the engine target must agree
        output_path = resolve_output_path(job.input, job.output_template)

        self._logger.info(f"Job {index}: {job.input} -> {output_path}")
        if self._reporter:
            self._reporter.job_started(index, job, output_path)

        self._metrics.start_job()
        try:
            self._execute(index, job, output_path)
            outcome = JobOutcome.succeeded(
                job.input, output_path, duration_seconds=self._metrics.stop_job()
            )
            self._logger.info(f"Job {index} succeeded: {output_path}")
        except DomainException as e:
            outcome = JobOutcome.failed(
                job.input, e, output_path=output_path, duration_seconds=self._metrics.stop_job()
            )
            self._log_failure(index, outcome)

        self._metrics.record_outcome(outcome)
        if self._reporter:
            self._reporter.job_finished(index, outcome)
        return outcome

    def _execute(self, index: int, job: JobSpec, output_path: str) -> None:
        if not Path(job.input).exists():
            raise InputNotFoundError(f"Input not found: {job.input}")

        if not job.overwrite and Path(output_path).exists():
            raise OutputExistsError(
                f"Output file already exists: {output_path} (-y/--overwrite to overwrite)"
            )

        if job.strips_everything:
            self._logger.warning(f"Job {index}: both audio and video are stripped, output will have no streams")

        args = build_command(job, output_path)
        monitor = ProgressMonitor(tail_lines=self._tail_lines)
        deadline = time.monotonic() + self._job_timeout if self._job_timeout else None

        with self._hold_interrupts():
            process = self._runner.start(args)
            try:
                for event in monitor.events(process.lines(self._cancel_token, deadline)):
                    if self._reporter:
                        self._reporter.progress(index, event)
            except DomainException as e:
                process.wait()
                e.tail = tuple(monitor.tail)
                raise
            except BaseException:
                # The engine must never outlive its job
                self._logger.warning(f"Job {index}: stopping engine after unexpected error")
                process.terminate()
                process.wait()
                raise

            exit_code = process.wait()

        # A terminal Ctrl-C reaches the engine too; it exits on its own
        if exit_code != 0 and self._is_cancelled():
            error = JobCancelledError("Interrupted by user")
            error.tail = tuple(monitor.tail)
            raise error

        if monitor.finish(exit_code) is MonitorState.FAILURE:
            raise EngineExitError(
                monitor.failure_message,
                exit_code=exit_code,
                tail=monitor.tail,
                kind=monitor.failure_kind,
            )

    def _log_failure(self, index: int, outcome: JobOutcome) -> None:
        self._logger.error(
            f"Job {index} failed [{outcome.error_kind.value}] {outcome.input_path}: {outcome.message}"
        )
        for line in outcome.tail:
            self._logger.error(f"  | {line}")

    def _hold_interrupts(self) -> ContextManager:
        if self._cancel_token is None:
            return nullcontext()
        return self._cancel_token.hold_interrupts()

    def _is_cancelled(self) -> bool:
        return self._cancel_token is not None and self._cancel_token.cancelled
