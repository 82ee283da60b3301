"""Console rendering of batch progress."""

import json
import sys
import time
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import PurePath
from typing import Callable, Dict, List, Optional, TextIO

from domain.models import BatchResult, JobOutcome, JobSpec, ProgressEvent
from shared.logging import get_logger

logger = get_logger(__name__)

HUMAN_REDRAW_INTERVAL = 0.1


def format_seconds(seconds: Optional[float]) -> Optional[str]:
    """Format seconds as ``"1m 5s"``."""
    if seconds is None:
        return None
    total = int(max(seconds, 0))
    return f"{total // 60}m {total % 60}s"


def _timestamp() -> str:
    return datetime.now().isoformat(timespec='seconds')


@dataclass
class TaskView:
    """Display state of one job."""

    id: int
    input: str
    output: str
    active: bool = True
    success: Optional[bool] = None
    error_kind: Optional[str] = None
    error_description: Optional[str] = None
    total: Optional[float] = None
    percent: float = 0.0
    current: float = 0.0
    eta: Optional[str] = None
    elapsed: Optional[str] = None
    started_at: Optional[str] = None
    exited_at: Optional[str] = None


class BatchReporter:
    """Tracks per-job state and renders it. Implements IReporter protocol."""

    def __init__(self, stream: Optional[TextIO] = None, clock: Callable[[], float] = time.monotonic):
        self._stream = stream or sys.stdout
        self._clock = clock
        self._tasks: Dict[int, TaskView] = {}
        self._started: Dict[int, float] = {}

    @property
    def tasks(self) -> List[TaskView]:
        return [self._tasks[k] for k in sorted(self._tasks)]

    def snapshot(self) -> dict:
        """Summary row with per-task details."""
        tasks = self.tasks
        return {
            "total_tasks": len(tasks),
            "active_tasks": sum(1 for t in tasks if t.active),
            "completed_tasks": sum(1 for t in tasks if not t.active),
            "successful_tasks": sum(1 for t in tasks if t.success is True),
            "failed_tasks": sum(1 for t in tasks if t.success is False),
            "tasks": [asdict(t) for t in tasks],
        }

    def job_started(self, index: int, job: JobSpec, output_path: str) -> None:
        self._tasks[index] = TaskView(
            id=index, input=job.input, output=output_path, started_at=_timestamp()
        )
        self._started[index] = self._clock()
        self._render(force=True)

    def progress(self, index: int, event: ProgressEvent) -> None:
        task = self._tasks[index]
        task.percent = round(event.percent_complete, 1)
        task.current = round(event.elapsed_media_time, 1)
        if event.total_duration is not None:
            task.total = round(event.total_duration, 1)
        task.eta = format_seconds(event.estimated_time_remaining)
        task.elapsed = format_seconds(self._clock() - self._started[index])
        self._render(force=False)

    def job_finished(self, index: int, outcome: JobOutcome) -> None:
        task = self._tasks[index]
        task.active = False
        task.success = outcome.success
        task.elapsed = format_seconds(outcome.duration_seconds)
        task.exited_at = _timestamp()
        task.eta = None
        if outcome.success:
            task.percent = 100.0
        else:
            task.error_kind = outcome.error_kind.value if outcome.error_kind else None
            task.error_description = outcome.message
        self._render(force=True)

    def batch_finished(self, result: BatchResult) -> None:
        self._render(force=True)

    def _render(self, force: bool) -> None:
        raise NotImplementedError


class HumanReporter(BatchReporter):
    """Single status line, redrawn in place."""

    def __init__(self, stream: Optional[TextIO] = None, clock: Callable[[], float] = time.monotonic,
                 redraw_interval: float = HUMAN_REDRAW_INTERVAL):
        super().__init__(stream, clock)
        self._redraw_interval = redraw_interval
        self._last_draw: Optional[float] = None

    def format_row(self) -> str:
        row = self.snapshot()
        text = (
            f"T: {row['total_tasks']} | A: {row['active_tasks']} | "
            f"S: {row['successful_tasks']} | F: {row['failed_tasks']} | "
            f"C: {row['completed_tasks']}"
        )
        for task in self.tasks:
            if not task.active:
                continue
            name = PurePath(task.input).name or task.input
            text += f" | {name}[{task.percent:.1f}%"
            if task.eta:
                text += f" eta: {task.eta}"
            if task.elapsed:
                text += f" elapsed: {task.elapsed}"
            text += "]"
        return text

    def job_finished(self, index: int, outcome: JobOutcome) -> None:
        super().job_finished(index, outcome)
        self._stream.write("\n")
        self._stream.flush()

    def batch_finished(self, result: BatchResult) -> None:
        # Every finished job already left its final row on screen
        pass

    def _render(self, force: bool) -> None:
        now = self._clock()
        if not force and self._last_draw is not None and now - self._last_draw < self._redraw_interval:
            return
        # Clear the rest of the previous line
        self._stream.write("\r" + self.format_row() + "\x1b[K")
        self._stream.flush()
        self._last_draw = now


class JsonReporter(BatchReporter):
    """One JSON document per update."""

    def __init__(self, stream: Optional[TextIO] = None, clock: Callable[[], float] = time.monotonic,
                 pretty: bool = False):
        super().__init__(stream, clock)
        self._pretty = pretty

    def _render(self, force: bool) -> None:
        if self._pretty:
            text = json.dumps(self.snapshot(), indent=2)
        else:
            text = json.dumps(self.snapshot())
        self._stream.write(text + "\n")
        self._stream.flush()


class LogReporter(BatchReporter):
    """Progress through the logger instead of the console row."""

    def progress(self, index: int, event: ProgressEvent) -> None:
        super().progress(index, event)
        task = self._tasks[index]
        eta = f" eta {task.eta}" if task.eta else ""
        logger.info(f"Job {index} {task.percent:.1f}% ({task.current:.1f}s){eta}")

    def _render(self, force: bool) -> None:
        if force:
            logger.debug(f"Batch state: {json.dumps(self.snapshot())}")


def create_reporter(output_format: str, stream: Optional[TextIO] = None) -> BatchReporter:
    """Build the reporter for an output format name."""
    if output_format == "human":
        return HumanReporter(stream)
    if output_format == "json":
        return JsonReporter(stream)
    if output_format == "json-pretty":
        return JsonReporter(stream, pretty=True)
    if output_format == "verbose":
        return LogReporter(stream)
    raise ValueError(f"Unknown output format: {output_format}")
