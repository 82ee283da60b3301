"""Batch metrics: job timings and outcome counters."""

import time
from typing import Callable, Dict, Any, List, Optional
from collections import defaultdict

from domain.models import JobOutcome


class MetricsCollector:
    """Collects timings and outcome counts for one batch run."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._start_time = clock()
        self._job_started: Optional[float] = None
        self._durations: List[float] = []
        self._counters: Dict[str, int] = defaultdict(int)

    def start_job(self) -> None:
        """Start timing the current job."""
        self._job_started = self._clock()

    def stop_job(self) -> float:
        """
        Stop timing the current job.

        Returns:
            Elapsed seconds, 0.0 if no job was started
        """
        if self._job_started is None:
            return 0.0
        elapsed = self._clock() - self._job_started
        self._job_started = None
        self._durations.append(elapsed)
        return elapsed

    def record_outcome(self, outcome: JobOutcome) -> None:
        """Count an outcome by success and failure kind."""
        self._counters["total"] += 1
        if outcome.success:
            self._counters["succeeded"] += 1
        else:
            self._counters["failed"] += 1
            kind = outcome.error_kind.value if outcome.error_kind else "unknown"
            self._counters[f"failed.{kind}"] += 1

    def get_counter(self, name: str) -> int:
        """Get counter value."""
        return self._counters.get(name, 0)

    def elapsed_time(self) -> float:
        """Seconds since the collector was created."""
        return self._clock() - self._start_time

    def get_summary(self) -> Dict[str, Any]:
        """
        Get summary of the batch.

        Returns:
            Dictionary with counters and job duration statistics
        """
        summary: Dict[str, Any] = {
            "total_elapsed": self.elapsed_time(),
            "counters": dict(self._counters),
        }
        if self._durations:
            summary["jobs"] = {
                "count": len(self._durations),
                "avg": sum(self._durations) / len(self._durations),
                "min": min(self._durations),
                "max": max(self._durations),
            }
        return summary
