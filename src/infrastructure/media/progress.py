"""Incremental parser for ffmpeg's stderr progress output."""

import re
import time
from collections import deque
from typing import Callable, Iterable, Iterator, List, Optional

from domain.models import MonitorState, ProgressEvent
from domain.exceptions import ErrorKind, ProgressParseError
from shared.logging import get_logger

logger = get_logger(__name__)

# Duration: 00:05:23.45, start: 0.000000, bitrate: 1205 kb/s
DURATION_PATTERN = re.compile(r'Duration:\s*(-?\d+:\d+:\d+(?:\.\d+)?)')
# frame=  123 fps= 30 q=-1.0 size=  512kB time=00:00:04.10 bitrate=1023.2kbits/s speed=2.31x
TIME_PATTERN = re.compile(r'time=\s*(\S+)')
SPEED_PATTERN = re.compile(r'speed=\s*(\d+(?:\.\d+)?)x')

DEFAULT_TAIL_LINES = 20

# Wall-clock ETA is only shown once this share is done and below this bound
ETA_MIN_PERCENT = 1.0
ETA_MAX_SECONDS = 3600.0


def parse_timestamp(text: str) -> float:
    """
    Convert an ``HH:MM:SS.fraction`` timestamp to seconds.

    Args:
        text: Timestamp text

    Returns:
        Seconds as float

    Raises:
        ProgressParseError: If the text is not a timestamp
    """
    parts = text.strip().split(':')
    if len(parts) != 3:
        raise ProgressParseError(f"Not a timestamp: {text!r}")

    negative = parts[0].startswith('-')
    try:
        hours = abs(int(parts[0]))
        minutes = int(parts[1])
        seconds = float(parts[2])
    except ValueError:
        raise ProgressParseError(f"Not a timestamp: {text!r}")

    if minutes < 0 or seconds < 0:
        raise ProgressParseError(f"Not a timestamp: {text!r}")

    total = hours * 3600 + minutes * 60 + seconds
    return -total if negative else total


class ProgressMonitor:
    """
    State machine turning engine output lines into progress events.

    AWAITING_DURATION -> STREAMING -> SUCCESS | FAILURE. Lines that do not
    parse never abort the job; they only suppress that tick.
    """

    def __init__(
        self,
        tail_lines: int = DEFAULT_TAIL_LINES,
        clock: Callable[[], float] = time.monotonic
    ):
        self._state = MonitorState.AWAITING_DURATION
        self._tail = deque(maxlen=tail_lines)
        self._clock = clock
        self._total: Optional[float] = None
        self._last_percent: Optional[float] = None
        self._streaming_since: Optional[float] = None
        self._exit_code: Optional[int] = None
        self._failure_kind: Optional[ErrorKind] = None
        self._failure_message: Optional[str] = None

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def total_duration(self) -> Optional[float]:
        """Announced media duration in seconds; 0.0 means unknown."""
        return self._total

    @property
    def tail(self) -> List[str]:
        """Last captured output lines, oldest first."""
        return list(self._tail)

    @property
    def exit_code(self) -> Optional[int]:
        return self._exit_code

    @property
    def failure_kind(self) -> Optional[ErrorKind]:
        return self._failure_kind

    @property
    def failure_message(self) -> Optional[str]:
        return self._failure_message

    def events(self, lines: Iterable[str]) -> Iterator[ProgressEvent]:
        """Lazily feed ``lines`` and yield each progress event as it is produced."""
        for line in lines:
            event = self.feed(line)
            if event is not None:
                yield event

    def feed(self, line: str) -> Optional[ProgressEvent]:
        """
        Consume one output line.

        Args:
            line: Raw line from the engine, with or without its terminator

        Returns:
            A progress event, or None if the line produced no tick
        """
        if self._state.is_terminal:
            return None

        line = line.rstrip('\r\n')
        if line.strip():
            self._tail.append(line)

        if self._state is MonitorState.AWAITING_DURATION:
            self._scan_duration(line)
            return None

        return self._scan_progress(line)

    def finish(self, exit_code: int) -> MonitorState:
        """
        Classify the job once the engine has exited.

        Args:
            exit_code: Engine exit status

        Returns:
            Terminal state
        """
        if self._state.is_terminal:
            return self._state

        self._exit_code = exit_code
        if exit_code == 0:
            self._state = MonitorState.SUCCESS
            return self._state

        if self._state is MonitorState.AWAITING_DURATION:
            self._failure_kind = ErrorKind.NO_DURATION
            self._failure_message = f"No duration detected, engine exited with status {exit_code}"
        else:
            self._failure_kind = ErrorKind.ENGINE_EXIT
            self._failure_message = f"Engine exited with status {exit_code}"

        last = self._last_meaningful_line()
        if last:
            self._failure_message += f": {last}"

        self._state = MonitorState.FAILURE
        return self._state

    def _scan_duration(self, line: str) -> None:
        match = DURATION_PATTERN.search(line)
        if not match:
            return
        try:
            total = parse_timestamp(match.group(1))
        except ProgressParseError as e:
            logger.debug(f"Skipping duration line: {e}")
            return

        self._total = max(total, 0.0)
        self._streaming_since = self._clock()
        self._state = MonitorState.STREAMING
        logger.debug(f"Detected duration {self._total:.2f}s")

    def _scan_progress(self, line: str) -> Optional[ProgressEvent]:
        match = TIME_PATTERN.search(line)
        if not match:
            return None
        try:
            elapsed = parse_timestamp(match.group(1))
        except ProgressParseError:
            return None

        # Zero duration is "unknown": no percentage can be computed
        if not self._total:
            return None

        percent = min(100.0, max(0.0, 100.0 * elapsed / self._total))
        if self._last_percent is not None and percent < self._last_percent:
            return None
        self._last_percent = percent

        return ProgressEvent(
            elapsed_media_time=max(elapsed, 0.0),
            percent_complete=percent,
            estimated_time_remaining=self._estimate_remaining(line, elapsed, percent),
            total_duration=self._total,
        )

    def _estimate_remaining(self, line: str, elapsed: float, percent: float) -> Optional[float]:
        remaining_media = max(self._total - elapsed, 0.0)

        speed_match = SPEED_PATTERN.search(line)
        if speed_match:
            speed = float(speed_match.group(1))
            if speed > 0:
                return remaining_media / speed

        if percent < ETA_MIN_PERCENT or elapsed <= 0 or self._streaming_since is None:
            return None
        wall = self._clock() - self._streaming_since
        remaining = wall * (self._total / elapsed - 1.0)
        if remaining > ETA_MAX_SECONDS:
            return None
        return max(remaining, 0.0)

    def _last_meaningful_line(self) -> Optional[str]:
        for line in reversed(self._tail):
            if not TIME_PATTERN.search(line):
                return line.strip()
        return None
