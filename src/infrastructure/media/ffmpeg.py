"""FFmpeg process wrapper with a live output reader."""

import queue
import shlex
import shutil
import subprocess
import threading
import time
from typing import Iterator, List, Optional, Sequence, Union

from domain.exceptions import EngineSpawnError, JobCancelledError, JobTimeoutError
from domain.protocols import ICancellationToken
from shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_ENGINE = "ffmpeg"
DEFAULT_POLL_INTERVAL = 0.2
TERMINATE_GRACE_SECONDS = 5.0

_EOF = object()


def parse_engine_command(engine: Union[str, Sequence[str]]) -> List[str]:
    """Split an engine setting such as ``"nice -n 10 ffmpeg"`` into argv tokens."""
    if isinstance(engine, str):
        tokens = shlex.split(engine)
    else:
        tokens = [str(t) for t in engine]
    if not tokens:
        raise ValueError("Engine command is empty")
    return tokens


class EngineProcess:
    """A running engine process whose merged output is drained by a reader thread."""

    def __init__(self, proc: subprocess.Popen, poll_interval: float = DEFAULT_POLL_INTERVAL):
        self._proc = proc
        self._poll_interval = poll_interval
        self._queue: "queue.Queue" = queue.Queue()
        self._reader = threading.Thread(
            target=self._pump,
            name=f"engine-reader-{proc.pid}",
            daemon=True,
        )
        self._reader.start()

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def returncode(self) -> Optional[int]:
        """Exit status once the engine has been reaped, else None."""
        return self._proc.poll()

    def _pump(self) -> None:
        # Universal newlines split ffmpeg's carriage-return stats updates into lines
        try:
            for line in self._proc.stdout:
                self._queue.put(line)
        except ValueError:
            # stdout closed underneath us after terminate()
            pass
        finally:
            self._queue.put(_EOF)

    def lines(
        self,
        cancel_token: Optional[ICancellationToken] = None,
        deadline: Optional[float] = None
    ) -> Iterator[str]:
        """
        Yield output lines as the engine produces them.

        Args:
            cancel_token: Checked between reads; when set the engine is terminated
            deadline: ``time.monotonic()`` value after which the engine is terminated

        Yields:
            Lines without their terminator

        Raises:
            JobCancelledError: If cancellation was requested
            JobTimeoutError: If the deadline passed
        """
        while True:
            if cancel_token is not None and cancel_token.cancelled:
                self.terminate()
                raise JobCancelledError("Interrupted by user")
            if deadline is not None and time.monotonic() > deadline:
                self.terminate()
                raise JobTimeoutError("Engine exceeded the job timeout")

            try:
                item = self._queue.get(timeout=self._poll_interval)
            except queue.Empty:
                continue

            if item is _EOF:
                return
            yield item.rstrip('\r\n')

    def wait(self) -> int:
        """Wait for exit and return the exit code."""
        code = self._proc.wait()
        self._reader.join(timeout=self._poll_interval * 5)
        return code

    def terminate(self, grace: float = TERMINATE_GRACE_SECONDS) -> None:
        """Terminate the engine, killing it if it ignores the request."""
        if self._proc.poll() is not None:
            return
        logger.info(f"Terminating engine pid={self._proc.pid}")
        self._proc.terminate()
        try:
            self._proc.wait(timeout=grace)
        except subprocess.TimeoutExpired:
            logger.warning(f"Engine pid={self._proc.pid} ignored terminate, killing")
            self._proc.kill()
            self._proc.wait()


class FFmpegRunner:
    """Spawns the engine binary. Implements IEngineRunner protocol."""

    def __init__(
        self,
        engine: Union[str, Sequence[str]] = DEFAULT_ENGINE,
        poll_interval: float = DEFAULT_POLL_INTERVAL
    ):
        self._command = parse_engine_command(engine)
        self._poll_interval = poll_interval

    @property
    def command(self) -> List[str]:
        return list(self._command)

    def is_available(self) -> bool:
        """Check whether the engine binary can be found."""
        return shutil.which(self._command[0]) is not None

    def start(self, args: Sequence[str]) -> EngineProcess:
        """
        Spawn the engine with ``args``.

        Args:
            args: Argument vector without the engine binary

        Returns:
            Running engine process

        Raises:
            EngineSpawnError: If the process could not be started
        """
        cmd = [*self._command, *args]
        logger.debug(f"Spawning: {shlex.join(cmd)}")
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding='utf-8',
                errors='replace',
                bufsize=1,
            )
        except OSError as e:
            raise EngineSpawnError(f"Failed to start {self._command[0]}: {e}")

        logger.debug(f"Started engine pid={proc.pid}")
        return EngineProcess(proc, poll_interval=self._poll_interval)
