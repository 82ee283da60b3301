"""Cooperative cancellation shared between signal handlers and the batch loop."""

import signal
import threading
from contextlib import contextmanager
from typing import Iterable, Iterator

from shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class CancellationToken:
    """Thread-safe flag, set once on user interrupt."""

    def __init__(self):
        self._event = threading.Event()
        self._holds = 0
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def holding_interrupts(self) -> bool:
        """True while a running job polls the token and will stop by itself."""
        return self._holds > 0

    def cancel(self) -> None:
        self._event.set()

    @contextmanager
    def hold_interrupts(self) -> Iterator["CancellationToken"]:
        """
        Mark the span in which an engine process is live.

        Inside it the first signal only sets the token; the job loop then
        terminates the engine. Outside it signals raise KeyboardInterrupt.
        """
        with self._lock:
            self._holds += 1
        try:
            yield self
        finally:
            with self._lock:
                self._holds -= 1


@contextmanager
def cancel_on_signals(
    token: CancellationToken,
    signals: Iterable[int] = DEFAULT_SIGNALS
) -> Iterator[CancellationToken]:
    """
    Route ``signals`` to ``token``.

    While the token holds interrupts the first signal cancels the token and
    returns, so the running engine is stopped cleanly. Any other signal, or
    a repeated one, cancels the token and raises KeyboardInterrupt, which
    also unblocks a pending read of the input list.

    Previous handlers are restored on exit. Outside the main thread the
    handlers cannot be installed and the token is only cancelled explicitly.
    """
    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    def _handler(signum, frame):
        first = not token.cancelled
        token.cancel()
        if first and token.holding_interrupts:
            logger.warning(f"Received signal {signum}, terminating the current job")
            return
        raise KeyboardInterrupt

    previous = {}
    for sig in signals:
        previous[sig] = signal.signal(sig, _handler)
    logger.debug(f"Signal handlers installed for {', '.join(signal.Signals(s).name for s in previous)}")
    try:
        yield token
    finally:
        for sig, handler in previous.items():
            # None means the handler was installed outside Python
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)
