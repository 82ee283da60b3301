"""Shared utilities package."""

from shared.logging import setup_logger, get_logger
from shared.metrics import MetricsCollector
from shared.cancellation import CancellationToken, cancel_on_signals

__all__ = [
    "setup_logger",
    "get_logger",
    "MetricsCollector",
    "CancellationToken",
    "cancel_on_signals",
]
