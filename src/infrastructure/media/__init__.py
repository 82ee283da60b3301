"""Engine invocation package."""

from infrastructure.media.command import build_command
from infrastructure.media.progress import ProgressMonitor, parse_timestamp
from infrastructure.media.ffmpeg import FFmpegRunner, EngineProcess

__all__ = ["build_command", "ProgressMonitor", "parse_timestamp", "FFmpegRunner", "EngineProcess"]
