"""Infrastructure layer package."""

from infrastructure.config import ConfigLoader, RencConfig
from infrastructure.media import FFmpegRunner, ProgressMonitor, build_command

__all__ = ["ConfigLoader", "RencConfig", "FFmpegRunner", "ProgressMonitor", "build_command"]
