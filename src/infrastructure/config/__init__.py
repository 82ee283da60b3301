"""Configuration package."""

from infrastructure.config.loader import ConfigLoader, RencConfig, OUTPUT_FORMATS

__all__ = ["ConfigLoader", "RencConfig", "OUTPUT_FORMATS"]
