"""Configuration loading and validation."""

import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass, fields

from domain.exceptions import ConfigurationError
from shared.logging import get_logger

OUTPUT_FORMATS = ("human", "json", "json-pretty", "verbose")
DEFAULT_CONFIG_FILE = Path("ffrenc.yaml")


@dataclass
class RencConfig:
    """Settings that apply to a whole batch."""

    # Engine
    engine: str = "ffmpeg"
    poll_interval: float = 0.2
    job_timeout: Optional[float] = None

    # Output
    output_template: Optional[str] = None
    overwrite: bool = False

    # Reporting
    output_format: str = "human"
    tail_lines: int = 20
    log_file: Optional[Path] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self):
        """Validate configuration values."""
        if not isinstance(self.engine, str) or not self.engine.strip():
            raise ConfigurationError("engine must be a non-empty command")

        if self.output_format not in OUTPUT_FORMATS:
            raise ConfigurationError(f"Invalid output_format: {self.output_format}")

        if not isinstance(self.tail_lines, int) or isinstance(self.tail_lines, bool) or self.tail_lines <= 0:
            raise ConfigurationError(f"tail_lines must be a positive integer, got: {self.tail_lines}")

        if self.poll_interval <= 0:
            raise ConfigurationError(f"poll_interval must be positive, got: {self.poll_interval}")

        if self.job_timeout is not None and self.job_timeout <= 0:
            raise ConfigurationError(f"job_timeout must be positive, got: {self.job_timeout}")

        if self.log_file is not None:
            self.log_file = Path(self.log_file)


class ConfigLoader:
    """Loads configuration from a YAML file, environment variables and CLI overrides."""

    ENV_PREFIX = "FFRENC_"

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize config loader.

        Args:
            config_path: Optional path to YAML config file. When given it
                must exist; the default ``ffrenc.yaml`` is optional.
        """
        self._explicit = config_path is not None
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_FILE
        self._logger = get_logger(__name__)

    def load(self, overrides: Optional[Dict[str, Any]] = None) -> RencConfig:
        """
        Load configuration. Later sources win: file, environment, overrides.

        Returns:
            RencConfig instance

        Raises:
            ConfigurationError: If configuration is invalid
        """
        config_dict: Dict[str, Any] = {}

        config_dict.update(self._load_from_file())
        config_dict.update(self._load_from_env())

        if overrides:
            for k, v in overrides.items():
                if v is None:
                    continue
                config_dict[k] = v

        valid_fields = {f.name for f in fields(RencConfig)}
        unknown = sorted(set(config_dict) - valid_fields)
        if unknown:
            self._logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")

        filtered_config = {k: v for k, v in config_dict.items() if k in valid_fields}

        try:
            return RencConfig(**filtered_config)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    def _load_from_file(self) -> Dict[str, Any]:
        if not self.config_path.exists():
            if self._explicit:
                raise ConfigurationError(f"Config file not found: {self.config_path}")
            return {}

        self._logger.info(f"Loading config from {self.config_path}")
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}")

        if not isinstance(yaml_config, dict):
            raise ConfigurationError(f"Config file must contain a mapping: {self.config_path}")
        return yaml_config

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config: Dict[str, Any] = {}
        p = self.ENV_PREFIX

        if engine := os.getenv(p + "ENGINE"):
            env_config["engine"] = engine

        if template := os.getenv(p + "OUTPUT_TEMPLATE"):
            env_config["output_template"] = template

        if output_format := os.getenv(p + "FORMAT"):
            env_config["output_format"] = output_format.lower()

        if tail_lines := os.getenv(p + "TAIL_LINES"):
            try:
                env_config["tail_lines"] = int(tail_lines)
            except ValueError:
                raise ConfigurationError(f"Invalid {p}TAIL_LINES value: {tail_lines}")

        if job_timeout := os.getenv(p + "JOB_TIMEOUT"):
            try:
                env_config["job_timeout"] = float(job_timeout)
            except ValueError:
                raise ConfigurationError(f"Invalid {p}JOB_TIMEOUT value: {job_timeout}")

        if log_file := os.getenv(p + "LOG_FILE"):
            env_config["log_file"] = Path(log_file)

        if overwrite := os.getenv(p + "OVERWRITE"):
            env_config["overwrite"] = overwrite.lower() in ("true", "1", "yes")

        return env_config
