"""
Unit tests for ConfigLoader.
"""

from pathlib import Path

import pytest

from domain.exceptions import ConfigurationError, UsageError
from infrastructure.config.loader import ConfigLoader, RencConfig

ENV_VARS = [
    "FFRENC_ENGINE", "FFRENC_OUTPUT_TEMPLATE", "FFRENC_FORMAT", "FFRENC_TAIL_LINES",
    "FFRENC_JOB_TIMEOUT", "FFRENC_LOG_FILE", "FFRENC_OVERWRITE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    # keep a stray ./ffrenc.yaml from leaking in
    monkeypatch.chdir(tmp_path)


class TestRencConfig:
    """Test RencConfig validation."""

    def test_defaults(self):
        cfg = RencConfig()
        assert cfg.engine == "ffmpeg"
        assert cfg.output_template is None
        assert cfg.output_format == "human"
        assert cfg.tail_lines == 20
        assert cfg.job_timeout is None
        assert cfg.overwrite is False

    @pytest.mark.parametrize("kwargs", [
        {"output_format": "xml"},
        {"tail_lines": 0},
        {"tail_lines": True},
        {"job_timeout": -1},
        {"poll_interval": 0},
        {"engine": "  "},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ConfigurationError):
            RencConfig(**kwargs)

    def test_configuration_error_is_usage_error(self):
        with pytest.raises(UsageError):
            RencConfig(output_format="xml")


class TestConfigLoader:
    """Test ConfigLoader.load()."""

    def test_no_file(self):
        cfg = ConfigLoader().load()
        assert cfg == RencConfig()

    def test_default_file_picked_up(self, tmp_path):
        (tmp_path / "ffrenc.yaml").write_text("output_template: 'done/{SLUG}.mp4'\n")
        cfg = ConfigLoader().load()
        assert cfg.output_template == "done/{SLUG}.mp4"

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigLoader(tmp_path / "nope.yaml").load()

    def test_yaml_values(self, tmp_path):
        p = tmp_path / "cfg.yaml"
        p.write_text(
            "engine: /usr/local/bin/ffmpeg\n"
            "tail_lines: 5\n"
            "job_timeout: 600\n"
            "output_format: json\n"
            "log_file: logs/ffrenc.log\n"
        )
        cfg = ConfigLoader(p).load()

        assert cfg.engine == "/usr/local/bin/ffmpeg"
        assert cfg.tail_lines == 5
        assert cfg.job_timeout == 600
        assert cfg.output_format == "json"
        assert cfg.log_file == Path("logs/ffrenc.log")

    def test_empty_yaml(self, tmp_path):
        p = tmp_path / "cfg.yaml"
        p.write_text("")
        assert ConfigLoader(p).load() == RencConfig()

    def test_invalid_yaml(self, tmp_path):
        p = tmp_path / "cfg.yaml"
        p.write_text("engine: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            ConfigLoader(p).load()

    def test_non_mapping_yaml(self, tmp_path):
        p = tmp_path / "cfg.yaml"
        p.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            ConfigLoader(p).load()

    def test_wrong_type_in_yaml(self, tmp_path):
        p = tmp_path / "cfg.yaml"
        p.write_text("poll_interval: fast\n")
        with pytest.raises(ConfigurationError):
            ConfigLoader(p).load()

    def test_unknown_keys_ignored(self, tmp_path):
        p = tmp_path / "cfg.yaml"
        p.write_text("colour: blue\ntail_lines: 3\n")
        assert ConfigLoader(p).load().tail_lines == 3

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        p = tmp_path / "cfg.yaml"
        p.write_text("tail_lines: 5\noutput_format: json\n")
        monkeypatch.setenv("FFRENC_TAIL_LINES", "7")
        monkeypatch.setenv("FFRENC_FORMAT", "VERBOSE")
        monkeypatch.setenv("FFRENC_OVERWRITE", "yes")

        cfg = ConfigLoader(p).load()

        assert cfg.tail_lines == 7
        assert cfg.output_format == "verbose"
        assert cfg.overwrite is True

    def test_invalid_env_number(self, monkeypatch):
        monkeypatch.setenv("FFRENC_JOB_TIMEOUT", "soon")
        with pytest.raises(ConfigurationError, match="FFRENC_JOB_TIMEOUT"):
            ConfigLoader().load()

    def test_overrides_win_and_none_is_skipped(self, monkeypatch):
        monkeypatch.setenv("FFRENC_ENGINE", "ffmpeg-from-env")
        cfg = ConfigLoader().load(overrides={"engine": "ffmpeg-from-cli", "output_template": None})

        assert cfg.engine == "ffmpeg-from-cli"
        assert cfg.output_template is None
