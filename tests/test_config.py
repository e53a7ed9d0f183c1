# tests/test_config.py
import pytest
from pathlib import Path

from rattlebrain.config import (
    DEFAULT_MODEL,
    PlotConfig,
    RattleBrainConfig,
    get_default_config_path,
    load_config,
    load_config_or_default,
)
from rattlebrain.config_templates import CONFIG_TEMPLATE
from rattlebrain.errors import ConfigError


def test_load_config_from_valid_toml(tmp_path):
    config_file = tmp_path / "config.toml"
    config_file.write_text('''
[paths]
output_dir = "~/rl/output"

[extract]
command = "rrdecode --network"
timeout_seconds = 60

[insight]
model = "claude-haiku-4-5"
max_tokens = 1024

[plot]
team_a = 0
team_b = 1
half_x = 4096.0
half_y = 5120.0
''')

    config = load_config(config_file)

    assert config.paths.output_dir == Path.home() / "rl" / "output"
    assert config.extract.command == ["rrdecode", "--network"]
    assert config.extract.timeout_seconds == 60.0
    assert config.insight.model == "claude-haiku-4-5"
    assert config.insight.api_key_env == "ANTHROPIC_API_KEY"
    assert (config.plot.team_a, config.plot.team_b) == (0, 1)
    assert config.plot.width_px == 800
    config.validate()


def test_defaults_when_sections_missing(tmp_path):
    config_file = tmp_path / "config.toml"
    config_file.write_text("")

    config = load_config(config_file)

    assert config.paths.output_dir == Path("output")
    assert config.extract.command == ["rattletrap-extract"]
    assert config.insight.model == DEFAULT_MODEL
    assert (config.plot.half_x, config.plot.half_y) == (300_000.0, 500_000.0)
    assert (config.plot.team_a, config.plot.team_b) == (46, 50)


def test_template_is_loadable_and_valid(tmp_path):
    config_file = tmp_path / "config.toml"
    config_file.write_text(CONFIG_TEMPLATE)

    config = load_config(config_file)

    config.validate()
    assert config == RattleBrainConfig()


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "missing.toml")


def test_invalid_toml_raises(tmp_path):
    config_file = tmp_path / "config.toml"
    config_file.write_text("[plot\nteam_a = ")
    with pytest.raises(ConfigError, match="Invalid TOML"):
        load_config(config_file)


def test_load_or_default_falls_back(tmp_path):
    assert load_config_or_default(tmp_path / "missing.toml") == RattleBrainConfig()


def test_validate_rejects_identical_teams():
    config = RattleBrainConfig(plot=PlotConfig(team_a=46, team_b=46))
    with pytest.raises(ConfigError, match="must differ"):
        config.validate()


def test_validate_rejects_degenerate_field():
    config = RattleBrainConfig(plot=PlotConfig(half_x=0.0))
    with pytest.raises(ConfigError):
        config.validate()


def test_validate_rejects_empty_command():
    config = RattleBrainConfig()
    config.extract.command = []
    with pytest.raises(ConfigError):
        config.validate()


def test_default_config_path():
    assert get_default_config_path() == Path.home() / ".rattlebrain" / "config.toml"
