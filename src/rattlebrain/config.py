# src/rattlebrain/config.py
"""Configuration management for rattlebrain."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import tomllib

from .errors import ConfigError

DEFAULT_MODEL = "claude-sonnet-4-5"


@dataclass
class PathsConfig:
    output_dir: Path = field(default_factory=lambda: Path("output"))


@dataclass
class ExtractConfig:
    adapter: str = "command"
    command: list[str] = field(default_factory=lambda: ["rattletrap-extract"])
    timeout_seconds: float = 300.0


@dataclass
class InsightConfig:
    model: str = DEFAULT_MODEL
    max_tokens: int = 4096
    api_key_env: str = "ANTHROPIC_API_KEY"
    # Per-table character budget for CSV context sent with each query
    max_table_chars: int = 20_000


@dataclass
class PlotConfig:
    width_px: int = 800
    height_px: int = 600
    half_x: float = 300_000.0
    half_y: float = 500_000.0
    team_a: int = 46
    team_b: int = 50
    marker_size: float = 5.0
    title: str = "Match Visualization"


@dataclass
class RattleBrainConfig:
    paths: PathsConfig = field(default_factory=PathsConfig)
    extract: ExtractConfig = field(default_factory=ExtractConfig)
    insight: InsightConfig = field(default_factory=InsightConfig)
    plot: PlotConfig = field(default_factory=PlotConfig)

    def validate(self) -> None:
        """Validate configuration, raising ConfigError if invalid."""
        if not self.extract.command:
            raise ConfigError("[extract] command must name the decoder executable")

        if self.extract.timeout_seconds <= 0:
            raise ConfigError("[extract] timeout_seconds must be positive")

        if self.insight.max_tokens <= 0:
            raise ConfigError("[insight] max_tokens must be positive")

        if not self.insight.api_key_env.strip():
            raise ConfigError("[insight] api_key_env must name an environment variable")

        if self.plot.width_px <= 0 or self.plot.height_px <= 0:
            raise ConfigError("[plot] width_px and height_px must be positive")

        # Field is a rectangle centred on the origin
        if self.plot.half_x <= 0 or self.plot.half_y <= 0:
            raise ConfigError("[plot] half_x and half_y must be positive")

        if self.plot.team_a == self.plot.team_b:
            raise ConfigError(
                f"[plot] team_a and team_b must differ (both {self.plot.team_a})"
            )


def _parse_command(value) -> list[str]:
    if isinstance(value, str):
        return value.split()
    return [str(part) for part in value]


def load_config(config_path: Path) -> RattleBrainConfig:
    """Load configuration from TOML file."""
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}", str(config_path))

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(
            f"Invalid TOML in {config_path}: {e}", str(config_path)
        ) from e

    paths_data = data.get("paths", {})
    paths = PathsConfig(
        output_dir=Path(paths_data.get("output_dir", "output")).expanduser(),
    )

    extract_data = data.get("extract", {})
    defaults = ExtractConfig()
    extract = ExtractConfig(
        adapter=extract_data.get("adapter", defaults.adapter),
        command=_parse_command(extract_data.get("command", defaults.command)),
        timeout_seconds=float(
            extract_data.get("timeout_seconds", defaults.timeout_seconds)
        ),
    )

    insight_data = data.get("insight", {})
    insight = InsightConfig(
        model=insight_data.get("model", DEFAULT_MODEL),
        max_tokens=int(insight_data.get("max_tokens", 4096)),
        api_key_env=insight_data.get("api_key_env", "ANTHROPIC_API_KEY"),
        max_table_chars=int(insight_data.get("max_table_chars", 20_000)),
    )

    plot_data = data.get("plot", {})
    plot_defaults = PlotConfig()
    plot = PlotConfig(
        width_px=int(plot_data.get("width_px", plot_defaults.width_px)),
        height_px=int(plot_data.get("height_px", plot_defaults.height_px)),
        half_x=float(plot_data.get("half_x", plot_defaults.half_x)),
        half_y=float(plot_data.get("half_y", plot_defaults.half_y)),
        team_a=int(plot_data.get("team_a", plot_defaults.team_a)),
        team_b=int(plot_data.get("team_b", plot_defaults.team_b)),
        marker_size=float(plot_data.get("marker_size", plot_defaults.marker_size)),
        title=plot_data.get("title", plot_defaults.title),
    )

    return RattleBrainConfig(
        paths=paths,
        extract=extract,
        insight=insight,
        plot=plot,
    )


def load_config_or_default(config_path: Path) -> RattleBrainConfig:
    """Load the config file if present, otherwise fall back to defaults."""
    if config_path.exists():
        return load_config(config_path)
    return RattleBrainConfig()


def get_default_config_path() -> Path:
    """Get the default config file path."""
    return Path.home() / ".rattlebrain" / "config.toml"
