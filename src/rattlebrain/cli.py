"""Command-line interface for rattlebrain."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from . import __version__
from .config import (
    RattleBrainConfig,
    get_default_config_path,
    load_config,
    load_config_or_default,
)
from .config_templates import CONFIG_TEMPLATE
from .context import MatchContext
from .errors import RattleBrainError
from .extract import get_extractor
from .flatten import flatten_file
from .insight import AnthropicInsightService
from .pipeline import AnalysisResult, PipelineStage, run_full_analysis, run_insight
from .plot import PlotSettings, plot_csv

_STAGE_MESSAGES = {
    PipelineStage.EXTRACTING: "Extracting replay data...",
    PipelineStage.FLATTENING: "Converting replay data to CSV...",
    PipelineStage.CLEANUP: "Removing intermediate JSON files...",
    PipelineStage.RENDERING: "Plotting frame data...",
    PipelineStage.QUERYING_INSIGHT: "Querying AI for insights...",
}


def _print_error(e: Exception) -> None:
    print(f"Error: {e}", file=sys.stderr)
    details = getattr(e, "details", {})
    if "suggested_action" in details:
        print(f"Suggestion: {details['suggested_action']}", file=sys.stderr)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _load(args) -> RattleBrainConfig:
    if args.config:
        config = load_config(Path(args.config))
    else:
        config = load_config_or_default(get_default_config_path())
    config.validate()
    return config


def _output_dir(args, config: RattleBrainConfig) -> Path:
    out = Path(args.out) if getattr(args, "out", None) else config.paths.output_dir
    out.mkdir(parents=True, exist_ok=True)
    return out


def _make_extractor(config: RattleBrainConfig):
    return get_extractor(
        config.extract.adapter,
        command=config.extract.command,
        timeout_seconds=config.extract.timeout_seconds,
    )


def _on_stage(stage: PipelineStage, result: AnalysisResult) -> None:
    if stage == PipelineStage.FLATTENING:
        print(f"Extraction successful. Match GUID: {result.match_id}")
    elif stage == PipelineStage.CLEANUP:
        for conversion in result.conversions:
            print(f"  {conversion}")
    elif stage == PipelineStage.QUERYING_INSIGHT and result.image_path:
        print(f"Plot saved to {result.image_path}")
    elif stage == PipelineStage.DISCOVERING_IMAGES:
        print(f"AI feedback saved to: {result.report_path}")
    elif stage == PipelineStage.DONE and result.images:
        print(f"{len(result.images)} image(s) appended to feedback file.")

    message = _STAGE_MESSAGES.get(stage)
    if message:
        print(message)


def handle_extract_command(args) -> int:
    config = _load(args)
    out_dir = _output_dir(args, config)

    print("Extracting replay data...")
    match_id = _make_extractor(config).extract(Path(args.replay_file), out_dir)
    print("Extract command completed successfully.")
    print(f"Match GUID: {match_id}")
    return 0


def handle_convert_command(args) -> int:
    print("Converting replay data...")
    out_path = flatten_file(Path(args.json_file))
    print(f"Convert command completed successfully: {out_path}")
    return 0


def handle_plot_command(args) -> int:
    config = _load(args)
    print("Plotting CSV...")
    records, image_path = plot_csv(
        Path(args.csv_file), PlotSettings.from_config(config.plot)
    )
    print(f"Plot command completed successfully: {image_path} ({len(records)} rows)")
    return 0


def handle_query_command(args) -> int:
    config = _load(args)
    out_dir = _output_dir(args, config)
    ctx = MatchContext(out_dir, args.match_id)
    insight = AnthropicInsightService.from_config(out_dir, config.insight)

    result = asyncio.run(run_insight(ctx, insight, args.focus, on_stage=_on_stage))
    if not result.succeeded:
        print(f"Error querying AI: {result.error}", file=sys.stderr)
        return 1
    return 0


def handle_analysis_command(args) -> int:
    config = _load(args)
    out_dir = _output_dir(args, config)
    insight = AnthropicInsightService.from_config(out_dir, config.insight)

    print("Starting analysis...")
    result = asyncio.run(
        run_full_analysis(
            Path(args.replay_file),
            out_dir,
            _make_extractor(config),
            insight,
            focus=args.focus,
            plot_settings=PlotSettings.from_config(config.plot),
            on_stage=_on_stage,
        )
    )

    if result.succeeded:
        print("Analysis complete.")
        return 0

    print(
        f"Error during {result.failed_stage.value}: {result.error}", file=sys.stderr
    )
    return 1 if result.fatal else 0


def handle_config_command(args) -> int:
    config_path = Path(args.config) if args.config else get_default_config_path()

    if args.init:
        if config_path.exists():
            print(f"Config already exists: {config_path}", file=sys.stderr)
            return 1
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(CONFIG_TEMPLATE, encoding="utf-8")
        print(f"Wrote config template to {config_path}")
        return 0

    if args.validate:
        config = load_config(config_path)
        config.validate()
        print(f"Config is valid: {config_path}")
        return 0

    config = load_config_or_default(config_path)
    print(f"output_dir = {config.paths.output_dir}")
    print(f"extract.command = {' '.join(config.extract.command)}")
    print(f"insight.model = {config.insight.model}")
    print(f"plot.teams = {config.plot.team_a}, {config.plot.team_b}")
    return 0


_HANDLERS = {
    "extract": handle_extract_command,
    "convert": handle_convert_command,
    "plot": handle_plot_command,
    "query": handle_query_command,
    "ai": handle_query_command,
    "analysis": handle_analysis_command,
    "config": handle_config_command,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rattlebrain",
        description="Rocket League replay telemetry to tables, plots and coaching notes",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"rattlebrain {__version__}",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config.toml (default: ~/.rattlebrain/config.toml)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log progress details to stderr"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    analysis_parser = subparsers.add_parser(
        "analysis",
        help="Analyze a replay (runs extract -> convert -> plot -> query)",
    )
    analysis_parser.add_argument("replay_file", type=str, help="Path to the .replay file")
    analysis_parser.add_argument("--out", type=str, help="Output directory")
    analysis_parser.add_argument(
        "--focus", type=str, default=None, help="Focus area for the AI report"
    )

    for name in ("query", "ai"):
        query_parser = subparsers.add_parser(
            name, help="Query AI for insights on an extracted match"
        )
        query_parser.add_argument("match_id", type=str, help="Match GUID")
        query_parser.add_argument(
            "focus", type=str, nargs="?", default=None, help="Focus area (default: all)"
        )
        query_parser.add_argument("--out", type=str, help="Output directory")

    extract_parser = subparsers.add_parser(
        "extract", help="Extract replay data to JSON artifacts"
    )
    extract_parser.add_argument("replay_file", type=str, help="Path to the .replay file")
    extract_parser.add_argument("--out", type=str, help="Output directory")

    convert_parser = subparsers.add_parser(
        "convert", help="Convert a replay JSON artifact to CSV"
    )
    convert_parser.add_argument("json_file", type=str, help="Path to a .json artifact")

    plot_parser = subparsers.add_parser("plot", help="Plot a frame-log CSV")
    plot_parser.add_argument("csv_file", type=str, help="Path to the frames CSV")

    config_parser = subparsers.add_parser("config", help="Manage configuration")
    config_group = config_parser.add_mutually_exclusive_group()
    config_group.add_argument(
        "--init", action="store_true", help="Write a config template"
    )
    config_group.add_argument(
        "--validate", action="store_true", help="Validate the config file"
    )
    config_group.add_argument(
        "--show", action="store_true", help="Show effective settings"
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    handler = _HANDLERS.get(args.command)
    if handler is None:
        parser.print_help()
        return 0

    _configure_logging(args.verbose)

    try:
        return handler(args)
    except RattleBrainError as e:
        _print_error(e)
        return 1
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
