# src/rattlebrain/pipeline.py
"""Full analysis pipeline for a single replay.

Stages run strictly in order:

    Extracting -> Flattening -> Cleanup -> Rendering -> QueryingInsight
    -> WritingReport -> DiscoveringImages -> AppendingImages -> Done

Extraction and rendering failures are fatal. Flattening of the artifacts
other than the frame log, JSON cleanup, image discovery and image embedding
are best-effort: their failures are logged and the run continues. An
insight failure ends the run without a report but is not fatal. Nothing is
rolled back; files written before a failure stay on disk.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .context import MatchContext
from .errors import RattleBrainError
from .extract.interface import ExtractionService
from .flatten import flatten_file
from .frames import FrameRecord
from .insight.interface import FOCUS_ALL, InsightService
from .plot import PlotSettings, plot_csv
from .report import append_image_embeds, discover_images, write_feedback

logger = logging.getLogger(__name__)


class PipelineStage(Enum):
    """Stage of the full analysis state machine."""

    EXTRACTING = "extracting"
    FLATTENING = "flattening"
    CLEANUP = "cleanup"
    RENDERING = "rendering"
    QUERYING_INSIGHT = "querying_insight"
    WRITING_REPORT = "writing_report"
    DISCOVERING_IMAGES = "discovering_images"
    APPENDING_IMAGES = "appending_images"
    DONE = "done"
    FAILED = "failed"


# Failures in these stages abort the run with a non-zero exit
FATAL_STAGES = frozenset({PipelineStage.EXTRACTING, PipelineStage.RENDERING})


@dataclass
class ConversionResult:
    """Outcome of flattening one JSON artifact."""

    source: Path
    output: Path | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __str__(self) -> str:
        if self.ok:
            return f"✓ {self.source.name} -> {self.output.name}"
        return f"✗ {self.source.name}: {self.error}"


@dataclass
class AnalysisResult:
    """State and outputs of one pipeline run."""

    stage: PipelineStage = PipelineStage.EXTRACTING
    match_id: str | None = None
    failed_stage: PipelineStage | None = None
    error: str | None = None
    conversions: list[ConversionResult] = field(default_factory=list)
    deleted: list[Path] = field(default_factory=list)
    records: list[FrameRecord] = field(default_factory=list)
    image_path: Path | None = None
    report_path: Path | None = None
    images: list[Path] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.stage == PipelineStage.DONE

    @property
    def fatal(self) -> bool:
        return self.failed_stage in FATAL_STAGES

    def fail(self, error: Exception | str) -> AnalysisResult:
        self.failed_stage = self.stage
        self.stage = PipelineStage.FAILED
        self.error = str(error)
        return self


StageCallback = Callable[[PipelineStage, AnalysisResult], None]


def _enter(
    result: AnalysisResult, stage: PipelineStage, on_stage: StageCallback | None
) -> None:
    result.stage = stage
    logger.debug(f"[{result.match_id or '-'}] {stage.value}")
    if on_stage:
        on_stage(stage, result)


def convert_file(path: Path) -> ConversionResult:
    """Flatten one artifact, capturing any failure in the result."""
    try:
        return ConversionResult(source=path, output=flatten_file(path))
    except RattleBrainError as e:
        logger.error(f"Error converting {path}: {e}")
        return ConversionResult(source=path, error=str(e))


def convert_artifacts(ctx: MatchContext) -> list[ConversionResult]:
    """Flatten all four derived artifacts independently.

    One failed artifact never prevents the others from being attempted.
    """
    results = [convert_file(path) for path in ctx.artifact_paths]
    ok = sum(1 for r in results if r.ok)
    logger.info(f"Converted {ok}/{len(results)} artifacts for {ctx.match_id}")
    return results


def delete_json_files(output_dir: Path) -> list[Path]:
    """Delete every ``*.json`` file directly inside ``output_dir``.

    Each failed deletion is logged and skipped.

    Returns:
        Paths that were deleted
    """
    output_dir = Path(output_dir)
    deleted: list[Path] = []
    try:
        candidates = [p for p in output_dir.iterdir() if p.suffix == ".json"]
    except OSError as e:
        logger.error(f"Failed to read directory {output_dir}: {e}")
        return deleted

    for path in candidates:
        try:
            path.unlink()
        except OSError as e:
            logger.error(f"Failed to delete file {path}: {e}")
            continue
        logger.info(f"Deleted file: {path}")
        deleted.append(path)
    return deleted


async def run_insight(
    ctx: MatchContext,
    insight: InsightService,
    focus: str | None = None,
    *,
    result: AnalysisResult | None = None,
    on_stage: StageCallback | None = None,
) -> AnalysisResult:
    """Query the insight service and publish the feedback report.

    Used on its own for insight-only runs and as the tail of the full
    analysis. An insight failure leaves no report behind.
    """
    result = result or AnalysisResult(match_id=ctx.match_id)
    focus = focus or FOCUS_ALL

    _enter(result, PipelineStage.QUERYING_INSIGHT, on_stage)
    try:
        text = await insight.query(ctx.match_id, focus)
    except RattleBrainError as e:
        logger.error(f"Error querying insight service: {e}")
        return result.fail(e)

    _enter(result, PipelineStage.WRITING_REPORT, on_stage)
    try:
        result.report_path = write_feedback(ctx, text)
    except RattleBrainError as e:
        logger.error(f"Failed to save feedback: {e}")
        return result.fail(e)

    _enter(result, PipelineStage.DISCOVERING_IMAGES, on_stage)
    result.images = discover_images(ctx)

    _enter(result, PipelineStage.APPENDING_IMAGES, on_stage)
    try:
        append_image_embeds(result.report_path, ctx.match_id, result.images)
    except RattleBrainError as e:
        logger.error(f"Failed to append images to feedback: {e}")
        result.warnings.append(str(e))

    _enter(result, PipelineStage.DONE, on_stage)
    return result


async def run_full_analysis(
    source_path: Path,
    output_dir: Path,
    extractor: ExtractionService,
    insight: InsightService,
    *,
    focus: str | None = None,
    plot_settings: PlotSettings | None = None,
    on_stage: StageCallback | None = None,
) -> AnalysisResult:
    """Run extraction, conversion, plotting and reporting for one replay.

    Args:
        source_path: Path to the replay file
        output_dir: Directory shared by every artifact of the run
        extractor: Service that decodes the replay into JSON artifacts
        insight: Service that writes the narrative report body
        focus: Optional focus area for the insight query (defaults to "all")
        plot_settings: Canvas and field geometry for the trajectory plot
        on_stage: Optional callback(stage, result) invoked on each transition

    Returns:
        AnalysisResult describing the final stage and everything produced
    """
    output_dir = Path(output_dir)
    result = AnalysisResult()

    _enter(result, PipelineStage.EXTRACTING, on_stage)
    try:
        result.match_id = extractor.extract(Path(source_path), output_dir)
    except RattleBrainError as e:
        logger.error(f"Error during extraction: {e}")
        return result.fail(e)
    ctx = MatchContext(output_dir, result.match_id)

    _enter(result, PipelineStage.FLATTENING, on_stage)
    result.conversions = convert_artifacts(ctx)
    result.warnings.extend(str(c) for c in result.conversions if not c.ok)

    _enter(result, PipelineStage.CLEANUP, on_stage)
    result.deleted = delete_json_files(output_dir)

    _enter(result, PipelineStage.RENDERING, on_stage)
    frames = next(c for c in result.conversions if c.source == ctx.frames_json)
    if not frames.ok:
        return result.fail(f"frame log unavailable: {frames.error}")
    try:
        result.records, result.image_path = plot_csv(ctx.frames_csv, plot_settings)
    except RattleBrainError as e:
        logger.error(f"Error during plotting: {e}")
        return result.fail(e)

    return await run_insight(
        ctx, insight, focus, result=result, on_stage=on_stage
    )
