"""Trajectory rendering of frame-log positions onto the playing field.

Rows are split into ball / team A / team B series and drawn as filled
markers on a fixed-size canvas spanning the field's bounding box. Rows for
any other team id are left out of the picture.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from .config import PlotConfig  # noqa: E402
from .context import image_path_for  # noqa: E402
from .errors import ArtifactIOError, RenderError  # noqa: E402
from .frames import FrameRecord, load_frame_records  # noqa: E402

logger = logging.getLogger(__name__)

SERIES_BALL = "ball"
SERIES_TEAM_A = "team_a"
SERIES_TEAM_B = "team_b"

SERIES_COLORS = {
    SERIES_BALL: "red",
    SERIES_TEAM_A: "blue",
    SERIES_TEAM_B: "green",
}

_DPI = 100


@dataclass(frozen=True)
class PlotSettings:
    """Canvas and field geometry for a trajectory plot."""

    width_px: int = 800
    height_px: int = 600
    half_x: float = 300_000.0
    half_y: float = 500_000.0
    team_a: int = 46
    team_b: int = 50
    marker_size: float = 5.0
    title: str = "Match Visualization"

    @classmethod
    def from_config(cls, config: PlotConfig) -> PlotSettings:
        return cls(
            width_px=config.width_px,
            height_px=config.height_px,
            half_x=config.half_x,
            half_y=config.half_y,
            team_a=config.team_a,
            team_b=config.team_b,
            marker_size=config.marker_size,
            title=config.title,
        )

    def series_label(self, series: str) -> str:
        if series == SERIES_BALL:
            return "Ball"
        team = self.team_a if series == SERIES_TEAM_A else self.team_b
        return f"Team {team}"


def classify(record: FrameRecord, team_a: int, team_b: int) -> str | None:
    """Return the series a record is drawn in, or None to skip it."""
    if record.is_ball:
        return SERIES_BALL
    if record.team == team_a:
        return SERIES_TEAM_A
    if record.team == team_b:
        return SERIES_TEAM_B
    return None


def partition_series(
    records: Iterable[FrameRecord], team_a: int, team_b: int
) -> dict[str, list[FrameRecord]]:
    """Split records into the three renderable series.

    All three keys are always present. Rows whose team matches neither id
    are dropped.
    """
    series: dict[str, list[FrameRecord]] = {
        SERIES_BALL: [],
        SERIES_TEAM_A: [],
        SERIES_TEAM_B: [],
    }
    skipped = 0
    for record in records:
        name = classify(record, team_a, team_b)
        if name is None:
            skipped += 1
            continue
        series[name].append(record)

    if skipped:
        logger.debug(
            f"Skipped {skipped} rows with team ids other than {team_a}/{team_b}"
        )
    return series


def _draw(series: dict[str, list[FrameRecord]], settings: PlotSettings, out_path: Path):
    fig, ax = plt.subplots(
        figsize=(settings.width_px / _DPI, settings.height_px / _DPI), dpi=_DPI
    )
    try:
        fig.patch.set_facecolor("white")
        ax.set_title(settings.title, fontsize=20)
        ax.set_xlim(-settings.half_x, settings.half_x)
        ax.set_ylim(-settings.half_y, settings.half_y)
        ax.grid(True, alpha=0.3)

        for name, rows in series.items():
            ax.scatter(
                [r.location_x for r in rows],
                [r.location_y for r in rows],
                s=settings.marker_size**2,
                c=SERIES_COLORS[name],
                marker="o",
                label=settings.series_label(name),
            )

        ax.legend(loc="upper right", edgecolor="black")
        fig.savefig(out_path, format="png", dpi=_DPI, facecolor="white")
    finally:
        plt.close(fig)


def render_frames(
    records: Iterable[FrameRecord], image_path: Path, settings: PlotSettings = None
) -> dict[str, int]:
    """Render records to ``image_path``, replacing any existing file.

    The image is written to a temporary sibling first so a failed render
    never leaves a partial file at ``image_path``.

    Returns:
        Marker count per series

    Raises:
        ArtifactIOError: If the image cannot be written
        RenderError: If drawing fails
    """
    settings = settings or PlotSettings()
    image_path = Path(image_path)
    series = partition_series(records, settings.team_a, settings.team_b)

    tmp_path = image_path.with_name(image_path.name + ".tmp")
    try:
        _draw(series, settings, tmp_path)
        os.replace(tmp_path, image_path)
    except OSError as e:
        raise ArtifactIOError(str(image_path), e) from e
    except Exception as e:
        raise RenderError(str(image_path), e) from e
    finally:
        if tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                pass

    return {name: len(rows) for name, rows in series.items()}


def plot_csv(
    csv_path: Path, settings: PlotSettings = None
) -> tuple[list[FrameRecord], Path]:
    """Load a frame-log CSV and render it to ``<csv_path>.png``.

    Returns the parsed records with the image path so callers do not have to
    read the table a second time.

    Raises:
        ArtifactIOError: If reading or writing fails
        SchemaError: If any row violates the Frame Record schema
        RenderError: If drawing fails
    """
    csv_path = Path(csv_path)
    records = load_frame_records(csv_path)
    image_path = image_path_for(csv_path)

    counts = render_frames(records, image_path, settings)
    logger.info(
        f"Plot saved to {image_path} "
        f"(ball={counts[SERIES_BALL]}, team_a={counts[SERIES_TEAM_A]}, "
        f"team_b={counts[SERIES_TEAM_B]})"
    )
    return records, image_path
