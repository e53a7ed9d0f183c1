"""Match-scoped path derivation for pipeline artifacts.

Every file a run produces is named after the match id and lives in one
output directory. ``MatchContext`` carries both so stages receive their
paths instead of rebuilding them from naming conventions.
"""

from __future__ import annotations

import glob
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

CSV_SUFFIX = ".csv"
IMAGE_SUFFIX = ".png"
FEEDBACK_SUFFIX = ".feedback.md"


class ArtifactKind(Enum):
    """Derived artifacts written by the extraction service."""

    FRAMES = ".replay.frames.json"
    PLAYER_STATS = ".player_stats.json"
    GOALS = ".goals.json"
    HIGHLIGHTS = ".highlights.json"

    @property
    def suffix(self) -> str:
        return self.value


def csv_path_for(path: Path) -> Path:
    """Return the sibling CSV path for a JSON artifact (``<path>.csv``)."""
    return path.with_name(path.name + CSV_SUFFIX)


def image_path_for(path: Path) -> Path:
    """Return the sibling image path for a CSV table (``<path>.png``)."""
    return path.with_name(path.name + IMAGE_SUFFIX)


@dataclass(frozen=True)
class MatchContext:
    """Output directory plus the match id that names every artifact."""

    output_dir: Path
    match_id: str

    def artifact_path(self, kind: ArtifactKind) -> Path:
        return self.output_dir / f"{self.match_id}{kind.suffix}"

    @property
    def artifact_paths(self) -> list[Path]:
        return [self.artifact_path(kind) for kind in ArtifactKind]

    @property
    def frames_json(self) -> Path:
        return self.artifact_path(ArtifactKind.FRAMES)

    @property
    def player_stats_json(self) -> Path:
        return self.artifact_path(ArtifactKind.PLAYER_STATS)

    @property
    def goals_json(self) -> Path:
        return self.artifact_path(ArtifactKind.GOALS)

    @property
    def highlights_json(self) -> Path:
        return self.artifact_path(ArtifactKind.HIGHLIGHTS)

    @property
    def frames_csv(self) -> Path:
        return csv_path_for(self.frames_json)

    @property
    def frames_image(self) -> Path:
        return image_path_for(self.frames_csv)

    @property
    def feedback_path(self) -> Path:
        return self.output_dir / f"{self.match_id}{FEEDBACK_SUFFIX}"

    @property
    def image_glob(self) -> str:
        """Filename pattern matching every rendered image for this match."""
        return f"{glob.escape(self.match_id)}*{IMAGE_SUFFIX}"

    @property
    def table_glob(self) -> str:
        return f"{glob.escape(self.match_id)}*{CSV_SUFFIX}"
