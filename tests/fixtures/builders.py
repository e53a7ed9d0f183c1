"""Test builders for frame records, artifacts and fake services.

These provide a consistent way to lay out an output directory the way the
extraction service would, without a real replay decoder or LLM.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any

from rattlebrain.context import ArtifactKind, MatchContext
from rattlebrain.errors import ExtractionError, InsightError
from rattlebrain.extract.interface import ExtractionService
from rattlebrain.frames import BALL_SENTINEL
from rattlebrain.insight.interface import FOCUS_ALL, InsightService

FRAME_COLUMNS = [
    "time",
    "team",
    "player_name",
    "location_x",
    "location_y",
    "location_z",
    "rotation_x",
    "rotation_y",
    "rotation_z",
    "rotation_w",
    "angular_velocity_x",
    "angular_velocity_y",
    "angular_velocity_z",
    "linear_velocity_x",
    "linear_velocity_y",
    "linear_velocity_z",
]


def player_record(
    player_name: str = "Alice",
    team: int = 46,
    x: float = 0.0,
    y: float = 0.0,
    z: float = 17.0,
    time: float = 1.0,
) -> dict[str, Any]:
    """Create a frame-log record for a car with level rotation and no motion."""
    return {
        "time": time,
        "team": team,
        "player_name": player_name,
        "location_x": x,
        "location_y": y,
        "location_z": z,
        "rotation_x": 0.0,
        "rotation_y": 0.0,
        "rotation_z": 0.0,
        "rotation_w": 1.0,
        "angular_velocity_x": 0.0,
        "angular_velocity_y": 0.0,
        "angular_velocity_z": 0.0,
        "linear_velocity_x": 0.0,
        "linear_velocity_y": 0.0,
        "linear_velocity_z": 0.0,
    }


def ball_record(
    x: float = 0.0, y: float = 0.0, z: float = 93.0, time: float = 1.0
) -> dict[str, Any]:
    """Create a frame-log record for the ball (no team key at all)."""
    record = player_record(BALL_SENTINEL, x=x, y=y, z=z, time=time)
    del record["team"]
    return record


def write_json(path: Path, document: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


def write_frame_csv(path: Path, rows: list[dict[str, Any]]) -> Path:
    """Write frame rows verbatim (cells as given, missing keys empty)."""
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=FRAME_COLUMNS, restval="")
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
    return path


def default_artifacts() -> dict[ArtifactKind, Any]:
    return {
        ArtifactKind.FRAMES: [
            player_record("Alice", 46, x=1.0, y=2.0),
            player_record("Bob", 50, x=-1500.0, y=300.0),
            ball_record(),
        ],
        ArtifactKind.PLAYER_STATS: [
            {"name": "Alice", "team": 46, "stats": {"score": 320, "goals": 1}},
            {"name": "Bob", "team": 50, "stats": {"score": 110, "saves": 2}},
        ],
        ArtifactKind.GOALS: [{"frame": 1042, "player_name": "Alice", "player_team": 0}],
        ArtifactKind.HIGHLIGHTS: [
            {"frame": 1040, "ball_name": "Ball_TA_0", "car_name": "Car_TA_1"}
        ],
    }


class FakeExtractor(ExtractionService):
    """Writes prepared artifact documents instead of decoding a replay.

    Documents given as ``str`` are written raw so tests can inject
    malformed JSON; kinds mapped to ``None`` are not written at all.
    """

    def __init__(
        self,
        match_id: str = "4985385d2a6a4bea",
        artifacts: dict[ArtifactKind, Any] | None = None,
        fail: bool = False,
    ):
        self.match_id = match_id
        self.artifacts = default_artifacts()
        self.artifacts.update(artifacts or {})
        self.fail = fail
        self.calls: list[tuple[Path, Path]] = []

    @property
    def name(self) -> str:
        return "fake"

    def extract(self, source_path: Path, output_dir: Path) -> str:
        self.calls.append((source_path, output_dir))
        if self.fail:
            raise ExtractionError(str(source_path), "decoder exited with status 2")

        ctx = MatchContext(output_dir, self.match_id)
        output_dir.mkdir(parents=True, exist_ok=True)
        for kind, document in self.artifacts.items():
            if document is None:
                continue
            path = ctx.artifact_path(kind)
            if isinstance(document, bytes):
                path.write_bytes(document)
            elif isinstance(document, str):
                path.write_text(document, encoding="utf-8")
            else:
                write_json(path, document)
        return self.match_id


class FakeInsight(InsightService):
    """Returns canned markdown, or raises when ``error`` is set."""

    def __init__(self, text: str = "# Match feedback\n\nRotate back post.\n", error=None):
        self.text = text
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def query(self, match_id: str, focus: str = FOCUS_ALL) -> str:
        self.calls.append((match_id, focus))
        if self.error:
            raise InsightError(match_id, self.error)
        return self.text
