"""Frame Record model and strict loader for frame-log CSV tables."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
    field_validator,
    model_validator,
)

from .errors import ArtifactIOError, SchemaError

logger = logging.getLogger(__name__)

# Entity name the decoder assigns to the ball
BALL_SENTINEL = "_ball_"


class FrameRecord(BaseModel):
    """One entity's physical state at one timestamp."""

    model_config = ConfigDict(frozen=True)

    time: float
    team: int | None = None
    player_name: str
    location_x: float
    location_y: float
    location_z: float
    rotation_x: float
    rotation_y: float
    rotation_z: float
    rotation_w: float
    angular_velocity_x: float
    angular_velocity_y: float
    angular_velocity_z: float
    linear_velocity_x: float
    linear_velocity_y: float
    linear_velocity_z: float

    @field_validator("team", mode="before")
    @classmethod
    def empty_team_is_unset(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("player_name")
    @classmethod
    def validate_player_name(cls, v: str) -> str:
        if not v:
            raise ValueError("player_name must not be empty")
        return v

    @model_validator(mode="after")
    def team_unset_only_for_ball(self) -> FrameRecord:
        if self.is_ball and self.team is not None:
            raise ValueError(f"ball row carries team {self.team}")
        if not self.is_ball and self.team is None:
            raise ValueError(f"player row '{self.player_name}' has no team")
        return self

    @property
    def is_ball(self) -> bool:
        return self.player_name == BALL_SENTINEL

    @property
    def position(self) -> tuple[float, float, float]:
        return (self.location_x, self.location_y, self.location_z)


REQUIRED_COLUMNS = tuple(
    name for name, info in FrameRecord.model_fields.items() if info.is_required()
)


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(part) for part in item["loc"]) or "row"
        parts.append(f"{loc}: {item['msg']}")
    return "; ".join(parts)


def load_frame_records(csv_path: Path) -> list[FrameRecord]:
    """Parse every row of a frame-log CSV into ``FrameRecord`` objects.

    Parsing is all-or-nothing: the first row with a missing field, a
    malformed number or a ball/team mismatch aborts the load.

    Raises:
        ArtifactIOError: If the file cannot be read
        SchemaError: If any row violates the Frame Record schema
    """
    csv_path = Path(csv_path)
    path_str = str(csv_path)
    records: list[FrameRecord] = []

    try:
        with csv_path.open("r", encoding="utf-8", newline="") as handle:
            reader = csv.DictReader(handle)
            header = reader.fieldnames or []
            missing = [name for name in REQUIRED_COLUMNS if name not in header]
            # An empty frame log flattens to an empty file: no header, no rows
            if header and missing:
                raise SchemaError(
                    path_str, 1, f"missing columns: {', '.join(missing)}"
                )

            for row in reader:
                if None in row:
                    raise SchemaError(
                        path_str, reader.line_num, "row has more cells than header"
                    )
                try:
                    records.append(FrameRecord.model_validate(row))
                except ValidationError as e:
                    raise SchemaError(path_str, reader.line_num, _describe(e)) from e
    except OSError as e:
        raise ArtifactIOError(path_str, e) from e
    except csv.Error as e:
        raise SchemaError(path_str, reason=str(e)) from e
    except UnicodeDecodeError as e:
        raise SchemaError(path_str, reason=f"not UTF-8 text at byte {e.start}") from e

    logger.debug(f"Loaded {len(records)} frame records from {csv_path.name}")
    return records
