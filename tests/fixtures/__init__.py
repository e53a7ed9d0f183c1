"""Shared test fixtures and builders for rattlebrain tests."""

from .builders import (
    FRAME_COLUMNS,
    FakeExtractor,
    FakeInsight,
    ball_record,
    player_record,
    write_frame_csv,
    write_json,
)

__all__ = [
    "FRAME_COLUMNS",
    "FakeExtractor",
    "FakeInsight",
    "ball_record",
    "player_record",
    "write_frame_csv",
    "write_json",
]
