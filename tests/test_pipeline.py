# tests/test_pipeline.py
"""Tests for the full analysis pipeline."""

import asyncio
from pathlib import Path

import pytest

from rattlebrain.context import ArtifactKind, MatchContext
from rattlebrain.pipeline import (
    AnalysisResult,
    PipelineStage,
    convert_artifacts,
    delete_json_files,
    run_full_analysis,
    run_insight,
)

from .fixtures import FakeExtractor, FakeInsight, player_record

MATCH_ID = "4985385d2a6a4bea"


@pytest.fixture
def replay(tmp_path):
    path = tmp_path / "game.replay"
    path.write_bytes(b"\x00" * 64)
    return path


@pytest.fixture
def out_dir(tmp_path):
    path = tmp_path / "output"
    path.mkdir()
    return path


def _run(replay, out_dir, extractor=None, insight=None, **kwargs) -> AnalysisResult:
    return asyncio.run(
        run_full_analysis(
            replay,
            out_dir,
            extractor or FakeExtractor(MATCH_ID),
            insight or FakeInsight(),
            **kwargs,
        )
    )


class TestFullAnalysis:
    def test_success_produces_tables_plot_and_report(self, replay, out_dir):
        insight = FakeInsight()
        result = _run(replay, out_dir, insight=insight)

        assert result.succeeded
        assert result.match_id == MATCH_ID
        ctx = MatchContext(out_dir, MATCH_ID)
        for path in ctx.artifact_paths:
            assert Path(str(path) + ".csv").exists()
        assert result.image_path == ctx.frames_image
        assert ctx.frames_image.exists()
        assert len(result.records) == 3
        assert ctx.feedback_path.read_text() == (
            insight.text + f"![{MATCH_ID}]({ctx.frames_image.name})\n"
        )
        assert insight.calls == [(MATCH_ID, "all")]

    def test_stage_order(self, replay, out_dir):
        seen = []
        _run(replay, out_dir, on_stage=lambda stage, _result: seen.append(stage))
        assert seen == [
            PipelineStage.EXTRACTING,
            PipelineStage.FLATTENING,
            PipelineStage.CLEANUP,
            PipelineStage.RENDERING,
            PipelineStage.QUERYING_INSIGHT,
            PipelineStage.WRITING_REPORT,
            PipelineStage.DISCOVERING_IMAGES,
            PipelineStage.APPENDING_IMAGES,
            PipelineStage.DONE,
        ]

    def test_focus_is_forwarded(self, replay, out_dir):
        insight = FakeInsight()
        _run(replay, out_dir, insight=insight, focus="kickoffs")
        assert insight.calls == [(MATCH_ID, "kickoffs")]

    def test_extraction_failure_is_fatal(self, replay, out_dir):
        insight = FakeInsight()
        result = _run(replay, out_dir, FakeExtractor(fail=True), insight)

        assert result.stage == PipelineStage.FAILED
        assert result.failed_stage == PipelineStage.EXTRACTING
        assert result.fatal
        assert insight.calls == []
        assert list(out_dir.iterdir()) == []

    def test_secondary_artifact_failures_are_not_fatal(self, replay, out_dir):
        extractor = FakeExtractor(
            MATCH_ID,
            artifacts={ArtifactKind.GOALS: '[{"frame": 1,', ArtifactKind.HIGHLIGHTS: None},
        )

        result = _run(replay, out_dir, extractor)

        assert result.succeeded
        failed = [c.source.name for c in result.conversions if not c.ok]
        assert failed == [f"{MATCH_ID}.goals.json", f"{MATCH_ID}.highlights.json"]
        assert len(result.warnings) == 2
        assert (out_dir / f"{MATCH_ID}.player_stats.json.csv").exists()

    def test_cleanup_removes_all_json_regardless_of_outcome(self, replay, out_dir):
        (out_dir / "leftover.json").write_text("{}")
        extractor = FakeExtractor(MATCH_ID, artifacts={ArtifactKind.GOALS: "not json"})

        _run(replay, out_dir, extractor)

        assert list(out_dir.glob("*.json")) == []

    def test_undecodable_secondary_artifact_is_not_fatal(self, replay, out_dir):
        extractor = FakeExtractor(
            MATCH_ID, artifacts={ArtifactKind.GOALS: b'[{"n": "\xff"}]'}
        )

        result = _run(replay, out_dir, extractor)

        assert result.succeeded
        failed = [c for c in result.conversions if not c.ok]
        assert [c.source.name for c in failed] == [f"{MATCH_ID}.goals.json"]
        assert "not UTF-8" in failed[0].error
        assert list(out_dir.glob("*.json")) == []
        assert MatchContext(out_dir, MATCH_ID).feedback_path.exists()

    def test_frame_log_failure_is_fatal(self, replay, out_dir):
        insight = FakeInsight()
        extractor = FakeExtractor(MATCH_ID, artifacts={ArtifactKind.FRAMES: "{oops"})

        result = _run(replay, out_dir, extractor, insight)

        assert result.failed_stage == PipelineStage.RENDERING
        assert result.fatal
        assert "frame log unavailable" in result.error
        assert insight.calls == []
        assert list(out_dir.glob("*.json")) == []
        assert not MatchContext(out_dir, MATCH_ID).feedback_path.exists()

    def test_frame_schema_violation_is_fatal_and_writes_no_image(self, replay, out_dir):
        broken = player_record("Bob", 50)
        del broken["location_x"]
        extractor = FakeExtractor(
            MATCH_ID, artifacts={ArtifactKind.FRAMES: [player_record(), broken]}
        )

        result = _run(replay, out_dir, extractor)

        assert result.failed_stage == PipelineStage.RENDERING
        assert "schema" in result.error.lower()
        assert not MatchContext(out_dir, MATCH_ID).frames_image.exists()

    def test_insight_failure_ends_without_report(self, replay, out_dir):
        result = _run(replay, out_dir, insight=FakeInsight(error="rate limited"))

        ctx = MatchContext(out_dir, MATCH_ID)
        assert result.failed_stage == PipelineStage.QUERYING_INSIGHT
        assert not result.fatal
        assert "rate limited" in result.error
        assert not ctx.feedback_path.exists()
        assert ctx.frames_image.exists()


class TestRunInsight:
    def test_report_without_images_is_raw_text(self, out_dir):
        ctx = MatchContext(out_dir, MATCH_ID)
        insight = FakeInsight(text="Just text.")

        result = asyncio.run(run_insight(ctx, insight))

        assert result.succeeded
        assert result.images == []
        assert ctx.feedback_path.read_bytes() == b"Just text."
        assert insight.calls == [(MATCH_ID, "all")]

    def test_report_embeds_existing_images(self, out_dir):
        ctx = MatchContext(out_dir, MATCH_ID)
        ctx.frames_image.write_bytes(b"png")

        result = asyncio.run(run_insight(ctx, FakeInsight(text="T\n"), "defense"))

        assert result.images == [ctx.frames_image]
        assert ctx.feedback_path.read_text() == (
            f"T\n![{MATCH_ID}]({ctx.frames_image.name})\n"
        )

    def test_every_match_image_is_embedded_by_base_name(self, out_dir):
        ctx = MatchContext(out_dir, MATCH_ID)
        ctx.frames_image.write_bytes(b"png")
        (out_dir / f"{MATCH_ID}.heatmap.png").write_bytes(b"png")
        (out_dir / "OTHER.replay.frames.json.csv.png").write_bytes(b"png")

        result = asyncio.run(run_insight(ctx, FakeInsight(text="T\n")))

        content = ctx.feedback_path.read_text()
        assert content.startswith("T\n")
        assert sorted(content[2:].splitlines()) == [
            f"![{MATCH_ID}]({MATCH_ID}.heatmap.png)",
            f"![{MATCH_ID}]({MATCH_ID}.replay.frames.json.csv.png)",
        ]
        assert len(result.images) == 2

    def test_rerun_replaces_previous_report(self, out_dir):
        ctx = MatchContext(out_dir, MATCH_ID)
        asyncio.run(run_insight(ctx, FakeInsight(text="first\n")))
        asyncio.run(run_insight(ctx, FakeInsight(text="second\n")))
        assert ctx.feedback_path.read_text() == "second\n"


class TestStageHelpers:
    def test_convert_artifacts_attempts_every_artifact(self, out_dir):
        ctx = MatchContext(out_dir, MATCH_ID)
        ctx.goals_json.write_text('[{"frame": 3}]')

        results = convert_artifacts(ctx)

        assert [r.source for r in results] == ctx.artifact_paths
        assert [r.ok for r in results] == [False, False, True, False]
        assert "goals.json.csv" in str(results[2])
        assert str(results[0]).startswith("✗")

    def test_delete_json_files_only_touches_json(self, out_dir):
        (out_dir / "a.json").write_text("{}")
        (out_dir / "a.json.csv").write_text("x\n")
        (out_dir / "notes.md").write_text("keep")

        deleted = delete_json_files(out_dir)

        assert [p.name for p in deleted] == ["a.json"]
        assert sorted(p.name for p in out_dir.iterdir()) == ["a.json.csv", "notes.md"]

    def test_delete_failure_is_logged_and_skipped(self, out_dir, monkeypatch, caplog):
        (out_dir / "a.json").write_text("{}")
        (out_dir / "b.json").write_text("{}")
        original_unlink = Path.unlink

        def flaky_unlink(self, *args, **kwargs):
            if self.name == "b.json":
                raise PermissionError("locked")
            return original_unlink(self, *args, **kwargs)

        monkeypatch.setattr(Path, "unlink", flaky_unlink)

        deleted = delete_json_files(out_dir)

        assert [p.name for p in deleted] == ["a.json"]
        assert "Failed to delete file" in caplog.text

    def test_delete_in_missing_directory_returns_empty(self, tmp_path):
        assert delete_json_files(tmp_path / "missing") == []
