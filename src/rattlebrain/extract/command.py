"""Extraction via an external replay decoder executable.

The decoder is invoked as ``<command...> <replay> <output_dir>``. It must
write the four ``<match_id>.*.json`` artifacts into the output directory and
print the match id as the last non-empty line of stdout.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path

from ..context import MatchContext
from ..errors import ExtractionError, ReplayFileNotFoundError
from .interface import ExtractionService

logger = logging.getLogger(__name__)

DEFAULT_COMMAND = ("rattletrap-extract",)
ERROR_MESSAGE_MAX_LENGTH = 500


class CommandExtractor(ExtractionService):
    """Runs a decoder subprocess and reads the match id from its stdout."""

    def __init__(
        self,
        command: Sequence[str] | None = None,
        timeout_seconds: float = 300.0,
    ):
        self.command = list(command or DEFAULT_COMMAND)
        self.timeout_seconds = timeout_seconds

    @property
    def name(self) -> str:
        return "command"

    def extract(self, source_path: Path, output_dir: Path) -> str:
        source_path = Path(source_path)
        output_dir = Path(output_dir)
        source = str(source_path)

        if not source_path.is_file():
            raise ReplayFileNotFoundError(source)

        output_dir.mkdir(parents=True, exist_ok=True)
        cmd = [*self.command, source, str(output_dir)]
        logger.debug(f"Running decoder: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired as e:
            raise ExtractionError(
                source, f"decoder timeout ({self.timeout_seconds:g}s)"
            ) from e
        except OSError as e:
            raise ExtractionError(
                source, f"cannot run decoder '{self.command[0]}': {e}"
            ) from e

        if result.returncode != 0:
            stderr = result.stderr[:ERROR_MESSAGE_MAX_LENGTH] if result.stderr else ""
            reason = stderr.strip() or f"decoder exited with status {result.returncode}"
            raise ExtractionError(source, reason)

        match_id = _last_line(result.stdout)
        if not match_id:
            raise ExtractionError(source, "decoder did not report a match id")

        ctx = MatchContext(output_dir, match_id)
        missing = [p.name for p in ctx.artifact_paths if not p.exists()]
        if missing:
            logger.warning(
                f"Decoder finished but artifacts are missing: {', '.join(missing)}"
            )

        logger.info(f"Extracted {source_path.name} -> match {match_id}")
        return match_id


def _last_line(stdout: str | None) -> str:
    lines = [line.strip() for line in (stdout or "").splitlines() if line.strip()]
    return lines[-1] if lines else ""
