"""Abstract interface for replay extraction services."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class ExtractionService(ABC):
    """Abstract base class for replay decoders.

    An extraction service turns a binary replay into the four derived JSON
    artifacts (frame log, player stats, goals, highlights) inside the output
    directory and reports the match id that names them.
    """

    @abstractmethod
    def extract(self, source_path: Path, output_dir: Path) -> str:
        """Decode a replay into derived artifacts.

        Args:
            source_path: Path to the replay file
            output_dir: Directory the JSON artifacts are written into

        Returns:
            Match id used as the prefix of every artifact file name

        Raises:
            ReplayFileNotFoundError: If the replay doesn't exist
            ExtractionError: If decoding fails or no match id is produced
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the name identifier for this extractor."""
        pass
