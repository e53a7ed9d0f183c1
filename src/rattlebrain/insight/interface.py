"""Abstract interface for narrative insight backends."""

from __future__ import annotations

from abc import ABC, abstractmethod

# Focus used when the caller does not narrow the analysis
FOCUS_ALL = "all"


class InsightService(ABC):
    """Produces markdown commentary for an extracted match."""

    @abstractmethod
    async def query(self, match_id: str, focus: str = FOCUS_ALL) -> str:
        """Return narrative markdown for ``match_id``.

        Raises:
            InsightError: If the backend fails or returns no text
        """
        pass
