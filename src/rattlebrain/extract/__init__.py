"""Extraction services for decoding replays into JSON artifacts.

Example usage:
    from rattlebrain.extract import get_extractor

    extractor = get_extractor("command", command=["rattletrap-extract"])
    match_id = extractor.extract(Path("game.replay"), Path("output"))
"""

from __future__ import annotations

from typing import Any

from ..errors import ExtractorNotFoundError
from .command import CommandExtractor
from .interface import ExtractionService

# Registry of available extraction adapters
_EXTRACTOR_REGISTRY: dict[str, type[ExtractionService]] = {
    "command": CommandExtractor,
}

_DEFAULT_EXTRACTOR = "command"


def get_extractor(
    name: str = _DEFAULT_EXTRACTOR, **extractor_kwargs: Any
) -> ExtractionService:
    """Get an extraction service by name.

    Args:
        name: Name of the extractor to retrieve. Defaults to "command".
        **extractor_kwargs: Optional extractor-specific constructor arguments.

    Raises:
        ExtractorNotFoundError: If the requested extractor is not registered
    """
    if name not in _EXTRACTOR_REGISTRY:
        raise ExtractorNotFoundError(name, list(_EXTRACTOR_REGISTRY.keys()))

    return _EXTRACTOR_REGISTRY[name](**extractor_kwargs)


def list_extractors() -> list[str]:
    """List all registered extractor names."""
    return list(_EXTRACTOR_REGISTRY.keys())


def register_extractor(name: str, extractor_class: type[ExtractionService]) -> None:
    """Register a new extraction service.

    Raises:
        TypeError: If extractor_class doesn't implement ExtractionService
        ValueError: If name is already registered
    """
    if name in _EXTRACTOR_REGISTRY:
        raise ValueError(f"Extractor '{name}' is already registered")

    if not issubclass(extractor_class, ExtractionService):
        raise TypeError(
            f"Extractor class must inherit from ExtractionService, got {extractor_class}"
        )

    _EXTRACTOR_REGISTRY[name] = extractor_class


__all__ = [
    "CommandExtractor",
    "ExtractionService",
    "get_extractor",
    "list_extractors",
    "register_extractor",
]
