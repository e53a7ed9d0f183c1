"""Custom exceptions for rattlebrain with structured error information."""


class RattleBrainError(Exception):
    """Base exception for all rattlebrain errors.

    Provides structured error information with actionable messages.
    """

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.details = details or {}


class ConfigError(RattleBrainError):
    """Configuration error."""

    def __init__(self, message: str, path: str = None):
        details = {
            "path": path,
            "suggested_action": "Run `rattlebrain config --init` and edit the file",
        }
        super().__init__(message, details)


class ReplayFileNotFoundError(RattleBrainError):
    """Raised when a replay file cannot be found."""

    def __init__(self, path: str):
        message = f"Replay file not found: {path}"
        details = {
            "path": path,
            "suggested_action": "Verify the file path exists and is accessible",
        }
        super().__init__(message, details)


class ArtifactIOError(RattleBrainError):
    """Raised when an artifact cannot be read from or written to disk."""

    def __init__(self, path: str, original_error: Exception):
        message = f"I/O error on {path} ({str(original_error)})"
        details = {
            "path": path,
            "original_error": str(original_error),
            "error_type": type(original_error).__name__,
            "suggested_action": "Check file permissions and disk space",
        }
        super().__init__(message, details)


class ParseError(RattleBrainError):
    """Raised when an artifact is not well-formed JSON."""

    def __init__(self, path: str, reason: str = None):
        base_message = f"Malformed JSON in {path}"
        if reason:
            message = f"{base_message} ({reason})"
        else:
            message = base_message

        details = {
            "path": path,
            "reason": reason,
            "suggested_action": (
                "Re-run extraction; the decoder may have been interrupted"
            ),
        }
        super().__init__(message, details)


class SchemaError(RattleBrainError):
    """Raised when a frame CSV row is missing or mistypes a required field."""

    def __init__(self, path: str, line: int = None, reason: str = None):
        location = f"{path}:{line}" if line is not None else path
        message = f"Frame record schema violation at {location}"
        if reason:
            message = f"{message} ({reason})"

        details = {
            "path": path,
            "line": line,
            "reason": reason,
            "suggested_action": (
                "Plot only the frame-log CSV "
                "(<match_id>.replay.frames.json.csv)"
            ),
        }
        super().__init__(message, details)


class RenderError(RattleBrainError):
    """Raised when the drawing surface fails to produce an image."""

    def __init__(self, path: str, original_error: Exception):
        message = f"Failed to render {path} ({str(original_error)})"
        details = {
            "path": path,
            "original_error": str(original_error),
            "error_type": type(original_error).__name__,
            "suggested_action": "Check the matplotlib installation and backend",
        }
        super().__init__(message, details)


class ServiceError(RattleBrainError):
    """Base exception for failures of external collaborators."""

    def __init__(self, service: str, reason: str, details: dict = None):
        message = f"{service} failed: {reason}"
        base_details = {"service": service, "reason": reason}
        if details:
            base_details.update(details)
        super().__init__(message, base_details)


class ExtractionError(ServiceError):
    """Raised when the replay decoder fails or yields no match id."""

    def __init__(self, source: str, reason: str):
        details = {
            "source": source,
            "suggested_action": (
                "Check that the decoder command in [extract] is installed "
                "and the replay is not corrupted"
            ),
        }
        super().__init__("extraction", reason, details)


class InsightError(ServiceError):
    """Raised when the insight backend fails to produce narrative text."""

    def __init__(self, match_id: str, reason: str):
        details = {
            "match_id": match_id,
            "suggested_action": (
                "Check the API key environment variable named in [insight]"
            ),
        }
        super().__init__("insight", reason, details)


class ExtractorNotFoundError(RattleBrainError):
    """Raised when a requested extraction adapter is not registered."""

    def __init__(self, name: str, available: list = None):
        available = available or []
        if available:
            message = (
                f"Extractor not found: {name}. Available: {', '.join(available)}"
            )
        else:
            message = f"Extractor not found: {name}"

        details = {
            "extractor": name,
            "available_extractors": available,
            "suggested_action": f"Use one of the available extractors: {available}",
        }
        super().__init__(message, details)
