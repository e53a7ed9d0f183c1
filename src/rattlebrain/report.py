"""Feedback report writing and image embedding.

The report body is the insight text verbatim. Rendered images for the
match are appended afterwards as markdown embeds that reference the image
by base name, so the report must sit in the same directory as the images.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from .context import MatchContext
from .errors import ArtifactIOError

logger = logging.getLogger(__name__)


def write_feedback(ctx: MatchContext, text: str) -> Path:
    """Write ``text`` as the match's feedback report, replacing prior content."""
    path = ctx.feedback_path
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(text)
    except OSError as e:
        raise ArtifactIOError(str(path), e) from e
    return path


def discover_images(ctx: MatchContext) -> list[Path]:
    """List rendered images for the match.

    Order follows directory enumeration and is not sorted. Lookup failures
    are logged and yield an empty list.
    """
    try:
        return [p for p in ctx.output_dir.glob(ctx.image_glob) if p.is_file()]
    except OSError as e:
        logger.error(f"Error finding images in {ctx.output_dir}: {e}")
        return []


def image_embed_lines(match_id: str, images: Sequence[Path]) -> str:
    """Markdown embed lines, one per image, alt text = match id."""
    return "".join(f"![{match_id}]({Path(image).name})\n" for image in images)


def append_image_embeds(
    report_path: Path, match_id: str, images: Sequence[Path]
) -> int:
    """Append embeds for ``images`` to the report.

    Does nothing when there are no images, so no empty section is created.

    Returns:
        Number of embed lines written
    """
    if not images:
        return 0

    try:
        with Path(report_path).open("a", encoding="utf-8", newline="") as handle:
            handle.write(image_embed_lines(match_id, images))
    except OSError as e:
        raise ArtifactIOError(str(report_path), e) from e
    return len(images)

