"""Flatten nested JSON artifacts into CSV tables.

The four derived artifacts (frame log, player stats, goals, highlights) all
go through the same routine. No schema is assumed: the top-level value is
treated as a collection of records, each record is flattened into dotted
path keys, and the CSV header is the union of those keys in first-seen
order. Records that lack a column get an empty cell.
"""

from __future__ import annotations

import csv
import json
import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any, Union

from .context import csv_path_for
from .errors import ArtifactIOError, ParseError

logger = logging.getLogger(__name__)

Scalar = Union[None, bool, int, float, str]

KEY_SEPARATOR = "."
# Key used when a record is itself a bare scalar
SCALAR_KEY = "value"


def flatten_value(
    value: Any, parent_key: str = "", sep: str = KEY_SEPARATOR
) -> list[tuple[str, Scalar]]:
    """Flatten a JSON value into ordered ``(dotted_key, scalar)`` pairs.

    Object fields extend the parent key with ``sep + field``; array elements
    extend it with ``sep + index``. Empty objects and arrays yield nothing.

    Example:
        >>> flatten_value({"a": {"b": 1}, "c": [True, None]})
        [('a.b', 1), ('c.0', True), ('c.1', None)]
    """
    if isinstance(value, dict):
        items: list[tuple[str, Scalar]] = []
        for key, child in value.items():
            child_key = f"{parent_key}{sep}{key}" if parent_key else str(key)
            items.extend(flatten_value(child, child_key, sep))
        return items

    if isinstance(value, list):
        items = []
        for index, child in enumerate(value):
            child_key = f"{parent_key}{sep}{index}" if parent_key else str(index)
            items.extend(flatten_value(child, child_key, sep))
        return items

    return [(parent_key or SCALAR_KEY, value)]


def iter_records(document: Any) -> Iterator[Any]:
    """Yield the records of a parsed artifact.

    A top-level array is a collection of records; any other value is a
    single record.
    """
    if isinstance(document, list):
        yield from document
    else:
        yield document


def flatten_records(
    records: Iterable[Any], sep: str = KEY_SEPARATOR
) -> tuple[list[str], list[dict[str, Scalar]]]:
    """Flatten every record and compute the union header.

    Returns:
        Tuple of (header in first-seen order, one flat mapping per record)
    """
    header: list[str] = []
    seen: set[str] = set()
    rows: list[dict[str, Scalar]] = []

    for record in records:
        row: dict[str, Scalar] = {}
        for key, value in flatten_value(record, sep=sep):
            if key not in seen:
                seen.add(key)
                header.append(key)
            row[key] = value
        rows.append(row)

    return header, rows


def format_cell(value: Scalar) -> str:
    """Render a scalar as CSV cell text.

    Floats use ``repr`` so the shortest round-tripping form is written and no
    precision is lost. Booleans keep their JSON spelling.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    return str(value)


def write_csv(
    header: list[str], rows: Iterable[dict[str, Scalar]], out_path: Path
) -> None:
    """Write rows to ``out_path`` atomically, padding missing keys.

    An empty header produces an empty file.
    """
    tmp_path = out_path.with_name(out_path.name + ".tmp")
    try:
        with tmp_path.open("w", encoding="utf-8", newline="") as handle:
            if header:
                writer = csv.writer(handle)
                writer.writerow(header)
                for row in rows:
                    writer.writerow([format_cell(row.get(key)) for key in header])
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, out_path)
    except OSError as e:
        raise ArtifactIOError(str(out_path), e) from e
    finally:
        if tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                pass


def load_json(path: Path) -> Any:
    """Read and parse a JSON artifact.

    Raises:
        ArtifactIOError: If the file cannot be read
        ParseError: If the contents are not valid JSON
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ArtifactIOError(str(path), e) from e
    except UnicodeDecodeError as e:
        raise ParseError(str(path), f"not UTF-8 text at byte {e.start}") from e

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(str(path), f"line {e.lineno} column {e.colno}: {e.msg}") from e


def flatten_file(input_path: Path) -> Path:
    """Convert one JSON artifact into a sibling ``<input>.csv`` table.

    The input file is never modified or removed.

    Args:
        input_path: Path to the JSON artifact

    Returns:
        Path to the written CSV file

    Raises:
        ArtifactIOError: If reading or writing fails
        ParseError: If the input is malformed JSON
    """
    input_path = Path(input_path)
    document = load_json(input_path)

    header, rows = flatten_records(iter_records(document))
    out_path = csv_path_for(input_path)
    write_csv(header, rows, out_path)

    logger.info(
        f"Flattened {input_path.name}: {len(rows)} rows x {len(header)} columns "
        f"-> {out_path.name}"
    )
    return out_path
