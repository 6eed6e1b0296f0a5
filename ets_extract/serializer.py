"""
Structured Serializer
=====================
Canonical JSON form of an AnswerSheet.

The output is pretty-printed with keys in model declaration order and every
list in source order; ``from_json(to_json(sheet)) == sheet`` holds for every
sheet.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from .errors import (
    DocumentIOError,
    DocumentSyntaxError,
    RenderError,
    TypeMismatchError,
)
from .models import AnswerSheet

logger = logging.getLogger(__name__)

# Output path meaning "return the content instead of writing a file"
MEMORY = ":memory:"


def is_memory_target(output_path: Optional[Union[str, Path]]) -> bool:
    return output_path is None or str(output_path) == MEMORY


def to_json(sheet: AnswerSheet) -> str:
    return json.dumps(
        sheet.model_dump(mode="json"),
        indent=2,
        ensure_ascii=False,
    )


def from_json(text: str, source: str = "<json>") -> AnswerSheet:
    """
    Rebuild a sheet from its canonical JSON.

    Raises:
        DocumentSyntaxError: If the text is not valid JSON.
        TypeMismatchError: If the JSON does not have the sheet's shape.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DocumentSyntaxError(
            f"{source}: invalid JSON at line {e.lineno} column {e.colno}: {e.msg}",
            source=source,
        ) from e

    try:
        return AnswerSheet.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "<root>"
        raise TypeMismatchError(
            source, field, first["type"], first.get("input")
        ) from e


def load_json(path: Union[str, Path]) -> AnswerSheet:
    """Read a sheet previously written by ``export_json``."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DocumentIOError(
            f"Cannot read {path}: {e.strerror or e}", source=path
        ) from e
    return from_json(text, source=str(path))


def export_json(
    sheet: AnswerSheet,
    output_path: Optional[Union[str, Path]] = None,
) -> Union[str, Path]:
    """
    Serialize a sheet.

    Returns:
        The JSON text when ``output_path`` is None or ``":memory:"``,
        otherwise the path of the written file.
    """
    data = to_json(sheet)
    if is_memory_target(output_path):
        return data

    path = Path(output_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(data, encoding="utf-8")
    except OSError as e:
        raise RenderError(
            f"Failed to write JSON to {path}: {e.strerror or e}", source=path
        ) from e
    logger.info(f"Saved JSON output: {path}")
    return path
