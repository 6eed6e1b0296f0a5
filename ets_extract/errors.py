"""
Extraction Errors
=================
Error taxonomy for the extraction and rendering pipeline.

Every parse or dispatch failure is fatal to the paper being extracted:
errors propagate to the caller unchanged and no partial sheet is produced.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class ExtractionError(Exception):
    """Base class for all errors raised by the extractor."""

    def __init__(
        self,
        message: str,
        source: Optional[Union[str, Path]] = None,
        field: Optional[str] = None,
    ):
        self.source = str(source) if source is not None else None
        self.field = field
        super().__init__(message)


class DocumentIOError(ExtractionError):
    """A source document (or the paper directory) could not be read."""


class DocumentSyntaxError(ExtractionError):
    """A source document is not well-formed JSON."""


class FieldMissingError(ExtractionError):
    """A required field is absent from a source document."""

    def __init__(self, source, field: str):
        super().__init__(
            f"{source}: required field '{field}' is missing",
            source=source,
            field=field,
        )


class TypeMismatchError(ExtractionError):
    """A field is present but does not have the expected shape."""

    def __init__(self, source, field: str, expected: str, actual: object):
        self.expected = expected
        super().__init__(
            f"{source}: field '{field}' should be {expected}, "
            f"got {_describe(actual)}",
            source=source,
            field=field,
        )


class MissingDataError(ExtractionError):
    """A document is structurally valid but carries no usable entries."""


class InvariantViolationError(ExtractionError):
    """The extracted sheet breaks a model invariant (strict mode only)."""


class UnsupportedPaperError(ExtractionError):
    """The requested paper layout has no parser."""


class RenderError(ExtractionError):
    """Template rendering or serialization failed."""


class ConversionError(ExtractionError):
    """The external HTML-to-PDF converter failed."""


def _describe(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__
