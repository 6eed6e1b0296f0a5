"""
PDF Conversion
==============
Hands rendered HTML to an external HTML-to-PDF converter.

The extractor does not lay out PDFs itself. A converter is any object with
``convert(html, output_path) -> Path``; ``WeasyPrintConverter`` is the
default. Whatever goes wrong inside the converter is surfaced as a single
``ConversionError``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol, Union

from .errors import ConversionError
from .models import AnswerSheet
from .renderer import DocumentRenderer

logger = logging.getLogger(__name__)


class HtmlConverter(Protocol):
    def convert(self, html: str, output_path: Union[str, Path]) -> Path:
        ...


class WeasyPrintConverter:
    """
    Converts HTML with WeasyPrint.

    Page size and margins come from the ``@page`` rule of the template.
    """

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = base_url

    def convert(self, html: str, output_path: Union[str, Path]) -> Path:
        path = Path(output_path)
        try:
            # Imported lazily: WeasyPrint needs native Pango libraries
            from weasyprint import HTML

            path.parent.mkdir(parents=True, exist_ok=True)
            HTML(string=html, base_url=self.base_url).write_pdf(str(path))
        except Exception as e:
            raise ConversionError(
                f"PDF conversion failed for {path}: {e}", source=path
            ) from e
        return path


def export_pdf(
    sheet: AnswerSheet,
    renderer: DocumentRenderer,
    converter: HtmlConverter,
    output_path: Union[str, Path],
    title: str = "",
) -> Path:
    """Render a sheet in memory and convert it to a PDF at ``output_path``."""
    html = renderer.render(sheet, title)
    try:
        result = converter.convert(html, output_path)
    except ConversionError:
        raise
    except Exception as e:
        raise ConversionError(
            f"PDF conversion failed for {output_path}: {e}",
            source=output_path,
        ) from e
    logger.info(f"Saved PDF output: {result}")
    return Path(result)
