"""
Extractor Engine
================
Main orchestrator that combines positional dispatch, validation and the
renderers into a complete paper extraction pipeline.

Usage:
    engine = ExtractorEngine(config)
    sheet = engine.extract("path/to/paper")
    outputs = engine.export(sheet, "165519")

Architecture:
    paper dir → list_question_dirs → PositionalDispatcher → category parsers →
    AnswerSheet → ValidationEngine → JSON / HTML / PDF
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .categories import CategoryParser
from .converter import HtmlConverter, WeasyPrintConverter, export_pdf
from .dispatcher import CONTENT_FILENAME, PositionalDispatcher
from .errors import InvariantViolationError, UnsupportedPaperError
from .models import AnswerSheet, PaperType, QuestionCategory
from .renderer import DocumentRenderer
from .serializer import export_json
from .validator import ValidationEngine, ValidationReport

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("json", "html", "pdf")

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class ExtractorConfig:
    """Configuration for the extractor engine."""

    # Output settings
    output_dir: str = "output"
    formats: tuple[str, ...] = ("json", "html")
    template_dir: Optional[str] = None

    # Source layout
    paper_type: PaperType = PaperType.SENIOR_COMMON
    content_filename: str = CONTENT_FILENAME

    # Validation
    strict_validation: bool = False

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None


class ExtractorEngine:
    """
    Main extraction engine.

    Orchestrates the full pipeline:
        1. Positional dispatch of question directories
        2. Category parsing and normalization
        3. Validation
        4. Output rendering

    The renderer and converter are created once per engine and can be
    injected.
    """

    def __init__(
        self,
        config: Optional[ExtractorConfig] = None,
        renderer: Optional[DocumentRenderer] = None,
        converter: Optional[HtmlConverter] = None,
        parsers: Optional[dict[QuestionCategory, CategoryParser]] = None,
    ):
        self.config = config or ExtractorConfig()
        self._setup_logging()

        unknown = set(self.config.formats) - set(OUTPUT_FORMATS)
        if unknown:
            raise ValueError(f"Unknown output formats: {sorted(unknown)}")

        self.renderer = renderer or DocumentRenderer(self.config.template_dir)
        self.converter = converter or WeasyPrintConverter()
        self.dispatcher = PositionalDispatcher(
            parsers=parsers,
            content_filename=self.config.content_filename,
        )
        self.validator = ValidationEngine()
        self.last_report: Optional[ValidationReport] = None

    def _setup_logging(self):
        """Configure logging based on config."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        # Configure root logger for the package
        package_logger = logging.getLogger("ets_extract")
        package_logger.setLevel(log_level)

        # Console handler
        if not package_logger.handlers:
            console = logging.StreamHandler()
            console.setLevel(log_level)
            console.setFormatter(
                logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
            )
            package_logger.addHandler(console)

        # File handler
        if self.config.log_file:
            log_dir = Path(self.config.log_file).parent
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(
                self.config.log_file, encoding="utf-8"
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(
                logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
            )
            package_logger.addHandler(file_handler)

    def extract(self, paper_path: Union[str, Path]) -> AnswerSheet:
        """
        Extract the answer sheet of one paper.

        Args:
            paper_path: Paper directory holding the question directories.

        Returns:
            The normalized AnswerSheet.

        Raises:
            ExtractionError: Any read, parse or (strict) validation failure.
                No partial sheet is returned.
        """
        if self.config.paper_type != PaperType.SENIOR_COMMON:
            raise UnsupportedPaperError(
                f"Unsupported paper type: {self.config.paper_type}"
            )

        start_time = time.time()
        logger.info(f"Starting extraction of: {paper_path}")

        sheet = self.dispatcher.extract(paper_path)

        report = self.validator.validate(sheet)
        self.last_report = report
        if self.config.strict_validation and not report.is_valid:
            raise InvariantViolationError(
                f"{paper_path}: sheet failed validation "
                f"({len(report.unmatched_answers)} unmatched answers, "
                f"{len(report.invalid_option_letters)} invalid options, "
                f"{len(report.duplicate_fill_in_indices)} duplicate indices)",
                source=paper_path,
            )

        elapsed = time.time() - start_time
        logger.info(
            f"Extraction complete in {elapsed:.2f}s, "
            f"{len(sheet.multiple_choice)} choice sets extracted"
        )
        return sheet

    def export(self, sheet: AnswerSheet, name: str) -> dict[str, Path]:
        """
        Write every configured format to ``output_dir``.

        Returns:
            Mapping of format name to written file.
        """
        output_dir = Path(self.config.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        outputs: dict[str, Path] = {}
        for fmt in self.config.formats:
            target = output_dir / f"{name}.{fmt}"
            if fmt == "json":
                outputs[fmt] = export_json(sheet, target)
            elif fmt == "html":
                outputs[fmt] = self.renderer.export_html(sheet, target, title=name)
            elif fmt == "pdf":
                outputs[fmt] = export_pdf(
                    sheet, self.renderer, self.converter, target, title=name
                )

        logger.info(f"Output saved to: {output_dir}")
        return outputs

    def run(self, paper_path: Union[str, Path]) -> tuple[AnswerSheet, dict[str, Path]]:
        """Extract a paper and export it under the paper directory's name."""
        sheet = self.extract(paper_path)
        return sheet, self.export(sheet, Path(paper_path).resolve().name)
