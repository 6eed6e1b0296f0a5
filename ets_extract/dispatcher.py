"""
Positional Dispatcher
=====================
Routes the question directories of a paper to the category parsers.

ETS does not tag question directories with their category: the category is
implied by the directory's position in the paper's listing, following the
fixed structure of the senior listening/speaking exam (nine listening
groups followed by four fixed sections). ``ORDINAL_TABLE`` is the single
place where that structure is written down.

    position 0       administrative entry, skipped
    positions 1-9    multiple choice (one ChoiceSet each, in order)
    position 10      fill-in
    position 11      picture narration
    position 12      read aloud
    position 13      dialogue
    positions >= 14  ignored
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from .categories import CategoryParser, default_parsers
from .errors import DocumentIOError
from .models import AnswerSheet, QuestionCategory

logger = logging.getLogger(__name__)

CONTENT_FILENAME = "content.json"

ORDINAL_TABLE: tuple[tuple[range, QuestionCategory], ...] = (
    (range(0, 1), QuestionCategory.SKIP),
    (range(1, 10), QuestionCategory.CHOICE),
    (range(10, 11), QuestionCategory.FILL_IN),
    (range(11, 12), QuestionCategory.PICTURE),
    (range(12, 13), QuestionCategory.READ_ALOUD),
    (range(13, 14), QuestionCategory.DIALOGUE),
)

# AnswerSheet attribute replaced by each single-slot category
_SLOTS = {
    QuestionCategory.FILL_IN: "fill_in",
    QuestionCategory.PICTURE: "picture_narration",
    QuestionCategory.READ_ALOUD: "read_aloud",
    QuestionCategory.DIALOGUE: "dialogue",
}


def category_for(position: int) -> QuestionCategory:
    """Category of the question directory at a zero-based position."""
    if position < 0:
        raise ValueError(f"Position must be non-negative, got {position}")
    for positions, category in ORDINAL_TABLE:
        if position in positions:
            return category
    return QuestionCategory.SKIP


def expected_positions() -> int:
    """Number of directory positions the table assigns meaning to."""
    return max(positions.stop for positions, _ in ORDINAL_TABLE)


def list_question_dirs(paper_root: Union[str, Path]) -> list[Path]:
    """
    List a paper's question directories in ordinal order (case-insensitive
    name order, as the vendor's Windows listing returns them).

    Raises:
        DocumentIOError: If the paper directory cannot be listed.
    """
    root = Path(paper_root)
    try:
        children = [child for child in root.iterdir() if child.is_dir()]
    except OSError as e:
        raise DocumentIOError(
            f"Cannot list paper directory {root}: {e.strerror or e}",
            source=root,
        ) from e
    return sorted(children, key=lambda p: (p.name.casefold(), p.name))


class PositionalDispatcher:
    """
    Builds an AnswerSheet from an ordered list of question directories.

    Parsing is sequential and fail-fast: the first error propagates and no
    sheet is returned.
    """

    def __init__(
        self,
        parsers: Optional[dict[QuestionCategory, CategoryParser]] = None,
        content_filename: str = CONTENT_FILENAME,
    ):
        self.parsers = default_parsers()
        if parsers:
            self.parsers.update(parsers)
        self.content_filename = content_filename

    def extract(self, paper_root: Union[str, Path]) -> AnswerSheet:
        """List a paper directory and dispatch its question directories."""
        question_dirs = list_question_dirs(paper_root)
        logger.info(
            f"Found {len(question_dirs)} question directories in {paper_root}"
        )
        return self.dispatch(question_dirs)

    def dispatch(self, question_dirs: Sequence[Union[str, Path]]) -> AnswerSheet:
        sheet = AnswerSheet()

        if len(question_dirs) < expected_positions():
            logger.warning(
                f"Expected {expected_positions()} question directories, "
                f"got {len(question_dirs)}; missing sections stay empty"
            )

        for position, question_dir in enumerate(question_dirs):
            category = category_for(position)
            if category == QuestionCategory.SKIP:
                logger.debug(f"Skipping position {position}: {question_dir}")
                continue

            document = self._document_path(question_dir)
            value = self.parsers[category].parse(document)

            if category == QuestionCategory.CHOICE:
                sheet.multiple_choice.append(value)
            else:
                setattr(sheet, _SLOTS[category], value)

        return sheet

    def _document_path(self, question_dir: Union[str, Path]) -> Path:
        document = Path(question_dir) / self.content_filename
        if not document.is_file():
            raise DocumentIOError(
                f"Question directory {question_dir} has no {self.content_filename}",
                source=document,
            )
        return document
