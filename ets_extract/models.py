"""
Data Models
===========
Pydantic models for the extracted answer sheet.
All models serialize to JSON and validate back to an equal value.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

# Letters the exporter uses to label choice options
OPTION_LETTERS = "ABCDEFGH"


# ─── Enums ────────────────────────────────────────────────────────────────────


class QuestionCategory(str, Enum):
    """Answer category assigned to a question directory by its position."""
    CHOICE = "choice"
    FILL_IN = "fill_in"
    PICTURE = "picture"
    READ_ALOUD = "read_aloud"
    DIALOGUE = "dialogue"
    SKIP = "skip"


class PaperType(str, Enum):
    """Exam layouts the extractor knows how to read."""
    SENIOR_COMMON = "senior_common"


# ─── Multiple Choice ──────────────────────────────────────────────────────────


class ChoiceQuestion(BaseModel):
    """One multiple-choice question with options formatted ``"<letter>.<text>"``."""
    stem: str = ""
    options: list[str] = Field(default_factory=list)
    correct_answer: str = Field(
        default="",
        description="One or more option letters"
    )

    @staticmethod
    def option_letter(option: str) -> str:
        """Leading letter of a formatted option (empty for an empty option)."""
        return option[:1]

    @property
    def correct_letter(self) -> str:
        return self.correct_answer[:1]

    def is_correct(self, option: str) -> bool:
        """True when the option's letter matches the answer's leading letter."""
        letter = self.option_letter(option)
        return bool(letter) and letter == self.correct_letter


class ChoiceSet(BaseModel):
    """A listening scenario and the questions asked about it."""
    listening_material: str = ""
    questions: list[ChoiceQuestion] = Field(default_factory=list)


# ─── Fixed Sections ───────────────────────────────────────────────────────────


class FillInAnswer(BaseModel):
    entries: list[str] = Field(
        default_factory=list,
        description="Answers formatted as '<index>.<value>'"
    )


class PictureAnswer(BaseModel):
    """Listen-and-retell section: material, model answers and key points."""
    listening_material: str = ""
    model_answers: list[str] = Field(default_factory=list)
    key_points: list[str] = Field(default_factory=list)


class ReadAloudAnswer(BaseModel):
    passage_text: str = ""


class Dialogue(BaseModel):
    question: str = ""
    model_answers: list[str] = Field(default_factory=list)
    keywords: str = Field(
        default="",
        description="Delimited keyword string, split only for display"
    )


class DialogueSet(BaseModel):
    dialogues: list[Dialogue] = Field(default_factory=list)


# ─── Aggregate ────────────────────────────────────────────────────────────────


class AnswerSheet(BaseModel):
    """
    Complete answer key of one paper.

    Built once by the positional dispatcher and consumed read-only by the
    renderers. ``multiple_choice`` keeps the ordinal order of the source
    directories.
    """
    multiple_choice: list[ChoiceSet] = Field(default_factory=list)
    fill_in: FillInAnswer = Field(default_factory=FillInAnswer)
    picture_narration: PictureAnswer = Field(default_factory=PictureAnswer)
    read_aloud: ReadAloudAnswer = Field(default_factory=ReadAloudAnswer)
    dialogue: DialogueSet = Field(default_factory=DialogueSet)

    def iter_choice_questions(self):
        """Yield every choice question in paper order."""
        for choice_set in self.multiple_choice:
            yield from choice_set.questions


# ─── Paper ────────────────────────────────────────────────────────────────────


class Paper(BaseModel):
    """A downloaded paper directory in the vendor's resource folder."""
    paper_id: str
    paper_path: str
    modified: Optional[date] = None
