"""
Category Parsers
================
One parser per answer category. Each reads a single ``content.json``
document exported by ETS and builds the matching answer model.

Field locations follow the vendor's export verbatim and are grouped in one
layout dataclass per category so a changed export can be handled without
touching the parsing code. Every parser runs its category's normalization
step right after the model is built; the step is pluggable and may be
``None`` (the dialogue category has none).

Failures are precise: a missing key raises ``FieldMissingError`` with the
dotted location of the key (``info.xtlist[0].answer``), a key of the wrong
shape raises ``TypeMismatchError``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Union

from .errors import (
    DocumentIOError,
    DocumentSyntaxError,
    FieldMissingError,
    MissingDataError,
    TypeMismatchError,
)
from .models import (
    ChoiceQuestion,
    ChoiceSet,
    Dialogue,
    DialogueSet,
    FillInAnswer,
    PictureAnswer,
    QuestionCategory,
    ReadAloudAnswer,
)
from .normalizer import (
    PARAGRAPH_CLOSE,
    PARAGRAPH_JOIN,
    STEM_PREFIXES,
    join_lines,
    split_on_delimiter,
    strip_all_markup_pairs,
    strip_leading_markup,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


# ─── Document Access ──────────────────────────────────────────────────────────


def load_document(path: PathLike) -> Any:
    """
    Read and decode one JSON document.

    Raises:
        DocumentIOError: If the file cannot be read.
        DocumentSyntaxError: If the content is not valid UTF-8 JSON.
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise DocumentIOError(
            f"Cannot read document {path}: {e.strerror or e}",
            source=path,
        ) from e

    try:
        return json.loads(raw.decode("utf-8-sig"))
    except UnicodeDecodeError as e:
        raise DocumentSyntaxError(
            f"{path}: not UTF-8 encoded ({e.reason})",
            source=path,
        ) from e
    except json.JSONDecodeError as e:
        raise DocumentSyntaxError(
            f"{path}: invalid JSON at line {e.lineno} column {e.colno}: {e.msg}",
            source=path,
        ) from e


class DocumentReader:
    """Typed field access over one decoded document."""

    def __init__(self, data: Any, source: PathLike):
        self.data = data
        self.source = str(source)

    def get(self, node: Any, field: str, location: str = "") -> tuple[Any, str]:
        """
        Resolve a dotted field below ``node``.

        Returns:
            The value and its full location in the document.
        """
        current = node
        trail = location
        for part in field.split("."):
            if not isinstance(current, dict):
                raise TypeMismatchError(
                    self.source, trail or "<root>", "an object", current
                )
            trail = f"{trail}.{part}" if trail else part
            if part not in current:
                raise FieldMissingError(self.source, trail)
            current = current[part]
        return current, trail

    def string(self, node: Any, field: str, location: str = "") -> str:
        value, trail = self.get(node, field, location)
        if not isinstance(value, str):
            raise TypeMismatchError(self.source, trail, "a string", value)
        return value

    def array(
        self, node: Any, field: str, location: str = ""
    ) -> list[tuple[Any, str]]:
        """Resolve an array field; items come paired with their locations."""
        value, trail = self.get(node, field, location)
        if not isinstance(value, list):
            raise TypeMismatchError(self.source, trail, "an array", value)
        return [(item, f"{trail}[{i}]") for i, item in enumerate(value)]


# ─── Field Layouts ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ChoiceFields:
    material: str = "info.st_nr"
    questions: str = "info.xtlist"
    question_material: str = "xt_value"
    stem: str = "xt_nr"
    options: str = "xxlist"
    option_letter: str = "xx_mc"
    option_text: str = "xx_nr"
    answer: str = "answer"


@dataclass(frozen=True)
class FillInFields:
    answers: str = "info.std"
    index: str = "xth"
    value: str = "value"


@dataclass(frozen=True)
class PictureFields:
    content: str = "info.value"
    answers: str = "info.std"
    value: str = "value"
    key_points: str = "info.keypoint"


@dataclass(frozen=True)
class ReadAloudFields:
    content: str = "info.value"


@dataclass(frozen=True)
class DialogueFields:
    questions: str = "info.question"
    ask: str = "ask"
    keywords: str = "keywords"
    answers: str = "std"
    value: str = "value"


# ─── Normalization Steps ──────────────────────────────────────────────────────


def normalize_choice_set(choice_set: ChoiceSet) -> None:
    material = strip_leading_markup(
        choice_set.listening_material, (PARAGRAPH_JOIN,)
    )
    choice_set.listening_material = join_lines(material)
    for question in choice_set.questions:
        question.stem = strip_leading_markup(question.stem, STEM_PREFIXES)


def normalize_picture(picture: PictureAnswer) -> None:
    content = strip_leading_markup(
        picture.listening_material, (PARAGRAPH_CLOSE,)
    )
    # Exports are sometimes cut off inside the last paragraph
    if not content.endswith(PARAGRAPH_CLOSE):
        content += PARAGRAPH_CLOSE
    picture.listening_material = strip_all_markup_pairs(content)
    picture.model_answers = [
        strip_leading_markup(answer, (PARAGRAPH_JOIN,))
        for answer in picture.model_answers
    ]


def normalize_read_aloud(read_aloud: ReadAloudAnswer) -> None:
    read_aloud.passage_text = strip_leading_markup(
        read_aloud.passage_text, (PARAGRAPH_JOIN,)
    )


Normalizer = Callable[[Any], None]

NORMALIZERS: dict[QuestionCategory, Optional[Normalizer]] = {
    QuestionCategory.CHOICE: normalize_choice_set,
    QuestionCategory.FILL_IN: None,
    QuestionCategory.PICTURE: normalize_picture,
    QuestionCategory.READ_ALOUD: normalize_read_aloud,
    QuestionCategory.DIALOGUE: None,
}

_DEFAULT = object()


# ─── Parsers ──────────────────────────────────────────────────────────────────


class CategoryParser:
    """
    Base class for the category parsers.

    Subclasses set ``category`` and ``fields_class`` and implement
    ``build()``. ``normalize`` defaults to the category's entry in
    ``NORMALIZERS``; pass ``None`` to skip normalization or any callable to
    replace it.
    """

    category: QuestionCategory
    fields_class: type = object

    def __init__(self, fields=None, normalize=_DEFAULT):
        self.fields = fields if fields is not None else self.fields_class()
        if normalize is _DEFAULT:
            normalize = NORMALIZERS.get(self.category)
        self.normalize: Optional[Normalizer] = normalize

    def parse(self, document_path: PathLike):
        """Parse one document into this category's model."""
        reader = DocumentReader(load_document(document_path), document_path)
        value = self.build(reader)
        if self.normalize is not None:
            self.normalize(value)
        logger.debug(f"Parsed {self.category.value} answers from {document_path}")
        return value

    def build(self, reader: DocumentReader):
        raise NotImplementedError


class ChoiceSetParser(CategoryParser):
    """
    Listening multiple choice.

    The vendor stores the scenario either once for the whole group (the
    shared material field) or once per question. When the shared field is
    empty the first question's own material is used.
    """

    category = QuestionCategory.CHOICE
    fields_class = ChoiceFields

    def build(self, reader: DocumentReader) -> ChoiceSet:
        f = self.fields
        material = reader.string(reader.data, f.material)
        entries = reader.array(reader.data, f.questions)
        if not entries:
            raise MissingDataError(
                f"{reader.source}: '{f.questions}' has no question entries",
                source=reader.source,
                field=f.questions,
            )

        if not material:
            first, where = entries[0]
            material = reader.string(first, f.question_material, where)

        choice_set = ChoiceSet(listening_material=material)
        for entry, where in entries:
            stem = reader.string(entry, f.stem, where)

            options = []
            for option, option_where in reader.array(entry, f.options, where):
                letter = reader.string(option, f.option_letter, option_where)
                text = reader.string(option, f.option_text, option_where)
                options.append(f"{letter}.{text}")

            answer = reader.string(entry, f.answer, where)
            choice_set.questions.append(ChoiceQuestion(
                stem=stem,
                options=options,
                correct_answer=answer,
            ))

        return choice_set


class FillInParser(CategoryParser):
    category = QuestionCategory.FILL_IN
    fields_class = FillInFields

    def build(self, reader: DocumentReader) -> FillInAnswer:
        f = self.fields
        fill_in = FillInAnswer()
        for entry, where in reader.array(reader.data, f.answers):
            index = reader.string(entry, f.index, where)
            value = reader.string(entry, f.value, where)
            fill_in.entries.append(f"{index}.{value}")
        return fill_in


class PictureParser(CategoryParser):
    """
    Listen and retell: material, model answers, ``</br>``-joined key points.

    Key points keep every piece of the split, blank ones included.
    """

    category = QuestionCategory.PICTURE
    fields_class = PictureFields

    def build(self, reader: DocumentReader) -> PictureAnswer:
        f = self.fields
        content = reader.string(reader.data, f.content)
        answers = [
            reader.string(entry, f.value, where)
            for entry, where in reader.array(reader.data, f.answers)
        ]
        key_points = reader.string(reader.data, f.key_points)
        return PictureAnswer(
            listening_material=content,
            model_answers=answers,
            key_points=split_on_delimiter(key_points),
        )


class ReadAloudParser(CategoryParser):
    category = QuestionCategory.READ_ALOUD
    fields_class = ReadAloudFields

    def build(self, reader: DocumentReader) -> ReadAloudAnswer:
        return ReadAloudAnswer(
            passage_text=reader.string(reader.data, self.fields.content)
        )


class DialogueParser(CategoryParser):
    category = QuestionCategory.DIALOGUE
    fields_class = DialogueFields

    def build(self, reader: DocumentReader) -> DialogueSet:
        f = self.fields
        dialogue_set = DialogueSet()
        for entry, where in reader.array(reader.data, f.questions):
            dialogue = Dialogue(
                question=reader.string(entry, f.ask, where),
                keywords=reader.string(entry, f.keywords, where),
            )
            for answer, answer_where in reader.array(entry, f.answers, where):
                dialogue.model_answers.append(
                    reader.string(answer, f.value, answer_where)
                )
            dialogue_set.dialogues.append(dialogue)
        return dialogue_set


def default_parsers() -> dict[QuestionCategory, CategoryParser]:
    """Fresh parser registry with the vendor field layouts."""
    parsers = [
        ChoiceSetParser(),
        FillInParser(),
        PictureParser(),
        ReadAloudParser(),
        DialogueParser(),
    ]
    return {parser.category: parser for parser in parsers}
