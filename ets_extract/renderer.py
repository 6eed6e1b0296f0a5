"""
Document Renderer
=================
Renders an AnswerSheet into a self-contained HTML answer key with Jinja2.

The renderer is an explicit object: callers build one ``DocumentRenderer``
(usually once per process) and pass it to whatever needs HTML. The template
environment lives on the instance.

Display-only cleanup happens here and never touches the sheet:
    - choice options are flagged correct by comparing leading letters
    - fill-in entries lose their ``"<index>."`` prefix
    - dialogue questions lose the exporter's numbering
    - blank key points are not listed
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional, Union

from jinja2 import (
    Environment,
    FileSystemLoader,
    PackageLoader,
    StrictUndefined,
    TemplateError,
    select_autoescape,
)

from .errors import RenderError
from .models import AnswerSheet
from .normalizer import (
    DIALOGUE_QUESTION_PREFIXES,
    split_on_delimiter,
    strip_leading_markup,
)
from .serializer import is_memory_target

logger = logging.getLogger(__name__)

TEMPLATE_NAME = "answer_sheet.html"

_FILL_IN_INDEX = re.compile(r"[0-9]+")

# Choice questions shown in the first part; the rest go to the second
CHOICE_SPLIT = 4

SECTION_TITLES = (
    "一、听后选择（一）",
    "二、听后选择（二）",
    "三、听后记录",
    "四、听后转述",
    "五、朗读短文",
    "六、回答问题",
)


def display_fill_in(entry: str) -> str:
    """``"3.London"`` -> ``"London"``; entries without an index are kept."""
    index, sep, value = entry.partition(".")
    if sep and _FILL_IN_INDEX.fullmatch(index.strip()):
        return value
    return entry


def display_dialogue_question(question: str) -> str:
    return strip_leading_markup(question, DIALOGUE_QUESTION_PREFIXES)


def _lines(text: str) -> list[str]:
    return [line for line in text.split("\n") if line.strip()]


class DocumentRenderer:
    """
    HTML renderer for answer sheets.

    Args:
        template_dir: Directory holding ``answer_sheet.html``. Defaults to
            the templates shipped with the package.
    """

    def __init__(self, template_dir: Optional[Union[str, Path]] = None):
        if template_dir:
            loader = FileSystemLoader(str(template_dir))
        else:
            loader = PackageLoader("ets_extract", "templates")
        self.env = Environment(
            loader=loader,
            autoescape=select_autoescape(["html"]),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def build_context(self, sheet: AnswerSheet, title: str = "") -> dict:
        """Derive the presentation data for one sheet."""
        choices = []
        for choice_set in sheet.multiple_choice:
            # Material is printed once, above the first question of its set
            material = _lines(choice_set.listening_material)
            for question in choice_set.questions:
                choices.append({
                    "number": len(choices) + 1,
                    "material": material,
                    "stem": question.stem,
                    "answer": question.correct_answer,
                    "options": [
                        {
                            "text": option,
                            "correct": question.is_correct(option),
                        }
                        for option in question.options
                    ],
                })
                material = []

        picture = sheet.picture_narration
        dialogues = [
            {
                "question": display_dialogue_question(d.question),
                "answers": d.model_answers,
                "keywords": split_on_delimiter(d.keywords, keep_empty=False),
            }
            for d in sheet.dialogue.dialogues
        ]

        return {
            "title": title or "答案",
            "sections": SECTION_TITLES,
            "chooses_1": choices[:CHOICE_SPLIT],
            "chooses_2": choices[CHOICE_SPLIT:],
            "fills": [display_fill_in(e) for e in sheet.fill_in.entries],
            "picture": {
                "material": _lines(picture.listening_material),
                "answers": picture.model_answers,
                "key_points": [p for p in picture.key_points if p],
            },
            "passage": _lines(sheet.read_aloud.passage_text),
            "dialogues": dialogues,
        }

    def render(self, sheet: AnswerSheet, title: str = "") -> str:
        """Render a sheet to HTML text."""
        try:
            template = self.env.get_template(TEMPLATE_NAME)
            return template.render(**self.build_context(sheet, title))
        except TemplateError as e:
            raise RenderError(f"Failed to render {TEMPLATE_NAME}: {e}") from e

    def export_html(
        self,
        sheet: AnswerSheet,
        output_path: Optional[Union[str, Path]] = None,
        title: str = "",
    ) -> Union[str, Path]:
        """
        Render a sheet and write it out.

        Returns:
            The HTML text when ``output_path`` is None or ``":memory:"``,
            otherwise the path of the written file.
        """
        html = self.render(sheet, title)
        if is_memory_target(output_path):
            return html

        path = Path(output_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(html, encoding="utf-8")
        except OSError as e:
            raise RenderError(
                f"Failed to write HTML to {path}: {e.strerror or e}",
                source=path,
            ) from e
        logger.info(f"Saved HTML output: {path}")
        return path
