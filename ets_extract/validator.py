"""
Validation Engine
=================
Post-extraction checks on an AnswerSheet.

After each paper is extracted, reports:
    - Choice sets and choice questions found
    - Options whose label is not a single letter A-H
    - Answers whose leading letter does not match exactly one option
    - Duplicate fill-in indices
    - Sections left empty

The report never raises; the engine decides whether a failed report is
fatal (strict mode).
"""

from __future__ import annotations

import logging
from collections import Counter

from pydantic import BaseModel, Field, computed_field

from .models import OPTION_LETTERS, AnswerSheet

logger = logging.getLogger(__name__)

EXPECTED_CHOICE_SETS = 9


class ValidationReport(BaseModel):
    """Invariant check results for one sheet."""
    choice_set_count: int = 0
    choice_question_count: int = 0
    fill_in_count: int = 0
    key_point_count: int = 0
    dialogue_count: int = 0
    invalid_option_letters: list[str] = Field(default_factory=list)
    unmatched_answers: list[str] = Field(default_factory=list)
    duplicate_fill_in_indices: list[str] = Field(default_factory=list)
    missing_sections: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def is_valid(self) -> bool:
        return not (
            self.invalid_option_letters
            or self.unmatched_answers
            or self.duplicate_fill_in_indices
        )


class ValidationEngine:
    """Checks the model invariants of an extracted sheet."""

    def validate(self, sheet: AnswerSheet) -> ValidationReport:
        """
        Run all checks on a sheet.

        Args:
            sheet: Sheet produced by the dispatcher.

        Returns:
            ValidationReport listing every violation by location
            (``choice[2].question[1]``).
        """
        report = ValidationReport(
            choice_set_count=len(sheet.multiple_choice),
            fill_in_count=len(sheet.fill_in.entries),
            key_point_count=len(sheet.picture_narration.key_points),
            dialogue_count=len(sheet.dialogue.dialogues),
        )

        for set_idx, choice_set in enumerate(sheet.multiple_choice):
            for q_idx, question in enumerate(choice_set.questions):
                report.choice_question_count += 1
                where = f"choice[{set_idx}].question[{q_idx}]"

                letters = [question.option_letter(o) for o in question.options]
                for opt_idx, option in enumerate(question.options):
                    label = option.split(".", 1)[0]
                    if len(label) != 1 or label not in OPTION_LETTERS:
                        report.invalid_option_letters.append(
                            f"{where}.option[{opt_idx}]"
                        )

                matches = letters.count(question.correct_letter)
                if not question.correct_letter or matches != 1:
                    report.unmatched_answers.append(where)

        indices = Counter(
            entry.split(".", 1)[0] for entry in sheet.fill_in.entries
        )
        report.duplicate_fill_in_indices = sorted(
            index for index, count in indices.items() if count > 1
        )

        if report.choice_set_count < EXPECTED_CHOICE_SETS:
            report.missing_sections.append("multiple_choice")
        if not sheet.fill_in.entries:
            report.missing_sections.append("fill_in")
        if not sheet.picture_narration.listening_material:
            report.missing_sections.append("picture_narration")
        if not sheet.read_aloud.passage_text:
            report.missing_sections.append("read_aloud")
        if not sheet.dialogue.dialogues:
            report.missing_sections.append("dialogue")

        self._log_report(report)
        return report

    def _log_report(self, report: ValidationReport):
        logger.info("=" * 60)
        logger.info("VALIDATION REPORT")
        logger.info("=" * 60)
        logger.info(
            f"Choice Sets: {report.choice_set_count} "
            f"({report.choice_question_count} questions)"
        )
        logger.info(f"Fill-in Entries: {report.fill_in_count}")
        logger.info(f"Key Points: {report.key_point_count}")
        logger.info(f"Dialogues: {report.dialogue_count}")

        if report.invalid_option_letters:
            logger.warning(
                f"Invalid Option Letters: {len(report.invalid_option_letters)}"
            )
            for where in report.invalid_option_letters:
                logger.warning(f"  • {where}")
        if report.unmatched_answers:
            logger.warning(
                f"Unmatched Answers: {len(report.unmatched_answers)}"
            )
            for where in report.unmatched_answers:
                logger.warning(f"  • {where}")
        if report.duplicate_fill_in_indices:
            logger.warning(
                f"Duplicate Fill-in Indices: "
                f"{', '.join(report.duplicate_fill_in_indices)}"
            )
        if report.missing_sections:
            logger.warning(
                f"Empty Sections: {', '.join(report.missing_sections)}"
            )

        logger.info("=" * 60)
