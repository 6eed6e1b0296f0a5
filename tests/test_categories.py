"""
Tests for the category parsers.
"""

from __future__ import annotations

import json

import pytest

from factories import (
    make_choice_doc,
    make_choice_question,
    make_dialogue_doc,
    make_fill_doc,
    make_picture_doc,
    make_read_doc,
    write_doc,
)

from ets_extract.categories import (
    ChoiceFields,
    ChoiceSetParser,
    DialogueParser,
    FillInParser,
    PictureParser,
    ReadAloudParser,
    default_parsers,
    load_document,
)
from ets_extract.errors import (
    DocumentIOError,
    DocumentSyntaxError,
    ExtractionError,
    FieldMissingError,
    MissingDataError,
    TypeMismatchError,
)
from ets_extract.models import ChoiceQuestion, QuestionCategory


# ═══════════════════════════════════════════════════════════════════════════════
# DOCUMENT LOADING
# ═══════════════════════════════════════════════════════════════════════════════


class TestLoadDocument:

    def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentIOError) as exc:
            load_document(tmp_path / "content.json")
        assert exc.value.source.endswith("content.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "content.json"
        path.write_text("{\"info\": ", encoding="utf-8")
        with pytest.raises(DocumentSyntaxError):
            load_document(path)

    def test_not_utf8(self, tmp_path):
        path = tmp_path / "content.json"
        path.write_bytes(b"\xff\xfe{}")
        with pytest.raises(DocumentSyntaxError):
            load_document(path)

    def test_byte_order_mark(self, tmp_path):
        path = tmp_path / "content.json"
        path.write_text(json.dumps({"info": {}}), encoding="utf-8-sig")
        assert load_document(path) == {"info": {}}

    def test_errors_share_base_class(self, tmp_path):
        with pytest.raises(ExtractionError):
            load_document(tmp_path / "nope.json")


# ═══════════════════════════════════════════════════════════════════════════════
# MULTIPLE CHOICE
# ═══════════════════════════════════════════════════════════════════════════════


class TestChoiceSetParser:

    def test_shared_material(self, tmp_path):
        path = write_doc(tmp_path, make_choice_doc())
        choice_set = ChoiceSetParser().parse(path)

        assert choice_set.listening_material == "W: Hello.\nM: Hi there."
        assert len(choice_set.questions) == 2

    def test_question_fields(self, tmp_path):
        path = write_doc(tmp_path, make_choice_doc())
        first, second = ChoiceSetParser().parse(path).questions

        assert first.stem == "Where are they?"
        assert second.stem == "What time is it?"
        assert first.options == [
            "A.Option A", "B.Option B", "C.Option C", "D.Option D"
        ]
        assert first.correct_answer == "A"
        assert second.correct_answer == "C"

    def test_material_falls_back_to_first_question(self, tmp_path):
        doc = make_choice_doc(
            material="",
            questions=[
                make_choice_question(material="First scenario"),
                make_choice_question(material="Second scenario"),
            ],
        )
        path = write_doc(tmp_path, doc)
        choice_set = ChoiceSetParser().parse(path)
        assert choice_set.listening_material == "First scenario"

    def test_fallback_is_normalized(self, tmp_path):
        doc = make_choice_doc(
            material="",
            questions=[make_choice_question(material="</p><p>A: One.</br>B: Two.")],
        )
        path = write_doc(tmp_path, doc)
        assert ChoiceSetParser().parse(path).listening_material == "A: One.\nB: Two."

    def test_shared_material_wins_over_question_material(self, tmp_path):
        doc = make_choice_doc(
            material="Shared",
            questions=[make_choice_question(material="Own")],
        )
        path = write_doc(tmp_path, doc)
        assert ChoiceSetParser().parse(path).listening_material == "Shared"

    def test_missing_answer(self, tmp_path):
        question = make_choice_question()
        del question["answer"]
        path = write_doc(tmp_path, make_choice_doc(questions=[question]))

        with pytest.raises(FieldMissingError) as exc:
            ChoiceSetParser().parse(path)
        assert exc.value.field == "info.xtlist[0].answer"
        assert "info.xtlist[0].answer" in str(exc.value)

    def test_missing_option_text(self, tmp_path):
        question = make_choice_question()
        del question["xxlist"][1]["xx_nr"]
        path = write_doc(tmp_path, make_choice_doc(questions=[question]))

        with pytest.raises(FieldMissingError) as exc:
            ChoiceSetParser().parse(path)
        assert exc.value.field == "info.xtlist[0].xxlist[1].xx_nr"

    def test_missing_shared_material_field(self, tmp_path):
        path = write_doc(tmp_path, {"info": {"xtlist": [make_choice_question()]}})
        with pytest.raises(FieldMissingError) as exc:
            ChoiceSetParser().parse(path)
        assert exc.value.field == "info.st_nr"

    def test_material_wrong_type(self, tmp_path):
        path = write_doc(tmp_path, make_choice_doc(material=5))
        with pytest.raises(TypeMismatchError) as exc:
            ChoiceSetParser().parse(path)
        assert exc.value.field == "info.st_nr"

    def test_null_answer_is_type_mismatch(self, tmp_path):
        path = write_doc(
            tmp_path, make_choice_doc(questions=[make_choice_question(answer=None)])
        )
        with pytest.raises(TypeMismatchError):
            ChoiceSetParser().parse(path)

    def test_questions_not_array(self, tmp_path):
        path = write_doc(tmp_path, {"info": {"st_nr": "", "xtlist": {}}})
        with pytest.raises(TypeMismatchError) as exc:
            ChoiceSetParser().parse(path)
        assert exc.value.field == "info.xtlist"

    def test_info_not_object(self, tmp_path):
        path = write_doc(tmp_path, {"info": []})
        with pytest.raises(TypeMismatchError) as exc:
            ChoiceSetParser().parse(path)
        assert exc.value.field == "info"

    def test_no_questions(self, tmp_path):
        path = write_doc(tmp_path, make_choice_doc(questions=[]))
        with pytest.raises(MissingDataError):
            ChoiceSetParser().parse(path)

    def test_normalization_can_be_disabled(self, tmp_path):
        path = write_doc(tmp_path, make_choice_doc())
        choice_set = ChoiceSetParser(normalize=None).parse(path)
        assert choice_set.listening_material.startswith("</p><p>")
        assert choice_set.questions[0].stem.startswith("ets_th1 ")

    def test_custom_field_layout(self, tmp_path):
        doc = {
            "data": {
                "material": "Story",
                "items": [{
                    "xt_value": "",
                    "xt_nr": "Q?",
                    "xxlist": [{"xx_mc": "A", "xx_nr": "yes"}],
                    "key": "A",
                }],
            }
        }
        path = write_doc(tmp_path, doc)
        fields = ChoiceFields(
            material="data.material", questions="data.items", answer="key"
        )
        choice_set = ChoiceSetParser(fields=fields).parse(path)
        assert choice_set.questions[0].correct_answer == "A"


class TestOptionCorrectness:

    @pytest.mark.parametrize("answer,option,expected", [
        ("A", "A.yes", True),
        ("B", "A.yes", False),
        ("AC", "A.yes", True),
        ("AC", "C.no", False),
        ("", "A.yes", False),
        ("A", "", False),
    ])
    def test_leading_letter_rule(self, answer, option, expected):
        question = ChoiceQuestion(stem="s", options=[option], correct_answer=answer)
        assert question.is_correct(option) is expected


# ═══════════════════════════════════════════════════════════════════════════════
# FIXED SECTIONS
# ═══════════════════════════════════════════════════════════════════════════════


class TestFillInParser:

    def test_entries(self, tmp_path):
        path = write_doc(tmp_path, make_fill_doc())
        fill_in = FillInParser().parse(path)
        assert fill_in.entries == [
            "1.London", "2.Tuesday", "3.museum", "4.12", "5.bus"
        ]

    def test_missing_index(self, tmp_path):
        path = write_doc(tmp_path, {"info": {"std": [{"value": "x"}]}})
        with pytest.raises(FieldMissingError) as exc:
            FillInParser().parse(path)
        assert exc.value.field == "info.std[0].xth"

    def test_missing_value(self, tmp_path):
        path = write_doc(tmp_path, {"info": {"std": [{"xth": "1"}]}})
        with pytest.raises(FieldMissingError) as exc:
            FillInParser().parse(path)
        assert exc.value.field == "info.std[0].value"

    def test_no_normalization(self, tmp_path):
        path = write_doc(tmp_path, make_fill_doc([("1", "</p><p>x")]))
        assert FillInParser().parse(path).entries == ["1.</p><p>x"]


class TestPictureParser:

    def test_material_cleanup(self, tmp_path):
        path = write_doc(tmp_path, make_picture_doc())
        picture = PictureParser().parse(path)
        assert picture.listening_material == "Tom went to the park.\nHe met Lucy."

    def test_model_answers_cleanup(self, tmp_path):
        path = write_doc(tmp_path, make_picture_doc())
        picture = PictureParser().parse(path)
        assert picture.model_answers == [
            "Tom went to the park and met Lucy.",
            "Tom met Lucy.",
        ]

    def test_key_points_split(self, tmp_path):
        path = write_doc(tmp_path, make_picture_doc(keypoint=" park</br>Lucy </br>kite</br>"))
        picture = PictureParser().parse(path)
        assert picture.key_points == ["park", "Lucy", "kite", ""]

    def test_blank_key_points_kept(self, tmp_path):
        path = write_doc(tmp_path, make_picture_doc(keypoint="a</br> </br>b</br>c</br>"))
        picture = PictureParser().parse(path)
        assert picture.key_points == ["a", "", "b", "c", ""]

    def test_truncated_wrapper(self, tmp_path):
        path = write_doc(tmp_path, make_picture_doc(content="</p><p>Cut off mid"))
        picture = PictureParser().parse(path)
        assert picture.listening_material == "Cut off mid"

    def test_missing_keypoint(self, tmp_path):
        doc = make_picture_doc()
        del doc["info"]["keypoint"]
        path = write_doc(tmp_path, doc)
        with pytest.raises(FieldMissingError) as exc:
            PictureParser().parse(path)
        assert exc.value.field == "info.keypoint"


class TestReadAloudParser:

    def test_passage(self, tmp_path):
        path = write_doc(tmp_path, make_read_doc())
        assert ReadAloudParser().parse(path).passage_text == "Reading is a good habit."

    def test_missing_value(self, tmp_path):
        path = write_doc(tmp_path, {"info": {}})
        with pytest.raises(FieldMissingError) as exc:
            ReadAloudParser().parse(path)
        assert exc.value.field == "info.value"


class TestDialogueParser:

    def test_dialogues(self, tmp_path):
        path = write_doc(tmp_path, make_dialogue_doc())
        dialogue_set = DialogueParser().parse(path)

        assert len(dialogue_set.dialogues) == 2
        first = dialogue_set.dialogues[0]
        assert first.model_answers == ["She likes music."]
        assert first.keywords == "music</br>piano"

    def test_question_kept_verbatim(self, tmp_path):
        path = write_doc(tmp_path, make_dialogue_doc())
        first = DialogueParser().parse(path).dialogues[0]
        assert first.question == "Question 1. What does Lucy like?"

    def test_missing_nested_value(self, tmp_path):
        doc = make_dialogue_doc()
        doc["info"]["question"][1]["std"] = [{"text": "x"}]
        path = write_doc(tmp_path, doc)
        with pytest.raises(FieldMissingError) as exc:
            DialogueParser().parse(path)
        assert exc.value.field == "info.question[1].std[0].value"

    def test_pluggable_normalization(self, tmp_path):
        def uppercase_questions(dialogue_set):
            for dialogue in dialogue_set.dialogues:
                dialogue.question = dialogue.question.upper()

        path = write_doc(tmp_path, make_dialogue_doc())
        parser = DialogueParser(normalize=uppercase_questions)
        assert parser.parse(path).dialogues[1].question == "2. WHY IS TOM LATE?"


class TestDefaultParsers:

    def test_registry_covers_every_category(self):
        parsers = default_parsers()
        assert set(parsers) == {
            QuestionCategory.CHOICE,
            QuestionCategory.FILL_IN,
            QuestionCategory.PICTURE,
            QuestionCategory.READ_ALOUD,
            QuestionCategory.DIALOGUE,
        }
        for category, parser in parsers.items():
            assert parser.category == category

    def test_dialogue_and_fill_in_have_no_normalizer(self):
        parsers = default_parsers()
        assert parsers[QuestionCategory.DIALOGUE].normalize is None
        assert parsers[QuestionCategory.FILL_IN].normalize is None
        assert parsers[QuestionCategory.CHOICE].normalize is not None
