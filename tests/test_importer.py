# tests/test_importer.py
import json

import pytest

from lexorial.content import create_lesson, create_module, get_lesson, list_lessons, list_modules
from lexorial.db import init_db
from lexorial.errors import InvalidArgument
from lexorial.importer import (
    import_course, import_lesson_intro, import_outline, read_intro_text, read_outline,
)
from lexorial.lesson_content import get_lesson_content
from lexorial.models import LongFormQuestion, MultipleChoiceQuestion
from lexorial.quiz import list_questions

OUTLINE = {
    "modules": [
        {
            "title": "Food",
            "level": 1,
            "lessons": [
                {
                    "title": "Fruit",
                    "video_url": "https://v.example/fruit",
                    "questions": [
                        {"question_text": "Translate 'apple'", "question_type": "long", "accepted_answers": ["manzana"]},
                        {
                            "question_text": "What is 'pera'?",
                            "question_type": "multiple",
                            "choices": [{"choice_text": "Pear", "is_correct": True}, {"choice_text": "Peach"}],
                        },
                    ],
                },
                {"title": "Vegetables"},
            ],
        },
        {"title": "Drinks", "lessons": [{"title": "Coffee"}]},
    ]
}

YAML_OUTLINE = """\
modules:
  - title: Travel
    description: Getting around
    lessons:
      - title: At the airport
        intro: El aeropuerto
        questions:
          - question_text: Translate 'ticket'
            question_type: long
            accepted_answers: [billete, boleto]
"""


def test_read_json_outline(tmp_path):
    f = tmp_path / "course.json"
    f.write_text(json.dumps(OUTLINE))
    assert read_outline(str(f))["modules"][0]["title"] == "Food"


def test_read_yaml_outline(tmp_path):
    f = tmp_path / "course.yml"
    f.write_text(YAML_OUTLINE)
    data = read_outline(str(f))
    assert data["modules"][0]["lessons"][0]["intro"] == "El aeropuerto"


def test_read_unsupported_format(tmp_path):
    f = tmp_path / "course.csv"
    f.write_text("title\nFood")
    with pytest.raises(InvalidArgument):
        read_outline(str(f))


def test_read_outline_without_modules(tmp_path):
    f = tmp_path / "course.json"
    f.write_text('{"lessons": []}')
    with pytest.raises(InvalidArgument):
        read_outline(str(f))


def test_import_outline(tmp_db):
    init_db(tmp_db)
    counts = import_outline(tmp_db, OUTLINE)
    assert counts == {"modules": 2, "lessons": 3, "questions": 2}
    modules = list_modules(tmp_db)
    assert [(m.title, m.level) for m in modules] == [("Food", 1), ("Drinks", 2)]
    fruit = list_lessons(tmp_db, modules[0].id)[0]
    assert get_lesson_content(tmp_db, fruit.id).video.video_url == "https://v.example/fruit"
    long_q, multi_q = list_questions(tmp_db, fruit.id)
    assert isinstance(long_q, LongFormQuestion)
    assert isinstance(multi_q, MultipleChoiceQuestion)
    assert [c.is_correct for c in multi_q.choices] == [True, False]


def test_import_outline_rejects_untitled_module(tmp_db):
    init_db(tmp_db)
    with pytest.raises(InvalidArgument):
        import_outline(tmp_db, {"modules": [{"lessons": []}]})
    assert list_modules(tmp_db) == []


def test_failed_import_leaves_nothing_behind(tmp_db):
    init_db(tmp_db)
    existing = create_module(tmp_db, "Existing")
    outline = {
        "modules": [
            {"title": "Good", "lessons": [{"title": "One", "questions": [
                {"question_text": "Translate 'one'", "question_type": "long", "accepted_answers": ["uno"]},
            ]}]},
            {"title": "Bad", "lessons": [{"title": "Two", "questions": [
                {"question_text": "Describe", "question_type": "essay"},
            ]}]},
        ]
    }
    with pytest.raises(InvalidArgument):
        import_outline(tmp_db, outline)
    assert [m.id for m in list_modules(tmp_db)] == [existing.id]
    # fixed outline imports cleanly afterwards with no duplicates
    outline["modules"][1]["lessons"][0]["questions"][0]["question_type"] = "long"
    import_outline(tmp_db, outline)
    assert [(m.title, m.level) for m in list_modules(tmp_db)] == [("Existing", 1), ("Good", 2), ("Bad", 3)]


def test_failed_import_on_lesson_position(tmp_db):
    init_db(tmp_db)
    outline = {"modules": [{"title": "Food", "lessons": [{"title": "Fruit"}, {"title": "Bread", "order_index": 1}]}]}
    with pytest.raises(InvalidArgument):
        import_outline(tmp_db, outline)
    assert list_modules(tmp_db) == []


def test_import_course_yaml(tmp_db, tmp_path):
    init_db(tmp_db)
    f = tmp_path / "travel.yaml"
    f.write_text(YAML_OUTLINE)
    result = import_course(tmp_db, str(f))
    assert result == {"filename": "travel.yaml", "modules": 1, "lessons": 1, "questions": 1}
    assert list_modules(tmp_db)[0].description == "Getting around"


def test_import_course_appends_levels(tmp_db, tmp_path):
    init_db(tmp_db)
    create_module(tmp_db, "Existing")
    f = tmp_path / "travel.yaml"
    f.write_text(YAML_OUTLINE)
    import_course(tmp_db, str(f))
    assert [m.level for m in list_modules(tmp_db)] == [1, 2]


def test_import_lesson_intro(tmp_db, tmp_path):
    init_db(tmp_db)
    module = create_module(tmp_db, "Basics")
    lesson = create_lesson(tmp_db, module.id, "Greetings")
    f = tmp_path / "intro.md"
    f.write_text("# Greetings\n\nHola means hello.\n")
    length = import_lesson_intro(tmp_db, lesson.id, str(f))
    intro = get_lesson(tmp_db, lesson.id).intro
    assert intro == "# Greetings\n\nHola means hello."
    assert length == len(intro)


def test_read_html_intro(tmp_path):
    f = tmp_path / "intro.html"
    f.write_text("<html><body><h1>Saludos</h1><p>Hola means hello.</p></body></html>")
    text = read_intro_text(str(f))
    assert "Saludos" in text
    assert "Hola means hello." in text
    assert "<p>" not in text


def test_read_docx_intro(tmp_path):
    from docx import Document
    doc = Document()
    doc.add_paragraph("Los números")
    doc.add_paragraph("Uno, dos, tres.")
    f = tmp_path / "intro.docx"
    doc.save(str(f))
    assert read_intro_text(str(f)) == "Los números\nUno, dos, tres."


def test_import_lesson_intro_rejects_unknown_format(tmp_db, tmp_path):
    init_db(tmp_db)
    module = create_module(tmp_db, "Basics")
    lesson = create_lesson(tmp_db, module.id, "Greetings")
    f = tmp_path / "intro.pptx"
    f.write_bytes(b"PK")
    with pytest.raises(InvalidArgument):
        import_lesson_intro(tmp_db, lesson.id, str(f))
    assert get_lesson(tmp_db, lesson.id).intro is None
