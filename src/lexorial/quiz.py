"""Lesson questions: multiple-choice and long-form, with answer checking."""
import logging
from datetime import datetime

from lexorial.content import get_lesson
from lexorial.db import transaction
from lexorial.errors import InvalidArgument, NotFound
from lexorial.models import (
    LONG, MULTIPLE, QUESTION_TYPES, Choice, LongAnswer, LongFormQuestion,
    MultipleChoiceQuestion, Question,
)

logger = logging.getLogger(__name__)


def _choice(row) -> Choice:
    return Choice(
        id=row["id"], question_id=row["question_id"], choice_text=row["choice_text"],
        order_index=row["order_index"], is_correct=bool(row["is_correct"]),
    )


def _long_answer(row) -> LongAnswer:
    return LongAnswer(id=row["id"], question_id=row["question_id"], accepted_answer=row["accepted_answer"])


def _build_question(conn, row) -> Question:
    question_type = row["question_type"]
    if question_type == MULTIPLE:
        choices = conn.execute(
            "SELECT * FROM question_choices WHERE question_id = ? ORDER BY order_index, id", (row["id"],)
        ).fetchall()
        return MultipleChoiceQuestion(
            id=row["id"], lesson_id=row["lesson_id"], question_text=row["question_text"],
            order_index=row["order_index"], choices=[_choice(c) for c in choices],
        )
    elif question_type == LONG:
        answers = conn.execute(
            "SELECT * FROM question_long_answers WHERE question_id = ? ORDER BY id", (row["id"],)
        ).fetchall()
        return LongFormQuestion(
            id=row["id"], lesson_id=row["lesson_id"], question_text=row["question_text"],
            order_index=row["order_index"], accepted_answers=[_long_answer(a) for a in answers],
        )
    raise ValueError(f"Unknown question type: {question_type}")


def _require_type(question_type: str) -> str:
    if question_type not in QUESTION_TYPES:
        raise InvalidArgument(f"question_type must be one of {', '.join(QUESTION_TYPES)}")
    return question_type


def _insert_choices(conn, question_id: int, choices: list[dict]) -> None:
    for i, c in enumerate(choices, 1):
        conn.execute(
            "INSERT INTO question_choices (question_id, choice_text, order_index, is_correct) VALUES (?, ?, ?, ?)",
            (question_id, c.get("choice_text", ""), i, int(bool(c.get("is_correct")))),
        )


def _insert_answers(conn, question_id: int, accepted_answers: list[str]) -> None:
    for ans in accepted_answers:
        if ans and ans.strip():
            conn.execute(
                "INSERT INTO question_long_answers (question_id, accepted_answer) VALUES (?, ?)",
                (question_id, ans.strip()),
            )


def create_question(
    db_path: str, lesson_id: int, question_text: str, question_type: str,
    choices: list[dict] | None = None, accepted_answers: list[str] | None = None,
    order_index: int | None = None,
) -> Question:
    if not question_text or not question_text.strip():
        raise InvalidArgument("Question text must not be blank")
    _require_type(question_type)
    get_lesson(db_path, lesson_id)
    with transaction(db_path) as conn:
        if order_index is None:
            order_index = conn.execute(
                "SELECT COALESCE(MAX(order_index), 0) + 1 FROM questions WHERE lesson_id = ?", (lesson_id,)
            ).fetchone()[0]
        cursor = conn.execute(
            """INSERT INTO questions (lesson_id, question_text, question_type, order_index, created_at)
            VALUES (?, ?, ?, ?, ?)""",
            (lesson_id, question_text.strip(), question_type, order_index, datetime.now().isoformat()),
        )
        question_id = cursor.lastrowid
        if question_type == MULTIPLE and choices:
            _insert_choices(conn, question_id, choices)
        elif question_type == LONG and accepted_answers:
            _insert_answers(conn, question_id, accepted_answers)
    logger.info("Created %s question %s in lesson %s", question_type, question_id, lesson_id)
    return get_question(db_path, question_id)


def get_question(db_path: str, question_id: int) -> Question:
    with transaction(db_path) as conn:
        row = conn.execute("SELECT * FROM questions WHERE id = ?", (question_id,)).fetchone()
        if row is None:
            raise NotFound(f"Question {question_id} not found")
        return _build_question(conn, row)


def list_questions(db_path: str, lesson_id: int) -> list[Question]:
    with transaction(db_path) as conn:
        rows = conn.execute(
            "SELECT * FROM questions WHERE lesson_id = ? ORDER BY order_index, id", (lesson_id,)
        ).fetchall()
        return [_build_question(conn, r) for r in rows]


def update_question(
    db_path: str, question_id: int, question_text: str | None = None,
    question_type: str | None = None, choices: list[dict] | None = None,
    accepted_answers: list[str] | None = None,
) -> Question:
    """Update text and type; given choices or answers replace the existing ones."""
    question = get_question(db_path, question_id)
    new_type = _require_type(question_type) if question_type is not None else question.question_type
    new_text = question.question_text
    if question_text is not None:
        if not question_text.strip():
            raise InvalidArgument("Question text must not be blank")
        new_text = question_text.strip()
    with transaction(db_path) as conn:
        conn.execute(
            "UPDATE questions SET question_text = ?, question_type = ?, updated_at = ? WHERE id = ?",
            (new_text, new_type, datetime.now().isoformat(), question_id),
        )
        if new_type != question.question_type:
            conn.execute("DELETE FROM question_choices WHERE question_id = ?", (question_id,))
            conn.execute("DELETE FROM question_long_answers WHERE question_id = ?", (question_id,))
        if new_type == MULTIPLE and choices is not None:
            conn.execute("DELETE FROM question_choices WHERE question_id = ?", (question_id,))
            _insert_choices(conn, question_id, choices)
        elif new_type == LONG and accepted_answers is not None:
            conn.execute("DELETE FROM question_long_answers WHERE question_id = ?", (question_id,))
            _insert_answers(conn, question_id, accepted_answers)
    return get_question(db_path, question_id)


def delete_question(db_path: str, question_id: int) -> None:
    with transaction(db_path) as conn:
        cursor = conn.execute("DELETE FROM questions WHERE id = ?", (question_id,))
    if cursor.rowcount == 0:
        raise NotFound(f"Question {question_id} not found")


# --- Choices ---


def _require_kind(db_path: str, question_id: int, kind: str) -> Question:
    question = get_question(db_path, question_id)
    if question.question_type != kind:
        raise InvalidArgument(f"Question {question_id} is not a {kind} question")
    return question


def list_choices(db_path: str, question_id: int) -> list[Choice]:
    with transaction(db_path) as conn:
        rows = conn.execute(
            "SELECT * FROM question_choices WHERE question_id = ? ORDER BY order_index, id", (question_id,)
        ).fetchall()
    return [_choice(r) for r in rows]


def add_choice(db_path: str, question_id: int, choice_text: str = "", is_correct: bool = False) -> Choice:
    """Append a choice after the question's existing ones."""
    _require_kind(db_path, question_id, MULTIPLE)
    with transaction(db_path) as conn:
        count = conn.execute(
            "SELECT COUNT(*) FROM question_choices WHERE question_id = ?", (question_id,)
        ).fetchone()[0]
        cursor = conn.execute(
            "INSERT INTO question_choices (question_id, choice_text, order_index, is_correct) VALUES (?, ?, ?, ?)",
            (question_id, choice_text or "", count + 1, int(is_correct)),
        )
    return Choice(
        id=cursor.lastrowid, question_id=question_id, choice_text=choice_text or "",
        order_index=count + 1, is_correct=bool(is_correct),
    )


def update_choice(
    db_path: str, choice_id: int, choice_text: str | None = None,
    is_correct: bool | None = None, order_index: int | None = None,
) -> Choice:
    with transaction(db_path) as conn:
        row = conn.execute("SELECT * FROM question_choices WHERE id = ?", (choice_id,)).fetchone()
        if row is None:
            raise NotFound(f"Choice {choice_id} not found")
        choice = _choice(row)
        if choice_text is not None:
            choice.choice_text = choice_text
        if is_correct is not None:
            choice.is_correct = bool(is_correct)
        if order_index is not None:
            choice.order_index = order_index
        conn.execute(
            "UPDATE question_choices SET choice_text = ?, is_correct = ?, order_index = ? WHERE id = ?",
            (choice.choice_text, int(choice.is_correct), choice.order_index, choice_id),
        )
    return choice


def delete_choice(db_path: str, choice_id: int) -> None:
    with transaction(db_path) as conn:
        cursor = conn.execute("DELETE FROM question_choices WHERE id = ?", (choice_id,))
    if cursor.rowcount == 0:
        raise NotFound(f"Choice {choice_id} not found")


# --- Long-form answers ---


def list_long_answers(db_path: str, question_id: int) -> list[LongAnswer]:
    with transaction(db_path) as conn:
        rows = conn.execute(
            "SELECT * FROM question_long_answers WHERE question_id = ? ORDER BY id", (question_id,)
        ).fetchall()
    return [_long_answer(r) for r in rows]


def add_long_answer(db_path: str, question_id: int, accepted_answer: str) -> LongAnswer:
    if not accepted_answer or not accepted_answer.strip():
        raise InvalidArgument("Accepted answer must not be blank")
    _require_kind(db_path, question_id, LONG)
    with transaction(db_path) as conn:
        cursor = conn.execute(
            "INSERT INTO question_long_answers (question_id, accepted_answer) VALUES (?, ?)",
            (question_id, accepted_answer.strip()),
        )
    return LongAnswer(id=cursor.lastrowid, question_id=question_id, accepted_answer=accepted_answer.strip())


def delete_long_answer(db_path: str, answer_id: int) -> None:
    with transaction(db_path) as conn:
        cursor = conn.execute("DELETE FROM question_long_answers WHERE id = ?", (answer_id,))
    if cursor.rowcount == 0:
        raise NotFound(f"Answer {answer_id} not found")


# --- Answer checking ---


def normalize_answer(text: str) -> str:
    return " ".join(text.split()).lower()


def check_answer(question: Question, response) -> bool:
    """Multiple-choice responses are choice ids; long-form responses are free text."""
    if isinstance(question, MultipleChoiceQuestion):
        return any(c.id == response and c.is_correct for c in question.choices)
    elif isinstance(question, LongFormQuestion):
        given = normalize_answer(str(response))
        return any(normalize_answer(a.accepted_answer) == given for a in question.accepted_answers)
    raise TypeError(f"Unsupported question: {question!r}")
