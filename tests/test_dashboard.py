from lexorial.dashboard import (
    get_learner_summary, get_module_breakdown, get_progress_color, get_progress_label,
)
from lexorial.db import init_db
from lexorial.progress import complete_lesson, get_next_lesson
from lexorial.seed import seed_all


def _complete(db_path, user_id, n):
    for _ in range(n):
        complete_lesson(db_path, user_id, get_next_lesson(db_path, user_id).id)


def test_progress_labels():
    assert get_progress_label(0) == "NOT STARTED"
    assert get_progress_label(33.3) == "STARTED"
    assert get_progress_label(50) == "HALFWAY"
    assert get_progress_label(100) == "COMPLETE"


def test_progress_colors():
    assert get_progress_color(0) == "red"
    assert get_progress_color(10) == "dark_orange"
    assert get_progress_color(75) == "yellow"
    assert get_progress_color(100) == "green"


def test_module_breakdown_new_learner(tmp_db):
    init_db(tmp_db)
    seed_all(tmp_db)
    breakdown = get_module_breakdown(tmp_db, "ana")
    assert [m["lessons"] for m in breakdown] == [3, 4, 2]
    assert [m["is_unlocked"] for m in breakdown] == [True, False, False]
    assert all(m["completed"] == 0 for m in breakdown)
    assert breakdown[0]["label"] == "NOT STARTED"


def test_module_breakdown_after_lessons(tmp_db):
    init_db(tmp_db)
    seed_all(tmp_db)
    _complete(tmp_db, "ana", 4)
    first, second, third = get_module_breakdown(tmp_db, "ana")
    assert (first["completed"], first["percent"], first["label"]) == (3, 100.0, "COMPLETE")
    assert (second["completed"], second["percent"], second["label"]) == (1, 25.0, "STARTED")
    assert second["is_unlocked"] is True
    assert third["is_unlocked"] is False


def test_learner_summary(tmp_db):
    init_db(tmp_db)
    seed_all(tmp_db)
    _complete(tmp_db, "ana", 2)
    summary = get_learner_summary(tmp_db, "ana")
    assert summary == {
        "display_level": 1,
        "module_progress": 66.7,
        "lessons_completed": 2,
        "total_lessons": 9,
        "modules_completed": 0,
        "total_modules": 3,
    }


def test_learner_summary_after_module(tmp_db):
    init_db(tmp_db)
    seed_all(tmp_db)
    _complete(tmp_db, "ana", 3)
    summary = get_learner_summary(tmp_db, "ana")
    assert summary["display_level"] == 1
    assert summary["module_progress"] == 0.0
    assert summary["modules_completed"] == 1
