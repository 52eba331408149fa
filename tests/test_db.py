"""Tests for database initialization and connection management."""
import sqlite3

import pytest

from lexorial.db import init_db, get_connection, transaction
from lexorial.errors import StorageFailure


def test_init_db_creates_tables(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    )
    tables = {row[0] for row in cursor.fetchall()}
    expected = {
        "modules", "lessons", "videos", "slides", "flashcard_links",
        "questions", "question_choices", "question_long_answers", "user_progress",
    }
    assert expected.issubset(tables)
    conn.close()


def test_init_db_is_idempotent(tmp_db):
    init_db(tmp_db)
    init_db(tmp_db)  # should not raise
    conn = get_connection(tmp_db)
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    assert len(cursor.fetchall()) > 0
    conn.close()


def test_get_connection_returns_row_factory(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute("INSERT INTO user_progress (user_id, level, level_lesson) VALUES ('ana', 1, 0)")
    row = conn.execute("SELECT user_id, level FROM user_progress WHERE user_id='ana'").fetchone()
    assert row["user_id"] == "ana"
    assert row["level"] == 1
    conn.close()


def test_user_progress_rejects_level_zero(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute("INSERT INTO user_progress (user_id, level, level_lesson) VALUES ('ana', 0, 0)")
    conn.close()


def test_transaction_commits(tmp_db):
    init_db(tmp_db)
    with transaction(tmp_db) as conn:
        conn.execute("INSERT INTO modules (title, level) VALUES ('Basics', 1)")
    conn = get_connection(tmp_db)
    assert conn.execute("SELECT COUNT(*) FROM modules").fetchone()[0] == 1
    conn.close()


def test_transaction_wraps_sqlite_errors(tmp_db):
    init_db(tmp_db)
    with pytest.raises(StorageFailure) as info:
        with transaction(tmp_db) as conn:
            conn.execute("SELECT * FROM no_such_table")
    assert isinstance(info.value.__cause__, sqlite3.Error)


def test_transaction_rolls_back_on_error(tmp_db):
    init_db(tmp_db)
    with pytest.raises(RuntimeError):
        with transaction(tmp_db) as conn:
            conn.execute("INSERT INTO modules (title, level) VALUES ('Basics', 1)")
            raise RuntimeError("boom")
    conn = get_connection(tmp_db)
    assert conn.execute("SELECT COUNT(*) FROM modules").fetchone()[0] == 0
    conn.close()


def test_deleting_module_cascades_to_lessons(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute("INSERT INTO modules (id, title, level) VALUES (1, 'Basics', 1)")
    conn.execute("INSERT INTO lessons (module_id, title, order_index) VALUES (1, 'Greetings', 1)")
    conn.execute("DELETE FROM modules WHERE id = 1")
    assert conn.execute("SELECT COUNT(*) FROM lessons").fetchone()[0] == 0
    conn.close()
