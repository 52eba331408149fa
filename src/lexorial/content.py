"""Module and lesson authoring: the course outline."""
import logging
from datetime import datetime

from lexorial.db import transaction
from lexorial.errors import InvalidArgument, NotFound
from lexorial.models import Lesson, Module
from lexorial.progression import resolve_module_levels

logger = logging.getLogger(__name__)

MODULE_ORDER = "ORDER BY level IS NULL, level, id"


def _module(row) -> Module:
    return Module(id=row["id"], title=row["title"], description=row["description"] or "", level=row["level"])


def _lesson(row) -> Lesson:
    return Lesson(
        id=row["id"], module_id=row["module_id"], title=row["title"],
        order_index=row["order_index"], intro=row["intro"],
    )


def _require_title(title: str) -> str:
    if not title or not title.strip():
        raise InvalidArgument("Title must not be blank")
    return title.strip()


def _require_position(value: int, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidArgument(f"{name} must be a positive integer")
    return value


# --- Modules ---


def list_modules(db_path: str) -> list[Module]:
    with transaction(db_path) as conn:
        rows = conn.execute(f"SELECT * FROM modules {MODULE_ORDER}").fetchall()
    return [_module(r) for r in rows]


def get_module(db_path: str, module_id: int) -> Module:
    with transaction(db_path) as conn:
        row = conn.execute("SELECT * FROM modules WHERE id = ?", (module_id,)).fetchone()
    if row is None:
        raise NotFound(f"Module {module_id} not found")
    return _module(row)


def get_module_by_level(db_path: str, level: int) -> Module | None:
    """Return the first module whose effective level equals level, if any."""
    modules = list_modules(db_path)
    for module, module_level in zip(modules, resolve_module_levels(modules)):
        if module_level == level:
            return module
    return None


def create_module(db_path: str, title: str, description: str = "", level: int | None = None) -> Module:
    title = _require_title(title)
    with transaction(db_path) as conn:
        if level is None:
            level = conn.execute("SELECT MAX(COALESCE(MAX(level), 0), COUNT(*)) + 1 FROM modules").fetchone()[0]
        _require_position(level, "level")
        cursor = conn.execute(
            "INSERT INTO modules (title, description, level, created_at) VALUES (?, ?, ?, ?)",
            (title, description, level, datetime.now().isoformat()),
        )
        module_id = cursor.lastrowid
    logger.info("Created module %s (%s) at level %s", module_id, title, level)
    return Module(id=module_id, title=title, description=description, level=level)


def update_module(
    db_path: str, module_id: int, title: str | None = None,
    description: str | None = None, level: int | None = None,
) -> Module:
    module = get_module(db_path, module_id)
    if title is not None:
        module.title = _require_title(title)
    if description is not None:
        module.description = description
    if level is not None:
        module.level = _require_position(level, "level")
    with transaction(db_path) as conn:
        conn.execute(
            "UPDATE modules SET title = ?, description = ?, level = ? WHERE id = ?",
            (module.title, module.description, module.level, module_id),
        )
    return module


def delete_module(db_path: str, module_id: int) -> None:
    """Delete a module together with its lessons and their content."""
    with transaction(db_path) as conn:
        cursor = conn.execute("DELETE FROM modules WHERE id = ?", (module_id,))
    if cursor.rowcount == 0:
        raise NotFound(f"Module {module_id} not found")
    logger.info("Deleted module %s", module_id)


# --- Lessons ---


def list_lessons(db_path: str, module_id: int) -> list[Lesson]:
    with transaction(db_path) as conn:
        rows = conn.execute(
            "SELECT * FROM lessons WHERE module_id = ? ORDER BY order_index", (module_id,)
        ).fetchall()
    return [_lesson(r) for r in rows]


def count_lessons(db_path: str, module_id: int) -> int:
    with transaction(db_path) as conn:
        return conn.execute("SELECT COUNT(*) FROM lessons WHERE module_id = ?", (module_id,)).fetchone()[0]


def get_lesson(db_path: str, lesson_id: int) -> Lesson:
    with transaction(db_path) as conn:
        row = conn.execute("SELECT * FROM lessons WHERE id = ?", (lesson_id,)).fetchone()
    if row is None:
        raise NotFound(f"Lesson {lesson_id} not found")
    return _lesson(row)


def _order_taken(conn, module_id: int, order_index: int) -> bool:
    row = conn.execute(
        "SELECT id FROM lessons WHERE module_id = ? AND order_index = ?", (module_id, order_index)
    ).fetchone()
    return row is not None


def _last_position(conn, module_id: int) -> int:
    return conn.execute(
        "SELECT COALESCE(MAX(order_index), 0) FROM lessons WHERE module_id = ?", (module_id,)
    ).fetchone()[0]


def create_lesson(
    db_path: str, module_id: int, title: str,
    order_index: int | None = None, intro: str | None = None,
) -> Lesson:
    """Add a lesson to a module, by default after its last lesson.

    An explicit order_index must be a free position no further than one past
    the last lesson, so positions stay 1..n without gaps.
    """
    title = _require_title(title)
    get_module(db_path, module_id)
    with transaction(db_path) as conn:
        last = _last_position(conn, module_id)
        if order_index is None:
            order_index = last + 1
        _require_position(order_index, "order_index")
        if _order_taken(conn, module_id, order_index):
            raise InvalidArgument(f"Module {module_id} already has a lesson at position {order_index}")
        if order_index > last + 1:
            raise InvalidArgument(f"Module {module_id} has no lesson at position {order_index - 1}")
        cursor = conn.execute(
            "INSERT INTO lessons (module_id, title, order_index, intro, created_at) VALUES (?, ?, ?, ?, ?)",
            (module_id, title, order_index, intro, datetime.now().isoformat()),
        )
        lesson_id = cursor.lastrowid
    logger.info("Created lesson %s (%s) in module %s", lesson_id, title, module_id)
    return Lesson(id=lesson_id, module_id=module_id, title=title, order_index=order_index, intro=intro)


def _move_lesson(conn, lesson: Lesson, target: int) -> None:
    """Move a lesson to target, shifting the lessons in between by one place."""
    if target > _last_position(conn, lesson.module_id):
        raise InvalidArgument(f"Module {lesson.module_id} has no lesson at position {target}")
    if target == lesson.order_index:
        return
    # Park the lesson at 0 so every shift lands on a free slot.
    conn.execute("UPDATE lessons SET order_index = 0 WHERE id = ?", (lesson.id,))
    if target < lesson.order_index:
        between = conn.execute(
            """SELECT id, order_index FROM lessons WHERE module_id = ? AND order_index >= ?
            AND order_index < ? ORDER BY order_index DESC""",
            (lesson.module_id, target, lesson.order_index),
        ).fetchall()
        step = 1
    else:
        between = conn.execute(
            """SELECT id, order_index FROM lessons WHERE module_id = ? AND order_index > ?
            AND order_index <= ? ORDER BY order_index""",
            (lesson.module_id, lesson.order_index, target),
        ).fetchall()
        step = -1
    for row in between:
        conn.execute("UPDATE lessons SET order_index = ? WHERE id = ?", (row["order_index"] + step, row["id"]))
    lesson.order_index = target


def update_lesson(
    db_path: str, lesson_id: int, title: str | None = None,
    order_index: int | None = None, intro: str | None = None,
) -> Lesson:
    """Update a lesson. A new order_index moves it within 1..n, shifting the lessons in between."""
    lesson = get_lesson(db_path, lesson_id)
    if title is not None:
        lesson.title = _require_title(title)
    if intro is not None:
        lesson.intro = intro
    with transaction(db_path) as conn:
        if order_index is not None:
            _move_lesson(conn, lesson, _require_position(order_index, "order_index"))
        conn.execute(
            "UPDATE lessons SET title = ?, order_index = ?, intro = ? WHERE id = ?",
            (lesson.title, lesson.order_index, lesson.intro, lesson_id),
        )
    return lesson


def delete_lesson(db_path: str, lesson_id: int) -> None:
    """Delete a lesson and close the gap it leaves in its module's order."""
    lesson = get_lesson(db_path, lesson_id)
    with transaction(db_path) as conn:
        conn.execute("DELETE FROM lessons WHERE id = ?", (lesson_id,))
        later = conn.execute(
            "SELECT id, order_index FROM lessons WHERE module_id = ? AND order_index > ? ORDER BY order_index",
            (lesson.module_id, lesson.order_index),
        ).fetchall()
        # Ascending, so each target slot is already free.
        for row in later:
            conn.execute("UPDATE lessons SET order_index = ? WHERE id = ?", (row["order_index"] - 1, row["id"]))
    logger.info("Deleted lesson %s from module %s", lesson_id, lesson.module_id)
