"""Learner progress storage and the level-progression operations."""
import logging
from datetime import datetime

from lexorial.content import (
    count_lessons, get_lesson, get_module, get_module_by_level, list_lessons, list_modules,
)
from lexorial.db import transaction
from lexorial.errors import InvalidArgument, NotFound, ProgressConflict, Unauthorized
from lexorial.models import Lesson, LessonState, ModuleState, ProgressDisplay, UserProgress
from lexorial.progression import (
    compute_progress_display, next_progress, resolve_lesson_unlocks, resolve_module_levels,
    resolve_module_unlocks, validate_lesson_total,
)

logger = logging.getLogger(__name__)


def _require_user(user_id: str | None) -> str:
    if not user_id or not str(user_id).strip():
        raise Unauthorized("A learner identity is required")
    return str(user_id).strip()


def get_progress(db_path: str, user_id: str) -> UserProgress | None:
    with transaction(db_path) as conn:
        row = conn.execute(
            "SELECT level, level_lesson FROM user_progress WHERE user_id = ?", (user_id,)
        ).fetchone()
    if row is None:
        return None
    return UserProgress(level=row["level"], level_lesson=row["level_lesson"])


def set_progress(
    db_path: str, user_id: str, new: UserProgress, expected: UserProgress | None,
) -> None:
    """Write new counters only if the stored ones still equal expected.

    expected=None means no row was read, so the row must still be absent.
    Raises ProgressConflict when another write got there first.
    """
    now = datetime.now().isoformat()
    with transaction(db_path) as conn:
        if expected is None:
            cursor = conn.execute(
                """INSERT INTO user_progress (user_id, level, level_lesson, updated_at)
                VALUES (?, ?, ?, ?) ON CONFLICT(user_id) DO NOTHING""",
                (user_id, new.level, new.level_lesson, now),
            )
        else:
            cursor = conn.execute(
                """UPDATE user_progress SET level = ?, level_lesson = ?, updated_at = ?
                WHERE user_id = ? AND level = ? AND level_lesson = ?""",
                (new.level, new.level_lesson, now, user_id, expected.level, expected.level_lesson),
            )
    if cursor.rowcount == 0:
        logger.warning("Progress for %s changed concurrently; update to %s rejected", user_id, new)
        raise ProgressConflict(f"Progress for {user_id} changed since it was read")


def _current_or_default(db_path: str, user_id: str | None) -> UserProgress:
    if not user_id or not str(user_id).strip():
        return UserProgress()
    return get_progress(db_path, str(user_id).strip()) or UserProgress()


def _advance(db_path: str, user_id: str, total: int, stored: UserProgress | None) -> UserProgress:
    current = stored or UserProgress()
    updated = next_progress(current, total)
    set_progress(db_path, user_id, updated, expected=stored)
    if updated.level > current.level:
        logger.info("Learner %s levelled up to %s", user_id, updated.level)
    else:
        logger.info("Learner %s at level %s, lesson %s", user_id, updated.level, updated.level_lesson)
    return updated


def advance_progress(db_path: str, user_id: str, total_lessons_in_module: int) -> UserProgress:
    """Record one finished lesson in the learner's current module.

    The caller supplies the lesson count of the current module.
    """
    user_id = _require_user(user_id)
    total = validate_lesson_total(total_lessons_in_module)
    return _advance(db_path, user_id, total, get_progress(db_path, user_id))


def reset_progress(db_path: str, user_id: str) -> None:
    user_id = _require_user(user_id)
    with transaction(db_path) as conn:
        conn.execute("DELETE FROM user_progress WHERE user_id = ?", (user_id,))
    logger.info("Reset progress for %s", user_id)


def _module_level(db_path: str, module_id: int) -> int:
    modules = list_modules(db_path)
    for module, level in zip(modules, resolve_module_levels(modules)):
        if module.id == module_id:
            return level
    raise NotFound(f"Module {module_id} not found")


def list_modules_for_learner(db_path: str, user_id: str | None) -> list[ModuleState]:
    """All modules with unlock flags. Anonymous callers see level 1 only."""
    progress = _current_or_default(db_path, user_id)
    return resolve_module_unlocks(list_modules(db_path), progress.level)


def list_lessons_for_learner(db_path: str, user_id: str | None, module_id: int) -> list[LessonState]:
    """Lessons of one module with unlock and completed flags."""
    get_module(db_path, module_id)
    progress = _current_or_default(db_path, user_id)
    return resolve_lesson_unlocks(
        list_lessons(db_path, module_id),
        _module_level(db_path, module_id),
        progress.level,
        progress.level_lesson,
    )


def get_current_lesson_count(db_path: str, user_id: str) -> int:
    """Lesson count of the learner's current module, 0 when there is none."""
    progress = _current_or_default(db_path, _require_user(user_id))
    module = get_module_by_level(db_path, progress.level)
    if module is None:
        return 0
    return count_lessons(db_path, module.id)


def get_next_lesson(db_path: str, user_id: str) -> Lesson | None:
    """The learner's frontier lesson, or None once every module is finished."""
    progress = _current_or_default(db_path, _require_user(user_id))
    module = get_module_by_level(db_path, progress.level)
    if module is None:
        return None
    for state in list_lessons_for_learner(db_path, user_id, module.id):
        if state.is_unlocked and not state.completed:
            return state.lesson
    return None


def complete_lesson(db_path: str, user_id: str, lesson_id: int) -> UserProgress:
    """Mark a lesson finished, advancing only when it is the learner's frontier lesson.

    Already-completed lessons leave progress unchanged; locked lessons are rejected.
    """
    user_id = _require_user(user_id)
    lesson = get_lesson(db_path, lesson_id)
    stored = get_progress(db_path, user_id)
    current = stored or UserProgress()
    module_level = _module_level(db_path, lesson.module_id)
    state = resolve_lesson_unlocks([lesson], module_level, current.level, current.level_lesson)[0]
    if state.completed:
        return current
    if not state.is_unlocked:
        raise InvalidArgument(f"Lesson {lesson_id} is locked")
    total = count_lessons(db_path, lesson.module_id)
    return _advance(db_path, user_id, total, stored)


def get_progress_display(db_path: str, user_id: str) -> ProgressDisplay:
    user_id = _require_user(user_id)
    progress = _current_or_default(db_path, user_id)
    module = get_module_by_level(db_path, progress.level)
    if module is None:
        logger.debug("No module at level %s for %s; showing zero progress", progress.level, user_id)
        total = 0
    else:
        total = count_lessons(db_path, module.id)
    return compute_progress_display(progress.level, progress.level_lesson, total)
