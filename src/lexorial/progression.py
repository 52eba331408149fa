"""Level-based unlock rules for modules and lessons.

Everything here is a pure function of the values passed in: no database
access and no shared state, so the same inputs always give the same output.
"""
from typing import Optional, Sequence

from lexorial.errors import InvalidArgument
from lexorial.models import (
    Lesson, LessonState, Module, ModuleState, ProgressDisplay, UserProgress,
)


def resolve_module_levels(modules: Sequence[Module]) -> list[int]:
    """Return the effective level of each module, in the given order.

    A module without a level takes its 1-based position in the sequence.
    """
    return [
        m.level if m.level is not None else i
        for i, m in enumerate(modules, 1)
    ]


def resolve_module_unlocks(modules: Sequence[Module], learner_level: int = 1) -> list[ModuleState]:
    """Flag each module as unlocked when its level is at or below the learner's."""
    levels = resolve_module_levels(modules)
    return [
        ModuleState(module=m, level=level, is_unlocked=level <= learner_level)
        for m, level in zip(modules, levels)
    ]


def resolve_lesson_unlocks(
    lessons: Sequence[Lesson],
    module_level: int,
    learner_level: int,
    learner_level_lesson: int,
) -> list[LessonState]:
    """Flag each lesson of one module as unlocked and/or completed.

    Args:
        lessons: Lessons of the module, ordered by order_index.
        module_level: Effective level of the owning module.
        learner_level: The learner's current level.
        learner_level_lesson: Lessons finished in the learner's current module.

    Returns:
        One LessonState per lesson, same order. Past modules are fully open
        and completed, future modules fully locked. In the current module
        the finished lessons plus the next one are open.
    """
    states = []
    for lesson in lessons:
        if module_level < learner_level:
            unlocked, completed = True, True
        elif module_level == learner_level:
            unlocked = lesson.order_index <= learner_level_lesson + 1
            completed = lesson.order_index <= learner_level_lesson
        else:
            unlocked, completed = False, False
        states.append(LessonState(lesson=lesson, is_unlocked=unlocked, completed=completed))
    return states


def validate_lesson_total(total_lessons_in_module) -> int:
    if isinstance(total_lessons_in_module, bool) or not isinstance(total_lessons_in_module, int):
        raise InvalidArgument("total_lessons_in_module must be a positive integer")
    if total_lessons_in_module <= 0:
        raise InvalidArgument("total_lessons_in_module must be a positive integer")
    return total_lessons_in_module


def next_progress(current: UserProgress, total_lessons_in_module: int) -> UserProgress:
    """Counters after finishing one lesson of the current module.

    Finishing the last lesson rolls over to the next level with zero lessons
    done. Raises InvalidArgument when the lesson total is not positive.
    """
    total = validate_lesson_total(total_lessons_in_module)
    level = current.level
    level_lesson = current.level_lesson + 1
    if level_lesson >= total:
        level += 1
        level_lesson = 0
    return UserProgress(level=level, level_lesson=level_lesson)


def compute_progress_display(
    level: int, level_lesson: int, total_lessons_in_current_module: Optional[int],
) -> ProgressDisplay:
    """Percentage through the current module and the level to show.

    A learner who has just rolled over is shown at the level they finished.
    """
    if not total_lessons_in_current_module or total_lessons_in_current_module <= 0:
        module_progress = 0.0
    else:
        module_progress = round(min(level_lesson / total_lessons_in_current_module * 100, 100.0), 1)
    if level_lesson == 0 and level > 1:
        display_level = level - 1
    else:
        display_level = level
    return ProgressDisplay(display_level=display_level, module_progress=module_progress)
