"""Learner progress dashboard figures."""
from lexorial.progress import get_progress_display, list_lessons_for_learner, list_modules_for_learner


def get_progress_label(percent: float) -> str:
    if percent >= 100:
        return "COMPLETE"
    elif percent >= 50:
        return "HALFWAY"
    elif percent > 0:
        return "STARTED"
    return "NOT STARTED"


def get_progress_color(percent: float) -> str:
    if percent >= 100:
        return "green"
    elif percent >= 50:
        return "yellow"
    elif percent > 0:
        return "dark_orange"
    return "red"


def get_module_breakdown(db_path: str, user_id: str) -> list[dict]:
    results = []
    for state in list_modules_for_learner(db_path, user_id):
        lessons = list_lessons_for_learner(db_path, user_id, state.module.id)
        completed = sum(1 for s in lessons if s.completed)
        pct = round(completed / len(lessons) * 100, 1) if lessons else 0.0
        results.append({
            "module_id": state.module.id,
            "title": state.module.title,
            "level": state.level,
            "is_unlocked": state.is_unlocked,
            "lessons": len(lessons),
            "completed": completed,
            "percent": pct,
            "label": get_progress_label(pct),
        })
    return results


def get_learner_summary(db_path: str, user_id: str) -> dict:
    display = get_progress_display(db_path, user_id)
    breakdown = get_module_breakdown(db_path, user_id)
    total_lessons = sum(m["lessons"] for m in breakdown)
    return {
        "display_level": display.display_level,
        "module_progress": display.module_progress,
        "lessons_completed": sum(m["completed"] for m in breakdown),
        "total_lessons": total_lessons,
        "modules_completed": sum(1 for m in breakdown if m["lessons"] and m["completed"] == m["lessons"]),
        "total_modules": len(breakdown),
    }
