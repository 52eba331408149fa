"""Import course outlines and lesson intros from files."""
import json
import logging
from pathlib import Path

import yaml

from lexorial.content import create_lesson, create_module, delete_module, update_lesson
from lexorial.errors import InvalidArgument
from lexorial.lesson_content import update_lesson_content
from lexorial.quiz import create_question

logger = logging.getLogger(__name__)


def read_outline(file_path: str) -> dict:
    """Parse a JSON or YAML course outline into a dict with a "modules" list."""
    path = Path(file_path)
    suffix = path.suffix.lower()
    if suffix == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
    elif suffix in (".yaml", ".yml"):
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    else:
        raise InvalidArgument(f"Unsupported outline format: {suffix or path.name}")
    if not isinstance(data, dict) or not isinstance(data.get("modules"), list):
        raise InvalidArgument(f"{path.name} has no modules list")
    return data


def _import_lessons(db_path: str, module_id: int, lessons: list, counts: dict) -> None:
    for les in lessons:
        lesson = create_lesson(db_path, module_id, les.get("title"), les.get("order_index"), les.get("intro"))
        counts["lessons"] += 1
        if les.get("video_url") or les.get("flashcard_url"):
            update_lesson_content(
                db_path, lesson.id, video_url=les.get("video_url"),
                flashcard_url=les.get("flashcard_url"),
            )
        for q in les.get("questions", []):
            create_question(
                db_path, lesson.id, q.get("question_text"), q.get("question_type"),
                choices=q.get("choices"), accepted_answers=q.get("accepted_answers"),
            )
            counts["questions"] += 1


def import_outline(db_path: str, data: dict) -> dict:
    """Create modules, lessons, media links and questions from an outline dict.

    All or nothing: if any entry fails, the modules created so far are
    deleted with their lessons and questions before the error propagates.
    """
    counts = {"modules": 0, "lessons": 0, "questions": 0}
    created = []
    try:
        for mod in data["modules"]:
            module = create_module(db_path, mod.get("title"), mod.get("description", ""), mod.get("level"))
            created.append(module.id)
            counts["modules"] += 1
            _import_lessons(db_path, module.id, mod.get("lessons", []), counts)
    except Exception:
        for module_id in created:
            delete_module(db_path, module_id)
        logger.warning("Import failed; removed %s partially imported modules", len(created))
        raise
    return counts


def import_course(db_path: str, file_path: str) -> dict:
    counts = import_outline(db_path, read_outline(file_path))
    logger.info(
        "Imported %s: %s modules, %s lessons, %s questions",
        Path(file_path).name, counts["modules"], counts["lessons"], counts["questions"],
    )
    return {"filename": Path(file_path).name, **counts}


def read_intro_text(file_path: str) -> str:
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix in (".txt", ".md"):
        return path.read_text(encoding="utf-8")
    elif suffix == ".pdf":
        from PyPDF2 import PdfReader
        reader = PdfReader(file_path)
        return "\n".join(page.extract_text() or "" for page in reader.pages)
    elif suffix == ".docx":
        from docx import Document
        doc = Document(file_path)
        return "\n".join(p.text for p in doc.paragraphs)
    elif suffix in (".html", ".htm"):
        from bs4 import BeautifulSoup
        html = path.read_text(encoding="utf-8")
        return BeautifulSoup(html, "html.parser").get_text()
    raise InvalidArgument(f"Unsupported intro format: {suffix or path.name}")


def import_lesson_intro(db_path: str, lesson_id: int, file_path: str) -> int:
    """Replace a lesson's intro with the text of a document. Returns its length."""
    text = read_intro_text(file_path).strip()
    update_lesson(db_path, lesson_id, intro=text)
    logger.info("Imported intro for lesson %s from %s", lesson_id, Path(file_path).name)
    return len(text)
