"""Per-lesson media: video link, slide file and flashcard link."""
import logging
import shutil
from datetime import datetime
from pathlib import Path

from lexorial.config import DEFAULT_SLIDES_DIR
from lexorial.content import get_lesson
from lexorial.db import transaction
from lexorial.errors import InvalidArgument, StorageFailure
from lexorial.models import FlashcardLink, LessonContent, Slide, Video
from lexorial.quiz import list_questions

logger = logging.getLogger(__name__)

ALLOWED_SLIDE_TYPES = {".pdf", ".png", ".jpg", ".jpeg"}
MAX_SLIDE_SIZE = 5 * 1024 * 1024  # 5 MB


def validate_slide_file(path: Path) -> None:
    if not path.is_file():
        raise InvalidArgument(f"Slide file not found: {path}")
    if path.suffix.lower() not in ALLOWED_SLIDE_TYPES:
        raise InvalidArgument("Unsupported file type")
    if path.stat().st_size > MAX_SLIDE_SIZE:
        raise InvalidArgument("File too large (max 5 MB)")


def get_lesson_content(db_path: str, lesson_id: int) -> LessonContent:
    lesson = get_lesson(db_path, lesson_id)
    with transaction(db_path) as conn:
        video = conn.execute("SELECT video_url FROM videos WHERE lesson_id = ?", (lesson_id,)).fetchone()
        slide = conn.execute("SELECT slide_url, file_path FROM slides WHERE lesson_id = ?", (lesson_id,)).fetchone()
        card = conn.execute("SELECT url FROM flashcard_links WHERE lesson_id = ?", (lesson_id,)).fetchone()
    return LessonContent(
        lesson=lesson,
        video=Video(lesson_id, video["video_url"]) if video else None,
        slide=Slide(lesson_id, slide["slide_url"], slide["file_path"]) if slide else None,
        flashcard=FlashcardLink(lesson_id, card["url"]) if card else None,
        questions=list_questions(db_path, lesson_id),
    )


def _store_slide(slide_file: Path, lesson_id: int, slides_dir: str) -> Path:
    target_dir = Path(slides_dir) / f"lesson-{lesson_id}"
    target_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d%H%M%S%f")
    target = target_dir / f"{stamp}-{slide_file.name}"
    shutil.copyfile(slide_file, target)
    return target


def _save_content(conn, lesson_id: int, video_url, flashcard_url, new_slide: Path | None):
    """Upsert the given entries; returns the replaced slide row, if any."""
    now = datetime.now().isoformat()
    if video_url:
        conn.execute(
            """INSERT INTO videos (lesson_id, video_url, created_at) VALUES (?, ?, ?)
            ON CONFLICT(lesson_id) DO UPDATE SET video_url = excluded.video_url""",
            (lesson_id, video_url, now),
        )
    if flashcard_url:
        conn.execute(
            """INSERT INTO flashcard_links (lesson_id, url, created_at) VALUES (?, ?, ?)
            ON CONFLICT(lesson_id) DO UPDATE SET url = excluded.url""",
            (lesson_id, flashcard_url, now),
        )
    if new_slide is None:
        return None
    old_slide = conn.execute("SELECT file_path FROM slides WHERE lesson_id = ?", (lesson_id,)).fetchone()
    conn.execute(
        """INSERT INTO slides (lesson_id, slide_url, file_path, created_at) VALUES (?, ?, ?, ?)
        ON CONFLICT(lesson_id) DO UPDATE SET slide_url = excluded.slide_url,
        file_path = excluded.file_path""",
        (lesson_id, new_slide.resolve().as_uri(), str(new_slide), now),
    )
    return old_slide


def update_lesson_content(
    db_path: str, lesson_id: int, video_url: str | None = None,
    flashcard_url: str | None = None, slide_file: str | Path | None = None,
    slides_dir: str = DEFAULT_SLIDES_DIR,
) -> LessonContent:
    """Set any of the lesson's video link, flashcard link and slide file.

    Empty values leave the existing entry untouched. A new slide replaces
    the old one, whose file is removed. If the database write fails the
    copied slide is removed again.
    """
    get_lesson(db_path, lesson_id)
    new_slide = None
    if slide_file:
        slide_path = Path(slide_file)
        validate_slide_file(slide_path)
        new_slide = _store_slide(slide_path, lesson_id, slides_dir)
    try:
        with transaction(db_path) as conn:
            old_slide = _save_content(conn, lesson_id, video_url, flashcard_url, new_slide)
    except StorageFailure:
        if new_slide is not None:
            new_slide.unlink(missing_ok=True)
        raise
    if old_slide is not None and old_slide["file_path"]:
        Path(old_slide["file_path"]).unlink(missing_ok=True)
        logger.info("Replaced slide for lesson %s", lesson_id)
    return get_lesson_content(db_path, lesson_id)
