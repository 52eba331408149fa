"""Seed the database with the packaged starter course."""
import json
from pathlib import Path

from lexorial.db import get_connection
from lexorial.importer import import_outline

DATA_DIR = Path(__file__).parent / "data"


def is_seeded(db_path: str) -> bool:
    """Check whether the database already holds any modules."""
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM modules").fetchone()[0]
    conn.close()
    return count > 0


def load_starter_course() -> dict:
    return json.loads((DATA_DIR / "starter_course.json").read_text(encoding="utf-8"))


def seed_all(db_path: str) -> None:
    """Load the starter course unless content already exists."""
    if is_seeded(db_path):
        return
    import_outline(db_path, load_starter_course())
