"""Runtime configuration and logging setup."""
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from rich.logging import RichHandler

from lexorial.db import DEFAULT_DB_PATH

DEFAULT_SLIDES_DIR = str(Path.home() / ".lexorial" / "slides")
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class Settings:
    db_path: str = DEFAULT_DB_PATH
    slides_dir: str = DEFAULT_SLIDES_DIR
    log_level: str = DEFAULT_LOG_LEVEL


def load_settings(env_file: str | None = None) -> Settings:
    """Build settings from the environment, reading a .env file first if present."""
    load_dotenv(env_file)
    return Settings(
        db_path=os.getenv("LEXORIAL_DB_PATH", DEFAULT_DB_PATH),
        slides_dir=os.getenv("LEXORIAL_SLIDES_DIR", DEFAULT_SLIDES_DIR),
        log_level=os.getenv("LEXORIAL_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
    )


def setup_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
