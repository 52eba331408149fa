import logging

import pytest
from rich.logging import RichHandler

from lexorial.config import DEFAULT_LOG_LEVEL, DEFAULT_SLIDES_DIR, load_settings, setup_logging
from lexorial.db import DEFAULT_DB_PATH

ENV_VARS = ("LEXORIAL_DB_PATH", "LEXORIAL_SLIDES_DIR", "LEXORIAL_LOG_LEVEL")


@pytest.fixture
def clean_env(monkeypatch):
    # set first so monkeypatch restores the variable's absence afterwards
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_defaults(clean_env, tmp_path):
    settings = load_settings(str(tmp_path / "missing.env"))
    assert settings.db_path == DEFAULT_DB_PATH
    assert settings.slides_dir == DEFAULT_SLIDES_DIR
    assert settings.log_level == DEFAULT_LOG_LEVEL


def test_environment_overrides(clean_env, tmp_path):
    clean_env.setenv("LEXORIAL_DB_PATH", str(tmp_path / "x.db"))
    clean_env.setenv("LEXORIAL_LOG_LEVEL", "debug")
    settings = load_settings(str(tmp_path / "missing.env"))
    assert settings.db_path == str(tmp_path / "x.db")
    assert settings.log_level == "DEBUG"


def test_env_file(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(f"LEXORIAL_SLIDES_DIR={tmp_path / 'slides'}\nLEXORIAL_LOG_LEVEL=info\n")
    settings = load_settings(str(env_file))
    assert settings.slides_dir == str(tmp_path / "slides")
    assert settings.log_level == "INFO"


def test_environment_wins_over_env_file(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("LEXORIAL_LOG_LEVEL=info\n")
    clean_env.setenv("LEXORIAL_LOG_LEVEL", "ERROR")
    assert load_settings(str(env_file)).log_level == "ERROR"


def test_setup_logging(restore_root_logger):
    setup_logging("debug")
    assert restore_root_logger.level == logging.DEBUG
    assert isinstance(restore_root_logger.handlers[0], RichHandler)


def test_setup_logging_unknown_level(restore_root_logger):
    setup_logging("chatty")
    assert restore_root_logger.level == logging.WARNING
