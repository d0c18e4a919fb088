from __future__ import annotations

import io
import logging as py_logging
from pathlib import Path

import pytest

import asyncassist.logging as aa_logging
from asyncassist.config import LOG_LEVEL_ENV, AsyncAssistConfig, load_config
from asyncassist.retry import retry


def test_warning_alias_maps_to_warning_level() -> None:
    logger = aa_logging.configure_logging("warning")

    assert logger.level == aa_logging.LOG_LEVELS["WARN"]


def test_unknown_log_level_falls_back_to_info() -> None:
    logger = aa_logging.configure_logging("not-a-level")

    assert logger.level == py_logging.INFO


def test_configure_logging_resets_existing_handlers() -> None:
    logger = aa_logging.configure_logging("INFO")
    first_handler_count = len(logger.handlers)
    assert first_handler_count == 1

    logger = aa_logging.configure_logging("INFO")
    second_handler_count = len(logger.handlers)

    assert second_handler_count == 1


def test_configure_logging_adds_debug_file_handler(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "asyncassist.log"

    logger = aa_logging.configure_logging("ERROR", log_file=log_file)
    file_handlers = [
        handler for handler in logger.handlers if isinstance(handler, py_logging.FileHandler)
    ]

    assert len(file_handlers) == 1
    assert file_handlers[0].level == py_logging.DEBUG
    assert log_file.exists()
    for handler in file_handlers:
        handler.close()


def test_configure_logging_ignores_file_handler_oserror(monkeypatch, tmp_path: Path) -> None:
    def raise_os_error(*args: object, **kwargs: object) -> py_logging.Handler:
        raise OSError("disk full")

    monkeypatch.setattr(aa_logging.py_logging, "FileHandler", raise_os_error)

    logger = aa_logging.configure_logging("INFO", log_file=tmp_path / "nope" / "asyncassist.log")

    assert len(logger.handlers) == 1
    assert type(logger.handlers[0]) is py_logging.StreamHandler


@pytest.mark.asyncio
async def test_retry_attempts_are_logged_at_debug() -> None:
    stream = io.StringIO()
    aa_logging.configure_logging("DEBUG", stream=stream)
    calls: list[int] = []

    def flaky() -> str:
        calls.append(1)
        if len(calls) < 2:
            raise RuntimeError("not yet")
        return "OK"

    assert await retry(flaky) == "OK"

    output = stream.getvalue()
    assert "Running attempt=1/4" in output
    assert "Attempt 1 failed" in output
    assert "Attempt 2 succeeded" in output
    aa_logging.configure_logging("INFO")


def test_configure_logging_from_loaded_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
    log_file = tmp_path / "logs" / "asyncassist.log"
    path = tmp_path / "config.toml"
    path.write_text(f'log_level = "debug"\nlog_file = "{log_file.as_posix()}"\n', encoding="utf-8")

    logger = aa_logging.configure_logging(load_config(path), stream=io.StringIO())

    assert logger.level == py_logging.DEBUG
    file_handlers = [
        handler for handler in logger.handlers if isinstance(handler, py_logging.FileHandler)
    ]
    assert len(file_handlers) == 1
    assert Path(file_handlers[0].baseFilename) == log_file
    aa_logging.configure_logging("INFO")
    assert not any(isinstance(handler, py_logging.FileHandler) for handler in logger.handlers)


def test_explicit_log_file_overrides_config(tmp_path: Path) -> None:
    cfg = AsyncAssistConfig(log_level="ERROR", log_file=str(tmp_path / "from-config.log"))
    override = tmp_path / "override.log"

    logger = aa_logging.configure_logging(cfg, log_file=override)

    assert logger.level == py_logging.ERROR
    assert override.exists()
    assert not (tmp_path / "from-config.log").exists()
    aa_logging.configure_logging("INFO")


def test_resolve_level_defaults_to_info() -> None:
    assert aa_logging.resolve_level(None) == py_logging.INFO
    assert aa_logging.resolve_level(" debug ") == py_logging.DEBUG
    assert aa_logging.resolve_level("loud") == py_logging.INFO
