"""Process-wide logging configuration."""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import TimedRotatingFileHandler

from pythonjsonlogger import jsonlogger

from livepush import call_logging
from livepush.config import Settings


def build_handlers(settings: Settings) -> list[logging.Handler]:
    """Readable console output at the configured level plus a JSON log file."""
    log_level = getattr(logging, settings.log_level, logging.INFO)

    console_formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    json_formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        rename_fields={"asctime": "timestamp", "levelname": "level"},
        json_ensure_ascii=False,
    )

    os.makedirs(settings.log_dir, exist_ok=True)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(console_formatter)
    console_handler.setLevel(log_level)

    file_handler = TimedRotatingFileHandler(
        os.path.join(settings.log_dir, "livepush.log"),
        when="midnight",
        backupCount=7,
        encoding="utf-8",
    )
    file_handler.setFormatter(json_formatter)
    file_handler.setLevel(logging.DEBUG)
    return [console_handler, file_handler]


def setup_logging(settings: Settings) -> None:
    """Configure root logging once. A root logger that already has handlers is left alone."""
    call_logging.configure(settings.log_dir)

    root_logger = logging.getLogger()
    if root_logger.hasHandlers():
        return

    root_logger.setLevel(logging.DEBUG)
    for handler in build_handlers(settings):
        root_logger.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)

    root_logger.info("Logging initialised (console: text, file: json)")
