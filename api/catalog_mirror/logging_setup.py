# -*- coding: utf-8 -*-
from __future__ import annotations
import logging, logging.handlers, os
from pathlib import Path

LOG_FILE_NAME = "catalog_mirror.log"


def setup_logging(settings) -> Path:
    """Configure rotating file logging under LOG_DIR/catalog_mirror.log"""
    log_dir = Path(settings.LOG_DIR).expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILE_NAME
    level = logging.getLevelName(str(settings.LOG_LEVEL).upper())
    if not isinstance(level, int):
        level = logging.INFO

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s")
    handler = logging.handlers.RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
    handler.setFormatter(fmt)
    handler.setLevel(level)

    logger = logging.getLogger()  # root
    logger.setLevel(level)
    # avoid duplicate handlers
    if not any(_is_our_handler(h, log_path) for h in logger.handlers):
        logger.addHandler(handler)
    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(fmt)
        console.setLevel(level)
        logger.addHandler(console)

    # uvicorn configures its own loggers; route them into the same file
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        lg = logging.getLogger(name)
        lg.setLevel(level)
        if not any(_is_our_handler(h, log_path) for h in lg.handlers):
            lg.addHandler(handler)

    return log_path


def _is_our_handler(h: logging.Handler, log_path: Path) -> bool:
    return (
        isinstance(h, logging.handlers.RotatingFileHandler)
        and getattr(h, "baseFilename", "") == os.path.abspath(log_path)
    )
