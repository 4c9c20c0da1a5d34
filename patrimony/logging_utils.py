from __future__ import annotations

import atexit
import logging
import os
from pathlib import Path
from typing import Optional

from .config import default_config_dir

LOG_ENV = "PATRIMONY_LOG"

_LOGGER = logging.getLogger("patrimony")
_LOG_PATH: Path | None = None
_SHUTDOWN_REGISTERED = False


def log_dir() -> Path:
    return default_config_dir() / "logs"


def configure_logging(directory: Optional[Path] = None) -> Path:
    """Attach the file handler (and a debug stream handler on request) once."""

    global _LOG_PATH, _SHUTDOWN_REGISTERED

    if _LOG_PATH is None:
        target_dir = directory or log_dir()
        target_dir.mkdir(parents=True, exist_ok=True)
        _LOG_PATH = target_dir / "patrimony.log"
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")

        file_handler = logging.FileHandler(_LOG_PATH, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        _LOGGER.addHandler(file_handler)

        if os.environ.get(LOG_ENV, "").lower() == "debug":
            stream_handler = logging.StreamHandler()
            stream_handler.setLevel(logging.DEBUG)
            stream_handler.setFormatter(formatter)
            _LOGGER.addHandler(stream_handler)

        _LOGGER.setLevel(logging.DEBUG)
        _LOGGER.propagate = False
        _LOGGER.info("Session log initialised at %s", _LOG_PATH)

    if not _SHUTDOWN_REGISTERED:
        atexit.register(logging.shutdown)
        _SHUTDOWN_REGISTERED = True
    return _LOG_PATH


def get_log_path() -> Optional[Path]:
    return _LOG_PATH


__all__ = ["LOG_ENV", "log_dir", "configure_logging", "get_log_path"]
