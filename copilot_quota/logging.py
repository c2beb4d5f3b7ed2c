from __future__ import annotations

import logging
import os
from typing import List, Optional

_DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DEFAULT_DATEFMT = "%Y-%m-%dT%H:%M:%SZ"
_LIBRARY_LOGGER = "copilot_quota"


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None, fmt: str = _DEFAULT_FORMAT, datefmt: str = _DEFAULT_DATEFMT) -> None:
    """Configure root logger for the CLI scripts.

    Respect `LOG_LEVEL` env var when level is not supplied. When `log_file`
    (or `COPILOT_LOG_FILE`) is set, records are also appended to that file so
    watch mode leaves a trail of refresh cycles.
    """

    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    target = log_file or os.getenv("COPILOT_LOG_FILE")
    if target:
        handlers.append(logging.FileHandler(target, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format=fmt,
        datefmt=datefmt,
        handlers=handlers,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return module-specific logger.

    Library modules only attach a NullHandler; configuring output is the
    caller's job (see `setup_logging`).
    """

    logger = logging.getLogger(name)
    if name and name.startswith(_LIBRARY_LOGGER):
        root_lib = logging.getLogger(_LIBRARY_LOGGER)
        if not root_lib.handlers:
            root_lib.addHandler(logging.NullHandler())
    return logger
