"""
Logging configuration for SurfVis scripts.

Usage:
    from surfvis.utils import setup_logging

    setup_logging()                       # INFO to stderr
    setup_logging(debug=True)             # DEBUG, includes per-ray output
    setup_logging(log_file="vis.log")     # also write a rotating log file
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

MAX_BYTES = 5 * 1024 * 1024  # 5 MB
BACKUP_COUNT = 3


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    fmt: str = DEFAULT_FORMAT,
    debug: bool = False,
) -> None:
    """Configure the root logger. Call once at the start of a script."""
    if debug:
        level = logging.DEBUG

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(log_file, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT)
        )
    logging.basicConfig(level=level, format=fmt, handlers=handlers, force=True)
