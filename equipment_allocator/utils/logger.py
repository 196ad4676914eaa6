"""Process logging for the allocator service.

All records go to stdout through a single named handler on the root logger,
so the ``app`` module and the ``equipment_allocator.*`` services share one
pipe-delimited stream.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Optional

from equipment_allocator.utils.config import get_settings


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
HANDLER_NAME = "equipment_allocator.stdout"


def _find_handler(root: logging.Logger) -> Optional[logging.Handler]:
    for handler in root.handlers:
        if handler.get_name() == HANDLER_NAME:
            return handler
    return None


def configure_logging(level: Optional[str] = None, stream: Optional[IO[str]] = None) -> logging.Handler:
    """Install the stdout handler, or re-level it if it is already installed.

    ``level`` falls back to ``Settings.log_level``. Calling this repeatedly
    never stacks handlers.
    """
    resolved_level = (level or get_settings().log_level).upper()
    root = logging.getLogger()

    handler = _find_handler(root)
    if handler is None:
        handler = logging.StreamHandler(stream or sys.stdout)
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    handler.setLevel(resolved_level)
    root.setLevel(resolved_level)
    return handler


def get_logger(name: str) -> logging.Logger:
    if _find_handler(logging.getLogger()) is None:
        configure_logging()
    return logging.getLogger(name)
