from __future__ import annotations

import logging
from typing import Optional

from config import get_log_level

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
HANDLER_NAME = "crypto-tracker"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a single stream handler to the root logger (idempotent)."""
    root = logging.getLogger()
    root.setLevel(level or get_log_level())
    if any(h.get_name() == HANDLER_NAME for h in root.handlers):
        return root
    stream = logging.StreamHandler()
    stream.set_name(HANDLER_NAME)
    stream.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(stream)
    return root
