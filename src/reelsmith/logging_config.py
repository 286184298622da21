"""Process-wide logging setup."""

import logging

from reelsmith.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a single stream handler on the root logger."""
    root = logging.getLogger()
    root.setLevel((level or get_settings().log_level).upper())
    if not any(getattr(h, "_reelsmith", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._reelsmith = True
        root.addHandler(handler)
