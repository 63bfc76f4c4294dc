"""
Logging setup shared by the whole application.

`setup_logging` configures the `epoxiron` root logger once; modules get
children of it through `get_logger(__name__)`.
"""
import logging
import sys
import threading
from typing import Optional

LOG_NAME = "epoxiron"
LOG_FORMAT = "%(asctime)s [%(levelname)s] - (%(name)s).%(funcName)s(%(lineno)d) - %(message)s"

_lock = threading.Lock()
_configured = False


def setup_logging(level: str = "INFO", stream=None) -> logging.Logger:
    """Attach a console handler to the application logger (idempotent)."""
    global _configured
    root = logging.getLogger(LOG_NAME)

    with _lock:
        if not _configured:
            handler = logging.StreamHandler(stream or sys.stderr)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root.addHandler(handler)
            root.propagate = False
            _configured = True
        root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the application prefix."""
    if not name or name == LOG_NAME:
        return logging.getLogger(LOG_NAME)
    if name.startswith(LOG_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOG_NAME}.{name}")
