"""
Logging setup for the EventPros API.

Everything logs through the root logger: matching and budget services
report match runs and seeded breakdowns, ``AuditService``
warns when an audit row cannot be written, and the error handlers log
unhandled exceptions with their traceback.  ``LOG_LEVEL`` and
``LOG_FILE`` control the output (see ``core.config``).
"""

import logging
from pathlib import Path
from typing import Optional


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Per-request access lines from uvicorn drown out service messages at DEBUG.
NOISY_LOGGERS = ("uvicorn.access",)


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Attach console (and optional file) handlers to the root logger.

    Does nothing when the root logger already has handlers, so pytest's
    capture and repeated ``create_app()`` calls keep their own setup.
    Unknown level names fall back to ``INFO``.  The directory for
    ``logfile`` is created if it does not exist.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric_level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if logfile:
        log_path = Path(logfile).resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.INFO))
