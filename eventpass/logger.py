from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_FILENAME = "eventpass.log"
MAX_LOG_BYTES = 1_000_000
LOG_BACKUPS = 3


def _resolve_level(debug: bool, level: str | int | None) -> int:
    if debug:
        return logging.DEBUG
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level {level!r}")
    return value


def setup_logging(debug: bool = False,
                  log_dir: Path | None = None,
                  level: str | int | None = None,
                  filename: str = LOG_FILENAME) -> logging.Logger:
    """Configure the ``eventpass`` logger once; later calls return it unchanged.

    ``debug`` wins over ``level``. Pillow's own logger stays at WARNING.
    """
    log = logging.getLogger("eventpass")
    if getattr(log, "_configured", False):  # idempotent
        return log

    lvl = _resolve_level(debug, level)
    log.setLevel(lvl)
    logging.getLogger("PIL").setLevel(logging.WARNING)

    fmt = logging.Formatter(LOG_FORMAT)

    ch = logging.StreamHandler()
    ch.setLevel(lvl)
    ch.setFormatter(fmt)
    log.addHandler(ch)

    log_dir = log_dir or Path.cwd() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = RotatingFileHandler(log_dir / (filename or LOG_FILENAME), maxBytes=MAX_LOG_BYTES,
                             backupCount=LOG_BACKUPS, encoding="utf-8")
    fh.setLevel(lvl)
    fh.setFormatter(fmt)
    log.addHandler(fh)

    setattr(log, "_configured", True)
    log.debug("Logging initialized at %s", logging.getLevelName(lvl))
    return log
