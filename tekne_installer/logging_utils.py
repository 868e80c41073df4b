from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_LOG_DIR = "/tmp"
LOG_PREFIX = "tekne-installer"
LOG_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured_path: Optional[str] = None


def run_log_path(log_dir: str = DEFAULT_LOG_DIR, *, now: Optional[datetime] = None) -> str:
    """Return the run-scoped log path derived from the invocation timestamp."""

    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return str(Path(log_dir) / f"{LOG_PREFIX}_{stamp}.log")


def _open_log_file(log_path: str) -> Tuple[logging.FileHandler, str]:
    target = Path(log_path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(target, encoding="utf-8"), str(target)
    except OSError:
        # Read-only or missing log dir on the live medium: keep the name, use cwd.
        fallback = Path.cwd() / target.name
        return logging.FileHandler(fallback, encoding="utf-8"), str(fallback)


def configure_logging(log_path: str, level: int = logging.INFO, also_console: bool = True) -> str:
    """Send every record to the run log and (by default) the console.

    Lines read ``[YYYY-mm-dd HH:MM:SS] LEVEL: message`` in both places, so a
    fatal condition shows up as an ``ERROR:`` line the operator can grep.
    Only the first call installs handlers; later calls return the path
    already in use. Returns the file actually written to.
    """

    global _configured_path

    root = logging.getLogger()
    root.setLevel(level)
    if _configured_path is not None:
        return _configured_path

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    file_handler, actual = _open_log_file(log_path)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    if also_console:
        stream = logging.StreamHandler()
        stream.setFormatter(formatter)
        root.addHandler(stream)

    _configured_path = actual
    if actual != str(Path(log_path)):
        logging.getLogger(__name__).warning("Could not open %s; logging to %s instead", log_path, actual)
    return actual
