from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple

from .lib.env import PATHS

DEFAULT_LOG_PATH = PATHS.log_default
FALLBACK_LOG_NAME = "ili9488-installer.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_configured_path = None


def _open_log_file(log_path: str) -> Tuple[logging.Handler, str]:
    try:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path), log_path
    except OSError:
        # /var/log is read-only for non-root dry runs.
        fallback = str(Path.cwd() / FALLBACK_LOG_NAME)
        return logging.FileHandler(fallback), fallback


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
) -> str:
    """Send root logging to a file (and the console) once per process.

    Returns the file path actually used, which differs from ``log_path`` when
    that location is not writable.
    """

    global _configured_path
    if _configured_path is not None:
        return _configured_path

    root = logging.getLogger()
    root.setLevel(level)
    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")

    handler, chosen = _open_log_file(log_path)
    handlers = [handler]
    if also_console:
        handlers.append(logging.StreamHandler())
    for h in handlers:
        h.setFormatter(fmt)
        root.addHandler(h)

    _configured_path = chosen
    logging.getLogger(__name__).info("Logging initialized (requested=%s, actual=%s)", log_path, chosen)
    return chosen
