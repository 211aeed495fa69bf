from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

logger = logging.getLogger(__name__)

SUDOERS_MODE = 0o440


def sudoers_rule(binary: str) -> str:
    return f"ALL ALL=(ALL) NOPASSWD: {binary}\n"


def write_sudoers_rule(path: str, binary: str, *, dry_run: bool = False) -> bool:
    """Create the sudoers drop-in if absent. Returns True when written."""

    p = Path(path)
    if p.exists():
        logger.info("Sudoers rule already present: %s", str(p))
        return False
    if dry_run:
        logger.info("Would write %s", str(p))
        return False
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(sudoers_rule(binary), encoding="utf-8")
    os.chmod(p, SUDOERS_MODE)
    logger.info("Wrote sudoers rule %s", str(p))
    return True


def set_setuid(binary: str, *, dry_run: bool = False) -> None:
    """Equivalent of ``chmod u+s``."""

    p = Path(binary)
    if dry_run:
        logger.info("Would set setuid bit on %s", str(p))
        return
    if not p.exists():
        raise RuntimeError(f"Driver binary missing: {p}")
    mode = p.stat().st_mode
    os.chmod(p, stat.S_IMODE(mode) | stat.S_ISUID)
