from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def start_line(binary: str, log_path: str) -> str:
    return f"{binary} >> {log_path} 2>&1 &"


def render_new_rc_local(binary: str, log_path: str) -> str:
    name = Path(binary).name
    return "\n".join(
        [
            "#!/bin/bash",
            "# rc.local",
            "# This script is executed at the end of each multi-user runlevel.",
            "",
            f"# Start {name}",
            start_line(binary, log_path),
            "",
            "exit 0",
            "",
        ]
    )


def insert_start_line(existing: str, binary: str, log_path: str) -> Optional[str]:
    """Return rc.local with the start block inserted, or None if already registered.

    The block goes before the last ``exit 0``; without one it is appended.
    """

    name = Path(binary).name
    if name in existing:
        return None

    block = ["", f"# Start {name}", start_line(binary, log_path)]
    lines = existing.splitlines()

    exit_idx = None
    for idx in range(len(lines) - 1, -1, -1):
        if lines[idx].strip() == "exit 0":
            exit_idx = idx
            break

    if exit_idx is None:
        lines.extend(block)
    else:
        lines[exit_idx:exit_idx] = block
    return "\n".join(lines) + "\n"


def register_startup(path: str, binary: str, log_path: str, *, dry_run: bool = False) -> str:
    """Ensure rc.local starts ``binary``. Returns created|updated|unchanged."""

    p = Path(path)
    if not p.exists():
        if not dry_run:
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text(render_new_rc_local(binary, log_path), encoding="utf-8")
            mode = p.stat().st_mode
            os.chmod(p, stat.S_IMODE(mode) | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        logger.info("%s %s", "Would create" if dry_run else "Created", str(p))
        return "created"

    updated = insert_start_line(p.read_text(encoding="utf-8"), binary, log_path)
    if updated is None:
        logger.info("%s already starts %s", str(p), Path(binary).name)
        return "unchanged"

    if not dry_run:
        p.write_text(updated, encoding="utf-8")
    logger.info("Registered %s in %s", Path(binary).name, str(p))
    return "updated"
