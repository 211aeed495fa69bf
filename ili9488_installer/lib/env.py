from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Paths:
    target_root: str = "/"
    state_default: str = "/var/lib/ili9488-installer/state.json"
    log_default: str = "/var/log/ili9488-installer.log"
    # Bookworm moved config.txt under /boot/firmware; older images keep /boot.
    boot_config_candidates: Tuple[str, ...] = ("/boot/firmware/config.txt", "/boot/config.txt")
    work_dir: str = "/root"
    install_dir: str = "/usr/local/bin"
    sudoers_dir: str = "/etc/sudoers.d"
    rc_local: str = "/etc/rc.local"
    driver_log: str = "/var/log/fbcp-ili9341.log"


PATHS = Paths()


def under_root(target_root: str, path: str) -> str:
    """Re-anchor an absolute system path below ``target_root``."""

    if not target_root or target_root == "/":
        return path
    return f"{target_root.rstrip('/')}/{path.lstrip('/')}"
