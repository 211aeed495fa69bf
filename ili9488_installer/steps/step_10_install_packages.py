from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.command import require_tools
from ..lib.pkg import apt_install, apt_update, apt_upgrade
from ..state_store import record_decision

logger = logging.getLogger(__name__)


class InstallPackagesStep:
    step_id = "10_install_packages"

    def check(self, state: Dict[str, Any]) -> None:
        cfg = state.get("config") or {}
        require_tools(["apt-get"], dry_run=bool(cfg.get("dry_run", False)))

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = state.get("config") or {}
        profile = state.get("profile") or {}
        dry_run = bool(cfg.get("dry_run", False))

        packages = [str(p) for p in (profile.get("packages") or [])]

        logger.info("Updating the system and installing dependencies...")
        apt_update(dry_run=dry_run)
        if bool(cfg.get("apt_upgrade", True)):
            apt_upgrade(dry_run=dry_run)
        apt_install(packages, dry_run=dry_run)

        record_decision(state, "packages", packages)
        return state
