from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.env import PATHS, under_root
from ..lib.privileges import set_setuid, write_sudoers_rule
from ..state_store import is_step_completed, record_decision

logger = logging.getLogger(__name__)


def driver_name(state: Dict[str, Any]) -> str:
    driver = (state.get("profile") or {}).get("driver") or {}
    name = str(driver.get("name") or "").strip()
    if not name:
        raise RuntimeError("profile.driver.name is missing")
    return name


def require_boot_config_patched(state: Dict[str, Any]) -> None:
    if not is_step_completed(state, "30_patch_boot_config"):
        raise RuntimeError("Boot configuration not patched; run 30_patch_boot_config first")


class ConfigurePrivilegesStep:
    step_id = "40_configure_privileges"

    def check(self, state: Dict[str, Any]) -> None:
        require_boot_config_patched(state)

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = state.get("config") or {}
        dry_run = bool(cfg.get("dry_run", False))
        target_root = str(cfg.get("target_root") or "/")

        name = driver_name(state)
        binary = f"{PATHS.install_dir}/{name}"

        logger.info("Setting permissions in sudoers...")
        sudoers_path = under_root(target_root, f"{PATHS.sudoers_dir}/{name}")
        written = write_sudoers_rule(sudoers_path, binary, dry_run=dry_run)

        logger.info("Configuring permissions for %s...", name)
        set_setuid(under_root(target_root, binary), dry_run=dry_run)

        record_decision(state, "sudoers", {"path": sudoers_path, "written": written})
        return state
