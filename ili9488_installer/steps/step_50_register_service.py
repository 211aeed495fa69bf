from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.env import PATHS, under_root
from ..lib.rclocal import register_startup
from ..state_store import record_decision
from .step_40_configure_privileges import driver_name, require_boot_config_patched

logger = logging.getLogger(__name__)


class RegisterServiceStep:
    step_id = "50_register_service"

    def check(self, state: Dict[str, Any]) -> None:
        require_boot_config_patched(state)

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = state.get("config") or {}
        dry_run = bool(cfg.get("dry_run", False))
        target_root = str(cfg.get("target_root") or "/")

        name = driver_name(state)
        rc_local = under_root(target_root, PATHS.rc_local)

        logger.info("Configuring %s...", PATHS.rc_local)
        outcome = register_startup(
            rc_local,
            f"{PATHS.install_dir}/{name}",
            PATHS.driver_log,
            dry_run=dry_run,
        )

        record_decision(state, "rc_local", outcome)
        return state
