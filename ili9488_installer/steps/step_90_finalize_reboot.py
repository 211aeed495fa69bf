from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.command import run_cmd
from .step_40_configure_privileges import driver_name

logger = logging.getLogger(__name__)


class FinalizeRebootStep:
    step_id = "90_finalize_reboot"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = state.get("config") or {}
        dry_run = bool(cfg.get("dry_run", False))

        logger.info("Finalize summary: %s", (state.get("execution") or {}).get("decisions") or {})

        # A running instance would hold the SPI bus; rc.local starts a fresh one after boot.
        run_cmd(["killall", "-9", driver_name(state)], check=False, dry_run=dry_run)
        run_cmd(["sync"], dry_run=dry_run)

        if bool(cfg.get("finalize_reboot", True)):
            logger.info("Setup complete. The Raspberry Pi will now reboot.")
            run_cmd(["reboot"], dry_run=dry_run)
        else:
            logger.info("Setup complete. Reboot skipped; reboot manually to enable the display.")

        return state
