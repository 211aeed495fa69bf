from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.bootconfig import ConfigPatcher
from ..lib.env import PATHS, under_root
from ..lib.manifests import patch_request_from_profile
from ..lib.prompts import require_confirmation
from ..state_store import record_decision

logger = logging.getLogger(__name__)


class PatchBootConfigStep:
    step_id = "30_patch_boot_config"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = state.get("config") or {}
        profile = state.get("profile") or {}
        dry_run = bool(cfg.get("dry_run", False))
        target_root = str(cfg.get("target_root") or "/")

        logger.info("The boot configuration file (config.txt) will now be modified.")
        logger.info("Existing lines that are changed will be commented with a note.")
        require_confirmation(
            "Do you accept these changes and wish to proceed?",
            "No changes have been made to the configuration file. Process aborted.",
            assume_yes=bool(cfg.get("assume_yes", False)),
        )

        candidates = cfg.get("boot_config_candidates") or list(PATHS.boot_config_candidates)
        patcher = ConfigPatcher([under_root(target_root, str(c)) for c in candidates], dry_run=dry_run)
        report = patcher.apply(patch_request_from_profile(profile, today=patcher.today))

        record_decision(
            state,
            "boot_config",
            {
                "path": str(report.path),
                "changed": report.changed,
                "written": report.written,
                "changes": report.summary(),
            },
        )
        return state
