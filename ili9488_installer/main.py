from __future__ import annotations

import argparse
import logging
import os
from typing import Any, Dict, Optional

from .lib.env import PATHS
from .lib.manifests import load_profile
from .lib.prompts import UserAborted, require_confirmation
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import run_pipeline
from .state_store import ensure_defaults, load_state, save_state
from .steps import (
    BuildDriverStep,
    ConfigurePrivilegesStep,
    FinalizeRebootStep,
    InstallPackagesStep,
    PatchBootConfigStep,
    RegisterServiceStep,
)

logger = logging.getLogger(__name__)


DEFAULT_STATE_PATH = PATHS.state_default
TRANSIENT_CONFIG_KEYS = ("assume_yes", "dry_run")

INTRO = """\
TFT 4" Setup Script for ILI9488 on Raspberry Pi 4B
Targets 4" TFT displays with dimensions 480x320.
This process involves modifying system files, downloading files, and installing dependencies.
These changes may affect the functionality of your Raspberry Pi.
At the end of the process, your Raspberry Pi will automatically reboot.
"""


def build_steps():
    return [
        InstallPackagesStep(),
        BuildDriverStep(),
        PatchBootConfigStep(),
        ConfigurePrivilegesStep(),
        RegisterServiceStep(),
        FinalizeRebootStep(),
    ]


def run(
    *,
    state_path: str = DEFAULT_STATE_PATH,
    log_path: str = DEFAULT_LOG_PATH,
    config_overrides: Optional[Dict[str, Any]] = None,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    force: bool = False,
) -> Dict[str, Any]:
    """Run the installer pipeline, persisting state for resume."""

    actual_log_path = configure_logging(log_path=log_path)

    state = load_state(state_path)
    state.setdefault("config", {}).update(config_overrides or {})
    state = ensure_defaults(state)
    state["execution"]["log_path"] = actual_log_path
    dry_run = bool(state["config"].get("dry_run", False))

    try:
        state["profile"] = load_profile(state["config"].get("profile"))
        result = run_pipeline(
            state=state,
            steps=build_steps(),
            start_at=start_at,
            stop_after=stop_after,
            force=force,
        )
        state = result.state
        state["execution"]["summary"] = {
            "ran_steps": result.ran_steps,
            "skipped_steps": result.skipped_steps,
        }
        return state
    except UserAborted:
        logger.info("Aborted by operator at %s", state["execution"].get("current_step"))
        state["execution"]["current_step"] = None
        raise
    except Exception as e:
        logger.exception("Installer failed")
        state["execution"]["errors"].append(
            {
                "step": state["execution"].get("current_step"),
                "error": str(e),
            }
        )
        raise
    finally:
        # Per-invocation switches never persist; a dry run records nothing.
        for key in TRANSIENT_CONFIG_KEYS:
            state["config"].pop(key, None)
        if dry_run:
            logger.info("Dry run: state not saved to %s", state_path)
        else:
            save_state(state_path, state)


def is_root() -> bool:
    return os.geteuid() == 0


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="ili9488-installer")
    p.add_argument("--state", default=DEFAULT_STATE_PATH, help="Path to installer state (json|yaml)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to installer log")
    p.add_argument("--profile", default=None, help="Bundled profile name or path to a profile YAML")
    p.add_argument("--target-root", default=None, help="Apply file changes below this root (default /)")
    p.add_argument("--start-at", default=None, help="Start at step_id (e.g. 30_patch_boot_config)")
    p.add_argument("--stop-after", default=None, help="Stop after step_id")
    p.add_argument("--force", action="store_true", help="Re-run steps even if marked completed")
    p.add_argument("--yes", action="store_true", help="Answer yes to every confirmation prompt")
    p.add_argument("--dry-run", action="store_true", help="Log commands and edits without applying them")
    p.add_argument("--no-reboot", action="store_true", help="Skip the final reboot")

    args = p.parse_args(argv)

    if not args.dry_run and not is_root():
        print("This installer must be run as root. Use sudo ili9488-installer")
        return 1

    overrides: Dict[str, Any] = {}
    if args.profile:
        overrides["profile"] = args.profile
    if args.target_root:
        overrides["target_root"] = args.target_root
    if args.yes:
        overrides["assume_yes"] = True
    if args.dry_run:
        overrides["dry_run"] = True
    if args.no_reboot:
        overrides["finalize_reboot"] = False

    print(INTRO)
    try:
        require_confirmation(
            "Do you authorize this process and accept full responsibility for any changes?",
            "No changes have been made. Process aborted.",
            assume_yes=args.yes,
        )
        run(
            state_path=args.state,
            log_path=args.log,
            config_overrides=overrides,
            start_at=args.start_at,
            stop_after=args.stop_after,
            force=args.force,
        )
    except UserAborted as e:
        print(str(e))
        return 0
    return 0
