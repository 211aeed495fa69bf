from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.command import require_tools
from ..lib.driver import DriverBuild, clone_source, compile_driver, install_binary, reset_build_dir
from ..lib.env import PATHS, under_root
from ..state_store import record_decision

logger = logging.getLogger(__name__)


def driver_build_from_state(state: Dict[str, Any]) -> DriverBuild:
    cfg = state.get("config") or {}
    driver = (state.get("profile") or {}).get("driver") or {}

    name = str(driver.get("name") or "").strip()
    repo_url = str(driver.get("repo_url") or "").strip()
    if not name or not repo_url:
        raise RuntimeError("profile.driver.name and profile.driver.repo_url are required")

    return DriverBuild(
        name=name,
        repo_url=repo_url,
        work_dir=str(cfg.get("work_dir") or PATHS.work_dir),
        install_dir=under_root(str(cfg.get("target_root") or "/"), PATHS.install_dir),
        cmake_options=tuple(str(o) for o in (driver.get("cmake_options") or [])),
    )


class BuildDriverStep:
    step_id = "20_build_driver"

    def check(self, state: Dict[str, Any]) -> None:
        cfg = state.get("config") or {}
        require_tools(["git", "cmake", "make"], dry_run=bool(cfg.get("dry_run", False)))

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = state.get("config") or {}
        dry_run = bool(cfg.get("dry_run", False))

        build = driver_build_from_state(state)
        logger.info("Downloading and building %s...", build.name)

        clone_source(build, dry_run=dry_run)
        reset_build_dir(build, dry_run=dry_run)
        compile_driver(build, dry_run=dry_run)
        install_binary(build, dry_run=dry_run)

        record_decision(
            state,
            "driver",
            {"name": build.name, "source_dir": str(build.source_dir), "binary": str(build.installed_binary)},
        )
        return state
