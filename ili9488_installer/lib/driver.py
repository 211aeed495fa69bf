from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .command import run_cmd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DriverBuild:
    name: str
    repo_url: str
    work_dir: str
    install_dir: str
    cmake_options: Sequence[str] = ()

    @property
    def source_dir(self) -> Path:
        return Path(self.work_dir) / self.name

    @property
    def build_dir(self) -> Path:
        return self.source_dir / "build"

    @property
    def installed_binary(self) -> Path:
        return Path(self.install_dir) / self.name


def clone_source(build: DriverBuild, *, dry_run: bool = False) -> None:
    """Clone the driver repository unless a checkout already exists."""

    if build.source_dir.exists():
        logger.info("Reusing existing checkout %s", str(build.source_dir))
        return
    run_cmd(["git", "clone", build.repo_url, str(build.source_dir)], dry_run=dry_run)


def reset_build_dir(build: DriverBuild, *, dry_run: bool = False) -> None:
    if dry_run:
        logger.info("Would recreate %s", str(build.build_dir))
        return
    if build.build_dir.exists():
        shutil.rmtree(build.build_dir)
    build.build_dir.mkdir(parents=True)


def compile_driver(build: DriverBuild, *, dry_run: bool = False) -> None:
    cwd = str(build.build_dir)
    run_cmd(["cmake", *build.cmake_options, ".."], cwd=cwd, dry_run=dry_run)
    run_cmd(["make", f"-j{os.cpu_count() or 1}"], cwd=cwd, dry_run=dry_run)


def install_binary(build: DriverBuild, *, dry_run: bool = False) -> None:
    run_cmd(
        ["install", str(build.build_dir / build.name), build.install_dir + "/"],
        dry_run=dry_run,
    )
    logger.info("Installed %s", str(build.installed_binary))
