"""Shared fixtures: sample boot configs, a fixed date and a fake subprocess runner."""

from __future__ import annotations

import datetime as dt
import subprocess
from pathlib import Path
from typing import Any, Dict, List

import pytest

from ili9488_installer.lib import command
from ili9488_installer.lib.manifests import load_profile
from ili9488_installer.state_store import ensure_defaults

STOCK_CONFIG = """\
# For more options and information see
# http://rptl.io/configtxt
dtparam=audio=on
#dtparam=spi=on
camera_auto_detect=1
dtoverlay=vc4-kms-v3d
max_framebuffers=2
#hdmi_mode=1
arm_64bit=1

[all]
"""


class FakeRunner:
    """Stands in for subprocess.run and records every argv."""

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.returncodes: Dict[str, int] = {}

    def __call__(self, argv, **kwargs):
        self.calls.append({"argv": list(argv), "cwd": kwargs.get("cwd"), "env": kwargs.get("env")})
        rc = self.returncodes.get(argv[0], 0)
        return subprocess.CompletedProcess(argv, rc, stdout="", stderr="boom" if rc else "")

    @property
    def argvs(self) -> List[List[str]]:
        return [c["argv"] for c in self.calls]


@pytest.fixture
def today() -> dt.date:
    return dt.date(2024, 12, 14)


@pytest.fixture
def stock_config() -> str:
    return STOCK_CONFIG


@pytest.fixture
def fake_runner(monkeypatch) -> FakeRunner:
    runner = FakeRunner()
    monkeypatch.setattr(command.subprocess, "run", runner)
    return runner


@pytest.fixture
def profile() -> Dict[str, Any]:
    return load_profile()


@pytest.fixture
def target_root(tmp_path: Path) -> Path:
    root = tmp_path / "root"
    root.mkdir()
    return root


@pytest.fixture
def make_state(profile, target_root):
    def _make(**config: Any) -> Dict[str, Any]:
        state = ensure_defaults({"config": {"target_root": str(target_root), **config}})
        state["profile"] = profile
        return state

    return _make
