"""Tests for the logged command runner."""

from __future__ import annotations

import sys

import pytest

from ili9488_installer.lib import command
from ili9488_installer.lib.command import CommandError, require_tools, run_cmd


class TestRunCmd:
    def test_captures_output(self):
        res = run_cmd([sys.executable, "-c", "print('hello')"])
        assert res.returncode == 0
        assert res.stdout.strip() == "hello"

    def test_failure_raises_with_returncode(self):
        with pytest.raises(CommandError) as exc:
            run_cmd([sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"])
        assert exc.value.returncode == 3
        assert "bad" in str(exc.value)

    def test_check_false_returns_result(self):
        res = run_cmd([sys.executable, "-c", "import sys; sys.exit(2)"], check=False)
        assert res.returncode == 2

    def test_env_is_merged(self):
        res = run_cmd(
            [sys.executable, "-c", "import os; print(os.environ['ILI_TEST'])"],
            env={"ILI_TEST": "42"},
        )
        assert res.stdout.strip() == "42"

    def test_dry_run_does_not_execute(self, monkeypatch):
        def boom(*args, **kwargs):
            raise AssertionError("should not run")

        monkeypatch.setattr(command.subprocess, "run", boom)
        res = run_cmd(["reboot"], dry_run=True)
        assert res.returncode == 0
        assert res.argv == ["reboot"]


class TestRequireTools:
    def test_present(self, monkeypatch):
        monkeypatch.setattr(command.shutil, "which", lambda name: f"/usr/bin/{name}")
        require_tools(["git", "cmake"])

    def test_missing_raises(self, monkeypatch):
        monkeypatch.setattr(command.shutil, "which", lambda name: None if name == "cmake" else "/usr/bin/git")
        with pytest.raises(RuntimeError, match="cmake"):
            require_tools(["git", "cmake"])

    def test_missing_ignored_in_dry_run(self, monkeypatch):
        monkeypatch.setattr(command.shutil, "which", lambda name: None)
        require_tools(["git"], dry_run=True)
