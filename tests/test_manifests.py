"""Tests for profile loading and patch request construction."""

from __future__ import annotations

from pathlib import Path

import pytest

from ili9488_installer.lib.manifests import load_profile, patch_request_from_profile


class TestLoadProfile:
    def test_bundled_profile(self, profile):
        assert profile["name"] == "ili9488-480x320"
        assert profile["packages"] == ["cmake", "git", "build-essential", "nano"]
        assert profile["driver"]["repo_url"] == "https://github.com/juj/fbcp-ili9341.git"
        assert "-DILI9488=ON" in profile["driver"]["cmake_options"]

    def test_profile_from_path(self, tmp_path: Path):
        p = tmp_path / "custom.yaml"
        p.write_text("name: custom\npackages: [git]\n", encoding="utf-8")
        assert load_profile(str(p)) == {"name": "custom", "packages": ["git"]}

    def test_missing_profile_path_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_profile(str(tmp_path / "nope.yaml"))

    def test_non_mapping_profile_rejected(self, tmp_path: Path):
        p = tmp_path / "list.yml"
        p.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_profile(str(p))


class TestPatchRequestFromProfile:
    def test_operation_order(self, profile, today):
        request = patch_request_from_profile(profile, today=today)
        ops = [op.op for op in request.operations]

        assert ops[:3] == ["comment_out", "comment_out", "annotate"]
        assert ops[-3:] == ["annotate", "annotate", "annotate"]
        assert ops.count("upsert") == 12

    def test_header_date_substituted(self, profile, today):
        request = patch_request_from_profile(profile, today=today)
        header = request.operations[2]
        assert header.text == "#Modifications for ILI9488 installation implemented by the script on 12/14/2024"

    def test_settings_split_on_first_equals(self, profile, today):
        request = patch_request_from_profile(profile, today=today)
        upserts = [(op.key, op.value) for op in request.operations if op.op == "upsert"]
        assert upserts[1] == ("dtparam", "spi=on")
        assert upserts[3] == ("hdmi_cvt", "480 320 60 1 0 0 0")

    def test_comment_out_carries_dated_annotation(self, profile, today):
        request = patch_request_from_profile(profile, today=today)
        first = request.operations[0]
        assert first.text == "max_framebuffers=2"
        assert first.annotation == "line commented for TFT ILI9488 installation on 12/14/2024"

    def test_mapping_settings_and_custom_multi_keys(self, today):
        profile = {
            "boot_config": {
                "multi_value_keys": ["dtoverlay"],
                "settings": [{"key": "gpu_mem", "value": 128}, "disable_splash"],
            }
        }
        request = patch_request_from_profile(profile, today=today)
        assert [(op.key, op.value) for op in request.operations] == [
            ("gpu_mem", "128"),
            ("disable_splash", ""),
        ]
        assert request.multi_value_keys == frozenset({"dtoverlay"})

    def test_defaults_multi_value_keys(self, today):
        request = patch_request_from_profile({}, today=today)
        assert request.operations == ()
        assert request.multi_value_keys == frozenset({"dtoverlay", "dtparam"})
