"""Tests for rc.local startup registration."""

from __future__ import annotations

import os
from pathlib import Path

from ili9488_installer.lib.rclocal import insert_start_line, register_startup

BINARY = "/usr/local/bin/fbcp-ili9341"
LOG = "/var/log/fbcp-ili9341.log"
START = f"{BINARY} >> {LOG} 2>&1 &"

DEBIAN_RC_LOCAL = """\
#!/bin/sh -e
#
# rc.local
#
# Print the IP address
_IP=$(hostname -I) || true
if [ "$_IP" ]; then
  printf "My IP address is %s\\n" "$_IP"
fi

exit 0
"""


class TestInsertStartLine:
    def test_inserts_before_exit_zero(self):
        out = insert_start_line(DEBIAN_RC_LOCAL, BINARY, LOG)
        assert out is not None
        lines = out.splitlines()
        assert lines[-4:] == ["", "# Start fbcp-ili9341", START, "exit 0"]

    def test_only_last_exit_zero_is_used(self):
        text = "if false; then\n  exit 0\nfi\nexit 0\n"
        out = insert_start_line(text, BINARY, LOG)
        assert out == "if false; then\n  exit 0\nfi\n\n# Start fbcp-ili9341\n" + START + "\nexit 0\n"

    def test_appends_without_exit_zero(self):
        out = insert_start_line("#!/bin/bash\n", BINARY, LOG)
        assert out == "#!/bin/bash\n\n# Start fbcp-ili9341\n" + START + "\n"

    def test_already_registered(self):
        out = insert_start_line(DEBIAN_RC_LOCAL, BINARY, LOG)
        assert insert_start_line(out, BINARY, LOG) is None


class TestRegisterStartup:
    def test_creates_executable_script(self, tmp_path: Path):
        rc = tmp_path / "etc" / "rc.local"
        assert register_startup(str(rc), BINARY, LOG) == "created"

        text = rc.read_text(encoding="utf-8")
        assert text.startswith("#!/bin/bash\n")
        assert START in text
        assert text.rstrip().endswith("exit 0")
        assert os.access(rc, os.X_OK)

    def test_updates_existing_once(self, tmp_path: Path):
        rc = tmp_path / "rc.local"
        rc.write_text(DEBIAN_RC_LOCAL, encoding="utf-8")

        assert register_startup(str(rc), BINARY, LOG) == "updated"
        first = rc.read_text(encoding="utf-8")
        assert register_startup(str(rc), BINARY, LOG) == "unchanged"
        assert rc.read_text(encoding="utf-8") == first

    def test_dry_run_writes_nothing(self, tmp_path: Path):
        rc = tmp_path / "rc.local"
        assert register_startup(str(rc), BINARY, LOG, dry_run=True) == "created"
        assert not rc.exists()
