from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


class CommandError(RuntimeError):
    """A command exited non-zero while ``check`` was on."""

    def __init__(self, argv: Sequence[str], returncode: int, stderr: str) -> None:
        super().__init__(f"Command failed ({returncode}): {fmt_argv(argv)}\n{stderr}")
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr


@dataclass(frozen=True)
class CmdResult:
    argv: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def _child_env(extra: Optional[Mapping[str, str]]) -> Dict[str, str]:
    env = dict(os.environ)
    env.update(extra or {})
    return env


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[str] = None,
    dry_run: bool = False,
) -> CmdResult:
    """Run an external command; every invocation is logged, output at DEBUG.

    In dry-run mode the command is only logged and reported as successful.
    """

    args = [str(a) for a in argv]
    where = f" (cwd={cwd})" if cwd else ""
    logger.info("CMD%s %s", where, fmt_argv(args))

    if dry_run:
        return CmdResult(argv=args, returncode=0)

    proc = subprocess.run(
        args,
        cwd=cwd,
        env=_child_env(env),
        text=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )
    result = CmdResult(argv=args, returncode=proc.returncode, stdout=proc.stdout or "", stderr=proc.stderr or "")

    for stream, text in (("STDOUT", result.stdout), ("STDERR", result.stderr)):
        if text.strip():
            logger.debug("%s %s", stream, text.strip())

    if check and not result.ok:
        raise CommandError(args, result.returncode, result.stderr)
    return result


def require_tools(names: Iterable[str], *, dry_run: bool = False) -> None:
    """Fail fast when a required executable is not on PATH."""

    missing = [n for n in names if shutil.which(n) is None]
    if not missing:
        return
    if dry_run:
        logger.info("Missing tools (ignored in dry-run): %s", ", ".join(missing))
        return
    raise RuntimeError(f"Required tools not found on PATH: {', '.join(missing)}")
