"""Idempotent editing of the Raspberry Pi boot configuration file (config.txt).

The file is tokenized into ``ConfigLine`` records once, patched in memory by
pure functions that take a ``ConfigDocument`` and return a new one, and written
back in a single atomic replace.

Upsert resolution order (lines claimed earlier in the same run are skipped):

1. active ``key=value`` already present -> kept as is
2. first active ``key...`` line -> rewritten
3. commented ``#key=value`` -> uncommented
4. first commented ``#key...`` line -> uncommented and rewritten
5. otherwise ``key=value`` is appended

Multi-value keys (``dtoverlay``, ``dtparam``) skip steps 2 and 4 so that
several overlays sharing a key name never clobber each other.

Line endings (LF or CRLF) and bytes that are not valid UTF-8 survive the
read/patch/write round trip.
"""

from __future__ import annotations

import datetime as _dt
import logging
import os
import re
import shutil
import tempfile
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Literal, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

COMMENT_MARKER = "#"
DEFAULT_MULTI_VALUE_KEYS = frozenset({"dtoverlay", "dtparam"})
DATE_FORMAT = "%m/%d/%Y"

# config.txt keys: dtoverlay, hdmi_cvt, arm_64bit, hdmi_mode:1, ...
_KEY_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_.:\-]*")


class BootConfigError(RuntimeError):
    pass


class ConfigFileNotFound(BootConfigError):
    pass


class ConfigFileNotWritable(BootConfigError):
    pass


class MalformedPatchRequest(BootConfigError):
    pass


@dataclass(frozen=True)
class ConfigLine:
    raw: str
    is_comment: bool = False
    key: Optional[str] = None
    value: Optional[str] = None


def parse_line(raw: str) -> ConfigLine:
    """Tokenize one line into ``{is_comment, key, value, raw}``.

    Only text that starts directly with an identifier is an entry; ``# prose``,
    ``[pi4]`` section headers and blank lines keep ``key=None``.
    """

    is_comment = raw.startswith(COMMENT_MARKER)
    body = raw[len(COMMENT_MARKER):] if is_comment else raw

    if "=" in body:
        key_part, value = body.split("=", 1)
    else:
        key_part, value = body.rstrip(), None

    if not _KEY_RE.fullmatch(key_part):
        return ConfigLine(raw=raw, is_comment=is_comment)
    return ConfigLine(raw=raw, is_comment=is_comment, key=key_part, value=value)


def render_entry(key: str, value: Optional[str]) -> str:
    return f"{key}={value}" if value else key


@dataclass(frozen=True)
class ConfigDocument:
    lines: Tuple[ConfigLine, ...] = ()
    trailing_newline: bool = True
    newline: str = "\n"

    @classmethod
    def from_text(cls, text: str) -> "ConfigDocument":
        lines = tuple(parse_line(ln) for ln in text.splitlines())
        return cls(
            lines=lines,
            trailing_newline=(not text) or text.endswith("\n"),
            newline="\r\n" if "\r\n" in text else "\n",
        )

    def render(self) -> str:
        if not self.lines:
            return ""
        body = self.newline.join(ln.raw for ln in self.lines)
        return body + self.newline if self.trailing_newline else body

    def replace_line(self, index: int, raw: str) -> "ConfigDocument":
        lines = list(self.lines)
        lines[index] = parse_line(raw)
        return replace(self, lines=tuple(lines))

    def append_line(self, raw: str) -> "ConfigDocument":
        return replace(self, lines=self.lines + (parse_line(raw),), trailing_newline=True)


ChangeAction = Literal["commented", "uncommented", "updated", "appended", "annotated"]


@dataclass(frozen=True)
class LineChange:
    action: ChangeAction
    line_no: int
    before: Optional[str]
    after: str


PatchOp = Literal["comment_out", "upsert", "annotate"]


@dataclass(frozen=True)
class PatchOperation:
    op: PatchOp
    key: str = ""
    value: str = ""
    # comment_out: the exact line; annotate: the literal text to append.
    text: str = ""
    annotation: str = ""

    @classmethod
    def upsert(cls, key: str, value: str = "") -> "PatchOperation":
        return cls(op="upsert", key=key, value=value)

    @classmethod
    def comment_out(cls, line: str, annotation: str = "") -> "PatchOperation":
        return cls(op="comment_out", text=line, annotation=annotation)

    @classmethod
    def annotate(cls, text: str) -> "PatchOperation":
        return cls(op="annotate", text=text)


@dataclass(frozen=True)
class PatchRequest:
    operations: Tuple[PatchOperation, ...] = ()
    multi_value_keys: FrozenSet[str] = DEFAULT_MULTI_VALUE_KEYS


@dataclass
class PatchReport:
    path: Path
    changes: List[LineChange] = field(default_factory=list)
    changed: bool = False
    written: bool = False

    def summary(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for c in self.changes:
            counts[c.action] = counts.get(c.action, 0) + 1
        return counts


def default_annotation(today: Optional[_dt.date] = None) -> str:
    day = (today or _dt.date.today()).strftime(DATE_FORMAT)
    return f"line commented for TFT ILI9488 installation on {day}"


def _check_single_line(what: str, text: str) -> None:
    if "\n" in text or "\r" in text:
        raise MalformedPatchRequest(f"{what} must be a single line: {text!r}")


def validate_operation(op: PatchOperation) -> None:
    if op.op == "upsert":
        if not op.key:
            raise MalformedPatchRequest("upsert requires a non-empty key")
        if not _KEY_RE.fullmatch(op.key):
            raise MalformedPatchRequest(f"Invalid config key: {op.key!r}")
        _check_single_line("value", op.value)
    elif op.op == "comment_out":
        if not op.text.strip():
            raise MalformedPatchRequest("comment_out requires a non-empty line")
        if op.text.startswith(COMMENT_MARKER):
            raise MalformedPatchRequest(f"Line is already a comment: {op.text!r}")
        _check_single_line("line", op.text)
        _check_single_line("annotation", op.annotation)
    elif op.op == "annotate":
        _check_single_line("annotation", op.text)
    else:
        raise MalformedPatchRequest(f"Unknown patch operation: {op.op}")


def comment_out_if_present(
    doc: ConfigDocument,
    exact_line: str,
    annotation: str,
) -> Tuple[ConfigDocument, Optional[LineChange]]:
    target = exact_line.rstrip()
    for idx, ln in enumerate(doc.lines):
        # Commented lines start with the marker and can never equal the target.
        if ln.is_comment or ln.raw.rstrip() != target:
            continue
        new_raw = f"{COMMENT_MARKER}{target}"
        if annotation:
            new_raw += f" ({annotation})"
        change = LineChange(action="commented", line_no=idx + 1, before=ln.raw, after=new_raw)
        return doc.replace_line(idx, new_raw), change
    return doc, None


def _find(
    doc: ConfigDocument,
    key: str,
    *,
    comment: bool,
    value: Optional[str] = None,
    skip: FrozenSet[int] = frozenset(),
) -> Optional[int]:
    for idx, ln in enumerate(doc.lines):
        if idx in skip or ln.is_comment != comment or ln.key != key:
            continue
        if value is not None and (ln.value or "").rstrip() != value:
            continue
        return idx
    return None


def upsert(
    doc: ConfigDocument,
    key: str,
    value: str = "",
    *,
    multi_value: bool = False,
    claimed: FrozenSet[int] = frozenset(),
) -> Tuple[ConfigDocument, Optional[LineChange], int]:
    """Set ``key`` to ``value``; returns the new document, the change and the claimed index."""

    wanted = render_entry(key, value)

    lookups: Tuple[Tuple[bool, Optional[str]], ...]
    if multi_value:
        lookups = ((False, value), (True, value))
    else:
        # An active line always wins over a commented one for single-value keys.
        lookups = ((False, value), (False, None), (True, value), (True, None))

    for comment, match in lookups:
        idx = _find(doc, key, comment=comment, value=match, skip=claimed)
        if idx is None:
            continue
        if not comment and match is not None:
            return doc, None, idx
        before = doc.lines[idx].raw
        action: ChangeAction = "uncommented" if comment else "updated"
        return (
            doc.replace_line(idx, wanted),
            LineChange(action=action, line_no=idx + 1, before=before, after=wanted),
            idx,
        )

    doc = doc.append_line(wanted)
    idx = len(doc.lines) - 1
    return doc, LineChange(action="appended", line_no=idx + 1, before=None, after=wanted), idx


def append_annotation(doc: ConfigDocument, text: str) -> Tuple[ConfigDocument, LineChange]:
    doc = doc.append_line(text)
    return doc, LineChange(action="annotated", line_no=len(doc.lines), before=None, after=text)


def apply_patch(
    doc: ConfigDocument,
    request: PatchRequest,
    *,
    today: Optional[_dt.date] = None,
) -> Tuple[ConfigDocument, List[LineChange]]:
    """Apply every operation in order. The whole request is validated first."""

    for op in request.operations:
        validate_operation(op)

    changes: List[LineChange] = []
    claimed: set[int] = set()

    for op in request.operations:
        change: Optional[LineChange]
        if op.op == "comment_out":
            doc, change = comment_out_if_present(doc, op.text, op.annotation or default_annotation(today))
        elif op.op == "upsert":
            doc, change, idx = upsert(
                doc,
                op.key,
                op.value,
                multi_value=op.key in request.multi_value_keys,
                claimed=frozenset(claimed),
            )
            claimed.add(idx)
        else:
            doc, change = append_annotation(doc, op.text)

        if change is not None:
            logger.debug("%s line %d: %r -> %r", change.action, change.line_no, change.before, change.after)
            changes.append(change)

    return doc, changes


def resolve_config_path(candidates: Sequence[str | Path]) -> Path:
    """Return the first existing candidate (primary first, then fallbacks)."""

    for c in candidates:
        p = Path(c)
        if p.is_file():
            return p
    raise ConfigFileNotFound(
        "Boot configuration file not found; tried: " + ", ".join(str(c) for c in candidates)
    )


def read_document(path: Path) -> ConfigDocument:
    # newline="" keeps CRLF visible to from_text.
    with open(path, "r", encoding="utf-8", errors="surrogateescape", newline="") as f:
        return ConfigDocument.from_text(f.read())


def write_document(path: Path, doc: ConfigDocument) -> None:
    """Persist atomically: temp file in the same directory, then ``os.replace``.

    Any ``OSError``, such as a read-only /boot, surfaces as
    ``ConfigFileNotWritable``.
    """

    try:
        fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    except OSError as e:
        raise ConfigFileNotWritable(f"Cannot write {path}: {e}") from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape", newline="") as f:
            f.write(doc.render())
        shutil.copymode(str(path), tmp)
        os.replace(tmp, str(path))
    except OSError as e:
        raise ConfigFileNotWritable(f"Cannot write {path}: {e}") from e
    finally:
        if os.path.exists(tmp):
            os.unlink(tmp)


class ConfigPatcher:
    """Load -> patch -> persist for a single boot configuration file."""

    def __init__(
        self,
        candidates: Iterable[str | Path],
        *,
        dry_run: bool = False,
        today: Optional[_dt.date] = None,
    ) -> None:
        self.candidates = [Path(c) for c in candidates]
        if not self.candidates:
            raise ValueError("At least one candidate path is required")
        self.dry_run = dry_run
        self.today = today

    def resolve(self) -> Path:
        return resolve_config_path(self.candidates)

    def apply(self, request: PatchRequest) -> PatchReport:
        path = self.resolve()
        logger.info("Patching boot configuration %s", str(path))

        original = read_document(path)
        patched, changes = apply_patch(original, request, today=self.today)

        report = PatchReport(path=path, changes=changes)
        report.changed = patched.render() != original.render()

        if not report.changed:
            logger.info("Boot configuration already up to date")
            return report

        if self.dry_run:
            logger.info("Would write %s (%s)", str(path), report.summary())
            return report

        write_document(path, patched)
        report.written = True
        logger.info("Wrote %s (%s)", str(path), report.summary())
        return report
