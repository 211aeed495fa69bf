from __future__ import annotations

import datetime as _dt
from pathlib import Path
from typing import Any, Dict, List, Optional

from .bootconfig import (
    DATE_FORMAT,
    DEFAULT_MULTI_VALUE_KEYS,
    PatchOperation,
    PatchRequest,
    default_annotation,
)

DEFAULT_PROFILE = "ili9488"


def _manifests_dir() -> Path:
    # ili9488_installer/lib/manifests.py -> ili9488_installer/manifests
    return Path(__file__).resolve().parents[1] / "manifests"


def load_yaml(path: str | Path) -> Dict[str, Any]:
    try:
        import yaml  # type: ignore
    except Exception as e:  # pragma: no cover
        raise RuntimeError("PyYAML required to load manifests") from e

    p = Path(path)
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Manifest must be a mapping/dict: {p}")
    return data


def load_profile(profile: Optional[str] = None) -> Dict[str, Any]:
    """Load a display profile by bundled name (``ili9488``) or by file path."""

    ref = profile or DEFAULT_PROFILE
    p = Path(ref)
    if p.suffix.lower() in {".yaml", ".yml"}:
        if not p.exists():
            raise FileNotFoundError(ref)
        return load_yaml(p)
    return load_yaml(_manifests_dir() / f"{ref}.yaml")


def _split_setting(item: Any) -> PatchOperation:
    if isinstance(item, dict):
        return PatchOperation.upsert(str(item.get("key") or ""), str(item.get("value") or ""))
    key, _, value = str(item).partition("=")
    return PatchOperation.upsert(key, value)


def patch_request_from_profile(
    profile: Dict[str, Any],
    *,
    today: Optional[_dt.date] = None,
) -> PatchRequest:
    """Translate ``profile['boot_config']`` into an ordered PatchRequest.

    Order: comment_out, header annotations, settings (upserts), footer annotations.
    ``{date}`` in annotations expands to MM/DD/YYYY.
    """

    boot = profile.get("boot_config") or {}
    day = (today or _dt.date.today()).strftime(DATE_FORMAT)
    annotation = default_annotation(today)

    ops: List[PatchOperation] = []
    for line in boot.get("comment_out") or []:
        ops.append(PatchOperation.comment_out(str(line), annotation))
    for text in boot.get("header") or []:
        ops.append(PatchOperation.annotate(str(text).format(date=day)))
    for item in boot.get("settings") or []:
        ops.append(_split_setting(item))
    for text in boot.get("footer") or []:
        ops.append(PatchOperation.annotate(str(text).format(date=day)))

    multi = boot.get("multi_value_keys")
    multi_keys = frozenset(str(k) for k in multi) if multi is not None else DEFAULT_MULTI_VALUE_KEYS

    return PatchRequest(operations=tuple(ops), multi_value_keys=multi_keys)
