from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

from .lib.env import PATHS

logger = logging.getLogger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}


def _is_yaml(path: Path) -> bool:
    # Anything that is not YAML is stored as JSON.
    return path.suffix.lower() in YAML_SUFFIXES


def _yaml():
    try:
        import yaml  # type: ignore
    except Exception as e:  # pragma: no cover
        raise RuntimeError("YAML state requested but PyYAML is not available. Use JSON state.") from e
    return yaml


def load_state(path: str) -> Dict[str, Any]:
    """Read a previous run's state; a missing file means a fresh install."""

    p = Path(path)
    if not p.exists():
        return {}

    text = p.read_text(encoding="utf-8")
    data = (_yaml().safe_load(text) or {}) if _is_yaml(p) else json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"State file must be an object/dict, got {type(data)}")
    return data


def save_state(path: str, state: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    if _is_yaml(p):
        text = _yaml().safe_dump(state, sort_keys=False)
    else:
        text = json.dumps(state, indent=2, sort_keys=True)
    p.write_text(text + "\n", encoding="utf-8")
    logger.debug("Saved state to %s", str(p))


def ensure_defaults(state: Dict[str, Any]) -> Dict[str, Any]:
    """Fill required keys with defaults (without overriding user values)."""

    state.setdefault("version", "1.0")
    cfg = state.setdefault("config", {})
    exe = state.setdefault("execution", {})

    cfg.setdefault("dry_run", False)
    cfg.setdefault("assume_yes", False)
    cfg.setdefault("profile", "ili9488")
    cfg.setdefault("target_root", PATHS.target_root)
    cfg.setdefault("work_dir", PATHS.work_dir)
    cfg.setdefault("apt_upgrade", True)
    cfg.setdefault("boot_config_candidates", list(PATHS.boot_config_candidates))
    # The whole flow ends in a reboot unless explicitly disabled.
    cfg.setdefault("finalize_reboot", True)

    exe.setdefault("current_step", None)
    exe.setdefault("completed_steps", [])
    exe.setdefault("decisions", {})
    exe.setdefault("errors", [])

    return state


def record_decision(state: Dict[str, Any], key: str, value: Any) -> None:
    state.setdefault("execution", {}).setdefault("decisions", {})[key] = value


def mark_step_completed(state: Dict[str, Any], step_id: str) -> None:
    completed = state.setdefault("execution", {}).setdefault("completed_steps", [])
    if step_id not in completed:
        completed.append(step_id)


def is_step_completed(state: Dict[str, Any], step_id: str) -> bool:
    return step_id in ((state.get("execution") or {}).get("completed_steps") or [])
