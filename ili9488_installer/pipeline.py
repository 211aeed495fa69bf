from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

from .state_store import is_step_completed, mark_step_completed

logger = logging.getLogger(__name__)


class Step(Protocol):
    """One named, idempotent unit of the install.

    A step may also define ``check(state)``: it runs right before ``run`` and
    raises when a precondition does not hold, so nothing half-runs.
    """

    step_id: str

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        ...


@dataclass(frozen=True)
class PipelineResult:
    state: Dict[str, Any]
    ran_steps: List[str]
    skipped_steps: List[str]


def select_steps(
    steps: Sequence[Step],
    *,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
) -> List[Step]:
    """Return the contiguous slice [start_at .. stop_after] of ``steps``."""

    ids = [s.step_id for s in steps]
    for flag, wanted in (("start_at", start_at), ("stop_after", stop_after)):
        if wanted is not None and wanted not in ids:
            raise ValueError(f"Unknown step for {flag}: {wanted} (known: {', '.join(ids)})")

    first = ids.index(start_at) if start_at else 0
    last = ids.index(stop_after) if stop_after else len(ids) - 1
    return list(steps[first : last + 1])


def run_pipeline(
    *,
    state: Dict[str, Any],
    steps: Sequence[Step],
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    force: bool = False,
) -> PipelineResult:
    """Run the selected steps in order; completed steps are skipped unless forced.

    The first failing check or run propagates; ``execution.current_step`` is
    left pointing at that step.
    """

    selected = select_steps(steps, start_at=start_at, stop_after=stop_after)
    ran: List[str] = []
    skipped: List[str] = []
    exe = state.setdefault("execution", {})

    for n, step in enumerate(selected, start=1):
        exe["current_step"] = step.step_id

        if is_step_completed(state, step.step_id) and not force:
            logger.info("[%d/%d] %s already completed, skipping", n, len(selected), step.step_id)
            skipped.append(step.step_id)
            continue

        check = getattr(step, "check", None)
        if check is not None:
            check(state)

        logger.info("[%d/%d] Running %s", n, len(selected), step.step_id)
        started = time.monotonic()
        state = step.run(state)
        exe = state.setdefault("execution", {})
        mark_step_completed(state, step.step_id)
        exe.setdefault("durations", {})[step.step_id] = round(time.monotonic() - started, 3)
        ran.append(step.step_id)

    exe["current_step"] = None
    if stop_after is not None:
        logger.info("Stopped after %s", stop_after)
    return PipelineResult(state=state, ran_steps=ran, skipped_steps=skipped)
