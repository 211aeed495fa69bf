"""Tests for ordered, resumable step execution."""

from __future__ import annotations

from typing import Any, Dict, List

import pytest

from ili9488_installer.pipeline import run_pipeline
from ili9488_installer.state_store import ensure_defaults


class RecordingStep:
    def __init__(self, step_id: str, log: List[str], *, fail_check: bool = False) -> None:
        self.step_id = step_id
        self._log = log
        self._fail_check = fail_check

    def check(self, state: Dict[str, Any]) -> None:
        if self._fail_check:
            raise RuntimeError(f"{self.step_id} precondition failed")

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        self._log.append(self.step_id)
        return state


class NoCheckStep:
    step_id = "99_plain"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        state["plain_ran"] = True
        return state


@pytest.fixture
def log() -> List[str]:
    return []


@pytest.fixture
def steps(log):
    return [RecordingStep(s, log) for s in ("10_a", "20_b", "30_c")]


class TestRunPipeline:
    def test_runs_in_order_and_marks_completed(self, steps, log):
        state = ensure_defaults({})
        result = run_pipeline(state=state, steps=steps)

        assert log == ["10_a", "20_b", "30_c"]
        assert result.ran_steps == ["10_a", "20_b", "30_c"]
        assert state["execution"]["completed_steps"] == ["10_a", "20_b", "30_c"]
        assert state["execution"]["current_step"] is None

    def test_skips_completed_steps(self, steps, log):
        state = ensure_defaults({"execution": {"completed_steps": ["10_a"]}})
        result = run_pipeline(state=state, steps=steps)

        assert log == ["20_b", "30_c"]
        assert result.skipped_steps == ["10_a"]

    def test_force_reruns_completed(self, steps, log):
        state = ensure_defaults({"execution": {"completed_steps": ["10_a", "20_b", "30_c"]}})
        run_pipeline(state=state, steps=steps, force=True)
        assert log == ["10_a", "20_b", "30_c"]

    def test_start_at_and_stop_after(self, steps, log):
        result = run_pipeline(state=ensure_defaults({}), steps=steps, start_at="20_b", stop_after="20_b")
        assert log == ["20_b"]
        assert result.ran_steps == ["20_b"]

    @pytest.mark.parametrize("kwargs", [{"start_at": "nope"}, {"stop_after": "nope"}])
    def test_unknown_step_id(self, steps, kwargs):
        with pytest.raises(ValueError):
            run_pipeline(state=ensure_defaults({}), steps=steps, **kwargs)

    def test_failed_precondition_stops_before_run(self, log):
        steps = [RecordingStep("10_a", log), RecordingStep("20_b", log, fail_check=True), RecordingStep("30_c", log)]
        state = ensure_defaults({})

        with pytest.raises(RuntimeError, match="precondition"):
            run_pipeline(state=state, steps=steps)

        assert log == ["10_a"]
        assert state["execution"]["completed_steps"] == ["10_a"]
        assert state["execution"]["current_step"] == "20_b"

    def test_steps_without_check(self):
        state = run_pipeline(state=ensure_defaults({}), steps=[NoCheckStep()]).state
        assert state["plain_ran"] is True
