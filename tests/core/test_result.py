"""
Tests for the Result[P] envelope and the Timer.

Validates:
    - Generic payload and frozen immutability
    - Default warnings and has_warning()
    - Timer sections accumulate, require start/stop and tag errors with
      the failing stage
"""

from dataclasses import FrozenInstanceError, dataclass

import pytest

from missinghe.core.exceptions import SchemaError
from missinghe.core.result import Result
from missinghe.core.timing import Timer


@dataclass(frozen=True)
class FakeParams:
    """Minimal payload for testing."""
    value: float


# ═══════════════════════════════════════════════════════════════════════
# Result
# ═══════════════════════════════════════════════════════════════════════


class TestResult:

    def test_basic_creation(self):
        result = Result(
            params=FakeParams(value=42.0),
            info={"family": "selection"},
            timing={"total_seconds": 0.01},
        )
        assert result.params.value == 42.0
        assert result.info["family"] == "selection"
        assert result.warnings == ()

    def test_frozen(self):
        result = Result(params=FakeParams(1.0), info={}, timing=None)
        with pytest.raises(FrozenInstanceError):
            result.params = FakeParams(2.0)

    def test_has_warning(self):
        result = Result(
            params=FakeParams(1.0), info={}, timing=None,
            warnings=("structural value 0 never observed for 'c'",),
        )
        assert result.has_warning("never observed")
        assert not result.has_warning("convergence")


# ═══════════════════════════════════════════════════════════════════════
# Timer
# ═══════════════════════════════════════════════════════════════════════


class TestTimer:

    def test_sections_and_total(self):
        timer = Timer()
        timer.start()
        with timer.section('schema'):
            pass
        with timer.section('schema'):
            pass
        with timer.section('arms'):
            pass
        timer.stop()
        result = timer.result()
        assert set(result) == {'total_seconds', 'schema', 'arms'}
        assert all(v >= 0.0 for v in result.values())
        assert timer.stages == ('schema', 'arms')

    def test_error_tagged_with_stage(self):
        timer = Timer()
        timer.start()
        with pytest.raises(SchemaError) as info:
            with timer.section('design'):
                raise SchemaError("bad column")
        assert info.value.stage == 'design'
        assert timer.stages == ('design',)

    def test_innermost_stage_kept(self):
        timer = Timer()
        with pytest.raises(SchemaError) as info:
            with timer.section('outer'):
                with timer.section('inner'):
                    raise SchemaError("bad column")
        assert info.value.stage == 'inner'

    def test_other_errors_untouched(self):
        timer = Timer()
        with pytest.raises(ValueError) as info:
            with timer.section('design'):
                raise ValueError("boom")
        assert not hasattr(info.value, 'stage')
        assert timer.stages == ('design',)

    def test_stop_before_start(self):
        with pytest.raises(RuntimeError):
            Timer().stop()

    def test_result_before_stop(self):
        timer = Timer()
        timer.start()
        with pytest.raises(RuntimeError):
            timer.result()
