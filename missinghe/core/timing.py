"""
Per-stage wall-clock timing of the preparation pipeline.

Stages are recorded in the order they first run. A stage that raises is
still timed; a MissingHEError escaping it is tagged with the stage name
(error.stage), so a caller catching it can tell how far the run got.
"""

import time
from contextlib import contextmanager
from typing import Iterator

from missinghe.core.exceptions import MissingHEError


class Timer:
    """
    Stage timer for one selection() / hurdle() run.

    Usage:
        timer = Timer()
        timer.start()
        with timer.section('schema'):
            validate_schema(data, descriptors)
        with timer.section('arms'):
            arms = split_arms(data)
        timer.stop()
        timer.result()
        # {'total_seconds': 0.003, 'schema': 0.001, 'arms': 0.002}
    """

    def __init__(self):
        self._stages: dict[str, float] = {}
        self._t0: float | None = None
        self._elapsed: float | None = None

    @property
    def stages(self) -> tuple[str, ...]:
        """Stage names in execution order."""
        return tuple(self._stages)

    def start(self) -> None:
        self._t0 = time.perf_counter()

    def stop(self) -> None:
        if self._t0 is None:
            raise RuntimeError("Timer.stop() called before start()")
        self._elapsed = time.perf_counter() - self._t0

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        """Time one stage; repeated names add up."""
        t0 = time.perf_counter()
        try:
            yield
        except MissingHEError as e:
            if e.stage is None:
                e.stage = name
            raise
        finally:
            self._stages[name] = self._stages.get(name, 0.0) + time.perf_counter() - t0

    def result(self) -> dict[str, float]:
        """
        Stage timings in seconds plus 'total_seconds'.

        Raises:
            RuntimeError: If the timer was not stopped
        """
        if self._elapsed is None:
            raise RuntimeError("Timer.result() called before stop()")
        return {'total_seconds': self._elapsed, **self._stages}
