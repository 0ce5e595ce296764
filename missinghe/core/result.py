"""
Result envelope of the preparation pipeline.

The payload is what the inference engine consumes (a ModelConfig for the
public entry points). Everything else about the run travels beside it:
provenance and variant identity in info, per-stage timings, and the
non-fatal notes raised while preparing the payload.
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope.

    Attributes:
        params: The payload
        info: Run metadata, e.g. {'family': 'hurdle', 'tag': ..., 'source_path': ...}
        timing: Seconds per pipeline stage plus 'total_seconds', or None
        warnings: Non-fatal notes, in the order they were raised

    Examples:
        >>> Result(
        ...     params=config,
        ...     info={'family': 'selection', 'tag': 'MAR_ind_norm_norm_car_car'},
        ...     timing={'total_seconds': 0.002, 'schema': 0.0004},
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        return any(substring in w for w in self.warnings)
