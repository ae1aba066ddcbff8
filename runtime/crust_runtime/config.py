"""
Crust Runtime - Configuration

Module constants plus the RuntimeConfig dataclass handed to a Project.
"""

import math
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Tuple

from .errors import CrustError, E_VALUE_ERROR


TICKS_PER_SECOND = 60
DEFAULT_WINDOW_SIZE = (960.0, 720.0)

SCHEDULING_CURSOR = "cursor"
SCHEDULING_REPLAY = "replay"
SCHEDULING_POLICIES = (SCHEDULING_CURSOR, SCHEDULING_REPLAY)

# Easing name -> cubic Bezier control points (x1, y1, x2, y2)
EASINGS: Dict[str, Tuple[float, float, float, float]] = {
    'linear': (0.0, 0.0, 1.0, 1.0),
    'ease': (0.25, 0.1, 0.25, 1.0),
    'ease-in': (0.42, 0.0, 1.0, 1.0),
    'ease-out': (0.0, 0.0, 0.58, 1.0),
    'ease-in-out': (0.42, 0.0, 0.58, 1.0),
}


@dataclass
class RuntimeConfig:
    """Settings shared by the scheduler, evaluator and builtins"""
    ticks_per_second: int = TICKS_PER_SECOND
    scheduling: str = SCHEDULING_CURSOR
    rearm_broadcasts: bool = True
    rearm_conditions: bool = False
    echo_diagnostics: bool = True
    base_dir: str = "."
    export_path: str = "."
    args: List[str] = field(default_factory=list)
    seed: Optional[int] = None

    def __post_init__(self):
        if self.scheduling not in SCHEDULING_POLICIES:
            raise CrustError(E_VALUE_ERROR,
                             f"Unknown scheduling policy '{self.scheduling}', "
                             f"expected one of {', '.join(SCHEDULING_POLICIES)}")
        if self.ticks_per_second <= 0:
            raise CrustError(E_VALUE_ERROR, "ticks_per_second must be positive")

    @property
    def replay(self) -> bool:
        return self.scheduling == SCHEDULING_REPLAY

    def seconds_to_ticks(self, seconds: float) -> int:
        if not math.isfinite(seconds):
            raise CrustError(E_VALUE_ERROR, f"Duration must be a finite number of seconds, got {seconds}")
        return max(0, int(round(seconds * self.ticks_per_second)))

    @classmethod
    def from_mapping(cls, settings: Dict[str, Any]) -> 'RuntimeConfig':
        """Build a config from decoded project settings"""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(settings) - known)
        if unknown:
            raise CrustError(E_VALUE_ERROR, f"Unknown config keys: {', '.join(unknown)}")
        return cls(**settings)
