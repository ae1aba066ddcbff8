"""
Crust Runtime - Easing Curves

CSS-style cubic Bezier easing. The curve runs from (0, 0) to (1, 1) with two
control points; it is sampled once and progress is read back by linear
interpolation over the samples.
"""

from typing import Tuple

import numpy as np

from .config import EASINGS
from .errors import BuiltinError, E_VALUE_ERROR


SAMPLES = 256


def _cubic(s: np.ndarray, p1: float, p2: float) -> np.ndarray:
    inv = 1.0 - s
    return 3.0 * inv * inv * s * p1 + 3.0 * inv * s * s * p2 + s ** 3


class EasingCurve:
    """Cubic Bezier easing with endpoints (0, 0) and (1, 1)"""

    def __init__(self, x1: float, y1: float, x2: float, y2: float):
        self.control = (float(x1), float(y1), float(x2), float(y2))
        s = np.linspace(0.0, 1.0, SAMPLES)
        # Control x values are clamped to [0, 1] so the x samples stay monotonic
        self._xs = _cubic(s, min(max(x1, 0.0), 1.0), min(max(x2, 0.0), 1.0))
        self._ys = _cubic(s, y1, y2)

    def __call__(self, t: float) -> float:
        """Eased progress for linear progress t in [0, 1]"""
        t = min(max(float(t), 0.0), 1.0)
        return float(np.interp(t, self._xs, self._ys))

    def __repr__(self) -> str:
        return f"EasingCurve{self.control}"


def get_easing(name: str) -> EasingCurve:
    if name not in EASINGS:
        raise BuiltinError(f"Unknown easing '{name}', expected one of {', '.join(EASINGS)}",
                           E_VALUE_ERROR)
    return EasingCurve(*EASINGS[name])


def lerp_point(start: Tuple[float, float], end: Tuple[float, float], amount: float) -> Tuple[float, float]:
    a = np.asarray(start, dtype=float)
    b = np.asarray(end, dtype=float)
    x, y = a + (b - a) * amount
    return float(x), float(y)
