"""Synthetic controller load for the charge-controller simulation.

The load is a small DC housekeeping draw (controller electronics, fans)
with a slow periodic bump, expressed in watts as a function of simulated
time in seconds.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

BASE_LOAD_W: float = 3.0
PEAK_EXTRA_W: float = 2.0
LOAD_ANGULAR_RATE: float = 0.45    # rad/s of simulated time


def load_profile(t_s: ArrayLike) -> NDArray[np.float64]:
    """Load (W) at each simulated time in *t_s* (s).

    Only the positive half of the sinusoid adds to the base load, so the
    profile stays within ``[BASE_LOAD_W, BASE_LOAD_W + PEAK_EXTRA_W]``.
    """
    t = np.asarray(t_s, dtype=np.float64)
    bump = np.maximum(0.0, np.sin(t * LOAD_ANGULAR_RATE) * PEAK_EXTRA_W)
    return BASE_LOAD_W + bump


def controller_load_w(t_s: float) -> float:
    """Scalar form of :func:`load_profile`."""
    return float(load_profile(t_s))
