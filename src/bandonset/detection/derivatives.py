"""Discrete derivative estimators over magnitude series.

Three interchangeable single-step schemes, each with a frame window W:

- forward:        d[i] = x[i] - x[i-W]                     (i >= W)
- centered:       d[i] = (x[i+W] - x[i-W]) / (2W)          (W <= i < len-W)
- moving-average: mean over w=1..W of x[i-w+1] - x[i-w]    (i >= W)

Frames outside the valid range are 0 by definition, which is not the same as
a flat signal.
"""

from __future__ import annotations

import numpy as np

from .config import LOG_FLOOR
from .types import DerivativeEstimator


def process_magnitudes(magnitudes, log_domain=True):
    """Return log10(max(mag, LOG_FLOOR)) when log_domain, else a float copy."""
    mag = np.asarray(magnitudes, dtype=float)
    if log_domain:
        return np.log10(np.maximum(mag, LOG_FLOOR))
    return mag.copy()


def _forward(x, window):
    d = np.zeros_like(x)
    if len(x) > window:
        d[window:] = x[window:] - x[:-window]
    return d


def _centered(x, window):
    d = np.zeros_like(x)
    if len(x) > 2 * window:
        d[window:-window] = (x[2 * window :] - x[: -2 * window]) / (2 * window)
    return d


def _moving_average(x, window):
    d = np.zeros_like(x)
    if len(x) > window:
        steps = np.diff(x)  # steps[j] = x[j+1] - x[j]
        kernel = np.ones(window) / window
        # valid entry k averages steps[k : k+window], i.e. frame i = k + window
        d[window:] = np.convolve(steps, kernel, mode="valid")
    return d


_ESTIMATORS = {
    DerivativeEstimator.FORWARD: _forward,
    DerivativeEstimator.CENTERED: _centered,
    DerivativeEstimator.MOVING_AVERAGE: _moving_average,
}


def derivative_step(x, window=1, estimator=DerivativeEstimator.CENTERED):
    """Apply one differencing step of the chosen estimator.

    Parameters
    ----------
    x : array-like
        Input series.
    window : int
        Frame distance W (>= 1).
    estimator : DerivativeEstimator or str
        forward, centered or moving-average.
    """
    x = np.asarray(x, dtype=float)
    return _ESTIMATORS[DerivativeEstimator(estimator)](x, int(window))


def nth_derivative(x, n, window=1, estimator=DerivativeEstimator.CENTERED):
    """Repeated differencing: n applications of `derivative_step` with the same W.

    n <= 0 returns a float copy of x.
    """
    result = np.asarray(x, dtype=float).copy()
    for _ in range(n):
        result = derivative_step(result, window, estimator)
    return result
