"""Normalization utilities for impulse strength series."""

import numpy as np

from .config import STD_EPSILON


def zscore(x):
    """Population z-score with the standard deviation floored at STD_EPSILON.

    Constant (including all-zero) input maps to zeros instead of NaN.
    """
    x = np.asarray(x, dtype=float)
    if len(x) == 0:
        return x.copy()
    mean = np.mean(x)
    std = max(float(np.std(x)), STD_EPSILON)
    return np.nan_to_num((x - mean) / std, nan=0.0, posinf=0.0, neginf=0.0)


def normalize_impulse_strengths(impulse_strengths):
    """Z-score impulse strengths so bands can be compared on one scale.

    Carries no thresholding meaning of its own.
    """
    return zscore(impulse_strengths)
