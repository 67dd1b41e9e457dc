"""Sustain classification: held events versus brief clicks."""

from __future__ import annotations

import numpy as np

from .config import DB_OFFSET, SUSTAIN_TOLERANCE
from .types import SustainConfig


def to_db(magnitudes):
    """20*log10(mag + DB_OFFSET)."""
    return 20.0 * np.log10(np.asarray(magnitudes, dtype=float) + DB_OFFSET)


def classify_sustained(impulse_strengths, magnitudes, sustain: SustainConfig):
    """Mark accepted impulses whose magnitude holds over the following frames.

    An impulse at i qualifies when its level is above ``sustain.min_db`` and
    (except at i == 0) it rose by more than ``sustain.min_db_delta`` dB from
    frame i-1. It is then sustained only if every frame in
    i+1 .. i+duration_frames (clipped to the series) stays at or above
    magnitude[i] - SUSTAIN_TOLERANCE.

    Parameters
    ----------
    impulse_strengths : array-like
        Suppressed impulse series; non-zero entries are accepted impulses.
    magnitudes : array-like
        Linear magnitudes used for the dB gates and the hold check.
    sustain : SustainConfig
        Gates and look-ahead length.

    Returns
    -------
    np.ndarray
        impulse_strengths[i] where sustained, 0 elsewhere.
    """
    strengths = np.asarray(impulse_strengths, dtype=float)
    mag = np.asarray(magnitudes, dtype=float)
    sustained = np.zeros_like(strengths)
    if len(strengths) == 0:
        return sustained

    db = to_db(mag)
    n = len(mag)
    for i in np.flatnonzero(strengths > 0):
        if not db[i] > sustain.min_db:
            continue
        if i > 0 and not db[i] - db[i - 1] > sustain.min_db_delta:
            continue
        ahead = mag[i + 1 : min(i + sustain.duration_frames, n - 1) + 1]
        if np.all(ahead >= mag[i] - SUSTAIN_TOLERANCE):
            sustained[i] = strengths[i]
    return sustained
