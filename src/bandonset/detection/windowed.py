"""Windowed statistics over 1-D series: trailing mean, moving median, moving MAD."""

import numpy as np


def moving_average(x, window):
    """Trailing (causal) moving average.

    Entry i averages x[max(0, i - window + 1) : i + 1], so the window shrinks
    near the start instead of being padded. Vectorized via cumulative sums.

    Parameters
    ----------
    x : array-like
        Input series.
    window : int
        Window length in frames; <= 1 returns a copy.
    """
    x = np.asarray(x, dtype=float)
    if window <= 1 or len(x) == 0:
        return x.copy()
    csum = np.concatenate(([0.0], np.cumsum(x)))
    idx = np.arange(len(x))
    start = np.maximum(0, idx - window + 1)
    counts = idx - start + 1
    return (csum[idx + 1] - csum[start]) / counts


def _centered_windows(x, window):
    """Stack the windows [i - floor(w/2), i + ceil(w/2)) as rows, NaN outside x."""
    left = window // 2
    right = window - left - 1  # ceil(w/2) - 1
    padded = np.pad(x, (left, right), mode="constant", constant_values=np.nan)
    return np.lib.stride_tricks.sliding_window_view(padded, window)


def moving_median(x, window):
    """Moving median over windows [i - floor(w/2), i + ceil(w/2)) clipped to x.

    Even window sizes are asymmetric (one more sample before i than after).
    Near the edges the window just loses the out-of-range samples. For an
    even number of samples the median is the mean of the two middle values.

    Parameters
    ----------
    x : array-like
        Input series.
    window : int
        Window length in frames (>= 1).
    """
    x = np.asarray(x, dtype=float)
    if len(x) == 0:
        return x.copy()
    return np.nanmedian(_centered_windows(x, window), axis=1)


def moving_mad(x, window, medians=None):
    """Moving median absolute deviation, same windows as `moving_median`.

    Entry i is median(|x[j] - medians[i]|) over the window of i.

    Parameters
    ----------
    x : array-like
        Input series.
    window : int
        Window length in frames (>= 1).
    medians : array-like or None
        Precomputed moving medians; computed when None.
    """
    x = np.asarray(x, dtype=float)
    if len(x) == 0:
        return x.copy()
    if medians is None:
        medians = moving_median(x, window)
    windows = _centered_windows(x, window)
    deviations = np.abs(windows - np.asarray(medians, dtype=float)[:, None])
    return np.nanmedian(deviations, axis=1)
