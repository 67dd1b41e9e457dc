"""Detection-function modes and adaptive thresholding.

Each mode is a builder taking the per-band signals and the config and
returning a ModeOutput in which every optional field is set explicitly,
either to an array or to None. MODE_BUILDERS is the closed registry the
orchestrator dispatches through, once per band.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from .normalize import zscore
from .sustain import classify_sustained
from .types import DetectionConfig, DetectionMode
from .windowed import moving_mad, moving_median


@dataclass(frozen=True)
class BandSignals:
    """Intermediate series of one band, all of equal length."""

    raw_magnitudes: np.ndarray  # bin magnitude before smoothing
    magnitudes: np.ndarray  # after optional trailing smoothing
    processed: np.ndarray  # log10 or linear, input to derivatives and flux
    derivatives: np.ndarray
    second_derivatives: np.ndarray
    mask: np.ndarray  # raw_magnitudes > min_magnitude_threshold


@dataclass(frozen=True)
class ModeOutput:
    impulse_strengths: np.ndarray
    detection_function: np.ndarray | None
    threshold: np.ndarray | None
    sustained_impulses: np.ndarray | None


def compute_spectral_flux(x):
    """Half-wave rectified first difference: max(0, x[i] - x[i-1]), 0 at i=0."""
    x = np.asarray(x, dtype=float)
    flux = np.zeros_like(x)
    if len(x) > 1:
        flux[1:] = np.maximum(0.0, np.diff(x))
    return flux


def compute_adaptive_threshold(x, window, k):
    """Moving median + k * moving MAD over the same centered windows."""
    med = moving_median(x, window)
    mad = moving_mad(x, window, med)
    return med + k * mad


def suppress_close_impulses(candidates, min_separation):
    """Keep non-zero candidates at least min_separation frames apart.

    Scans in order; the first candidate is kept, later ones only when
    i - last_kept >= min_separation. Dropped candidates are zeroed.
    """
    candidates = np.asarray(candidates, dtype=float)
    kept = np.zeros_like(candidates)
    last = None
    for i in np.flatnonzero(candidates):
        if last is None or i - last >= min_separation:
            kept[i] = candidates[i]
            last = i
    return kept


def build_spectral_flux(signals: BandSignals, config: DetectionConfig) -> ModeOutput:
    flux = compute_spectral_flux(signals.processed)
    sf = config.spectral_flux
    threshold = compute_adaptive_threshold(flux, sf.window, sf.k)
    candidates = np.where(flux > threshold, flux, 0.0)
    impulses = suppress_close_impulses(candidates, sf.min_separation)
    sustained = classify_sustained(impulses, signals.magnitudes, config.sustain)
    return ModeOutput(
        impulse_strengths=impulses,
        detection_function=flux,
        threshold=threshold,
        sustained_impulses=sustained,
    )


def build_first_derivative(signals: BandSignals, config: DetectionConfig) -> ModeOutput:
    return ModeOutput(
        impulse_strengths=np.where(signals.mask, np.abs(signals.derivatives), 0.0),
        detection_function=signals.derivatives.copy(),
        threshold=None,
        sustained_impulses=None,
    )


def build_second_derivative(signals: BandSignals, config: DetectionConfig) -> ModeOutput:
    return ModeOutput(
        impulse_strengths=np.where(signals.mask, np.abs(signals.second_derivatives), 0.0),
        detection_function=signals.second_derivatives.copy(),
        threshold=None,
        sustained_impulses=None,
    )


def build_z_score(signals: BandSignals, config: DetectionConfig) -> ModeOutput:
    z = zscore(signals.derivatives)
    masked = np.where(signals.mask, z, 0.0)
    return ModeOutput(
        impulse_strengths=zscore(masked),
        detection_function=z,
        threshold=None,
        sustained_impulses=None,
    )


MODE_BUILDERS: dict[DetectionMode, Callable[[BandSignals, DetectionConfig], ModeOutput]] = {
    DetectionMode.SPECTRAL_FLUX: build_spectral_flux,
    DetectionMode.FIRST_DERIVATIVE: build_first_derivative,
    DetectionMode.SECOND_DERIVATIVE: build_second_derivative,
    DetectionMode.Z_SCORE: build_z_score,
}
