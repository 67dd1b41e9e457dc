"""Public detection entry points.

Runs the per-band pipeline (bin mapping, extraction, smoothing, derivatives,
mode builder, normalization) for every band in input order. Pure and
synchronous: no state survives a call, so independent calls may run
concurrently.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import numpy as np

from .bins import as_frame_matrix, extract_bin_magnitudes, map_frequency_to_bin
from .derivatives import nth_derivative, process_magnitudes
from .errors import InvalidInputError, ensure_positive
from .methods import MODE_BUILDERS, BandSignals
from .normalize import normalize_impulse_strengths
from .types import BandDefinition, BandResult, DetectionConfig, DetectionMode
from .windowed import moving_average

logger = logging.getLogger(__name__)

_DEBUG_PREVIEW = 20


def _empty_result(band: BandDefinition, band_index: int, mode: DetectionMode) -> BandResult:
    """Well-formed result for a band with no bins to read."""
    empty = np.zeros(0)
    # Every mode defines detectionFunction/detectionTimes; only flux has the rest.
    has_flux_fields = mode is DetectionMode.SPECTRAL_FLUX
    return BandResult(
        band=band,
        band_index=band_index,
        bin_index=-1,
        magnitudes=empty.copy(),
        derivatives=empty.copy(),
        second_derivatives=empty.copy(),
        impulse_strengths=empty.copy(),
        normalized_impulse_strengths=empty.copy(),
        detection_function=empty.copy(),
        threshold=empty.copy() if has_flux_fields else None,
        sustained_impulses=empty.copy() if has_flux_fields else None,
        detection_times=empty.copy(),
    )


def analyze_band(
    frames: np.ndarray,
    band: BandDefinition,
    band_index: int,
    *,
    sample_rate: float,
    hop_size: float,
    config: DetectionConfig,
) -> BandResult:
    """Run the full detection pipeline for one band over a (frames, bins) matrix."""
    num_frames, num_bins = frames.shape
    bin_index = map_frequency_to_bin(band.freq, num_bins, sample_rate)
    if bin_index < 0:
        logger.debug("Band %r has no bins to read; returning empty result", band.name)
        return _empty_result(band, band_index, config.mode)

    raw = extract_bin_magnitudes(frames, bin_index)
    magnitudes = moving_average(raw, config.smoothing_window)
    processed = process_magnitudes(magnitudes, config.log_domain)
    w = config.derivative_window
    est = config.derivative_estimator
    signals = BandSignals(
        raw_magnitudes=raw,
        magnitudes=magnitudes,
        processed=processed,
        derivatives=nth_derivative(processed, 1, w, est),
        second_derivatives=nth_derivative(processed, 2, w, est),
        mask=raw > config.min_magnitude_threshold,
    )

    output = MODE_BUILDERS[config.mode](signals, config)
    normalized = normalize_impulse_strengths(output.impulse_strengths)
    detection_times = None
    if output.detection_function is not None:
        detection_times = np.arange(num_frames) * hop_size / sample_rate

    if band_index == 0 and logger.isEnabledFor(logging.DEBUG):
        n = _DEBUG_PREVIEW
        logger.debug("Band: %s (bin %d)", band.name, bin_index)
        logger.debug("  magnitudes: %s", magnitudes[:n])
        logger.debug("  processed: %s", processed[:n])
        logger.debug("  derivatives: %s", signals.derivatives[:n])
        logger.debug("  secondDerivatives: %s", signals.second_derivatives[:n])
        logger.debug("  impulseStrengths: %s", output.impulse_strengths[:n])
        logger.debug("  normalizedImpulseStrengths: %s", normalized[:n])

    return BandResult(
        band=band,
        band_index=band_index,
        bin_index=bin_index,
        magnitudes=magnitudes,
        derivatives=signals.derivatives,
        second_derivatives=signals.second_derivatives,
        impulse_strengths=output.impulse_strengths,
        normalized_impulse_strengths=normalized,
        detection_function=output.detection_function,
        threshold=output.threshold,
        sustained_impulses=output.sustained_impulses,
        detection_times=detection_times,
    )


def detect_band_impulses(
    fft_sequence,
    bands: Iterable[BandDefinition | Mapping[str, Any]],
    sample_rate: float,
    hop_size: float,
    config: DetectionConfig | None = None,
) -> list[BandResult]:
    """Detect impulses in every band of a precomputed STFT sequence.

    Args:
        fft_sequence: Frames x bins magnitudes (nested sequence or 2-D array).
        bands: Band definitions or {name, freq, color} mappings, in output order.
        sample_rate: Audio sample rate in Hz (> 0).
        hop_size: Samples between frames (> 0); only used for detection times.
        config: Detection settings; defaults when None.

    Returns:
        One BandResult per band, same order as `bands`.

    Raises:
        InvalidInputError: If the sequence is missing/empty, sample_rate or
            hop_size is not positive, or a band entry is malformed.
    """
    frames = as_frame_matrix(fft_sequence)
    sample_rate = ensure_positive(sample_rate, "sampleRate")
    hop_size = ensure_positive(hop_size, "hopSize")
    if bands is None:
        raise InvalidInputError("bands is required")
    band_defs = [BandDefinition.from_value(b) for b in bands]
    config = config or DetectionConfig()

    results = [
        analyze_band(
            frames,
            band,
            band_index,
            sample_rate=sample_rate,
            hop_size=hop_size,
            config=config,
        )
        for band_index, band in enumerate(band_defs)
    ]
    if logger.isEnabledFor(logging.DEBUG):
        for r in results:
            logger.debug(
                "Band %r: %d impulse(s) over %d frame(s)",
                r.band.name,
                len(r.impulse_indices()),
                r.num_frames,
            )
    return results


def detect_from_request(request: Mapping[str, Any]) -> list[BandResult]:
    """Run detection from the flat request mapping.

    Expects `fftSequence`, `bands`, `sampleRate`, `hopSize` plus optional
    tuning keys (see DETECTION_DEFAULTS).

    Raises:
        InvalidInputError: If `fftSequence` is absent or empty, or the rest
            of the request is structurally invalid.
        InvalidConfigError: If a tuning value is out of range.
    """
    if request.get("fftSequence") is None or len(request["fftSequence"]) == 0:
        raise InvalidInputError("fftSequence is missing or empty")
    config = DetectionConfig.from_request(request)
    return detect_band_impulses(
        request["fftSequence"],
        request.get("bands") or [],
        request.get("sampleRate"),
        request.get("hopSize"),
        config,
    )
