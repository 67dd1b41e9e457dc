"""Frequency-bin mapping and per-bin magnitude extraction."""

from __future__ import annotations

import numpy as np

from .errors import InvalidInputError


def as_frame_matrix(fft_sequence) -> np.ndarray:
    """Convert an STFT sequence to a (frames, bins) float matrix.

    The bin count is taken from frame 0. Shorter frames are zero-filled,
    longer frames truncated, and non-finite entries read as 0.

    Raises:
        InvalidInputError: If the sequence is missing or has no frames.
    """
    if fft_sequence is None:
        raise InvalidInputError("fftSequence is required")
    if isinstance(fft_sequence, np.ndarray):
        if fft_sequence.ndim != 2:
            raise InvalidInputError(f"fftSequence must be 2-D (frames, bins), got {fft_sequence.ndim}-D")
        matrix = fft_sequence.astype(float, copy=True)
    else:
        frames = list(fft_sequence)
        if not frames:
            raise InvalidInputError("fftSequence must contain at least one frame")
        num_bins = len(frames[0])
        matrix = np.zeros((len(frames), num_bins), dtype=float)
        for t, frame in enumerate(frames):
            row = np.asarray(frame, dtype=float).ravel()[:num_bins]
            matrix[t, : len(row)] = row
    if matrix.shape[0] == 0:
        raise InvalidInputError("fftSequence must contain at least one frame")
    return np.nan_to_num(matrix, nan=0.0, posinf=0.0, neginf=0.0)


def bin_frequencies(num_bins: int, sample_rate: float) -> np.ndarray:
    """Center frequency of each bin: f(i) = i * sample_rate / (2 * num_bins)."""
    return np.arange(num_bins) * sample_rate / (2 * num_bins) if num_bins > 0 else np.zeros(0)


def map_frequency_to_bin(freq: float, num_bins: int, sample_rate: float) -> int:
    """Index of the bin closest to freq; ties go to the lowest index.

    Frequencies above Nyquist map to the last bin. Returns -1 when there are
    no bins.
    """
    if num_bins <= 0:
        return -1
    diffs = np.abs(bin_frequencies(num_bins, sample_rate) - freq)
    return int(np.argmin(diffs))  # argmin returns the first minimum


def extract_bin_magnitudes(frames: np.ndarray, bin_index: int) -> np.ndarray:
    """Magnitude series of one bin across all frames (empty if bin_index < 0)."""
    if bin_index < 0 or frames.shape[1] == 0:
        return np.zeros(0)
    return frames[:, bin_index].copy()
