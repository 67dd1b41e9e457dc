"""Default settings and numeric constants for impulse detection."""

from __future__ import annotations

from typing import Any

# Flat request key -> default, as accepted by DetectionConfig.from_request
DETECTION_DEFAULTS: dict[str, Any] = {
    "impulseWindowSize": 1,
    "impulseSmoothing": 1,
    "impulseDetectionMode": "spectral-flux",
    "derivativeLogDomain": True,
    "derivativeMode": "centered",
    "spectralFluxWindow": 21,
    "spectralFluxK": 2.0,
    "spectralFluxMinSeparation": 3,
    "minDb": -60.0,
    "minDbDelta": 3.0,
    "minMagnitudeThreshold": 1e-6,
    "sustainDurationFrames": 5,
}

# Six-band layout: target frequency sits inside each band's range
DEFAULT_BANDS: list[dict[str, Any]] = [
    {"name": "Sub Bass", "freq": 60.0, "color": "#2b8cbe"},  # 20-60 Hz
    {"name": "Bass", "freq": 120.0, "color": "#41ab5d"},  # 60-250 Hz
    {"name": "Low Mid", "freq": 400.0, "color": "#fdae6b"},  # 250-500 Hz
    {"name": "Mid", "freq": 1000.0, "color": "#d94801"},  # 500-2k Hz
    {"name": "High", "freq": 4000.0, "color": "#756bb1"},  # 2k-6k Hz
    {"name": "Presence", "freq": 8000.0, "color": "#f03b20"},  # 6k-20k Hz
]

LOG_FLOOR = 1e-8  # magnitude floor before log10
DB_OFFSET = 1e-12  # added to magnitude before 20*log10
STD_EPSILON = 1e-12  # population std floor for z-scoring
SUSTAIN_TOLERANCE = 1e-6  # allowed dip below onset magnitude while held
