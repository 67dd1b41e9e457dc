"""Per-band impulse detection package."""

from .bins import bin_frequencies, extract_bin_magnitudes, map_frequency_to_bin
from .derivatives import derivative_step, nth_derivative, process_magnitudes
from .errors import DetectionError, InvalidConfigError, InvalidInputError
from .events import ImpulseEvent, extract_impulse_events
from .methods import (
    MODE_BUILDERS,
    compute_adaptive_threshold,
    compute_spectral_flux,
    suppress_close_impulses,
)
from .normalize import normalize_impulse_strengths, zscore
from .orchestrator import analyze_band, detect_band_impulses, detect_from_request
from .sustain import classify_sustained, to_db
from .types import (
    BandDefinition,
    BandResult,
    DerivativeEstimator,
    DetectionConfig,
    DetectionMode,
    SpectralFluxConfig,
    SustainConfig,
)
from .windowed import moving_average, moving_mad, moving_median

__all__ = [
    "BandDefinition",
    "BandResult",
    "DerivativeEstimator",
    "DetectionConfig",
    "DetectionMode",
    "SpectralFluxConfig",
    "SustainConfig",
    "DetectionError",
    "InvalidConfigError",
    "InvalidInputError",
    "ImpulseEvent",
    "MODE_BUILDERS",
    "analyze_band",
    "bin_frequencies",
    "classify_sustained",
    "compute_adaptive_threshold",
    "compute_spectral_flux",
    "derivative_step",
    "detect_band_impulses",
    "detect_from_request",
    "extract_bin_magnitudes",
    "extract_impulse_events",
    "map_frequency_to_bin",
    "moving_average",
    "moving_mad",
    "moving_median",
    "normalize_impulse_strengths",
    "nth_derivative",
    "process_magnitudes",
    "suppress_close_impulses",
    "to_db",
    "zscore",
]
