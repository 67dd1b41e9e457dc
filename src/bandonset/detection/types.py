"""Data model for per-band impulse detection.

Everything here is created fresh per detection call and carries no state
between calls. Arrays on BandResult are parallel: one entry per input frame.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np

from .config import DETECTION_DEFAULTS
from .errors import InvalidConfigError, InvalidInputError


class DetectionMode(str, Enum):
    """Closed set of detection-function modes."""

    SPECTRAL_FLUX = "spectral-flux"
    FIRST_DERIVATIVE = "first-derivative"
    SECOND_DERIVATIVE = "second-derivative"
    Z_SCORE = "z-score"


class DerivativeEstimator(str, Enum):
    """Single-step differencing schemes."""

    FORWARD = "forward"
    CENTERED = "centered"
    MOVING_AVERAGE = "moving-average"


def _parse_enum(enum_cls, value, name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError as err:
        choices = [m.value for m in enum_cls]
        raise InvalidConfigError(f"Unknown {name}: {value!r}. Use one of: {choices}") from err


_BOOL_STRINGS = {"true": True, "1": True, "yes": True, "on": True,
                 "false": False, "0": False, "no": False, "off": False}


def _is_int(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


@dataclass(frozen=True)
class BandDefinition:
    """A named band targeting one frequency (Hz)."""

    name: str
    freq: float
    color: str = ""

    @classmethod
    def from_value(cls, value: BandDefinition | Mapping[str, Any]) -> BandDefinition:
        """Build a BandDefinition from an instance or a {name, freq, color} mapping.

        Raises:
            InvalidInputError: If the mapping lacks a name or a numeric freq.
        """
        if isinstance(value, BandDefinition):
            return value
        if not isinstance(value, Mapping):
            raise InvalidInputError(f"Band must be a mapping, got {type(value).__name__}")
        if "name" not in value or "freq" not in value:
            raise InvalidInputError(f"Band needs 'name' and 'freq': {dict(value)!r}")
        try:
            freq = float(value["freq"])
        except (TypeError, ValueError) as err:
            raise InvalidInputError(f"Band freq must be numeric: {value['freq']!r}") from err
        return cls(name=str(value["name"]), freq=freq, color=str(value.get("color") or ""))

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "freq": self.freq, "color": self.color}


@dataclass(frozen=True)
class SpectralFluxConfig:
    """Adaptive threshold settings: median window, MAD multiplier, min gap."""

    window: int = 21
    k: float = 2.0
    min_separation: int = 3


@dataclass(frozen=True)
class SustainConfig:
    """dB gates and look-ahead length for sustain classification."""

    min_db: float = -60.0
    min_db_delta: float = 3.0
    duration_frames: int = 5


@dataclass(frozen=True)
class DetectionConfig:
    """All tunables for one detection call.

    Validated on construction; use `from_request` to parse the flat
    camelCase request mapping.
    """

    mode: DetectionMode = DetectionMode.SPECTRAL_FLUX
    derivative_estimator: DerivativeEstimator = DerivativeEstimator.CENTERED
    derivative_window: int = 1
    smoothing_window: int = 1
    log_domain: bool = True
    spectral_flux: SpectralFluxConfig = field(default_factory=SpectralFluxConfig)
    sustain: SustainConfig = field(default_factory=SustainConfig)
    min_magnitude_threshold: float = 1e-6

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", _parse_enum(DetectionMode, self.mode, "detection mode"))
        object.__setattr__(
            self,
            "derivative_estimator",
            _parse_enum(DerivativeEstimator, self.derivative_estimator, "derivative estimator"),
        )
        checks = [
            ("derivative_window", self.derivative_window, 1),
            ("smoothing_window", self.smoothing_window, 1),
            ("spectral_flux.window", self.spectral_flux.window, 1),
            ("spectral_flux.min_separation", self.spectral_flux.min_separation, 0),
            ("sustain.duration_frames", self.sustain.duration_frames, 0),
        ]
        for name, value, minimum in checks:
            if not _is_int(value) or value < minimum:
                raise InvalidConfigError(f"{name} must be an integer >= {minimum}, got {value!r}")
        threshold = self.min_magnitude_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float, np.number)) or not threshold >= 0:
            raise InvalidConfigError(
                f"min_magnitude_threshold must be >= 0, got {self.min_magnitude_threshold!r}"
            )

    @classmethod
    def from_request(cls, request: Mapping[str, Any]) -> DetectionConfig:
        """Parse the flat request mapping (camelCase keys) into a config.

        Absent or None keys take DETECTION_DEFAULTS. Derivative and smoothing
        windows are clamped to at least 1.
        """

        def get(key: str) -> Any:
            value = request.get(key)
            return DETECTION_DEFAULTS[key] if value is None else value

        def get_int(key: str) -> int:
            value = get(key)
            if isinstance(value, str):
                try:
                    value = int(value.strip())
                except ValueError as err:
                    raise InvalidConfigError(f"{key} must be an integer, got {value!r}") from err
            elif isinstance(value, float) and value.is_integer():
                value = int(value)
            if not _is_int(value):
                raise InvalidConfigError(f"{key} must be an integer, got {value!r}")
            return int(value)

        def get_bool(key: str) -> bool:
            value = get(key)
            if isinstance(value, (bool, np.bool_)):
                return bool(value)
            if isinstance(value, str) and value.strip().lower() in _BOOL_STRINGS:
                return _BOOL_STRINGS[value.strip().lower()]
            if _is_int(value) and value in (0, 1):
                return bool(value)
            raise InvalidConfigError(f"{key} must be a boolean, got {value!r}")

        try:
            spectral_flux = SpectralFluxConfig(
                window=get_int("spectralFluxWindow"),
                k=float(get("spectralFluxK")),
                min_separation=get_int("spectralFluxMinSeparation"),
            )
            sustain = SustainConfig(
                min_db=float(get("minDb")),
                min_db_delta=float(get("minDbDelta")),
                duration_frames=get_int("sustainDurationFrames"),
            )
            min_magnitude_threshold = float(get("minMagnitudeThreshold"))
        except InvalidConfigError:
            raise
        except (TypeError, ValueError) as err:
            raise InvalidConfigError(f"Invalid detection setting: {err}") from err

        return cls(
            mode=get("impulseDetectionMode"),
            derivative_estimator=get("derivativeMode"),
            derivative_window=max(1, get_int("impulseWindowSize")),
            smoothing_window=max(1, get_int("impulseSmoothing")),
            log_domain=get_bool("derivativeLogDomain"),
            spectral_flux=spectral_flux,
            sustain=sustain,
            min_magnitude_threshold=min_magnitude_threshold,
        )

    def to_request(self) -> dict[str, Any]:
        """Inverse of `from_request`."""
        return {
            "impulseWindowSize": self.derivative_window,
            "impulseSmoothing": self.smoothing_window,
            "impulseDetectionMode": self.mode.value,
            "derivativeLogDomain": self.log_domain,
            "derivativeMode": self.derivative_estimator.value,
            "spectralFluxWindow": self.spectral_flux.window,
            "spectralFluxK": self.spectral_flux.k,
            "spectralFluxMinSeparation": self.spectral_flux.min_separation,
            "minDb": self.sustain.min_db,
            "minDbDelta": self.sustain.min_db_delta,
            "minMagnitudeThreshold": self.min_magnitude_threshold,
            "sustainDurationFrames": self.sustain.duration_frames,
        }


def _as_list(arr: np.ndarray | None) -> list[float] | None:
    return None if arr is None else [float(v) for v in arr]


@dataclass
class BandResult:
    """Per-band detection output.

    The four optional arrays are None when the mode does not define them;
    modes that do define them always set them (possibly empty).
    """

    band: BandDefinition
    band_index: int
    bin_index: int
    magnitudes: np.ndarray
    derivatives: np.ndarray
    second_derivatives: np.ndarray
    impulse_strengths: np.ndarray
    normalized_impulse_strengths: np.ndarray
    detection_function: np.ndarray | None = None
    threshold: np.ndarray | None = None
    sustained_impulses: np.ndarray | None = None
    detection_times: np.ndarray | None = None

    @property
    def num_frames(self) -> int:
        return len(self.magnitudes)

    @property
    def is_empty(self) -> bool:
        return self.num_frames == 0

    def impulse_indices(self) -> np.ndarray:
        """Frame indices with a non-zero impulse strength."""
        return np.flatnonzero(self.impulse_strengths)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict using the external camelCase field names."""
        return {
            "band": self.band.to_dict(),
            "bandIndex": self.band_index,
            "binIndex": self.bin_index,
            "magnitudes": _as_list(self.magnitudes),
            "derivatives": _as_list(self.derivatives),
            "secondDerivatives": _as_list(self.second_derivatives),
            "impulseStrengths": _as_list(self.impulse_strengths),
            "normalizedImpulseStrengths": _as_list(self.normalized_impulse_strengths),
            "detectionFunction": _as_list(self.detection_function),
            "threshold": _as_list(self.threshold),
            "sustainedImpulses": _as_list(self.sustained_impulses),
            "detectionTimes": _as_list(self.detection_times),
        }
