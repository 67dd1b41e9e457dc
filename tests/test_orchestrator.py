"""Tests for the per-band detection entry points."""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
import pytest

from bandonset.detection import (
    BandDefinition,
    DetectionConfig,
    DetectionMode,
    InvalidConfigError,
    InvalidInputError,
    SpectralFluxConfig,
    detect_band_impulses,
    detect_from_request,
    zscore,
)

SR = 16000.0
HOP = 512
BAND = BandDefinition(name="Mid", freq=3000.0, color="#d94801")  # bin 3 of 8


def _run(stft, config: DetectionConfig | None = None, bands=None):
    return detect_band_impulses(stft, bands or [BAND], SR, HOP, config)


def _all_finite(result) -> bool:
    arrays = [
        result.magnitudes,
        result.derivatives,
        result.second_derivatives,
        result.impulse_strengths,
        result.normalized_impulse_strengths,
    ]
    arrays += [
        a
        for a in (result.detection_function, result.threshold, result.sustained_impulses, result.detection_times)
        if a is not None
    ]
    return all(np.all(np.isfinite(a)) for a in arrays)


@pytest.mark.unit
class TestScenarios:
    def test_click_detected_and_not_sustained(self, make_stft: Callable) -> None:
        series = np.zeros(50)
        series[25] = 1.0
        (r,) = _run(make_stft(series))

        assert r.bin_index == 3
        hits = r.impulse_indices()
        assert len(hits) == 1 and abs(int(hits[0]) - 25) <= 1
        i = int(hits[0])
        assert r.detection_function[i] > r.threshold[i]
        assert r.sustained_impulses[i] == 0
        assert np.count_nonzero(r.sustained_impulses) == 0

    def test_ramp_then_drop_has_no_flux_at_the_drop(self, make_stft: Callable) -> None:
        # positive-only flux: falling energy never registers as an onset
        series = np.concatenate([np.linspace(0.0, 1.0, 25), np.zeros(25)])
        (r,) = _run(make_stft(series))

        np.testing.assert_array_equal(r.detection_function[25:], np.zeros(25))
        assert r.detection_function[24] == pytest.approx(np.log10(24 / 23))
        np.testing.assert_array_equal(r.impulse_indices(), [1, 4])
        assert not np.any(r.impulse_strengths[20:])

        config = DetectionConfig(log_domain=False)
        (linear,) = _run(make_stft(series), config)
        np.testing.assert_array_equal(linear.detection_function[25:], np.zeros(25))
        assert not np.any(linear.impulse_strengths[20:])

    def test_silence_yields_zeros_without_nan(self, make_stft: Callable) -> None:
        (r,) = _run(make_stft(np.zeros(50)))

        np.testing.assert_array_equal(r.impulse_strengths, np.zeros(50))
        np.testing.assert_array_equal(r.normalized_impulse_strengths, np.zeros(50))
        assert _all_finite(r)

    def test_held_step_is_sustained(self, make_stft: Callable) -> None:
        series = np.array([0.01] * 10 + [0.5] * 40)
        (r,) = _run(make_stft(series))

        assert r.impulse_strengths[10] > 0
        assert r.sustained_impulses[10] > 0

    @pytest.mark.parametrize("mode", [m for m in DetectionMode if m is not DetectionMode.SPECTRAL_FLUX])
    def test_non_flux_modes_never_threshold_or_sustain(self, make_stft: Callable, mode: DetectionMode) -> None:
        rng = np.random.default_rng(11)
        stft = rng.uniform(0.0, 1.0, size=(40, 8))
        bands = [BandDefinition("a", 0.0), BandDefinition("b", 3000.0), BandDefinition("c", 7000.0)]
        results = _run(stft, DetectionConfig(mode=mode), bands)

        for r in results:
            assert r.threshold is None
            assert r.sustained_impulses is None
            assert r.detection_function is not None
            assert r.detection_times is not None


@pytest.mark.unit
class TestProperties:
    def test_flux_non_negative_and_min_separation(self) -> None:
        rng = np.random.default_rng(5)
        stft = rng.uniform(0.0, 1.0, size=(300, 8))
        config = DetectionConfig(spectral_flux=SpectralFluxConfig(window=9, k=0.5, min_separation=4))
        (r,) = _run(stft, config)

        assert np.all(r.detection_function >= 0)
        hits = r.impulse_indices()
        assert len(hits) > 1
        assert np.all(np.diff(hits) >= 4)

    @pytest.mark.parametrize("mode", list(DetectionMode))
    def test_sustained_implies_impulse_and_normalized(self, mode: DetectionMode) -> None:
        rng = np.random.default_rng(9)
        stft = rng.uniform(0.0, 1.0, size=(120, 8))
        (r,) = _run(stft, DetectionConfig(mode=mode, smoothing_window=3))

        if r.sustained_impulses is not None:
            assert np.all(r.impulse_strengths[r.sustained_impulses > 0] > 0)
        np.testing.assert_allclose(r.normalized_impulse_strengths, zscore(r.impulse_strengths))
        if np.ptp(r.impulse_strengths) > 0:
            assert abs(np.mean(r.normalized_impulse_strengths)) < 1e-9
            assert abs(np.std(r.normalized_impulse_strengths) - 1.0) < 1e-9
        assert _all_finite(r)

    def test_detection_times_from_hop_and_rate(self, make_stft: Callable) -> None:
        (r,) = _run(make_stft(np.ones(10)))
        np.testing.assert_allclose(r.detection_times, np.arange(10) * HOP / SR)

    def test_reproducible(self) -> None:
        rng = np.random.default_rng(1)
        stft = rng.uniform(0.0, 1.0, size=(60, 8))
        a = _run(stft)[0].to_dict()
        b = _run(stft)[0].to_dict()
        assert a == b

    def test_mask_uses_raw_magnitude_before_smoothing(self, make_stft: Callable) -> None:
        series = np.array([0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 0.0])
        config = DetectionConfig(mode="first-derivative", smoothing_window=3, log_domain=False)
        (r,) = _run(make_stft(series), config)

        # smoothing spreads the frame-3 spike into frames 4-5, where the raw bin is silent
        assert r.magnitudes[5] > 0
        assert r.impulse_strengths[5] == 0
        assert r.derivatives[5] != 0


@pytest.mark.unit
class TestRequestShape:
    def test_order_preserved(self, make_stft: Callable) -> None:
        bands = [
            {"name": "High", "freq": 7000.0, "color": "red"},
            {"name": "Low", "freq": 0.0, "color": "blue"},
            {"name": "Mid", "freq": 3000.0, "color": "green"},
        ]
        results = _run(make_stft(np.ones(12)), bands=bands)

        assert [r.band.name for r in results] == ["High", "Low", "Mid"]
        assert [r.band_index for r in results] == [0, 1, 2]
        assert [r.bin_index for r in results] == [7, 0, 3]

    def test_every_array_has_one_entry_per_frame(self, make_stft: Callable) -> None:
        (r,) = _run(make_stft(np.linspace(0, 1, 33)))
        d = r.to_dict()
        for key in (
            "magnitudes",
            "derivatives",
            "secondDerivatives",
            "impulseStrengths",
            "normalizedImpulseStrengths",
            "detectionFunction",
            "threshold",
            "sustainedImpulses",
            "detectionTimes",
        ):
            assert len(d[key]) == 33, key

    def test_absent_optional_fields_serialize_as_null(self, make_stft: Callable) -> None:
        (r,) = _run(make_stft(np.ones(5)), DetectionConfig(mode="z-score"))
        d = r.to_dict()
        assert d["threshold"] is None
        assert d["sustainedImpulses"] is None

    @pytest.mark.parametrize("mode", list(DetectionMode))
    def test_zero_bins_gives_empty_band(self, mode: DetectionMode) -> None:
        results = _run([[], [], []], DetectionConfig(mode=mode), bands=[BAND, BAND])

        assert len(results) == 2
        for r in results:
            assert r.is_empty
            assert r.bin_index == -1
            assert len(r.normalized_impulse_strengths) == 0
            assert r.detection_function is not None and len(r.detection_function) == 0
            assert (r.threshold is not None) == (mode is DetectionMode.SPECTRAL_FLUX)

    @pytest.mark.parametrize("bad", [None, []])
    def test_missing_sequence_is_top_level_error(self, bad) -> None:
        with pytest.raises(InvalidInputError):
            detect_band_impulses(bad, [BAND], SR, HOP)

    @pytest.mark.parametrize("sr, hop", [(0, HOP), (SR, 0), (-1, HOP), (None, HOP)])
    def test_non_positive_rate_or_hop(self, make_stft: Callable, sr, hop) -> None:
        with pytest.raises(InvalidInputError):
            detect_band_impulses(make_stft(np.ones(4)), [BAND], sr, hop)

    def test_malformed_band(self, make_stft: Callable) -> None:
        with pytest.raises(InvalidInputError):
            _run(make_stft(np.ones(4)), bands=[{"name": "x"}])


@pytest.mark.unit
class TestFromRequest:
    def test_defaults_match_config_defaults(self) -> None:
        assert DetectionConfig.from_request({}) == DetectionConfig()

    def test_round_trip_of_flat_keys(self) -> None:
        config = DetectionConfig(mode="z-score", derivative_estimator="forward", derivative_window=2)
        assert DetectionConfig.from_request(config.to_request()) == config

    def test_windows_clamped_to_one(self) -> None:
        config = DetectionConfig.from_request({"impulseWindowSize": 0, "impulseSmoothing": -3})
        assert config.derivative_window == 1
        assert config.smoothing_window == 1

    @pytest.mark.parametrize(
        "request_",
        [
            {"impulseDetectionMode": "aubio"},
            {"derivativeMode": "backward"},
            {"spectralFluxWindow": 0},
            {"spectralFluxMinSeparation": -1},
            {"minMagnitudeThreshold": -1.0},
            {"spectralFluxK": "lots"},
            {"impulseWindowSize": 2.7},
            {"spectralFluxWindow": "wide"},
            {"sustainDurationFrames": True},
            {"derivativeLogDomain": "maybe"},
            {"derivativeLogDomain": 2},
        ],
    )
    def test_invalid_settings(self, request_) -> None:
        with pytest.raises(InvalidConfigError):
            DetectionConfig.from_request(request_)

    @pytest.mark.parametrize(("raw", "expected"), [("false", False), ("True", True), (0, False), (True, True)])
    def test_log_domain_parsing(self, raw, expected: bool) -> None:
        assert DetectionConfig.from_request({"derivativeLogDomain": raw}).log_domain is expected

    def test_integral_numbers_accepted(self) -> None:
        config = DetectionConfig.from_request({"impulseWindowSize": 3.0, "spectralFluxWindow": "15"})
        assert config.derivative_window == 3
        assert config.spectral_flux.window == 15

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"derivative_window": None},
            {"smoothing_window": 2.5},
            {"min_magnitude_threshold": None},
            {"spectral_flux": SpectralFluxConfig(window=None)},
        ],
    )
    def test_constructor_rejects_non_integers(self, kwargs) -> None:
        with pytest.raises(InvalidConfigError):
            DetectionConfig(**kwargs)

    def test_detect_from_request(self, make_stft: Callable) -> None:
        series = np.zeros(30)
        series[12] = 1.0
        request = {
            "fftSequence": make_stft(series).tolist(),
            "bands": [{"name": "Mid", "freq": 3000, "color": "#fff"}],
            "sampleRate": SR,
            "hopSize": HOP,
            "impulseDetectionMode": "spectral-flux",
        }
        (r,) = detect_from_request(request)
        assert r.impulse_strengths[12] > 0

    @pytest.mark.parametrize("request_", [{}, {"fftSequence": []}, {"fftSequence": None}])
    def test_request_without_sequence(self, request_) -> None:
        with pytest.raises(InvalidInputError):
            detect_from_request({"bands": [], "sampleRate": SR, "hopSize": HOP, **request_})
