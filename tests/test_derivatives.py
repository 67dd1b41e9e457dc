"""Tests for derivative estimators."""

from __future__ import annotations

import numpy as np
import pytest

from bandonset.detection import (
    DerivativeEstimator,
    derivative_step,
    nth_derivative,
    process_magnitudes,
)

CUMULATIVE = [0.0, 1.0, 3.0, 6.0, 10.0]


@pytest.mark.unit
class TestProcessMagnitudes:
    def test_log_domain_floors_zero(self) -> None:
        np.testing.assert_allclose(process_magnitudes([0.0, 1.0, 100.0], True), [-8.0, 0.0, 2.0])

    def test_linear_domain_is_copy(self) -> None:
        mag = np.array([0.0, 0.5])
        out = process_magnitudes(mag, False)
        np.testing.assert_array_equal(out, mag)
        out[0] = 9
        assert mag[0] == 0.0


@pytest.mark.unit
class TestEstimators:
    def test_forward(self) -> None:
        np.testing.assert_allclose(derivative_step(CUMULATIVE, 1, "forward"), [0, 1, 2, 3, 4])
        np.testing.assert_allclose(derivative_step(CUMULATIVE, 2, "forward"), [0, 0, 3, 5, 7])

    def test_moving_average(self) -> None:
        np.testing.assert_allclose(
            derivative_step(CUMULATIVE, 2, DerivativeEstimator.MOVING_AVERAGE),
            [0, 0, 1.5, 2.5, 3.5],
        )

    def test_moving_average_window_one_matches_forward(self) -> None:
        np.testing.assert_allclose(
            derivative_step(CUMULATIVE, 1, "moving-average"),
            derivative_step(CUMULATIVE, 1, "forward"),
        )

    @pytest.mark.parametrize("window", [1, 2, 3, 5])
    def test_centered_on_ramp_equals_slope_inside(self, window: int) -> None:
        a, b = 2.5, -1.0
        x = a * np.arange(30) + b
        d = derivative_step(x, window, DerivativeEstimator.CENTERED)
        np.testing.assert_allclose(d[window : len(x) - window], a)
        np.testing.assert_array_equal(d[:window], 0.0)
        np.testing.assert_array_equal(d[len(x) - window :], 0.0)

    @pytest.mark.parametrize("estimator", list(DerivativeEstimator))
    def test_series_shorter_than_window_is_all_zero(self, estimator: DerivativeEstimator) -> None:
        d = derivative_step([1.0, 2.0, 3.0], 3, estimator)
        np.testing.assert_array_equal(d, np.zeros(3))

    def test_unknown_estimator_raises(self) -> None:
        with pytest.raises(ValueError):
            derivative_step(CUMULATIVE, 1, "backward")


@pytest.mark.unit
class TestNthDerivative:
    def test_zeroth_is_copy(self) -> None:
        np.testing.assert_array_equal(nth_derivative(CUMULATIVE, 0), CUMULATIVE)

    def test_second_forward(self) -> None:
        np.testing.assert_allclose(nth_derivative(CUMULATIVE, 2, 1, "forward"), [0, 1, 1, 1, 1])

    def test_second_centered_on_ramp(self) -> None:
        x = 2.0 * np.arange(20)
        d2 = nth_derivative(x, 2, 1, "centered")
        # edge frames of the first pass are 0, which shows up next to the boundary
        assert d2[1] == pytest.approx(1.0)
        assert d2[18] == pytest.approx(-1.0)
        np.testing.assert_allclose(d2[2:18], 0.0, atol=1e-12)
        assert d2[0] == 0.0 and d2[19] == 0.0
