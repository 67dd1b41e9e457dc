from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

import numpy as np
import pytest

SAMPLE_RATE = 16000.0
HOP_SIZE = 512
NUM_BINS = 8


@pytest.fixture(autouse=True)
def app_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Forces test mode. Application code can use this to refuse dangerous behaviors.
    Automatically applied to all tests.
    """
    monkeypatch.setenv("APP_ENV", "test")


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """
    A dedicated temp root directory for each test.
    All filesystem writes in tests should be under this root (or tmp_path directly).
    """
    root = tmp_path / "proj"
    (root / "data" / "derived" / "stft").mkdir(parents=True)
    (root / "data" / "bands").mkdir(parents=True)
    return root


@pytest.fixture(autouse=True)
def chdir_to_project_root(project_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Automatically change working directory to project_root for all tests.
    This ensures relative-path operations go into the temp directory by default.
    """
    monkeypatch.chdir(project_root)


@pytest.fixture
def make_stft() -> Callable[..., np.ndarray]:
    """
    Build a (frames, NUM_BINS) STFT whose bin `bin_index` carries `series`.

    With SAMPLE_RATE=16000 and NUM_BINS=8, bin i sits at i * 1000 Hz.
    Every other bin gets `background`.
    """

    def _make(series: Sequence[float], bin_index: int = 3, background: float = 0.0) -> np.ndarray:
        series = np.asarray(series, dtype=float)
        stft = np.full((len(series), NUM_BINS), background, dtype=float)
        stft[:, bin_index] = series
        return stft

    return _make
