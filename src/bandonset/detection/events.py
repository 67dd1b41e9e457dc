"""Turn per-frame impulse arrays into a list of discrete events."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

import numpy as np

from .types import BandResult


@dataclass(frozen=True)
class ImpulseEvent:
    frame: int
    time: float
    strength: float
    normalized_strength: float
    sustained: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def extract_impulse_events(
    result: BandResult,
    *,
    threshold: float | None = None,
    sustained_only: bool = False,
    frame_duration: float | None = None,
) -> list[ImpulseEvent]:
    """List the frames of a band that carry an impulse.

    A frame qualifies when its impulse strength is positive and, if
    `threshold` is given, its normalized strength exceeds it. Times come from
    `result.detection_times` when present, else from `frame_duration`
    (hop_size / sample_rate), else they are the frame index.

    Args:
        result: Output of the detector for one band.
        threshold: Optional cut on normalized strength (in standard deviations).
        sustained_only: Keep only sustained impulses (empty for modes without
            sustain classification).
        frame_duration: Seconds per frame, used when detection_times is None.

    Returns:
        Events in frame order.
    """
    strengths = result.impulse_strengths
    keep = strengths > 0
    if threshold is not None:
        keep &= result.normalized_impulse_strengths > threshold
    sustained = (
        result.sustained_impulses > 0
        if result.sustained_impulses is not None
        else np.zeros(len(strengths), dtype=bool)
    )
    if sustained_only:
        keep &= sustained

    if result.detection_times is not None:
        times = result.detection_times
    else:
        times = np.arange(len(strengths)) * (frame_duration if frame_duration else 1.0)

    return [
        ImpulseEvent(
            frame=int(i),
            time=float(times[i]),
            strength=float(strengths[i]),
            normalized_strength=float(result.normalized_impulse_strengths[i]),
            sustained=bool(sustained[i]),
        )
        for i in np.flatnonzero(keep)
    ]
