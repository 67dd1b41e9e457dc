"""Pipeline for detecting per-band impulses in precomputed STFT .npy files.

Each input is a 2-D array (frames, bins) of magnitudes. Results are written as
JSON to data/derived/impulses.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import numpy as np
import yaml

from ..detection import (
    DetectionConfig,
    DetectionError,
    DetectionMode,
    detect_band_impulses,
    extract_impulse_events,
)
from ..detection.config import DETECTION_DEFAULTS
from ..global_config import BANDS_DIR, IMPULSES_DIR, STFT_DIR
from ..utils.bands import DEFAULT_BAND_SET, load_bands

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_RATE = 44100.0
DEFAULT_HOP_SIZE = 512

DETECTION_MODES = frozenset(m.value for m in DetectionMode)


def _resolve_stft_files(files: list[Path] | None, stft_dir: Path) -> list[Path]:
    """Return list of STFT paths: explicit if given, else all .npy in stft_dir."""
    if files:
        return [Path(p).resolve() for p in files]
    if not stft_dir.exists():
        return []
    return sorted(stft_dir.glob("*.npy"))


def _track_name_from_stft_stem(stem: str) -> str:
    """Extract track name from STFT filename stem. E.g. YTB-001_stft_2048-512 -> YTB-001."""
    if "_stft" in stem:
        return stem.split("_stft")[0]
    return stem


def _output_filename(track_name: str, mode: str) -> str:
    """Build filename: <track_name>_impulses_<mode>.json."""
    return f"{track_name}_impulses_{mode}.json"


def _build_config(mode: str | None, overrides: dict[str, Any] | None) -> DetectionConfig:
    request = dict(overrides or {})
    if mode is not None:
        request["impulseDetectionMode"] = mode
    return DetectionConfig.from_request(request)


def _summarize_payload(
    track_name: str,
    stft_shape: tuple[int, ...],
    sample_rate: float,
    hop_size: float,
    config: DetectionConfig,
    results: list,
) -> dict[str, Any]:
    bands_out = []
    for r in results:
        item = r.to_dict()
        item["events"] = [e.to_dict() for e in extract_impulse_events(r)]
        bands_out.append(item)
    return {
        "track": track_name,
        "shape": list(stft_shape),
        "sampleRate": sample_rate,
        "hopSize": hop_size,
        "config": config.to_request(),
        "bands": bands_out,
    }


def run_detection(
    *,
    stft_files: list[Path] | None = None,
    output_dir: Path = IMPULSES_DIR,
    stft_dir: Path = STFT_DIR,
    bands: str = DEFAULT_BAND_SET,
    bands_dir: Path = BANDS_DIR,
    sample_rate: float = DEFAULT_SAMPLE_RATE,
    hop_size: int = DEFAULT_HOP_SIZE,
    mode: str | None = None,
    overrides: dict[str, Any] | None = None,
    dry_run: bool = False,
) -> dict:
    """Detect impulses for STFT file(s) and write JSON to output_dir.

    If stft_files is None or empty, uses all .npy files in stft_dir. Tuning
    values come from `overrides` (flat camelCase keys, see DETECTION_DEFAULTS);
    `mode` wins over overrides["impulseDetectionMode"].
    Output: <track_name>_impulses_<mode>.json; same mode overwrites.

    Returns:
        Dict with success, total, succeeded, failed, skipped, message, items, failures.
    """
    mode_name = (mode or (overrides or {}).get("impulseDetectionMode")
                 or DETECTION_DEFAULTS["impulseDetectionMode"]).lower()
    if mode_name not in DETECTION_MODES:
        return {
            "success": False,
            "total": 0,
            "succeeded": 0,
            "failed": 0,
            "skipped": 0,
            "message": f"Unknown detection mode: {mode_name}. Use one of: {sorted(DETECTION_MODES)}",
            "items": [],
            "failures": [],
        }

    try:
        config = _build_config(mode_name, overrides)
        band_defs = load_bands(bands, bands_dir)
    except (DetectionError, ValueError, FileNotFoundError, yaml.YAMLError) as e:
        return {
            "success": False,
            "total": 0,
            "succeeded": 0,
            "failed": 0,
            "skipped": 0,
            "message": str(e),
            "items": [],
            "failures": [],
        }

    paths = _resolve_stft_files(stft_files, stft_dir)
    if not paths:
        return {
            "success": True,
            "total": 0,
            "succeeded": 0,
            "failed": 0,
            "skipped": 0,
            "message": "No STFT files to process.",
            "items": [],
            "failures": [],
        }

    output_dir = Path(output_dir)
    if not dry_run:
        output_dir.mkdir(parents=True, exist_ok=True)

    succeeded = 0
    failed = 0
    items: list[dict] = []
    failures: list[dict] = []

    for stft_path in paths:
        track_name = _track_name_from_stft_stem(stft_path.stem)
        out_name = _output_filename(track_name, mode_name)
        out_path = output_dir / out_name

        if not stft_path.exists():
            failed += 1
            failures.append({"item": str(stft_path), "reason": "File not found"})
            items.append({"file": str(stft_path), "status": "failed", "detail": "File not found"})
            continue

        try:
            stft = np.load(stft_path, allow_pickle=False)
            results = detect_band_impulses(stft, band_defs, sample_rate, hop_size, config)
            payload = _summarize_payload(track_name, stft.shape, sample_rate, hop_size, config, results)
            if not dry_run:
                with open(out_path, "w", encoding="utf-8") as f:
                    json.dump(payload, f)
            num_impulses = sum(len(b["events"]) for b in payload["bands"])
            num_sustained = sum(1 for b in payload["bands"] for e in b["events"] if e["sustained"])
            logger.info(
                "%s: %d impulse(s) across %d band(s)", stft_path.name, num_impulses, len(results)
            )
            succeeded += 1
            items.append({
                "file": stft_path.name,
                "output": out_name,
                "status": "success",
                "mode": mode_name,
                "num_frames": int(stft.shape[0]),
                "num_bins": int(stft.shape[1]),
                "num_bands": len(results),
                "num_impulses": num_impulses,
                "num_sustained": num_sustained,
            })
        except Exception as e:
            logger.warning("Detection failed for %s: %s", stft_path, e)
            failed += 1
            failures.append({"item": str(stft_path), "reason": str(e)})
            items.append({"file": stft_path.name, "status": "failed", "detail": str(e)})

    return {
        "success": failed == 0,
        "total": len(paths),
        "succeeded": succeeded,
        "failed": failed,
        "skipped": 0,
        "message": f"Processed {len(paths)} file(s). Succeeded: {succeeded}, failed: {failed}."
        + (" [DRY RUN]" if dry_run else ""),
        "items": items,
        "failures": failures,
    }
