"""Utilities for band-set YAML files.

A band set file has a top-level ``bands`` list of ``{name, freq, color}``
entries. The reference ``"default"`` resolves to the built-in six-band
layout without reading disk.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from ..detection import BandDefinition
from ..detection.config import DEFAULT_BANDS
from ..global_config import BANDS_DIR

logger = logging.getLogger(__name__)

DEFAULT_BAND_SET = "default"


def resolve_band_set_path(band_ref: str, bands_dir: Path = BANDS_DIR) -> Path:
    """Resolve a band-set reference to a file path.

    A single word (no path separators, no suffix) resolves to
    bands_dir/<band_ref>.yaml; anything else is treated as a path.

    Args:
        band_ref: Band-set name like "drums" or a path like "my/bands.yaml".
        bands_dir: Directory holding named band sets.

    Returns:
        Resolved Path to the YAML file.

    Raises:
        ValueError: If band_ref is empty.
        FileNotFoundError: If the resolved file doesn't exist.
    """
    if not band_ref or not band_ref.strip():
        raise ValueError("band_ref must be non-empty")

    band_ref = band_ref.strip()
    if "/" not in band_ref and "\\" not in band_ref and not band_ref.endswith((".yaml", ".yml")):
        path = bands_dir / f"{band_ref}.yaml"
    else:
        path = Path(band_ref).resolve()

    if not path.exists():
        raise FileNotFoundError(f"Band set file not found: {path}")
    return path


def load_band_set_yaml(path: Path) -> list[dict[str, Any]]:
    """Load the raw ``bands`` list from a band-set YAML file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file has no ``bands`` list.
        yaml.YAMLError: If the YAML is invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Band set file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    bands = data.get("bands") if isinstance(data, dict) else None
    if not isinstance(bands, list):
        raise ValueError(f"Band set {path} must define a 'bands' list")
    return bands


def load_bands(band_ref: str = DEFAULT_BAND_SET, bands_dir: Path = BANDS_DIR) -> list[BandDefinition]:
    """Return band definitions for a band-set reference.

    Args:
        band_ref: "default", a band-set name under bands_dir, or a YAML path.
        bands_dir: Directory holding named band sets.

    Returns:
        BandDefinitions in file order.
    """
    if band_ref == DEFAULT_BAND_SET and not (bands_dir / f"{DEFAULT_BAND_SET}.yaml").exists():
        return [BandDefinition.from_value(b) for b in DEFAULT_BANDS]

    path = resolve_band_set_path(band_ref, bands_dir)
    logger.debug("Loading band set from %s", path)
    return [BandDefinition.from_value(b) for b in load_band_set_yaml(path)]


def save_band_set_yaml(path: Path, bands: list[BandDefinition]) -> None:
    """Write band definitions to a band-set YAML file.

    Side Effects:
        - Creates parent directories if they don't exist.
        - Writes the YAML file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(
            {"bands": [b.to_dict() for b in bands]},
            f,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
