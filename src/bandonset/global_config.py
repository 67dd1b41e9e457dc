"""Global, project-wide configuration constants.

This module intentionally contains **no business logic** – only simple,
shared filesystem anchors that many modules can import.

Detection-specific defaults live in `bandonset.detection.config`.
"""

from pathlib import Path

# Core roots
PACKAGE_ROOT: Path = Path(__file__).resolve().parent
# From src/bandonset/global_config.py, go up two levels: src/bandonset -> src -> repo root
PROJECT_ROOT: Path = PACKAGE_ROOT.parent.parent

# Core Names
PROJECT_NAME = "bandonset"
PACKAGE_NAME = "bandonset"

# Data directories
DATA_DIR: Path = PROJECT_ROOT / "data"
BANDS_DIR: Path = DATA_DIR / "bands"
DERIVED_DIR: Path = DATA_DIR / "derived"
STFT_DIR: Path = DERIVED_DIR / "stft"
IMPULSES_DIR: Path = DERIVED_DIR / "impulses"

# Logs directories
LOGS_DIR: Path = DATA_DIR / "logs"
DERIVED_LOGS_DIR: Path = LOGS_DIR / "derived"
