"""
bandonset core package.

This package currently provides:
- The per-band impulse detection engine (`bandonset.detection`)
- A batch pipeline over precomputed STFT `.npy` files (`bandonset.pipeline`)
- A minimal Typer-based CLI (`bandonset.cli`)

Configuration:
- Shared, project-wide filesystem anchors live in `bandonset.global_config`.
- Detection defaults and numeric constants live in
  `bandonset.detection.config`.
"""
