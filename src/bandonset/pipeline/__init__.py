"""Pipeline orchestration layer.

Pipeline modules are organized by verb:
- `pipeline/detect.py` - per-band impulse detection over STFT .npy files

Import policy:
- CLI imports only from `pipeline.*` for orchestration (verbs).
- `pipeline.*` may call `detection.*` and `utils.*` as helpers.
- `detection.*` must not call `pipeline.*`.
"""
