"""Detection-specific exception types for the project."""

from __future__ import annotations


class DetectionError(Exception):
    """Base exception for impulse detection errors."""


class InvalidInputError(DetectionError, ValueError):
    """Raised when a detection request is structurally invalid.

    Covers a missing or empty STFT sequence, non-positive sample rate or hop
    size, and malformed band entries. No partial computation happens once
    this is raised.
    """


class InvalidConfigError(DetectionError, ValueError):
    """Raised when a detection setting is out of range or unknown."""


def ensure_positive(value: float, name: str) -> float:
    """Return value as float, raising InvalidInputError unless it is > 0.

    Args:
        value: Number to check.
        name: Field name used in the error message.

    Returns:
        The value converted to float.

    Raises:
        InvalidInputError: If value is missing, non-numeric or not > 0.
    """
    try:
        number = float(value)
    except (TypeError, ValueError) as err:
        raise InvalidInputError(f"{name} must be a number, got {value!r}") from err
    if not number > 0:
        raise InvalidInputError(f"{name} must be > 0, got {value!r}")
    return number
