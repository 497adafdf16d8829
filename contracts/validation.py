"""
contracts/validation.py

Lightweight validation utilities for contract enforcement.

Provides scalar range checks, array shape checks, colour checks and a
monotonic clock check. All validators raise ValidationError (or the
subclass requested by the caller) on failure.

Usage
-----
>>> from contracts.validation import validate_positive, ConfigurationError
>>> validate_positive(1.5, "amplitude", error_cls=ConfigurationError)
>>> validate_color((0.2, 0.4, 1.0), "top_color")
"""

import math
from typing import Tuple, Optional, Sequence, Type, Union

import numpy as np


class ValidationError(ValueError):
    """
    Raised when a contract validation fails.

    Subclass of ValueError for compatibility with existing error handling.
    """

    pass


class ConfigurationError(ValidationError):
    """
    Raised when wave or grid configuration is rejected at setup.

    Configuration errors are fatal: they are raised while parameters are
    being constructed, never while the simulation is ticking.
    """

    pass


def validate_finite_scalar(
    value: float,
    name: str = "value",
    error_cls: Type[ValidationError] = ValidationError,
) -> float:
    """
    Validate that a scalar value is numeric and finite.

    Parameters
    ----------
    value : float
        Value to validate.
    name : str
        Name for error messages.
    error_cls : type
        ValidationError subclass to raise.

    Returns
    -------
    float
        The value converted to float.

    Raises
    ------
    ValidationError
        If value is inf or nan.
    TypeError
        If value is not numeric.
    """
    if isinstance(value, bool):
        raise TypeError(f"{name} must be numeric, got bool")
    try:
        float_val = float(value)
    except (TypeError, ValueError) as e:
        raise TypeError(f"{name} must be numeric, got {type(value).__name__}") from e

    if not math.isfinite(float_val):
        raise error_cls(f"{name} must be finite, got {value}")
    return float_val


def validate_positive(
    value: float,
    name: str = "value",
    allow_zero: bool = False,
    error_cls: Type[ValidationError] = ValidationError,
) -> None:
    """
    Validate that a value is finite and positive.

    Parameters
    ----------
    value : float
        Value to validate.
    name : str
        Name for error messages.
    allow_zero : bool
        If True, zero is acceptable.
    error_cls : type
        ValidationError subclass to raise.

    Raises
    ------
    ValidationError
        If value is not positive (or non-negative if allow_zero).
    """
    value = validate_finite_scalar(value, name, error_cls)
    if allow_zero:
        if value < 0:
            raise error_cls(f"{name} must be non-negative, got {value}")
    else:
        if value <= 0:
            raise error_cls(f"{name} must be positive, got {value}")


def validate_range(
    value: float,
    min_val: Optional[float],
    max_val: Optional[float],
    name: str = "value",
    inclusive: bool = True,
    error_cls: Type[ValidationError] = ValidationError,
) -> None:
    """
    Validate that a value is within a range.

    Parameters
    ----------
    value : float
        Value to validate.
    min_val : float or None
        Minimum acceptable value. None for no lower bound.
    max_val : float or None
        Maximum acceptable value. None for no upper bound.
    name : str
        Name for error messages.
    inclusive : bool
        If True, bounds are inclusive.
    error_cls : type
        ValidationError subclass to raise.

    Raises
    ------
    ValidationError
        If value is outside the range.
    """
    if inclusive:
        if min_val is not None and value < min_val:
            raise error_cls(f"{name} must be >= {min_val}, got {value}")
        if max_val is not None and value > max_val:
            raise error_cls(f"{name} must be <= {max_val}, got {value}")
    else:
        if min_val is not None and value <= min_val:
            raise error_cls(f"{name} must be > {min_val}, got {value}")
        if max_val is not None and value >= max_val:
            raise error_cls(f"{name} must be < {max_val}, got {value}")


def validate_color(
    color: Sequence[float],
    name: str = "color",
    error_cls: Type[ValidationError] = ValidationError,
) -> Tuple[float, float, float]:
    """
    Validate an RGB colour with components in [0, 1].

    Parameters
    ----------
    color : sequence of float
        Three colour components.
    name : str
        Name for error messages.
    error_cls : type
        ValidationError subclass to raise.

    Returns
    -------
    Tuple[float, float, float]
        The colour as a tuple of floats.
    """
    try:
        components = tuple(color)
    except TypeError as e:
        raise TypeError(f"{name} must be a sequence of 3 floats, got {type(color).__name__}") from e

    if len(components) != 3:
        raise error_cls(f"{name} must have 3 components, got {len(components)}")

    out = []
    for channel, component in zip("rgb", components):
        component = validate_finite_scalar(component, f"{name}.{channel}", error_cls)
        validate_range(component, 0.0, 1.0, f"{name}.{channel}", error_cls=error_cls)
        out.append(component)
    return (out[0], out[1], out[2])


def _require_ndarray(array: np.ndarray, name: str) -> None:
    if not isinstance(array, np.ndarray):
        raise TypeError(f"{name} must be a numpy ndarray, got {type(array).__name__}")


def validate_shape(
    array: np.ndarray,
    expected_shape: Tuple[Optional[int], ...],
    name: str = "array",
) -> None:
    """
    Validate an array's shape, with None matching any length.

    ``(None, 2)`` accepts any number of ground-plane points; ``(9, 4)``
    accepts exactly nine RGBA colours.

    Raises
    ------
    ValidationError
        If the rank or any fixed dimension differs.
    TypeError
        If array is not a numpy array.
    """
    _require_ndarray(array, name)

    matches = len(array.shape) == len(expected_shape) and all(
        expected is None or actual == expected
        for actual, expected in zip(array.shape, expected_shape)
    )
    if not matches:
        wanted = tuple("N" if d is None else d for d in expected_shape)
        raise ValidationError(f"{name} must have shape {wanted}, got {array.shape}")


def validate_finite(
    array: np.ndarray,
    name: str = "array",
) -> None:
    """Validate that an array holds no inf or nan."""
    _require_ndarray(array, name)

    bad = ~np.isfinite(array)
    if np.any(bad):
        first = tuple(int(i) for i in np.argwhere(bad)[0])
        raise ValidationError(
            f"{name} has {int(np.count_nonzero(bad))} non-finite value(s), first at index {first}"
        )


def validate_monotonic_timestamps(
    timestamps: Union[np.ndarray, Sequence[float]],
    strict: bool = True,
    name: str = "timestamps",
) -> None:
    """
    Validate that a sequence of times never runs backwards.

    With ``strict=False`` repeated times are accepted, as when a
    simulation is ticked twice at the same instant.

    Raises
    ------
    ValidationError
        At the first pair of times out of order.
    """
    times = np.asarray(timestamps, dtype=np.float64)
    if times.size < 2:
        return

    steps = np.diff(times)
    out_of_order = steps <= 0 if strict else steps < 0
    if np.any(out_of_order):
        i = int(np.argmax(out_of_order))
        order = "strictly increasing" if strict else "non-decreasing"
        raise ValidationError(f"{name} must be {order}: {times[i]} then {times[i + 1]} at index {i}")
