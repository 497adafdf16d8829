"""
contracts

Core data contracts for the ripple grid simulation.

This package defines strict, documented dataclasses that form the data contracts
between input handling, the wave registry, field evaluation and presentation.

All contracts are immutable (frozen dataclasses) with runtime validation.
Modules can evolve independently as long as they honor these contracts.

Contracts
---------
Wave Layer:
    WaveParameters : Per-run wave shape and grid configuration
    HitEvent : World-space press on the ground plane
    WaveSource : Point-and-time origin of one decaying radial wave

Field Layer:
    FieldFrame : Per-element displacement and RGBA colour for one tick
"""

from contracts.wave import (
    Color,
    HitEvent,
    WaveParameters,
    WaveSource,
    WaveSourceState,
    derive_lifetime,
)
from contracts.field import FieldFrame
from contracts.validation import (
    validate_color,
    validate_finite,
    validate_finite_scalar,
    validate_monotonic_timestamps,
    validate_positive,
    validate_range,
    validate_shape,
    ConfigurationError,
    ValidationError,
)

__all__ = [
    # Wave
    "Color",
    "HitEvent",
    "WaveParameters",
    "WaveSource",
    "WaveSourceState",
    "derive_lifetime",
    # Field
    "FieldFrame",
    # Validation
    "validate_color",
    "validate_finite",
    "validate_finite_scalar",
    "validate_monotonic_timestamps",
    "validate_positive",
    "validate_range",
    "validate_shape",
    "ConfigurationError",
    "ValidationError",
]
