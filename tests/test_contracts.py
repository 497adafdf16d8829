"""
tests/test_contracts.py

Unit tests for the contracts package.

Tests validation, configuration errors, lifetime derivation and
immutability of the wave and field contracts.
"""

import math

import numpy as np
import pytest

from contracts import (
    # Wave
    HitEvent,
    WaveParameters,
    WaveSource,
    WaveSourceState,
    derive_lifetime,
    # Field
    FieldFrame,
    # Validation
    ConfigurationError,
    ValidationError,
    validate_color,
    validate_monotonic_timestamps,
    validate_positive,
    validate_range,
    validate_shape,
)


def _params(**overrides) -> WaveParameters:
    values = dict(
        amplitude=1.0,
        frequency=2.0 * math.pi,
        damping=0.5,
        speed=1.0,
        grid_size=3,
        grid_spacing=1.0,
    )
    values.update(overrides)
    return WaveParameters(**values)


# =============================================================================
# WaveParameters Tests
# =============================================================================


class TestWaveParameters:
    """Tests for WaveParameters contract."""

    def test_basic_creation(self):
        """Test basic WaveParameters creation and float coercion."""
        params = _params(amplitude=2, speed=4)
        assert params.amplitude == 2.0
        assert isinstance(params.amplitude, float)
        assert params.speed == 4.0
        assert params.lifetime_offset == 0.1

    def test_lifetime_is_derived(self):
        """Test lifetime = sqrt(2) * side / speed * (1 + offset)."""
        params = _params(grid_size=10, grid_spacing=1.5, speed=3.0, lifetime_offset=0.25)
        expected = (math.sqrt(2.0) * 10 * 1.5 / 3.0) * 1.25
        assert params.lifetime == pytest.approx(expected)
        assert params.lifetime == pytest.approx(derive_lifetime(10, 1.5, 3.0, 0.25))

    def test_lifetime_cannot_be_supplied(self):
        """Test that lifetime is not an init argument."""
        with pytest.raises(TypeError):
            WaveParameters(
                amplitude=1.0,
                frequency=1.0,
                damping=0.0,
                speed=1.0,
                grid_size=3,
                grid_spacing=1.0,
                lifetime=5.0,
            )

    @pytest.mark.parametrize(
        "size,spacing,speed,offset",
        [(1, 1.0, 1.0, 0.0), (3, 1.0, 1.0, 0.1), (32, 1.1, 12.0, 0.0), (100, 0.25, 0.5, 2.0)],
    )
    def test_lifetime_exceeds_max_propagation_delay(self, size, spacing, speed, offset):
        """Test that a wave always outlives its trip across the grid."""
        params = _params(grid_size=size, grid_spacing=spacing, speed=speed, lifetime_offset=offset)
        assert params.lifetime > params.max_propagation_delay

    def test_grid_side_length(self):
        """Test grid side length."""
        assert _params(grid_size=4, grid_spacing=0.5).grid_side_length == 2.0

    def test_neutral_color_is_even_blend(self):
        """Test neutral colour is the midpoint of the two endpoints."""
        params = _params(top_color=(1.0, 0.0, 0.5), bottom_color=(0.0, 1.0, 0.5))
        assert params.neutral_color == (0.5, 0.5, 0.5)

    @pytest.mark.parametrize("name", ["amplitude", "frequency", "speed"])
    @pytest.mark.parametrize("value", [0.0, -1.0])
    def test_non_positive_shape_values_raise(self, name, value):
        """Test ConfigurationError for non-positive amplitude, frequency, speed."""
        with pytest.raises(ConfigurationError):
            _params(**{name: value})

    def test_zero_damping_allowed(self):
        """Test that undamped waves are allowed."""
        assert _params(damping=0.0).damping == 0.0

    def test_negative_damping_raises(self):
        """Test negative damping raises."""
        with pytest.raises(ConfigurationError):
            _params(damping=-0.1)

    def test_negative_lifetime_offset_raises(self):
        """Test negative lifetime offset raises."""
        with pytest.raises(ConfigurationError):
            _params(lifetime_offset=-0.5)

    def test_non_finite_values_raise(self):
        """Test inf/nan configuration raises."""
        with pytest.raises(ConfigurationError):
            _params(amplitude=float("inf"))
        with pytest.raises(ConfigurationError):
            _params(frequency=float("nan"))

    def test_grid_size_validation(self):
        """Test grid size must be a positive int."""
        with pytest.raises(ConfigurationError):
            _params(grid_size=0)
        with pytest.raises(TypeError):
            _params(grid_size=2.5)
        with pytest.raises(TypeError):
            _params(grid_size=True)

    def test_grid_size_accepts_numpy_integer(self):
        """Test numpy integer grid sizes are accepted and stored as int."""
        params = _params(grid_size=np.int64(4))
        assert params.grid_size == 4
        assert type(params.grid_size) is int
        assert params.lifetime == pytest.approx(_params(grid_size=4).lifetime)

    def test_color_validation(self):
        """Test colour components must be in [0, 1]."""
        with pytest.raises(ConfigurationError):
            _params(top_color=(1.2, 0.0, 0.0))
        with pytest.raises(ConfigurationError):
            _params(bottom_color=(0.0, 0.0))

    def test_configuration_error_is_validation_error(self):
        """Test ConfigurationError subclasses ValidationError and ValueError."""
        assert issubclass(ConfigurationError, ValidationError)
        assert issubclass(ConfigurationError, ValueError)

    def test_immutability(self):
        """Test that WaveParameters is frozen."""
        params = _params()
        with pytest.raises(AttributeError):
            params.amplitude = 5.0


# =============================================================================
# HitEvent / WaveSource Tests
# =============================================================================


class TestHitEvent:
    """Tests for HitEvent contract."""

    def test_origin_uses_x_and_z(self):
        """Test the ground-plane origin ignores Y."""
        hit = HitEvent(world_position=(1.0, 7.0, -2.0), timestamp=0.5)
        assert hit.origin_xz == (1.0, -2.0)

    def test_non_finite_timestamp_raises(self):
        """Test that non-finite timestamp raises."""
        with pytest.raises(ValidationError):
            HitEvent(world_position=(0.0, 0.0, 0.0), timestamp=float("nan"))

    def test_wrong_position_length_raises(self):
        """Test that a 2D position raises."""
        with pytest.raises(TypeError):
            HitEvent(world_position=(0.0, 0.0), timestamp=0.0)


class TestWaveSource:
    """Tests for WaveSource contract."""

    def test_from_hit(self):
        """Test creating a source from a hit event."""
        source = WaveSource.from_hit(HitEvent(world_position=(2.0, 0.0, 3.0), timestamp=1.25))
        assert source.origin_xz == (2.0, 3.0)
        assert source.start_time == 1.25

    def test_age(self):
        """Test age computation."""
        source = WaveSource(origin_xz=(0.0, 0.0), start_time=1.0)
        assert source.age(3.5) == 2.5

    def test_expiry_is_strict(self):
        """Test source is active at exactly start + lifetime and expired after."""
        source = WaveSource(origin_xz=(0.0, 0.0), start_time=0.5)
        assert source.state(2.5, 2.0) is WaveSourceState.ACTIVE
        assert not source.is_expired(2.5, 2.0)
        assert source.state(2.5 + 1e-9, 2.0) is WaveSourceState.EXPIRED

    def test_equality_and_hash(self):
        """Test sources are value objects."""
        a = WaveSource(origin_xz=(1, 2), start_time=0)
        b = WaveSource(origin_xz=(1.0, 2.0), start_time=0.0)
        assert a == b
        assert hash(a) == hash(b)


# =============================================================================
# FieldFrame Tests
# =============================================================================


class TestFieldFrame:
    """Tests for FieldFrame contract."""

    def _frame(self, n=9, timestamp=0.0):
        colors = np.tile([0.5, 0.5, 0.5, 1.0], (n, 1))
        return FieldFrame(timestamp=timestamp, heights=np.arange(n, dtype=float), colors=colors)

    def test_basic_creation(self):
        """Test basic FieldFrame creation."""
        frame = self._frame()
        assert frame.num_elements == 9
        assert frame.height_grid(3).shape == (3, 3)
        assert frame.color_grid(3).shape == (3, 3, 4)
        assert frame.max_abs_height == 8.0

    def test_immutability(self):
        """Test that FieldFrame arrays are immutable copies."""
        heights = np.zeros(4)
        frame = FieldFrame(timestamp=0.0, heights=heights, colors=np.ones((4, 4)))
        heights[0] = 5.0
        assert frame.heights[0] == 0.0
        with pytest.raises(ValueError):
            frame.heights[0] = 1.0
        with pytest.raises(ValueError):
            frame.colors[0, 0] = 0.0

    def test_shape_mismatch_raises(self):
        """Test colour/height shape mismatch raises."""
        with pytest.raises(ValidationError):
            FieldFrame(timestamp=0.0, heights=np.zeros(4), colors=np.ones((3, 4)))
        with pytest.raises(ValidationError):
            FieldFrame(timestamp=0.0, heights=np.zeros(4), colors=np.ones((4, 3)))

    def test_non_finite_raises(self):
        """Test NaN heights raise."""
        heights = np.zeros(4)
        heights[1] = np.nan
        with pytest.raises(ValidationError):
            FieldFrame(timestamp=0.0, heights=heights, colors=np.ones((4, 4)))

    def test_wrong_grid_size_raises(self):
        """Test reshaping with the wrong size raises."""
        with pytest.raises(ValidationError):
            self._frame().height_grid(4)

    def test_equality(self):
        """Test FieldFrame equality and hashing."""
        assert self._frame() == self._frame()
        assert self._frame() != self._frame(timestamp=1.0)
        assert isinstance(hash(self._frame()), int)


# =============================================================================
# Validation Tests
# =============================================================================


class TestValidation:
    """Tests for validation helpers."""

    def test_validate_positive(self):
        validate_positive(1.0, "x")
        validate_positive(0.0, "x", allow_zero=True)
        with pytest.raises(ValidationError):
            validate_positive(0.0, "x")
        with pytest.raises(ConfigurationError):
            validate_positive(-1.0, "x", error_cls=ConfigurationError)

    def test_validate_positive_rejects_non_numeric(self):
        with pytest.raises(TypeError):
            validate_positive("fast", "speed")
        with pytest.raises(TypeError):
            validate_positive(True, "speed")

    def test_validate_range(self):
        validate_range(0.5, 0.0, 1.0)
        with pytest.raises(ValidationError):
            validate_range(1.0, 0.0, 1.0, inclusive=False)

    def test_validate_color(self):
        assert validate_color([0, 0.5, 1]) == (0.0, 0.5, 1.0)
        with pytest.raises(ValidationError):
            validate_color((0.0, -0.1, 0.0))

    def test_validate_shape(self):
        validate_shape(np.zeros((9, 2)), (None, 2))
        with pytest.raises(ValidationError):
            validate_shape(np.zeros((9, 3)), (None, 2))
        with pytest.raises(TypeError):
            validate_shape([[0.0, 0.0]], (None, 2))

    def test_validate_monotonic_timestamps(self):
        validate_monotonic_timestamps([0.0, 0.1, 0.2])
        validate_monotonic_timestamps([0.0, 0.1, 0.1], strict=False)
        with pytest.raises(ValidationError):
            validate_monotonic_timestamps([0.0, 0.1, 0.1])
        with pytest.raises(ValidationError):
            validate_monotonic_timestamps([0.0, 0.2, 0.1], strict=False)
