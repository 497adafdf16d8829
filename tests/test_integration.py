"""
test_integration.py

Minimal sanity test for full-system integration.

Verifies the complete pipeline:
    Pointer → Hit → Registry → Field → Frame → Presenter
"""

import math

import numpy as np
import pytest

from contracts.validation import ConfigurationError
from interaction.input_source import PointerInputSource
from pipeline.config import RippleConfig
from pipeline.simulation import RippleSimulation
from pipeline.update_loop import InputSourceProtocol, PresenterProtocol, UpdateLoop
from space.grid_layout import GridLayout, GridState
from visualization.presenters import FrameRecorder, GridStatePresenter


def _simulation(**overrides) -> RippleSimulation:
    values = dict(
        grid_size=5,
        grid_spacing=1.0,
        wave_amplitude=1.0,
        wave_frequency=2.0 * math.pi,
        wave_damping=0.5,
        wave_speed=2.0,
    )
    values.update(overrides)
    return RippleSimulation(RippleConfig(**values).to_parameters())


def test_held_press_starts_one_wave():
    """Test a press held across many steps creates exactly one wave."""
    print("Testing held press...")

    input_source = PointerInputSource()
    recorder = FrameRecorder()

    with _simulation() as simulation:
        loop = UpdateLoop(simulation, dt=0.05, input_source=input_source, presenter=recorder)

        input_source.set_pointer(True, world_point=(0.0, 0.0, 0.0))
        frames = loop.run(10)

        assert len(frames) == 10
        assert len(recorder) == 10
        assert all(f.active_wave_count == 1 for f in frames), "Held press must not add waves"
        assert simulation.snapshot().sources[0].start_time == pytest.approx(0.05)

        input_source.set_pointer(False)
        loop.step()
        input_source.set_pointer(True)
        frame = loop.step()
        assert frame.active_wave_count == 2, "Second press should add a second wave"

    print("  [PASS] One wave per press")


def test_wave_spreads_over_steps():
    """Test the disturbed area grows as the front propagates."""
    print("Testing wave propagation...")

    input_source = PointerInputSource()
    recorder = FrameRecorder()

    with _simulation(grid_size=9) as simulation:
        loop = UpdateLoop(simulation, dt=0.1, input_source=input_source, presenter=recorder)
        input_source.set_pointer(True, world_point=(0.0, 0.0, 0.0))
        loop.run(20)

    # Elements reached so far are those within speed * age of the centre
    reached_counts = [int(np.count_nonzero(f.heights)) for f in recorder.frames]
    assert reached_counts[0] == 0
    assert max(reached_counts[:5]) < max(reached_counts[5:])

    print("  [PASS] Wave spreads outward")


def test_recorder_and_grid_presenter():
    """Test both presenters receive the same frames."""
    print("Testing presenters...")

    with _simulation() as simulation:
        mirror = GridStatePresenter(GridState(GridLayout(5, 1.0)))
        loop = UpdateLoop(simulation, dt=0.1, presenter=mirror)

        simulation.on_hit_event((1.0, 0.0, 1.0), 0.0)
        frame = loop.step()
        np.testing.assert_array_equal(mirror.grid_state.heights, frame.heights)

        recorder = FrameRecorder(max_frames=3)
        loop.set_presenter(recorder)
        loop.run(5)

        assert len(recorder) == 3
        assert recorder.latest is recorder.frames[-1]
        assert recorder.latest.timestamp == pytest.approx(0.6)
        assert recorder.height_history(12).shape == (3,)

    print("  [PASS] Presenters updated")


def test_update_loop_validation():
    """Test UpdateLoop argument checks."""
    with _simulation() as simulation:
        with pytest.raises(ValueError):
            UpdateLoop(simulation, dt=0.0)
        with pytest.raises(TypeError):
            UpdateLoop(simulation, dt=0.1, input_source=object())
        with pytest.raises(TypeError):
            UpdateLoop(simulation, dt=0.1, presenter=object())

        loop = UpdateLoop(simulation, dt=0.1, start_time=2.0)
        with pytest.raises(ValueError):
            loop.run(-1)
        assert loop.run(0) == []

        loop.step()
        assert loop.step_count == 1
        assert loop.current_time == pytest.approx(2.1)


def test_protocols_are_satisfied():
    """Test the stock input source and presenters satisfy the loop protocols."""
    assert isinstance(PointerInputSource(), InputSourceProtocol)
    assert isinstance(FrameRecorder(), PresenterProtocol)
    assert isinstance(GridStatePresenter(GridState(GridLayout(1, 1.0))), PresenterProtocol)


def test_frame_recorder_capacity():
    with pytest.raises(ValueError):
        FrameRecorder(max_frames=0)
    recorder = FrameRecorder()
    assert recorder.latest is None


# =============================================================================
# Configuration
# =============================================================================


def test_config_defaults_are_valid():
    params = RippleConfig().to_parameters()
    assert params.grid_size == 32
    assert params.lifetime > params.max_propagation_delay


def test_config_from_dict():
    config = RippleConfig.from_dict(
        {"grid_size": 8, "wave_speed": 3.0, "top_color": [1.0, 1.0, 0.0]}
    )
    assert config.grid_size == 8
    assert config.top_color == (1.0, 1.0, 0.0)
    assert config.to_parameters().top_color == (1.0, 1.0, 0.0)

    round_trip = RippleConfig.from_dict(config.to_dict())
    assert round_trip == config


def test_config_rejects_lifetime_and_unknown_keys():
    with pytest.raises(ConfigurationError):
        RippleConfig.from_dict({"lifetime": 3.0})
    with pytest.raises(ConfigurationError):
        RippleConfig.from_dict({"wave_colour": "red"})


def test_config_invalid_values_fail_at_setup():
    with pytest.raises(ConfigurationError):
        RippleConfig(wave_speed=0.0).to_parameters()
    with pytest.raises(ConfigurationError):
        RippleConfig(wave_amplitude=-1.0).to_parameters()
    with pytest.raises(ConfigurationError):
        RippleConfig(lifetime_offset=-0.2).to_parameters()


if __name__ == "__main__":
    print("=" * 60)
    print("Ripple Grid Integration Tests")
    print("=" * 60)
    test_held_press_starts_one_wave()
    test_wave_spreads_over_steps()
    test_recorder_and_grid_presenter()
    print("=" * 60)
    print("All integration tests passed.")
